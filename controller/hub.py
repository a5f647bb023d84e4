# controller/hub.py

import asyncio
import logging
from typing import List, Optional

import config # 绝对导入 config 模块
from models.app_state import AppState
from models.link_model import SubscriptionLink, LinkType, LinkStatus
from parser.link_parser import LinkParser
from scraper.aggregator import aggregate_vpn_links, generate_summary
from store.link_store import LinkStore, merge_links
from validator.validator import LinkValidator
from output.writer import write_links_to_plain_text, write_report, write_clash_provider_yaml

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)

# 导出动作名称
EXPORT_KINDS = ('v2ray', 'clash', 'report', 'providers')


class HubController:
    """
    唯一持有应用状态的控制器。链接池只在这里被修改，
    每次修改（合并新链接、写回单条检测结果）后立即持久化。
    检测严格串行执行，因此同一时间只有一个写入者。
    """
    def __init__(self, store: LinkStore, client, validator: LinkValidator = None,
                 parser: LinkParser = None):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.client = client
        self.validator = validator or LinkValidator()
        self.parser = parser or LinkParser()
        self.state = AppState()

    @property
    def has_api_key(self) -> bool:
        return bool(self.client.enabled)

    def load(self) -> bool:
        """
        读取持久化的链接池。
        Returns:
            bool: 是否存在已保存的链接池。
        """
        links = self.store.load()
        if links is None:
            self.state.links = []
            return False
        self.state.links = links
        return True

    async def start(self, loaded: bool = None):
        """
        启动流程：有保存的链接池时继续检测其中仍处于检测中的链接；
        否则在配置了 API_KEY 时执行一次同步。
        Args:
            loaded (bool): load() 的结果；传入时不再读取存储。
        """
        if not self.has_api_key:
            self.logger.warning("API_KEY 未配置，AI 抓取功能已禁用。")
        if loaded is None:
            loaded = self.load()
        if loaded:
            untested = [l for l in self.state.links if l.status == LinkStatus.TESTING]
            if untested:
                await self.run_validation(untested)
        elif self.has_api_key:
            await self.sync()

    def _persist(self):
        if not self.store.save(self.state.links):
            self.logger.warning("链接池持久化失败，本次会话继续使用内存中的数据。")

    async def sync(self) -> List[SubscriptionLink]:
        """
        执行一次同步：AI 搜索 -> 合并进链接池 -> 持久化 -> 检测新链接。
        同步进行中或未配置 API_KEY 时直接返回空列表。
        Returns:
            List[SubscriptionLink]: 本次真正加入链接池的新链接。
        """
        if not self.has_api_key:
            self.state.sync_progress = 'API_KEY 未配置，AI 抓取功能已禁用。'
            return []
        if self.state.is_loading:
            return []

        self.state.is_loading = True
        self.state.sync_progress = 'AI 搜索中...'
        try:
            new_links = await aggregate_vpn_links(self.client, self.parser)
            existing_keys = {link.generate_key() for link in self.state.links}
            filtered_new = [link for link in new_links if link.generate_key() not in existing_keys]
            self.state.links = merge_links(self.state.links, new_links)
            self._persist()
            self.logger.info(f"同步完成，新增 {len(filtered_new)} 个链接，链接池共 {len(self.state.links)} 个。")

            if filtered_new:
                await asyncio.sleep(config.VALIDATION_START_DELAY)
                kept_ids = {link.id for link in self.state.links}
                await self.run_validation([l for l in filtered_new if l.id in kept_ids])
            else:
                self.state.sync_progress = '暂无新节点'
            return filtered_new
        except Exception as e:
            self.logger.error(f"同步失败: {e}")
            self.state.sync_progress = '同步失败'
            return []
        finally:
            self.state.is_loading = False

    def _apply_probe_result(self, link: SubscriptionLink, status: LinkStatus, ping: int):
        """把单条检测结果写回链接池并立即持久化。"""
        for current in self.state.links:
            if current.id == link.id:
                current.status = status
                current.ping = ping
                break
        self._persist()

    async def run_validation(self, links: List[SubscriptionLink]):
        """逐个检测给定的链接，每条结果落盘后再检测下一条。"""
        self.state.sync_progress = '正在测速...'
        await self.validator.run_validation(links, self._apply_probe_result)
        self.state.sync_progress = ''

    async def validate(self, include_all: bool = False):
        """重新检测链接池：默认只检测仍处于检测中的链接。"""
        if include_all:
            targets = list(self.state.links)
        else:
            targets = [l for l in self.state.links if l.status == LinkStatus.TESTING]
        if not targets:
            self.logger.info("没有需要检测的链接。")
            return
        await self.run_validation(targets)

    def export(self, kind: str, only_fast: bool = None, output_dir: str = None) -> Optional[str]:
        """
        导出链接：v2ray / clash 为链接列表，report 为巡检报告，providers 为 Clash 配置。
        Returns:
            Optional[str]: 生成的文件路径，无可用节点时为 None。
        """
        only_fast = self.state.only_fast if only_fast is None else only_fast
        if kind == 'v2ray':
            return write_links_to_plain_text(self.state.links, LinkType.V2, only_fast, output_dir)
        if kind == 'clash':
            return write_links_to_plain_text(self.state.links, LinkType.CLASH, only_fast, output_dir)
        if kind == 'report':
            return write_report(self.state.links, only_fast, output_dir)
        if kind == 'providers':
            return write_clash_provider_yaml(self.state.links, only_fast, output_dir)
        raise ValueError(f"未知的导出类型: {kind}")

    async def summary(self) -> str:
        return await generate_summary(self.client, self.state.links)
