# validator/validator.py

import asyncio
import aiohttp
import logging
from typing import List, Tuple, Callable, Awaitable, Optional

import config # 绝对导入 config 模块
from models.link_model import SubscriptionLink, LinkStatus # 导入链接模型

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)

# 单次检测的结果：(状态, 延迟毫秒)
ProbeResult = Tuple[LinkStatus, int]


class LinkValidator:
    def __init__(self, timeout: float = None):
        # 实例化时初始化日志记录器
        self.logger = logging.getLogger(__name__)
        self.timeout = config.PROBE_TIMEOUT if timeout is None else timeout

    async def validate_link(self, url: str) -> ProbeResult:
        """
        异步函数：用 HEAD 请求检测订阅链接是否可达。
        只要收到响应（任何状态码）即视为有效，延迟为请求开始至收到响应的毫秒数；
        超时或任何错误均视为失效，延迟记为固定的 9999。此函数不会抛出异常。
        Args:
            url (str): 订阅链接。
        Returns:
            ProbeResult: (LinkStatus.ACTIVE, 延迟) 或 (LinkStatus.EXPIRED, 9999)。
        """
        loop = asyncio.get_event_loop()
        start_time = loop.time() # 记录请求开始时间
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(url, allow_redirects=True) as response:
                    ping = int((loop.time() - start_time) * 1000) # 计算延迟（毫秒）
                    self.logger.debug(f"链接 {url} 可达，状态码: {response.status}，延迟: {ping}ms")
                    return LinkStatus.ACTIVE, ping
        except asyncio.TimeoutError:
            self.logger.debug(f"链接 {url} 检测超时。")
        except aiohttp.ClientError as e:
            self.logger.debug(f"链接 {url} 检测时发生客户端错误: {e}")
        except Exception as e:
            self.logger.debug(f"链接 {url} 检测失败: {e}")
        return LinkStatus.EXPIRED, config.FAILED_PING

    async def run_validation(self, links: List[SubscriptionLink],
                             on_result: Callable[[SubscriptionLink, LinkStatus, int], None],
                             probe: Optional[Callable[[str], Awaitable[ProbeResult]]] = None):
        """
        异步函数：按输入顺序逐个检测链接（不并发）。
        每条链接检测完成后立即调用 on_result 写回结果，下一条链接在此之后才开始检测。
        失败的检测不会重试。
        Args:
            links (List[SubscriptionLink]): 待检测的链接。
            on_result: 接收 (链接, 状态, 延迟) 的回调，负责合并与持久化。
            probe: 检测函数，缺省为 validate_link。
        """
        probe = probe or self.validate_link
        active_count = 0
        for index, link in enumerate(links, start=1):
            try:
                status, ping = await probe(link.url)
            except Exception as e:
                # 检测函数本身出错时也按失效处理，不中断整批检测
                self.logger.warning(f"检测 {link.url} 时发生异常，按失效处理: {e}")
                status, ping = LinkStatus.EXPIRED, config.FAILED_PING

            if status == LinkStatus.ACTIVE:
                active_count += 1
            self.logger.info(f"[{index}/{len(links)}] {link.title}: {status.value} ({ping}ms)")
            on_result(link, status, ping)

        self.logger.info(f"完成 {len(links)} 个链接的检测，其中 {active_count} 个有效。")
