# output/writer.py

import os
import yaml # 用于生成 Clash 配置
import logging
from datetime import datetime, date
from typing import List, Optional, Union

import config # 绝对导入 config 模块
from models.link_model import SubscriptionLink, LinkType, LinkStatus # 导入链接模型
from models.app_state import ALL_TYPES

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


def _ensure_output_dir_exists(output_dir: str):
    """确保输出目录存在，如果不存在则创建。"""
    os.makedirs(output_dir, exist_ok=True)


def _type_label(link_type: Union[LinkType, str]) -> str:
    return link_type.value if isinstance(link_type, LinkType) else link_type


def select_export_links(links: List[SubscriptionLink], link_type: Union[LinkType, str] = ALL_TYPES,
                        only_fast: bool = True) -> List[SubscriptionLink]:
    """
    选出可导出的链接：类型匹配（ALL 表示全部）、状态有效，开启极速过滤时还要求延迟低于阈值。
    """
    selected = []
    for link in links:
        if link_type != ALL_TYPES and link.type != link_type:
            continue
        if link.status != LinkStatus.ACTIVE:
            continue
        if only_fast and not link.is_fast():
            continue
        selected.append(link)
    return selected


def export_filename(link_type: Union[LinkType, str], extension: str, today: date = None) -> str:
    """生成导出文件名，例如 VPN_Clash_2025-01-01.txt。"""
    today = today or date.today()
    name = config.EXPORT_FILENAME_TEMPLATE.format(type=_type_label(link_type), date=today.isoformat())
    return f"{name}.{extension}"


def render_url_list(links: List[SubscriptionLink]) -> str:
    """每行一个订阅链接。"""
    return '\n'.join(link.url for link in links)


def render_report(links: List[SubscriptionLink], link_type: Union[LinkType, str] = ALL_TYPES,
                  now: datetime = None) -> str:
    """
    生成巡检报告文本：报告头（导出时间、分类）加上逐条编号的类型、标题、链接和延迟。
    """
    now = now or datetime.now()
    content = f"VPN 聚合巡检报告\n导出时间: {now.strftime('%Y-%m-%d %H:%M:%S')}\n分类: {_type_label(link_type)}\n\n"
    content += '\n'.join(
        f"{i + 1}. [{link.type.value}] {link.title}\n   {link.url}\n   延迟: {link.ping}ms\n"
        for i, link in enumerate(links)
    )
    return content


def _write_text(content: str, filename: str, output_dir: str) -> Optional[str]:
    _ensure_output_dir_exists(output_dir)
    output_path = os.path.join(output_dir, filename)
    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)
        return output_path
    except IOError as e:
        logger.error(f"写入文件 {output_path} 失败: {e}")
        return None


def write_links_to_plain_text(links: List[SubscriptionLink], link_type: LinkType,
                              only_fast: bool = True, output_dir: str = None) -> Optional[str]:
    """
    将指定类型的可用订阅链接写入明文文件，每行一个链接。
    Returns:
        Optional[str]: 写入的文件路径；没有可导出的链接或写入失败时返回 None。
    """
    output_dir = output_dir or config.OUTPUT_DIR
    selected = select_export_links(links, link_type, only_fast)
    if not selected:
        logger.warning(f"当前分类 [{_type_label(link_type)}] 无可用节点，未生成文件。")
        return None

    output_path = _write_text(render_url_list(selected), export_filename(link_type, 'txt'), output_dir)
    if output_path:
        logger.info(f"成功将 {len(selected)} 个链接写入明文文件: {output_path}")
    return output_path


def write_report(links: List[SubscriptionLink], only_fast: bool = True,
                 output_dir: str = None) -> Optional[str]:
    """
    将所有类型的可用订阅链接写入巡检报告（.doc 文本）。
    Returns:
        Optional[str]: 写入的文件路径；没有可导出的链接或写入失败时返回 None。
    """
    output_dir = output_dir or config.OUTPUT_DIR
    selected = select_export_links(links, ALL_TYPES, only_fast)
    if not selected:
        logger.warning(f"当前分类 [{ALL_TYPES}] 无可用节点，未生成报告。")
        return None

    output_path = _write_text(render_report(selected, ALL_TYPES), export_filename(ALL_TYPES, 'doc'), output_dir)
    if output_path:
        logger.info(f"成功将 {len(selected)} 个链接写入巡检报告: {output_path}")
    return output_path


def build_clash_provider_config(links: List[SubscriptionLink]) -> dict:
    """
    用 Clash 订阅链接构建 proxy-providers 配置，每个链接一个 http 类型的 provider。
    """
    providers = {}
    for i, link in enumerate(links, start=1):
        name = f"{link.source}-{i}"
        providers[name] = {
            'type': 'http',
            'url': link.url,
            'path': f"./providers/{link.id}.yaml",
            'interval': config.CLASH_PROVIDER_INTERVAL,
            'health-check': {
                'enable': True,
                'url': config.CLASH_HEALTH_CHECK_URL,
                'interval': config.CLASH_PROVIDER_INTERVAL,
            },
        }

    return {
        'proxy-providers': providers,
        'proxy-groups': [
            {
                'name': 'Proxy', # 代理组名称
                'type': 'select', # 选择类型（用户手动选择）
                'use': list(providers.keys()), # 引用全部订阅
                'proxies': ['DIRECT'],
            },
        ],
        'rules': [
            'MATCH,Proxy' # 默认规则：所有未匹配的流量都通过 'Proxy' 组
        ],
    }


def write_clash_provider_yaml(links: List[SubscriptionLink], only_fast: bool = True,
                              output_dir: str = None) -> Optional[str]:
    """
    将可用的 Clash 订阅链接写入 Clash YAML 配置文件（proxy-providers 形式）。
    Returns:
        Optional[str]: 写入的文件路径；没有可导出的链接或写入失败时返回 None。
    """
    output_dir = output_dir or config.OUTPUT_DIR
    selected = select_export_links(links, LinkType.CLASH, only_fast)
    if not selected:
        logger.warning("没有可用的 Clash 订阅，未生成 Clash 配置。")
        return None

    _ensure_output_dir_exists(output_dir)
    output_path = os.path.join(output_dir, config.CLASH_PROVIDER_FILENAME)
    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            # 将 Python 字典转换为 YAML 格式并写入文件
            yaml.dump(build_clash_provider_config(selected), f, allow_unicode=True, sort_keys=False)
        logger.info(f"成功将 {len(selected)} 个 Clash 订阅写入 Clash YAML 文件: {output_path}")
        return output_path
    except IOError as e:
        logger.error(f"写入 Clash YAML 文件失败: {e}")
    except yaml.YAMLError as e:
        logger.error(f"生成 Clash YAML 配置时发生 YAML 错误: {e}")
    return None
