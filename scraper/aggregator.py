# scraper/aggregator.py

import logging
from typing import List

import config # 绝对导入 config 模块
from models.link_model import SubscriptionLink # 绝对导入链接模型
from parser.link_parser import LinkParser # 从 parser/link_parser.py 导入

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


async def aggregate_vpn_links(client, parser: LinkParser = None) -> List[SubscriptionLink]:
    """
    异步函数：通过 AI 搜索发现新的订阅链接。
    先处理搜索来源，再处理从生成文本中提取的链接；本轮内按 url 去重，
    过滤掉不像订阅文件的链接，其余创建为检测中的记录。
    Args:
        client: 提供 enabled 属性和 search(prompt) 协程的发现客户端。
        parser (LinkParser): 链接解析器，缺省时新建。
    Returns:
        List[SubscriptionLink]: 按发现顺序排列的新链接；未配置或请求失败时为空列表。
    """
    if not client.enabled:
        logger.warning("API_KEY 未配置，跳过 AI 搜索。")
        return []

    parser = parser or LinkParser()

    try:
        result = await client.search(config.DISCOVERY_PROMPT)

        detected_links: List[SubscriptionLink] = []
        seen_urls = set()

        def process_url(url: str, title: str):
            clean_url = parser.clean_url(url)
            if not clean_url or clean_url in seen_urls:
                return
            # 过滤非订阅链接（如设置页面、项目主页等）
            if not parser.is_potential_subscription(clean_url):
                logger.debug(f"跳过非订阅链接: {clean_url}")
                return
            detected_links.append(parser.create_link(clean_url, title))
            seen_urls.add(clean_url)

        # 从搜索来源获取
        for source in result.sources:
            process_url(source.uri, source.title or config.DEFAULT_LINK_TITLE)

        # 从 AI 生成的内容中提取，按链接在文本中出现的先后编号
        for i, url in enumerate(parser.extract_urls_in_order(result.text)):
            process_url(url, config.EXTRACTED_TITLE_TEMPLATE.format(index=i + 1))

        logger.info(f"AI 搜索完成，发现 {len(detected_links)} 个候选订阅链接。")
        return detected_links
    except Exception as e:
        logger.error(f"AI 搜索聚合失败: {e}")
        return []


async def generate_summary(client, links: List[SubscriptionLink]) -> str:
    """
    异步函数：请 AI 对当前节点池给出一句简评。
    未配置、返回为空或请求失败时使用固定文案。
    """
    if not client.enabled:
        return config.SUMMARY_NO_KEY_TEXT

    fast_count = len([l for l in links if l.is_fast()])
    prompt = config.SUMMARY_PROMPT_TEMPLATE.format(total=len(links), fast=fast_count)
    try:
        text = await client.generate_text(prompt)
        return (text or "").strip() or config.SUMMARY_EMPTY_TEXT
    except Exception as e:
        logger.warning(f"生成节点池简评失败: {e}")
        return config.SUMMARY_ERROR_TEXT
