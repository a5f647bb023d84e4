# parser/link_parser.py

import re
import logging
from typing import List, Set, Optional
from urllib.parse import urlparse

import config # 绝对导入 config 模块
from models.link_model import SubscriptionLink, LinkType, LinkStatus # 绝对导入链接模型

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)

# 链接末尾可能残留的 Markdown 标记
TRAILING_MARKDOWN_CHARS = '\\`*'

# 匹配白名单域名下的链接：路径中不允许空白、引号、尖括号和 Markdown 标记，
# 且最后一个字符不能是句末标点
URL_PATTERN = re.compile(
    r'https?://(?:[\w-]+\.)*(?:' + '|'.join(re.escape(host) for host in config.URL_HOSTS) + r')'
    r'[^\s"<>`*\\]*[^\s"<>`*\\.,!?;:]'
)


class LinkParser:
    def __init__(self):
        # 实例化时初始化日志记录器
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def clean_url(url: str) -> str:
        """去掉首尾空白以及末尾残留的反引号、星号等 Markdown 标记。"""
        return url.strip().rstrip(TRAILING_MARKDOWN_CHARS)

    def extract_urls(self, text: str) -> Set[str]:
        """
        从任意文本中提取白名单域名下的链接。
        Args:
            text (str): AI 生成的自由文本。
        Returns:
            Set[str]: 去重后的链接集合，没有匹配时为空集合。
        """
        urls = set(self.extract_urls_in_order(text))
        self.logger.debug(f"从文本中提取到 {len(urls)} 个链接。")
        return urls

    def extract_urls_in_order(self, text: str) -> List[str]:
        """按链接在文本中首次出现的位置返回去重后的链接列表。"""
        urls = []
        for match in URL_PATTERN.finditer(text or ""):
            url = self.clean_url(match.group(0))
            if url and url not in urls:
                urls.append(url)
        return urls

    @staticmethod
    def classify(url: str) -> LinkType:
        """
        按顺序匹配启发式规则判断订阅格式，第一条命中的规则生效。
        """
        low_url = url.lower()

        # 1. 强特征：后缀名
        if low_url.endswith('.yaml') or low_url.endswith('.yml'):
            return LinkType.CLASH
        # 2. 弱特征：路径关键字（且排除冲突）
        if 'clash' in low_url and 'v2ray' not in low_url:
            return LinkType.CLASH
        if 'v2ray' in low_url or '/v2' in low_url or 'vmess' in low_url or low_url.endswith('.txt'):
            return LinkType.V2
        # 3. 常见聚合源
        if 'sub' in low_url:
            return LinkType.V2
        return LinkType.UNKNOWN

    @staticmethod
    def is_potential_subscription(url: str) -> bool:
        """
        判断链接是否像订阅文件：必须带有订阅特征关键字，且不是项目主页、设置页或搜索引擎页面。
        """
        low_url = url.lower()
        has_sub_feature = any(keyword in low_url for keyword in config.SUBSCRIPTION_KEYWORDS)
        is_not_page = not any(marker in low_url for marker in config.NON_SUBSCRIPTION_MARKERS)
        return has_sub_feature and is_not_page

    @staticmethod
    def _extract_host(url: str) -> str:
        """返回 URL 的主机名，解析失败时返回 "unknown"。"""
        try:
            return urlparse(url).hostname or "unknown"
        except ValueError:
            return "unknown"

    def create_link(self, url: str, title: Optional[str] = None) -> SubscriptionLink:
        """
        为候选链接创建新的记录：分类一次，状态为检测中，尚无延迟。
        """
        return SubscriptionLink(
            url=url,
            title=title or config.UNTITLED_LINK_TITLE,
            source=self._extract_host(url),
            link_type=self.classify(url),
            status=LinkStatus.TESTING,
        )
