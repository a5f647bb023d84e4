"""pytest 全局配置和 fixtures

提供测试所需的示例链接、假的发现客户端和内存存储。
"""

import pytest

from models.link_model import SubscriptionLink, LinkType, LinkStatus
from scraper.discovery import DiscoveryResult, GroundingSource
from store.link_store import MemoryStore


class FakeDiscoveryClient:
    """模拟 AI 搜索客户端，记录收到的提示词。"""

    def __init__(self, result=None, enabled=True, error=None, summary="节点充足，延迟稳定。"):
        self.enabled = enabled
        self.result = result if result is not None else DiscoveryResult()
        self.error = error
        self.summary = summary
        self.prompts = []

    async def search(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.result

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.summary


def make_link(url, link_type=LinkType.V2, status=LinkStatus.TESTING, ping=None, title=None, link_id=None):
    return SubscriptionLink(
        url=url,
        title=title or url.rsplit('/', 1)[-1],
        source="raw.githubusercontent.com",
        link_type=link_type,
        status=status,
        ping=ping,
        link_id=link_id,
    )


@pytest.fixture
def fake_client_factory():
    return FakeDiscoveryClient


@pytest.fixture
def link_factory():
    return make_link


@pytest.fixture
def discovery_result():
    """两个搜索来源（其中一个是仓库主页）加一段带链接的生成文本。"""
    return DiscoveryResult(
        text=(
            "以下是最新订阅：\n"
            "1. `https://raw.githubusercontent.com/a/free/main/clash.yaml`\n"
            "2. **https://raw.githubusercontent.com/b/nodes/main/v2ray.txt**\n"
            "3. https://github.com/c/repo/tree/main\n"
        ),
        sources=[
            GroundingSource(uri="https://raw.githubusercontent.com/d/sub/main/sub.yml", title="d/sub"),
            GroundingSource(uri="https://github.com/e/proxies/blob/main/README.md", title="README"),
        ],
    )


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def mixed_links():
    """覆盖各类型和状态的链接池。"""
    return [
        make_link("https://x.test/fast.yaml", LinkType.CLASH, LinkStatus.ACTIVE, 300, title="fast clash"),
        make_link("https://x.test/slow.yaml", LinkType.CLASH, LinkStatus.ACTIVE, 2500, title="slow clash"),
        make_link("https://x.test/fast.txt", LinkType.V2, LinkStatus.ACTIVE, 1999, title="fast v2"),
        make_link("https://x.test/dead.txt", LinkType.V2, LinkStatus.EXPIRED, 9999, title="dead v2"),
        make_link("https://x.test/new.txt", LinkType.V2, LinkStatus.TESTING, None, title="new v2"),
        make_link("https://x.test/other", LinkType.UNKNOWN, LinkStatus.ACTIVE, 100, title="other"),
    ]
