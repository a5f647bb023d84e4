"""聚合流程与简评的单元测试"""

import pytest

from models.link_model import LinkType, LinkStatus
from scraper.aggregator import aggregate_vpn_links, generate_summary
from scraper.discovery import DiscoveryResult, GroundingSource


class TestAggregateVpnLinks:
    """aggregate_vpn_links 测试"""

    @pytest.mark.asyncio
    async def test_no_key_returns_empty_without_request(self, fake_client_factory, discovery_result):
        client = fake_client_factory(discovery_result, enabled=False)
        assert await aggregate_vpn_links(client) == []
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_sources_then_text_in_discovery_order(self, fake_client_factory, discovery_result):
        client = fake_client_factory(discovery_result)
        links = await aggregate_vpn_links(client)

        assert [l.url for l in links] == [
            "https://raw.githubusercontent.com/d/sub/main/sub.yml",
            "https://raw.githubusercontent.com/a/free/main/clash.yaml",
            "https://raw.githubusercontent.com/b/nodes/main/v2ray.txt",
        ]
        assert [l.title for l in links] == ["d/sub", "AI 提取节点 1", "AI 提取节点 2"]
        assert [l.type for l in links] == [LinkType.CLASH, LinkType.CLASH, LinkType.V2]
        assert all(l.status == LinkStatus.TESTING and l.ping is None for l in links)
        assert all(l.source == "raw.githubusercontent.com" for l in links)
        assert len(client.prompts) == 1

    @pytest.mark.asyncio
    async def test_duplicate_sources_after_trim_produce_one_record(self, fake_client_factory):
        result = DiscoveryResult(sources=[
            GroundingSource(uri="https://raw.githubusercontent.com/a/b/main/sub.txt", title="one"),
            GroundingSource(uri=" https://raw.githubusercontent.com/a/b/main/sub.txt`* ", title="two"),
        ])
        links = await aggregate_vpn_links(fake_client_factory(result))
        assert len(links) == 1
        assert links[0].title == "one"

    @pytest.mark.asyncio
    async def test_text_url_already_seen_in_sources_skipped(self, fake_client_factory):
        url = "https://raw.githubusercontent.com/a/b/main/clash.yaml"
        result = DiscoveryResult(text=f"see {url}", sources=[GroundingSource(uri=url, title=None)])
        links = await aggregate_vpn_links(fake_client_factory(result))
        assert len(links) == 1
        assert links[0].title == "自动采集源"

    @pytest.mark.asyncio
    async def test_collaborator_failure_returns_empty(self, fake_client_factory):
        client = fake_client_factory(error=ConnectionError("network down"))
        assert await aggregate_vpn_links(client) == []

    @pytest.mark.asyncio
    async def test_nothing_found(self, fake_client_factory):
        assert await aggregate_vpn_links(fake_client_factory(DiscoveryResult(text="暂无"))) == []

    @pytest.mark.asyncio
    async def test_prefix_url_numbered_by_its_own_position(self, fake_client_factory):
        text = (
            "1. https://raw.githubusercontent.com/a/b/main/v2ray.txt.gz\n"
            "2. https://raw.githubusercontent.com/a/b/main/other/sub.txt\n"
            "3. https://raw.githubusercontent.com/a/b/main/v2ray.txt\n"
        )
        links = await aggregate_vpn_links(fake_client_factory(DiscoveryResult(text=text)))
        assert [(l.title, l.url.rsplit("/", 1)[-1]) for l in links] == [
            ("AI 提取节点 1", "v2ray.txt.gz"),
            ("AI 提取节点 2", "sub.txt"),
            ("AI 提取节点 3", "v2ray.txt"),
        ]


class TestGenerateSummary:
    """generate_summary 测试"""

    @pytest.mark.asyncio
    async def test_no_key_fallback(self, fake_client_factory, mixed_links):
        client = fake_client_factory(enabled=False)
        assert await generate_summary(client, mixed_links) == "本地测试：同步链路正常。"

    @pytest.mark.asyncio
    async def test_prompt_counts(self, fake_client_factory, mixed_links):
        client = fake_client_factory()
        assert await generate_summary(client, mixed_links) == "节点充足，延迟稳定。"
        assert "共 6 个" in client.prompts[0]
        assert "极速节点 3 个" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_empty_response_fallback(self, fake_client_factory, mixed_links):
        client = fake_client_factory(summary="  ")
        assert await generate_summary(client, mixed_links) == "数据已更新，节点质量优良。"

    @pytest.mark.asyncio
    async def test_failure_fallback(self, fake_client_factory, mixed_links):
        client = fake_client_factory(error=RuntimeError("quota"))
        assert await generate_summary(client, mixed_links) == "节点自动巡检完成。"
