# models/app_state.py

from typing import Dict, List

from models.link_model import SubscriptionLink, LinkStatus # 绝对导入链接模型

# 类型过滤器中表示“全部”的取值
ALL_TYPES = 'ALL'


class AppState:
    """
    控制器持有的应用状态：链接池、过滤条件和进度提示。
    """
    def __init__(self, links: List[SubscriptionLink] = None):
        self.links: List[SubscriptionLink] = links if links is not None else []
        self.search_term = ""
        self.active_filter = ALL_TYPES # 'ALL' 或 LinkType 的取值
        self.only_fast = True
        self.is_loading = False
        self.sync_progress = ""

    def filtered_links(self) -> List[SubscriptionLink]:
        """
        按搜索词、类型和极速开关过滤链接池。
        Returns:
            List[SubscriptionLink]: 保持原有顺序的过滤结果。
        """
        term = self.search_term.lower()
        result = []
        for link in self.links:
            if term not in (link.title + link.source).lower():
                continue
            if self.active_filter != ALL_TYPES and link.type.value != self.active_filter:
                continue
            if self.only_fast and not (link.status == LinkStatus.ACTIVE and link.is_fast()):
                continue
            result.append(link)
        return result

    def stats(self) -> Dict[str, int]:
        """统计总数、活跃数、极速数和活跃链接的平均延迟。"""
        active = [l for l in self.links if l.status == LinkStatus.ACTIVE]
        avg_ping = round(sum(l.ping or 0 for l in active) / len(active)) if active else 0
        return {
            'total': len(self.links),
            'active': len(active),
            'fast': len([l for l in active if l.is_fast()]),
            'avg_ping': avg_ping,
        }
