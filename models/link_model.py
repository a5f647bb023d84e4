# models/link_model.py

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional

import config # 绝对导入 config 模块


class LinkType(str, Enum):
    """订阅文件的格式类别。"""
    V2 = 'V2Ray'
    CLASH = 'Clash'
    UNKNOWN = '未知'


class LinkStatus(str, Enum):
    """订阅链接的检测状态：检测中 -> 有效 / 已失效。"""
    ACTIVE = '有效'
    TESTING = '检测中'
    EXPIRED = '已失效'


class SubscriptionLink:
    """
    代表一个订阅链接记录。以 url 作为去重的自然键，id 仅用于标识。
    """
    def __init__(self, url: str, title: Optional[str] = None, source: str = "unknown",
                 link_type: LinkType = LinkType.UNKNOWN,
                 status: LinkStatus = LinkStatus.TESTING,
                 updated_at: Optional[str] = None, ping: Optional[int] = None,
                 link_id: Optional[str] = None):
        """
        初始化 SubscriptionLink 对象。
        Args:
            url (str): 订阅文件地址。
            title (Optional[str]): 展示名称，缺省时使用默认名称。
            source (str): URL 的主机名，无法解析时为 "unknown"。
            link_type (LinkType): 分类结果，创建后不再修改。
            status (LinkStatus): 检测状态，新建时为检测中。
            updated_at (Optional[str]): 发现时间 (ISO 8601)。
            ping (Optional[int]): 延迟（毫秒），未检测时为 None，检测失败时为 9999。
            link_id (Optional[str]): 唯一标识，缺省时自动生成。
        """
        self.id = link_id or uuid.uuid4().hex[:9]
        self.url = url
        self.title = title or config.UNTITLED_LINK_TITLE
        self.source = source
        self.type = LinkType(link_type)
        self.status = LinkStatus(status)
        self.updated_at = updated_at or datetime.now(timezone.utc).isoformat()
        self.ping = ping

    def generate_key(self) -> str:
        """去重键：同一 url 视为同一链接。"""
        return self.url

    def is_fast(self) -> bool:
        """延迟存在且低于极速阈值。"""
        return self.ping is not None and self.ping < config.FAST_PING_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        """
        转换为可 JSON 序列化的字典，键名与持久化格式保持一致。
        未检测过的链接不包含 ping 字段。
        """
        data = {
            'id': self.id,
            'url': self.url,
            'title': self.title,
            'source': self.source,
            'type': self.type.value,
            'status': self.status.value,
            'updatedAt': self.updated_at,
        }
        if self.ping is not None:
            data['ping'] = self.ping
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SubscriptionLink':
        """
        从持久化的字典恢复链接对象。
        Raises:
            KeyError: 缺少 url 字段。
            ValueError: type 或 status 不是已知取值。
            TypeError: 字段类型不正确（url/title/source/id/updatedAt 须为字符串，ping 须为整数）。
        """
        if not isinstance(data['url'], str):
            raise TypeError(f"字段 url 应为字符串: {data['url']!r}")
        for field in ('title', 'source', 'id', 'updatedAt'):
            if data.get(field) is not None and not isinstance(data[field], str):
                raise TypeError(f"字段 {field} 应为字符串: {data[field]!r}")
        ping = data.get('ping')
        if ping is not None and (isinstance(ping, bool) or not isinstance(ping, int)):
            raise TypeError(f"字段 ping 应为整数: {ping!r}")

        return cls(
            url=data['url'],
            title=data.get('title'),
            source=data.get('source') or 'unknown',
            link_type=LinkType(data.get('type', LinkType.UNKNOWN.value)),
            status=LinkStatus(data.get('status', LinkStatus.TESTING.value)),
            updated_at=data.get('updatedAt'),
            ping=ping,
            link_id=data.get('id'),
        )

    def __repr__(self):
        """
        提供 SubscriptionLink 对象的字符串表示，方便调试。
        """
        return (f"SubscriptionLink(title='{self.title}', type='{self.type.value}', "
                f"status='{self.status.value}', ping={self.ping}, url='{self.url}')")
