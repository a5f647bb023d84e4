# store/link_store.py

import os
import json
import logging
from typing import List, Dict, Any, Optional

import config # 绝对导入 config 模块
from models.link_model import SubscriptionLink # 绝对导入链接模型

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


def merge_links(existing: List[SubscriptionLink], incoming: List[SubscriptionLink],
                limit: int = None) -> List[SubscriptionLink]:
    """
    将新发现的链接合并进已有链接池。
    已存在的 url 以旧记录为准；新链接排在最前，结果截断到 limit 条。
    Args:
        existing (List[SubscriptionLink]): 当前链接池。
        incoming (List[SubscriptionLink]): 新发现的链接。
        limit (int): 链接池上限，缺省为 MAX_STORED_LINKS。
    Returns:
        List[SubscriptionLink]: 新的链接池，输入列表不会被修改。
    """
    limit = config.MAX_STORED_LINKS if limit is None else limit
    existing_keys = {link.generate_key() for link in existing}
    filtered_new = [link for link in incoming if link.generate_key() not in existing_keys]
    return (filtered_new + existing)[:limit]


class LinkStore:
    """链接池的持久化接口：一个键对应整份 JSON 序列化的链接列表。"""

    def load(self) -> Optional[List[SubscriptionLink]]:
        """读取链接池；从未保存过时返回 None。"""
        raise NotImplementedError

    def save(self, links: List[SubscriptionLink]) -> bool:
        """保存整份链接池，成功返回 True。"""
        raise NotImplementedError


def _decode_links(raw: Any) -> List[SubscriptionLink]:
    """把持久化的列表恢复为链接对象，跳过损坏的记录。"""
    if not isinstance(raw, list):
        logger.warning("持久化的链接池不是列表，按空链接池处理。")
        return []
    links = []
    for item in raw:
        try:
            links.append(SubscriptionLink.from_dict(item))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"跳过损坏的链接记录: {item!r} - 错误: {e}")
    return links


class JsonFileStore(LinkStore):
    """
    将链接池以 JSON 形式保存在本地文件中，文件内容为 {key: [记录, ...]}。
    """
    def __init__(self, path: str = None, key: str = None):
        self.path = path or config.STORE_FILE
        self.key = key or config.STORE_KEY

    def _read_document(self) -> Dict[str, Any]:
        with open(self.path, 'r', encoding='utf-8') as f:
            document = json.load(f)
        return document if isinstance(document, dict) else {}

    def load(self) -> Optional[List[SubscriptionLink]]:
        if not os.path.exists(self.path):
            return None
        try:
            document = self._read_document()
        except (OSError, ValueError) as e:
            # ValueError 同时覆盖 JSONDecodeError 和 UnicodeDecodeError
            logger.error(f"读取链接池文件 {self.path} 失败，按空链接池处理: {e}")
            return []
        if self.key not in document:
            return None
        links = _decode_links(document[self.key])
        logger.info(f"从 {self.path} 读取到 {len(links)} 个链接。")
        return links

    def save(self, links: List[SubscriptionLink]) -> bool:
        """
        写入失败只记录日志，内存中的链接池仍然有效。
        同一文件中其他键的内容会被保留。
        """
        try:
            document = {}
            if os.path.exists(self.path):
                try:
                    document = self._read_document()
                except ValueError:
                    document = {}
            document[self.key] = [link.to_dict() for link in links]

            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            # 先写临时文件再替换，避免中途失败留下半个文件
            tmp_path = self.path + '.tmp'
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
            logger.debug(f"已保存 {len(links)} 个链接到 {self.path}")
            return True
        except (IOError, TypeError, ValueError) as e:
            logger.error(f"保存链接池失败: {e}")
            return False


class MemoryStore(LinkStore):
    """只保存在内存中的链接池，保存的是 JSON 文本，行为与文件存储一致。"""
    def __init__(self):
        self.data: Dict[str, str] = {}
        self.key = config.STORE_KEY

    def load(self) -> Optional[List[SubscriptionLink]]:
        if self.key not in self.data:
            return None
        try:
            return _decode_links(json.loads(self.data[self.key]))
        except json.JSONDecodeError as e:
            logger.error(f"解析内存中的链接池失败: {e}")
            return []

    def save(self, links: List[SubscriptionLink]) -> bool:
        self.data[self.key] = json.dumps([link.to_dict() for link in links], ensure_ascii=False)
        return True
