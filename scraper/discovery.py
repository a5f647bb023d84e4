# scraper/discovery.py

import logging
from typing import List, Dict, Any, Optional

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

import config # 绝对导入 config 模块

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


class GroundingSource(BaseModel):
    """搜索来源：一个 URI 及其标题。"""
    uri: str
    title: Optional[str] = None


class DiscoveryResult(BaseModel):
    """发现请求的结果：搜索来源列表和 AI 生成的文本。"""
    text: str = ""
    sources: List[GroundingSource] = []


# --- 响应边界的结构定义，只描述需要读取的字段，其余字段忽略 ---

class _Part(BaseModel):
    text: Optional[str] = None
    thought: Optional[bool] = None


class _Content(BaseModel):
    parts: Optional[List[_Part]] = None


class _Web(BaseModel):
    uri: Optional[str] = None
    title: Optional[str] = None


class _GroundingChunk(BaseModel):
    # 除 web 之外的来源类型（如 retrieved_context）不包含可用的链接，直接忽略
    web: Optional[_Web] = None


class _GroundingMetadata(BaseModel):
    grounding_chunks: Optional[List[_GroundingChunk]] = None


class _Candidate(BaseModel):
    content: Optional[_Content] = None
    grounding_metadata: Optional[_GroundingMetadata] = None


class _GenerateContentResponse(BaseModel):
    candidates: Optional[List[_Candidate]] = None


def parse_discovery_response(payload: Dict[str, Any]) -> DiscoveryResult:
    """
    在边界处校验 AI 搜索服务的响应，并转换为 DiscoveryResult。
    结构不符合预期时按“零结果”处理，而不是抛出异常。
    Args:
        payload (Dict[str, Any]): 响应的字典形式（snake_case 字段名）。
    Returns:
        DiscoveryResult: 只取第一个候选结果的文本和搜索来源。
    """
    try:
        response = _GenerateContentResponse.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"AI 搜索响应结构不符合预期，按空结果处理: {e.error_count()} 个字段错误")
        return DiscoveryResult()

    if not response.candidates:
        return DiscoveryResult()
    candidate = response.candidates[0]

    text_parts = []
    if candidate.content and candidate.content.parts:
        for part in candidate.content.parts:
            # 思考过程不属于回答正文
            if part.text and not part.thought:
                text_parts.append(part.text)

    sources = []
    if candidate.grounding_metadata and candidate.grounding_metadata.grounding_chunks:
        for chunk in candidate.grounding_metadata.grounding_chunks:
            if chunk.web and chunk.web.uri:
                sources.append(GroundingSource(uri=chunk.web.uri, title=chunk.web.title))

    return DiscoveryResult(text="".join(text_parts), sources=sources)


class GeminiClient:
    """
    AI 搜索服务的客户端。未配置 API_KEY 时 enabled 为 False，调用方应跳过请求。
    """
    def __init__(self, api_key: str = None):
        self.logger = logging.getLogger(__name__)
        self.api_key = config.API_KEY if api_key is None else api_key
        self.enabled = bool(self.api_key)
        self._client = genai.Client(api_key=self.api_key) if self.enabled else None

    async def search(self, prompt: str) -> DiscoveryResult:
        """
        发送一次启用 Google 搜索的生成请求。
        网络或服务端错误会向上抛出，由调用方决定如何降级。
        """
        response = await self._client.aio.models.generate_content(
            model=config.DISCOVERY_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())]
            ),
        )
        result = parse_discovery_response(response.model_dump(exclude_none=True))
        self.logger.info(f"AI 搜索返回 {len(result.sources)} 个搜索来源，文本长度 {len(result.text)}。")
        return result

    async def generate_text(self, prompt: str) -> str:
        """发送一次普通的文本生成请求，返回生成的文本（可能为空字符串）。"""
        response = await self._client.aio.models.generate_content(
            model=config.SUMMARY_MODEL,
            contents=prompt,
        )
        return response.text or ""
