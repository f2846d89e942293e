"""
LLM 客户端

调用 OpenAI Chat Completions（JSON 模式），并在这一层把返回内容校验成
LlmRecommendationPayload；格式不对的输出在这里被拒绝，不会继续往下传。
"""

import json
import time
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from sommelier.config import settings
from sommelier.logging_config import get_logger

logger = get_logger(__name__)


class LLMError(Exception):
    """LLM 不可用（未配置、网络错误、接口报错）"""


class LLMResponseError(LLMError):
    """LLM 返回内容无法解析或不符合格式"""


class ParsedLlmRecommendation(BaseModel):
    """LLM 推荐的一项"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., min_length=1)
    pitch: Optional[str] = Field(None, validation_alias=AliasChoices("sommelierPitch", "pitch"))
    reasoning: Optional[str] = Field(None, validation_alias=AliasChoices("reasoning", "reason"))
    mechanics: List[str] = Field(default_factory=list)
    players: Optional[str] = None
    playtime: Optional[str] = None
    complexity: Optional[float] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("players", "playtime", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            return None
        return str(v)

    @field_validator("complexity", mode="before")
    @classmethod
    def coerce_complexity(cls, v):
        # LLM 偶尔返回 "medium" 之类的文字，这里直接忽略
        try:
            return float(v) if v is not None and v != "" else None
        except (TypeError, ValueError):
            return None

    @field_validator("mechanics", mode="before")
    @classmethod
    def coerce_mechanics(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class LlmRecommendationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    recommendations: List[ParsedLlmRecommendation] = Field(..., min_length=1)
    honest_assessment: Optional[str] = Field(None, validation_alias=AliasChoices("honestAssessment", "honest_assessment"))


def parse_payload(text: str) -> LlmRecommendationPayload:
    """
    解析 LLM 文本输出

    Raises:
        LLMResponseError: 不是 JSON 或不符合格式
    """
    if not text or not text.strip():
        raise LLMResponseError("Empty LLM response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"LLM response is not valid JSON: {e}") from e

    # 部分模型直接返回数组
    if isinstance(data, list):
        data = {"recommendations": data}
    try:
        return LlmRecommendationPayload.model_validate(data)
    except ValidationError as e:
        raise LLMResponseError(f"LLM response failed validation: {e.error_count()} errors") from e


class LLMClient:
    """
    Args:
        api_key: OpenAI API key
        client: 已构造好的 AsyncOpenAI 客户端（测试时注入）
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        self.model = model or settings.LLM_MODEL
        self.temperature = temperature if temperature is not None else settings.LLM_TEMPERATURE
        self.max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        self._client = client or AsyncOpenAI(api_key=api_key or settings.OPENAI_API_KEY, timeout=self.timeout)

    async def complete_json(self, system_prompt: str, user_prompt: str) -> str:
        """发送一次 JSON 模式的补全请求，返回原始文本"""
        start_time = time.time()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            raise LLMError(f"LLM request failed: {e}") from e

        duration = (time.time() - start_time) * 1000
        logger.info(f"LLM completion from {self.model} in {duration:.2f}ms", extra={'duration_ms': duration})

        if not response.choices:
            raise LLMResponseError("LLM returned no choices")
        return response.choices[0].message.content or ""

    async def recommend(self, system_prompt: str, user_prompt: str) -> LlmRecommendationPayload:
        """请求推荐并校验返回格式"""
        text = await self.complete_json(system_prompt, user_prompt)
        payload = parse_payload(text)
        logger.info(f"LLM proposed: {[item.title for item in payload.recommendations]}")
        return payload
