"""
Google Gemini Provider实现（REST API）
"""
import logging
from typing import Optional
import httpx

from app.ai.base import NarrativeProvider
from app.exceptions import GenerationTransportError

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiProvider(NarrativeProvider):
    """Google Gemini Provider"""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        timeout: float = 180.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("GEMINI_API_KEY 未配置")

        self.api_key = api_key
        self.model_name = model_name
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self.model_name

    async def generate_narrative(self, prompt: str) -> str:
        """
        调用 Gemini generateContent 接口

        Returns:
            第一个候选结果所有 text part 的拼接
        """
        url = GEMINI_API_URL.format(model=self.model_name)
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": 8192},
        }

        logger.info(f"调用Gemini生成报告: model={self.model_name}, prompt长度={len(prompt)}")

        try:
            response = await self.client.post(
                url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Gemini请求失败: {type(e).__name__} - {str(e)}")
            raise GenerationTransportError(f"Gemini request failed: {str(e) or type(e).__name__}") from e

        if response.status_code == 503:
            logger.warning("Gemini API 503: 模型过载")
            raise GenerationTransportError("Gemini API 503: model overloaded, please retry later")

        if response.status_code != 200:
            error_detail = response.text
            logger.error(f"Gemini API错误: {response.status_code} - {error_detail}")
            raise GenerationTransportError(
                f"Gemini API error: {response.status_code} - {error_detail[:500]}"
            )

        try:
            result_data = response.json()
        except ValueError as e:
            raise GenerationTransportError("Gemini API returned invalid JSON") from e

        candidates = result_data.get("candidates") or []
        if not candidates:
            raise GenerationTransportError("Gemini API returned no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)

        logger.info(f"Gemini生成完成: 文本长度={len(text)}")
        return text

    async def close(self):
        """关闭客户端连接"""
        await self.client.aclose()
        logger.info("Gemini客户端已关闭")
