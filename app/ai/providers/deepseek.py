"""
DeepSeek Provider实现（OpenAI兼容接口）
"""
import logging
from openai import AsyncOpenAI, OpenAIError

from app.ai.base import NarrativeProvider
from app.exceptions import GenerationTransportError

logger = logging.getLogger(__name__)


class DeepSeekProvider(NarrativeProvider):
    """DeepSeek Provider"""

    def __init__(self, api_key: str, base_url: str, model_name: str, timeout: float = 180.0):
        if not api_key:
            raise ValueError("DEEPSEEK_API_KEY 未配置")

        self.model_name = model_name

        # 使用OpenAI SDK（DeepSeek兼容OpenAI API）
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
        )

    @property
    def name(self) -> str:
        return "deepseek"

    @property
    def model(self) -> str:
        return self.model_name

    async def generate_narrative(self, prompt: str) -> str:
        """调用 chat.completions 生成报告文本"""
        logger.info(f"调用DeepSeek生成报告: model={self.model_name}, prompt长度={len(prompt)}")

        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.7,
                max_tokens=8000,
            )
        except OpenAIError as e:
            logger.error(f"DeepSeek报告生成失败: {str(e)}")
            raise GenerationTransportError(f"DeepSeek request failed: {str(e) or type(e).__name__}") from e

        if not response.choices:
            raise GenerationTransportError("DeepSeek API returned no choices")

        content = response.choices[0].message.content or ""

        usage = response.usage
        total_tokens = usage.total_tokens if usage else None
        logger.info(f"DeepSeek生成完成: tokens={total_tokens}, 文本长度={len(content)}")

        return content

    async def close(self):
        """关闭客户端连接"""
        await self.client.close()
        logger.info("DeepSeek客户端已关闭")
