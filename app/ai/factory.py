"""
Provider工厂 - 根据配置创建叙述生成Provider
"""
import logging
from typing import Callable, Dict
from app.ai.base import NarrativeProvider
from app.ai.providers.deepseek import DeepSeekProvider
from app.ai.providers.gemini import GeminiProvider
from app.config import Settings

logger = logging.getLogger(__name__)


def _create_gemini(settings: Settings) -> NarrativeProvider:
    return GeminiProvider(
        api_key=settings.GEMINI_API_KEY,
        model_name=settings.GEMINI_MODEL,
        timeout=settings.AI_REQUEST_TIMEOUT,
    )


def _create_deepseek(settings: Settings) -> NarrativeProvider:
    return DeepSeekProvider(
        api_key=settings.DEEPSEEK_API_KEY,
        base_url=settings.DEEPSEEK_BASE_URL,
        model_name=settings.DEEPSEEK_MODEL,
        timeout=settings.AI_REQUEST_TIMEOUT,
    )


class NarrativeProviderFactory:
    """Provider工厂（每次调用都创建新实例，由调用方负责关闭）"""

    _providers: Dict[str, Callable[[Settings], NarrativeProvider]] = {
        "gemini": _create_gemini,
        "deepseek": _create_deepseek,
    }

    @classmethod
    def available(cls):
        return list(cls._providers.keys())

    @classmethod
    def create(cls, provider_name: str, settings: Settings) -> NarrativeProvider:
        """
        创建Provider实例

        Args:
            provider_name: Provider名称（gemini / deepseek）
            settings: 应用配置

        Returns:
            Provider实例

        Raises:
            ValueError: 未知的Provider名称或缺少API Key
        """
        builder = cls._providers.get(provider_name)
        if not builder:
            available = ", ".join(cls.available())
            raise ValueError(
                f"未知的AI Provider: {provider_name}. "
                f"可用的Provider: {available}"
            )

        try:
            instance = builder(settings)
        except Exception as e:
            logger.error(f"AI Provider创建失败: {provider_name} - {str(e)}")
            raise

        logger.info(f"AI Provider创建成功: {provider_name} ({instance.model})")
        return instance
