"""
叙述生成 Provider 抽象接口
"""
from abc import ABC, abstractmethod


class NarrativeProvider(ABC):
    """报告叙述生成服务提供商抽象接口"""

    @property
    @abstractmethod
    def name(self) -> str:
        """提供商名称"""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """模型名称"""
        pass

    @abstractmethod
    async def generate_narrative(self, prompt: str) -> str:
        """
        根据Prompt生成报告叙述文本

        Args:
            prompt: 完整的报告生成Prompt

        Returns:
            模型返回的原始文本（可能为空字符串，由调用方判断）

        Raises:
            GenerationTransportError: 调用失败（网络错误、非200响应、无候选结果）
        """
        pass

    @abstractmethod
    async def close(self):
        """关闭客户端连接"""
        pass
