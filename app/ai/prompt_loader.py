"""
Prompt加载器 - 从YAML配置文件加载Prompt模板
"""
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# 获取项目根目录
BACKEND_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = BACKEND_ROOT / "config" / "prompts" / "health_report.yaml"


class PromptLoader:
    """Prompt加载器"""

    def __init__(self, config_path: str = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self):
        """
        加载配置文件

        模板缺失时无法组装Prompt，直接抛出异常，不使用空配置兜底。
        """
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
            logger.info(f"Prompt配置加载成功: {self.config_path}")
        except Exception as e:
            logger.error(f"Prompt配置加载失败: {self.config_path} - {str(e)}")
            raise

    def reload(self):
        """重新加载配置（支持热更新）"""
        self._load_config()

    @property
    def report_title(self) -> str:
        """报告标题"""
        return self._config.get("report_title", "Personalized Health Analysis Report")

    @property
    def user_prompt_template(self) -> str:
        """获取用户Prompt模板"""
        return self._config.get("user_prompt_template", "")

    @property
    def questionnaire_template(self) -> str:
        """获取问卷部分模板"""
        return self._config.get("questionnaire_template", "{categories}")

    @property
    def category_headings(self) -> Dict[str, str]:
        """获取问卷分类标题"""
        return self._config.get("category_headings", {})

    @property
    def elevated_concern_note(self) -> str:
        """获取高风险答案提示语"""
        return self._config.get("elevated_concern_note", "")

    def build_user_prompt(self, **kwargs) -> str:
        """
        构建用户Prompt（变量替换）

        Args:
            **kwargs: 模板变量

        Returns:
            填充后的Prompt
        """
        params = {"report_title": self.report_title, **kwargs}
        return self.user_prompt_template.format(**params)
