"""
应用配置管理
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置"""

    # 应用配置
    APP_NAME: str = "Health Report Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # 数据库（生产: postgresql+asyncpg，开发/测试: sqlite+aiosqlite）
    DATABASE_URL: str

    # JWT（身份由外部认证系统签发，这里只负责校验）
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # AI配置
    AI_PROVIDER: str = "gemini"  # gemini | deepseek

    # Google Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # DeepSeek（OpenAI兼容）
    DEEPSEEK_API_KEY: str = ""
    DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"
    DEEPSEEK_MODEL: str = "deepseek-chat"

    # 生成调用配置
    AI_REQUEST_TIMEOUT: float = 180.0  # 秒
    AI_MAX_RETRIES: int = 2  # 总尝试次数
    AI_RETRY_DELAY: float = 2.0  # 秒

    # 报告生成并发控制：进行中的占位报告在该时长内阻止同一订单再次生成
    REPORT_INFLIGHT_TTL_SECONDS: int = 15 * 60

    # Prompt模板路径（为空时使用 config/prompts/health_report.yaml）
    PROMPT_CONFIG_PATH: Optional[str] = None

    # CORS配置 (从环境变量 ALLOWED_ORIGINS 读取，JSON 格式)
    ALLOWED_ORIGINS: list = []

    # 日志配置
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"  # 忽略额外的环境变量
    )


settings = Settings()
