"""
FastAPI主应用
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database.session import engine
from app.database.base import Base
from app.ai.factory import NarrativeProviderFactory
from app.ai.prompt_composer import PromptComposer
from app.ai.prompt_loader import PromptLoader
from app import models  # noqa: F401  注册ORM模型

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} 启动中...")

    # 创建数据库表（已存在的表不会重复创建）
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("📊 数据库表检查完成")

    # 加载Prompt模板（模板缺失时无法生成报告，直接启动失败）
    app.state.prompt_composer = PromptComposer(PromptLoader(settings.PROMPT_CONFIG_PATH))

    # 创建叙述生成Provider（缺少API Key时服务仍可查询报告，生成接口返回503）
    app.state.narrative_provider = None
    try:
        app.state.narrative_provider = NarrativeProviderFactory.create(settings.AI_PROVIDER, settings)
    except ValueError as e:
        logger.warning(f"⚠️ 报告生成服务未启用: {e}")

    logger.info(f"✅ {settings.APP_NAME} 启动成功！")
    logger.info(f"📍 API文档: http://{settings.HOST}:{settings.PORT}/docs")

    yield

    # 关闭
    logger.info(f"👋 {settings.APP_NAME} 关闭中...")

    provider = app.state.narrative_provider
    if provider is not None:
        try:
            await provider.close()
        except Exception as e:
            logger.error(f"关闭AI Provider失败: {provider.name} - {str(e)}")

    # 关闭数据库连接
    await engine.dispose()
    logger.info("✅ 数据库连接已关闭")


# 创建FastAPI应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="健康问卷分析报告服务 - 基于问卷生成个性化健康分析报告",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS if not settings.DEBUG else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 健康检查端点
@app.get("/")
async def root():
    """根路径 - API信息"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """健康检查"""
    return {"status": "ok"}


# 注册路由
from app.api.v1 import reports, orders

app.include_router(reports.router, prefix="/api/v1/reports", tags=["健康报告"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["问卷订单"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
