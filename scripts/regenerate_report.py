"""
重新生成订单的健康分析报告（用于运维排查）

使用方法:
    OWNER_ID=user-id ORDER_ID=order-id python scripts/regenerate_report.py
"""
import asyncio
import sys
import os

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# 必须先导入所有模型以正确配置 SQLAlchemy
import app.models  # 导入所有模型

# 从环境变量读取配置
OWNER_ID = os.environ.get("OWNER_ID", "")
ORDER_ID = os.environ.get("ORDER_ID", "")


async def main():
    if not OWNER_ID or not ORDER_ID:
        print("错误: 请设置 OWNER_ID 和 ORDER_ID 环境变量")
        print("使用方法: OWNER_ID=user-id ORDER_ID=order-id python scripts/regenerate_report.py")
        sys.exit(1)

    from app.config import settings
    from app.database.session import AsyncSessionLocal
    from app.ai.factory import NarrativeProviderFactory
    from app.ai.prompt_composer import PromptComposer
    from app.ai.prompt_loader import PromptLoader
    from app.schemas.report import GenerateReportRequest
    from app.services.order_service import OrderService
    from app.services.report_service import ReportService

    provider = NarrativeProviderFactory.create(settings.AI_PROVIDER, settings)
    composer = PromptComposer(PromptLoader(settings.PROMPT_CONFIG_PATH))

    try:
        async with AsyncSessionLocal() as db:
            order = await OrderService(db).get_order(OWNER_ID, ORDER_ID)
            if order is None:
                print(f"错误: 订单不存在 owner_id={OWNER_ID}, order_id={ORDER_ID}")
                sys.exit(1)

            print(f"重新生成报告: order_id={ORDER_ID}, provider={provider.name}/{provider.model}")

            service = ReportService(db, provider=provider, composer=composer)
            report = await service.generate(
                OWNER_ID,
                GenerateReportRequest(
                    order_id=ORDER_ID,
                    subject_name=order.user_name,
                    subject_email=order.user_email,
                ),
            )

            if report.error:
                print(f"\n❌ 报告生成失败: {report.error}")
            else:
                print(f"\n✅ 报告生成成功!")
                print(f"报告ID: {report.report_id}")
                print(f"章节数: {len(report.sections)}, 建议数: {len(report.recommendations)}")
                print(f"摘要: {report.summary[:200]}")
    finally:
        await provider.close()


if __name__ == "__main__":
    asyncio.run(main())
