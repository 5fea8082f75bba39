"""
健康分析报告API
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.base import NarrativeProvider
from app.ai.prompt_composer import PromptComposer
from app.api.dependencies import (
    CurrentUser,
    get_current_user,
    get_narrative_provider,
    get_prompt_composer,
)
from app.database.session import get_db
from app.exceptions import InvalidIntakeError, OrderNotEligibleError, ReportInFlightError
from app.schemas.report import (
    GenerateReportRequest,
    GenerateReportResponse,
    Report,
    ReportListResponse,
    ReportStatus,
    RiskOverviewResponse,
)
from app.services.report_formatter import export_filename, render_plain_text
from app.services.report_service import ReportService
from app.services.risk_scanner import requires_prompt_attention, scan_risk_levels

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerateReportResponse)
async def generate_report(
    request: GenerateReportRequest,
    current_user: CurrentUser = Depends(get_current_user),
    provider: NarrativeProvider = Depends(get_narrative_provider),
    composer: PromptComposer = Depends(get_prompt_composer),
    db: AsyncSession = Depends(get_db)
):
    """
    生成健康分析报告

    生成失败时仍返回200，success=false 并附带 failed 状态的报告。
    """
    try:
        service = ReportService(db, provider=provider, composer=composer)
        report = await service.generate(current_user.user_id, request)

        return GenerateReportResponse(
            success=report.status is ReportStatus.COMPLETED,
            report=report,
        )

    except InvalidIntakeError as e:
        logger.warning(f"问卷数据无效: order_id={request.order_id} - {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except (ReportInFlightError, OrderNotEligibleError) as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"报告生成失败: order_id={request.order_id} - {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="报告生成失败，请稍后重试"
        )


@router.get("", response_model=ReportListResponse)
async def list_reports(
    limit: int = Query(50, ge=1, le=200, description="返回条数"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取当前用户的报告列表（按生成时间倒序）"""
    try:
        service = ReportService(db)
        reports = await service.list_reports(current_user.user_id, limit=limit)
        return ReportListResponse(reports=reports, count=len(reports))

    except Exception as e:
        logger.error(f"获取报告列表失败: user_id={current_user.user_id} - {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取报告列表失败"
        )


@router.get("/order/{order_id}", response_model=Report)
async def get_report_for_order(
    order_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取订单最新的报告"""
    service = ReportService(db)
    report = await service.get_latest_report_for_order(current_user.user_id, order_id)

    if not report:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="该订单暂无报告"
        )

    return report


@router.get("/{report_id}", response_model=Report)
async def get_report(
    report_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取报告详情"""
    return await _get_report_or_404(db, current_user.user_id, report_id)


@router.get("/{report_id}/risks", response_model=RiskOverviewResponse)
async def get_report_risks(
    report_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取报告各分类的风险等级"""
    report = await _get_report_or_404(db, current_user.user_id, report_id)

    risks = scan_risk_levels(report.full_content)
    return RiskOverviewResponse(
        report_id=report.report_id,
        risks=risks,
        requires_prompt_attention=requires_prompt_attention(report.full_content, risks),
    )


@router.get("/{report_id}/export", response_class=PlainTextResponse)
async def export_report(
    report_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """下载纯文本报告（仅限已完成的报告）"""
    report = await _get_report_or_404(db, current_user.user_id, report_id)

    if report.status is not ReportStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"报告尚未完成: status={report.status.value}"
        )

    return PlainTextResponse(
        render_plain_text(report),
        headers={"Content-Disposition": f'attachment; filename="{export_filename(report)}"'},
    )


async def _get_report_or_404(db: AsyncSession, owner_id: str, report_id: str) -> Report:
    service = ReportService(db)
    report = await service.get_report(owner_id, report_id)

    if not report:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="报告不存在"
        )

    return report
