"""
健康报告 Schemas
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from app.exceptions import ReportStateError

MAX_RECOMMENDATIONS = 8
SUMMARY_MAX_LENGTH = 500
DEFAULT_REPORT_TITLE = "Health Analysis Report"


class ReportStatus(str, Enum):
    """报告状态：generating 为唯一初始状态，completed / failed 为终态"""
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ReportStatus.GENERATING


class Section(BaseModel):
    """报告章节"""
    title: str = Field(..., description="章节标题")
    content: str = Field("", description="章节正文（保留原始换行）")


class ReportCompleted(BaseModel):
    """生成成功的结果"""
    kind: Literal["completed"] = "completed"
    title: str
    summary: str = Field("", max_length=SUMMARY_MAX_LENGTH)
    sections: List[Section]
    recommendations: List[str] = Field(default_factory=list, max_length=MAX_RECOMMENDATIONS)
    conclusions: str = ""
    full_content: str


class ReportFailed(BaseModel):
    """生成失败的结果"""
    kind: Literal["failed"] = "failed"
    error: str = Field(..., min_length=1)


GenerationOutcome = Annotated[Union[ReportCompleted, ReportFailed], Field(discriminator="kind")]


class Report(BaseModel):
    """健康分析报告"""

    report_id: str
    order_id: str
    owner_id: str
    user_name: str
    user_email: Optional[str] = None
    generated_at: datetime
    updated_at: datetime
    status: ReportStatus = ReportStatus.GENERATING
    title: str = DEFAULT_REPORT_TITLE
    summary: str = ""
    sections: List[Section] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    conclusions: str = ""
    full_content: str = ""
    error: Optional[str] = None

    model_config = {"from_attributes": True}

    def apply(self, outcome: GenerationOutcome, now: datetime) -> "Report":
        """
        应用一次状态变更，返回新的报告对象

        只有 generating 状态的报告可以变更；终态报告不可再修改。

        Raises:
            ReportStateError: 报告已处于终态
        """
        if self.status.is_terminal:
            raise ReportStateError(
                f"Report {self.report_id} is already {self.status.value}"
            )

        if isinstance(outcome, ReportCompleted):
            return self.model_copy(update={
                "status": ReportStatus.COMPLETED,
                "title": outcome.title,
                "summary": outcome.summary,
                "sections": list(outcome.sections),
                "recommendations": list(outcome.recommendations),
                "conclusions": outcome.conclusions,
                "full_content": outcome.full_content,
                "error": None,
                "updated_at": now,
            })

        if isinstance(outcome, ReportFailed):
            return self.model_copy(update={
                "status": ReportStatus.FAILED,
                "summary": "",
                "sections": [],
                "recommendations": [],
                "conclusions": "",
                "full_content": "",
                "error": outcome.error,
                "updated_at": now,
            })

        raise TypeError(f"Unknown generation outcome: {type(outcome).__name__}")


class GenerateReportRequest(BaseModel):
    """报告生成请求"""
    order_id: str = Field(..., min_length=1, description="订单ID")
    intake_record: Optional[Any] = Field(
        None, description="问卷数据（为空时使用订单中保存的问卷）"
    )
    subject_name: str = Field(..., min_length=1, description="受检者姓名")
    subject_email: Optional[str] = Field(None, description="受检者邮箱")


class GenerateReportResponse(BaseModel):
    """报告生成响应"""
    success: bool
    report: Report


class ReportListItem(BaseModel):
    """报告列表项"""
    report_id: str
    order_id: str
    title: str
    generated_at: datetime
    status: ReportStatus
    summary: str = Field("", description="摘要预览")


class ReportListResponse(BaseModel):
    """报告列表响应"""
    reports: List[ReportListItem]
    count: int


class RiskLevel(BaseModel):
    """分类风险等级"""
    category: str
    level: Literal["LOW", "MODERATE", "HIGH", "URGENT"]


class RiskOverviewResponse(BaseModel):
    """风险概览响应"""
    report_id: str
    risks: List[RiskLevel]
    requires_prompt_attention: bool
