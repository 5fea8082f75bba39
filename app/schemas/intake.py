"""
健康问卷 Schemas
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.exceptions import InvalidIntakeError

# 六个问卷分类（顺序固定，决定Prompt中的渲染顺序）
CATEGORY_FIELDS = (
    "sleep_energy",
    "cardiovascular_health",
    "metabolic_health",
    "digestive_health",
    "cancer_immune_health",
    "neurological_health",
)


def _scalar_to_str(value: Any) -> Any:
    """数字/布尔答案统一转为文本"""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class IntakeRecord(BaseModel):
    """健康问卷记录"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # 基础信息
    age: Optional[str] = Field(None, description="年龄")
    gender: Optional[str] = Field(None, description="性别")
    height: Optional[str] = Field(None, description="身高(cm)")
    weight: Optional[str] = Field(None, description="体重(kg)")
    blood_group: Optional[str] = Field(None, alias="bloodGroup", description="血型")
    ethnicity: Optional[str] = Field(None, description="族裔")

    # 生活方式
    smoking: Optional[str] = Field(None, description="吸烟情况")
    alcohol: Optional[str] = Field(None, description="饮酒情况")
    exercise: Optional[str] = Field(None, description="运动频率")
    sleep_quality: Optional[str] = Field(None, alias="sleepQuality", description="睡眠质量")
    stress_level: Optional[str] = Field(None, alias="stressLevel", description="压力水平")
    dietary_preferences: Optional[str] = Field(
        None, alias="dietaryPreferences", description="饮食偏好"
    )

    # 用药与过敏
    taking_medications: Optional[str] = Field(
        None, alias="takingMedications", description="是否正在用药(yes/no)"
    )
    medications: Optional[str] = Field(None, description="当前用药")
    has_allergies: Optional[str] = Field(None, alias="hasAllergies", description="是否有过敏(yes/no)")
    allergies: Optional[str] = Field(None, description="过敏史")

    # 检测动机
    motivations: List[str] = Field(default_factory=list, description="检测动机标签")
    other_motivation: Optional[str] = Field(None, alias="otherMotivation", description="其他动机")

    # 分类问卷（问题key -> 答案，保持提交顺序）
    sleep_energy: Dict[str, Optional[str]] = Field(default_factory=dict, alias="sleepEnergy")
    cardiovascular_health: Dict[str, Optional[str]] = Field(
        default_factory=dict, alias="cardiovascularHealth"
    )
    metabolic_health: Dict[str, Optional[str]] = Field(default_factory=dict, alias="metabolicHealth")
    digestive_health: Dict[str, Optional[str]] = Field(default_factory=dict, alias="digestiveHealth")
    cancer_immune_health: Dict[str, Optional[str]] = Field(
        default_factory=dict, alias="cancerImmuneHealth"
    )
    neurological_health: Dict[str, Optional[str]] = Field(
        default_factory=dict, alias="neurologicalHealth"
    )

    @field_validator(
        "age", "height", "weight", "taking_medications", "has_allergies", mode="before"
    )
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        return _scalar_to_str(value)

    @field_validator("motivations", mode="before")
    @classmethod
    def _coerce_motivations(cls, value: Any) -> Any:
        if value is None:
            return []
        return value

    @field_validator(*CATEGORY_FIELDS, mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: _scalar_to_str(answer) for key, answer in value.items()}
        return value

    def categories(self) -> List[tuple]:
        """按固定顺序返回 (分类字段名, 问卷答案) 列表"""
        return [(name, getattr(self, name)) for name in CATEGORY_FIELDS]

    @classmethod
    def from_payload(cls, payload: Any) -> "IntakeRecord":
        """
        从请求数据构建问卷记录

        Args:
            payload: 原始字典（camelCase 或 snake_case）或 IntakeRecord

        Returns:
            问卷记录

        Raises:
            InvalidIntakeError: 数据格式错误
        """
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, dict):
            raise InvalidIntakeError(
                f"Intake record must be an object, got {type(payload).__name__}"
            )
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise InvalidIntakeError(f"Invalid intake record: {e}") from e
