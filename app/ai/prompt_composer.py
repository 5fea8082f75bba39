"""
Prompt组装 - 根据健康问卷生成确定性的分析请求文本
"""
import logging
from typing import Any, Dict, Optional

from app.ai import question_catalog
from app.ai.prompt_loader import PromptLoader
from app.exceptions import InvalidIntakeError
from app.schemas.intake import IntakeRecord

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Not provided"
NONE_REPORTED = "None reported"
NO_MOTIVATIONS = "No specific motivations provided"


def has_answer(answer: Optional[str]) -> bool:
    """答案是否有效（非空、非纯空白、非 "undefined"）"""
    if answer is None:
        return False
    text = str(answer).strip()
    return text != "" and text.lower() != "undefined"


def _field_text(value: Optional[str]) -> str:
    """字段文本，缺失时使用可读占位符"""
    return str(value).strip() if has_answer(value) else NOT_PROVIDED


def _flagged_text(flag: Optional[str], value: Optional[str]) -> str:
    """用药/过敏：仅在标记为yes且有内容时展示"""
    if (flag or "").strip().lower() == "yes" and has_answer(value):
        return str(value).strip()
    return NONE_REPORTED


class PromptComposer:
    """
    健康分析Prompt组装器

    纯函数式：相同的问卷和姓名总是生成完全相同的文本，不依赖随机数或外部状态。
    """

    def __init__(self, prompt_loader: PromptLoader):
        self.prompt_loader = prompt_loader

    def compose(self, intake: Any, subject_name: str) -> str:
        """
        组装完整的分析Prompt

        Args:
            intake: 问卷记录（IntakeRecord 或原始字典）
            subject_name: 受检者姓名

        Returns:
            Prompt文本

        Raises:
            InvalidIntakeError: 问卷数据格式错误
        """
        record = IntakeRecord.from_payload(intake)
        if not isinstance(subject_name, str):
            raise InvalidIntakeError("Subject name must be a string")

        questionnaire_section = self.prompt_loader.questionnaire_template.format(
            categories=self._format_questionnaire(record)
        )

        prompt = self.prompt_loader.build_user_prompt(
            subject_name=subject_name.strip() or NOT_PROVIDED,
            age=_field_text(record.age),
            gender=_field_text(record.gender),
            height=_field_text(record.height),
            weight=_field_text(record.weight),
            blood_group=_field_text(record.blood_group),
            ethnicity=_field_text(record.ethnicity),
            smoking=_field_text(record.smoking),
            alcohol=_field_text(record.alcohol),
            exercise=_field_text(record.exercise),
            medications=_flagged_text(record.taking_medications, record.medications),
            allergies=_flagged_text(record.has_allergies, record.allergies),
            sleep_quality=_field_text(record.sleep_quality),
            stress_level=_field_text(record.stress_level),
            dietary_preferences=_field_text(record.dietary_preferences),
            motivations=self._format_motivations(record),
            other_motivation=self._format_other_motivation(record),
            questionnaire_section=questionnaire_section,
        )

        logger.debug(f"Prompt组装完成: 长度={len(prompt)}")
        return prompt

    def _format_questionnaire(self, record: IntakeRecord) -> str:
        """按固定分类顺序拼接问卷问答"""
        headings = self.prompt_loader.category_headings
        blocks = []
        for field_name, answers in record.categories():
            heading = headings.get(field_name) or question_catalog.humanize(field_name).title()
            blocks.append(self._format_category(heading, answers))
        return "\n\n".join(blocks)

    def _format_category(self, heading: str, answers: Dict[str, Optional[str]]) -> str:
        """
        格式化单个分类的问答

        无有效答案时仍输出分类标题。按提交顺序遍历，不重新排序。
        """
        lines = [f"## {heading}:"]
        note = self.prompt_loader.elevated_concern_note

        for key, answer in answers.items():
            if not has_answer(answer):
                continue
            lines.append("")
            lines.append(f"**Q: {question_catalog.lookup(key)}**")
            lines.append(f"**Answer:** {answer}")
            if question_catalog.is_elevated_concern(answer) and note:
                lines.append(note)

        return "\n".join(lines)

    def _format_motivations(self, record: IntakeRecord) -> str:
        motivations = [m.strip() for m in record.motivations if has_answer(m)]
        if not motivations:
            return NO_MOTIVATIONS
        return f"Primary reasons for testing: {', '.join(motivations)}"

    def _format_other_motivation(self, record: IntakeRecord) -> str:
        if not has_answer(record.other_motivation):
            return ""
        return f"\nAdditional motivation: {record.other_motivation.strip()}"
