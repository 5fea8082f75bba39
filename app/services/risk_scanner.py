"""
风险等级扫描 - 从已完成报告的全文中提取各健康分类的风险等级
"""
import re
from typing import List, Optional

from app.schemas.report import RiskLevel

RISK_CATEGORIES = ("Sleep", "Cardiovascular", "Metabolic", "Digestive", "Cancer", "Neurological")

_LEVEL = r"Risk\s+Level\s*:?\s*\**\s*:?\s*\**\s*(LOW|MODERATE|HIGH|URGENT)\b"

# 分类名与 "Risk Level:" 在同一行
_SAME_LINE_TEMPLATE = r"{category}[^\n]*?" + _LEVEL

# 分类名在章节标题中，"Risk Level:" 在该章节正文内（不跨越下一个标题行）
_SECTION_TEMPLATE = (
    r"^[ \t]*#{{1,6}}[^\n]*{category}[^\n]*\n"
    r"(?:(?![ \t]*#)[^\n]*\n)*?"
    r"(?![ \t]*#)[^\n]*?" + _LEVEL
)

RISK_PATTERNS = tuple(
    (
        category,
        re.compile(_SAME_LINE_TEMPLATE.format(category=category), re.IGNORECASE),
        re.compile(_SECTION_TEMPLATE.format(category=category), re.IGNORECASE | re.MULTILINE),
    )
    for category in RISK_CATEGORIES
)


def _first_match(text: str, patterns) -> Optional[re.Match]:
    matches = [m for m in (pattern.search(text) for pattern in patterns) if m]
    if not matches:
        return None
    return min(matches, key=lambda m: m.start())


def scan_risk_levels(full_content: str) -> List[RiskLevel]:
    """
    扫描各分类的风险等级

    按固定分类顺序返回，未找到的分类直接省略。
    正文中顺带提到的其他分类名不会取用所在章节的等级。
    """
    text = full_content or ""
    risks = []
    for category, same_line, section in RISK_PATTERNS:
        match = _first_match(text, (same_line, section))
        if match:
            risks.append(RiskLevel(category=category, level=match.group(1).upper()))
    return risks


def requires_prompt_attention(full_content: str, risks: Optional[List[RiskLevel]] = None) -> bool:
    """存在 URGENT 等级或全文出现 "urgent" 时需要尽快就医"""
    if risks is None:
        risks = scan_risk_levels(full_content)
    if any(risk.level == "URGENT" for risk in risks):
        return True
    return "urgent" in (full_content or "").lower()
