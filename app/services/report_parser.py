"""
报告解析服务 - 将AI生成的叙述文本解析为结构化报告

所有解析函数都是全函数：任何输入都返回尽力而为的结果，不抛出异常。
"""
import re
import logging
from typing import Callable, List, NamedTuple, Optional

from app.schemas.report import MAX_RECOMMENDATIONS, SUMMARY_MAX_LENGTH, Section

logger = logging.getLogger(__name__)

INTRODUCTION_TITLE = "Introduction"
FALLBACK_SECTION_TITLE = "Health Analysis Report"

MIN_RECOMMENDATION_LENGTH = 10
CONCLUSION_MAX_LENGTH = 500

# 章节标题：1-3个#，后接空白和标题文本
HEADING_PATTERN = re.compile(r"^(#{1,3})\s+(.+)$")
# 任意级别的markdown标题（用于判断区域边界）
ANY_HEADING_PATTERN = re.compile(r"^#{1,6}\s+(.+)$")

NUMBERED_ITEM_PATTERN = re.compile(r"^\d+\.\s+(.+)$")
BULLET_ITEM_PATTERN = re.compile(r"^[-•*]\s+(.+)$")
LIST_PREFIX_PATTERN = re.compile(r"^[-•*\d.]+\s+")


# ========== 章节拆分 ==========

def _make_section(title: str, lines: List[str]) -> Section:
    return Section(title=title, content="\n".join(lines).strip())


def split_sections(text: str) -> List[Section]:
    """
    按markdown标题拆分章节

    - 标题行开始新章节，之后的非标题行归入该章节（保留原始格式）
    - 第一个标题之前的内容作为 "Introduction" 章节
    - 没有解析出任何章节时，用整段原文生成 "Health Analysis Report" 章节

    Args:
        text: AI生成的叙述文本

    Returns:
        按原文顺序排列的章节列表（至少一个）
    """
    sections: List[Section] = []
    leading: List[str] = []
    title: Optional[str] = None
    body: List[str] = []

    for line in text.split("\n"):
        match = HEADING_PATTERN.match(line.strip())
        if match:
            if title is not None:
                sections.append(_make_section(title, body))
            elif any(l.strip() for l in leading):
                sections.append(_make_section(INTRODUCTION_TITLE, leading))
            title = match.group(2).strip()
            body = []
        elif title is not None:
            body.append(line)
        else:
            leading.append(line)

    if title is not None:
        sections.append(_make_section(title, body))
    elif any(l.strip() for l in leading):
        sections.append(_make_section(INTRODUCTION_TITLE, leading))

    if not sections:
        logger.warning("未解析到任何章节，使用整段原文作为兜底章节")
        sections.append(Section(title=FALLBACK_SECTION_TITLE, content=text))

    logger.debug(f"章节拆分完成: {len(sections)}个章节")
    return sections


# ========== 建议提取 ==========

def _list_item_text(line: str) -> Optional[str]:
    """提取编号/列表项文本，非列表行返回None"""
    match = NUMBERED_ITEM_PATTERN.match(line) or BULLET_ITEM_PATTERN.match(line)
    if not match:
        return None
    return match.group(1).strip()


def is_acceptable_recommendation(item: str) -> bool:
    """建议条目过滤：长度足够，且不是以粗体开头的小标题"""
    return len(item) >= MIN_RECOMMENDATION_LENGTH and not item.startswith("**")


class RecommendationTier(NamedTuple):
    """建议提取层级：matcher 定位文本范围，extractor 从范围中提取条目"""
    name: str
    matcher: Callable[[str], List[str]]
    extractor: Callable[[List[str]], List[str]]


TARGETED_SECTION_PATTERNS = (
    re.compile(r"## Key Recommendations([\s\S]*?)(?=##|$)", re.IGNORECASE),
    re.compile(r"### Immediate Actions[^\n]*([\s\S]*?)(?=##|$)", re.IGNORECASE),
    re.compile(r"### Long-term Goals[^\n]*([\s\S]*?)(?=##|$)", re.IGNORECASE),
    re.compile(r"Recommendations:([\s\S]*?)(?=##|$)", re.IGNORECASE),
)

REGION_KEYWORDS = ("recommendation", "action", "next steps")


def match_targeted_sections(text: str) -> List[str]:
    """定位已知的建议章节（Key Recommendations / Immediate Actions / Long-term Goals / Recommendations:）"""
    spans = []
    for pattern in TARGETED_SECTION_PATTERNS:
        match = pattern.search(text)
        if match:
            spans.append(match.group(1))
    return spans


def extract_list_items(spans: List[str]) -> List[str]:
    """按出现顺序提取各范围内的编号和列表项"""
    items = []
    for span in spans:
        for line in span.splitlines():
            item = _list_item_text(line.strip())
            if item is not None and is_acceptable_recommendation(item):
                items.append(item)
    return items


def match_recommendation_region(text: str) -> List[str]:
    """通用兜底：全文包含建议类关键词时整体作为候选"""
    lowered = text.lower()
    if any(keyword in lowered for keyword in REGION_KEYWORDS):
        return [text]
    return []


def extract_region_items(spans: List[str]) -> List[str]:
    """
    逐行扫描：遇到含建议关键词的行进入建议区域，遇到新标题离开，
    区域内的编号/列表项作为候选
    """
    items = []
    for span in spans:
        in_region = False
        for line in span.splitlines():
            trimmed = line.strip()
            lowered = trimmed.lower()

            if any(keyword in lowered for keyword in REGION_KEYWORDS):
                in_region = True
                continue

            if trimmed.startswith("#") and in_region:
                in_region = False
                continue

            if in_region and (BULLET_ITEM_PATTERN.match(trimmed) or NUMBERED_ITEM_PATTERN.match(trimmed)):
                item = LIST_PREFIX_PATTERN.sub("", trimmed, count=1).strip()
                if is_acceptable_recommendation(item):
                    items.append(item)
    return items


RECOMMENDATION_TIERS = (
    RecommendationTier("targeted", match_targeted_sections, extract_list_items),
    RecommendationTier("general", match_recommendation_region, extract_region_items),
)


def extract_recommendations(text: str, tiers=RECOMMENDATION_TIERS) -> List[str]:
    """
    提取可执行建议

    按层级依次尝试，前一层级提取到条目后不再尝试后续层级。
    条目不去重，最多返回8条。

    Args:
        text: AI生成的叙述文本
        tiers: 提取层级（按优先级排序）

    Returns:
        建议列表
    """
    for tier in tiers:
        spans = tier.matcher(text)
        if not spans:
            continue
        items = tier.extractor(spans)
        if items:
            logger.debug(f"建议提取完成: tier={tier.name}, 条目数={len(items)}")
            return items[:MAX_RECOMMENDATIONS]

    logger.debug("未提取到建议条目")
    return []


# ========== 结论提取 ==========

# 按优先级排列：明确的结论标记优先于 "summary"
CONCLUSION_KEYWORDS = (
    re.compile(r"\bconclusion", re.IGNORECASE),
    re.compile(r"\bfinal\s+thoughts\b", re.IGNORECASE),
    re.compile(r"\bkey\s+takeaway", re.IGNORECASE),
    re.compile(r"\bsummary\b", re.IGNORECASE),
)

BOLD_LABEL_PATTERN = re.compile(r"^\*\*([^*]{1,80})\*\*:?$")
COLON_LABEL_PATTERN = re.compile(r"^\*{0,2}([^:*.,]{1,40}?)\*{0,2}\s*:\s*\*{0,2}\s*(.*)$")


def _marker_remainder(line: str, keyword: re.Pattern) -> Optional[str]:
    """
    判断是否为结论标记行

    Returns:
        标记行冒号后的同行文本（可能为空字符串）；非标记行返回None
    """
    stripped = line.strip()

    heading = ANY_HEADING_PATTERN.match(stripped)
    if heading:
        return "" if keyword.search(heading.group(1)) else None

    bold = BOLD_LABEL_PATTERN.match(stripped)
    if bold:
        return "" if keyword.search(bold.group(1)) else None

    label = COLON_LABEL_PATTERN.match(stripped)
    if label and keyword.search(label.group(1)):
        return label.group(2)

    return None


def _capture_paragraph(lines: List[str], start: int, remainder: str) -> str:
    """从标记行之后截取到下一个空行或标题为止"""
    captured = [remainder.strip()] if remainder.strip() else []

    for line in lines[start + 1:]:
        stripped = line.strip()
        if ANY_HEADING_PATTERN.match(stripped):
            break
        if not stripped:
            if captured:
                break
            continue
        captured.append(line)

    return "\n".join(captured).strip()


def extract_conclusions(text: str) -> str:
    """
    提取结论

    优先查找结论类标记（conclusion / final thoughts / key takeaway / summary），
    截取其后的段落（最多500字符）；找不到时使用最后两段。

    Args:
        text: AI生成的叙述文本

    Returns:
        结论文本（输入为空时返回空字符串）
    """
    lines = text.split("\n")

    for keyword in CONCLUSION_KEYWORDS:
        for index, line in enumerate(lines):
            remainder = _marker_remainder(line, keyword)
            if remainder is None:
                continue
            conclusion = _capture_paragraph(lines, index, remainder)
            if conclusion:
                return conclusion[:CONCLUSION_MAX_LENGTH]

    paragraphs = text.split("\n\n")
    return "\n\n".join(paragraphs[-2:])


# ========== 摘要 ==========

def build_summary(text: str) -> str:
    """摘要：前两段，截断到500字符"""
    return "\n\n".join(text.split("\n\n")[:2])[:SUMMARY_MAX_LENGTH]
