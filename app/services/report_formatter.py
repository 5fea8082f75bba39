"""
报告导出 - 生成纯文本格式的报告
"""
from app.schemas.report import Report
from app.utils.datetime_helper import format_display

SECTION_SEPARATOR = "---"


def render_plain_text(report: Report) -> str:
    """
    渲染纯文本报告（用于下载）

    Args:
        report: 报告

    Returns:
        纯文本内容
    """
    lines = [
        report.title,
        "",
        f"Generated: {format_display(report.generated_at)}",
        f"Patient: {report.user_name}",
        "",
        "EXECUTIVE SUMMARY",
        report.summary,
        "",
    ]

    for section in report.sections:
        lines.append(section.title)
        lines.append(section.content)
        lines.append("")
        lines.append(SECTION_SEPARATOR)
        lines.append("")

    lines.append("RECOMMENDATIONS")
    for index, recommendation in enumerate(report.recommendations, start=1):
        lines.append(f"{index}. {recommendation}")
    lines.append("")

    lines.append("CONCLUSIONS")
    lines.append(report.conclusions)

    return "\n".join(lines)


def export_filename(report: Report) -> str:
    """下载文件名"""
    return f"report-{report.order_id}.txt"
