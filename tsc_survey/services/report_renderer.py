"""Rendering of tabulated survey counts as text tables and bar charts."""
from __future__ import annotations

import io
import logging

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from tsc_survey.schemas.report import LanguageCount, OptionCount, QuestionTally, ReportResponse  # noqa: E402

logger = logging.getLogger(__name__)

BAR_WIDTH = 30
BAR_CHAR = "█"
CHART_FACE_COLOR = "#0e1117"
CHART_BAR_COLOR = "#4c9be8"
CHART_OTHER_COLOR = "#9a9a9a"


def _bar(count: int, largest: int, width: int = BAR_WIDTH) -> str:
    if largest <= 0 or count <= 0:
        return ""
    return BAR_CHAR * max(1, round(width * count / largest))


def _percent(count: int, total: int) -> str:
    return f"{100 * count / total:5.1f}%" if total else "  0.0%"


def render_rows(heading: str, rows: list[tuple[str, int]], total: int) -> str:
    """Render ``(label, count)`` pairs as an aligned table with proportional bars."""
    label_width = max([len(label) for label, _ in rows] + [len(heading)])
    largest = max([count for _, count in rows] + [0])
    lines = [heading, "-" * (label_width + BAR_WIDTH + 16)]
    for label, count in rows:
        lines.append(f"{label.ljust(label_width)}  {count:>4}  {_percent(count, total)}  {_bar(count, largest)}")
    return "\n".join(lines)


def _option_label(option: OptionCount) -> str:
    return option.label if option.code == option.label else f"{option.code}. {option.label}"


def render_question_table(tally: QuestionTally) -> str:
    rows = [(_option_label(option), option.count) for option in tally.options]
    return render_rows(f"{tally.title} ({tally.question}), n={tally.total}", rows, tally.total)


def render_language_table(languages: list[LanguageCount]) -> str:
    total = sum(entry.count for entry in languages)
    rows = [(entry.label, entry.count) for entry in languages]
    return render_rows(f"Languages, n={total}", rows, total)


def render_text_report(report: ReportResponse) -> str:
    """Plain-text report: summary line, one table per question, then languages."""
    summary = f"Respondents: {report.respondents} (from {report.total_rows} submissions)"
    filters = []
    if report.filters.language:
        filters.append(f"language={report.filters.language}")
    filters.extend(f"{question}={code}" for question, code in report.filters.answers.items())
    if filters:
        summary += f" | filters: {', '.join(filters)}"

    sections = [summary]
    sections.extend(render_question_table(tally) for tally in report.questions)
    sections.append(render_language_table(report.languages))
    return "\n\n".join(sections) + "\n"


def render_bar_chart(tally: QuestionTally) -> bytes:
    """Render one question's counts as a PNG bar chart."""
    labels = [option.code for option in tally.options]
    counts = [option.count for option in tally.options]
    colors = [CHART_OTHER_COLOR if option.code == "Other" else CHART_BAR_COLOR for option in tally.options]

    fig, ax = plt.subplots(figsize=(8, 4.5))
    try:
        fig.patch.set_facecolor(CHART_FACE_COLOR)
        ax.set_facecolor(CHART_FACE_COLOR)
        bars = ax.bar(labels, counts, color=colors)
        ax.bar_label(bars, color="white", fontsize=9)
        ax.set_title(f"{tally.title} (n={tally.total})", color="white")
        ax.set_ylabel("Respondents", color="white")
        ax.tick_params(colors="white")
        ax.yaxis.get_major_locator().set_params(integer=True)
        ax.grid(True, axis="y", linestyle="--", linewidth=0.3)
        for spine in ax.spines.values():
            spine.set_color("#444444")
        fig.tight_layout()

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", facecolor=fig.get_facecolor())
    finally:
        plt.close(fig)

    logger.debug(f"Rendered bar chart for {tally.question} ({buffer.tell()} bytes)")
    return buffer.getvalue()
