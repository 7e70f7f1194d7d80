"""Tests for text tables and bar charts."""
from tsc_survey.services.csv_loader import parse_survey_csv
from tsc_survey.services.report_renderer import (
    BAR_CHAR,
    BAR_WIDTH,
    render_bar_chart,
    render_rows,
    render_text_report,
)
from tsc_survey.services.report_service import build_report, tally_question


def test_render_rows_scales_bars_to_largest():
    table = render_rows("Heading", [("A", 4), ("B", 2), ("C", 0)], total=6)
    lines = table.splitlines()

    assert lines[0] == "Heading"
    assert lines[2].endswith(BAR_CHAR * BAR_WIDTH)
    assert lines[3].endswith(BAR_CHAR * (BAR_WIDTH // 2))
    assert BAR_CHAR not in lines[4]
    assert " 66.7%" in lines[2]


def test_render_rows_with_no_data():
    table = render_rows("Languages, n=0", [], total=0)
    assert table.splitlines()[0] == "Languages, n=0"


def test_text_report_sections(sample_csv_text):
    report = build_report(parse_survey_csv(sample_csv_text), language="ja")
    text = render_text_report(report)

    assert text.startswith("Respondents: 1 (from 6 submissions) | filters: language=ja\n")
    assert "Preferred start time (Q2_time), n=1" in text
    assert "A. 00:00-06:00 UTC" in text
    assert "Languages, n=1" in text


def test_bar_chart_is_png():
    image = render_bar_chart(tally_question("Q2_time", []))
    assert image[:8] == b"\x89PNG\r\n\x1a\n"
