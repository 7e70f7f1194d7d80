#!/usr/bin/env python3
"""
Command-line tools for the TSC event survey.

Usage:
    tsc-survey report responses.csv
    tsc-survey report responses.csv --language ja --q4 A --chart-dir charts/
    tsc-survey submit --api-url https://example.org/api/submit --player-name Alice --q2 A --q3 B --q4 C
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from tsc_survey.client.form import FormConfig, SurveyFormController
from tsc_survey.config import get_settings
from tsc_survey.services.csv_loader import parse_survey_csv
from tsc_survey.services.report_renderer import render_bar_chart, render_text_report
from tsc_survey.services.report_service import build_report
from tsc_survey.services.translation_service import load_translations
from tsc_survey.utils.exceptions import CsvParseError

logger = logging.getLogger(__name__)


def run_report(args: argparse.Namespace) -> int:
    try:
        text = Path(args.csv).read_text(encoding="utf-8-sig")
    except OSError as exc:
        print(f"Cannot read {args.csv}: {exc}", file=sys.stderr)
        return 1

    try:
        rows = parse_survey_csv(text)
    except CsvParseError as exc:
        print(f"Parse error: {exc.message}", file=sys.stderr)
        return 2

    answers = {
        question: code
        for question, code in (("Q2_time", args.q2), ("Q3_time", args.q3), ("Q4_day", args.q4))
        if code
    }
    report = build_report(rows, language=args.language, answers=answers)
    print(render_text_report(report), end="")

    if args.chart_dir:
        chart_dir = Path(args.chart_dir)
        chart_dir.mkdir(parents=True, exist_ok=True)
        for tally in report.questions:
            target = chart_dir / f"{tally.question}.png"
            target.write_bytes(render_bar_chart(tally))
            logger.info(f"Wrote {target}")
    return 0


async def _submit(args: argparse.Namespace) -> int:
    settings = get_settings()
    translations = load_translations(settings.translations_path, default_language=settings.default_language)
    controller = SurveyFormController(FormConfig(api_url=args.api_url, translations=translations))
    controller.initialize({"lang": args.language} if args.language else {})
    controller.update(
        player_name=args.player_name,
        Q2_time=args.q2 or "",
        Q3_time=args.q3 or "",
        Q4_day=args.q4 or "",
    )

    result = await controller.submit()
    if result.field_errors:
        for name, message in result.field_errors.items():
            print(f"{name}: {message}", file=sys.stderr)
        return 2
    if not result.ok:
        print(result.message, file=sys.stderr)
        return 1

    issue = (result.response or {}).get("issue") or {}
    print(f"{result.message} {issue.get('url', '')}".strip())
    return 0


def run_submit(args: argparse.Namespace) -> int:
    return asyncio.run(_submit(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tsc-survey",
        description="TSC event survey tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s report responses.csv                   # Tables for all respondents
  %(prog)s report responses.csv --language ja     # Only Japanese respondents
  %(prog)s report responses.csv --chart-dir out   # Also write PNG bar charts
  %(prog)s submit --api-url URL --player-name Alice --q2 A --q3 B --q4 C
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    report = subparsers.add_parser("report", help="Tabulate the latest response per player from a CSV export")
    report.add_argument("csv", help="Path to the CSV export")
    report.add_argument("--language", help="Only count respondents using this language code")
    report.add_argument("--q2", help="Only count respondents with this Q2_time answer (letter or 'other')")
    report.add_argument("--q3", help="Only count respondents with this Q3_time answer")
    report.add_argument("--q4", help="Only count respondents with this Q4_day answer")
    report.add_argument("--chart-dir", help="Directory to write one PNG bar chart per question")
    report.set_defaults(handler=run_report)

    submit = subparsers.add_parser("submit", help="Submit one survey response to the API")
    submit.add_argument("--api-url", required=True, help="Full URL of the /api/submit endpoint")
    submit.add_argument("--player-name", default="", help="Player name")
    submit.add_argument("--language", help="Language code (defaults to the stored preference or en)")
    submit.add_argument("--q2", help="Q2_time answer letter")
    submit.add_argument("--q3", help="Q3_time answer letter")
    submit.add_argument("--q4", help="Q4_day answer letter")
    submit.set_defaults(handler=run_submit)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
