"""
Assessment CLI - scoring and suggestions from the command line.

Usage:
    # Create tables, then load the bundled questionnaire and rules
    cso-assess init-db
    cso-assess seed

    # Compute scores for an assessment
    cso-assess scores --assessment <id>

    # (Re)generate suggestions
    cso-assess suggest --assessment <id>

    # Show stored suggestions
    cso-assess show --assessment <id>

    # Build and store the report payload (prints JSON)
    cso-assess report --assessment <id> --output report.json

Connection settings come from CSO_DB_* environment variables or a .env file.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from cso_assessment.config import get_log_level
from cso_assessment.constants import SECTION_KEYS, SECTION_MAX_POINTS, SECTION_TITLES, TOTAL_MAX_POINTS
from cso_assessment.db.client import check_connection
from cso_assessment.db.seed import seed_store
from cso_assessment.db.store import SqlAssessmentStore
from cso_assessment.errors import AssessmentNotFoundError
from cso_assessment.services.report_builder import build_report_content
from cso_assessment.suggestions.engine import SuggestionEngine
from cso_assessment.utils.logger import configure_global_logging

console = Console()


def _print_suggestions(suggestions, title: str) -> None:
    if not suggestions:
        console.print("[yellow]No suggestions[/yellow]")
        return
    table = Table(title=title)
    table.add_column("Priority", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Category")
    table.add_column("Suggestion", overflow="fold")
    for s in suggestions:
        table.add_row(
            str(s.priority),
            f"{s.weight:.1f}",
            s.type.value,
            str(s.metadata.get("category") or ""),
            s.suggestion,
        )
    console.print(table)


def cmd_init_db(args: argparse.Namespace, store) -> int:
    """Create the schema."""
    if not check_connection():
        console.print("[red]Error:[/red] Cannot reach the database (check CSO_DB_* settings)")
        return 1
    tables = store.create_schema()
    console.print(f"[green]Schema ready:[/green] {', '.join(tables)}")
    return 0


def cmd_seed(args: argparse.Namespace, store) -> int:
    """Load the questionnaire and assessment rules."""
    counts = seed_store(
        store,
        questionnaire_path=Path(args.questionnaire) if args.questionnaire else None,
        rules_path=Path(args.rules) if args.rules else None,
    )
    console.print(
        f"[green]Seeded[/green] {counts['sections']} sections, "
        f"{counts['questions']} questions, {counts['rules']} assessment rules"
    )
    return 0


def cmd_scores(args: argparse.Namespace, store) -> int:
    """Print section and total scores."""
    scores = SuggestionEngine(store).get_cso_scores(args.assessment)
    if scores is None:
        console.print(f"[red]Error:[/red] Assessment not found: {args.assessment}")
        return 1

    if args.json:
        print(json.dumps(scores.model_dump(mode="json"), indent=2))
        return 0

    table = Table(title=f"CSO Scores - {args.assessment}")
    table.add_column("Area")
    table.add_column("Max", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("%", justify="right")
    for key in SECTION_KEYS:
        table.add_row(
            SECTION_TITLES[key],
            str(SECTION_MAX_POINTS[key]),
            str(scores.section_scores[key]),
            f"{scores.section_percentages[key]:.1f}",
        )
    table.add_row("[bold]Total[/bold]", str(TOTAL_MAX_POINTS), str(scores.total_score), f"{scores.total_percentage:.1f}")
    console.print(table)
    console.print(f"Overall level: [bold]{scores.overall_level.value}[/bold]")
    return 0


def cmd_suggest(args: argparse.Namespace, store) -> int:
    """Regenerate suggestions."""
    try:
        suggestions = SuggestionEngine(store).generate_suggestions(args.assessment)
    except AssessmentNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    _print_suggestions(suggestions, f"Generated suggestions - {args.assessment}")
    return 0


def cmd_show(args: argparse.Namespace, store) -> int:
    """Show stored suggestions."""
    try:
        suggestions = SuggestionEngine(store).get_assessment_suggestions(args.assessment)
    except AssessmentNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    _print_suggestions(suggestions, f"Suggestions - {args.assessment}")
    return 0


def cmd_report(args: argparse.Namespace, store) -> int:
    """Build the report payload and store it on the report record."""
    engine = SuggestionEngine(store)
    scores = engine.get_cso_scores(args.assessment)
    if scores is None:
        console.print(f"[red]Error:[/red] Assessment not found: {args.assessment}")
        return 1

    report = store.find_or_create_report(args.assessment)
    content = build_report_content(scores, engine.get_assessment_suggestions(args.assessment), args.organization)
    store.update_report_content(report.id, content)

    payload = json.dumps(content, indent=2)
    if args.output:
        Path(args.output).write_text(payload)
        console.print(f"[green]Report written to[/green] {args.output}")
    else:
        print(payload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cso-assess",
        description="CSO self-assessment scoring and suggestions",
    )
    parser.add_argument("--log-level", default=None, help="Override CSO_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("init-db", help="Create database tables")

    seed_parser = subparsers.add_parser("seed", help="Load questionnaire and assessment rules")
    seed_parser.add_argument("--questionnaire", help="Questionnaire YAML (default: bundled)")
    seed_parser.add_argument("--rules", help="Assessment rules YAML (default: bundled)")

    scores_parser = subparsers.add_parser("scores", help="Compute scores for an assessment")
    scores_parser.add_argument("--assessment", required=True, help="Assessment ID")
    scores_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    suggest_parser = subparsers.add_parser("suggest", help="Regenerate suggestions for an assessment")
    suggest_parser.add_argument("--assessment", required=True, help="Assessment ID")

    show_parser = subparsers.add_parser("show", help="Show stored suggestions for an assessment")
    show_parser.add_argument("--assessment", required=True, help="Assessment ID")

    report_parser = subparsers.add_parser("report", help="Build the report payload")
    report_parser.add_argument("--assessment", required=True, help="Assessment ID")
    report_parser.add_argument("--organization", help="Organization name for the category note")
    report_parser.add_argument("-o", "--output", help="Write JSON to this file instead of stdout")

    return parser


COMMANDS = {
    "init-db": cmd_init_db,
    "seed": cmd_seed,
    "scores": cmd_scores,
    "suggest": cmd_suggest,
    "show": cmd_show,
    "report": cmd_report,
}


def main(argv: Optional[list[str]] = None, store=None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_global_logging(args.log_level or get_log_level())

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, store if store is not None else SqlAssessmentStore())


if __name__ == "__main__":
    sys.exit(main())
