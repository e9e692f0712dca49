"""
contextcards CLI.

Commands:
    contextcards load             — Run the loader and show displayable cards
    contextcards check <uri>      — Show the eligibility verdict for one URI
    contextcards add <name>       — Insert a candidate card row

Global options (--db, --providers, --package, --version, --log-level)
override the CONTEXTCARDS_* environment variables.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .pipeline import check_uri, run_load
from ..config import LoaderConfig
from ..domain import CardRecord, CardType, ContextCardsError, EligibilityVerdict
from ..loader import LoadReport
from ..source.database import CardDatabase, CardSourceError


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_card_row(index: int, card: CardRecord) -> str:
    """Format a single card for display."""
    width = "half" if card.is_half_width else "full"
    return (
        f"{index:>2}. {card.name:<20} | {card.card_type.name:<15} | "
        f"score {card.ranking_score:>5.2f} | v{card.app_version} | {width} | "
        f"{card.uri or '-'}"
    )


def format_exclusion(verdict: EligibilityVerdict) -> str:
    reason = verdict.reason.value if verdict.reason else "unknown"
    return f"  • [{reason}] {verdict.card.name}: {verdict.detail}"


def format_report(report: LoadReport) -> str:
    lines = []
    source = "static fallback" if report.used_fallback else "card database"
    lines.append(f"Source: {source}")
    lines.append(f"Rows read: {report.rows_read}")
    lines.append(f"Candidates checked: {report.candidates_checked}")
    if report.custom_rows_skipped:
        lines.append(f"Custom rows skipped: {report.custom_rows_skipped}")
    if report.malformed_rows:
        lines.append(f"Malformed rows skipped: {report.malformed_rows}")
    lines.append("")

    if report.cards:
        lines.append("CARDS:")
        for i, card in enumerate(report.cards, start=1):
            lines.append(format_card_row(i, card))
    else:
        lines.append("No cards eligible for display.")

    if report.exclusions:
        lines.append("")
        lines.append("EXCLUDED:")
        for verdict in report.exclusions:
            lines.append(format_exclusion(verdict))

    return "\n".join(lines)


# =============================================================================
# CLI COMMANDS
# =============================================================================

def cmd_load(args: argparse.Namespace, config: LoaderConfig) -> int:
    """Run one load."""
    try:
        report = run_load(config)
    except ContextCardsError as e:
        print("ERROR: Load failed")
        print(f"Reason: {e}")
        return 1

    print(format_report(report))
    return 0


def cmd_check(args: argparse.Namespace, config: LoaderConfig) -> int:
    """Check one URI."""
    try:
        verdict = check_uri(config, args.uri)
    except ContextCardsError as e:
        print(f"INELIGIBLE: {e}")
        return 1

    if verdict.eligible:
        print(f"ELIGIBLE: {args.uri}")
        return 0
    print(f"INELIGIBLE [{verdict.reason.value}]: {verdict.detail}")
    return 1


def cmd_add(args: argparse.Namespace, config: LoaderConfig) -> int:
    """Insert a candidate row."""
    card_type = CardType[args.type.upper()]
    try:
        database = CardDatabase(config.db_path)
    except CardSourceError as e:
        print(f"ERROR: {e}")
        return 1
    try:
        database.insert_row(
            name=args.name,
            card_type=card_type.value,
            package_name=args.package_name or config.host_package,
            uri=args.uri,
            score=args.score,
            app_version=args.app_version,
            half_width=args.half_width,
        )
    except CardSourceError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        database.close()

    print(f"Added {card_type.name} card '{args.name}' to {config.db_path}")
    return 0


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="contextcards",
        description="Contextual card loader: acquire and filter displayable cards",
    )
    parser.add_argument("--db", help="Card database path")
    parser.add_argument("--providers", help="Provider registry JSON file")
    parser.add_argument("--package", help="Host package name")
    parser.add_argument("--version", type=int, help="Host package version code")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    load_parser = subparsers.add_parser(
        "load",
        help="Load and show displayable cards",
    )
    load_parser.set_defaults(func=cmd_load)

    check_parser = subparsers.add_parser(
        "check",
        help="Check whether a resource URI is eligible for display",
    )
    check_parser.add_argument("uri", help="Resource URI to check")
    check_parser.set_defaults(func=cmd_check)

    add_parser = subparsers.add_parser(
        "add",
        help="Insert a candidate card into the database",
    )
    add_parser.add_argument("name", help="Card name")
    add_parser.add_argument("--uri", help="Resource URI")
    add_parser.add_argument(
        "--type",
        choices=[t.name.lower() for t in CardType],
        default=CardType.RESOURCE_BACKED.name.lower(),
        help="Card type",
    )
    add_parser.add_argument("--score", type=float, default=0.0, help="Ranking score")
    add_parser.add_argument("--app-version", type=int, default=-1, help="App version code")
    add_parser.add_argument("--package-name", help="Owning package (defaults to host)")
    add_parser.add_argument("--half-width", action="store_true", help="Half-width card")
    add_parser.set_defaults(func=cmd_add)

    return parser


def resolve_config(args: argparse.Namespace) -> LoaderConfig:
    """Environment config with CLI overrides applied."""
    config = LoaderConfig.from_env()
    if args.db:
        config.db_path = args.db
    if args.providers:
        config.providers_path = args.providers
    if args.package:
        config.host_package = args.package
    if args.version is not None:
        config.host_version = args.version
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config = resolve_config(args)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
