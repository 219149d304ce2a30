"""CLI entry point for the salary dashboard."""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from salary_stats.core.config import Settings
from salary_stats.core.schemas import (
    CONTRACT_TYPES,
    FORMATIONS,
    PARTICIPANT_TYPES,
    SPECIALTIES,
    ExclusionPreferences,
    SalaryFilters,
    SalaryInsert,
)
from salary_stats.pipeline.accessor import EntryStoreAccessor
from salary_stats.pipeline.dashboard import DashboardView, build_dashboard, export_dashboard_json
from salary_stats.store.base import DataAccessError
from salary_stats.store.postgrest import PostgrestSalaryStore, build_client


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Salary dashboard - aggregate anonymous salary submissions",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- stats subcommand (default) ---
    stats_parser = subparsers.add_parser("stats", help="Print dashboard statistics")
    _add_common(stats_parser)
    stats_parser.add_argument("--formation", choices=FORMATIONS)
    stats_parser.add_argument("--specialty", choices=SPECIALTIES)
    stats_parser.add_argument("--contract", choices=CONTRACT_TYPES)
    stats_parser.add_argument("--participant", choices=PARTICIPANT_TYPES)
    stats_parser.add_argument(
        "--years",
        type=int,
        action="append",
        default=[],
        help="Years since graduation (repeatable, Alumni only)",
    )
    stats_parser.add_argument(
        "--include-outliers",
        action="store_true",
        help="Keep flagged outliers in the calculations",
    )
    stats_parser.add_argument(
        "--exclude-id",
        action="append",
        default=[],
        help="Exclude a specific entry id from the calculations (repeatable)",
    )
    stats_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export the dashboard to format (json)",
    )

    # --- submit subcommand ---
    submit_parser = subparsers.add_parser("submit", help="Submit one salary entry")
    _add_common(submit_parser)
    submit_parser.add_argument("--formation", required=True, choices=FORMATIONS)
    submit_parser.add_argument("--specialty", required=True, choices=SPECIALTIES)
    submit_parser.add_argument("--contract", required=True, choices=CONTRACT_TYPES)
    submit_parser.add_argument("--salary", required=True, type=int, help="Monthly net salary")
    submit_parser.add_argument("--participant", default="Alumni", choices=PARTICIPANT_TYPES)
    submit_parser.add_argument("--job-title")
    submit_parser.add_argument("--job-description")
    submit_parser.add_argument("--years", type=int, help="Years since graduation (Alumni)")

    # Default to stats when no subcommand given
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in subparsers.choices and argv[0] not in ("-h", "--help"):
        argv.insert(0, "stats")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def filters_from_args(args: argparse.Namespace) -> SalaryFilters:
    return SalaryFilters(
        formation=args.formation,
        speciality=args.specialty,
        contract_type=args.contract,
        participant_type=args.participant,
        years_since_graduation=args.years,
    )


def preferences_from_args(args: argparse.Namespace) -> ExclusionPreferences:
    return ExclusionPreferences(
        exclude_outliers=not args.include_outliers,
        excluded_ids=frozenset(args.exclude_id),
    )


def print_summary(view: DashboardView) -> None:
    m = view.metrics
    print(f"\nParticipants: {m.total_participants} eligible of {len(view.entries)} fetched")
    print(f"Average salary: {view.average_salary:,}  Median salary: {view.median_salary:,}")
    if view.outliers.flagged_count:
        print(f"Suspicious values: {view.outliers.flagged_count} "
              f"({view.outliers.excluded_flagged_count} excluded from calculations)")

    for title, averages in (
        ("formation", m.average_by_formation),
        ("specialty", m.average_by_specialty),
        ("contract", m.average_by_contract),
    ):
        if averages:
            print(f"\nAverage by {title}:")
            for label, value in averages.items():
                print(f"  {label}: {value:,}")

    print("\nSalary ranges:")
    for bucket in m.salaries_by_range:
        print(f"  {bucket.label}: {bucket.count}")


async def run_stats(settings: Settings, args: argparse.Namespace) -> None:
    """Fetch entries and print the dashboard."""
    async with build_client(settings.store) as client:
        store = PostgrestSalaryStore(client, settings.store.table)
        accessor = EntryStoreAccessor(store, settings.outliers)
        view = await build_dashboard(
            accessor,
            filters_from_args(args),
            preferences_from_args(args),
            settings.metrics,
        )

    if args.export == "json":
        print(export_dashboard_json(view))
    else:
        print_summary(view)


async def run_submit(settings: Settings, payload: SalaryInsert) -> None:
    """Insert one salary entry."""
    async with build_client(settings.store) as client:
        store = PostgrestSalaryStore(client, settings.store.table)
        await EntryStoreAccessor(store, settings.outliers).create_entry(payload)
    print("Entry submitted. Thank you!")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "submit":
            payload = SalaryInsert(
                formation=args.formation,
                speciality=args.specialty,
                contract_type=args.contract,
                salary=args.salary,
                participant_type=args.participant,
                job_title=args.job_title,
                job_description=args.job_description,
                years_since_graduation=args.years,
            )
            asyncio.run(run_submit(settings, payload))
        else:
            asyncio.run(run_stats(settings, args))
    except (DataAccessError, ValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
