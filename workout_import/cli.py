"""Command line entry point: import a shared workout video or search the catalog."""
import argparse
import asyncio
import json
import sys
from typing import List, Optional

from workout_import.collector.orchestrator import ImportOrchestrator
from workout_import.core.exceptions import WorkoutImportBaseException
from workout_import.models.extraction import ExtractionSource
from workout_import.services.exercise_catalog import get_exercise_catalog
from workout_import.services.review_service import ReviewSession
from workout_import.utils.logging import LoggerSetup


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workout-import",
        description="Turn a shared TikTok or Instagram workout video into a workout template"
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("import", help="Import a video link")
    run.add_argument("url", help="Shared video URL")
    run.add_argument(
        "--platform",
        choices=[p.value for p in ExtractionSource],
        help="Skip platform detection"
    )
    run.add_argument("--json", action="store_true", help="Print the template as JSON")

    search = commands.add_parser("search", help="Search the exercise catalog")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=10)

    return parser


def print_session(session: ReviewSession) -> None:
    print(f"\n{session.workout_name}")
    print("─" * 60)
    for index, match in enumerate(session.matches):
        reps = "/".join(str(r) for r in match.reps_per_set) if match.reps_per_set else str(match.reps)
        if match.matched:
            target = f"{match.matched_exercise.label} ({match.confidence:.0%})"
        else:
            target = "no match, pick one by hand"
        print(f"{index + 1:>2}. {match.ai_name}: {match.sets} x {reps} -> {target}")
    print(f"\n{session.matched_count} of {len(session.matches)} exercises matched")


async def run_import(url: str, platform: Optional[str], as_json: bool) -> int:
    orchestrator = ImportOrchestrator()
    try:
        outcome = await orchestrator.run(url, ExtractionSource(platform) if platform else None)
    except WorkoutImportBaseException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if not outcome.success:
        print(f"Error: {outcome.error}", file=sys.stderr)
        return 1

    if as_json:
        try:
            template = outcome.session.build_template()
        except WorkoutImportBaseException as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        print(json.dumps(template.model_dump(mode="json", by_alias=True), indent=2))
    else:
        print_session(outcome.session)
    return 0


def run_search(query: str, limit: int) -> int:
    for exercise in get_exercise_catalog().search(query, limit):
        print(f"{exercise.id:<28} {exercise.label} [{exercise.muscle or '-'}]")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    LoggerSetup.setup_logging(level=args.log_level)

    if args.command == "search":
        return run_search(args.query, args.limit)
    return asyncio.run(run_import(args.url, args.platform, args.json))


if __name__ == "__main__":
    sys.exit(main())
