"""CLI entry point for the candidate search core."""

import argparse
import asyncio
import logging
import sys

from candidate_search.core.config import Settings
from candidate_search.core.schemas import FacetFilterSet, RefinementFilterSet, SearchQuery
from candidate_search.refine.chips import CATEGORY_LABELS
from candidate_search.search.client import SearchApiClient, build_search_url
from candidate_search.state import views
from candidate_search.state.reactor import SearchReactor
from candidate_search.sync.url_state import from_query_string, to_query_string


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


def _add_query(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("query", nargs="?", default="", help="Search text")
    parser.add_argument(
        "--url",
        help="Restore the query from a shareable link query string (e.g. '?q=kotlin&topK=20')",
    )
    parser.add_argument("--top-k", type=int, help="Number of results to request")
    parser.add_argument("--min-score", type=float, help="Minimum match score (0.0-1.0)")
    parser.add_argument("--location", help="Facet filter: location")
    parser.add_argument("--availability", help="Facet filter: availability")
    parser.add_argument("--technology", action="append", default=[], help="Facet filter (repeatable)")
    parser.add_argument("--skill", action="append", default=[], help="Facet filter (repeatable)")
    parser.add_argument(
        "--certification", action="append", default=[], help="Facet filter (repeatable)",
    )
    parser.add_argument("--min-years", type=int, help="Facet filter: minimum years of experience")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Candidate search - ranked remote search with client-side refinement",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Run one search and print results")
    _add_common(search_parser)
    _add_query(search_parser)
    search_parser.add_argument("--refine-text", default="", help="Refine loaded results by text")
    search_parser.add_argument(
        "--refine-technology", action="append", default=[], help="Refinement chip (repeatable)",
    )
    search_parser.add_argument(
        "--refine-skill", action="append", default=[], help="Refinement chip (repeatable)",
    )
    search_parser.add_argument(
        "--refine-certification", action="append", default=[], help="Refinement chip (repeatable)",
    )
    search_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request URL without calling the search endpoint",
    )

    # --- link subcommand ---
    link_parser = subparsers.add_parser("link", help="Print the shareable query string for a search")
    _add_common(link_parser)
    _add_query(link_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_query(args: argparse.Namespace, settings: Settings) -> SearchQuery:
    """Merge a restored link (if any) with explicit command line values."""
    base = from_query_string(args.url or "", settings.search)
    f = base.facet_filters
    filters = FacetFilterSet(
        location=args.location or f.location,
        availability=args.availability or f.availability,
        technologies=[*f.technologies, *args.technology],
        skills=[*f.skills, *args.skill],
        certifications=[*f.certifications, *args.certification],
        min_years_experience=args.min_years if args.min_years is not None else f.min_years_experience,
    )
    return SearchQuery(
        text=args.query or base.text,
        top_k=args.top_k if args.top_k is not None else base.top_k,
        min_score=args.min_score if args.min_score is not None else base.min_score,
        facet_filters=filters,
    )


def print_results(reactor: SearchReactor) -> None:
    state = reactor.state
    if state.error:
        print(f"Error: {state.error}")
        return

    print(f"\n{views.result_summary(state)} "
          f"(average match {views.average_match_score(state)}%)")
    for c in views.display_results(state):
        print(f"  [{round(c.match_score * 100):3d}%] {c.name} - {c.title} ({c.location}, {c.availability})")

    for category, label in CATEGORY_LABELS.items():
        chips = reactor.chips(category)  # type: ignore[arg-type]
        if chips:
            rendered = ", ".join(
                f"{'*' if chip.active else ''}{chip.value} ({chip.count})" for chip in chips
            )
            print(f"  {label}: {rendered}")


async def run(args: argparse.Namespace, settings: Settings, query: SearchQuery) -> int:
    """Run one search through the reactor and print the displayed results."""
    async with SearchApiClient(settings.api) as api:
        reactor = SearchReactor(api, settings)
        await reactor.search(query, update_url=False)

    refinement = RefinementFilterSet(
        text=args.refine_text,
        technologies=args.refine_technology,
        skills=args.refine_skill,
        certifications=args.refine_certification,
    )
    if refinement.is_active():
        reactor.apply_refinement(refinement)

    print_results(reactor)
    return 1 if views.has_error(reactor.state) else 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        query = build_query(args, settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "link":
        print(f"?{to_query_string(query, settings.search)}")
        return

    if len(query.text.strip()) < settings.search.min_query_length:
        print(
            f"Error: enter at least {settings.search.min_query_length} characters to search.",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.dry_run:
        print(f"[DRY RUN] {build_search_url(settings.api, query)}")
        return

    sys.exit(asyncio.run(run(args, settings, query)))


if __name__ == "__main__":
    main()
