"""
Seasonal anime ranking command.
Ranks a season's catalog for the configured AniList users and prints the result.
"""

import argparse
import logging
import sys
import traceback
from datetime import datetime
from typing import Dict, List, Optional

from seasonarr import (
    CYAN, GREEN, RED, YELLOW, RESET,
    SEASONS,
    __version__,
    create_anilist_client,
    format_anime_output,
    get_next_season,
    get_top_preferences,
    load_config,
    log_error,
    log_warning,
    print_preference_summary,
    print_score_breakdown,
    setup_logging,
)
from seasonarr.cli import create_cache_store, get_config_path, get_users_from_config, print_runtime

from .base import SeasonRanker
from .filters import SORT_OPTIONS

logger = logging.getLogger('seasonarr')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Seasonal anime rankings from AniList preferences')
    parser.add_argument('usernames', nargs='*', help='AniList users to rank for (defaults to users.list)')
    parser.add_argument('--config', help='Path to config.yml')
    parser.add_argument('--season', type=str.upper, choices=SEASONS, help='Season (defaults to next season)')
    parser.add_argument('--year', type=int, help='Season year')
    parser.add_argument('--page', type=int, default=1, help='Catalog page')
    parser.add_argument('--per-page', type=int, help='Catalog entries per page (max 50)')
    parser.add_argument('--genre', action='append', dest='genres', help='Only show anime with this genre')
    parser.add_argument('--exclude-genre', action='append', dest='exclude_genres', help='Hide anime with this genre')
    parser.add_argument('--format', action='append', dest='formats', help='Only show this format (TV, MOVIE, ...)')
    parser.add_argument('--search', help='Only show anime whose title or description matches')
    parser.add_argument('--sort', choices=SORT_OPTIONS, help='Sort order (defaults to rank)')
    parser.add_argument('--breakdown', action='store_true', help='Print per-user score breakdowns')
    parser.add_argument('--stats', action='store_true', help='Print preference summaries and cache usage')
    parser.add_argument('--description', action='store_true', help='Include descriptions')
    parser.add_argument('--clear-cache', action='store_true', help='Clear all cached data before running')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def build_filters(args: argparse.Namespace) -> Dict:
    """Collect the filter options given on the command line."""
    return {
        'sort': args.sort,
        'genres': args.genres,
        'exclude_genres': args.exclude_genres,
        'formats': args.formats,
        'search': args.search,
    }


def print_storage_stats(cache_store) -> None:
    """Print storage usage per cache category."""
    usage = cache_store.analyze_storage_usage()
    print(f"\n{CYAN}=== Cache Usage ==={RESET}")
    print(f"  {usage['total_entries']} entries, {usage['total_size'] / 1024:.1f}KB "
          f"({usage['percent_used']:.1f}% of quota)")
    for category, stats in sorted(usage['categories'].items()):
        print(f"  {category}: {stats['count']} entries, {stats['size'] / 1024:.1f}KB")


def process_season(ranker: SeasonRanker, args: argparse.Namespace, usernames: List[str]) -> bool:
    """
    Rank and print one catalog page.

    Returns:
        True if the catalog was loaded
    """
    season, year = args.season, args.year
    if season is None or year is None:
        next_season, next_year = get_next_season()
        season = season or next_season
        year = year or next_year

    who = ', '.join(usernames) if usernames else 'popularity only'
    print(f"\n{GREEN}Ranking {season.title()} {year} anime ({who}){RESET}")
    print("-" * 50)

    result = ranker.get_season(season, year, args.page, args.per_page, usernames, build_filters(args))
    if result['error']:
        log_error(f"Could not load {season.title()} {year}: {result['error']}")
        return False

    media = result['media']
    if not media:
        log_warning("No anime found matching your criteria.")
    for anime in media:
        print(format_anime_output(anime, index=anime.get('rank'), show_description=args.description))
        if args.breakdown:
            print_score_breakdown(anime)
        print()

    page_info = result['page_info']
    if page_info:
        print(f"Page {page_info.get('currentPage', args.page)} of {page_info.get('lastPage', 1)} "
              f"({page_info.get('total', len(media))} total)")

    if args.stats:
        for username, profile in result['profiles'].items():
            top = {category: get_top_preferences(profile.get(category) or [])
                   for category in ('genres', 'studios', 'directors', 'tags')}
            print_preference_summary(username, top)
        print_storage_stats(ranker.cache_store)

    return True


def main(argv: Optional[List[str]] = None):
    if sys.stdout.encoding and sys.stdout.encoding.lower() != 'utf-8':
        sys.stdout = open(sys.stdout.fileno(), mode='w', encoding='utf-8', buffering=1)

    args = build_parser().parse_args(argv)

    start_time = datetime.now()
    print(f"{CYAN}Seasonarr v{__version__}{RESET}")
    print("-" * 50)

    config_path = get_config_path(args.config)
    try:
        config = load_config(config_path)
    except Exception as e:
        log_error(f"Could not load config.yml: {e}")
        log_warning(f"Looking for config at: {config_path}")
        sys.exit(1)

    logger = setup_logging(debug=args.debug, config=config)
    logger.debug("Debug logging enabled")

    usernames = args.usernames or get_users_from_config(config)
    if not usernames:
        log_warning("No users configured, ranking by popularity only")

    cache_store = create_cache_store(config)
    if args.clear_cache:
        removed = cache_store.clear_cache()
        print(f"{YELLOW}Cleared {removed} cache entries{RESET}")

    client = create_anilist_client(config, cache_store)
    ranker = SeasonRanker(client, cache_store, config)

    try:
        ok = process_season(ranker, args, usernames)
    except Exception as e:
        print(f"\n{RED}An error occurred: {e}{RESET}")
        print(traceback.format_exc())
        sys.exit(1)

    print_runtime(start_time)
    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
