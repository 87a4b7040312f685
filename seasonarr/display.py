"""
Display and logging utilities for Seasonarr.
Handles colored output, progress indicators, and ranking output formatting.
"""

import sys
import re
import logging
from datetime import date
from typing import Dict, List, Optional

from .helpers import format_airing_countdown, format_date, get_time_until_release

# ANSI color codes
RED = '\033[91m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
CYAN = '\033[96m'
RESET = '\033[0m'

# ANSI pattern for stripping color codes from log output
ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*m')

LOGGER_NAME = 'seasonarr'


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels"""

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, '')
        record.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(record)


def setup_logging(debug: bool = False, config: dict = None) -> logging.Logger:
    """
    Configure logging for the ranking scripts.

    Args:
        debug: If True, set level to DEBUG. Otherwise use config or default to INFO.
        config: Optional config dict that may contain logging.level setting.

    Returns:
        Configured logger instance.
    """
    if debug:
        level = logging.DEBUG
    elif config and (config.get('logging') or {}).get('level'):
        level_str = config['logging']['level'].upper()
        level = getattr(logging, level_str, logging.INFO)
    else:
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter = ColoredFormatter(
        fmt='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Remove existing handlers to avoid duplicates
    root_logger.handlers = []
    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    return logger


def print_status(message: str, level: str = "info"):
    """Print a status message with appropriate color and log it"""
    logger = logging.getLogger(LOGGER_NAME)
    if level == "success":
        print(f"{GREEN}✓ {message}{RESET}")
        logger.info(message)
    elif level == "warning":
        log_warning(message)
    elif level == "error":
        log_error(message)
    else:
        print(message)
        logger.info(message)


def log_info(message: str):
    """Log info and print with cyan color"""
    logging.getLogger(LOGGER_NAME).info(message)
    print(f"{CYAN}{message}{RESET}")


def log_warning(message: str):
    """Log warning and print with yellow color"""
    logging.getLogger(LOGGER_NAME).warning(message)
    print(f"{YELLOW}{message}{RESET}")


def log_error(message: str):
    """Log error and print with red color"""
    logging.getLogger(LOGGER_NAME).error(message)
    print(f"{RED}{message}{RESET}")


def show_progress(prefix: str, current: int, total: int):
    """
    Display progress indicator on same line.

    Args:
        prefix: Text prefix for progress display
        current: Current item number
        total: Total number of items
    """
    pct = int((current / total) * 100) if total > 0 else 0
    msg = f"\r{CYAN}{prefix} {current}/{total} ({pct}%){RESET}"
    sys.stdout.write(msg)
    sys.stdout.flush()
    if current == total:
        sys.stdout.write("\n")


def get_display_title(anime: Dict) -> str:
    """Pick the english title, falling back to romaji and native."""
    title = anime.get('title') or {}
    return title.get('english') or title.get('romaji') or title.get('native') or 'Unknown'


def format_release(anime: Dict, today: Optional[date] = None) -> str:
    """
    Release timing line for an entry, or '' when the catalog has none.

    e.g. "Starts Jan 5, 2026 (3 weeks until release)" or, for airing
    shows, "... | Episode 4 in 2d 5h".
    """
    parts = []
    start = anime.get('startDate')
    if start and start.get('year'):
        parts.append(f"Starts {format_date(start)} ({get_time_until_release(start, today)})")

    next_episode = anime.get('nextAiringEpisode') or {}
    countdown = format_airing_countdown(next_episode.get('timeUntilAiring'))
    if next_episode.get('episode') and countdown:
        parts.append(f"Episode {next_episode['episode']} in {countdown}")

    return ' | '.join(parts)


def format_anime_output(anime: Dict, index: int = None, show_description: bool = False,
                        today: Optional[date] = None) -> str:
    """
    Format a ranked anime entry for display output.

    Args:
        anime: Catalog item, optionally carrying preference_scores or ranking_score
        index: Optional 1-based index for numbered lists
        show_description: Whether to include a truncated description
        today: Reference date for the release countdown

    Returns:
        Formatted string for display
    """
    lines = []

    title = get_display_title(anime)
    title_line = f"{index}. {CYAN}{title}{RESET}" if index else f"{CYAN}{title}{RESET}"

    season = anime.get('season')
    year = anime.get('seasonYear')
    if season and year:
        title_line += f" ({season.title()} {year})"
    elif year:
        title_line += f" ({year})"

    combined = (anime.get('preference_scores') or {}).get('combined')
    if combined:
        title_line += f" - Score: {YELLOW}{combined['score']:.1f}{RESET}"
    elif anime.get('ranking_score') is not None:
        title_line += f" - Rank score: {YELLOW}{anime['ranking_score']:.2f}{RESET}"

    for username in anime.get('is_top_pick_for', []):
        title_line += f" {GREEN}[top pick: {username}]{RESET}"

    lines.append(title_line)

    details = []
    if anime.get('format'):
        details.append(anime['format'])
    if anime.get('episodes'):
        details.append(f"{anime['episodes']} eps")
    if anime.get('popularity'):
        details.append(f"popularity {anime['popularity']:,}")
    if details:
        lines.append(f"  {' | '.join(details)}")

    genres = anime.get('genres') or []
    if genres:
        lines.append(f"  {YELLOW}Genres:{RESET} {', '.join(genres)}")

    studios = [s.get('name') for s in (anime.get('studios') or {}).get('nodes', []) if s.get('name')]
    if studios:
        lines.append(f"  {YELLOW}Studio:{RESET} {', '.join(studios[:2])}")

    release = format_release(anime, today)
    if release:
        lines.append(f"  {release}")

    if show_description:
        description = ANSI_PATTERN.sub('', re.sub(r'<[^>]+>', '', anime.get('description') or ''))
        if description:
            if len(description) > 200:
                description = description[:197] + "..."
            lines.append(f"  {description}")

    return '\n'.join(lines)


def print_score_breakdown(anime: Dict) -> None:
    """
    Print per-user and combined score components for one ranked entry.

    Args:
        anime: Ranked catalog item carrying preference_scores
    """
    scores = anime.get('preference_scores')
    if not scores:
        return

    print(f"\n{CYAN}=== Score Breakdown: {get_display_title(anime)} ==={RESET}")
    rows = [(u['username'], u['score'], u['breakdown']) for u in scores.get('users', [])]
    combined = scores.get('combined')
    if combined:
        rows.append(('combined', combined['score'], combined['breakdown']))

    for label, score, breakdown in rows:
        print(f"  {label}: {YELLOW}{score:.2f}{RESET}")
        print(f"    Base:     {breakdown.get('base_score', 0):.2f}")
        print(f"    Studio:   {breakdown.get('studio_score', 0):+.2f}")
        print(f"    Director: {breakdown.get('director_score', 0):+.2f}")
        print(f"    Genre:    {breakdown.get('genre_score', 0):+.2f}")
        print(f"    Tag:      {breakdown.get('tag_score', 0):+.2f}")


def print_preference_summary(username: str, top_preferences: Dict[str, Dict[str, List[Dict]]]) -> None:
    """
    Print liked and disliked categories for a user.

    Args:
        username: AniList username
        top_preferences: Mapping of category -> {'liked': [...], 'disliked': [...]}
    """
    print(f"\n{GREEN}Preference profile for {username}{RESET}")
    print("-" * 50)
    for category, prefs in top_preferences.items():
        liked = ', '.join(f"{p['name']} ({p['normalized_score']:+.1f})" for p in prefs.get('liked', []))
        disliked = ', '.join(f"{p['name']} ({p['normalized_score']:+.1f})" for p in prefs.get('disliked', []))
        print(f"  {YELLOW}{category.title()}:{RESET}")
        print(f"    Liked:    {liked or '-'}")
        print(f"    Disliked: {disliked or '-'}")
