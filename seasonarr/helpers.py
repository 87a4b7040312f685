"""
Miscellaneous helper utilities for Seasonarr.
"""

import math
import os
import re
from datetime import date, datetime
from functools import lru_cache
from typing import Dict, Optional, Tuple

SEASONS = ['WINTER', 'SPRING', 'SUMMER', 'FALL']

# Applied in order, each at most once, to a lowercased title
FRANCHISE_SUFFIX_PATTERNS = [
    re.compile(r'\s+season\s+\d+$'),
    re.compile(r'\s+s\d+$'),
    re.compile(r'\s+\d+nd\s+season$'),
    re.compile(r'\s+\d+rd\s+season$'),
    re.compile(r'\s+\d+th\s+season$'),
    re.compile(r'\s+\d+st\s+season$'),
    re.compile(r'\s+part\s+\d+$'),
    re.compile(r'\s+ii$'),
    re.compile(r'\s+iii$'),
    re.compile(r'\s+iv$'),
    re.compile(r'\s+v$'),
    re.compile(r'\s+2$'),
    re.compile(r'\s+3$'),
    re.compile(r'\s+\d{4}$'),
    re.compile(r'\s+第\d+期$'),
    re.compile(r'：.*$'),
    re.compile(r'\s*[:：]\s*.*$'),
]

ANILIST_PROFILE_URL = re.compile(r'anilist\.co/user/([^/]+)')


@lru_cache(maxsize=1)
def get_project_root() -> str:
    """
    Get the project root directory path.

    Returns:
        Absolute path to the project root (parent of seasonarr/).
    """
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to `digits` decimals with halves rounded towards +infinity."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def extract_base_franchise_name(title: str) -> str:
    """
    Reduce a title to its franchise base name.

    Strips season, part and sequel markers, trailing years and
    subtitles after a colon so that "Attack on Titan Season 3" and
    "Attack on Titan: Final Season" both reduce to "attack on titan".

    Args:
        title: Original title (english or romaji)

    Returns:
        Lowercased base name
    """
    if not title:
        return ''

    base = title.lower()
    for pattern in FRANCHISE_SUFFIX_PATTERNS:
        base = pattern.sub('', base, count=1)
    return base.strip()


def normalize_username(username: str) -> str:
    """
    Clean up a username typed or pasted by the user.

    Accepts "@name", "name/" and full profile URLs such as
    "https://anilist.co/user/name/".
    """
    normalized = (username or '').strip()

    if normalized.startswith('@'):
        normalized = normalized[1:]

    if 'anilist.co/user/' in normalized:
        match = ANILIST_PROFILE_URL.search(normalized)
        if match:
            normalized = match.group(1)

    if normalized.endswith('/'):
        normalized = normalized[:-1]

    return normalized


def get_current_season(now: Optional[datetime] = None) -> Tuple[str, int]:
    """
    Get the airing season for a date.

    Args:
        now: Date to evaluate (defaults to today)

    Returns:
        Tuple of (season, year)
    """
    now = now or datetime.now()
    month = now.month

    if 3 <= month <= 5:
        season = 'SPRING'
    elif 6 <= month <= 8:
        season = 'SUMMER'
    elif 9 <= month <= 11:
        season = 'FALL'
    else:
        season = 'WINTER'

    return season, now.year


def get_next_season(season: Optional[str] = None, year: Optional[int] = None) -> Tuple[str, int]:
    """
    Get the season following the given one (or the current one).

    FALL rolls over into WINTER of the next year.
    """
    if season is None or year is None:
        season, year = get_current_season()

    season = season.upper()
    if season not in SEASONS:
        raise ValueError(f"Unknown season: {season}")

    if season == 'FALL':
        return 'WINTER', year + 1
    return SEASONS[SEASONS.index(season) + 1], year


def get_trailer_embed_url(trailer: Optional[Dict], autoplay: bool = False) -> str:
    """
    Build an embeddable player URL for a trailer descriptor.

    Args:
        trailer: Dict with 'id' and 'site' keys from the catalog
        autoplay: Whether the embed should start playing

    Returns:
        Embed URL, or empty string for unknown sites
    """
    if not trailer or not trailer.get('id') or not trailer.get('site'):
        return ''

    video_id = trailer['id']
    site = trailer['site'].lower()
    autoplay_param = '?autoplay=1&mute=0' if autoplay else ''

    if site == 'youtube':
        return f"https://www.youtube.com/embed/{video_id}{autoplay_param}"
    elif site == 'dailymotion':
        return f"https://www.dailymotion.com/embed/video/{video_id}{autoplay_param}"
    elif site == 'vimeo':
        return f"https://player.vimeo.com/video/{video_id}{autoplay_param or '?'}"
    elif site == 'bilibili':
        return f"https://player.bilibili.com/player.html?aid={video_id}{'&autoplay=1' if autoplay else ''}"

    return ''


def to_date(parts: Optional[Dict], require_day: bool = False) -> Optional[date]:
    """
    Convert an AniList fuzzy date ({'year', 'month', 'day'}) to a date.

    A missing day counts as the 1st unless require_day is set.

    Returns:
        The date, or None when the parts are incomplete or invalid
    """
    parts = parts or {}
    year, month, day = parts.get('year'), parts.get('month'), parts.get('day')
    if not year or not month or (require_day and not day):
        return None
    try:
        return date(year, month, day or 1)
    except (TypeError, ValueError):
        return None


def format_date(parts: Optional[Dict]) -> str:
    """Readable form of a fuzzy date: 'Jan 5, 2026', 'Jan 2026' or 'TBA'."""
    start = to_date(parts)
    if start is None:
        return 'TBA'
    if parts.get('day'):
        return f"{start:%b} {start.day}, {start.year}"
    return f"{start:%b} {start.year}"


def get_days_until(parts: Optional[Dict], today: Optional[date] = None) -> Optional[int]:
    """Days from today to a fully specified fuzzy date, negative once it has passed."""
    target = to_date(parts, require_day=True)
    if target is None:
        return None
    return (target - (today or date.today())).days


def get_time_until_release(parts: Optional[Dict], today: Optional[date] = None) -> str:
    """
    Describe how far away a release is.

    Returns:
        'Release date TBA', 'Released', 'Releasing today!', 'Releasing tomorrow',
        'N days', '1 week', 'N weeks', '1 month' or 'N months until release'
    """
    days = get_days_until(parts, today)

    if days is None:
        return 'Release date TBA'
    if days < 0:
        return 'Released'
    if days == 0:
        return 'Releasing today!'
    if days == 1:
        return 'Releasing tomorrow'
    if days < 7:
        return f"{days} days until release"
    if days < 14:
        return '1 week until release'
    if days < 30:
        return f"{days // 7} weeks until release"
    if days < 60:
        return '1 month until release'
    return f"{days // 30} months until release"


def format_airing_countdown(seconds: Optional[int]) -> str:
    """Compact countdown for nextAiringEpisode.timeUntilAiring: '3d 4h', '5h 20m' or '12m'."""
    if seconds is None or seconds < 0:
        return ''
    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
