"""
Client-side sorting, filtering and pagination for ranked catalog pages.
"""

import math
import logging
from typing import Dict, List, Optional

logger = logging.getLogger('seasonarr')

SORT_OPTIONS = ('rank', 'score', 'popularity', 'release_date')

# Missing dates sort after every real date
UNKNOWN_YEAR = 9999


def _release_key(anime: Dict):
    start = anime.get('startDate')
    if not start:
        return (1, UNKNOWN_YEAR, 1, 1)
    return (0, start.get('year') or UNKNOWN_YEAR, start.get('month') or 1, start.get('day') or 1)


def _combined_score(anime: Dict) -> float:
    combined = (anime.get('preference_scores') or {}).get('combined')
    if combined:
        return combined.get('score') or 0
    return anime.get('ranking_score') or 0


def sort_anime(anime_list: List[Dict], by: str = 'popularity') -> List[Dict]:
    """
    Return a sorted copy of a catalog list.

    Args:
        anime_list: Catalog entries
        by: 'rank' (ascending, unranked last), 'score' (combined score,
            else general ranking score, descending), 'popularity'
            (descending) or 'release_date' (ascending, unknown dates
            last). Anything else keeps API order.

    Returns:
        New list
    """
    if by == 'rank':
        return sorted(anime_list, key=lambda a: a.get('rank') or math.inf)
    elif by == 'score':
        return sorted(anime_list, key=_combined_score, reverse=True)
    elif by == 'popularity':
        return sorted(anime_list, key=lambda a: a.get('popularity') or 0, reverse=True)
    elif by == 'release_date':
        return sorted(anime_list, key=_release_key)

    logger.debug(f"Unknown sort option '{by}', keeping API order")
    return list(anime_list)


def filter_by_genres(anime_list: List[Dict], genres: Optional[List[str]]) -> List[Dict]:
    """Keep entries carrying every requested genre."""
    if not genres:
        return list(anime_list)
    return [a for a in anime_list if all(g in (a.get('genres') or []) for g in genres)]


def exclude_genres(anime_list: List[Dict], genres: Optional[List[str]]) -> List[Dict]:
    """Drop entries carrying any of the given genres (case-insensitive)."""
    if not genres:
        return list(anime_list)
    excluded = {g.lower() for g in genres}
    return [a for a in anime_list if not excluded & {g.lower() for g in a.get('genres') or []}]


def filter_by_formats(anime_list: List[Dict], formats: Optional[List[str]]) -> List[Dict]:
    """Keep entries whose format is one of the given formats."""
    if not formats:
        return list(anime_list)
    wanted = {f.upper() for f in formats}
    return [a for a in anime_list if (a.get('format') or '').upper() in wanted]


def filter_by_search(anime_list: List[Dict], query: Optional[str]) -> List[Dict]:
    """Keep entries whose titles or description contain the query, ignoring case."""
    query = (query or '').strip().lower()
    if not query:
        return list(anime_list)

    def matches(anime: Dict) -> bool:
        title = anime.get('title') or {}
        texts = [title.get('english'), title.get('romaji'), title.get('native'), anime.get('description')]
        return any(text and query in text.lower() for text in texts)

    return [a for a in anime_list if matches(a)]


def apply_all_filters(anime_list: List[Dict], filters: Optional[Dict] = None) -> List[Dict]:
    """
    Sort, then apply every filter present in a filter dict.

    Recognized keys: sort, genres, exclude_genres, formats, search.
    """
    filters = filters or {}
    result = sort_anime(anime_list, filters['sort']) if filters.get('sort') else list(anime_list)
    result = filter_by_genres(result, filters.get('genres'))
    result = exclude_genres(result, filters.get('exclude_genres'))
    result = filter_by_formats(result, filters.get('formats'))
    result = filter_by_search(result, filters.get('search'))

    if len(result) != len(anime_list):
        logger.debug(f"Filters kept {len(result)} of {len(anime_list)} anime")
    return result


def calculate_total_pages(total: int, per_page: int) -> int:
    """Number of pages needed for total items, at least 1."""
    if per_page <= 0:
        return 1
    return max(1, math.ceil(total / per_page))


def paginate(anime_list: List[Dict], page: int = 1, per_page: int = 20) -> List[Dict]:
    """Slice one 1-based page out of a list."""
    if page < 1 or per_page <= 0:
        return []
    start = (page - 1) * per_page
    return anime_list[start:start + per_page]
