"""
General ranking for Seasonarr.
Orders a catalog page without any user preferences, from popularity,
community score, release timing and genre signals.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from .config import get_ranking_config
from .helpers import round_half_up

logger = logging.getLogger('seasonarr')

# Factor value for an entry with no start date
UNKNOWN_RELEASE_FACTOR = 0.5


def popularity_factor(anime: Dict, max_popularity: float) -> float:
    """Popularity as a share of max_popularity, capped at 1."""
    popularity = anime.get('popularity') or 0
    if max_popularity <= 0:
        return 0.0
    return min(popularity / max_popularity, 1.0)


def rating_factor(anime: Dict) -> float:
    """AniList averageScore (0-100) as 0-1."""
    return (anime.get('averageScore') or 0) / 100


def release_date_factor(anime: Dict, today: Optional[date] = None) -> float:
    """
    Favor entries starting soon or started recently.

    Starting within the next 12 months scores highest the closer it is,
    the last 6 months score 0.7 down to 0.5, and older entries fade to 0
    over two years. Unknown start dates score 0.5.
    """
    start = anime.get('startDate') or {}
    if not start.get('year'):
        return UNKNOWN_RELEASE_FACTOR

    today = today or date.today()
    months_since = (today.year - start['year']) * 12 + (today.month - (start.get('month') or 1))

    if -12 < months_since < 0:
        return 1 - abs(months_since) / 12
    if 0 <= months_since <= 6:
        return 0.7 - (months_since / 6) * 0.2
    return max(0.5 - (months_since / 24) * 0.5, 0.0)


def trending_genre_factor(anime: Dict, trending_genres: List[str]) -> float:
    """Share of the entry's genres that are trending."""
    genres = anime.get('genres') or []
    if not genres:
        return 0.0
    return sum(1 for g in genres if g in trending_genres) / len(genres)


def genre_relevance_factor(anime: Dict, preferred_genres: List[str]) -> float:
    """Matches against configured preferred genres, 0.5 when either side is empty."""
    genres = anime.get('genres') or []
    if not genres or not preferred_genres:
        return 0.5
    matches = sum(1 for g in genres if g in preferred_genres)
    return min(matches / min(len(genres), len(preferred_genres)), 1.0)


def calculate_ranking_score(anime: Dict, config: Dict = None,
                            today: Optional[date] = None) -> Tuple[float, Dict[str, float]]:
    """
    General ranking score for one catalog entry.

    Args:
        anime: Catalog entry (AniList Media)
        config: Root configuration dict (ranking section is read)
        today: Reference date for the release factor

    Returns:
        Tuple of (score on 0-10 rounded to 2 decimals, {factor: 0-1 value}
        for every enabled factor)
    """
    ranking = get_ranking_config(config)
    values = {
        'popularity': lambda: popularity_factor(anime, ranking['max_popularity']),
        'score': lambda: rating_factor(anime),
        'release_date': lambda: release_date_factor(anime, today),
        'trending_genres': lambda: trending_genre_factor(anime, ranking['trending_genres']),
        'genre_relevance': lambda: genre_relevance_factor(anime, ranking['preferred_genres']),
    }

    factors = {}
    weighted = 0.0
    total_weight = 0.0
    for name, settings in ranking['factors'].items():
        if not settings.get('enabled') or not settings.get('weight'):
            continue
        factors[name] = values[name]()
        weighted += factors[name] * settings['weight']
        total_weight += settings['weight']

    score = (weighted / total_weight) * 10 if total_weight > 0 else 0.0
    return round_half_up(score, 2), factors


def rank_by_general_score(anime_list: List[Dict], config: Dict = None,
                          today: Optional[date] = None) -> List[Dict]:
    """
    Order catalog entries by general ranking score.

    Ties keep popularity order. Each entry gains ranking_score,
    ranking_factors and rank.

    Returns:
        New list of new dicts; the input entries are not modified
    """
    scored = []
    for anime in anime_list:
        score, factors = calculate_ranking_score(anime, config, today)
        scored.append(dict(anime, ranking_score=score, ranking_factors=factors))

    scored.sort(key=lambda a: (a['ranking_score'], a.get('popularity') or 0), reverse=True)
    for rank, anime in enumerate(scored, 1):
        anime['rank'] = rank

    logger.info(f"Ranked {len(scored)} anime by general score")
    return scored
