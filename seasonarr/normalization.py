"""
Score normalization utilities for Seasonarr.
Converts raw per-category point totals into bounded, comparable scores.
"""

import math
import logging
from typing import Dict, List

from .config import POINT_VALUES, MAX_POPULARITY_BOOST
from .helpers import round_half_up

logger = logging.getLogger('seasonarr')


def score_to_points(stars: int, point_values: Dict[int, int] = None) -> int:
    """
    Convert a 1-5 star rating into signed preference points.

    Args:
        stars: Star rating (1-5)
        point_values: Optional override of the star -> points mapping

    Returns:
        Point value (10, 3, 1, -1, -5), or 0 for anything else
    """
    mapping = point_values or POINT_VALUES
    return mapping.get(stars, 0)


def to_star_rating(score: float, scale: int = 5) -> int:
    """
    Convert an AniList list score into a 0-5 star rating.

    Args:
        score: Raw list score
        scale: 5 for POINT_5 lists, 10 for POINT_10 lists

    Returns:
        Star rating, 0 meaning unrated
    """
    if not score:
        return 0
    if scale == 10:
        return int(round_half_up(score / 2))
    return int(score)


def apply_popularity_multiplier(scores: List[Dict], max_boost_percent: float = MAX_POPULARITY_BOOST) -> List[Dict]:
    """
    Boost scores backed by many rated items.

    boost = 1 + (count / max_count) * (max_boost_percent / 100), so the
    most-watched category gets the full ceiling and a one-off gets almost none.

    Args:
        scores: List of dicts with 'score' and 'count'
        max_boost_percent: Boost ceiling in percent

    Returns:
        New list of dicts with 'popularity_adjusted_score' added
    """
    if not scores:
        return []

    max_count = max(item.get('count', 0) for item in scores)
    adjusted = []
    for item in scores:
        boost = 1 + (item.get('count', 0) / max_count) * (max_boost_percent / 100) if max_count > 0 else 1
        entry = dict(item)
        entry['popularity_adjusted_score'] = round_half_up(item['score'] * boost, 1)
        adjusted.append(entry)
    return adjusted


def _score_to_use(item: Dict) -> float:
    adjusted = item.get('popularity_adjusted_score')
    return adjusted if adjusted is not None else item.get('score', 0)


def normalize_scores(scores: List[Dict], min_target: float = -10, max_target: float = 10) -> List[Dict]:
    """
    Map scores into [min_target, max_target] with a blended linear/log curve.

    Positive scores are normalized against the largest positive score,
    negative scores against the largest magnitude negative score:

        blend = 0.5 * (s / max) + 0.5 * ln(s + 1) / ln(max + 1)

    Zero stays zero. If every score is equal, every output is zero.

    Args:
        scores: List of dicts with 'score' and optionally 'popularity_adjusted_score'
        min_target: Lower bound of the target range (<= 0)
        max_target: Upper bound of the target range (>= 0)

    Returns:
        New list in input order with 'normalized_score' added
    """
    if not scores:
        return []

    values = [_score_to_use(item) for item in scores]

    if max(values) == min(values):
        logger.debug(f"All {len(values)} scores equal, normalizing to 0")
        return [dict(item, normalized_score=0) for item in scores]

    max_positive = max((v for v in values if v > 0), default=0)
    max_negative = max((abs(v) for v in values if v < 0), default=0)

    normalized = []
    for item, value in zip(scores, values):
        if value > 0:
            linear = value / max_positive
            log_pct = math.log(value + 1) / math.log(max_positive + 1)
            result = (0.5 * linear + 0.5 * log_pct) * max_target
        elif value < 0:
            magnitude = abs(value)
            linear = magnitude / max_negative
            log_pct = math.log(magnitude + 1) / math.log(max_negative + 1)
            result = (0.5 * linear + 0.5 * log_pct) * min_target
        else:
            result = 0

        result = min(max(round_half_up(result, 2), min_target), max_target)
        normalized.append(dict(item, normalized_score=result))

    return normalized
