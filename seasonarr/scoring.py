"""
Preference scoring utilities for Seasonarr.
Scores catalog entries against one or more user preference profiles.
"""

import math
import logging
from typing import Dict, List, Optional, Tuple

from .config import get_scoring_config
from .helpers import round_half_up

logger = logging.getLogger('seasonarr')

BREAKDOWN_FIELDS = ('base_score', 'studio_score', 'director_score', 'genre_score', 'tag_score')

POPULARITY_EPSILON = 1e-9


def empty_breakdown() -> Dict[str, float]:
    return {field: 0.0 for field in BREAKDOWN_FIELDS}


def calculate_base_score(popularity: Optional[float]) -> float:
    """
    Popularity-derived base score.

    log10(popularity) * 2: 1K -> 6.0, 10K -> 8.0, 100K -> 10.0.

    Args:
        popularity: AniList popularity figure (list count)

    Returns:
        Base score, 0 when popularity is missing or not positive
    """
    if not popularity or popularity <= 0:
        return 0.0
    return math.log10(popularity + POPULARITY_EPSILON) * 2


def clamp(value: float, limit: float) -> float:
    """Clamp value into [-limit, limit]."""
    return max(min(value, limit), -limit)


def _preference_value(pref: Dict) -> float:
    value = pref.get('normalized_score')
    return value if value is not None else pref.get('score', 0)


def build_preference_lookup(profile: Dict) -> Dict[str, Dict]:
    """
    Index a profile's categories by name for scoring.

    Returns:
        Dict of category -> {'exact': {name: value}, 'lower': {name.lower(): value}}
    """
    lookup = {}
    for category in ('genres', 'studios', 'directors', 'tags'):
        exact = {}
        lower = {}
        for pref in profile.get(category) or []:
            name = pref.get('name')
            if not name:
                continue
            value = _preference_value(pref)
            exact[name] = value
            lower.setdefault(name.lower(), value)
        lookup[category] = {'exact': exact, 'lower': lower}
    return lookup


def _find_preference(index: Dict, name: str) -> Optional[float]:
    if name in index['exact']:
        return index['exact'][name]
    return index['lower'].get(name.lower())


def _credit_modifier(names: List[str], index: Dict, base_score: float, cap: float) -> Tuple[float, List[str]]:
    """Studio/director modifier: average matched preference as a share of base."""
    matched_values = []
    matched_names = []
    for name in names:
        value = _find_preference(index, name)
        if value is not None:
            matched_values.append(value)
            matched_names.append(name)

    if not matched_values:
        return 0.0, []

    average = sum(matched_values) / len(matched_values)
    impact = (average / 10) * 2 * base_score
    return clamp(impact, base_score * cap), matched_names


def _diminishing_modifier(values: List[float], base_score: float, factor: float, cap: float) -> float:
    """Genre/tag modifier: avg * sqrt(n), scaled by factor and capped."""
    if not values:
        return 0.0
    raw = (sum(values) / len(values)) * math.sqrt(len(values))
    impact = (raw / 10) * base_score * factor
    return clamp(impact, base_score * cap)


def get_directors(anime: Dict) -> List[str]:
    """Names of staff credited in a director role."""
    directors = []
    for edge in (anime.get('staff') or {}).get('edges') or []:
        if 'director' in (edge.get('role') or '').lower():
            name = (((edge.get('node') or {}).get('name')) or {}).get('full')
            if name and name not in directors:
                directors.append(name)
    return directors


def calculate_preference_score(anime: Dict, profile: Dict, config: Dict = None,
                               lookup: Dict = None) -> Tuple[float, Dict]:
    """
    Score one catalog entry against one user's preference profile.

    The total is the popularity base score plus four modifiers, each capped
    as a share of the base: studio and director +/-20%, genre +/-10%, tag +/-15%.

    Args:
        anime: Catalog entry (AniList Media)
        profile: UserPreferenceProfile dict
        config: Root configuration dict (scoring section is read)
        lookup: Pre-built build_preference_lookup(profile), to avoid
            rebuilding it for every entry

    Returns:
        Tuple of (total_score, breakdown dict)

    Raises:
        ValueError: If profile is None
    """
    if profile is None:
        raise ValueError("A preference profile is required to score an anime")

    scoring = get_scoring_config(config)
    caps = scoring['caps']
    lookup = lookup or build_preference_lookup(profile)

    breakdown = empty_breakdown()
    base_score = calculate_base_score(anime.get('popularity'))
    breakdown['base_score'] = base_score

    studios = [s.get('name') for s in (anime.get('studios') or {}).get('nodes') or [] if s.get('name')]
    breakdown['studio_score'], matched_studios = _credit_modifier(
        studios, lookup['studios'], base_score, caps['studio'])

    breakdown['director_score'], matched_directors = _credit_modifier(
        get_directors(anime), lookup['directors'], base_score, caps['director'])

    genre_values = []
    for genre in anime.get('genres') or []:
        value = _find_preference(lookup['genres'], genre)
        if value is not None:
            genre_values.append(value)
    breakdown['genre_score'] = _diminishing_modifier(
        genre_values, base_score, scoring['genre_factor'], caps['genre'])

    tag_values = []
    for tag in anime.get('tags') or []:
        value = _find_preference(lookup['tags'], tag.get('name') or '')
        if value is not None:
            tag_values.append(value * ((tag.get('rank') or 0) / 100))
    breakdown['tag_score'] = _diminishing_modifier(
        tag_values, base_score, scoring['tag_factor'], caps['tag'])

    if matched_studios or matched_directors:
        logger.debug(f"Anime {anime.get('id')} matched studios {matched_studios} and directors {matched_directors}")

    total = sum(breakdown[field] for field in BREAKDOWN_FIELDS)
    return total, breakdown


def calculate_combined_preference_score(user_scores: List[Dict]) -> Dict:
    """
    Combine per-user scores into a group score.

    The combined score and each breakdown field are the arithmetic mean
    across users. Only the score is rounded to one decimal; breakdown
    fields keep full precision, so the shared base score comes out equal
    to every user's base.

    Args:
        user_scores: List of {'username', 'score', 'breakdown'} dicts

    Returns:
        Dict with 'score' and 'breakdown'
    """
    if not user_scores:
        return {'score': 0, 'breakdown': empty_breakdown()}

    n = len(user_scores)
    breakdown = {
        field: sum(u['breakdown'].get(field, 0) for u in user_scores) / n
        for field in BREAKDOWN_FIELDS
    }
    score = round_half_up(sum(u['score'] for u in user_scores) / n, 1)
    return {'score': score, 'breakdown': breakdown}


def select_top_pick(profile: Dict, candidate_ids: List[int], scores: Dict[int, float]) -> Optional[int]:
    """
    Choose a user's top pick among candidates.

    Uses the profile's top_pick when it is among the candidates, otherwise
    the candidate with the highest score for that user.

    Args:
        profile: UserPreferenceProfile dict
        candidate_ids: Ids of the entries being ranked
        scores: Mapping of id -> the user's score

    Returns:
        Chosen id, or None if there are no candidates
    """
    if not candidate_ids:
        return None

    designated = (profile or {}).get('top_pick')
    if designated is not None and designated in candidate_ids:
        return designated

    return max(candidate_ids, key=lambda anime_id: scores.get(anime_id, 0))
