"""
Preference aggregation for Seasonarr.
Builds per-user genre/studio/director/tag preference profiles from AniList ratings.
"""

import logging
from collections import Counter
from functools import cmp_to_key
from typing import Dict, List, Optional, Union

from .config import get_scoring_config, get_anilist_config
from .helpers import extract_base_franchise_name, round_half_up
from .normalization import (
    score_to_points,
    to_star_rating,
    apply_popularity_multiplier,
    normalize_scores,
)

logger = logging.getLogger('seasonarr')

CATEGORIES = ('genres', 'studios', 'directors', 'tags')


def empty_profile() -> Dict:
    """Profile for a user with no usable ratings."""
    return {'genres': [], 'studios': [], 'directors': [], 'tags': [], 'top_pick': None}


def get_media_list(ratings: Union[Dict, List[Dict], None]) -> List[Dict]:
    """Accept either a ratings page response or a bare list of list entries."""
    if not ratings:
        return []
    if isinstance(ratings, list):
        return ratings
    return ((ratings.get('data') or {}).get('Page') or {}).get('mediaList') or []


def get_entry_title(entry: Dict) -> Optional[str]:
    """English title of a list entry's media, falling back to romaji."""
    title = (entry.get('media') or {}).get('title') or {}
    return title.get('english') or title.get('romaji')


def _compare_entries(a: Dict, b: Dict) -> int:
    a_score = a.get('score') or 0
    b_score = b.get('score') or 0

    # Rated entries before unrated ones
    if a_score > 0 and b_score == 0:
        return -1
    if a_score == 0 and b_score > 0:
        return 1

    if a_score != b_score:
        return -1 if a_score > b_score else 1

    # Earliest completion first
    a_done = a.get('completedAt') or {}
    b_done = b.get('completedAt') or {}
    if a_done.get('year') and b_done.get('year'):
        for part in ('year', 'month', 'day'):
            a_part = a_done.get(part) or 0
            b_part = b_done.get(part) or 0
            if a_part != b_part:
                return a_part - b_part

    if a.get('createdAt') and b.get('createdAt'):
        return a['createdAt'] - b['createdAt']

    return (a.get('id') or 0) - (b.get('id') or 0)


def filter_duplicate_franchises(media_list: List[Dict]) -> List[Dict]:
    """
    Keep one representative list entry per franchise.

    Entries are ordered by rated-first, score descending, earliest
    completion, earliest creation, then lowest id; the first entry seen for
    each base franchise name is kept. Entries without a title are dropped.

    Args:
        media_list: AniList mediaList entries

    Returns:
        New list in representative order
    """
    seen = {}
    result = []
    duplicates = 0

    for entry in sorted(media_list, key=cmp_to_key(_compare_entries)):
        title = get_entry_title(entry)
        if not title:
            continue

        franchise = extract_base_franchise_name(title)
        if franchise in seen:
            duplicates += 1
            logger.debug(f"{title} ({entry.get('score')}) is part of franchise '{franchise}', "
                         f"keeping {get_entry_title(seen[franchise])}")
            continue

        seen[franchise] = entry
        result.append(entry)

    if duplicates:
        logger.debug(f"Identified {duplicates} duplicate franchise entries")
    return result


def _add_contribution(totals: Dict, name: str, points: float, record: Dict) -> None:
    bucket = totals.setdefault(name, {'score': 0, 'count': 0, 'items': []})
    bucket['score'] += points
    bucket['count'] += 1
    bucket['items'].append(record)


def _average_scores(totals: Dict) -> List[Dict]:
    averaged = [
        {
            'name': name,
            'score': round_half_up(bucket['score'] / bucket['count'], 1),
            'count': bucket['count'],
            'contributing_items': bucket['items'],
        }
        for name, bucket in totals.items()
        if bucket['count'] > 0
    ]
    averaged.sort(key=lambda p: p['score'], reverse=True)
    return averaged


def _accumulate(entries: List[Dict], point_values: Dict, score_scale: int) -> Dict[str, Dict]:
    totals = {category: {} for category in CATEGORIES}

    for entry in entries:
        media = entry.get('media') or {}
        stars = to_star_rating(entry.get('score'), score_scale)
        points = score_to_points(stars, point_values)
        title = get_entry_title(entry)
        cover = media.get('coverImage') or {}
        image_url = cover.get('medium') or cover.get('large')

        def record(**extra):
            item = {'title': title, 'score': entry.get('score'), 'point_value': points, 'image_url': image_url}
            item.update(extra)
            return item

        seen_genres = set()
        for genre in media.get('genres') or []:
            if genre in seen_genres:
                continue
            seen_genres.add(genre)
            _add_contribution(totals['genres'], genre, points, record())

        seen_studios = set()
        for studio in (media.get('studios') or {}).get('nodes') or []:
            name = studio.get('name')
            if not name or name in seen_studios:
                continue
            seen_studios.add(name)
            _add_contribution(totals['studios'], name, points, record())

        seen_directors = set()
        for edge in (media.get('staff') or {}).get('edges') or []:
            role = edge.get('role') or ''
            if 'director' not in role.lower():
                continue
            name = (((edge.get('node') or {}).get('name')) or {}).get('full')
            if not name or name in seen_directors:
                continue
            seen_directors.add(name)
            _add_contribution(totals['directors'], name, points, record(role=role))

        seen_tags = set()
        for tag in media.get('tags') or []:
            name = tag.get('name')
            if not name or name in seen_tags:
                continue
            seen_tags.add(name)
            weighted = points * (0.5 + (tag.get('rank') or 0) / 200)
            _add_contribution(totals['tags'], name, weighted, record(modified_value=weighted))

    return totals


def calculate_user_preferences(ratings, username: Optional[str] = None, cache=None,
                               config: Dict = None) -> Dict:
    """
    Build a preference profile from a user's rated list.

    Steps: reuse a cached profile if one exists, collapse franchises, drop
    unrated entries, accumulate points per genre/studio/director/tag,
    average, apply the popularity boost and normalize each category into
    its target range. The result is cached under the username.

    Args:
        ratings: Ratings page response or list of mediaList entries
        username: Owner of the ratings (defaults to the first entry's user)
        cache: Optional CacheStore for read-through/write-back
        config: Root configuration dict

    Returns:
        Profile dict with genres, studios, directors, tags and top_pick
    """
    media_list = get_media_list(ratings)
    if username is None and media_list:
        username = (media_list[0].get('user') or {}).get('name')

    if cache is not None and username:
        cached = cache.get_user_preferences(username)
        if cached:
            logger.debug(f"Using cached preferences for user: {username}")
            return cached

    scoring = get_scoring_config(config)
    score_scale = get_anilist_config(config)['score_scale']

    unique = filter_duplicate_franchises(media_list)
    rated = [entry for entry in unique if (entry.get('score') or 0) > 0]
    logger.debug(f"Filtered {len(media_list)} rated anime down to {len(unique)} franchises, {len(rated)} rated")

    if not rated:
        return empty_profile()

    totals = _accumulate(rated, scoring['point_values'], score_scale)

    profile = {}
    for category in CATEGORIES:
        min_target, max_target = scoring['ranges'][category]
        averaged = _average_scores(totals[category])
        boosted = apply_popularity_multiplier(averaged, scoring['max_popularity_boost'])
        profile[category] = normalize_scores(boosted, min_target, max_target)

    profile['top_pick'] = (rated[0].get('media') or {}).get('id') or rated[0].get('mediaId')

    logger.debug(f"Calculated preferences for {username or 'unknown user'}: "
                 f"{len(profile['genres'])} genres, {len(profile['studios'])} studios, "
                 f"{len(profile['directors'])} directors, {len(profile['tags'])} tags")

    if cache is not None and username:
        cache.save_user_preferences(username, profile)

    return profile


def get_top_preferences(preferences: List[Dict], count: int = 5, min_entries: int = 0) -> Dict[str, List[Dict]]:
    """
    Split a category's preferences into the strongest likes and dislikes.

    Args:
        preferences: PreferenceScore dicts for one category
        count: Number of entries from each end
        min_entries: Minimum backing count required (0 disables the filter)

    Returns:
        Dict with 'liked' (highest first) and 'disliked' (lowest first)
    """
    if min_entries > 0:
        preferences = [p for p in preferences if p.get('count', 0) >= min_entries]

    liked = sorted((p for p in preferences if p['score'] > 0), key=lambda p: p['score'], reverse=True)
    disliked = sorted((p for p in preferences if p['score'] < 0), key=lambda p: p['score'])
    return {'liked': liked[:count], 'disliked': disliked[:count]}


def calculate_rating_stats(ratings) -> Dict:
    """
    Summary statistics over a rated list.

    Returns:
        Dict with count, average_score, distribution, highest_rated,
        lowest_rated and the five most frequent genres
    """
    media_list = get_media_list(ratings)
    if not media_list:
        return {
            'count': 0,
            'average_score': 0,
            'distribution': {},
            'highest_rated': None,
            'lowest_rated': None,
            'preferred_genres': [],
        }

    scores = [entry.get('score') or 0 for entry in media_list]
    highest = max(media_list, key=lambda e: e.get('score') or 0)
    lowest = min(media_list, key=lambda e: e.get('score') or 0)

    genre_counts = Counter(
        genre
        for entry in media_list
        for genre in (entry.get('media') or {}).get('genres') or []
    )
    total_genres = sum(genre_counts.values())

    return {
        'count': len(media_list),
        'average_score': sum(scores) / len(scores),
        'distribution': dict(sorted(Counter(scores).items())),
        'highest_rated': {'anime': highest.get('media'), 'score': highest['score']} if highest.get('score') else None,
        'lowest_rated': {'anime': lowest.get('media'), 'score': lowest['score']} if lowest.get('score') else None,
        'preferred_genres': [
            {'genre': genre, 'count': n, 'percentage': n / total_genres * 100}
            for genre, n in genre_counts.most_common(5)
        ],
    }


def get_preferred_genres(ratings) -> List[str]:
    """Most frequent genres across a rated list."""
    return [item['genre'] for item in calculate_rating_stats(ratings)['preferred_genres']]


def format_rating_stats_summary(stats: Dict) -> str:
    """One-line human readable summary of calculate_rating_stats output."""
    if not stats.get('count'):
        return "No ratings found"

    top_genres = ', '.join(f"{g['genre']} ({g['count']})" for g in stats['preferred_genres'])
    highest = ''
    if stats.get('highest_rated'):
        title = (stats['highest_rated']['anime'] or {}).get('title') or {}
        highest = f"Highest rated: {title.get('english') or title.get('romaji')} ({stats['highest_rated']['score']})"

    return (f"Total ratings: {stats['count']}, Average score: {stats['average_score']:.1f}, "
            f"{highest}, Top genres: {top_genres}")
