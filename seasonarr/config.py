"""
Configuration utilities for Seasonarr.
Handles config loading, section access, and scoring/cache defaults.
"""

import os
import copy
import yaml
from typing import Dict

# Project version - single source of truth
__version__ = "1.0.0"

# AniList GraphQL endpoint
ANILIST_API_URL = "https://graphql.anilist.co"

# Cache lifetime and storage limits
CACHE_EXPIRATION_SECONDS = 24 * 60 * 60     # Entries older than 24h are treated as missing
MAX_ENTRY_BYTES = 50 * 1024                 # Per-entry ceiling (UTF-16 sized)
STORAGE_QUOTA_BYTES = 5 * 1024 * 1024       # Total quota assumed for the storage medium
EVICTION_FRACTION = 0.2                     # Default share of entries removed by a sweep
QUOTA_EVICTION_FRACTION = 0.3               # Share removed when a write hits the quota

# Cache key prefixes
CACHE_PREFIX = "anilist_"
COMPLETE_RATINGS_PREFIX = "anilist_complete_user_"
USER_PREFERENCES_PREFIX = "anilist_user_prefs_"
ANIME_PREFERENCES_PREFIX = "anilist_anime_prefs_"

# Star rating -> preference points. Strong likes outweigh strong dislikes ~2:1.
POINT_VALUES = {
    5: 10,
    4: 3,
    3: 1,
    2: -1,
    1: -5,
}

# Popularity boost ceiling applied before normalization (percent)
MAX_POPULARITY_BOOST = 20

# Normalization target ranges per category (min, max)
CATEGORY_RANGES = {
    'genres': (-10, 10),
    'studios': (-20, 20),
    'directors': (-20, 20),
    'tags': (-10, 10),
}

# Modifier caps as a fraction of the base score
IMPACT_CAPS = {
    'studio': 0.2,
    'director': 0.2,
    'genre': 0.1,
    'tag': 0.15,
}

# Scale factors for the diminishing-returns modifiers
GENRE_IMPACT_FACTOR = 0.1
TAG_IMPACT_FACTOR = 0.15

# AniList fetch limits
MAX_RATING_PAGES = 10           # Hard cap on pages fetched for one user's history
MAX_PER_PAGE = 50               # AniList page size limit
DEFAULT_CATALOG_PER_PAGE = 20
MAX_FETCH_RETRIES = 3
REQUEST_TIMEOUT = 30
RATE_LIMIT_DELAY = 0.7          # AniList allows ~90 requests per minute

# Anime formats requested from the catalog
CATALOG_FORMATS = ['TV', 'MOVIE', 'OVA', 'ONA', 'SPECIAL']

# General ranking used when no users are given. Each factor scores 0-1;
# the ranking score is the weighted mean of enabled factors on a 0-10 scale.
RANKING_FACTORS = {
    'popularity': {'weight': 0.3, 'enabled': True},
    'score': {'weight': 0.2, 'enabled': True},
    'release_date': {'weight': 0.2, 'enabled': True},
    'trending_genres': {'weight': 0.15, 'enabled': True},
    'genre_relevance': {'weight': 0.1, 'enabled': False},
}
MAX_RANKING_POPULARITY = 50000      # Popularity at which the popularity factor saturates
TRENDING_GENRES = [
    'Action', 'Fantasy', 'Sci-Fi', 'Romance', 'Comedy',
    'Supernatural', 'Drama', 'Mystery', 'Thriller',
]


def get_config_section(config: Dict, key: str, default: Dict = None) -> Dict:
    """
    Get a config section case-insensitively.

    Args:
        config: The configuration dictionary
        key: The key to look for (will check lowercase and uppercase)
        default: Default value if key not found

    Returns:
        The config section or default value
    """
    if default is None:
        default = {}
    if not config:
        return default
    section = config.get(key.lower(), config.get(key.upper(), default))
    return section if section is not None else default


def _load_tuning_config(config: dict, config_dir: str) -> dict:
    """
    Merge an optional tuning.yml into the main config.

    Sections in tuning.yml take precedence over config.yml.
    """
    tuning_path = os.path.join(config_dir, 'tuning.yml')
    if os.path.exists(tuning_path):
        try:
            with open(tuning_path, 'r', encoding='utf-8') as f:
                tuning = yaml.safe_load(f)
                if tuning:
                    for key, value in tuning.items():
                        config[key] = value
                    print(f"  Loaded tuning.yml")
        except Exception as e:
            print(f"\033[93mWarning: Could not load tuning.yml: {e}\033[0m")

    return config


def load_config(config_path: str) -> dict:
    """
    Load YAML configuration with optional tuning file support.

    Environment variables take precedence over all config values:
        ANILIST_API_URL      -> anilist.api_url
        SEASONARR_CACHE_DIR  -> cache.dir
        SEASONARR_USERS      -> users.list

    Args:
        config_path: Path to config.yml file

    Returns:
        Parsed and merged config dictionary
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as file:
            config = yaml.safe_load(file) or {}
            print(f"Successfully loaded configuration from {config_path}")

        config_dir = os.path.dirname(config_path) or '.'
        config = _load_tuning_config(config, config_dir)

        env_overrides = [
            ('ANILIST_API_URL', 'anilist', 'api_url'),
            ('SEASONARR_CACHE_DIR', 'cache', 'dir'),
            ('SEASONARR_USERS', 'users', 'list'),
        ]

        for env_var, section, key in env_overrides:
            value = os.environ.get(env_var)
            if value:
                if not isinstance(config.get(section), dict):
                    config[section] = {}
                config[section][key] = value
                print(f"  Using {env_var} from environment")

        return config
    except Exception as e:
        print(f"\033[91mError loading config from {config_path}: {e}\033[0m")
        raise


def get_scoring_config(config: dict = None) -> dict:
    """
    Get scoring constants with optional overrides from the scoring section.

    Args:
        config: Root configuration dict

    Returns:
        Dict with point_values, max_popularity_boost, ranges, caps and
        impact factors, always fully populated
    """
    scoring = get_config_section(config, 'scoring')

    point_values = dict(POINT_VALUES)
    for stars, points in (scoring.get('point_values') or {}).items():
        point_values[int(stars)] = points

    ranges = copy.deepcopy(CATEGORY_RANGES)
    for category, bounds in (scoring.get('ranges') or {}).items():
        if category in ranges and bounds:
            ranges[category] = (bounds[0], bounds[1])

    caps = dict(IMPACT_CAPS)
    caps.update(scoring.get('caps') or {})

    return {
        'point_values': point_values,
        'max_popularity_boost': scoring.get('max_popularity_boost', MAX_POPULARITY_BOOST),
        'ranges': ranges,
        'caps': caps,
        'genre_factor': scoring.get('genre_factor', GENRE_IMPACT_FACTOR),
        'tag_factor': scoring.get('tag_factor', TAG_IMPACT_FACTOR),
    }


def get_cache_config(config: dict = None) -> dict:
    """
    Get cache settings with defaults.

    Args:
        config: Root configuration dict

    Returns:
        Dict with dir, persistent, expiration, size limits and codec
    """
    cache = get_config_section(config, 'cache')
    return {
        'dir': cache.get('dir', 'cache'),
        'persistent': cache.get('persistent', True),
        'expiration_seconds': cache.get('expiration_hours', CACHE_EXPIRATION_SECONDS / 3600) * 3600,
        'max_entry_bytes': cache.get('max_entry_kb', MAX_ENTRY_BYTES / 1024) * 1024,
        'quota_bytes': cache.get('quota_mb', STORAGE_QUOTA_BYTES / (1024 * 1024)) * 1024 * 1024,
        'compression': cache.get('compression', 'none'),
    }


def get_anilist_config(config: dict = None) -> dict:
    """
    Get AniList client settings with defaults.

    Args:
        config: Root configuration dict

    Returns:
        Dict with api_url, score_scale, page limits, retries, timeout and request spacing
    """
    anilist = get_config_section(config, 'anilist')
    score_scale = int(anilist.get('score_scale', 5))
    return {
        'api_url': anilist.get('api_url', ANILIST_API_URL),
        'score_scale': 10 if score_scale == 10 else 5,
        'max_pages': anilist.get('max_pages', MAX_RATING_PAGES),
        'per_page': min(anilist.get('per_page', MAX_PER_PAGE), MAX_PER_PAGE),
        'catalog_per_page': anilist.get('catalog_per_page', DEFAULT_CATALOG_PER_PAGE),
        'max_retries': anilist.get('max_retries', MAX_FETCH_RETRIES),
        'timeout': anilist.get('timeout', REQUEST_TIMEOUT),
        'rate_limit_delay': anilist.get('rate_limit_delay', RATE_LIMIT_DELAY),
    }


def get_ranking_config(config: dict = None) -> dict:
    """
    Get general ranking settings with optional overrides from the ranking section.

    Factor overrides may set weight and/or enabled; unknown factors are ignored.

    Args:
        config: Root configuration dict

    Returns:
        Dict with factors, max_popularity, trending_genres and preferred_genres
    """
    ranking = get_config_section(config, 'ranking')

    factors = copy.deepcopy(RANKING_FACTORS)
    for name, override in (ranking.get('factors') or {}).items():
        if name in factors and isinstance(override, dict):
            factors[name].update({k: v for k, v in override.items() if k in ('weight', 'enabled')})

    return {
        'factors': factors,
        'max_popularity': ranking.get('max_popularity', MAX_RANKING_POPULARITY),
        'trending_genres': list(ranking.get('trending_genres') or TRENDING_GENRES),
        'preferred_genres': list(ranking.get('preferred_genres') or []),
    }
