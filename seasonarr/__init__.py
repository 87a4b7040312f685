"""
Seasonarr Core Package.

This package contains the preference scoring and caching engine, organized by responsibility.
All public functions are re-exported here for convenience.
"""

# Config utilities
from .config import (
    __version__,
    ANILIST_API_URL,
    CACHE_EXPIRATION_SECONDS,
    MAX_ENTRY_BYTES,
    STORAGE_QUOTA_BYTES,
    EVICTION_FRACTION,
    QUOTA_EVICTION_FRACTION,
    CACHE_PREFIX,
    COMPLETE_RATINGS_PREFIX,
    USER_PREFERENCES_PREFIX,
    ANIME_PREFERENCES_PREFIX,
    POINT_VALUES,
    MAX_POPULARITY_BOOST,
    CATEGORY_RANGES,
    IMPACT_CAPS,
    MAX_RATING_PAGES,
    MAX_PER_PAGE,
    RANKING_FACTORS,
    TRENDING_GENRES,
    get_config_section,
    load_config,
    get_scoring_config,
    get_cache_config,
    get_anilist_config,
    get_ranking_config,
)

# Display utilities
from .display import (
    RED,
    GREEN,
    YELLOW,
    CYAN,
    RESET,
    ANSI_PATTERN,
    ColoredFormatter,
    setup_logging,
    print_status,
    log_info,
    log_warning,
    log_error,
    show_progress,
    get_display_title,
    format_release,
    format_anime_output,
    print_score_breakdown,
    print_preference_summary,
)

# Helper utilities
from .helpers import (
    SEASONS,
    get_project_root,
    round_half_up,
    extract_base_franchise_name,
    normalize_username,
    get_current_season,
    get_next_season,
    get_trailer_embed_url,
    format_date,
    get_days_until,
    get_time_until_release,
    format_airing_countdown,
)

# Score normalization
from .normalization import (
    score_to_points,
    to_star_rating,
    apply_popularity_multiplier,
    normalize_scores,
)

# Storage media
from .storage import (
    StorageQuotaExceeded,
    storage_size,
    MemoryStorage,
    JsonFileStorage,
)

# Cache store
from .cache import (
    CatalogKey,
    RatingsKey,
    CacheStore,
    generate_cache_key,
    get_key_namespace,
    compress_data,
    decompress_data,
    optimize_preferences_payload,
    reduce_preferences_payload,
    simplify_ratings_page,
)

# Preference aggregation
from .preferences import (
    empty_profile,
    filter_duplicate_franchises,
    calculate_user_preferences,
    get_top_preferences,
    calculate_rating_stats,
    get_preferred_genres,
    format_rating_stats_summary,
)

# Preference scoring
from .scoring import (
    BREAKDOWN_FIELDS,
    calculate_base_score,
    build_preference_lookup,
    calculate_preference_score,
    calculate_combined_preference_score,
    select_top_pick,
)

# General ranking
from .ranking import (
    calculate_ranking_score,
    rank_by_general_score,
)

# AniList client
from .api_client import (
    AniListError,
    AniListAPIError,
    AniListValidationError,
    BaseAPIClient,
)
from .anilist import (
    AniListClient,
    empty_page,
    create_anilist_client,
)

__all__ = [
    # Config
    '__version__',
    'ANILIST_API_URL',
    'CACHE_EXPIRATION_SECONDS',
    'MAX_ENTRY_BYTES',
    'STORAGE_QUOTA_BYTES',
    'EVICTION_FRACTION',
    'QUOTA_EVICTION_FRACTION',
    'CACHE_PREFIX',
    'COMPLETE_RATINGS_PREFIX',
    'USER_PREFERENCES_PREFIX',
    'ANIME_PREFERENCES_PREFIX',
    'POINT_VALUES',
    'MAX_POPULARITY_BOOST',
    'CATEGORY_RANGES',
    'IMPACT_CAPS',
    'MAX_RATING_PAGES',
    'MAX_PER_PAGE',
    'RANKING_FACTORS',
    'TRENDING_GENRES',
    'get_config_section',
    'load_config',
    'get_scoring_config',
    'get_cache_config',
    'get_anilist_config',
    'get_ranking_config',
    # Display
    'RED',
    'GREEN',
    'YELLOW',
    'CYAN',
    'RESET',
    'ANSI_PATTERN',
    'ColoredFormatter',
    'setup_logging',
    'print_status',
    'log_info',
    'log_warning',
    'log_error',
    'show_progress',
    'get_display_title',
    'format_release',
    'format_anime_output',
    'print_score_breakdown',
    'print_preference_summary',
    # Helpers
    'SEASONS',
    'get_project_root',
    'round_half_up',
    'extract_base_franchise_name',
    'normalize_username',
    'get_current_season',
    'get_next_season',
    'get_trailer_embed_url',
    'format_date',
    'get_days_until',
    'get_time_until_release',
    'format_airing_countdown',
    # Normalization
    'score_to_points',
    'to_star_rating',
    'apply_popularity_multiplier',
    'normalize_scores',
    # Storage
    'StorageQuotaExceeded',
    'storage_size',
    'MemoryStorage',
    'JsonFileStorage',
    # Cache
    'CatalogKey',
    'RatingsKey',
    'CacheStore',
    'generate_cache_key',
    'get_key_namespace',
    'compress_data',
    'decompress_data',
    'optimize_preferences_payload',
    'reduce_preferences_payload',
    'simplify_ratings_page',
    # Preferences
    'empty_profile',
    'filter_duplicate_franchises',
    'calculate_user_preferences',
    'get_top_preferences',
    'calculate_rating_stats',
    'get_preferred_genres',
    'format_rating_stats_summary',
    # Scoring
    'BREAKDOWN_FIELDS',
    'calculate_base_score',
    'build_preference_lookup',
    'calculate_preference_score',
    'calculate_combined_preference_score',
    'select_top_pick',
    # Ranking
    'calculate_ranking_score',
    'rank_by_general_score',
    # AniList
    'AniListError',
    'AniListAPIError',
    'AniListValidationError',
    'BaseAPIClient',
    'AniListClient',
    'empty_page',
    'create_anilist_client',
]
