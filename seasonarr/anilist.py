"""
AniList GraphQL client for Seasonarr.
Fetches seasonal catalog pages and user rating histories, with caching.
"""

import time
import logging
from typing import Callable, Dict, List, Optional

from .api_client import BaseAPIClient, AniListError, AniListAPIError, AniListValidationError
from .cache import CacheStore, CatalogKey, RatingsKey
from .config import CATALOG_FORMATS, MAX_PER_PAGE, get_anilist_config
from .display import show_progress
from .helpers import get_next_season, normalize_username

logger = logging.getLogger('seasonarr')

MEDIA_FIELDS = """
        id
        title { romaji english native }
        description
        coverImage { extraLarge large medium color }
        bannerImage
        trailer { id site thumbnail }
        season
        seasonYear
        format
        status
        episodes
        duration
        genres
        tags { id name category rank isGeneralSpoiler isMediaSpoiler isAdult }
        averageScore
        popularity
        startDate { year month day }
        endDate { year month day }
        nextAiringEpisode { airingAt timeUntilAiring episode }
        studios { nodes { id name } }
        staff { edges { role node { id name { full } } } }
        isAdult
"""

PAGE_INFO_FIELDS = "pageInfo { total currentPage lastPage hasNextPage perPage }"

UPCOMING_ANIME_QUERY = f"""
query UpcomingAnime($page: Int, $perPage: Int, $season: MediaSeason, $seasonYear: Int,
                    $sort: [MediaSort], $format_in: [MediaFormat], $genre_in: [String]) {{
    Page(page: $page, perPage: $perPage) {{
        {PAGE_INFO_FIELDS}
        media(type: ANIME, format_in: $format_in, genre_in: $genre_in,
              season: $season, seasonYear: $seasonYear, sort: $sort) {{
            {MEDIA_FIELDS}
        }}
    }}
}}
"""

USER_BY_NAME_QUERY = """
query UserByName($name: String) {
    User(name: $name) {
        id
        name
    }
}
"""

USER_RATINGS_QUERY_TEMPLATE = """
query UserRatedAnime($userId: Int, $page: Int, $perPage: Int) {{
    Page(page: $page, perPage: $perPage) {{
        {page_info}
        mediaList(userId: $userId, type: ANIME, sort: SCORE_DESC) {{
            id
            mediaId
            score(format: {score_format})
            completedAt {{ year month day }}
            createdAt
            user {{ id name }}
            media {{
                {media_fields}
            }}
        }}
    }}
}}
"""


def build_user_ratings_query(score_scale: int = 5) -> str:
    """Ratings query requesting scores on the configured scale."""
    score_format = 'POINT_10' if score_scale == 10 else 'POINT_5'
    return USER_RATINGS_QUERY_TEMPLATE.format(
        page_info=PAGE_INFO_FIELDS, score_format=score_format, media_fields=MEDIA_FIELDS)


def get_member(data, field: str):
    """data[field] when data is a dict, else None."""
    return data.get(field) if isinstance(data, dict) else None


def empty_page(field: str, page: int = 1, per_page: int = 0) -> Dict:
    """Fallback response with no items and zeroed pagination."""
    return {
        'data': {
            'Page': {
                field: [],
                'pageInfo': {
                    'total': 0,
                    'currentPage': page,
                    'lastPage': 1,
                    'hasNextPage': False,
                    'perPage': per_page,
                },
            }
        }
    }


def with_default_user(media_list: List[Dict], user: Dict) -> List[Dict]:
    """Copies of list entries, each carrying a user object."""
    return [entry if entry.get('user') else dict(entry, user=dict(user)) for entry in media_list]


class AniListClient(BaseAPIClient):
    """
    Client for the AniList GraphQL API.

    `request_*` methods raise AniListError subclasses; `fetch_*` methods
    degrade to empty results on failure. Both read and write the cache.
    """

    api_name = "AniList"
    exception_class = AniListAPIError

    def __init__(self, cache: Optional[CacheStore] = None, config: Dict = None):
        """
        Initialize AniList client.

        Args:
            cache: CacheStore for pages and rating snapshots
            config: Root configuration dict (anilist section is read)
        """
        super().__init__()
        settings = get_anilist_config(config)
        self.api_url = settings['api_url']
        self.request_timeout = settings['timeout']
        self.score_scale = settings['score_scale']
        self.max_pages = settings['max_pages']
        self.per_page = settings['per_page']
        self.catalog_per_page = settings['catalog_per_page']
        self.max_retries = settings['max_retries']
        self.rate_limit_delay = settings['rate_limit_delay']
        self.cache = cache if cache is not None else CacheStore()
        self._ratings_query = build_user_ratings_query(self.score_scale)

    def fetch_with_retry(self, fetch: Callable, *args, **kwargs):
        """
        Call fetch, retrying failures with exponential backoff (2s, 4s, 8s...).

        Raises:
            AniListError: The last failure once max_retries retries are spent
        """
        attempt = 0
        while True:
            try:
                return fetch(*args, **kwargs)
            except AniListError as e:
                if attempt >= self.max_retries:
                    logger.error(f"Max retries ({self.max_retries}) reached, giving up: {e}")
                    raise
                attempt += 1
                delay = 2 ** attempt
                logger.warning(f"Retrying fetch ({attempt}/{self.max_retries}) in {delay}s: {e}")
                time.sleep(delay)

    # Catalog

    def request_upcoming_anime(self, page: int = 1, per_page: Optional[int] = None,
                               season: Optional[str] = None, year: Optional[int] = None,
                               genres: Optional[List[str]] = None) -> Dict:
        """
        Fetch one page of a season's catalog, raising on failure.

        Defaults to the season after the current one.

        Returns:
            {'data': {'Page': {'pageInfo': ..., 'media': [...]}}}

        Raises:
            AniListAPIError: Transport or API failure
            AniListValidationError: Response without Page.media
        """
        per_page = min(per_page or self.catalog_per_page, MAX_PER_PAGE)
        if season is None or year is None:
            season, year = get_next_season()
        season = season.upper()

        key = CatalogKey(season, year, page, per_page)
        if not genres:
            cached = self.cache.get_from_cache(key)
            if cached:
                logger.debug(f"Using cached catalog for {season} {year} page {page}")
                return cached

        variables = {
            'page': page,
            'perPage': per_page,
            'season': season,
            'seasonYear': year,
            'sort': ['POPULARITY_DESC', 'START_DATE'],
            'format_in': CATALOG_FORMATS,
        }
        if genres:
            variables['genre_in'] = genres

        logger.info(f"Fetching {season} {year} anime, page {page} ({per_page} per page)")
        data = self._post_graphql(UPCOMING_ANIME_QUERY, variables)

        page_data = get_member(data, 'Page')
        if not isinstance(page_data, dict) or not isinstance(page_data.get('media'), list):
            raise AniListValidationError("Invalid response format: missing Page or media")

        response = {'data': {'Page': page_data}}
        if not genres:
            self.cache.save_to_cache(key, response)
        logger.info(f"Fetched {len(page_data['media'])} anime for {season} {year}")
        return response

    def fetch_upcoming_anime(self, page: int = 1, per_page: Optional[int] = None,
                             season: Optional[str] = None, year: Optional[int] = None) -> Dict:
        """Same as request_upcoming_anime, but degrades to an empty page on failure."""
        try:
            return self.request_upcoming_anime(page, per_page, season, year)
        except AniListError as e:
            logger.error(f"Error fetching upcoming anime: {e}")
            return empty_page('media', page, per_page or self.catalog_per_page)

    # Users

    def fetch_user_id_by_name(self, username: str) -> Optional[int]:
        """
        Resolve a username to its AniList id.

        Returns:
            User id, or None when no such user exists

        Raises:
            AniListAPIError: Transport or API failure
        """
        data = self._post_graphql(USER_BY_NAME_QUERY, {'name': username})
        user = get_member(data, 'User')
        if not isinstance(user, dict) or not user.get('id'):
            logger.warning(f"No AniList user found with username: {username}")
            return None
        logger.debug(f"Found user id {user['id']} for {username}")
        return user['id']

    def request_user_rated_anime(self, user_id: int, page: int = 1, per_page: int = MAX_PER_PAGE) -> Dict:
        """
        Fetch one page of a user's rated list, raising on failure.

        Raises:
            AniListAPIError: Transport or API failure
            AniListValidationError: Response without Page.mediaList
        """
        per_page = min(per_page, MAX_PER_PAGE)
        key = RatingsKey(user_id, page, per_page)

        cached = self.cache.get_from_cache(key)
        if cached:
            logger.debug(f"Using cached ratings for user {user_id} page {page}")
            return cached

        data = self._post_graphql(self._ratings_query, {'userId': user_id, 'page': page, 'perPage': per_page})
        page_data = get_member(data, 'Page')
        if not isinstance(page_data, dict) or not isinstance(page_data.get('mediaList'), list):
            raise AniListValidationError("Invalid response format: missing Page or mediaList")

        response = {'data': {'Page': page_data}}
        self.cache.save_to_cache(key, response)
        return response

    def fetch_user_rated_anime(self, user_id: int, page: int = 1, per_page: int = MAX_PER_PAGE) -> Dict:
        """Same as request_user_rated_anime, but degrades to an empty page on failure."""
        try:
            return self.request_user_rated_anime(user_id, page, per_page)
        except AniListError as e:
            logger.error(f"Error fetching ratings for user {user_id}: {e}")
            return empty_page('mediaList', page, min(per_page, MAX_PER_PAGE))

    def fetch_user_rated_anime_by_name(self, username: str) -> Optional[Dict]:
        """
        Fetch a user's complete rated list.

        Pages are fetched sequentially until an empty or partial page, the
        last page, or the page cap. The merged result is cached per user.

        Args:
            username: AniList username, '@name' or profile URL

        Returns:
            Ratings response with every fetched entry, an empty page on
            upstream failure, or None when the user does not exist
        """
        normalized = normalize_username(username)
        if normalized != username:
            logger.debug(f"Normalized username {username!r} to {normalized!r}")

        try:
            user_id = self.fetch_user_id_by_name(normalized)
        except AniListError as e:
            logger.error(f"Error looking up AniList user {normalized}: {e}")
            return empty_page('mediaList', 1, self.per_page)

        if user_id is None:
            return None

        cached = self.cache.get_complete_user_ratings(user_id)
        if cached and cached['data']['Page']['mediaList']:
            logger.debug(f"Using cached complete ratings for {normalized}")
            return cached

        first = self.fetch_user_rated_anime(user_id, 1, self.per_page)
        first_page = first['data']['Page']
        page_info = first_page.get('pageInfo') or {}
        all_ratings = list(first_page['mediaList'])

        if page_info.get('hasNextPage'):
            pages_limit = min(page_info.get('lastPage') or self.max_pages, self.max_pages)
            for current in range(2, pages_limit + 1):
                show_progress(f"Fetching ratings for {normalized}", current, pages_limit)
                page_ratings = self.fetch_user_rated_anime(user_id, current, self.per_page)['data']['Page']['mediaList']
                if not page_ratings:
                    break
                all_ratings.extend(page_ratings)
                if len(page_ratings) < self.per_page:
                    break

        complete = {
            'data': {
                'Page': {
                    'mediaList': with_default_user(all_ratings, {'id': user_id, 'name': normalized}),
                    'pageInfo': dict(page_info, currentPage=1, hasNextPage=False, lastPage=1),
                }
            }
        }

        if all_ratings:
            self.cache.save_complete_user_ratings(user_id, complete)
        logger.info(f"Fetched {len(all_ratings)} ratings for {normalized}")
        return complete


def create_anilist_client(config: Dict = None, cache: Optional[CacheStore] = None) -> AniListClient:
    """Build an AniListClient from the root configuration."""
    return AniListClient(cache=cache, config=config)
