"""
Season ranking orchestration for Seasonarr.
Ties together the AniList client, the cache store, preference profiles and scoring.
"""

import logging
import random
from typing import Dict, List, Optional

from seasonarr import (
    AniListClient,
    AniListError,
    CacheStore,
    build_preference_lookup,
    calculate_combined_preference_score,
    calculate_preference_score,
    calculate_user_preferences,
    empty_page,
    empty_profile,
    log_error,
    log_warning,
    normalize_username,
    rank_by_general_score,
    select_top_pick,
)

from .filters import apply_all_filters

logger = logging.getLogger('seasonarr')


class ProfileCache:
    """
    In-memory preference profiles keyed by username.

    Lives as long as the ranker that owns it; the durable copy is kept
    in the CacheStore.
    """

    def __init__(self):
        self._profiles: Dict[str, Dict] = {}

    def get(self, username: str) -> Optional[Dict]:
        return self._profiles.get(username)

    def set(self, username: str, profile: Dict) -> None:
        self._profiles[username] = profile

    def remove(self, username: str) -> None:
        self._profiles.pop(username, None)

    def clear(self) -> None:
        self._profiles.clear()

    def __contains__(self, username: str) -> bool:
        return username in self._profiles

    def __len__(self):
        return len(self._profiles)


def has_preferences(profile: Optional[Dict]) -> bool:
    """True if any category of the profile holds at least one entry."""
    return bool(profile) and any(profile.get(c) for c in ('genres', 'studios', 'directors', 'tags'))


def _shuffle_seed(anime_ids: List) -> str:
    return ','.join(str(i) for i in sorted(anime_ids, key=str))


class SeasonRanker:
    """
    Ranks a season's catalog for one or more AniList users.

    Profiles are resolved read-through (memory, then durable cache, then
    recomputed from the user's ratings) and written through to both layers.
    """

    def __init__(self, client: AniListClient, cache_store: Optional[CacheStore] = None,
                 config: Dict = None, profile_cache: Optional[ProfileCache] = None):
        """
        Initialize the ranker.

        Args:
            client: AniList client used for catalog and ratings fetches
            cache_store: Durable cache; defaults to the client's cache
            config: Root configuration dict
            profile_cache: In-memory profile cache; a fresh one by default
        """
        self.client = client
        self.cache_store = cache_store if cache_store is not None else client.cache
        self.config = config or {}
        self.profiles = profile_cache if profile_cache is not None else ProfileCache()

    def get_user_profile(self, username: str) -> Dict:
        """
        Resolve a user's preference profile.

        Returns:
            The profile; an empty profile for unknown users or users
            with no rated history
        """
        username = normalize_username(username)

        profile = self.profiles.get(username)
        if profile is not None:
            logger.debug(f"Using in-memory preferences for {username}")
            return profile

        profile = self.cache_store.get_user_preferences(username)
        if profile is not None:
            logger.debug(f"Using cached preferences for {username}")
            self.profiles.set(username, profile)
            return profile

        ratings = self.client.fetch_user_rated_anime_by_name(username)
        if ratings is None:
            log_warning(f"AniList user '{username}' not found, ranking without their preferences")
            profile = empty_profile()
            self.profiles.set(username, profile)
            return profile

        profile = calculate_user_preferences(ratings, username, config=self.config)
        # Scores cached against an older profile no longer apply
        self.cache_store.clear_anime_preference_scores(username)
        if has_preferences(profile):
            self.cache_store.save_user_preferences(username, profile)
        else:
            logger.info(f"No rated anime found for {username}")
        self.profiles.set(username, profile)
        return profile

    def rank_anime(self, anime_list: List[Dict], usernames: List[str],
                   profiles: Optional[Dict[str, Dict]] = None) -> List[Dict]:
        """
        Score and order catalog entries for a group of users.

        Each entry gains preference_scores ({'users': [...], 'combined': {...}}),
        is_top_pick_for, combined_rank and rank. Top picks come first in a
        shuffled order that is stable for the same set of entries, followed by
        the rest by combined score. Scores cached for the same users are
        reused; fresh scores are written back.

        Args:
            anime_list: Catalog entries
            usernames: Users to rank for
            profiles: Pre-resolved profiles by username

        Returns:
            New list of new dicts; the input entries are not modified
        """
        if not anime_list:
            return []

        usernames = [normalize_username(u) for u in usernames]
        if profiles is None:
            profiles = {u: self.get_user_profile(u) for u in usernames}
        lookups = {u: build_preference_lookup(profiles[u]) for u in usernames}

        scored = []
        for anime in anime_list:
            cached = self._cached_scores(anime.get('id'), usernames)
            if cached is not None:
                scored.append(dict(cached, anime=anime))
                continue

            user_scores = []
            for username in usernames:
                score, breakdown = calculate_preference_score(
                    anime, profiles[username], self.config, lookups[username])
                user_scores.append({'username': username, 'score': score, 'breakdown': breakdown})
            combined = calculate_combined_preference_score(user_scores)
            if anime.get('id') is not None:
                self.cache_store.save_anime_preference_scores(
                    anime['id'], usernames, {'users': user_scores, 'combined': combined})
            scored.append({'anime': anime, 'users': user_scores, 'combined': combined})

        ids = [item['anime'].get('id') for item in scored]

        # Per-user ranks and top picks
        top_picks = {}
        for position, username in enumerate(usernames):
            by_user = sorted(scored, key=lambda item: item['users'][position]['score'], reverse=True)
            for rank, item in enumerate(by_user, 1):
                item['users'][position]['rank'] = rank

            user_scores = {item['anime'].get('id'): item['users'][position]['score'] for item in scored}
            pick = select_top_pick(profiles[username], ids, user_scores)
            if pick is not None:
                top_picks.setdefault(pick, []).append(username)

        by_combined = sorted(scored, key=lambda item: item['combined']['score'], reverse=True)
        for rank, item in enumerate(by_combined, 1):
            item['combined_rank'] = rank

        # Picks are put in id order first so the shuffle ignores input order
        picked = sorted((item for item in scored if item['anime'].get('id') in top_picks),
                        key=lambda item: str(item['anime'].get('id')))
        rest = [item for item in by_combined if item['anime'].get('id') not in top_picks]
        random.Random(_shuffle_seed(ids)).shuffle(picked)

        ranked = []
        for rank, item in enumerate(picked + rest, 1):
            anime = item['anime']
            preference_scores = {'users': item['users'], 'combined': item['combined']}
            ranked.append(dict(
                anime,
                preference_scores=preference_scores,
                is_top_pick_for=top_picks.get(anime.get('id'), []),
                combined_rank=item['combined_rank'],
                rank=rank,
            ))

        logger.info(f"Ranked {len(ranked)} anime for {', '.join(usernames)}")
        return ranked

    def _cached_scores(self, anime_id, usernames: List[str]) -> Optional[Dict]:
        """Cached {'users', 'combined'} for an item, or None unless it covers exactly these users."""
        if anime_id is None:
            return None
        cached = self.cache_store.get_anime_preference_scores(anime_id, usernames)
        if not isinstance(cached, dict) or not isinstance(cached.get('combined'), dict):
            return None
        by_name = {u.get('username'): u for u in cached.get('users') or [] if isinstance(u, dict)}
        if set(by_name) != set(usernames) or len(by_name) != len(usernames):
            return None
        logger.debug(f"Using cached preference scores for anime {anime_id}")
        return {'users': [dict(by_name[u]) for u in usernames], 'combined': cached['combined']}

    def get_season(self, season: Optional[str] = None, year: Optional[int] = None, page: int = 1,
                   per_page: Optional[int] = None, usernames: Optional[List[str]] = None,
                   filters: Optional[Dict] = None) -> Dict:
        """
        Fetch, rank and filter one page of a season's catalog.

        With users the page is ranked by their preferences; without, by the
        general ranking score.

        The fetch is retried with backoff; once retries are exhausted the
        result is empty with zeroed pagination and an error message.

        Returns:
            Dict with media, page_info, profiles and error (None on success)
        """
        per_page = per_page or self.client.catalog_per_page
        usernames = [normalize_username(u) for u in usernames or []]

        try:
            response = self.client.fetch_with_retry(
                self.client.request_upcoming_anime, page, per_page, season, year)
        except AniListError as e:
            log_error(f"Could not load season catalog: {e}")
            return {
                'media': [],
                'page_info': empty_page('media', page, per_page)['data']['Page']['pageInfo'],
                'profiles': {},
                'error': str(e),
            }

        page_data = response['data']['Page']
        media = page_data['media']
        profiles = {u: self.get_user_profile(u) for u in usernames}

        if usernames:
            ranked = self.rank_anime(media, usernames, profiles)
        else:
            ranked = rank_by_general_score(media, self.config)

        return {
            'media': apply_all_filters(ranked, filters),
            'page_info': page_data.get('pageInfo') or {},
            'profiles': profiles,
            'error': None,
        }
