"""
Cache store for Seasonarr.

Size-aware, expiring key-value cache over a storage medium (see storage.py).
Every entry is a JSON envelope {"data": ..., "timestamp": epoch_ms}. Reads
treat expired, corrupt or wrongly-typed entries as misses and delete them.
No method raises: failures are logged and degrade to a miss or a dropped write.
"""

import json
import math
import time
import logging
from typing import Callable, Dict, List, Optional

from .config import (
    EVICTION_FRACTION,
    QUOTA_EVICTION_FRACTION,
    CACHE_PREFIX,
    COMPLETE_RATINGS_PREFIX,
    USER_PREFERENCES_PREFIX,
    ANIME_PREFERENCES_PREFIX,
    get_cache_config,
)
from .storage import StorageQuotaExceeded

logger = logging.getLogger('seasonarr')

PREFERENCE_CATEGORIES = ('genres', 'studios', 'directors', 'tags')

RATINGS_PAGE_PREFIX = f"{CACHE_PREFIX}user_"

# Most specific prefix first; page keys (catalog and ratings) share the base prefix
NAMESPACE_PREFIXES = [
    ('user_preferences', USER_PREFERENCES_PREFIX),
    ('anime_preferences', ANIME_PREFERENCES_PREFIX),
    ('complete_ratings', COMPLETE_RATINGS_PREFIX),
    ('pages', CACHE_PREFIX),
]

# Per-category sizes kept when a profile is over the entry ceiling
PREFERENCE_TRIM_LIMITS = {'genres': 30, 'studios': 20, 'directors': 20, 'tags': 30}

# Only the pass-through codec exists; compress_data/decompress_data are the hook for others
CODECS = ('none',)


class CatalogKey:
    """Cache key for one page of a season's catalog."""

    kind = 'catalog'

    def __init__(self, season: str, year: int, page: int = 1, per_page: int = 20):
        self.season = season
        self.year = year
        self.page = page
        self.per_page = per_page

    def __repr__(self):
        return f"CatalogKey({self.season!r}, {self.year}, page={self.page}, per_page={self.per_page})"


class RatingsKey:
    """Cache key for one page of a user's rated list."""

    kind = 'ratings'

    def __init__(self, user_id: int, page: int = 1, per_page: int = 50):
        self.user_id = user_id
        self.page = page
        self.per_page = per_page

    def __repr__(self):
        return f"RatingsKey({self.user_id}, page={self.page}, per_page={self.per_page})"


def generate_cache_key(key) -> str:
    """
    Build the storage key for a catalog or ratings page.

    Raises:
        TypeError: For anything that is not a CatalogKey or RatingsKey
    """
    kind = getattr(key, 'kind', None)
    if kind == RatingsKey.kind:
        return f"{RATINGS_PAGE_PREFIX}{key.user_id}_{key.page}_{key.per_page}"
    elif kind == CatalogKey.kind:
        return f"{CACHE_PREFIX}{key.season}_{key.year}_{key.page}_{key.per_page}"
    raise TypeError(f"Unsupported cache key: {key!r}")


def get_key_namespace(storage_key: str) -> Optional[str]:
    """Return the namespace a storage key belongs to, or None if it is not ours."""
    for namespace, prefix in NAMESPACE_PREFIXES:
        if storage_key.startswith(prefix):
            return namespace
    return None


def anime_scores_key(anime_id: int, usernames: List[str]) -> str:
    """Key for combined scores of one item for a set of users (order-insensitive)."""
    return f"{ANIME_PREFERENCES_PREFIX}{anime_id}_{','.join(sorted(usernames))}"


def anime_scores_users(storage_key: str) -> List[str]:
    """Usernames encoded in a per-item score key."""
    _, _, users = storage_key[len(ANIME_PREFERENCES_PREFIX):].partition('_')
    return users.split(',') if users else []


def compress_data(text: str, codec: str = 'none') -> str:
    """
    Encode a serialized entry for storage.

    Only 'none' is supported, which stores the JSON text as-is.
    """
    if codec not in CODECS:
        raise ValueError(f"Unsupported cache codec: {codec}")
    return text


def decompress_data(stored: str) -> str:
    """Inverse of compress_data."""
    return stored


def is_preferences_payload(data) -> bool:
    """True if data looks like a preference profile."""
    return isinstance(data, dict) and any(category in data for category in PREFERENCE_CATEGORIES)


def has_media_list(data) -> bool:
    """True if data is a ratings page response."""
    page = ((data or {}).get('data') or {}).get('Page') if isinstance(data, dict) else None
    return isinstance(page, dict) and 'mediaList' in page


def _preference_strength(pref: Dict) -> float:
    value = pref.get('normalized_score')
    if value is None:
        value = pref.get('score')
    return abs(value or 0)


def keep_strongest(entries: List[Dict], limit: int) -> List[Dict]:
    """
    Keep the `limit` entries with the largest absolute score, in their original order.

    Strong dislikes weigh as much as strong likes, so both ends of a
    score-sorted category survive.
    """
    if len(entries) <= limit:
        return list(entries)
    strongest = sorted(range(len(entries)), key=lambda i: _preference_strength(entries[i]), reverse=True)
    keep = set(strongest[:limit])
    return [entry for i, entry in enumerate(entries) if i in keep]


def optimize_preferences_payload(prefs: Dict, limits: Optional[Dict[str, int]] = None,
                                 max_contributors: int = 10) -> Dict:
    """
    Prepare a preference profile for storage.

    Drops image URLs and keeps the first contributing items of each entry.
    Categories are only shortened when `limits` names them, and then the
    strongest entries by absolute score are kept. Returns a new dict; the
    input is untouched.
    """
    if not is_preferences_payload(prefs):
        return prefs

    limits = limits or {}
    optimized = {k: v for k, v in prefs.items() if k not in PREFERENCE_CATEGORIES}
    for category in PREFERENCE_CATEGORIES:
        entries = prefs.get(category)
        if not isinstance(entries, list):
            continue
        if category in limits:
            entries = keep_strongest(entries, limits[category])
        trimmed = []
        for pref in entries:
            entry = dict(pref)
            if 'contributing_items' in entry:
                entry['contributing_items'] = [
                    {k: v for k, v in item.items() if k != 'image_url'}
                    for item in (entry['contributing_items'] or [])[:max_contributors]
                ]
            trimmed.append(entry)
        optimized[category] = trimmed
    return optimized


def reduce_preferences_payload(data: Dict, max_per_category: int = 20) -> Dict:
    """
    Aggressively shrink a preference profile to scores only.

    Keeps the strongest entries of each category by absolute score.
    Non-profile payloads are returned unchanged.
    """
    if not is_preferences_payload(data):
        return data

    reduced = {k: v for k, v in data.items() if k not in PREFERENCE_CATEGORIES}
    for category in PREFERENCE_CATEGORIES:
        entries = data.get(category)
        if not isinstance(entries, list):
            continue
        reduced[category] = [
            {
                'name': pref.get('name'),
                'normalized_score': pref.get('normalized_score'),
                'score': pref.get('score'),
                'count': pref.get('count'),
            }
            for pref in keep_strongest(entries, max_per_category)
        ]
    return reduced


def _simplify_media(media: Dict) -> Dict:
    studios = media.get('studios')
    staff = media.get('staff')
    tags = sorted(media.get('tags') or [], key=lambda t: t.get('rank') or 0, reverse=True)

    simplified = {
        'id': media.get('id'),
        'title': media.get('title'),
        'genres': media.get('genres'),
        'format': media.get('format'),
        'season': media.get('season'),
        'seasonYear': media.get('seasonYear'),
        'popularity': media.get('popularity'),
        'tags': [{'name': t.get('name'), 'rank': t.get('rank')} for t in tags[:10]],
    }
    if studios is not None:
        simplified['studios'] = {'nodes': [{'name': s.get('name')} for s in studios.get('nodes') or []]}
    if staff is not None:
        simplified['staff'] = {
            'edges': [
                {'role': e.get('role'), 'node': {'name': (e.get('node') or {}).get('name')}}
                for e in staff.get('edges') or []
                if 'director' in (e.get('role') or '').lower()
            ]
        }
    return simplified


def simplify_ratings_page(data: Dict, default_user: Optional[Dict] = None) -> Dict:
    """
    Build a reduced copy of a ratings page keeping only fields used for aggregation.

    Args:
        data: Ratings page response ({'data': {'Page': {'mediaList': [...]}}})
        default_user: User object for entries that lack one

    Returns:
        New response dict; the input is not modified
    """
    page = data['data']['Page']
    entries = []
    for item in page.get('mediaList') or []:
        user = item.get('user') or default_user
        entry = {
            'id': item.get('id'),
            'mediaId': item.get('mediaId'),
            'score': item.get('score'),
            'completedAt': item.get('completedAt'),
            'createdAt': item.get('createdAt'),
            'media': _simplify_media(item.get('media') or {}),
        }
        if user:
            entry['user'] = {'name': user.get('name'), 'id': user.get('id')}
        entries.append(entry)

    simplified_page = {k: v for k, v in page.items() if k != 'mediaList'}
    simplified_page['mediaList'] = entries
    return {'data': {'Page': simplified_page}}


class CacheStore:
    """
    Expiring, size-bounded cache for catalog pages, ratings and derived profiles.

    Pass storage=None when no storage medium is available: every read is
    then a miss and every write is dropped.
    """

    def __init__(self, storage=None, config: Dict = None, clock: Callable[[], float] = time.time):
        """
        Initialize the cache store.

        Args:
            storage: Storage medium (MemoryStorage, JsonFileStorage) or None
            config: Root configuration dict (cache section is read)
            clock: Function returning the current time in seconds
        """
        cache_config = get_cache_config(config)
        self.storage = storage
        self.clock = clock
        self.expiration_ms = cache_config['expiration_seconds'] * 1000
        self.max_entry_bytes = cache_config['max_entry_bytes']
        self.quota_bytes = getattr(storage, 'quota_bytes', cache_config['quota_bytes'])
        self.codec = cache_config['compression']
        if self.codec not in CODECS:
            logger.warning(f"Unknown cache compression '{self.codec}', storing uncompressed")
            self.codec = 'none'

    @property
    def available(self) -> bool:
        return self.storage is not None

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _serialize(self, data) -> str:
        envelope = {'data': data, 'timestamp': self._now_ms()}
        return compress_data(json.dumps(envelope, ensure_ascii=False), self.codec)

    def _decode(self, stored: str) -> Dict:
        return json.loads(decompress_data(stored))

    def _fits(self, data, max_bytes: Optional[int]) -> bool:
        """True if the serialized envelope for data is within max_bytes."""
        if max_bytes is None:
            return True
        try:
            return len(self._serialize(data)) * 2 <= max_bytes
        except (TypeError, ValueError):
            # Unserializable; _write reports it
            return True

    def _remove(self, storage_key: str) -> None:
        try:
            self.storage.remove_item(storage_key)
        except Exception as e:
            logger.error(f"Error removing cache entry {storage_key}: {e}")

    def _write(self, storage_key: str, data, max_bytes: Optional[int] = None,
               fallback: Optional[Callable] = None) -> bool:
        """
        Size-aware write with one quota-recovery retry.

        Args:
            storage_key: Key in the storage medium
            data: Payload to wrap in an envelope
            max_bytes: Per-entry ceiling, None for no ceiling
            fallback: Reducer applied to the payload for the retry after eviction

        Returns:
            True if the entry was stored
        """
        if not self.available:
            return False

        try:
            serialized = self._serialize(data)
            size = len(serialized) * 2
            if max_bytes is not None and size > max_bytes:
                logger.warning(f"Data too large for key {storage_key}: "
                               f"{size / 1024:.1f}KB > {max_bytes / 1024:.1f}KB max")
                return False

            try:
                self.storage.set_item(storage_key, serialized)
                logger.debug(f"Stored {storage_key}: {size / 1024:.1f}KB")
                return True
            except StorageQuotaExceeded:
                logger.warning(f"Storage quota exceeded writing {storage_key}, clearing old entries")

            self.clear_oldest_entries(QUOTA_EVICTION_FRACTION, namespace=get_key_namespace(storage_key))
            retry_data = fallback(data) if fallback else data
            self.storage.set_item(storage_key, self._serialize(retry_data))
            logger.debug(f"Stored reduced data for {storage_key}")
            return True
        except StorageQuotaExceeded:
            logger.error(f"Failed to store {storage_key} even after clearing cache")
            return False
        except Exception as e:
            logger.error(f"Error writing cache entry {storage_key}: {e}")
            return False

    def _read(self, storage_key: str) -> Optional[Dict]:
        """
        Read and validate an envelope, deleting corrupt or expired entries.

        Returns:
            The envelope dict, or None on miss
        """
        if not self.available:
            return None

        try:
            stored = self.storage.get_item(storage_key)
        except Exception as e:
            logger.error(f"Error accessing cache storage for {storage_key}: {e}")
            return None

        if not stored:
            return None

        try:
            entry = self._decode(stored)
        except Exception as e:
            logger.error(f"Error parsing cached data for {storage_key}: {e}")
            self._remove(storage_key)
            return None

        timestamp = entry.get('timestamp') if isinstance(entry, dict) else None
        if not isinstance(timestamp, (int, float)):
            logger.error(f"Cache entry {storage_key} has no timestamp, removing")
            self._remove(storage_key)
            return None

        if self._now_ms() - timestamp >= self.expiration_ms:
            logger.debug(f"Cache entry expired for key: {storage_key}")
            self._remove(storage_key)
            return None

        return entry

    # Catalog and ratings pages

    def save_to_cache(self, key, data: Dict) -> bool:
        """
        Cache one catalog or ratings page.

        Ratings pages over the entry ceiling are stored in simplified form.

        Args:
            key: CatalogKey or RatingsKey
            data: API response with data.Page

        Returns:
            True if the page was stored
        """
        if not self.available:
            return False

        try:
            if not isinstance(data, dict) or not isinstance((data.get('data') or {}).get('Page'), dict):
                logger.error("Invalid data structure, not caching")
                return False

            storage_key = generate_cache_key(key)
            is_ratings = key.kind == RatingsKey.kind and has_media_list(data)
            fallback = simplify_ratings_page if is_ratings else None

            if is_ratings and not self._fits(data, self.max_entry_bytes):
                logger.warning(f"{key!r} is over the size limit, storing simplified data")
                data = simplify_ratings_page(data)

            if self._write(storage_key, data, self.max_entry_bytes, fallback):
                logger.debug(f"Cached {key!r}")
                return True
            return False
        except Exception as e:
            logger.error(f"Error saving to cache: {e}")
            return False

    def get_from_cache(self, key) -> Optional[Dict]:
        """
        Read one catalog or ratings page.

        A ratings key must read back a payload with mediaList and a catalog
        key one with media; anything else is deleted as corrupt.

        Args:
            key: CatalogKey or RatingsKey

        Returns:
            The cached response, or None on miss
        """
        if not self.available:
            return None

        try:
            storage_key = generate_cache_key(key)
            entry = self._read(storage_key)
            if entry is None:
                return None

            data = entry.get('data')
            page = ((data or {}).get('data') or {}).get('Page') if isinstance(data, dict) else None
            if not isinstance(page, dict):
                logger.error(f"Invalid data structure in cache for {storage_key}")
                self._remove(storage_key)
                return None

            expected_field = 'mediaList' if key.kind == RatingsKey.kind else 'media'
            if expected_field in page:
                return data

            logger.error(f"Cache type mismatch for {storage_key}, removing entry")
            self._remove(storage_key)
            return None
        except Exception as e:
            logger.error(f"Error retrieving from cache: {e}")
            return None

    # Complete rating snapshots

    def save_complete_user_ratings(self, user_id: int, data: Dict) -> bool:
        """Cache a user's merged rating history (no per-entry ceiling)."""
        if not has_media_list(data):
            logger.error("Invalid ratings structure, not caching complete snapshot")
            return False
        return self._write(f"{COMPLETE_RATINGS_PREFIX}{user_id}", data, fallback=simplify_ratings_page)

    def get_complete_user_ratings(self, user_id: int) -> Optional[Dict]:
        """Read a user's merged rating history."""
        storage_key = f"{COMPLETE_RATINGS_PREFIX}{user_id}"
        entry = self._read(storage_key)
        if entry is None:
            return None
        if not has_media_list(entry.get('data')):
            logger.error(f"Invalid complete ratings entry {storage_key}, removing")
            self._remove(storage_key)
            return None
        return entry['data']

    # Preference profiles

    def save_user_preferences(self, username: str, preferences: Dict) -> bool:
        """
        Cache a user's preference profile.

        The profile is stored whole, minus image URLs and surplus
        contributing items. Only a profile over the entry ceiling has its
        categories cut down, keeping the strongest likes and dislikes.
        """
        if not is_preferences_payload(preferences):
            logger.error(f"Invalid preference profile for {username}, not caching")
            return False

        storage_key = f"{USER_PREFERENCES_PREFIX}{username}"
        payload = optimize_preferences_payload(preferences)
        if not self._fits(payload, self.max_entry_bytes):
            logger.warning(f"Preferences for {username} are over the size limit, keeping the strongest entries")
            payload = optimize_preferences_payload(preferences, PREFERENCE_TRIM_LIMITS)
        return self._write(storage_key, payload, self.max_entry_bytes, reduce_preferences_payload)

    def get_user_preferences(self, username: str) -> Optional[Dict]:
        """Read a user's cached preference profile."""
        storage_key = f"{USER_PREFERENCES_PREFIX}{username}"
        entry = self._read(storage_key)
        if entry is None:
            return None
        if not is_preferences_payload(entry.get('data')):
            logger.error(f"Invalid preference entry {storage_key}, removing")
            self._remove(storage_key)
            return None
        return entry['data']

    # Combined per-item scores

    def save_anime_preference_scores(self, anime_id: int, usernames: List[str], scores: Dict) -> bool:
        """Cache the combined preference scores of one item for a set of users."""
        return self._write(anime_scores_key(anime_id, usernames), scores, self.max_entry_bytes)

    def get_anime_preference_scores(self, anime_id: int, usernames: List[str]) -> Optional[Dict]:
        """Read combined preference scores of one item for a set of users."""
        entry = self._read(anime_scores_key(anime_id, usernames))
        return entry['data'] if entry is not None else None

    # Maintenance

    def _keys(self, prefix: str = CACHE_PREFIX) -> List[str]:
        if not self.available:
            return []
        return [key for key in self.storage.keys() if key.startswith(prefix)]

    def _clear_keys(self, keys: List[str]) -> int:
        for key in keys:
            self._remove(key)
        return len(keys)

    def clear_anime_preference_scores(self, username: Optional[str] = None) -> int:
        """
        Remove cached per-item scores.

        Args:
            username: Only remove scores computed for a user set that includes
                this user; None removes every per-item score

        Returns:
            Number of entries removed
        """
        try:
            keys = self._keys(ANIME_PREFERENCES_PREFIX)
            if username is not None:
                keys = [key for key in keys if username in anime_scores_users(key)]
            count = self._clear_keys(keys)
            logger.info(f"Cleared {count} anime preference score cache entries")
            return count
        except Exception as e:
            logger.error(f"Error clearing anime preference scores cache: {e}")
            return 0

    def clear_user_ratings_cache(self) -> int:
        """Remove every ratings page and complete snapshot. Returns the number removed."""
        try:
            keys = [key for key in self._keys() if get_key_namespace(key) == 'complete_ratings'
                    or (get_key_namespace(key) == 'pages' and key.startswith(RATINGS_PAGE_PREFIX))]
            count = self._clear_keys(keys)
            logger.info(f"Cleared {count} user ratings cache entries")
            return count
        except Exception as e:
            logger.error(f"Error clearing user ratings cache: {e}")
            return 0

    def clear_cache(self) -> int:
        """Remove every entry this store owns. Returns the number removed."""
        try:
            count = self._clear_keys(self._keys())
            logger.info(f"Cleared {count} cache entries")
            return count
        except Exception as e:
            logger.error(f"Error clearing cache: {e}")
            return 0

    def remove_user_from_cache(self, username: str, user_id: Optional[int] = None) -> bool:
        """
        Remove everything cached for one user.

        Drops the user's profile, their complete snapshot and rating pages
        (by id when known), and any rating page whose entries name the user.

        Returns:
            True if at least one entry was removed
        """
        if not self.available:
            return False

        try:
            to_remove = set()
            prefs_key = f"{USER_PREFERENCES_PREFIX}{username}"
            if self.storage.get_item(prefs_key) is not None:
                to_remove.add(prefs_key)

            for key in self._keys():
                namespace = get_key_namespace(key)
                if namespace == 'complete_ratings' or (namespace == 'pages' and key.startswith(RATINGS_PAGE_PREFIX)):
                    if user_id is not None and (key == f"{COMPLETE_RATINGS_PREFIX}{user_id}"
                                                or key.startswith(f"{RATINGS_PAGE_PREFIX}{user_id}_")):
                        to_remove.add(key)
                        continue
                    try:
                        data = self._decode(self.storage.get_item(key) or '').get('data')
                    except Exception as e:
                        logger.debug(f"Skipping unreadable cache entry {key}: {e}")
                        continue
                    if has_media_list(data) and any(
                        (item.get('user') or {}).get('name') == username
                        for item in data['data']['Page']['mediaList']
                    ):
                        to_remove.add(key)

            self._clear_keys(sorted(to_remove))
            if to_remove:
                logger.info(f"Removed {len(to_remove)} cache entries for {username}")
            else:
                logger.info(f"No cache entries found for {username}")
            return bool(to_remove)
        except Exception as e:
            logger.error(f"Error removing {username} from cache: {e}")
            return False

    def clear_oldest_entries(self, fraction: float = EVICTION_FRACTION, namespace: Optional[str] = None) -> int:
        """
        Evict the oldest share of entries to free space.

        Entries with a missing or unreadable timestamp count as oldest.
        At least one entry is removed when any exist.

        Args:
            fraction: Share of entries to remove (0-1)
            namespace: Restrict the sweep to one namespace ('pages',
                'complete_ratings', 'user_preferences', 'anime_preferences');
                None sweeps every entry this store owns

        Returns:
            Number of entries removed
        """
        if not self.available:
            return 0

        try:
            keys = [key for key in self._keys()
                    if namespace is None or get_key_namespace(key) == namespace]
            if not keys:
                return 0

            entries = []
            for key in keys:
                stored = self.storage.get_item(key) or ''
                try:
                    timestamp = self._decode(stored).get('timestamp') or 0
                    if not isinstance(timestamp, (int, float)):
                        timestamp = 0
                except Exception:
                    timestamp = 0
                entries.append((timestamp, key, len(stored) * 2))

            entries.sort(key=lambda e: e[0])
            remove_count = max(1, math.ceil(len(entries) * fraction))
            removed = entries[:remove_count]
            self._clear_keys([key for _, key, _ in removed])

            cleared_size = sum(size for _, _, size in removed)
            logger.warning(f"Removed {len(removed)} oldest cache entries ({cleared_size / 1024:.1f}KB) to free up space")
            return len(removed)
        except Exception as e:
            logger.error(f"Error clearing oldest cache entries: {e}")
            return 0

    def get_cache_stats(self) -> Dict:
        """Count and size of entries this store owns."""
        try:
            keys = self._keys()
            size = sum(len(self.storage.get_item(key) or '') * 2 for key in keys)
            return {'count': len(keys), 'size': size, 'keys': keys}
        except Exception as e:
            logger.error(f"Error getting cache stats: {e}")
            return {'count': 0, 'size': 0, 'keys': []}

    def analyze_storage_usage(self) -> Dict:
        """
        Break down storage usage across the whole medium.

        Returns:
            Dict with total_size, total_entries, percent_used, per-category
            {count, size} stats and the ten largest items
        """
        empty = {'total_size': 0, 'total_entries': 0, 'percent_used': 0.0, 'categories': {}, 'largest_items': []}
        if not self.available:
            return empty

        try:
            categories = {}
            items = []
            total_size = 0
            for key in self.storage.keys():
                stored = self.storage.get_item(key)
                if not stored:
                    continue
                size = len(stored) * 2
                total_size += size

                last_modified = None
                try:
                    decoded = self._decode(stored)
                    if isinstance(decoded, dict) and decoded.get('timestamp'):
                        last_modified = decoded['timestamp']
                except Exception as e:
                    logger.debug(f"Entry {key} has no readable timestamp: {e}")
                items.append({'key': key, 'size': size, 'last_modified': last_modified})

                category = _storage_category(key)
                stats = categories.setdefault(category, {'count': 0, 'size': 0})
                stats['count'] += 1
                stats['size'] += size

            items.sort(key=lambda item: item['size'], reverse=True)
            return {
                'total_size': total_size,
                'total_entries': len(items),
                'percent_used': total_size / self.quota_bytes * 100 if self.quota_bytes else 0.0,
                'categories': categories,
                'largest_items': items[:10],
            }
        except Exception as e:
            logger.error(f"Error analyzing storage usage: {e}")
            return empty


def _storage_category(key: str) -> str:
    namespace = get_key_namespace(key)
    if namespace == 'user_preferences':
        return 'user_preferences'
    elif namespace == 'anime_preferences':
        return 'anime_preferences'
    elif namespace == 'complete_ratings':
        return 'complete_user_ratings'
    elif namespace == 'pages':
        return 'user_ratings' if key.startswith(RATINGS_PAGE_PREFIX) else 'anime_cache'
    return 'other'
