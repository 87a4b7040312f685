"""
Shared CLI utilities for Seasonarr.
Provides config discovery, user resolution and storage setup for entry points.
"""

import os
from datetime import datetime
from typing import Dict, List, Optional

from .cache import CacheStore
from .config import get_cache_config
from .display import GREEN, RESET, log_warning
from .helpers import get_project_root, normalize_username
from .storage import JsonFileStorage, MemoryStorage

CACHE_FILENAME = 'seasonarr_cache.json'


def get_config_path(config_path: Optional[str] = None) -> str:
    """Explicit config path, or config/config.yml under the project root."""
    if config_path:
        return config_path
    return os.path.join(get_project_root(), 'config', 'config.yml')


def get_users_from_config(config: Dict) -> List[str]:
    """
    Extract the AniList user list from config.

    users.list may be a comma separated string or a YAML list.

    Args:
        config: Root config dict

    Returns:
        List of normalized usernames
    """
    user_list = ((config or {}).get('users') or {}).get('list', '')
    if isinstance(user_list, str):
        users = [u.strip() for u in user_list.split(',') if u.strip()]
    elif isinstance(user_list, list):
        users = [str(u).strip() for u in user_list if str(u).strip()]
    else:
        users = []
    return [normalize_username(u) for u in users]


def resolve_cache_dir(cache_dir: str) -> str:
    """Relative cache directories are resolved against the project root."""
    if os.path.isabs(cache_dir):
        return cache_dir
    return os.path.join(get_project_root(), cache_dir)


def create_storage(config: Dict = None):
    """
    Build the storage medium described by the cache section.

    Returns:
        JsonFileStorage under the cache dir, or MemoryStorage when
        cache.persistent is false or the directory cannot be created
    """
    settings = get_cache_config(config)
    if not settings['persistent']:
        return MemoryStorage(settings['quota_bytes'])

    cache_dir = resolve_cache_dir(settings['dir'])
    try:
        os.makedirs(cache_dir, exist_ok=True)
    except OSError as e:
        log_warning(f"Could not create cache directory {cache_dir}, caching in memory only: {e}")
        return MemoryStorage(settings['quota_bytes'])

    return JsonFileStorage(os.path.join(cache_dir, CACHE_FILENAME), settings['quota_bytes'])


def create_cache_store(config: Dict = None) -> CacheStore:
    """CacheStore over the configured storage medium."""
    return CacheStore(create_storage(config), config)


def print_runtime(start_time: datetime):
    """Print formatted runtime duration."""
    runtime = datetime.now() - start_time
    hours = runtime.seconds // 3600
    minutes = (runtime.seconds % 3600) // 60
    seconds = runtime.seconds % 60
    print(f"\n{GREEN}All processing completed!{RESET}")
    print(f"Total runtime: {hours:02d}:{minutes:02d}:{seconds:02d}")
