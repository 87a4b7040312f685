"""
Seasonarr Rankers - Season ranking and filtering for AniList users.
"""

from .base import ProfileCache, SeasonRanker

__all__ = ['ProfileCache', 'SeasonRanker']
