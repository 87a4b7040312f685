"""Tests for seasonarr/config.py"""

import os
import tempfile
import pytest
from unittest.mock import patch

from seasonarr.config import (
    ANILIST_API_URL,
    CATEGORY_RANGES,
    IMPACT_CAPS,
    MAX_PER_PAGE,
    POINT_VALUES,
    RANKING_FACTORS,
    TRENDING_GENRES,
    get_anilist_config,
    get_cache_config,
    get_config_section,
    get_ranking_config,
    get_scoring_config,
    load_config,
)


class TestGetConfigSection:
    """Tests for get_config_section function"""

    def test_returns_lowercase_key(self):
        config = {'scoring': {'a': 1}}
        assert get_config_section(config, 'scoring') == {'a': 1}

    def test_returns_uppercase_key(self):
        config = {'SCORING': {'a': 1}}
        assert get_config_section(config, 'scoring') == {'a': 1}

    def test_returns_default_when_missing(self):
        assert get_config_section({}, 'scoring') == {}
        assert get_config_section(None, 'scoring', {'x': 1}) == {'x': 1}

    def test_none_section_returns_default(self):
        assert get_config_section({'scoring': None}, 'scoring') == {}


class TestLoadConfig:
    """Tests for load_config function"""

    def _write(self, directory, name, content):
        path = os.path.join(directory, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def test_loads_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, 'config.yml', "users:\n  list: alice\n")
            with patch.dict(os.environ, {}, clear=True):
                config = load_config(path)
            assert config['users']['list'] == 'alice'

    def test_empty_file_gives_empty_dict(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, 'config.yml', "")
            with patch.dict(os.environ, {}, clear=True):
                assert load_config(path) == {}

    def test_tuning_file_overrides_sections(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, 'config.yml', "scoring:\n  max_popularity_boost: 20\n")
            self._write(tmp, 'tuning.yml', "scoring:\n  max_popularity_boost: 35\n")
            with patch.dict(os.environ, {}, clear=True):
                config = load_config(path)
            assert config['scoring']['max_popularity_boost'] == 35

    def test_environment_overrides(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, 'config.yml', "users:\n  list: alice\n")
            env = {'SEASONARR_USERS': 'bob,carol', 'SEASONARR_CACHE_DIR': '/tmp/x'}
            with patch.dict(os.environ, env, clear=True):
                config = load_config(path)
            assert config['users']['list'] == 'bob,carol'
            assert config['cache']['dir'] == '/tmp/x'

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config('/nonexistent/config.yml')


class TestGetScoringConfig:
    """Tests for get_scoring_config function"""

    def test_defaults(self):
        scoring = get_scoring_config(None)
        assert scoring['point_values'] == POINT_VALUES
        assert scoring['ranges'] == CATEGORY_RANGES
        assert scoring['caps'] == IMPACT_CAPS
        assert scoring['max_popularity_boost'] == 20

    def test_point_value_override_accepts_string_keys(self):
        scoring = get_scoring_config({'scoring': {'point_values': {'5': 8}}})
        assert scoring['point_values'][5] == 8
        assert scoring['point_values'][1] == -5

    def test_range_override(self):
        scoring = get_scoring_config({'scoring': {'ranges': {'genres': [-5, 15]}}})
        assert scoring['ranges']['genres'] == (-5, 15)
        assert scoring['ranges']['studios'] == (-20, 20)

    def test_defaults_not_mutated(self):
        scoring = get_scoring_config({'scoring': {'caps': {'studio': 0.5}}})
        assert scoring['caps']['studio'] == 0.5
        assert IMPACT_CAPS['studio'] == 0.2


class TestGetCacheConfig:
    """Tests for get_cache_config function"""

    def test_defaults(self):
        cache = get_cache_config({})
        assert cache['expiration_seconds'] == 24 * 3600
        assert cache['max_entry_bytes'] == 50 * 1024
        assert cache['quota_bytes'] == 5 * 1024 * 1024
        assert cache['compression'] == 'none'
        assert cache['persistent'] is True

    def test_overrides(self):
        cache = get_cache_config({'cache': {'expiration_hours': 1, 'max_entry_kb': 10, 'quota_mb': 2}})
        assert cache['expiration_seconds'] == 3600
        assert cache['max_entry_bytes'] == 10 * 1024
        assert cache['quota_bytes'] == 2 * 1024 * 1024


class TestGetAniListConfig:
    """Tests for get_anilist_config function"""

    def test_defaults(self):
        anilist = get_anilist_config(None)
        assert anilist['api_url'] == ANILIST_API_URL
        assert anilist['score_scale'] == 5
        assert anilist['max_pages'] == 10
        assert anilist['per_page'] == MAX_PER_PAGE
        assert anilist['max_retries'] == 3
        assert anilist['timeout'] == 30

    def test_per_page_capped(self):
        assert get_anilist_config({'anilist': {'per_page': 500}})['per_page'] == MAX_PER_PAGE

    def test_score_scale_only_five_or_ten(self):
        assert get_anilist_config({'anilist': {'score_scale': 10}})['score_scale'] == 10
        assert get_anilist_config({'anilist': {'score_scale': 100}})['score_scale'] == 5


class TestGetRankingConfig:
    """Tests for get_ranking_config function"""

    def test_defaults(self):
        ranking = get_ranking_config(None)
        assert ranking['factors'] == RANKING_FACTORS
        assert ranking['max_popularity'] == 50000
        assert ranking['trending_genres'] == TRENDING_GENRES
        assert ranking['preferred_genres'] == []

    def test_factor_overrides_merge(self):
        ranking = get_ranking_config({'ranking': {'factors': {
            'popularity': {'weight': 0.5},
            'genre_relevance': {'enabled': True},
            'trailer_views': {'weight': 1, 'enabled': True},
        }}})
        assert ranking['factors']['popularity'] == {'weight': 0.5, 'enabled': True}
        assert ranking['factors']['genre_relevance']['enabled'] is True
        assert 'trailer_views' not in ranking['factors']

    def test_defaults_not_mutated(self):
        get_ranking_config({'ranking': {'factors': {'score': {'weight': 9}}}})
        assert RANKING_FACTORS['score']['weight'] == 0.2
