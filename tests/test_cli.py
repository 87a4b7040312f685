"""Tests for seasonarr/cli.py and rankers/seasonal.py - CLI utilities and entry point"""

import os
import pytest
from unittest.mock import Mock, patch
from datetime import datetime, timedelta

from rankers.seasonal import build_filters, build_parser, main, process_season
from seasonarr.cache import CacheStore
from seasonarr.cli import (
    CACHE_FILENAME,
    create_cache_store,
    create_storage,
    get_config_path,
    get_users_from_config,
    print_runtime,
    resolve_cache_dir,
)
from seasonarr.storage import JsonFileStorage, MemoryStorage


class TestGetUsersFromConfig:
    """Tests for get_users_from_config function"""

    def test_gets_users_from_string(self):
        """Test extracts users from users.list as comma-separated string."""
        config = {'users': {'list': 'alice, bob, charlie'}}
        assert get_users_from_config(config) == ['alice', 'bob', 'charlie']

    def test_gets_users_from_array(self):
        """Test extracts users from users.list as array."""
        config = {'users': {'list': ['alice', '@bob']}}
        assert get_users_from_config(config) == ['alice', 'bob']

    def test_normalizes_profile_urls(self):
        config = {'users': {'list': 'https://anilist.co/user/carol/, dave'}}
        assert get_users_from_config(config) == ['carol', 'dave']

    def test_missing_section(self):
        assert get_users_from_config({}) == []
        assert get_users_from_config(None) == []
        assert get_users_from_config({'users': {'list': ' , '}}) == []


class TestPaths:
    """Tests for config and cache path resolution"""

    def test_explicit_config_path(self):
        assert get_config_path('/tmp/custom.yml') == '/tmp/custom.yml'

    def test_default_config_path(self):
        assert get_config_path().endswith(os.path.join('config', 'config.yml'))

    def test_absolute_cache_dir_kept(self, tmp_path):
        assert resolve_cache_dir(str(tmp_path)) == str(tmp_path)

    @patch('seasonarr.cli.get_project_root', return_value='/opt/seasonarr')
    def test_relative_cache_dir_under_project(self, mock_root):
        assert resolve_cache_dir('cache') == os.path.join('/opt/seasonarr', 'cache')


class TestCreateStorage:
    """Tests for create_storage and create_cache_store"""

    def test_memory_when_not_persistent(self):
        storage = create_storage({'cache': {'persistent': False, 'quota_mb': 1}})
        assert type(storage) is MemoryStorage
        assert storage.quota_bytes == 1024 * 1024

    def test_json_file_under_cache_dir(self, tmp_path):
        cache_dir = tmp_path / 'cache'
        storage = create_storage({'cache': {'dir': str(cache_dir)}})
        assert isinstance(storage, JsonFileStorage)
        assert storage.path == os.path.join(str(cache_dir), CACHE_FILENAME)
        assert cache_dir.is_dir()

    @patch('seasonarr.cli.log_warning')
    @patch('seasonarr.cli.os.makedirs', side_effect=PermissionError("denied"))
    def test_falls_back_to_memory(self, mock_makedirs, mock_warning, tmp_path):
        storage = create_storage({'cache': {'dir': str(tmp_path / 'nope')}})
        assert type(storage) is MemoryStorage
        mock_warning.assert_called_once()

    def test_cache_store_uses_storage(self):
        store = create_cache_store({'cache': {'persistent': False}})
        assert isinstance(store, CacheStore)
        assert store.available


class TestPrintRuntime:
    """Tests for print_runtime function"""

    def test_prints_runtime(self, capsys):
        """Test prints formatted runtime."""
        print_runtime(datetime.now() - timedelta(hours=1, minutes=2, seconds=3))
        captured = capsys.readouterr()
        assert "Total runtime: 01:02:0" in captured.out


class TestParser:
    """Tests for the command line parser"""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.usernames == []
        assert args.page == 1
        assert args.season is None
        assert build_filters(args) == {
            'sort': None, 'genres': None, 'exclude_genres': None, 'formats': None, 'search': None,
        }

    def test_filters_collected(self):
        args = build_parser().parse_args([
            'alice', 'bob', '--season', 'spring', '--year', '2025',
            '--genre', 'Action', '--genre', 'Drama', '--exclude-genre', 'Horror',
            '--format', 'TV', '--search', 'frieren', '--sort', 'score',
        ])
        assert args.usernames == ['alice', 'bob']
        assert args.season == 'SPRING'
        assert args.year == 2025
        filters = build_filters(args)
        assert filters['genres'] == ['Action', 'Drama']
        assert filters['exclude_genres'] == ['Horror']
        assert filters['formats'] == ['TV']
        assert filters['search'] == 'frieren'
        assert filters['sort'] == 'score'

    def test_rejects_unknown_season(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--season', 'monsoon'])


class TestProcessSeason:
    """Tests for process_season function"""

    def make_args(self, *argv):
        return build_parser().parse_args(['--season', 'winter', '--year', '2026', *argv])

    def test_prints_ranked_entries(self, capsys):
        ranker = Mock()
        ranker.get_season.return_value = {
            'media': [{'id': 1, 'rank': 1, 'title': {'romaji': 'Sousou no Frieren'}, 'genres': []}],
            'page_info': {'currentPage': 1, 'lastPage': 3, 'total': 55},
            'profiles': {},
            'error': None,
        }

        assert process_season(ranker, self.make_args(), ['alice']) is True

        ranker.get_season.assert_called_once()
        assert ranker.get_season.call_args[0][:2] == ('WINTER', 2026)
        out = capsys.readouterr().out
        assert "Sousou no Frieren" in out
        assert "Page 1 of 3 (55 total)" in out

    @patch('rankers.seasonal.log_error')
    def test_reports_error(self, mock_error):
        ranker = Mock()
        ranker.get_season.return_value = {'media': [], 'page_info': {}, 'profiles': {}, 'error': 'down'}
        assert process_season(ranker, self.make_args(), []) is False
        mock_error.assert_called_once()


class TestMain:
    """Tests for main entry point"""

    @patch('rankers.seasonal.log_error')
    @patch('rankers.seasonal.load_config', side_effect=FileNotFoundError("missing"))
    def test_missing_config_exits(self, mock_load, mock_error):
        with pytest.raises(SystemExit) as exc:
            main(['--config', '/nonexistent.yml'])
        assert exc.value.code == 1

    @patch('rankers.seasonal.print_runtime')
    @patch('rankers.seasonal.process_season', return_value=True)
    @patch('rankers.seasonal.create_anilist_client')
    @patch('rankers.seasonal.setup_logging')
    @patch('rankers.seasonal.load_config')
    def test_runs_with_configured_users(self, mock_load, mock_logging, mock_client, mock_process, mock_runtime):
        mock_load.return_value = {'users': {'list': 'alice'}, 'cache': {'persistent': False}}
        main([])
        assert mock_process.call_args[0][2] == ['alice']
        mock_runtime.assert_called_once()

    @patch('rankers.seasonal.print_runtime')
    @patch('rankers.seasonal.process_season', return_value=False)
    @patch('rankers.seasonal.create_anilist_client')
    @patch('rankers.seasonal.setup_logging')
    @patch('rankers.seasonal.load_config')
    def test_failed_season_exits_nonzero(self, mock_load, mock_logging, mock_client, mock_process, mock_runtime):
        mock_load.return_value = {'cache': {'persistent': False}}
        with pytest.raises(SystemExit) as exc:
            main(['bob'])
        assert exc.value.code == 1
        assert mock_process.call_args[0][2] == ['bob']
