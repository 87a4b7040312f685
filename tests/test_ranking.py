"""Tests for seasonarr/ranking.py - general ranking without user preferences."""

import pytest
from datetime import date

from seasonarr.ranking import (
    calculate_ranking_score,
    genre_relevance_factor,
    popularity_factor,
    rank_by_general_score,
    rating_factor,
    release_date_factor,
    trending_genre_factor,
)

TODAY = date(2025, 1, 15)


def anime(anime_id=1, popularity=25000, average_score=80, start=None, genres=None):
    return {
        'id': anime_id,
        'popularity': popularity,
        'averageScore': average_score,
        'startDate': start,
        'genres': genres or [],
    }


class TestFactors:
    """Tests for the individual ranking factors"""

    def test_popularity_saturates(self):
        assert popularity_factor(anime(popularity=25000), 50000) == 0.5
        assert popularity_factor(anime(popularity=100000), 50000) == 1.0
        assert popularity_factor(anime(popularity=None), 50000) == 0

    def test_rating(self):
        assert rating_factor(anime(average_score=85)) == 0.85
        assert rating_factor(anime(average_score=None)) == 0

    @pytest.mark.parametrize("start,expected", [
        ({'year': 2025, 'month': 4}, 0.75),
        ({'year': 2024, 'month': 10}, 0.6),
        ({'year': 2022, 'month': 1}, 0.0),
        (None, 0.5),
        ({'year': None, 'month': 3}, 0.5),
    ])
    def test_release_date(self, start, expected):
        assert release_date_factor(anime(start=start), TODAY) == pytest.approx(expected)

    def test_trending_genres(self):
        assert trending_genre_factor(anime(genres=['Action', 'Slice of Life']), ['Action']) == 0.5
        assert trending_genre_factor(anime(genres=[]), ['Action']) == 0

    def test_genre_relevance(self):
        assert genre_relevance_factor(anime(genres=['Drama', 'Action']), ['Drama']) == 1.0
        assert genre_relevance_factor(anime(genres=['Drama', 'Action']), ['Drama', 'Horror', 'Sports']) == 0.5
        assert genre_relevance_factor(anime(genres=['Drama']), []) == 0.5


class TestCalculateRankingScore:
    """Tests for calculate_ranking_score function"""

    def test_default_weights(self):
        entry = anime(start={'year': 2025, 'month': 4}, genres=['Action', 'Slice of Life'])
        score, factors = calculate_ranking_score(entry, today=TODAY)

        # (0.5*0.3 + 0.8*0.2 + 0.75*0.2 + 0.5*0.15) / 0.85 * 10
        assert score == 6.29
        assert set(factors) == {'popularity', 'score', 'release_date', 'trending_genres'}
        assert factors['release_date'] == pytest.approx(0.75)

    def test_single_enabled_factor(self):
        config = {'ranking': {'factors': {
            'popularity': {'enabled': False},
            'release_date': {'enabled': False},
            'trending_genres': {'enabled': False},
        }}}
        score, factors = calculate_ranking_score(anime(), config, TODAY)
        assert score == 8.0
        assert factors == {'score': 0.8}

    def test_preferred_genres_from_config(self):
        config = {'ranking': {
            'preferred_genres': ['Drama'],
            'factors': {'genre_relevance': {'enabled': True}},
        }}
        _, factors = calculate_ranking_score(anime(genres=['Drama']), config, TODAY)
        assert factors['genre_relevance'] == 1.0

    def test_nothing_enabled(self):
        config = {'ranking': {'factors': {
            name: {'enabled': False}
            for name in ('popularity', 'score', 'release_date', 'trending_genres')
        }}}
        assert calculate_ranking_score(anime(), config, TODAY) == (0.0, {})


class TestRankByGeneralScore:
    """Tests for rank_by_general_score function"""

    def test_orders_and_ranks(self):
        entries = [anime(1, popularity=100), anime(2, popularity=60000), anime(3, popularity=90000)]
        ranked = rank_by_general_score(entries, today=TODAY)

        # 2 and 3 both saturate popularity; the more popular one leads
        assert [a['id'] for a in ranked] == [3, 2, 1]
        assert [a['rank'] for a in ranked] == [1, 2, 3]
        assert ranked[0]['ranking_score'] == ranked[1]['ranking_score']
        assert ranked[0]['ranking_score'] > ranked[2]['ranking_score']

    def test_input_not_modified(self):
        entries = [anime(1)]
        ranked = rank_by_general_score(entries, today=TODAY)
        assert 'ranking_score' not in entries[0]
        assert ranked[0] is not entries[0]

    def test_empty(self):
        assert rank_by_general_score([]) == []
