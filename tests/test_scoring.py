"""Tests for seasonarr/scoring.py - preference scoring."""

import random
import pytest

from seasonarr.scoring import (
    BREAKDOWN_FIELDS,
    build_preference_lookup,
    calculate_base_score,
    calculate_combined_preference_score,
    calculate_preference_score,
    get_directors,
    select_top_pick,
)


def make_anime(popularity=10000, genres=None, studios=None, directors=None, tags=None, anime_id=1):
    return {
        'id': anime_id,
        'popularity': popularity,
        'genres': genres or [],
        'studios': {'nodes': [{'id': i, 'name': s} for i, s in enumerate(studios or [])]},
        'staff': {'edges': [{'role': 'Director', 'node': {'name': {'full': d}}} for d in directors or []]},
        'tags': [{'name': name, 'rank': rank} for name, rank in tags or []],
    }


def make_profile(genres=None, studios=None, directors=None, tags=None, top_pick=None):
    def prefs(values):
        return [{'name': name, 'score': v, 'count': 1, 'normalized_score': v} for name, v in (values or {}).items()]
    return {
        'genres': prefs(genres),
        'studios': prefs(studios),
        'directors': prefs(directors),
        'tags': prefs(tags),
        'top_pick': top_pick,
    }


class TestCalculateBaseScore:
    """Tests for calculate_base_score function"""

    @pytest.mark.parametrize("popularity,expected", [(1000, 6.0), (10000, 8.0), (100000, 10.0)])
    def test_logarithmic(self, popularity, expected):
        assert calculate_base_score(popularity) == pytest.approx(expected)

    def test_missing_popularity(self):
        assert calculate_base_score(None) == 0
        assert calculate_base_score(0) == 0


class TestCalculatePreferenceScore:
    """Tests for calculate_preference_score function"""

    def test_no_matches_gives_base_only(self):
        total, breakdown = calculate_preference_score(make_anime(genres=['Action']), make_profile())
        assert total == pytest.approx(8.0)
        assert set(breakdown) == set(BREAKDOWN_FIELDS)
        assert breakdown['studio_score'] == 0

    def test_studio_impact(self):
        anime = make_anime(studios=['Bones'])
        _, breakdown = calculate_preference_score(anime, make_profile(studios={'Bones': 0.5}))
        # (0.5 / 10) * 2 * 8.0
        assert breakdown['studio_score'] == pytest.approx(0.8)

    def test_studio_average_over_matches(self):
        anime = make_anime(studios=['Bones', 'MAPPA', 'Unknown'])
        _, breakdown = calculate_preference_score(anime, make_profile(studios={'Bones': 0.2, 'MAPPA': -0.6}))
        assert breakdown['studio_score'] == pytest.approx((-0.2 / 10) * 2 * 8.0)

    def test_case_insensitive_fallback(self):
        anime = make_anime(studios=['BONES'])
        _, breakdown = calculate_preference_score(anime, make_profile(studios={'bones': 0.5}))
        assert breakdown['studio_score'] == pytest.approx(0.8)

    def test_director_impact(self):
        anime = make_anime(directors=['Yamada'])
        _, breakdown = calculate_preference_score(anime, make_profile(directors={'Yamada': -0.5}))
        assert breakdown['director_score'] == pytest.approx(-0.8)

    def test_genre_diminishing_returns(self):
        anime = make_anime(genres=['Action', 'Drama'])
        _, breakdown = calculate_preference_score(anime, make_profile(genres={'Action': 4, 'Drama': 4}))
        # 4 * sqrt(2) / 10 * 8.0 * 0.1
        assert breakdown['genre_score'] == pytest.approx(0.4525, abs=1e-3)

    def test_tag_weighted_by_rank(self):
        anime = make_anime(tags=[('Gore', 50)])
        _, breakdown = calculate_preference_score(anime, make_profile(tags={'Gore': 1}))
        # 1 * 0.5 / 10 * 8.0 * 0.15
        assert breakdown['tag_score'] == pytest.approx(0.06)

    def test_total_is_sum_of_components(self):
        anime = make_anime(genres=['Action'], studios=['Bones'], directors=['Yamada'], tags=[('Gore', 80)])
        profile = make_profile(genres={'Action': 3}, studios={'Bones': 1}, directors={'Yamada': 2}, tags={'Gore': -4})
        total, breakdown = calculate_preference_score(anime, profile)
        assert total == pytest.approx(sum(breakdown.values()))

    @pytest.mark.parametrize("magnitude", [1000, -1000])
    def test_components_clamped(self, magnitude):
        anime = make_anime(
            genres=[f'G{i}' for i in range(20)],
            studios=['Bones'],
            directors=['Yamada'],
            tags=[(f'T{i}', 100) for i in range(20)],
        )
        profile = make_profile(
            genres={f'G{i}': magnitude for i in range(20)},
            studios={'Bones': magnitude},
            directors={'Yamada': magnitude},
            tags={f'T{i}': magnitude for i in range(20)},
        )
        _, breakdown = calculate_preference_score(anime, profile)
        base = breakdown['base_score']
        sign = 1 if magnitude > 0 else -1
        assert breakdown['studio_score'] == pytest.approx(sign * base * 0.2)
        assert breakdown['director_score'] == pytest.approx(sign * base * 0.2)
        assert breakdown['genre_score'] == pytest.approx(sign * base * 0.1)
        assert breakdown['tag_score'] == pytest.approx(sign * base * 0.15)

    def test_caps_hold_for_random_inputs(self):
        rng = random.Random(7)
        names = [f'N{i}' for i in range(8)]
        for _ in range(200):
            def pick():
                return rng.sample(names, rng.randint(0, len(names)))
            anime = make_anime(
                popularity=rng.choice([None, 10, 5000, 250000]),
                genres=pick(), studios=pick(), directors=pick(),
                tags=[(n, rng.randint(0, 100)) for n in pick()],
            )
            profile = make_profile(**{
                category: {n: rng.uniform(-500, 500) for n in pick()}
                for category in ('genres', 'studios', 'directors', 'tags')
            })
            _, breakdown = calculate_preference_score(anime, profile)
            base = breakdown['base_score']
            tolerance = 1e-9
            assert abs(breakdown['studio_score']) <= base * 0.2 + tolerance
            assert abs(breakdown['director_score']) <= base * 0.2 + tolerance
            assert abs(breakdown['genre_score']) <= base * 0.1 + tolerance
            assert abs(breakdown['tag_score']) <= base * 0.15 + tolerance

    def test_configured_caps(self):
        anime = make_anime(studios=['Bones'])
        config = {'scoring': {'caps': {'studio': 0.05}}}
        _, breakdown = calculate_preference_score(anime, make_profile(studios={'Bones': 100}), config)
        assert breakdown['studio_score'] == pytest.approx(8.0 * 0.05)

    def test_prebuilt_lookup(self):
        profile = make_profile(genres={'Action': 5})
        anime = make_anime(genres=['Action'])
        assert calculate_preference_score(anime, profile, lookup=build_preference_lookup(profile)) == \
            calculate_preference_score(anime, profile)

    def test_none_profile_raises(self):
        with pytest.raises(ValueError):
            calculate_preference_score(make_anime(), None)

    def test_does_not_mutate_anime(self):
        anime = make_anime(genres=['Action'])
        before = dict(anime)
        calculate_preference_score(anime, make_profile(genres={'Action': 5}))
        assert anime == before


class TestCombinedScore:
    """Tests for calculate_combined_preference_score function"""

    def test_mean_of_users(self):
        users = [
            {'username': 'a', 'score': 12.0, 'breakdown': {'base_score': 8.0, 'studio_score': 4.0}},
            {'username': 'b', 'score': 6.0, 'breakdown': {'base_score': 8.0, 'studio_score': -2.0}},
        ]
        combined = calculate_combined_preference_score(users)
        assert combined['score'] == 9.0
        assert combined['breakdown']['base_score'] == 8.0
        assert combined['breakdown']['studio_score'] == 1.0
        assert combined['breakdown']['tag_score'] == 0

    def test_base_equals_shared_user_base(self):
        base = calculate_base_score(12345)
        users = [
            {'username': 'a', 'score': base + 1.23, 'breakdown': {'base_score': base, 'genre_score': 1.23}},
            {'username': 'b', 'score': base - 0.4, 'breakdown': {'base_score': base, 'genre_score': -0.4}},
        ]
        combined = calculate_combined_preference_score(users)
        assert combined['breakdown']['base_score'] == base
        assert combined['breakdown']['genre_score'] == pytest.approx(0.415)
        assert combined['score'] == round(base + 0.415, 1)

    def test_empty(self):
        assert calculate_combined_preference_score([])['score'] == 0


class TestSelectTopPick:
    """Tests for select_top_pick function"""

    def test_designated_pick_in_candidates(self):
        assert select_top_pick({'top_pick': 2}, [1, 2, 3], {1: 9, 2: 1, 3: 5}) == 2

    def test_falls_back_to_highest_score(self):
        assert select_top_pick({'top_pick': 99}, [1, 2, 3], {1: 9, 2: 1, 3: 5}) == 1
        assert select_top_pick({}, [1, 2], {1: 1, 2: 4}) == 2

    def test_no_candidates(self):
        assert select_top_pick({'top_pick': 1}, [], {}) is None


class TestGetDirectors:
    """Tests for get_directors function"""

    def test_filters_roles(self):
        anime = {'staff': {'edges': [
            {'role': 'Director', 'node': {'name': {'full': 'A'}}},
            {'role': 'Series Director', 'node': {'name': {'full': 'B'}}},
            {'role': 'Original Creator', 'node': {'name': {'full': 'C'}}},
            {'role': 'Episode Director', 'node': {'name': {'full': 'A'}}},
        ]}}
        assert get_directors(anime) == ['A', 'B']

    def test_missing_staff(self):
        assert get_directors({}) == []
