"""Unit tests for the weighted-feature scorer."""

import pytest

from conftest import make_profile, make_recipe
from src.models.models import FeatureVector
from src.prediction.features import extract_features
from src.prediction.scoring import (
    FEATURE_WEIGHTS,
    confidence_interval_for,
    describe_factor,
    risk_level_for,
    score_features,
)


def features_with(**overrides) -> FeatureVector:
    data = {name: 0.0 for name in FeatureVector.model_fields}
    data.update(overrides)
    return FeatureVector(**data)


class TestScoreFeatures:
    """Test probability, interval and factor ranking."""

    def test_all_zero_features_score_base(self):
        result = score_features(features_with())

        assert result.success_probability == pytest.approx(0.5)
        assert result.risk_level == "medium"

    def test_weighted_sum(self):
        features = features_with(user_skill_level=0.6, user_success_rate=0.5, recipe_complexity=0.4)
        result = score_features(features)

        expected = 0.5 + 0.15 * 0.6 + 0.20 * 0.5 - 0.15 * 0.4
        assert result.success_probability == pytest.approx(expected)

    def test_clamped_high(self):
        features = features_with(**{name: 1.0 for name in FEATURE_WEIGHTS})
        assert score_features(features).success_probability == 0.95

    def test_worst_case_profile_is_high_risk(self):
        result = score_features(features_with(skill_gap=-1.0, recipe_complexity=1.0))

        assert result.success_probability == pytest.approx(0.17)
        assert result.risk_level == "high"

    @pytest.mark.parametrize("skill_gap", [-1.0, -0.4, 0.0, 0.5, 1.0])
    def test_score_and_interval_bounds(self, skill_gap):
        result = score_features(features_with(skill_gap=skill_gap, time_constraint=2.0, recipe_complexity=1.0))
        lower, upper = result.confidence_interval

        assert 0.05 <= result.success_probability <= 0.95
        assert 0.0 <= lower <= result.success_probability <= upper <= 1.0

    def test_contributions_ranked_by_magnitude(self):
        features = features_with(user_success_rate=1.0, recipe_complexity=0.9, dietary_match=1.0)
        result = score_features(features)

        assert [c.factor for c in result.contributions[:3]] == [
            "user_success_rate",
            "recipe_complexity",
            "dietary_match",
        ]
        assert len(result.contributions) == len(FEATURE_WEIGHTS)

    def test_key_factors_capped(self):
        result = score_features(features_with(), max_key_factors=3)
        assert len(result.key_factors) == 3

    def test_ties_keep_weight_table_order(self):
        result = score_features(features_with())
        assert [c.factor for c in result.contributions] == list(FEATURE_WEIGHTS)


class TestMonotonicity:
    def test_higher_skill_never_lowers_score(self):
        recipe = make_recipe(difficulty_level="hard")
        scores = [
            score_features(extract_features(make_profile(skill_level=level), recipe, [])).success_probability
            for level in range(1, 11)
        ]
        assert scores == sorted(scores)


class TestHelpers:
    @pytest.mark.parametrize("score,level", [(0.7, "low"), (0.69, "medium"), (0.4, "medium"), (0.39, "high")])
    def test_risk_level_thresholds(self, score, level):
        assert risk_level_for(score) == level

    def test_confidence_interval_margin(self):
        lower, upper = confidence_interval_for(0.6, 0.8)
        assert lower == pytest.approx(0.56)
        assert upper == pytest.approx(0.64)

    def test_confidence_interval_stays_in_unit_range(self):
        lower, upper = confidence_interval_for(0.02, 0.0)
        assert lower == 0.0
        assert upper == pytest.approx(0.22)

    def test_describe_skill_level(self):
        assert describe_factor("user_skill_level", 0.3, 0.045) == "Your skill level (3/10) helps with this recipe"

    def test_describe_complexity(self):
        assert describe_factor("recipe_complexity", 0.8, -0.12) == "Recipe complexity high"

    def test_describe_equipment(self):
        assert describe_factor("equipment_match", 0.5, 0.06) == "You have 50% of required equipment"
