# -*- coding: utf-8 -*-
"""Tests for the YAML comparison table and its validation."""

import pytest
from pydantic import ValidationError

from config import ComparisonConfig, get_config, load_comparison_config, reload_config
from config.models import (
    MatchingConfig,
    RenderClassifierConfig,
    ScoringConfig,
    SegmentationProfile,
    validate_comparison_config,
)


@pytest.fixture
def restore_config(monkeypatch):
    yield monkeypatch
    monkeypatch.undo()
    reload_config()


class TestYamlTable:
    def test_matches_builtin_defaults(self):
        loaded = load_comparison_config()
        assert loaded.render_classifier == RenderClassifierConfig()
        assert loaded.matching == MatchingConfig()
        assert loaded.scoring == ScoringConfig()

    def test_dot_access(self):
        config = get_config()
        assert config.get("scoring.bonus_multiplier") == pytest.approx(1.3)
        assert config.get("matching.missing_key", "fallback") == "fallback"
        assert "render" in config.get_section("features")

    def test_env_override(self, restore_config):
        restore_config.setenv("LCDMATCH_SCORING_BOTH_RENDER_POWER", "0.5")
        reload_config()
        assert get_config().get("scoring.both_render.power") == 0.5
        assert load_comparison_config().scoring.profile(True).power == 0.5

    def test_unknown_env_key_ignored(self, restore_config):
        restore_config.setenv("LCDMATCH_NO_SUCH_SETTING", "1")
        reload_config()
        assert get_config().get("no_such_setting") is None

    def test_missing_file_uses_defaults(self, restore_config, tmp_path):
        restore_config.setenv("LCDMATCH_CONFIG", str(tmp_path / "absent.yaml"))
        reload_config()
        assert get_config().as_dict() == {}
        assert load_comparison_config() == ComparisonConfig()


class TestValidation:
    def test_even_blur_kernel_rejected(self):
        with pytest.raises(ValidationError):
            RenderClassifierConfig(blur_kernel=4)

    def test_canny_order(self):
        with pytest.raises(ValidationError):
            RenderClassifierConfig(canny_low=210, canny_high=200)

    def test_even_block_size_rejected(self):
        with pytest.raises(ValidationError):
            SegmentationProfile(adaptive_block_size=24)

    def test_partial_table(self):
        config = validate_comparison_config({"matching": {"ratio_mixed": 0.9}, "logging": {}})
        assert config.matching.ratio(False) == 0.9
        assert config.matching.ratio(True) == MatchingConfig().ratio(True)

    def test_profiles(self):
        config = ComparisonConfig()
        assert config.scoring.profile(True).max_distance == 80.0
        assert config.scoring.profile(False).max_distance == 100.0
        assert config.features.profile(False).nlevels == 12
