"""
Tests for settings validation and merging.
"""

import pytest

from delta_bot.config import AgentConfig, BotSettings, apply_settings_update
from delta_bot.exceptions import ConfigError


class TestApplySettingsUpdate:
    """Tests for apply_settings_update."""

    @pytest.fixture
    def current(self):
        return BotSettings(
            delta_threshold=0.15,
            check_interval_ms=60000,
            min_hedge_size=0.01,
            hedge_product_id=27,
        )

    def test_partial_merge(self, current):
        update = apply_settings_update(current, {"deltaThreshold": 0.2})

        assert update.settings.delta_threshold == 0.2
        assert update.settings.min_hedge_size == 0.01
        assert not update.restart_required

    def test_interval_change_requires_restart(self, current):
        update = apply_settings_update(current, {"checkIntervalMs": 30000})

        assert update.settings.check_interval_ms == 30000
        assert update.restart_required

    def test_same_interval_no_restart(self, current):
        update = apply_settings_update(current, {"check_interval_ms": 60000})
        assert not update.restart_required

    def test_zero_values_are_applied(self, current):
        update = apply_settings_update(current, {"minHedgeSize": 0})
        assert update.settings.min_hedge_size == 0

    def test_none_values_ignored(self, current):
        update = apply_settings_update(current, {"deltaThreshold": None})
        assert update.settings == current

    @pytest.mark.parametrize(
        "partial",
        [
            {"checkIntervalMs": 0},
            {"checkInterval": -1000},
            {"deltaThreshold": -0.1},
            {"minHedgeSize": -1},
            {"hedgeProductId": 0},
            {"deltaThreshold": "lots"},
            {"maxLeverage": 10},
            {"checkIntervalMs": True},
            {"checkIntervalMs": "5000"},
            {"checkIntervalMs": 1500.5},
            {"deltaThreshold": "0.2"},
            {"hedgeProductId": "27"},
        ],
    )
    def test_invalid_values_rejected(self, current, partial):
        with pytest.raises(ConfigError):
            apply_settings_update(current, partial)

    def test_rejection_leaves_current_untouched(self, current):
        before = current.model_dump()
        with pytest.raises(ConfigError):
            apply_settings_update(current, {"deltaThreshold": 0.3, "checkIntervalMs": -5})
        assert current.model_dump() == before


class TestBotSettings:
    def test_from_config(self):
        config = AgentConfig(
            delta_threshold=0.1,
            check_interval_ms=5000,
            min_hedge_size=0.5,
            hedge_product_id=3,
        )

        settings = BotSettings.from_config(config)

        assert settings.check_interval_seconds == 5.0
        assert settings.hedge_product_id == 3

    def test_from_invalid_config(self):
        with pytest.raises(ConfigError):
            BotSettings.from_config(AgentConfig(check_interval_ms=0))
