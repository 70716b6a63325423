"""
Unit Tests for Settings

Tests defaults, derived values, validation and environment overrides.
"""

import pytest
from pydantic import ValidationError

from lifeline.config import EscalationSettings, Settings, SignalSettings


class TestSignalSettings:
    """Tests for sampling configuration."""

    def test_defaults(self, signal_settings):
        assert signal_settings.capacity == 300
        assert signal_settings.period_seconds == pytest.approx(1 / 30)
        assert signal_settings.min_samples == 100

    def test_periodicity_bounds_must_be_ordered(self):
        with pytest.raises(ValidationError):
            SignalSettings(periodicity_floor=0.8, periodicity_full=0.5)

    def test_inverted_band_rejected(self):
        with pytest.raises(ValidationError):
            SignalSettings(low_cut_hz=3.0, high_cut_hz=0.5)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LIFELINE_SIGNAL_SAMPLE_RATE_HZ", "60")
        assert SignalSettings().capacity == 600


class TestEscalationSettings:
    """Tests for notification protocol timing."""

    def test_protocol_defaults(self, escalation_settings):
        assert escalation_settings.trigger_tier == "high"
        assert escalation_settings.countdown_seconds == 10.0
        assert escalation_settings.stagger_seconds == 2.0
        assert escalation_settings.retry_backoff_seconds == 30.0
        assert escalation_settings.max_retries == 2

    def test_retries_capped_at_two(self):
        with pytest.raises(ValidationError):
            EscalationSettings(max_retries=3)


class TestSettings:
    """Tests for application settings."""

    def test_nested_sections(self, test_settings):
        assert isinstance(test_settings.signal, SignalSettings)
        assert test_settings.dispatcher == "logging"
        assert not test_settings.is_production()

    def test_unknown_dispatcher_rejected(self):
        with pytest.raises(ValidationError):
            Settings(dispatcher="pager", _env_file=None)
