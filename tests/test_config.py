"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from staff_console.core.config import EnvironmentMode, ExportBackend, Settings


class TestSettings:
    """Test Settings defaults and validation"""

    def test_defaults(self):
        """Defaults match the console's documented intervals and thresholds"""
        s = Settings(_env_file=None)
        assert s.refresh_interval_seconds > 0
        assert s.notification_max_retries == 3
        assert s.notification_retry_base_delay == 1.0
        assert s.urgency_badge_minutes == 20
        assert s.timer_near_complete_seconds == 300
        assert s.desktop_auto_dismiss_seconds == 5.0
        assert s.bulk_throttle_seconds == 0.0
        assert s.export_backend == ExportBackend.INLINE

    def test_wait_alert_minutes_parsed_and_sorted(self):
        s = Settings(wait_alert_minutes="60, 30,45")
        assert s.wait_alert_minutes_list == [30, 45, 60]

    def test_env_mode_is_case_insensitive(self):
        s = Settings(env_mode="PRODUCTION")
        assert s.env_mode == EnvironmentMode.PRODUCTION
        assert s.is_production
        assert s.use_real_services

    def test_invalid_env_mode_rejected(self):
        with pytest.raises(ValidationError):
            Settings(env_mode="chaos")

    def test_sound_volume_bounds(self):
        with pytest.raises(ValidationError):
            Settings(sound_volume=1.5)

    def test_production_config_reports_missing_keys(self):
        s = Settings(env_mode="staging", order_api_base_url=None, order_api_token=None)
        assert s.validate_production_config() == ["ORDER_API_BASE_URL", "ORDER_API_TOKEN"]

    def test_development_needs_nothing(self):
        s = Settings(env_mode="development", order_api_base_url=None)
        assert s.is_development
        assert s.validate_production_config() == []
