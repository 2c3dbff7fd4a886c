"""
Tests for ingestor configuration loading.

CHANGELOG:
- 2026-10-16: Add WebhookSettings tests
- 2026-10-15: Initial creation
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ingestor.src.config import DatabaseSettings, IngestorSettings, WebhookSettings


# ===========================================================================
# IngestorSettings
# ===========================================================================


class TestIngestorSettingsDefaults:
    def test_required_only(self, env_vars_required_only) -> None:
        settings = IngestorSettings()

        assert settings.pg_dsn == env_vars_required_only["PG_DSN"]
        assert settings.ttn_app_id == "openclimate"
        assert settings.ttn_api_key == "NNSXS.TESTKEY"
        assert settings.ttn_region_host == "au1.cloud.thethings.network"
        assert settings.mqtt_topic == "v3/openclimate@ttn/devices/+/up"
        assert settings.ttn_mqtt_port == 1883
        assert settings.mqtt_use_auth is True
        assert settings.ttn_mqtt_protocol == "mqtt"
        assert settings.db_pool_size == 10
        assert settings.db_pool_timeout_s == 30.0
        assert settings.record_uplinks is False
        assert settings.debug is False

    @pytest.mark.parametrize(
        "missing", ["PG_DSN", "TTN_APP_ID", "TTN_API_KEY", "TTN_REGION_HOST", "MQTT_TOPIC"]
    )
    def test_missing_required(self, env_vars_required_only, monkeypatch, missing: str) -> None:
        monkeypatch.delenv(missing)
        with pytest.raises(ValidationError):
            IngestorSettings()

    def test_overrides(self, env_vars_required_only, monkeypatch) -> None:
        monkeypatch.setenv("TTN_MQTT_PORT", "8883")
        monkeypatch.setenv("TTN_MQTT_PROTOCOL", "MQTTS")
        monkeypatch.setenv("MQTT_USE_AUTH", "false")
        monkeypatch.setenv("RECORD_UPLINKS", "true")
        monkeypatch.setenv("DB_POOL_SIZE", "25")

        settings = IngestorSettings()

        assert settings.ttn_mqtt_port == 8883
        assert settings.ttn_mqtt_protocol == "mqtts"
        assert settings.mqtt_use_auth is False
        assert settings.record_uplinks is True
        assert settings.db_pool_size == 25

    def test_env_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text(
            "PG_DSN=postgresql://u:p@db/weather\n"
            "TTN_APP_ID=app\n"
            "TTN_API_KEY=key\n"
            "TTN_REGION_HOST=eu1.cloud.thethings.network\n"
            "MQTT_TOPIC=v3/app@ttn/devices/+/up\n"
        )
        settings = IngestorSettings()
        assert settings.ttn_region_host == "eu1.cloud.thethings.network"


class TestIngestorSettingsValidation:
    @pytest.mark.parametrize("port", ["0", "65536", "-1"])
    def test_bad_port(self, env_vars_required_only, monkeypatch, port: str) -> None:
        monkeypatch.setenv("TTN_MQTT_PORT", port)
        with pytest.raises(ValidationError, match="TTN_MQTT_PORT"):
            IngestorSettings()

    def test_bad_protocol(self, env_vars_required_only, monkeypatch) -> None:
        monkeypatch.setenv("TTN_MQTT_PROTOCOL", "ws")
        with pytest.raises(ValidationError):
            IngestorSettings()

    def test_non_postgres_dsn(self, env_vars_required_only, monkeypatch) -> None:
        monkeypatch.setenv("PG_DSN", "mysql://u:p@db/weather")
        with pytest.raises(ValidationError, match="PG_DSN"):
            IngestorSettings()

    @pytest.mark.parametrize("size", ["0", "101"])
    def test_bad_pool_size(self, env_vars_required_only, monkeypatch, size: str) -> None:
        monkeypatch.setenv("DB_POOL_SIZE", size)
        with pytest.raises(ValidationError, match="DB_POOL_SIZE"):
            IngestorSettings()

    def test_bad_pool_timeout(self, env_vars_required_only, monkeypatch) -> None:
        monkeypatch.setenv("DB_POOL_TIMEOUT_S", "0")
        with pytest.raises(ValidationError, match="DB_POOL_TIMEOUT_S"):
            IngestorSettings()


# ===========================================================================
# DatabaseSettings / WebhookSettings
# ===========================================================================


class TestDatabaseSettings:
    def test_only_needs_dsn(self, monkeypatch) -> None:
        monkeypatch.setenv("PG_DSN", "postgres://u:p@db/weather")
        settings = DatabaseSettings()
        assert settings.health_path == "/tmp/ingestor-health.json"


class TestWebhookSettings:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("PG_DSN", "postgres://u:p@db/weather")
        settings = WebhookSettings()
        assert settings.webhook_token == ""
        assert settings.max_request_bytes == 262144

    def test_mqtt_settings_not_required(self, monkeypatch) -> None:
        monkeypatch.setenv("PG_DSN", "postgres://u:p@db/weather")
        monkeypatch.setenv("WEBHOOK_TOKEN", "s3cret")
        assert WebhookSettings().webhook_token == "s3cret"

    def test_bad_body_limit(self, monkeypatch) -> None:
        monkeypatch.setenv("PG_DSN", "postgres://u:p@db/weather")
        monkeypatch.setenv("MAX_REQUEST_BYTES", "0")
        with pytest.raises(ValidationError, match="MAX_REQUEST_BYTES"):
            WebhookSettings()
