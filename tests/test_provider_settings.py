import io
import json
import logging
from pathlib import Path

from softap_configd import config
from softap_configd.logging import JsonFormatter
from softap_configd.provider import (
    DEFAULT_OVERLAY,
    LoggingBackupNotifier,
    OverlayConfigProvider,
    StaticConfigProvider,
    parse_channel_list,
)


def test_parse_channel_list_forms():
    assert parse_channel_list("1,6,11") == [1, 6, 11]
    assert parse_channel_list(" 1, 6 ,11,") == [1, 6, 11]
    assert parse_channel_list([1, "6", 11]) == [1, 6, 11]
    assert parse_channel_list("1,x,11") == [1, 11]
    assert parse_channel_list(None) is None


def test_static_provider_defaults():
    p = StaticConfigProvider()
    assert p.default_ssid_template() == DEFAULT_OVERLAY["wifi_tether_configure_ssid_default"]
    assert p.allowed_2g_channels() == [1, 6, 11]
    assert p.softap_interface_candidates() == ["wlan0"]
    assert p.dual_sap_enabled() is False
    assert p.dual_sap_interfaces() == []


def test_static_provider_kwargs_override_dict():
    p = StaticConfigProvider({"config_tether_wifi_regexs": ["wlan0"]}, config_tether_wifi_regexs="softap0")
    assert p.softap_interface_candidates() == ["softap0"]


def test_overlay_provider_merges_file(tmp_path):
    path = tmp_path / "overlay.json"
    path.write_text(json.dumps({"wifi_tether_configure_ssid_default": "Pixel"}), encoding="utf-8")
    p = OverlayConfigProvider(path)
    assert p.default_ssid_template() == "Pixel"
    assert p.local_only_ssid_template() == DEFAULT_OVERLAY["wifi_localhotspot_configure_ssid_default"]


def test_overlay_provider_tolerates_bad_file(tmp_path):
    path = tmp_path / "overlay.json"
    path.write_text("{not json", encoding="utf-8")
    assert OverlayConfigProvider(path).overlay == DEFAULT_OVERLAY
    assert OverlayConfigProvider(tmp_path / "missing.json").overlay == DEFAULT_OVERLAY


def test_logging_backup_notifier_counts():
    n = LoggingBackupNotifier()
    n.notify_changed()
    n.notify_changed()
    assert n.count == 2


def test_load_settings_env_overrides():
    s = config.load_settings(
        {
            config.ENV_AP_CONFIG_FILE: "/tmp/softap.conf",
            config.ENV_CONCURRENCY_FILE: "  ",
        }
    )
    assert s.ap_config_file == Path("/tmp/softap.conf")
    assert s.concurrency_template_file == config.DEFAULT_CONCURRENCY_TEMPLATE
    assert s.overlay_file == config.DEFAULT_OVERLAY_FILE


def test_json_formatter_structured_fields():
    buf = io.StringIO()
    handler = logging.StreamHandler(buf)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger("softap_configd.test_formatter")
    logger.addHandler(handler)
    logger.propagate = False
    try:
        logger.warning("softap_config_fallback_to_default", extra={"kind": "bad_version", "path": "/x"})
    finally:
        logger.removeHandler(handler)

    payload = json.loads(buf.getvalue())
    assert payload["msg"] == "softap_config_fallback_to_default"
    assert payload["level"] == "WARNING"
    assert payload["kind"] == "bad_version"
    assert payload["path"] == "/x"
    assert "field" not in payload


def test_json_formatter_masks_secret_extras():
    record = logging.LogRecord("softap_configd.x", logging.INFO, __file__, 1, "softap_config_written", None, None)
    record.pre_shared_key = "abcdefgh"
    record.op = "set"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["pre_shared_key"] == "********"
    assert payload["op"] == "set"
    assert "abcdefgh" not in JsonFormatter().format(record)


def test_resolve_level(monkeypatch):
    from softap_configd.logging import resolve_level

    monkeypatch.setenv(config.ENV_LOG_LEVEL, "debug")
    assert resolve_level() == logging.DEBUG
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level("nonsense") == logging.INFO
