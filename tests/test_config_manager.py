from __future__ import annotations

import json
import os

import pytest

from bridge.core.config import ConfigFsPaths, ConfigManager
from bridge.core.errors import ConfigError

from .helpers.fakes import FakeLogger


def _mk_cm(tmp_path, **kw) -> ConfigManager:  # noqa: ANN001
    return ConfigManager(fs=ConfigFsPaths(root=str(tmp_path)), logger=FakeLogger(), **kw)


def test_defaults_written_when_missing(tmp_path):
    cm = _mk_cm(tmp_path)
    cfg = cm.load_all()
    assert cfg.cookies.partner_info_key == "bridge_partner_info"
    assert cfg.partner.code_param == "p"
    assert cfg.partner.info_param == "pi"
    assert cfg.identity.clear_on_logout is True
    on_disk = json.loads((tmp_path / "config" / "bridge.json").read_text(encoding="utf-8"))
    assert on_disk["transport"]["base_url"] == "http://127.0.0.1:8080"


def test_get_before_load_raises(tmp_path):
    with pytest.raises(ConfigError):
        _mk_cm(tmp_path).get()


def test_validation_rejects_unknown_fields(tmp_path):
    cm = _mk_cm(tmp_path)
    cm.load_all()
    bad = cm.get().model_dump()
    bad["transport"]["unknown_field"] = 1
    with pytest.raises(ConfigError):
        cm.save(bad)
    # invalid data never reaches disk
    on_disk = json.loads((tmp_path / "config" / "bridge.json").read_text(encoding="utf-8"))
    assert "unknown_field" not in on_disk["transport"]


def test_save_normalizes_base_url(tmp_path):
    cm = _mk_cm(tmp_path)
    data = cm.load_all().model_dump()
    data["transport"]["base_url"] = "https://auth.example.test/"
    cfg = cm.save(data)
    assert cfg.transport.base_url == "https://auth.example.test"
    assert _mk_cm(tmp_path).load_all().transport.base_url == "https://auth.example.test"


def test_non_http_base_url_rejected(tmp_path):
    cm = _mk_cm(tmp_path)
    data = cm.load_all().model_dump()
    data["transport"]["base_url"] = "ftp://x"
    with pytest.raises(ConfigError):
        cm.save(data)


def test_corrupt_json_is_quarantined_and_defaults_used(tmp_path):
    cm = _mk_cm(tmp_path)
    cm.load_all()
    path = tmp_path / "config" / "bridge.json"
    path.write_text("{not json", encoding="utf-8")
    cfg = cm.load_all()
    assert cfg.transport.timeout_seconds == 10.0
    backups = os.listdir(tmp_path / "config" / "backups")
    assert any("bridge.json" in b and "corrupt" in b for b in backups)
    assert any(level == "warning" for level, _ in cm.logger.lines)


def test_read_only_does_not_write(tmp_path):
    cm = _mk_cm(tmp_path, read_only=True)
    cm.load_all()
    assert not (tmp_path / "config" / "bridge.json").exists()
    with pytest.raises(ConfigError):
        cm.save({})


def test_resolve_path_relative_to_root(tmp_path):
    cm = _mk_cm(tmp_path)
    assert cm.resolve_path("runtime/cookies.json") == os.path.join(str(tmp_path), "runtime/cookies.json")
    assert cm.resolve_path(os.path.abspath("/abs/x")) == os.path.abspath("/abs/x")


def test_log_level_is_normalized_and_checked(tmp_path):
    cm = _mk_cm(tmp_path)
    data = cm.load_all().model_dump()
    data["logging"]["level"] = "debug"
    assert cm.save(data).logging.level == "DEBUG"
    data["logging"]["level"] = "chatty"
    with pytest.raises(ConfigError):
        cm.save(data)
