from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from bridge.core.config.io import atomic_write_json, ensure_dirs, quarantine_corrupt, read_json_file
from bridge.core.config.models import BridgeConfig
from bridge.core.config.paths import ConfigFsPaths
from bridge.core.errors import ConfigError


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[BridgeConfig] = None

    # ---------- public API ----------
    def load_all(self) -> BridgeConfig:
        if not self.read_only:
            ensure_dirs(self.fs.config_dir, self.fs.backups_dir)

        raw = self._load_raw()
        cfg = self._validate(raw)
        self._cfg = cfg

        # create missing file with defaults
        if not self.read_only and not os.path.exists(self.fs.bridge):
            atomic_write_json(self.fs.bridge, cfg.model_dump())
            if self.logger:
                self.logger.info(f"Config created with defaults: {self.fs.bridge}")
        return cfg

    def get(self) -> BridgeConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, data: Dict[str, Any]) -> BridgeConfig:
        """
        Validate first, then atomic write. Invalid data never reaches disk.
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        cfg = self._validate(data)
        atomic_write_json(self.fs.bridge, cfg.model_dump())
        self._cfg = cfg
        return cfg

    def resolve_path(self, path: str) -> str:
        return self.fs.resolve(path)

    # ---------- internals ----------
    def _load_raw(self) -> Dict[str, Any]:
        rr = read_json_file(self.fs.bridge)
        if rr.ok:
            return rr.data
        if rr.error and rr.error != "missing":
            if self.read_only:
                raise ConfigError("Config file unreadable.", path=self.fs.bridge, error=rr.error)
            moved = quarantine_corrupt(self.fs.bridge, self.fs.backups_dir)
            if self.logger:
                self.logger.warning(f"Config file unreadable ({rr.error}); moved to {moved}, using defaults.")
        return {}

    def _validate(self, raw: Dict[str, Any]) -> BridgeConfig:
        try:
            return BridgeConfig.model_validate(raw)
        except PydanticValidationError as e:
            raise ConfigError("Config validation failed.", path=self.fs.bridge, errors=str(e)) from e
