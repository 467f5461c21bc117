from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    @property
    def runtime_dir(self) -> str:
        return os.path.join(self.root, "runtime")

    # Files
    @property
    def bridge(self) -> str:
        return os.path.join(self.config_dir, "bridge.json")

    def resolve(self, path: str) -> str:
        """Relative paths in config are relative to the root."""
        if os.path.isabs(path):
            return path
        return os.path.join(self.root, path)
