from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    """
    Filesystem layout under one root:

        <root>/config/*.json
        <root>/config/backups/                  prewrite and corrupt copies
        <root>/config/backups/last_known_good/  copy of the last set that validated
    """

    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    @property
    def last_known_good_dir(self) -> str:
        return os.path.join(self.backups_dir, "last_known_good")

    def config_file(self, name: str) -> str:
        return os.path.join(self.config_dir, name)

    def resolve(self, path: str) -> str:
        """Relative paths inside config values are relative to the root."""
        if os.path.isabs(path):
            return path
        return os.path.join(self.root, path)
