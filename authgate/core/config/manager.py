from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ValidationError

from authgate.core.config.io import (
    atomic_write_json,
    quarantine,
    read_json_file,
    restore_last_known_good,
    snapshot_last_known_good,
)
from authgate.core.config.models import (
    AppConfig,
    AppFileConfig,
    CredentialsConfig,
    SessionsConfig,
    WebConfig,
)
from authgate.core.config.paths import ConfigFsPaths
from authgate.core.errors import ConfigError


# file name -> (AppConfig field, model)
CONFIG_FILES: Dict[str, tuple[str, type[BaseModel]]] = {
    "app.json": ("app", AppFileConfig),
    "sessions.json": ("sessions", SessionsConfig),
    "credentials.json": ("credentials", CredentialsConfig),
    "web.json": ("web", WebConfig),
}


class ConfigManager:
    """
    Loads config/*.json into one validated AppConfig.

    - missing files are written with defaults
    - a corrupt file is quarantined under backups/ and replaced with its
      last-known-good copy (or defaults when there is none)
    - any invalid value raises ConfigError; nothing is half-applied
    - read_only never touches the filesystem (scripts, inspection)
    """

    def __init__(
        self,
        *,
        fs: Optional[ConfigFsPaths] = None,
        logger=None,
        read_only: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._environ = os.environ if environ is None else environ
        self._cfg: Optional[AppConfig] = None

    # ---------- public API ----------
    def load_all(self) -> AppConfig:
        raw = {name: self._load_one(name) for name in CONFIG_FILES}
        cfg = self._apply_env(self._validate(raw))
        self._cfg = cfg
        if not self.read_only:
            snapshot_last_known_good(self.fs.config_dir, self.fs.last_known_good_dir, CONFIG_FILES)
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save_file(self, filename: str, data: Dict[str, Any]) -> AppConfig:
        """
        Atomic write + backup, then reload and validate the whole set.
        An invalid write raises; the prewrite backup stays available.
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if filename not in CONFIG_FILES:
            raise ConfigError(f"Unknown config file: {filename}")
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        atomic_write_json(self.fs.config_file(filename), data, self.fs.backups_dir, keep=self._keep())
        return self.load_all()

    def resolve_path(self, path: str) -> str:
        return self.fs.resolve(path)

    # ---------- internals ----------
    def _keep(self) -> int:
        return int(self._cfg.app.max_backups_per_file) if self._cfg is not None else 10

    def _warn(self, msg: str) -> None:
        if self.logger:
            self.logger.warning(msg)

    def _load_one(self, name: str) -> Dict[str, Any]:
        path = self.fs.config_file(name)
        rr = read_json_file(path)
        if rr.ok and rr.data:
            return rr.data

        if rr.corrupt and not self.read_only:
            moved = quarantine(path, self.fs.backups_dir)
            restored = restore_last_known_good(path, self.fs.last_known_good_dir, self.fs.backups_dir, keep=self._keep())
            self._warn(f"Corrupt config {name} moved to {moved}; recovered={restored is not None}")
            if restored is not None:
                return restored
        elif rr.error and rr.error != "missing":
            self._warn(f"Unreadable config {name} ({rr.error}); using defaults.")

        _, model = CONFIG_FILES[name]
        defaults = model().model_dump()
        if rr.error == "missing":
            self._warn(f"Missing config {name}; creating defaults.")
        if not self.read_only:
            atomic_write_json(path, defaults, self.fs.backups_dir, keep=self._keep())
        return defaults

    def _validate(self, raw: Dict[str, Dict[str, Any]]) -> AppConfig:
        parts: Dict[str, BaseModel] = {}
        for name, (field_name, model) in CONFIG_FILES.items():
            try:
                parts[field_name] = model.model_validate(raw.get(name) or {})
            except ValidationError as e:
                raise ConfigError(f"{name}: {e}", file=name) from e
        return AppConfig(**parts)

    def _apply_env(self, cfg: AppConfig) -> AppConfig:
        port = str(self._environ.get("PORT") or "").strip()
        if not port:
            return cfg
        try:
            web = WebConfig.model_validate({**cfg.web.model_dump(), "port": int(port)})
        except (ValueError, ValidationError) as e:
            raise ConfigError(f"Invalid PORT environment value: {port!r}") from e
        return cfg.model_copy(update={"web": web})


_singleton: Optional[ConfigManager] = None


def get_config(*, logger=None, read_only: bool = False) -> ConfigManager:
    global _singleton  # noqa: PLW0603
    if _singleton is None:
        root = os.environ.get("AUTHGATE_ROOT") or "."
        _singleton = ConfigManager(fs=ConfigFsPaths(root), logger=logger, read_only=read_only)
        _singleton.load_all()
    return _singleton
