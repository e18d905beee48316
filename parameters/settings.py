# settings.py

import logging
import os
from pathlib import Path

import yaml

logger = logging.getLogger("launchenv")

HOME_ENV_VAR = "LAUNCHENV_HOME"
CONFIG_FILE = "config.yaml"


def default_home_dir() -> str:
    """Return ``$LAUNCHENV_HOME`` or ``~/.launchenv``."""
    home = os.environ.get(HOME_ENV_VAR, "").strip()
    if home:
        return home
    return str(Path.home() / ".launchenv")


class Settings:
    def __init__(self, initial_params=None):
        """
        all settings are defined with underscore, _, instead of spaces
        """
        home = default_home_dir()
        self._params = {
            "home_dir": home,
            # Directory holding one sub-directory per environment profile.
            "envs_dir": str(Path(home) / "envs"),
            # Echo raw and expanded script lines on stderr.
            "verbose": False,
            # Passes of ${...} expansion before giving up on a cycle.
            "max_expansion_depth": 100,
            # Seconds to wait for a terminated process before killing it.
            "kill_timeout": 5.0,
            "log_file": None,
        }
        if initial_params:
            self.update(initial_params)

    def __getattr__(self, name):
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            return params[name]
        raise AttributeError(
            f"{type(self).__name__!s} object has no attribute {name!r}"
        )

    def __setattr__(self, name, value):
        if name == "_params":
            object.__setattr__(self, name, value)
            return
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            params[name] = value
            return
        object.__setattr__(self, name, value)

    def get(self, key, default=None):
        """Retrieve a setting, or return a default if not found."""
        return self._params.get(key, default)

    def set(self, key, value):
        """Set or update a setting."""
        self._params[key] = value

    def update(self, params):
        """Update multiple settings at once.

        Changing ``home_dir`` without ``envs_dir`` moves the environments
        directory along with it.
        """
        params = dict(params)
        if "home_dir" in params and "envs_dir" not in params:
            params["envs_dir"] = str(Path(params["home_dir"]) / "envs")
        self._params.update(params)

    def __contains__(self, key):
        return key in self._params

    def __repr__(self):
        return f"Settings({self._params})"

    def to_dict(self):
        return self._params


def _coerce(settings: Settings) -> None:
    """Coerce numeric settings that may parse as strings in YAML."""
    for key, kind in (("max_expansion_depth", int), ("kill_timeout", float)):
        val = settings.get(key)
        if isinstance(val, str):
            try:
                settings.set(key, kind(val))
            except ValueError:
                logger.warning("settings.%s should be numeric; got %r", key, val)
    if isinstance(settings.get("verbose"), str):
        settings.set("verbose", settings.get("verbose").strip().lower() in {"1", "true", "yes", "on"})


def load_settings(path=None, overrides=None) -> Settings:
    """Load settings from a YAML file.

    ``path`` defaults to ``<home_dir>/config.yaml``; a missing default file is
    not an error, a missing explicit file is.
    """
    settings = Settings()
    if overrides and overrides.get("home_dir"):
        settings.update({"home_dir": overrides["home_dir"]})

    explicit = path is not None
    if path is None:
        path = Path(settings.home_dir) / CONFIG_FILE
    path = Path(path)

    if path.is_file():
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.error(f"Settings file must contain a mapping: {path}")
            raise ValueError(f"Settings file must contain a mapping: {path}")
        settings.update(data)
        logger.debug(f"Loaded settings from {path}")
    elif explicit:
        raise FileNotFoundError(f"Cannot find settings file '{path}'")

    if overrides:
        settings.update({k: v for k, v in overrides.items() if v is not None and k != "home_dir"})
    _coerce(settings)
    return settings
