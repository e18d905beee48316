"""Named launch profiles and the lookup the engine resolves them through.

Creating, cloning, updating and deleting profiles is handled elsewhere; the
engine only needs to resolve a name to an :class:`EnvironmentConfig`.

On disk every profile is a directory below ``envs_dir`` holding an
``env.yaml`` file::

    name: py311
    executable: /usr/bin/python3.11
    arguments: ["-X", "utf8"]
    variables:
      PYTHONHASHSEED: "0"
    workdir: /tmp
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import yaml

logger = logging.getLogger("launchenv")

SETUP_FILE = "env.yaml"


@dataclass
class EnvironmentConfig:
    name: str
    executable: str
    arguments: List[str] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)
    workdir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "EnvironmentConfig":
        if not data.get("name") or not data.get("executable"):
            raise ValueError("Environment requires 'name' and 'executable'")
        arguments = data.get("arguments") or []
        if isinstance(arguments, str):
            arguments = arguments.split()
        return cls(
            name=str(data["name"]),
            executable=str(data["executable"]),
            arguments=[str(a) for a in arguments],
            variables={str(k): str(v) for k, v in (data.get("variables") or {}).items()},
            workdir=str(data["workdir"]) if data.get("workdir") else None,
        )

    def describe(self, prefix: str = "", verbose: bool = False) -> str:
        lines = [f"{prefix}Name: {self.name}"]
        if verbose:
            lines.append(f"{prefix}Executable: {self.executable}")
            lines.append(
                f"{prefix}Arguments: {' '.join(self.arguments) if self.arguments else '<none>'}"
            )
            for key, value in sorted(self.variables.items()):
                lines.append(f"{prefix}Variable: {key}={value}")
            lines.append(f"{prefix}Workdir: {self.workdir or '<current>'}")
        return "\n".join(lines)


class EnvironmentLookup(ABC):
    """Resolves environment names for commands that require one."""

    @abstractmethod
    def resolve(self, name: str) -> Optional[EnvironmentConfig]:
        """Return the named environment, or ``None`` if it does not exist."""

    @abstractmethod
    def list(self) -> List[EnvironmentConfig]:
        """Return all available environments sorted by name."""


class StaticEnvironmentLookup(EnvironmentLookup):
    def __init__(self, environments: Iterable[EnvironmentConfig] = ()) -> None:
        self.environments = {env.name: env for env in environments}

    def resolve(self, name):
        return self.environments.get(name)

    def list(self):
        return [self.environments[k] for k in sorted(self.environments)]


def name_to_dir(name: str) -> str:
    """Map an environment name to a safe directory name."""
    return "".join(c if (c.isascii() and c.isalnum()) or c in ".-_" else "_" for c in name)


def read_environment(path) -> Optional[EnvironmentConfig]:
    path = Path(path)
    if not path.is_file():
        return None
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return EnvironmentConfig.from_dict(data)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error(f"Failed to read environment {path}: {exc}")
        return None


class DirectoryEnvironmentLookup(EnvironmentLookup):
    def __init__(self, envs_dir) -> None:
        self.envs_dir = Path(envs_dir)

    def resolve(self, name):
        return read_environment(self.envs_dir / name_to_dir(name) / SETUP_FILE)

    def list(self):
        if not self.envs_dir.is_dir():
            return []
        envs = []
        for entry in sorted(self.envs_dir.iterdir()):
            env = read_environment(entry / SETUP_FILE)
            if env is not None:
                envs.append(env)
        return sorted(envs, key=lambda e: e.name)
