"""Package metadata for launchenv.

The engine itself lives in the top-level packages `commands/`, `runtime/`,
`core/` and `parameters/`; this package only exposes the installed version.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("launchenv")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
