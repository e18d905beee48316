"""Output filters that can be chained after a command with ``|``.

Example::

    run py311 -c "print('hello')" | grep --regexp "h.*" | tee --output out.txt
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from commands.options import CommandArgumentParser
from core.exceptions import FilterConfigurationError, OptionParseError

logger = logging.getLogger("launchenv")


class Filter(ABC):
    """A stateful stage that transforms or drops a single output line."""

    name = ""
    help = ""

    def __init__(self) -> None:
        self.stdout = True
        self.stderr = True
        self._errors: List[str] = []

    def build_parser(self) -> CommandArgumentParser:
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--stdout", action="store_true", help="for capturing output from stdout.")
        parser.add_argument("--stderr", action="store_true", help="for capturing output from stderr.")
        return parser

    def initialize(self, ns) -> bool:
        # Without either flag the filter sees both streams.
        if ns.stdout or ns.stderr:
            self.stdout = ns.stdout
            self.stderr = ns.stderr
        return True

    def add_error(self, msg: str) -> None:
        self._errors.append(msg)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def errors(self) -> Optional[str]:
        return "\n".join(self._errors) if self._errors else None

    @abstractmethod
    def do_intercept(self, line: str, stdout: bool) -> Optional[str]:
        """Return the (possibly changed) line, or ``None`` to drop it."""

    def intercept(self, line: str, stdout: bool) -> Optional[str]:
        if (self.stdout and stdout) or (self.stderr and not stdout):
            return self.do_intercept(line, stdout)
        return line

    def help_screen(self, output_parser: bool = False) -> str:
        out = [f"{self.name} <options>"]
        out.extend("\t" + line for line in self.help.split("\n"))
        if output_parser:
            out.append("")
            out.append(self.build_parser().format_help().rstrip())
        return "\n".join(out)


class GrepFilter(Filter):
    name = "grep"
    help = "For capturing strings that match a regular expression."

    def __init__(self) -> None:
        super().__init__()
        self.regexp = None
        self.invert = False

    def build_parser(self):
        parser = super().build_parser()
        parser.add_argument("--regexp", required=True, help="the regular expression that the output must match to be kept.")
        parser.add_argument("--invert", action="store_true", help="whether to invert the matching sense.")
        return parser

    def initialize(self, ns):
        if not super().initialize(ns):
            return False
        try:
            self.regexp = re.compile(ns.regexp)
        except re.error as exc:
            self.add_error(f"Invalid regular expression: {ns.regexp} ({exc})")
            return False
        self.invert = ns.invert
        return True

    def do_intercept(self, line, stdout):
        matches = self.regexp.fullmatch(line) is not None
        if matches != self.invert:
            return line
        return None


class ReplaceFilter(Filter):
    name = "replace"
    help = "Performs string replacement, simple or regular expression based."

    def __init__(self) -> None:
        super().__init__()
        self.find = ""
        self.replace = ""
        self.regexp = None
        self.all = False

    def build_parser(self):
        parser = super().build_parser()
        parser.add_argument("--find", required=True, help="the string or pattern to find.")
        parser.add_argument("--replace", required=True, help="the replacement string to use.")
        parser.add_argument("--regexp", action="store_true", help="whether to use regular expression matching.")
        parser.add_argument("--all", action="store_true", help="whether to replace all occurrences in case of regexp matching.")
        return parser

    def initialize(self, ns):
        if not super().initialize(ns):
            return False
        self.find = ns.find
        self.replace = ns.replace
        if ns.regexp:
            try:
                self.regexp = re.compile(ns.find)
            except re.error as exc:
                self.add_error(f"Invalid regular expression: {ns.find} ({exc})")
                return False
            self.all = ns.all
        return True

    def do_intercept(self, line, stdout):
        if self.regexp is not None:
            return self.regexp.sub(self.replace, line, count=0 if self.all else 1)
        return line.replace(self.find, self.replace)


class TeeFilter(Filter):
    name = "tee"
    help = "Tees off the output to a file."

    def __init__(self) -> None:
        super().__init__()
        self.output: Optional[Path] = None
        self.append = False
        self.output_occurred = False

    def build_parser(self):
        parser = super().build_parser()
        parser.add_argument("--output", required=True, help="the file to store the output in.")
        parser.add_argument("--append", action="store_true", help="whether to append to an existing output file.")
        return parser

    def initialize(self, ns):
        if not super().initialize(ns):
            return False
        self.output = Path(ns.output)
        if self.output.is_dir():
            self.add_error(f"Output points to a directory: {self.output}")
            return False
        self.append = ns.append
        return True

    def do_intercept(self, line, stdout):
        mode = "a" if (self.append or self.output_occurred) else "w"
        with open(self.output, mode) as f:
            f.write(line + "\n")
        self.output_occurred = True
        return line


class FilterChain:
    """Applies filters in order; a dropped line skips the remaining stages."""

    def __init__(self, filters: Sequence[Filter] = ()) -> None:
        self.filters: List[Filter] = list(filters)

    def add_filter(self, f: Filter) -> None:
        self.filters.append(f)

    def __len__(self) -> int:
        return len(self.filters)

    def intercept(self, line: str, stdout: bool) -> Optional[str]:
        result = line
        for f in self.filters:
            result = f.intercept(result, stdout)
            if result is None:
                break
        return result


FILTER_REGISTRY = {
    "grep": GrepFilter,
    "replace": ReplaceFilter,
    "tee": TeeFilter,
}


def get_filter(name: str) -> Optional[Filter]:
    cls = FILTER_REGISTRY.get(name)
    return cls() if cls is not None else None


def filter_names() -> List[str]:
    return sorted(FILTER_REGISTRY)


def configure_filter(tokens: Sequence[str]):
    """Instantiate and configure a filter from ``[name, option, ...]``.

    Returns the filter, or a :class:`FilterConfigurationError` value.
    """
    if not tokens:
        return FilterConfigurationError("Empty filter specification")
    f = get_filter(tokens[0])
    if f is None:
        return FilterConfigurationError(
            f"Unknown filter: {tokens[0]} (available: {', '.join(filter_names())})"
        )
    try:
        ns = f.build_parser().parse_args(list(tokens[1:]))
    except OptionParseError as exc:
        return FilterConfigurationError(f"Failed to configure filter '{f.name}': {exc}")
    if not f.initialize(ns):
        return FilterConfigurationError(
            f"Failed to configure filter '{f.name}': {f.errors() or 'initialization failed'}"
        )
    logger.debug(f"Configured filter: {' '.join(tokens)}")
    return f
