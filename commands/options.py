"""Tokenizing command lines and parsing command/filter options."""

from __future__ import annotations

import argparse
import shlex
from typing import List

from core.exceptions import OptionParseError, OptionSplitError

PIPE = "|"


class CommandArgumentParser(argparse.ArgumentParser):
    """``ArgumentParser`` that reports problems instead of exiting.

    ``--help`` is not registered here; help requests are detected while the
    command line is resolved.
    """

    def __init__(self, prog: str, **kwargs) -> None:
        kwargs.setdefault("add_help", False)
        kwargs.setdefault("allow_abbrev", False)
        super().__init__(prog=prog, **kwargs)

    def error(self, message):
        raise OptionParseError(f"{self.prog}: {message}")

    def exit(self, status=0, message=None):
        raise OptionParseError((message or f"{self.prog}: exited with status {status}").strip())


def split_line(text: str) -> List[str]:
    """Split a command line into tokens, honouring quotes."""
    try:
        return shlex.split(text, comments=False, posix=True)
    except ValueError as exc:
        raise OptionSplitError(f"Failed to split options ({exc}): {text}") from exc


def join_tokens(tokens: List[str]) -> str:
    return shlex.join(tokens)


def unbackquote(text: str) -> str:
    """Turn the escapes ``\\t``, ``\\n`` and ``\\r`` into their characters."""
    return text.replace("\\t", "\t").replace("\\n", "\n").replace("\\r", "\r")
