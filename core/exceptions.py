"""Custom exception types for launchenv."""

from __future__ import annotations


class LaunchEnvError(Exception):
    """Base class for domain-specific errors."""


class ScriptError(LaunchEnvError):
    """Base class for errors raised or reported by the script engine.

    Dispatch code returns instances of these classes as values (a tagged
    result) rather than raising them; only parse-time errors are raised.
    """

    kind = "script"

    def __str__(self) -> str:
        return self.args[0] if self.args else self.kind


class InvalidIndentationError(ScriptError):
    """Raised when a script line mixes tabs and blanks in its indentation."""

    kind = "indentation"

    def __init__(self, line_no: int, line: str, message: str | None = None) -> None:
        if message is None:
            message = f"Line {line_no} mixes tabs and blanks for indentation: {line}"
        super().__init__(message)
        self.line_no = line_no
        self.line = line


class UnknownCommandError(ScriptError):
    kind = "unknown-command"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown command: {name}")
        self.name = name


class MissingEnvironmentError(ScriptError):
    kind = "missing-environment"

    def __init__(self, command: str) -> None:
        super().__init__(f"No environment supplied for command '{command}'!")
        self.command = command


class InvalidEnvironmentError(ScriptError):
    kind = "invalid-environment"

    def __init__(self, name: str) -> None:
        super().__init__(f"Invalid environment supplied: {name}")
        self.name = name


class OptionSplitError(ScriptError):
    """Raised when a line cannot be split into tokens (bad quoting)."""

    kind = "option-split"


class OptionParseError(ScriptError):
    """Raised by command/filter option parsers instead of exiting."""

    kind = "option-parse"


class StructuralError(ScriptError):
    kind = "structure"


class VariableNotFoundError(ScriptError):
    kind = "variable-not-found"

    def __init__(self, name: str) -> None:
        super().__init__(f"Variable not present: {name}")
        self.name = name


class VariableExpansionError(ScriptError):
    """Raised when recursive variable expansion does not terminate."""

    kind = "variable-expansion"


class FilterConfigurationError(ScriptError):
    kind = "filter-configuration"


__all__ = [
    "LaunchEnvError",
    "ScriptError",
    "InvalidIndentationError",
    "UnknownCommandError",
    "MissingEnvironmentError",
    "InvalidEnvironmentError",
    "OptionSplitError",
    "OptionParseError",
    "StructuralError",
    "VariableNotFoundError",
    "VariableExpansionError",
    "FilterConfigurationError",
]
