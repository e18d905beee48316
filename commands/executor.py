"""Command resolution and execution helpers for scripts and the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from commands.base import Command, FilterSupport
from commands.context import EngineContext, OutputChannel
from commands.filters import configure_filter
from commands.options import PIPE, split_line
from commands.registry import command_names, get_command
from core.exceptions import (
    InvalidEnvironmentError,
    MissingEnvironmentError,
    ScriptError,
    StructuralError,
    UnknownCommandError,
)

logger = logging.getLogger("launchenv")

HELP_OPTION = "--help"


@dataclass
class CommandSetup:
    """A resolved command with its remaining option tokens."""

    command: Command
    options: List[str] = field(default_factory=list)
    block: Optional[object] = None


@dataclass
class HelpRequested:
    command: Command


Resolution = Union[CommandSetup, HelpRequested, ScriptError]


def _split_filters(options: List[str]):
    """Separate ``a b | f1 x | f2`` into ``[a, b]`` and ``[[f1, x], [f2]]``."""
    if PIPE not in options:
        return options, []
    first = options.index(PIPE)
    segments: List[List[str]] = []
    current: List[str] = []
    for token in options[first + 1 :]:
        if token == PIPE:
            if current:
                segments.append(current)
            current = []
            continue
        current.append(token)
    if current:
        segments.append(current)
    return options[:first], segments


def resolve_command(
    tokens: List[str], context: EngineContext, *, script: bool = True
) -> Resolution:
    """Resolve a tokenized command line.

    Returns a :class:`CommandSetup`, a :class:`HelpRequested` marker, or the
    :class:`ScriptError` describing why the line cannot be executed.
    """
    if not tokens:
        return StructuralError("Expected command, found empty line!")

    command = get_command(tokens[0], script=script)
    if command is None:
        return UnknownCommandError(tokens[0])
    options = list(tokens[1:])

    own_options = options[: options.index(PIPE)] if PIPE in options else options
    if HELP_OPTION in own_options:
        return HelpRequested(command)

    if command.requires_environment:
        if not options or options[0] == PIPE:
            return MissingEnvironmentError(command.name)
        env = context.environments.resolve(options[0])
        if env is None:
            return InvalidEnvironmentError(options[0])
        command.environment = env
        options = options[1:]

    options, filter_specs = _split_filters(options)
    if filter_specs:
        if not isinstance(command, FilterSupport):
            return StructuralError(f"Command '{command.name}' does not support filters!")
        filters = []
        for spec in filter_specs:
            result = configure_filter(spec)
            if isinstance(result, ScriptError):
                return result
            filters.append(result)
        for f in filters:
            command.add_filter(f)

    logger.debug(f"Resolved command '{command.name}' with options {options}")
    return CommandSetup(command, options)


def print_known_commands(output: OutputChannel, *, script: bool = True) -> None:
    output.println("Known commands:", False)
    for name in command_names(script=script):
        output.println(f"  {name}", False)


def report_resolution_error(
    error: ScriptError, context: EngineContext, output: OutputChannel, *, script: bool = True
) -> None:
    """Record ``error`` and print the follow-up listing the user needs."""
    context.add_error(str(error))
    output.println(str(error), False)
    if isinstance(error, UnknownCommandError):
        print_known_commands(output, script=script)
    elif isinstance(error, InvalidEnvironmentError):
        envs = context.environments.list()
        output.println(
            "Available environments: " + (", ".join(e.name for e in envs) if envs else "<none>"),
            False,
        )
    elif isinstance(error, MissingEnvironmentError):
        command = get_command(error.command, script=script)
        if command is not None:
            output.println(command.help_screen(False, True), False)


def run_setup(setup: CommandSetup, context: EngineContext, output: OutputChannel) -> bool:
    """Execute a resolved command and collect its errors into ``context``."""
    setup.command.output = output
    ok = setup.command.execute(context, setup.options)
    if setup.command.has_errors():
        context.add_error(setup.command.errors())
        output.println(setup.command.errors(), False)
    if not ok:
        logger.debug(f"Command '{setup.command.name}' failed")
    return ok


def execute_command_line(
    line: str,
    context: EngineContext,
    output: Optional[OutputChannel] = None,
    *,
    on_setup=None,
) -> bool:
    """Execute one (non-script) command line.

    ``on_setup`` is called with the resolved command before it runs, which
    lets callers keep a handle for ``destroy()``.
    """
    output = output or OutputChannel()
    line = (line or "").strip()
    if not line:
        return True

    try:
        tokens = split_line(line)
    except ScriptError as exc:
        context.add_error(str(exc))
        output.println(str(exc), False)
        return False

    result = resolve_command(tokens, context, script=False)
    if isinstance(result, ScriptError):
        report_resolution_error(result, context, output, script=False)
        return False
    if isinstance(result, HelpRequested):
        output.println(result.command.help_screen(True, True))
        return True

    if on_setup is not None:
        on_setup(result.command)
    try:
        return run_setup(result, context, output)
    except Exception as exc:
        logger.error(f"Error executing command '{tokens[0]}': {exc}")
        context.add_error(f"Failed to execute command: {line}", exc)
        output.println(f"Failed to execute command: {line}\n{exc}", False)
        return False
