import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from commands.context import OutputChannel
from commands.filters import Filter, FilterChain
from commands.options import CommandArgumentParser
from core.exceptions import OptionParseError

logger = logging.getLogger("launchenv")


class Command(ABC):
    """Abstract base class for all commands.

    A fresh instance is created for every invocation, so instances may keep
    per-invocation state (errors, environment, nested block, filters).
    """

    name = ""
    help = ""
    requires_environment = False
    # Pass unparsed tokens on to ``do_execute``.
    supports_additional_arguments = False

    def __init__(self) -> None:
        self._errors: List[str] = []
        self.environment = None
        self.output = OutputChannel()

    def build_parser(self) -> Optional[CommandArgumentParser]:
        """Return the option grammar of this command, if it has one."""
        return None

    def add_error(self, msg: str) -> None:
        self._errors.append(msg)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def errors(self) -> Optional[str]:
        return "\n".join(self._errors) if self._errors else None

    def execute(self, context, args: List[str]) -> bool:
        """
        Parse ``args`` and execute the command.

        Args:
            context: The EngineContext shared by the current run.
            args: The option tokens left after the command name, the
                environment name and any filters were removed.

        Returns:
            True if the command succeeded.
        """
        parser = self.build_parser()
        ns = None
        rest = list(args)
        if parser is not None:
            try:
                if self.supports_additional_arguments:
                    ns, rest = parser.parse_known_args(rest)
                else:
                    ns = parser.parse_args(rest)
                    rest = []
            except OptionParseError as exc:
                self.add_error(str(exc))
                self.add_error(parser.format_usage().strip())
                return False
        elif rest and not self.supports_additional_arguments:
            logger.warning(f"Command '{self.name}' ignores arguments: {rest}")
            rest = []
        return self.do_execute(context, ns, rest)

    @abstractmethod
    def do_execute(self, context, ns, args: List[str]) -> bool:
        """Run the command with parsed options ``ns`` and extra ``args``."""

    def usage(self) -> str:
        out = self.name
        if self.requires_environment:
            out += " <env>"
        if self.build_parser() is not None:
            out += " <options>"
        if self.supports_additional_arguments:
            out += " <args>"
        if isinstance(self, FilterSupport):
            out += " [| filter ...]"
        return out

    def help_screen(self, requested: bool = False, output_parser: bool = False) -> str:
        out = []
        if requested:
            out.append("Help requested")
            out.append("")
        out.append(self.usage())
        out.extend("\t" + line for line in self.help.split("\n"))
        parser = self.build_parser()
        if output_parser and parser is not None:
            out.append("")
            out.append(parser.format_help().rstrip())
        return "\n".join(out)

    def __repr__(self) -> str:  # pragma: no cover - simple utility
        return f"{self.__class__.__name__}(name={self.name!r})"


class BlockHandler:
    """Capability of commands that take the indented block below their line."""

    instructions = None

    def set_instructions(self, block) -> None:
        self.instructions = block


class FilterSupport:
    """Capability of commands whose output can be piped through filters."""

    filter_chain: Optional[FilterChain] = None

    def add_filter(self, f: Filter) -> None:
        if self.filter_chain is None:
            self.filter_chain = FilterChain()
        self.filter_chain.add_filter(f)

    def filtered(self, line: str, stdout: bool) -> Optional[str]:
        if self.filter_chain is None:
            return line
        return self.filter_chain.intercept(line, stdout)


class Destroyable(ABC):
    """Capability of commands that can be stopped from another thread."""

    @abstractmethod
    def destroy(self) -> None:
        """Request the command to stop as soon as possible."""
