"""Sequential execution of a parsed instruction block."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from commands.base import BlockHandler, Destroyable
from commands.context import EngineContext, OutputChannel
from commands.executor import (
    HelpRequested,
    report_resolution_error,
    resolve_command,
    run_setup,
)
from commands.options import split_line
from core.exceptions import ScriptError
from runtime.instructions import Block

logger = logging.getLogger("launchenv")


class Engine:
    """Executes the items of one block, depth-first and fail-fast.

    A ``Line`` directly followed by a ``Block`` hands that block to its
    command when the command is a :class:`BlockHandler`. Iterating commands
    run their block through fresh child engines sharing the same context and
    output channel.
    """

    def __init__(
        self,
        context: EngineContext,
        instructions: Block,
        *,
        output: Optional[OutputChannel] = None,
        verbose: Optional[bool] = None,
    ) -> None:
        self.context = context
        self.instructions = instructions
        self.output = output if output is not None else OutputChannel()
        self.verbose = context.verbose if verbose is None else verbose
        self._stopped = threading.Event()
        self._current = None

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def _fail(self, msg: str) -> bool:
        self.context.add_error(msg)
        self.output.println(msg, False)
        return False

    def execute_line(self, line: str, block: Optional[Block] = None):
        """Expand, resolve and run one instruction.

        Returns ``(success, block_consumed)``.
        """
        if self.verbose:
            self.output.println(f"[RAW] {line}", False)
        try:
            expanded = self.context.variables.expand(line)
            if self.verbose:
                self.output.println(f"[EXP] {expanded}", False)
            tokens = split_line(expanded)
        except ScriptError as exc:
            return self._fail(str(exc)), False

        result = resolve_command(tokens, self.context, script=True)
        if isinstance(result, ScriptError):
            report_resolution_error(result, self.context, self.output, script=True)
            return False, False
        if isinstance(result, HelpRequested):
            self.output.println(result.command.help_screen(True, True))
            return True, block is not None and isinstance(result.command, BlockHandler)

        consumed = False
        if block is not None and isinstance(result.command, BlockHandler):
            result.command.set_instructions(block)
            result.block = block
            consumed = True

        self._current = result.command
        try:
            return run_setup(result, self.context, self.output), consumed
        except Exception as exc:
            logger.error(f"Error executing command '{tokens[0]}': {exc}")
            self.context.add_error(f"Failed to execute command: {expanded}", exc)
            self.output.println(f"Failed to execute command: {expanded}\n{exc}", False)
            return False, consumed
        finally:
            self._current = None

    def execute(self) -> bool:
        """Run all instructions; stops at the first failure."""
        items = self.instructions.items
        previous = None
        i = 0
        while i < len(items):
            if self.stopped:
                logger.info("Execution stopped")
                break
            item = items[i]
            if isinstance(item, Block):
                if previous is None:
                    return self._fail("Expected command, found nested block!")
                return self._fail(f"Command '{previous}' does not accept a nested block!")

            block = items[i + 1] if i + 1 < len(items) and isinstance(items[i + 1], Block) else None
            ok, consumed = self.execute_line(item.text, block)
            if not ok:
                return False
            i += 2 if consumed else 1
            previous = None if consumed else item.text.split(maxsplit=1)[0]
        return True

    def destroy(self) -> None:
        """Stop before the next instruction and stop the running command."""
        self._stopped.set()
        current = self._current
        if isinstance(current, Destroyable):
            current.destroy()


__all__ = ["Engine"]
