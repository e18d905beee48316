"""Script commands that run their nested block repeatedly."""

import logging
import threading
from abc import abstractmethod

from commands.base import BlockHandler, Command, Destroyable
from commands.options import CommandArgumentParser
from commands.variables import lookup
from runtime.expr_eval import format_number

logger = logging.getLogger("launchenv")


class IteratingCommand(BlockHandler, Destroyable, Command):
    """Binds a loop variable and runs the nested block once per value.

    Every iteration gets its own child engine over the same block, sharing
    the context (and therefore the variables) and the output channel.
    """

    label = ""

    def __init__(self):
        super().__init__()
        self._stopped = threading.Event()
        self._engine = None

    @abstractmethod
    def values(self, context, ns):
        """Yield the loop values as strings, or return ``None`` on error."""

    def do_execute(self, context, ns, args):
        from runtime.engine import Engine

        if self.instructions is None:
            self.add_error(f"Command '{self.name}' requires a nested block!")
            return False
        values = self.values(context, ns)
        if values is None:
            return False
        verbose = ns.verbose or context.verbose
        for value in values:
            if self._stopped.is_set():
                logger.info(f"{self.name} stopped")
                break
            context.variables.set(ns.dest, value)
            if ns.verbose:
                self.output.println(f"[{self.label}] {value}", False)
            self._engine = Engine(context, self.instructions, output=self.output, verbose=verbose)
            if self._stopped.is_set():
                self._engine.destroy()
            try:
                if not self._engine.execute():
                    return False
            finally:
                self._engine = None
        return True

    def destroy(self):
        self._stopped.set()
        engine = self._engine
        if engine is not None:
            engine.destroy()


class ForCommand(IteratingCommand):
    name = "for"
    help = (
        "Iterates over a numeric range and executes the nested block.\n"
        "The upper bound is exclusive."
    )
    label = "FOR"

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--from", dest="lower", type=float, required=True, help="the lower bound (inclusive)")
        parser.add_argument("--to", dest="upper", type=float, required=True, help="the upper bound (exclusive)")
        parser.add_argument("--step", type=float, default=1.0, help="the step amount for each iteration")
        parser.add_argument("--dest", required=True, help="the variable to store the current value under")
        parser.add_argument("--verbose", action="store_true", help="outputs the current value on stderr")
        return parser

    def values(self, context, ns):
        if ns.step <= 0:
            self.add_error(f"Step must be positive: {format_number(ns.step)}")
            return None
        return self._range(ns.lower, ns.upper, ns.step)

    @staticmethod
    def _range(lower, upper, step):
        current = lower - step
        while current + step < upper:
            current += step
            yield format_number(current)


class ForEachCommand(IteratingCommand):
    name = "foreach"
    help = (
        "Iterates over the elements of a variable and executes the nested block.\n"
        "A string variable is treated as a single element."
    )
    label = "FOREACH"

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--iterate", required=True, help="the variable to iterate over")
        parser.add_argument("--dest", required=True, help="the variable to store the current element under")
        parser.add_argument("--verbose", action="store_true", help="outputs the current element on stderr")
        return parser

    def values(self, context, ns):
        value = lookup(context, self, ns.iterate)
        if value is None:
            return None
        # get() returns a copy, so the block may rebind the source freely.
        if isinstance(value, list):
            return value
        return [value]
