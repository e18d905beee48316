import sys
import traceback
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from core.environments import EnvironmentLookup, StaticEnvironmentLookup
from runtime.variables import Variables

OutputListener = Callable[[str, bool], None]


class OutputChannel:
    """Where commands write their output.

    Lines go to the console (stdout or stderr) unless ``console`` is off and
    are handed to every listener as ``listener(line, is_stdout)``. The channel
    is passed explicitly to engines and commands.
    """

    def __init__(self, listeners: Iterable[OutputListener] = (), console: bool = True):
        self.listeners: List[OutputListener] = list(listeners)
        self.console = console

    def add_listener(self, listener: OutputListener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: OutputListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def println(self, line: str = "", stdout: bool = True) -> None:
        if self.console:
            print(line, file=sys.stdout if stdout else sys.stderr, flush=True)
        for listener in list(self.listeners):
            listener(line, stdout)


@dataclass
class EngineContext:
    """Holds the shared state of one script run.

    The same instance is shared by the root engine and all child engines
    created by iterating commands.
    """

    variables: Variables = field(default_factory=Variables)
    environments: EnvironmentLookup = field(default_factory=StaticEnvironmentLookup)
    verbose: bool = False
    kill_timeout: float = 5.0
    errors: List[str] = field(default_factory=list)

    def add_error(self, msg: str, exc: Optional[BaseException] = None) -> None:
        if exc is not None:
            msg = msg + "\n" + "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ).rstrip()
        self.errors.append(msg)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def error_text(self) -> Optional[str]:
        if not self.errors:
            return None
        return "\n".join(self.errors)
