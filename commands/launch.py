"""Commands that launch processes or run script files."""

import logging
import os

from commands.base import Command, Destroyable, FilterSupport
from commands.options import CommandArgumentParser
from core.exceptions import InvalidIndentationError
from runtime.process import StreamingProcess

logger = logging.getLogger("launchenv")


class RunCommand(FilterSupport, Destroyable, Command):
    name = "run"
    help = (
        "Executes the environment's executable, passing on all arguments.\n"
        "The output of the process can be filtered."
    )
    requires_environment = True
    supports_additional_arguments = True

    def __init__(self):
        super().__init__()
        self.process = None
        self._destroyed = False

    def _handle_line(self, line, stdout):
        line = self.filtered(line, stdout)
        if line is not None:
            self.output.println(line, stdout)

    def do_execute(self, context, ns, args):
        env = self.environment
        cmd = [env.executable, *env.arguments, *args]
        proc_env = dict(os.environ)
        proc_env.update(env.variables)
        self.process = StreamingProcess(
            cmd,
            self._handle_line,
            env=proc_env,
            cwd=env.workdir,
            kill_timeout=context.kill_timeout,
        )
        if self._destroyed:
            self.process.destroyed.set()
        try:
            code = self.process.run()
        except OSError as exc:
            self.add_error(f"Failed to launch '{env.executable}': {exc}")
            return False
        if self.process.destroyed.is_set():
            self.add_error(f"Process was terminated: {env.name}")
            return False
        if self.process.failures:
            self.add_error(f"Failed to process output of {env.name}: {self.process.failures[0]}")
            return False
        if code != 0:
            self.add_error(f"Process exited with code {code}: {env.name}")
            return False
        return True

    def destroy(self):
        self._destroyed = True
        if self.process is not None:
            self.process.destroy()


class ScriptCommand(Destroyable, Command):
    name = "script"
    help = (
        "Executes the specified script.\n"
        "Use the 'list_script_cmds' command to see the available script commands."
    )

    def __init__(self):
        super().__init__()
        self.engine = None
        self._destroyed = False

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--file", required=True, help="the script file to execute")
        parser.add_argument("--verbose", action="store_true", help="outputs the raw and expanded lines")
        return parser

    def do_execute(self, context, ns, args):
        from commands.context import EngineContext
        from runtime.engine import Engine
        from runtime.instructions import load_script
        from runtime.variables import Variables

        try:
            tree = load_script(ns.file)
        except InvalidIndentationError as exc:
            self.add_error(str(exc))
            return False
        except OSError as exc:
            self.add_error(f"Failed to read script '{ns.file}': {exc}")
            return False

        run_context = EngineContext(
            variables=Variables(
                environ=context.variables.environ,
                max_expansion_depth=context.variables.max_expansion_depth,
            ),
            environments=context.environments,
            verbose=ns.verbose or context.verbose,
            kill_timeout=context.kill_timeout,
        )
        self.engine = Engine(run_context, tree.root, output=self.output)
        if self._destroyed:
            self.engine.destroy()
        logger.info(f"Running script: {ns.file}")
        ok = self.engine.execute()
        # Already reported on the output channel while the script ran.
        context.errors.extend(run_context.errors)
        return ok and not run_context.has_errors()

    def destroy(self):
        self._destroyed = True
        if self.engine is not None:
            self.engine.destroy()
