import argparse
import logging
import sys
import threading

from commands.base import Destroyable
from commands.context import EngineContext, OutputChannel
from commands.executor import execute_command_line
from commands.options import join_tokens
from core.environments import DirectoryEnvironmentLookup
from parameters.settings import load_settings
from runtime.logging_config import setup_logging
from runtime.variables import Variables

logger = logging.getLogger("launchenv")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="launchenv",
        description="Launch named environments and run indentation-based scripts.",
        epilog="Use 'help' as command to list the available commands and environments.",
    )
    parser.add_argument("--home", default=None, help="Home directory holding config.yaml and envs/")
    parser.add_argument("--config", default=None, help="Settings YAML file (default: <home>/config.yaml)")
    parser.add_argument("--log", default=None, help="Optional log file")
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress console logging"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Output raw and expanded script lines on stderr",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="The command to execute, followed by its options",
    )
    return parser


def run_command(line, context, output=None, poll_interval=0.1):
    """Execute ``line`` on a worker thread.

    A ``KeyboardInterrupt`` on the calling thread stops the running command
    and waits for it to finish.
    """
    holder = {}
    result = {"ok": False}

    def _work():
        result["ok"] = execute_command_line(
            line, context, output, on_setup=lambda cmd: holder.setdefault("command", cmd)
        )

    worker = threading.Thread(target=_work, name="launchenv-command", daemon=True)
    worker.start()
    while worker.is_alive():
        try:
            worker.join(poll_interval)
        except KeyboardInterrupt:
            command = holder.get("command")
            logger.warning("Interrupted, stopping command")
            if isinstance(command, Destroyable):
                command.destroy()
            worker.join()
            return False
    return result["ok"]


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log, quiet=args.quiet, debug=args.debug)

    overrides = {"home_dir": args.home, "verbose": True if args.verbose else None, "log_file": args.log}
    try:
        settings = load_settings(args.config, overrides)
    except (OSError, ValueError) as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    if settings.log_file and not args.log:
        setup_logging(settings.log_file, quiet=args.quiet, debug=args.debug)

    context = EngineContext(
        variables=Variables(max_expansion_depth=settings.max_expansion_depth),
        environments=DirectoryEnvironmentLookup(settings.envs_dir),
        verbose=settings.verbose,
        kill_timeout=settings.kill_timeout,
    )
    line = join_tokens(args.command) if args.command else "help"
    logger.debug(f"Executing: {line}")

    ok = run_command(line, context, OutputChannel())
    if not ok:
        logger.debug(f"Command failed with {len(context.errors)} error(s)")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
