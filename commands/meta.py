from commands.base import Command
from commands.options import CommandArgumentParser

NOTES = (
    "Notes:",
    "<env>",
    "\tthe name of the environment to use for the command.",
    "<options>",
    "\tthe command supports additional options,",
    "\tyou can use --help as argument to see further details.",
    "<args>",
    "\tthe command passes on all unconsumed options to the",
    "\tunderlying process",
    "| filter ...",
    "\tthe command generates output which can be filtered,",
    "\tthese filters can be chained, one '|' per filter",
)


class EchoCommand(Command):
    name = "echo"
    help = "Outputs the specified message."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--message", required=True, help="the message to output")
        parser.add_argument(
            "--stderr",
            action="store_true",
            help="for outputting the message on stderr instead of stdout",
        )
        return parser

    def do_execute(self, context, ns, args):
        self.output.println(ns.message, not ns.stderr)
        return True


class ListCommandsCommand(Command):
    name = "list_cmds"
    help = "Lists all available commands."

    def do_execute(self, context, ns, args):
        from commands.registry import COMMAND_REGISTRY

        self.output.println("Available commands:")
        self.output.println()
        for name in sorted(COMMAND_REGISTRY):
            self.output.println(COMMAND_REGISTRY[name]().help_screen())
        self.output.println()
        for line in NOTES:
            self.output.println(line)
        return True


class ListEnvsCommand(Command):
    name = "list_envs"
    help = "Lists all available environments."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--verbose", action="store_true", help="outputs more information if enabled")
        return parser

    def do_execute(self, context, ns, args):
        envs = context.environments.list()
        if not envs:
            self.output.println("No environments available")
            return True
        self.output.println("Available environments:")
        self.output.println()
        for env in envs:
            self.output.println(env.describe("", ns.verbose))
            self.output.println()
        return True


class HelpCommand(Command):
    name = "help"
    help = "Outputs help information."

    def do_execute(self, context, ns, args):
        for cls in (ListCommandsCommand, ListEnvsCommand):
            cmd = cls()
            cmd.output = self.output
            if not cmd.execute(context, []):
                return False
            self.output.println()
        return True


class ListScriptCommandsCommand(Command):
    name = "list_script_cmds"
    help = "Lists all available script commands.\nThese commands can be used with the script command."

    def do_execute(self, context, ns, args):
        from commands.registry import SCRIPT_COMMAND_REGISTRY

        self.output.println("Available script commands:")
        self.output.println()
        for name in sorted(SCRIPT_COMMAND_REGISTRY):
            self.output.println(SCRIPT_COMMAND_REGISTRY[name]().help_screen())
        return True


class ScriptHelpCommand(Command):
    name = "script_help"
    help = "Prints help on the available script commands."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--cmd", default="", help="the specific script command to output the help for.")
        return parser

    def do_execute(self, context, ns, args):
        from commands.registry import SCRIPT_COMMAND_REGISTRY

        if not ns.cmd:
            listing = ListScriptCommandsCommand()
            listing.output = self.output
            listing.execute(context, [])
        else:
            cls = SCRIPT_COMMAND_REGISTRY.get(ns.cmd)
            if cls is None:
                self.add_error(f"Unknown script command: {ns.cmd}")
                return False
            self.output.println(cls().help_screen(False, True))
        self.output.println()
        self.output.println("Notes:")
        self.output.println("<options>")
        self.output.println("\tthe command supports additional options,")
        self.output.println("\tspecify the script command's name to output detailed help.")
        self.output.println("<args>")
        self.output.println("\tthe command supports additional arguments,")
        self.output.println("\tsee the script command's help.")
        return True


class FilterHelpCommand(Command):
    name = "filter_help"
    help = "Prints help on the available output filters."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--filter", default="", help="the specific filter to output the help for.")
        return parser

    def do_execute(self, context, ns, args):
        from commands.filters import FILTER_REGISTRY, get_filter

        if not ns.filter:
            self.output.println("Available filters:")
            self.output.println()
            for name in sorted(FILTER_REGISTRY):
                self.output.println(FILTER_REGISTRY[name]().help_screen())
        else:
            f = get_filter(ns.filter)
            if f is None:
                self.add_error(f"Unknown filter: {ns.filter}")
                return False
            self.output.println(f.help_screen(output_parser=True))
        return True
