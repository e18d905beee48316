from commands.base import Command
from commands.options import CommandArgumentParser
from core.exceptions import VariableNotFoundError
from runtime.expr_eval import eval_expr, format_number


class SetCommand(Command):
    name = "set"
    help = (
        "Sets a variable, either as 'name=value' or as 'name value'.\n"
        "Multiple values after the name are joined with a blank."
    )
    supports_additional_arguments = True

    def do_execute(self, context, ns, args):
        if not args:
            self.add_error("Usage: set name=value | set name value")
            return False
        if "=" in args[0]:
            name, _, first = args[0].partition("=")
            value = " ".join([first, *args[1:]]) if len(args) > 1 else first
        elif len(args) >= 2:
            name = args[0]
            value = " ".join(args[1:])
        else:
            self.add_error(f"No value supplied for variable: {args[0]}")
            return False
        if not name:
            self.add_error("Empty variable name")
            return False
        context.variables.set(name, value)
        return True


class UnsetCommand(Command):
    name = "unset"
    help = "Removes the specified variable."
    supports_additional_arguments = True

    def do_execute(self, context, ns, args):
        if len(args) != 1:
            self.add_error(f"Expected exactly one variable name, found: {len(args)}")
            return False
        context.variables.remove(args[0])
        return True


class DumpVarsCommand(Command):
    name = "dump_vars"
    help = "Outputs all the currently set variables."

    def do_execute(self, context, ns, args):
        for name in context.variables.names():
            value = context.variables.get(name)
            if isinstance(value, list):
                value = ", ".join(value)
            self.output.println(f"{name}={value}")
        return True


class CalcCommand(Command):
    name = "calc"
    help = (
        "Evaluates a mathematical expression and stores the result.\n"
        "Supports + - * / // % **, parentheses, pi, e and functions like sqrt or sin."
    )

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--expr", required=True, help="the expression to evaluate")
        parser.add_argument("--var", required=True, help="the variable to store the result in")
        return parser

    def do_execute(self, context, ns, args):
        try:
            value = eval_expr(ns.expr)
        except (ValueError, ZeroDivisionError, SyntaxError) as exc:
            self.add_error(f"Failed to evaluate expression '{ns.expr}': {exc}")
            return False
        context.variables.set(ns.var, format_number(value))
        return True


def lookup(context, command, name):
    """Return the value of ``name``; records the error on ``command`` if absent."""
    if not context.variables.has(name):
        command.add_error(str(VariableNotFoundError(name)))
        return None
    return context.variables.get(name)
