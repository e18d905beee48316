"""Script commands that transform string and array variables."""

import os
import re

from commands.base import Command
from commands.options import CommandArgumentParser, unbackquote
from commands.variables import lookup


class SplitCommand(Command):
    name = "split"
    help = "Splits a string variable into an array using a regular expression."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--str", dest="source", required=True, help="the variable holding the string to split")
        parser.add_argument("--delimiter", required=True, help="the regular expression to split on")
        parser.add_argument("--dest", required=True, help="the variable to store the array in")
        return parser

    def do_execute(self, context, ns, args):
        value = lookup(context, self, ns.source)
        if value is None:
            return False
        if isinstance(value, list):
            self.add_error(f"Variable is an array, cannot split: {ns.source}")
            return False
        try:
            parts = re.split(ns.delimiter, value)
        except re.error as exc:
            self.add_error(f"Invalid delimiter: {ns.delimiter} ({exc})")
            return False
        while parts and parts[-1] == "":
            parts.pop()
        context.variables.set(ns.dest, parts)
        return True


class FlattenCommand(Command):
    name = "flatten"
    help = "Joins the elements of an array variable into a single string."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--array", required=True, help="the array variable to flatten")
        parser.add_argument("--glue", default="", help="the string to put between elements; supports \\t, \\n and \\r")
        parser.add_argument("--dest", required=True, help="the variable to store the string in")
        return parser

    def do_execute(self, context, ns, args):
        value = lookup(context, self, ns.array)
        if value is None:
            return False
        if isinstance(value, list):
            value = unbackquote(ns.glue).join(value)
        context.variables.set(ns.dest, value)
        return True


class ReplaceCommand(Command):
    name = "replace"
    help = (
        "Replaces strings in a variable, simple or regular expression based.\n"
        "Arrays have every element processed."
    )

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--str", dest="source", required=True, help="the variable to process")
        parser.add_argument("--find", required=True, help="the string or pattern to find")
        parser.add_argument("--replace", default="", help="the replacement string")
        parser.add_argument("--regexp", action="store_true", help="whether to use regular expression matching")
        parser.add_argument("--all", action="store_true", help="replace all regular expression matches, not just the first")
        parser.add_argument("--dest", required=True, help="the variable to store the result in")
        return parser

    def do_execute(self, context, ns, args):
        value = lookup(context, self, ns.source)
        if value is None:
            return False
        if ns.regexp:
            try:
                pattern = re.compile(ns.find)
            except re.error as exc:
                self.add_error(f"Invalid regular expression: {ns.find} ({exc})")
                return False
            count = 0 if ns.all else 1

            def apply(s):
                return pattern.sub(ns.replace, s, count=count)

        else:

            def apply(s):
                return s.replace(ns.find, ns.replace)

        if isinstance(value, list):
            context.variables.set(ns.dest, [apply(v) for v in value])
        else:
            context.variables.set(ns.dest, apply(value))
        return True


class ReplaceExtCommand(Command):
    name = "replace_ext"
    help = "Replaces or removes the extension of a file name."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--file", required=True, help="the file name to process")
        parser.add_argument("--ext", default="", help="the new extension incl. dot; omit to remove the extension")
        parser.add_argument("--dest", required=True, help="the variable to store the result in")
        return parser

    def do_execute(self, context, ns, args):
        root, _ = os.path.splitext(ns.file)
        context.variables.set(ns.dest, root + ns.ext)
        return True
