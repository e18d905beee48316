import logging
import os
import re
import shutil

from commands.base import Command
from commands.options import CommandArgumentParser

logger = logging.getLogger("launchenv")


def _compile(command, pattern):
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        command.add_error(f"Invalid regular expression: {pattern} ({exc})")
        return False


def _collect(directory, recursive, want_dirs, pattern):
    found = []
    if recursive:
        for root, dirs, files in os.walk(directory):
            for name in dirs if want_dirs else files:
                if pattern is None or pattern.fullmatch(name):
                    found.append(os.path.join(root, name))
    else:
        with os.scandir(directory) as entries:
            for entry in entries:
                is_dir = entry.is_dir()
                if is_dir != want_dirs:
                    continue
                if pattern is None or pattern.fullmatch(entry.name):
                    found.append(entry.path)
    return sorted(os.path.abspath(p) for p in found)


class ListFilesCommand(Command):
    name = "list_files"
    help = "Lists the files in a directory and stores the absolute paths as array."
    want_dirs = False

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--dir", required=True, help="the directory to list")
        parser.add_argument("--recursive", action="store_true", help="whether to look for files recursively")
        parser.add_argument("--regexp", default="", help="the regular expression the file names must match")
        parser.add_argument("--dest", required=True, help="the variable to store the files in")
        return parser

    def do_execute(self, context, ns, args):
        if not os.path.isdir(ns.dir):
            self.add_error(f"Directory does not exist: {ns.dir}")
            return False
        pattern = _compile(self, ns.regexp)
        if pattern is False:
            return False
        found = _collect(ns.dir, ns.recursive, self.want_dirs, pattern)
        logger.debug(f"{self.name}: {len(found)} match(es) in {ns.dir}")
        context.variables.set(ns.dest, found)
        return True


class ListDirsCommand(ListFilesCommand):
    name = "list_dirs"
    help = "Lists the sub-directories of a directory and stores the absolute paths as array."
    want_dirs = True

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--dir", required=True, help="the directory to list")
        parser.add_argument("--recursive", action="store_true", help="whether to look for directories recursively")
        parser.add_argument("--regexp", default="", help="the regular expression the directory names must match")
        parser.add_argument("--dest", "--var", dest="dest", required=True, help="the variable to store the directories in")
        return parser


class ReadLinesCommand(Command):
    name = "read_lines"
    help = "Reads the lines of a text file into an array."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--file", required=True, help="the file to read")
        parser.add_argument("--skip-empty", action="store_true", help="whether to skip empty lines")
        parser.add_argument("--regexp", default="", help="the regular expression the lines must match")
        parser.add_argument("--invert-matching", action="store_true", help="keep the lines that do not match")
        parser.add_argument("--dest", required=True, help="the variable to store the lines in")
        return parser

    def do_execute(self, context, ns, args):
        if not os.path.isfile(ns.file):
            self.add_error(f"File does not exist: {ns.file}")
            return False
        pattern = _compile(self, ns.regexp)
        if pattern is False:
            return False
        try:
            with open(ns.file) as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            self.add_error(f"Failed to read file '{ns.file}': {exc}")
            return False
        result = []
        for line in lines:
            if ns.skip_empty and not line.strip():
                continue
            if pattern is not None and (pattern.fullmatch(line) is None) != ns.invert_matching:
                continue
            result.append(line)
        context.variables.set(ns.dest, result)
        return True


class DelDirCommand(Command):
    name = "del_dir"
    help = "Deletes a directory recursively."

    def build_parser(self):
        parser = CommandArgumentParser(self.name)
        parser.add_argument("--dir", required=True, help="the directory to delete")
        return parser

    def do_execute(self, context, ns, args):
        if not os.path.exists(ns.dir):
            return True
        if not os.path.isdir(ns.dir):
            self.add_error(f"Not a directory: {ns.dir}")
            return False
        try:
            shutil.rmtree(ns.dir)
        except OSError as exc:
            self.add_error(f"Failed to delete directory '{ns.dir}': {exc}")
            return False
        logger.info(f"Deleted directory: {ns.dir}")
        return True
