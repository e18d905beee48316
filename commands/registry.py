from commands.io import DelDirCommand, ListDirsCommand, ListFilesCommand, ReadLinesCommand
from commands.launch import RunCommand, ScriptCommand
from commands.loops import ForCommand, ForEachCommand
from commands.meta import (
    EchoCommand,
    FilterHelpCommand,
    HelpCommand,
    ListCommandsCommand,
    ListEnvsCommand,
    ListScriptCommandsCommand,
    ScriptHelpCommand,
)
from commands.text import FlattenCommand, ReplaceCommand, ReplaceExtCommand, SplitCommand
from commands.variables import CalcCommand, DumpVarsCommand, SetCommand, UnsetCommand

# Commands available on the command line and inside scripts.
COMMAND_REGISTRY = {
    cls.name: cls
    for cls in (
        EchoCommand,
        FilterHelpCommand,
        HelpCommand,
        ListCommandsCommand,
        ListEnvsCommand,
        ListScriptCommandsCommand,
        RunCommand,
        ScriptCommand,
        ScriptHelpCommand,
    )
}

# Commands that only make sense inside a script.
SCRIPT_COMMAND_REGISTRY = {
    cls.name: cls
    for cls in (
        CalcCommand,
        DelDirCommand,
        DumpVarsCommand,
        FlattenCommand,
        ForCommand,
        ForEachCommand,
        ListDirsCommand,
        ListFilesCommand,
        ReadLinesCommand,
        ReplaceCommand,
        ReplaceExtCommand,
        SetCommand,
        SplitCommand,
        UnsetCommand,
    )
}


def get_command(name, script=False):
    """Return a fresh instance of the named command, or ``None``.

    With ``script`` set, script-only commands are found as well; a script
    command shadows a general command of the same name.
    """
    cls = None
    if script:
        cls = SCRIPT_COMMAND_REGISTRY.get(name)
    if cls is None:
        cls = COMMAND_REGISTRY.get(name)
    return cls() if cls is not None else None


def command_names(script=False):
    names = set(COMMAND_REGISTRY)
    if script:
        names.update(SCRIPT_COMMAND_REGISTRY)
    return sorted(names)
