import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from commands.context import OutputChannel
from runtime.engine import Engine
from runtime.instructions import parse_script
from script_helpers import build_engine, make_context, python_env, run_script


def test_echo_with_variable_expansion():
    ok, ctx, out = run_script(
        """
        set name=world
        echo --message "hello ${name}"
        """
    )
    assert ok
    assert out.stdout() == ["hello world"]
    assert not ctx.has_errors()


def test_echo_to_stderr():
    ok, _, out = run_script("echo --message oops --stderr")
    assert ok
    assert out.stderr() == ["oops"]
    assert out.stdout() == []


def test_execution_stops_at_first_failure():
    ok, ctx, out = run_script(
        """
        echo --message one
        bogus
        echo --message two
        """
    )
    assert not ok
    assert out.stdout() == ["one"]
    assert ctx.errors[0] == "Unknown command: bogus"
    assert "Known commands:" in out.stderr()
    assert "  echo" in out.stderr()
    assert "  foreach" in out.stderr()


def test_block_after_plain_command_is_rejected():
    ok, ctx, out = run_script(
        """
        echo --message a
          echo --message b
        """
    )
    assert not ok
    assert out.stdout() == ["a"]
    assert ctx.errors == ["Command 'echo' does not accept a nested block!"]


def test_block_without_command_is_rejected():
    ok, ctx, _ = run_script("# leading comment\n  echo --message a")
    assert not ok
    assert ctx.errors == ["Expected command, found nested block!"]


def test_verbose_echoes_raw_and_expanded_lines():
    ok, _, out = run_script(
        """
        set x=1
        echo --message ${x}
        """,
        verbose=True,
    )
    assert ok
    assert "[RAW] echo --message ${x}" in out.stderr()
    assert "[EXP] echo --message 1" in out.stderr()


def test_help_option_prints_command_help():
    ok, ctx, out = run_script("echo --help")
    assert ok
    text = "\n".join(out.stdout())
    assert text.startswith("Help requested")
    assert "echo <options>" in text
    assert "--message" in text
    assert not ctx.has_errors()


def test_help_option_of_filter_is_not_command_help():
    ok, ctx, out = run_script("run py -c pass | grep --help", envs=[python_env()])
    assert not ok
    assert ctx.errors[0].startswith("Failed to configure filter 'grep'")
    assert not any(line.startswith("Help requested") for line in out.stdout())


def test_missing_required_option_is_reported():
    ok, ctx, out = run_script("echo")
    assert not ok
    assert "the following arguments are required: --message" in ctx.errors[0]
    assert any("usage: echo" in line for line in out.stderr())


def test_missing_environment():
    ok, ctx, out = run_script("run")
    assert not ok
    assert ctx.errors == ["No environment supplied for command 'run'!"]
    assert any(line.startswith("run <env>") for line in out.stderr())


def test_invalid_environment():
    ok, ctx, out = run_script("run nope")
    assert not ok
    assert ctx.errors == ["Invalid environment supplied: nope"]
    assert "Available environments: <none>" in out.stderr()


def test_filters_on_command_without_filter_support():
    ok, ctx, _ = run_script("echo --message x | grep --regexp x")
    assert not ok
    assert ctx.errors == ["Command 'echo' does not support filters!"]


def test_unbalanced_quotes_fail_to_split():
    ok, ctx, _ = run_script('echo --message "unterminated')
    assert not ok
    assert ctx.errors[0].startswith("Failed to split options")


def test_runaway_expansion_is_an_error():
    ok, ctx, out = run_script(
        """
        set a=x${a}
        echo --message ${a}
        """
    )
    assert not ok
    assert "exceeded max depth" in ctx.errors[0]
    assert out.stdout() == []


def test_destroyed_engine_executes_nothing():
    engine, ctx, out = build_engine("echo --message a")
    engine.destroy()
    assert engine.execute()
    assert engine.stopped
    assert out.lines == []


def test_listeners_receive_output_in_order():
    seen = []
    output = OutputChannel([lambda line, stdout: seen.append(line)], console=False)
    tree = parse_script("echo --message 1\necho --message 2 --stderr\necho --message 3")
    assert Engine(make_context(), tree.root, output=output).execute()
    assert seen == ["1", "2", "3"]


def test_removed_listener_is_not_called():
    seen = []

    def listener(line, stdout):
        seen.append(line)

    output = OutputChannel([listener], console=False)
    output.remove_listener(listener)
    tree = parse_script("echo --message 1")
    assert Engine(make_context(), tree.root, output=output).execute()
    assert seen == []


def test_console_output_goes_to_stdout_and_stderr(capsys):
    tree = parse_script("echo --message out\necho --message err --stderr")
    assert Engine(make_context(), tree.root).execute()
    captured = capsys.readouterr()
    assert captured.out == "out\n"
    assert captured.err == "err\n"


def test_script_only_commands_are_not_available_on_command_line():
    from commands.executor import execute_command_line

    ctx = make_context()
    output = OutputChannel(console=False)
    assert not execute_command_line("set x=1", ctx, output)
    assert ctx.errors == ["Unknown command: set"]
