import os
import sys
import threading
import time

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from runtime.process import StreamingProcess
from script_helpers import build_engine, python_env, run_script


def test_streaming_process_reports_both_streams():
    lines = []
    proc = StreamingProcess(
        [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
        lambda line, stdout: lines.append((line, stdout)),
    )
    assert proc.run() == 0
    assert sorted(lines) == [("err", False), ("out", True)]


def test_streaming_process_survives_undecodable_output():
    lines = []
    proc = StreamingProcess(
        [sys.executable, "-c", "import sys; sys.stdout.buffer.write(bytes([102, 10, 255, 254, 10, 108, 10]))"],
        lambda line, stdout: lines.append(line),
    )
    assert proc.run() == 0
    assert len(lines) == 3
    assert lines[0] == "f"
    assert lines[2] == "l"
    assert proc.failures == []


def test_streaming_process_collects_handler_failures():
    seen = []

    def handler(line, stdout):
        seen.append(line)
        if line == "bad":
            raise OSError("disk full")

    proc = StreamingProcess(
        [sys.executable, "-c", "print('ok'); print('bad'); print('after')"],
        handler,
    )
    assert proc.run() == 0
    assert seen == ["ok", "bad", "after"]
    assert len(proc.failures) == 1
    assert str(proc.failures[0]) == "disk full"


def test_run_keeps_output_around_undecodable_bytes():
    ok, ctx, out = run_script(
        """
        run py -c "import sys; sys.stdout.buffer.write(bytes([102, 10, 255, 254, 10, 108, 10]))"
        """,
        envs=[python_env()],
    )
    assert ok, ctx.errors
    stdout = out.stdout()
    assert len(stdout) == 3
    assert stdout[0] == "f"
    assert stdout[2] == "l"


def test_run_fails_when_a_filter_fails(tmp_path):
    target = tmp_path / "missing" / "out.txt"
    ok, ctx, out = run_script(
        f"""
        run py -c "print('a'); print('b')" | tee --output "{target}"
        echo --message never
        """,
        envs=[python_env()],
    )
    assert not ok
    assert len(ctx.errors) == 1
    assert ctx.errors[0].startswith("Failed to process output of py:")
    assert "never" not in out.stdout()


def test_run_streams_process_output():
    ok, ctx, out = run_script(
        """
        run py -c "import sys; print('hello'); print('oops', file=sys.stderr)"
        """,
        envs=[python_env()],
    )
    assert ok, ctx.errors
    assert out.stdout() == ["hello"]
    assert out.stderr() == ["oops"]


def test_run_non_zero_exit_is_failure():
    ok, ctx, _ = run_script(
        """
        run py -c "import sys; sys.exit(3)"
        echo --message never
        """,
        envs=[python_env()],
    )
    assert not ok
    assert ctx.errors == ["Process exited with code 3: py"]


def test_run_uses_environment_settings(tmp_path):
    env = python_env(
        arguments=["-c", "import os, sys; print(os.environ['LAUNCHENV_TEST']); print(os.getcwd()); print(sys.argv[1:])"],
        variables={"LAUNCHENV_TEST": "42"},
        workdir=str(tmp_path),
    )
    ok, ctx, out = run_script("run py extra", envs=[env])
    assert ok, ctx.errors
    value, cwd, argv = out.stdout()
    assert value == "42"
    assert os.path.realpath(cwd) == os.path.realpath(str(tmp_path))
    assert argv == "['extra']"


def test_run_with_variables_and_loop():
    ok, ctx, out = run_script(
        """
        for --from 1 --to 3 --dest i
          run py -c "print(${i} * 10)"
        """,
        envs=[python_env()],
    )
    assert ok, ctx.errors
    assert out.stdout() == ["10", "20"]


def test_run_output_through_filter_chain(tmp_path):
    tee = tmp_path / "tee.txt"
    ok, ctx, out = run_script(
        f"""
        run py -c "print('foo'); print('bar'); print('baz')" | grep --regexp "ba." | replace --find a --replace A | tee --output "{tee}"
        """,
        envs=[python_env()],
    )
    assert ok, ctx.errors
    assert out.stdout() == ["bAr", "bAz"]
    assert tee.read_text() == "bAr\nbAz\n"


def test_run_inverted_grep_keeps_non_matching_lines():
    ok, ctx, out = run_script(
        """
        run py -c "print('foo'); print('bar')" | grep --regexp bar --invert
        """,
        envs=[python_env()],
    )
    assert ok, ctx.errors
    assert out.stdout() == ["foo"]


def test_run_filter_on_stderr_only():
    ok, ctx, out = run_script(
        """
        run py -c "import sys; print('keep'); print('drop', file=sys.stderr)" | grep --regexp x --stderr
        """,
        envs=[python_env()],
    )
    assert ok, ctx.errors
    assert out.stdout() == ["keep"]
    assert out.stderr() == []


def test_run_with_unknown_filter():
    ok, ctx, _ = run_script("run py -c pass | bogus", envs=[python_env()])
    assert not ok
    assert ctx.errors == ["Unknown filter: bogus (available: grep, replace, tee)"]


def test_run_missing_executable():
    env = python_env(name="broken")
    env.executable = "/nonexistent/launchenv-binary"
    ok, ctx, _ = run_script("run broken", envs=[env])
    assert not ok
    assert ctx.errors[0].startswith("Failed to launch '/nonexistent/launchenv-binary'")


def test_destroy_terminates_running_process():
    engine, ctx, out = build_engine(
        """
        run py -c "import time; print('started', flush=True); time.sleep(30)"
        echo --message after
        """,
        envs=[python_env()],
    )
    started = threading.Event()

    def on_line(line, stdout):
        if line == "started":
            started.set()

    engine.output.add_listener(on_line)
    result = {}
    worker = threading.Thread(target=lambda: result.setdefault("ok", engine.execute()))
    begin = time.monotonic()
    worker.start()
    assert started.wait(10)
    engine.destroy()
    worker.join(10)

    assert not worker.is_alive()
    assert time.monotonic() - begin < 10
    assert result["ok"] is False
    assert ctx.errors == ["Process was terminated: py"]
    assert "after" not in out.stdout()


def test_script_command_runs_script_file(tmp_path):
    script = tmp_path / "inner.script"
    script.write_text("set x=inner\necho --message ${x}\n")
    ok, ctx, out = run_script(f'script --file "{script}"')
    assert ok, ctx.errors
    assert out.stdout() == ["inner"]
    # Variables of a script run do not leak into the caller.
    assert "x" not in ctx.variables


def test_script_command_reports_indentation_error(tmp_path):
    script = tmp_path / "bad.script"
    script.write_text("echo --message a\n \techo --message b\n")
    ok, ctx, out = run_script(f'script --file "{script}"')
    assert not ok
    assert out.stdout() == []
    assert "mixes tabs and blanks" in ctx.errors[0]


def test_script_command_surfaces_inner_errors(tmp_path):
    script = tmp_path / "fail.script"
    script.write_text("echo --message a\nbogus\n")
    ok, ctx, out = run_script(f'script --file "{script}"')
    assert not ok
    assert out.stdout() == ["a"]
    assert ctx.errors == ["Unknown command: bogus"]
