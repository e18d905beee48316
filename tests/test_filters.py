import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from commands.filters import (
    FilterChain,
    GrepFilter,
    ReplaceFilter,
    TeeFilter,
    configure_filter,
    filter_names,
)
from core.exceptions import FilterConfigurationError


def test_filter_names():
    assert filter_names() == ["grep", "replace", "tee"]


def test_grep_requires_full_match():
    f = configure_filter(["grep", "--regexp", "fo+"])
    assert isinstance(f, GrepFilter)
    assert f.intercept("foo", True) == "foo"
    assert f.intercept("foobar", True) is None


def test_grep_invert_flips_matching_sense():
    keep_foo = configure_filter(["grep", "--regexp", "bar", "--invert"])
    drop_foo = configure_filter(["grep", "--regexp", "bar"])
    assert keep_foo.intercept("foo", True) == "foo"
    assert keep_foo.intercept("bar", True) is None
    assert drop_foo.intercept("foo", True) is None
    assert drop_foo.intercept("bar", True) == "bar"


def test_filter_applies_to_both_streams_by_default():
    f = configure_filter(["grep", "--regexp", "x"])
    assert f.stdout and f.stderr
    assert f.intercept("y", False) is None


def test_stream_selection_passes_other_stream_through():
    f = configure_filter(["grep", "--regexp", "x", "--stdout"])
    assert f.intercept("y", True) is None
    assert f.intercept("y", False) == "y"


def test_replace_literal_replaces_all_occurrences():
    f = configure_filter(["replace", "--find", "a", "--replace", "o"])
    assert isinstance(f, ReplaceFilter)
    assert f.intercept("banana", True) == "bonono"


def test_replace_regexp_first_or_all():
    first = configure_filter(["replace", "--find", "[0-9]+", "--replace", "N", "--regexp"])
    every = configure_filter(["replace", "--find", "[0-9]+", "--replace", "N", "--regexp", "--all"])
    assert first.intercept("a1 b22 c333", True) == "aN b22 c333"
    assert every.intercept("a1 b22 c333", True) == "aN bN cN"


def test_replace_regexp_groups():
    f = configure_filter(["replace", "--find", "(\\w+)=(\\w+)", "--replace", "\\2=\\1", "--regexp"])
    assert f.intercept("key=value", True) == "value=key"


def test_tee_truncates_then_appends(tmp_path):
    out = tmp_path / "out.txt"
    out.write_text("old\n")
    f = configure_filter(["tee", "--output", str(out)])
    assert isinstance(f, TeeFilter)
    assert f.intercept("a", True) == "a"
    assert f.intercept("b", False) == "b"
    assert out.read_text() == "a\nb\n"


def test_tee_append_keeps_existing_content(tmp_path):
    out = tmp_path / "out.txt"
    out.write_text("old\n")
    f = configure_filter(["tee", "--output", str(out), "--append"])
    f.intercept("new", True)
    assert out.read_text() == "old\nnew\n"


def test_tee_rejects_directory(tmp_path):
    result = configure_filter(["tee", "--output", str(tmp_path)])
    assert isinstance(result, FilterConfigurationError)
    assert "Output points to a directory" in str(result)


def test_chain_stops_at_first_dropped_line(tmp_path):
    out = tmp_path / "kept.txt"
    chain = FilterChain()
    chain.add_filter(configure_filter(["grep", "--regexp", "keep.*"]))
    chain.add_filter(configure_filter(["replace", "--find", "keep", "--replace", "kept"]))
    chain.add_filter(configure_filter(["tee", "--output", str(out)]))
    assert len(chain) == 3
    assert chain.intercept("keep me", True) == "kept me"
    assert chain.intercept("drop me", True) is None
    assert out.read_text() == "kept me\n"


def test_unknown_filter():
    result = configure_filter(["bogus"])
    assert isinstance(result, FilterConfigurationError)
    assert str(result) == "Unknown filter: bogus (available: grep, replace, tee)"


def test_missing_required_filter_option():
    result = configure_filter(["grep"])
    assert isinstance(result, FilterConfigurationError)
    assert "--regexp" in str(result)


def test_invalid_regular_expression():
    result = configure_filter(["grep", "--regexp", "("])
    assert isinstance(result, FilterConfigurationError)
    assert "Invalid regular expression" in str(result)


def test_resolver_attaches_filters_in_order():
    from commands.executor import CommandSetup, resolve_command
    from script_helpers import make_context, python_env

    ctx = make_context(envs=[python_env()])
    tokens = ["run", "py", "-c", "pass", "|", "grep", "--regexp", "x", "|", "replace", "--find", "x", "--replace", "y"]
    setup = resolve_command(tokens, ctx)
    assert isinstance(setup, CommandSetup)
    assert setup.options == ["-c", "pass"]
    chain = setup.command.filter_chain
    assert [type(f) for f in chain.filters] == [GrepFilter, ReplaceFilter]
