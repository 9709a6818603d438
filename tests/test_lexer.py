import pytest

from cookbuild.lexer import H699Error, Lexer, remove_comments
from cookbuild.log import CookError, Logger


def test_remove_comments_drops_comment_text():
    result = remove_comments("a = 1 # note\nb = 2\n")
    assert "note" not in result
    assert result.startswith("a = 1 ")
    assert result.endswith("\nb = 2\n")


def test_remove_comments_keeps_hash_inside_string():
    text = 'x = "a#b"\n'
    assert remove_comments(text) == text


def test_remove_comments_escaped_quote_keeps_string_open():
    text = 'x = "a\\"#b"\n'
    assert remove_comments(text) == text


def test_remove_comments_without_comments_is_identity():
    text = "main.cc:\n    bin = 1\n"
    assert remove_comments(text) == text


def test_single_scope_element():
    lexer = Lexer()
    tokens = lexer.tokenize('main.cc:\n    bin = "out"\n')
    assert tokens == [("main.cc.bin", '"out"')]
    assert lexer.scopes == ["main.cc"]


def test_multiple_scopes_and_elements():
    lexer = Lexer()
    tokens = lexer.tokenize(
        'main.cc:\n    bin = "out"\n    compiler = "g++"\nlib.cc:\n    bin = "lib"\n'
    )
    assert [name for name, _ in tokens] == [
        "main.cc.bin",
        "main.cc.compiler",
        "lib.cc.bin",
    ]
    assert [value for _, value in tokens] == ['"out"', '"g++"', '"lib"']
    assert lexer.scopes == ["main.cc", "lib.cc"]


def test_unscoped_element():
    assert Lexer().tokenize('name = "x"\n') == [("name", '"x"')]


def test_array_value_on_one_line():
    tokens = Lexer().tokenize('main.cc:\n    combine = ["a.cc", "b.cc"]\n')
    assert tokens == [("main.cc.combine", '["a.cc", "b.cc"]')]


def test_array_value_spanning_lines():
    tokens = Lexer().tokenize('main.cc:\n    lib = [\n"m",\n"x"]\n')
    assert len(tokens) == 1
    name, value = tokens[0]
    assert name == "main.cc.lib"
    assert value.startswith("[")
    assert value.endswith("]")
    assert '"m"' in value and '"x"' in value


def test_escaped_quote_in_value():
    tokens = Lexer().tokenize('name = "a\\"b"\n')
    assert tokens == [("name", '"a\\"b"')]


def test_comment_removed_from_value():
    tokens = Lexer().tokenize('main.cc:\n    bin = "a#b" # trailing note\n')
    assert len(tokens) == 1
    name, value = tokens[0]
    assert name == "main.cc.bin"
    assert value.startswith('"a#b"')
    assert "note" not in value


def test_track_scopes_false_records_nothing():
    lexer = Lexer()
    tokens = lexer.tokenize('main.cc:\n    bin = "out"\n', track_scopes=False)
    assert lexer.scopes == []
    assert tokens == [("main.cc.bin", '"out"')]


def test_reference_copies_matching_elements():
    lexer = Lexer()
    tokens = lexer.tokenize('a.cc:\n    bin = "x"\nb.cc > a.cc\n')
    assert tokens[0] == ("a.cc.bin", '"x"')
    assert len(tokens) == 2
    copied_name, copied_value = tokens[1]
    assert copied_name.startswith("b.cc.")
    assert copied_name.endswith("a.cc.bin")
    assert copied_value == '"x"'
    assert lexer.scopes == ["a.cc", "b.cc"]


def test_reference_without_match_yields_unidef():
    lexer = Lexer()
    tokens = lexer.tokenize("b.cc > missing\n")
    assert ("UNIDEF", "UNIDEF") in tokens
    assert lexer.scopes == ["b.cc"]


def test_import_attribute_includes_file(tmp_path):
    included = tmp_path / "inc.h699"
    included.write_text('lib.cc:\n    bin = "l"\n', encoding="utf-8")
    lexer = Lexer()
    tokens = lexer.tokenize(f'@import {included}\nmain.cc:\n    bin = "o"\n')
    assert tokens == [("lib.cc.bin", '"l"'), ("main.cc.bin", '"o"')]
    assert lexer.scopes == ["lib.cc", "main.cc"]


def test_import_missing_file_raises(tmp_path):
    missing = tmp_path / "absent.h699"
    with pytest.raises(H699Error) as info:
        Lexer().tokenize(f"@import {missing}\n")
    assert str(missing) in str(info.value)


def test_h699_error_is_cook_error(tmp_path):
    with pytest.raises(CookError):
        Lexer().tokenize(f"@import {tmp_path / 'nothing'}\n")


def test_show_logs_true_enables_logging():
    logger = Logger(allowed=False)
    Lexer(logger=logger).tokenize("@show_logs true\n")
    assert logger.allowed is True


def test_show_logs_false_disables_logging():
    logger = Logger(allowed=True)
    Lexer(logger=logger).tokenize("@show_logs false\n")
    assert logger.allowed is False


def test_show_logs_invalid_value_raises(capsys):
    with pytest.raises(CookError) as info:
        Lexer().tokenize("@show_logs maybe\n")
    assert "show_logs" in info.value.message
    assert "show_logs" in capsys.readouterr().out


def test_callback_attribute_is_recorded():
    lexer = Lexer()
    tokens = lexer.tokenize("@callback echo done\n")
    assert lexer.callbacks == ["echo done"]
    assert tokens == []


def test_system_attribute_runs_command():
    commands = []
    Lexer(run_command=commands.append).tokenize("@system echo built\n")
    assert commands == ["echo built"]


def test_unknown_attribute_is_ignored():
    commands = []
    lexer = Lexer(run_command=commands.append)
    tokens = lexer.tokenize('@mystery value\nname = "x"\n')
    assert tokens == [("name", '"x"')]
    assert commands == []
    assert lexer.callbacks == []


def test_scopes_accumulate_across_calls():
    lexer = Lexer()
    lexer.tokenize('one.cc:\n    bin = "a"\n')
    lexer.tokenize('two.cc:\n    bin = "b"\n')
    assert lexer.scopes == ["one.cc", "two.cc"]