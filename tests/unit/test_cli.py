"""
Unit tests for the declsyn command-line interface.
"""

import io

import pytest

from declsyn import __version__
from declsyn.cli import create_parser, main

SHAPES = """/// Shapes we know how to draw.
#[derive(Debug)]
pub enum Shape {
    Circle(f64),
    Rect { w: f64, h: f64 },
    Empty = 1 << 2,
}

pub struct Point(pub f64, pub f64);
"""


@pytest.fixture
def shapes_file(tmp_path):
    path = tmp_path / "shapes.rs"
    path.write_text(SHAPES, encoding="utf-8")
    return path


@pytest.fixture
def write_source(tmp_path):
    """Write a source snippet to a temporary file and return its path."""

    def _write(source: str, name: str = "input.rs"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write


class TestArgumentParsing:
    """Tests for the argument parser."""

    def test_defaults(self):
        args = create_parser().parse_args(["check", "a.rs"])
        assert args.command == "check"
        assert args.rule == "file"
        assert args.max_depth == 128
        assert not args.verbose

    def test_rule_choices(self):
        args = create_parser().parse_args(["ast", "a.rs", "--rule", "field-unnamed"])
        assert args.rule == "field-unnamed"
        with pytest.raises(SystemExit):
            create_parser().parse_args(["ast", "a.rs", "--rule", "statement"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestCheckCommand:
    """Tests for `declsyn check`."""

    def test_valid_file(self, shapes_file, capsys):
        assert main(["check", str(shapes_file)]) == 0
        assert "OK:" in capsys.readouterr().out

    def test_syntax_error(self, write_source, capsys):
        path = write_source("struct Point { x f64 }")
        assert main(["check", str(path), "--no-color"]) == 1
        err = capsys.readouterr().err
        assert "error[E0201]: expected `:`, found `f64`" in err
        assert "= note: while parsing field" in err

    def test_unclosed_delimiter(self, write_source, capsys):
        path = write_source("pub(crate T", "field.rs")
        assert main(["check", str(path), "--rule", "field"]) == 1
        err = capsys.readouterr().err
        assert "error[E0202]: unclosed delimiter '('" in err
        assert "unclosed '(' starts here" in err

    def test_lexer_error(self, write_source, capsys):
        path = write_source("struct $;")
        assert main(["check", str(path)]) == 1
        assert "Unexpected character" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "missing.rs")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("Some(T)"))
        assert main(["check", "-", "--rule", "variant"]) == 0
        assert "OK:" in capsys.readouterr().out

    def test_max_depth(self, write_source, capsys):
        path = write_source("&&&&&&T")
        assert main(["check", str(path), "--rule", "field-unnamed", "--max-depth", "4"]) == 1
        assert "E0209" in capsys.readouterr().err


class TestTokensCommand:
    """Tests for `declsyn tokens`."""

    def test_token_dump(self, write_source, capsys):
        path = write_source("A = 1 << 2")
        assert main(["tokens", str(path)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert len(out) == 7
        assert "IDENTIFIER" in out[0]
        assert "(joint)" in out[3]
        assert "(joint)" not in out[4]
        assert "EOF" in out[-1]

    def test_token_dump_lexer_error(self, write_source, capsys):
        path = write_source('"open')
        assert main(["tokens", str(path)]) == 1
        assert "Unterminated string" in capsys.readouterr().err


class TestAstCommand:
    """Tests for `declsyn ast`."""

    def test_ast_dump(self, shapes_file, capsys):
        assert main(["ast", str(shapes_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("DeclFile")
        assert "ItemEnum" in out
        assert "ItemStruct" in out
        assert "FieldsNamed" in out
        assert "'Circle'" in out

    def test_ast_dump_of_fragment(self, write_source, capsys):
        path = write_source("pub(in crate::a) x: u8")
        assert main(["ast", str(path), "--rule", "field"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Field")
        assert "VisRestricted" in out
        assert "in_token: 'in'" in out

    def test_ast_dump_error(self, write_source):
        path = write_source("enum E { A(u8] }")
        assert main(["ast", str(path)]) == 1


class TestPrintCommand:
    """Tests for `declsyn print`."""

    def test_print(self, write_source, capsys):
        path = write_source("Point{x:f64}")
        assert main(["print", str(path), "--rule", "variant"]) == 0
        assert capsys.readouterr().out == "Point { x : f64 }\n"

    def test_print_alias(self, write_source, capsys):
        path = write_source("struct A;")
        assert main(["p", str(path)]) == 0
        assert capsys.readouterr().out == "struct A ;\n"

    def test_round_trip_check(self, shapes_file, capsys):
        assert main(["print", str(shapes_file), "--check"]) == 0
        captured = capsys.readouterr()
        assert "round trip preserved" in captured.err
        assert captured.out.startswith("/// Shapes we know how to draw.\n# [ derive ( Debug ) ]")

    def test_print_error(self, write_source, capsys):
        path = write_source("struct A")
        assert main(["print", str(path)]) == 1
        assert "error[E0205]" in capsys.readouterr().err


class TestUnreadableInput:
    """Input that cannot be read is reported, not raised."""

    @pytest.mark.parametrize("command", ["check", "tokens", "ast", "print"])
    def test_invalid_utf8(self, tmp_path, capsys, command):
        path = tmp_path / "latin1.rs"
        path.write_bytes(b"struct S\xff;")
        assert main([command, str(path)]) == 1
        err = capsys.readouterr().err
        assert f"cannot read {path}" in err
        assert "utf-8" in err

    def test_directory_input(self, tmp_path, capsys):
        assert main(["check", str(tmp_path)]) == 1
        assert "cannot read" in capsys.readouterr().err


class TestMaxDepthOption:
    """Tests for --max-depth validation and recursion safety."""

    @pytest.mark.parametrize("value", ["0", "-3", "deep"])
    def test_rejects_non_positive(self, value):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["check", "a.rs", "--max-depth", value])
        assert exc_info.value.code == 2

    def test_limit_beyond_interpreter_stack(self, write_source, capsys):
        path = write_source("struct S(" + "&" * 5000 + "u8);")
        assert main(["check", str(path), "--max-depth", "100000", "--no-color"]) == 1
        err = capsys.readouterr().err
        assert "error[E0209]" in err
        assert "recursion limit" in err
