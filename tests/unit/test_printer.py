"""
Unit tests for the token printer.

Printing a parsed tree must give text that lexes back into the tokens the
tree was parsed from.
"""

import pytest

from declsyn.compiler.ast_nodes import (
    Delimiter,
    ExprBinary,
    ExprLit,
    Field,
    FieldsNamed,
    FieldsUnit,
    FieldsUnnamed,
    Ident,
    ItemStruct,
    Path,
    Punctuated,
    TypePath,
    Variant,
    VisPublic,
    VisRestricted,
)
from declsyn.compiler.printer import TokenPrinter, emit, print_node, render_tokens
from declsyn.compiler.tokens import Token, TokenType


def _type(name: str) -> TypePath:
    return TypePath(Path.from_names(name))


VARIANTS = [
    "None",
    "Some(T)",
    "Point { x: f64, y: f64 }",
    "Point { x: f64, y: f64, }",
    "Pair(pub u8, pub(crate) u8)",
    "Ref(&'a mut [u8], *const T, !, ())",
    "Array([[f32; 3]; N])",
    "Nested(Vec<Vec<u8>>)",
    "Map(std::collections::HashMap<K, Vec<(u8, u8)>>)",
    "Absolute(::core::marker::PhantomData<T>)",
    "Red = 1",
    "Low = -1",
    "Bit = 1 << 3",
    "High = 0x80 >> 1",
    "Mask = (1 << 4) - 1",
    "All = Flags::A | Flags::B ^ 0b1010 & !0",
    "Cast = 0xFF_u8 as isize",
    "Str = 'c' as u32",
    "Tuple(u8) = 7",
    "#[default] Empty",
    "/// The origin.\nOrigin",
    "#[serde(rename = \"pt\")] Point { #[serde(skip)] pub(in crate::geo) x: f64 }",
]

ITEMS = [
    "struct Marker;",
    "pub struct Meters(pub f64);",
    "pub(crate) struct Point { pub x: f64, pub y: f64 }",
    "#[derive(Debug, Clone, PartialEq)]\npub enum Shape { Circle(f64), Rect { w: f64, h: f64 }, Empty = 0, }",
    "/// Docs.\n/// More docs.\nenum E { A, B }",
    "pub(self) struct Private;",
    "pub(super) struct Parent;",
]


class TestRoundTrip:
    """Parse, print, re-lex: the token sequence is unchanged."""

    @pytest.mark.parametrize("source", VARIANTS)
    def test_variant(self, roundtrip, source):
        roundtrip(source)

    @pytest.mark.parametrize("source", ITEMS)
    def test_item(self, roundtrip, source):
        roundtrip(source, "item")

    @pytest.mark.parametrize(
        "source,rule",
        [
            ("pub", "visibility"),
            ("pub(crate)", "visibility"),
            ("pub(in self)", "visibility"),
            ("pub(self) field: T", "field"),
            ("pub (u8)", "field-unnamed"),
            ("\n".join(ITEMS), "file"),
        ],
    )
    def test_other_rules(self, roundtrip, source, rule):
        roundtrip(source, rule)

    @pytest.mark.parametrize("source", VARIANTS)
    def test_printing_is_idempotent(self, parse, source):
        once = print_node(parse(source))
        assert print_node(parse(once)) == once

    def test_reparse_gives_equal_tree(self, parse):
        tree = parse("Rect { w: f64, h: f64 } = 2 * 3")
        assert parse(print_node(tree)) == tree


class TestRendering:
    """Tests for the text layout of printed tokens."""

    def test_tokens_separated_by_spaces(self, parse):
        assert print_node(parse("Some(T)")) == "Some ( T )"
        assert print_node(parse("Point{x:f64}")) == "Point { x : f64 }"

    def test_trailing_comma_printed(self, parse):
        assert print_node(parse("Pair(u8, u8,)")) == "Pair ( u8 , u8 , )"

    def test_joint_tokens_stay_adjacent(self, parse):
        assert print_node(parse("Bit = 1 << 3")) == "Bit = 1 << 3"
        assert print_node(parse("V(Vec<Vec<u8>>)")) == "V ( Vec < Vec < u8 >> )"
        assert print_node(parse("R(&&T)")) == "R ( && T )"

    def test_literals_print_as_written(self, parse):
        assert print_node(parse("A = 0x1F_u8")) == "A = 0x1F_u8"
        assert print_node(parse("A = 1_000")) == "A = 1_000"

    def test_doc_comment_ends_line(self, parse):
        printed = print_node(parse("/// The origin.\nOrigin"))
        assert printed == "/// The origin.\nOrigin"

    def test_render_empty(self):
        assert render_tokens([]) == ""

    def test_attribute_tokens_verbatim(self, parse):
        printed = print_node(parse('#[doc = "x"] struct A;', "item"))
        assert printed == '# [ doc = "x" ] struct A ;'


class TestEmit:
    """Tests for the emitted token sequence."""

    def test_emit_matches_input(self, parse, tokenize):
        source = "pub(crate) struct Point { pub x: f64 }"
        tokens = emit(parse(source, "item"))
        assert tokens == [t for t in tokenize(source) if t.type != TokenType.EOF]

    def test_inherited_visibility_emits_nothing(self, parse):
        field = parse("u8", "field-unnamed")
        assert [t.type for t in emit(field)] == [TokenType.IDENTIFIER]

    def test_printer_is_reusable(self, parse):
        printer = TokenPrinter()
        assert len(printer.emit(parse("A"))) == 1
        assert len(printer.emit(parse("B(u8)"))) == 4


class TestSyntheticTrees:
    """Trees built in code print with canonical punctuation."""

    def test_missing_colon_synthesized(self):
        field = Field(ty=_type("u8"), ident=Ident.new("x"))
        assert print_node(field) == "x : u8"

    def test_tuple_struct_semicolon_synthesized(self):
        item = ItemStruct(
            struct_token=Token.synthetic(TokenType.STRUCT),
            ident=Ident.new("Meters"),
            fields=FieldsUnnamed(Delimiter.paren(), Punctuated.from_values([Field(ty=_type("f64"))])),
            vis=VisPublic(Token.synthetic(TokenType.PUB)),
        )
        assert print_node(item) == "pub struct Meters ( f64 ) ;"

    def test_unit_struct_semicolon_synthesized(self):
        item = ItemStruct(
            struct_token=Token.synthetic(TokenType.STRUCT),
            ident=Ident.new("Marker"),
            fields=FieldsUnit(),
        )
        assert print_node(item) == "struct Marker ;"

    def test_named_struct_has_no_semicolon(self):
        item = ItemStruct(
            struct_token=Token.synthetic(TokenType.STRUCT),
            ident=Ident.new("P"),
            fields=FieldsNamed(Delimiter.brace(), Punctuated()),
        )
        assert print_node(item) == "struct P { }"

    def test_in_token_printed_as_captured(self):
        pub = Token.synthetic(TokenType.PUB)
        path = Path.from_names("self")
        with_in = VisRestricted(pub, Delimiter.paren(), path, Token.synthetic(TokenType.IN))
        without_in = VisRestricted(pub, Delimiter.paren(), path)
        assert print_node(with_in) == "pub ( in self )"
        assert print_node(without_in) == "pub ( self )"

    def test_shift_operator_forced_joint(self):
        shift = ExprBinary(
            ExprLit(Token.synthetic(TokenType.INTEGER, 1)),
            (Token.synthetic(TokenType.LT), Token.synthetic(TokenType.LT)),
            ExprLit(Token.synthetic(TokenType.INTEGER, 2)),
        )
        assert print_node(shift) == "1 << 2"

    def test_built_variant(self):
        variant = Variant(
            ident=Ident.new("Point"),
            fields=FieldsNamed(
                Delimiter.brace(),
                Punctuated.from_values(
                    [Field(ty=_type("f64"), ident=Ident.new("x"))], trailing=True
                ),
            ),
        )
        assert print_node(variant) == "Point { x : f64 , }"

    def test_path_from_names(self):
        assert print_node(_type("a")) == "a"
        assert print_node(TypePath(Path.from_names("std", "vec", "Vec"))) == "std :: vec :: Vec"
