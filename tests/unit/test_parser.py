"""
Unit tests for the declsyn Parser.
"""

import pytest

from declsyn.compiler.ast_nodes import (
    Attribute,
    DeclFile,
    Delimiter,
    DocComment,
    ExprBinary,
    ExprCast,
    ExprLit,
    ExprParen,
    ExprPath,
    ExprUnary,
    Field,
    FieldsNamed,
    FieldsUnit,
    FieldsUnnamed,
    Ident,
    ItemEnum,
    ItemStruct,
    Path,
    Punctuated,
    TypeArray,
    TypeNever,
    TypePath,
    TypePtr,
    TypeReference,
    TypeSlice,
    TypeTuple,
    Variant,
    VisCrate,
    VisInherited,
    VisPublic,
    VisRestricted,
)
from declsyn.compiler.lexer import tokenize
from declsyn.compiler.parser import RULES, Parser, parse, parse_str
from declsyn.compiler.tokens import Token, TokenType
from declsyn.utils.errors import ParserError


def _type(name: str) -> TypePath:
    return TypePath(Path.from_names(name))


def _named(name: str, ty: str) -> Field:
    return Field(
        ty=_type(ty),
        ident=Ident.new(name),
        colon_token=Token.synthetic(TokenType.COLON),
    )


class TestVariants:
    """The three shapes of enum variant."""

    def test_tuple_variant(self, parse):
        expected = Variant(
            ident=Ident.new("Some"),
            fields=FieldsUnnamed(Delimiter.paren(), Punctuated.from_values([Field(ty=_type("T"))])),
        )
        assert parse("Some(T)") == expected

    def test_struct_variant(self, parse):
        expected = Variant(
            ident=Ident.new("Point"),
            fields=FieldsNamed(
                Delimiter.brace(),
                Punctuated.from_values([_named("x", "f64"), _named("y", "f64")]),
            ),
        )
        assert parse("Point { x: f64, y: f64 }") == expected

    def test_unit_variant(self, parse):
        variant = parse("None")
        assert variant == Variant(ident=Ident.new("None"))
        assert isinstance(variant.fields, FieldsUnit)
        assert variant.discriminant is None
        assert len(variant.fields) == 0

    def test_field_names_and_types(self, parse):
        variant = parse("Rect { pub w: f64, h: std::num::NonZeroU32 }")
        assert [field.ident.name for field in variant.fields] == ["w", "h"]
        assert str(variant.fields.fields[1].ty) == "std::num::NonZeroU32"
        assert isinstance(variant.fields.fields[0].vis, VisPublic)

    def test_trailing_comma_kept(self, parse):
        variant = parse("Pair(u8, u8,)")
        assert len(variant.fields) == 2
        assert variant.fields.fields.trailing_punct

    def test_empty_groups(self, parse):
        assert len(parse("Empty {}").fields) == 0
        assert len(parse("Empty()").fields) == 0
        assert isinstance(parse("Empty()").fields, FieldsUnnamed)

    def test_field_named_consistency(self, parse):
        """Named groups hold only named fields, tuple groups only unnamed ones."""
        assert all(f.is_named for f in parse("P { a: u8, b: u8 }").fields)
        assert not any(f.is_named for f in parse("P(u8, u8)").fields)


class TestDiscriminants:
    """Tests for explicit discriminant expressions."""

    def test_literal(self, parse):
        variant = parse("Red = 1")
        eq_token, value = variant.discriminant
        assert eq_token.type == TokenType.ASSIGN
        assert value == ExprLit(Token(TokenType.INTEGER, 1))

    def test_negative(self, parse):
        _, value = parse("Low = -1").discriminant
        assert isinstance(value, ExprUnary)
        assert value.op.type == TokenType.MINUS

    def test_precedence(self, parse):
        _, value = parse("A = 1 + 2 * 3").discriminant
        assert isinstance(value, ExprBinary)
        assert value.operator == "+"
        assert isinstance(value.right, ExprBinary)
        assert value.right.operator == "*"

    def test_left_associative(self, parse):
        _, value = parse("A = 1 - 2 - 3").discriminant
        assert isinstance(value.left, ExprBinary)
        assert value.right == ExprLit(Token(TokenType.INTEGER, 3))

    def test_parentheses(self, parse):
        _, value = parse("A = (1 + 2) * 3").discriminant
        assert value.operator == "*"
        assert isinstance(value.left, ExprParen)

    def test_shift(self, parse):
        _, value = parse("Bit = 1 << 3").discriminant
        assert isinstance(value, ExprBinary)
        assert value.operator == "<<"
        assert len(value.op) == 2

    def test_shift_binds_looser_than_addition(self, parse):
        _, value = parse("A = 1 << 2 + 1").discriminant
        assert value.operator == "<<"
        assert value.right.operator == "+"

    def test_bitwise_or_of_paths(self, parse):
        _, value = parse("All = Flags::A | Flags::B").discriminant
        assert value.operator == "|"
        assert isinstance(value.left, ExprPath)
        assert str(value.left.path) == "Flags::A"

    def test_cast(self, parse):
        _, value = parse("Max = 0xFF as isize").discriminant
        assert isinstance(value, ExprCast)
        assert value.ty == _type("isize")

    def test_cast_binds_tighter_than_addition(self, parse):
        _, value = parse("A = 1 + 2 as u8").discriminant
        assert value.operator == "+"
        assert isinstance(value.right, ExprCast)

    def test_discriminant_with_fields(self, parse):
        variant = parse("A(u8) = 3")
        assert isinstance(variant.fields, FieldsUnnamed)
        assert variant.discriminant is not None

    def test_missing_expression(self, parse):
        with pytest.raises(ParserError, match="expected expression, found end of input") as exc_info:
            parse("A =")
        assert exc_info.value.description == "expression"

    def test_comparison_is_not_an_operator(self, parse):
        with pytest.raises(ParserError, match="unexpected `<` after variant") as exc_info:
            parse("A = 1 < 2")
        assert exc_info.value.code == "E0206"


class TestTypes:
    """Tests for field types."""

    def test_reference(self, parse):
        field = parse("&'a mut str", "field-unnamed")
        assert isinstance(field.ty, TypeReference)
        assert field.ty.lifetime.name == "'a"
        assert field.ty.mutability is not None
        assert field.ty.elem == _type("str")

    def test_pointer(self, parse):
        field = parse("*const u8", "field-unnamed")
        assert isinstance(field.ty, TypePtr)
        assert field.ty.qualifier.type == TokenType.CONST

    def test_pointer_needs_qualifier(self, parse):
        with pytest.raises(ParserError, match="expected `const` or `mut`"):
            parse("*u8", "field-unnamed")

    def test_slice_and_array(self, parse):
        fields = parse("A([u8], [u8; 4], [[f32; 3]; N])").fields
        assert isinstance(fields.fields[0].ty, TypeSlice)
        assert isinstance(fields.fields[1].ty, TypeArray)
        assert fields.fields[1].ty.len == ExprLit(Token(TokenType.INTEGER, 4))
        assert isinstance(fields.fields[2].ty.elem, TypeArray)

    def test_tuple_and_never(self, parse):
        fields = parse("A((), (u8, i8), !)").fields
        assert fields.fields[0].ty == TypeTuple(Delimiter.paren(), Punctuated())
        assert len(fields.fields[1].ty.elems) == 2
        assert isinstance(fields.fields[2].ty, TypeNever)

    def test_nested_generics(self, parse):
        field = parse("Vec<Vec<u8>>", "field-unnamed")
        segment = field.ty.path.segments[0]
        inner = segment.arguments.args[0]
        assert str(inner) == "Vec"
        assert inner.path.segments[0].arguments.args[0] == _type("u8")

    def test_generic_lifetime_argument(self, parse):
        field = parse("Cow<'a, str>", "field-unnamed")
        args = field.ty.path.segments[0].arguments.args
        assert args[0].name == "'a"
        assert args[1] == _type("str")

    def test_leading_colon_path(self, parse):
        field = parse("::std::string::String", "field-unnamed")
        assert str(field.ty) == "::std::string::String"

    def test_self_type(self, parse):
        field = parse("Box<Self>", "field-unnamed")
        assert isinstance(field.ty, TypePath)

    def test_unclosed_generics(self, parse):
        with pytest.raises(ParserError, match="expected `,` or `>`"):
            parse("Vec<u8", "field-unnamed")


class TestVisibility:
    """Tests for visibility qualifiers."""

    def test_restricted_self_field(self, parse):
        field = parse("pub(self) field: T", "field")
        expected_path = Path.from_ident(Ident(Token.synthetic(TokenType.SELF_VALUE)))
        assert field.vis == VisRestricted(
            Token.synthetic(TokenType.PUB), Delimiter.paren(), expected_path
        )
        assert field.vis.in_token is None
        assert field.ident.name == "field"

    def test_public(self, parse):
        assert parse("pub", "visibility") == VisPublic(Token.synthetic(TokenType.PUB))

    def test_crate(self, parse):
        vis = parse("pub(crate)", "visibility")
        assert isinstance(vis, VisCrate)
        assert vis.crate_token.type == TokenType.CRATE

    def test_super(self, parse):
        vis = parse("pub(super)", "visibility")
        assert isinstance(vis, VisRestricted)
        assert str(vis.path) == "super"
        assert vis.in_token is None

    def test_in_path(self, parse):
        vis = parse("pub(in crate::shapes)", "visibility")
        assert isinstance(vis, VisRestricted)
        assert vis.in_token.type == TokenType.IN
        assert str(vis.path) == "crate::shapes"

    def test_inherited_consumes_nothing(self, parse):
        assert parse("", "visibility") == VisInherited()
        assert parse("u8", "field-unnamed").vis == VisInherited()

    def test_pub_followed_by_tuple_type(self, parse):
        """`pub (u8)` is a public field of tuple type, not a restriction."""
        field = parse("pub (u8)", "field-unnamed")
        assert isinstance(field.vis, VisPublic)
        assert isinstance(field.ty, TypeTuple)

    def test_crate_visible_tuple_field(self, parse):
        field = parse("pub(crate) String", "field-unnamed")
        assert isinstance(field.vis, VisCrate)
        assert field.ty == _type("String")


class TestItems:
    """Tests for struct and enum declarations."""

    def test_struct_with_named_fields(self, parse):
        item = parse("pub struct Point { x: f64, y: f64 }", "item")
        assert isinstance(item, ItemStruct)
        assert isinstance(item.vis, VisPublic)
        assert item.semi_token is None
        assert [f.ident.name for f in item.fields] == ["x", "y"]

    def test_tuple_struct(self, parse):
        item = parse("struct Meters(pub f64);", "item")
        assert isinstance(item.fields, FieldsUnnamed)
        assert item.semi_token.type == TokenType.SEMICOLON

    def test_unit_struct(self, parse):
        item = parse("struct Marker;", "item")
        assert isinstance(item.fields, FieldsUnit)
        assert item.semi_token is not None

    def test_enum(self, parse):
        item = parse("pub(crate) enum Shape { Circle(f64), Empty = 0, }", "item")
        assert isinstance(item, ItemEnum)
        assert isinstance(item.vis, VisCrate)
        assert [v.ident.name for v in item.variants] == ["Circle", "Empty"]
        assert item.variants.trailing_punct

    def test_attributes_and_doc_comments(self, parse):
        source = "#[derive(Debug, Clone)]\n/// A marker.\npub struct A;"
        item = parse(source, "item")
        attr, doc = item.attrs
        assert isinstance(attr, Attribute)
        assert str(attr.path) == "derive"
        assert [t.lexeme for t in attr.tokens] == ["(", "Debug", ",", "Clone", ")"]
        assert isinstance(doc, DocComment)
        assert doc.content == "A marker."

    def test_attribute_with_value(self, parse):
        item = parse('#[doc = "text"] struct A;', "item")
        assert [t.type for t in item.attrs[0].tokens] == [TokenType.ASSIGN, TokenType.STRING]

    def test_attributes_on_variants_and_fields(self, parse):
        item = parse("enum E { #[default] A, B { #[serde(skip)] x: u8 } }", "item")
        first, second = item.variants
        assert str(first.attrs[0].path) == "default"
        assert str(second.fields.fields[0].attrs[0].path) == "serde"

    def test_missing_semicolon(self, parse):
        with pytest.raises(ParserError, match="expected `;`, found end of input"):
            parse("struct Meters(f64)", "item")

    def test_missing_body(self, parse):
        with pytest.raises(ParserError, match="expected `\\{`, `\\(` or `;`"):
            parse("struct Marker", "item")

    def test_file(self, parse):
        tree = parse("struct A;\n\nenum B { X, Y }\n", "file")
        assert isinstance(tree, DeclFile)
        assert [item.ident.name for item in tree.items] == ["A", "B"]

    def test_empty_file(self, parse):
        assert parse("// nothing here\n", "file") == DeclFile()


class TestParserErrors:
    """Tests for parse failures and their diagnostics."""

    def test_unclosed_delimiter_in_visibility(self, parse):
        with pytest.raises(ParserError) as exc_info:
            parse("pub(crate T", "field")
        err = exc_info.value
        assert err.code == "E0202"
        assert err.position == 4
        assert err.location.column == 12

    def test_unclosed_delimiter_diagnostic(self, parser_factory):
        parser = parser_factory("pub(crate T")
        with pytest.raises(ParserError):
            parser.parse("field")
        (diagnostic,) = parser.diagnostics
        assert diagnostic.message == "unclosed delimiter '('"
        assert diagnostic.helps == ["add matching closing ')'"]
        assert diagnostic.primary_label.span.start_col == 12
        assert diagnostic.labels[1].span.start_col == 4

    def test_missing_colon_names_field(self, parse):
        with pytest.raises(ParserError, match="expected `:`, found `f64`") as exc_info:
            parse("Point { x f64 }")
        assert exc_info.value.description == "field"
        assert "(while parsing field)" in str(exc_info.value)

    def test_misspelled_keyword_suggestion(self, parser_factory):
        parser = parser_factory("strct Foo;")
        with pytest.raises(ParserError, match="expected `struct` or `enum`") as exc_info:
            parser.parse("item")
        assert exc_info.value.description == "struct or enum declaration"
        (diagnostic,) = parser.diagnostics
        assert diagnostic.helps == ["did you mean `struct`?"]
        assert diagnostic.notes == ["while parsing struct or enum declaration"]

    def test_keyword_as_field_name(self, parse):
        with pytest.raises(ParserError, match="expected identifier, found `struct`"):
            parse("P { struct: u8 }")

    def test_trailing_tokens(self, parse):
        with pytest.raises(ParserError, match="unexpected `B` after variant") as exc_info:
            parse("A B")
        assert exc_info.value.code == "E0206"

    def test_mismatched_delimiter(self, parse):
        with pytest.raises(ParserError) as exc_info:
            parse("A(u8]")
        assert exc_info.value.code == "E0203"

    def test_nesting_limit(self, parse):
        depth = 300
        source = "A(" + "(" * depth + "u8" + ")" * depth + ")"
        with pytest.raises(ParserError, match="nesting limit") as exc_info:
            parse(source)
        assert exc_info.value.code == "E0209"

    def test_custom_nesting_limit(self, parser_factory):
        assert isinstance(parser_factory("&&T", max_depth=4).parse("field-unnamed").ty, TypeReference)
        with pytest.raises(ParserError) as exc_info:
            parser_factory("&&&&&&T", max_depth=4).parse("field-unnamed")
        assert exc_info.value.code == "E0209"

    def test_nesting_limit_above_recursion_limit(self, parser_factory):
        parser = parser_factory("&" * 5000 + "u8", max_depth=100_000)
        with pytest.raises(ParserError, match="recursion limit") as exc_info:
            parser.parse("field-unnamed")
        assert exc_info.value.code == "E0209"
        assert parser.diagnostics[0].code == "E0209"

    def test_unknown_rule(self, parser_factory):
        with pytest.raises(ValueError, match="unknown rule"):
            parser_factory("A").parse("statement")


class TestParserEntryPoints:
    """Tests for the module-level helpers and rule table."""

    def test_rules(self):
        assert set(RULES) == {"file", "item", "variant", "field", "field-unnamed", "visibility"}

    def test_package_exports_path_as_decl_path(self):
        from declsyn.compiler import DeclPath

        assert DeclPath is Path

    def test_nodes_are_hashable(self):
        first = parse_str("Point { pub(crate) x: u8 }", "variant")
        second = parse_str("Point {\n    pub(crate)  x: u8 }", "variant")
        assert first == second
        assert hash(first) == hash(second)
        assert hash(Ident.new("x")) == hash(first.fields.fields[0].ident)

    def test_parse_str(self):
        variant = parse_str("Some(T)", "variant")
        assert variant.ident.name == "Some"

    def test_parse_tokens(self):
        item = parse(tokenize("struct A;"), "item")
        assert item.ident.name == "A"

    def test_parse_methods(self):
        assert Parser(tokenize("Some(T)")).parse_variant().ident.name == "Some"
        assert len(Parser(tokenize("{ x: u8 }")).parse_fields_named()) == 1
        assert len(Parser(tokenize("(u8, u8)")).parse_fields_unnamed()) == 2
        assert Parser(tokenize("x: u8")).parse_field_named().is_named
        assert not Parser(tokenize("u8")).parse_field_unnamed().is_named
        assert isinstance(Parser(tokenize("pub")).parse_visibility(), VisPublic)
        assert isinstance(Parser(tokenize("struct A;")).parse_item(), ItemStruct)
        assert Parser(tokenize("")).parse_file() == DeclFile()

    def test_error_without_source_still_raises(self):
        parser = Parser(tokenize("A("))
        with pytest.raises(ParserError):
            parser.parse_variant()
        assert parser.diagnostics[0].code == "E0202"
