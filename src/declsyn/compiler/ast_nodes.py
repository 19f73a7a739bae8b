"""
Abstract Syntax Tree (AST) node definitions for declsyn.

This module defines the syntax tree of declaration fragments: enum variants,
struct/variant member lists, fields and visibility qualifiers, together with
the minimal collaborator nodes they are built from (identifiers, paths,
types, constant expressions, attributes).

Every node is immutable and keeps the exact delimiter and punctuation tokens
it was parsed from, so that printing a parsed tree reproduces its tokens.
Equality is structural; token equality ignores source positions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

from declsyn.compiler.tokens import Token, TokenType


class ASTNode(ABC):
    """Base class for all AST nodes."""

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass

    @classmethod
    def description(cls) -> Optional[str]:
        """Human readable name of the construct, used to label parse errors."""
        return None


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implement this to create custom AST processors (printers, outline
    builders, rewriters, etc.).
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Token Groupings
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Delimiter:
    """
    The pair of tokens surrounding a delimited group, e.g. `(` and `)`.

    Parsed groups keep the original tokens; ``paren()``, ``brace()`` and
    ``bracket()`` build synthetic pairs for programmatic construction.
    """

    open: Token
    close: Token

    @classmethod
    def paren(cls) -> "Delimiter":
        return cls(Token.synthetic(TokenType.LPAREN), Token.synthetic(TokenType.RPAREN))

    @classmethod
    def brace(cls) -> "Delimiter":
        return cls(Token.synthetic(TokenType.LBRACE), Token.synthetic(TokenType.RBRACE))

    @classmethod
    def bracket(cls) -> "Delimiter":
        return cls(Token.synthetic(TokenType.LBRACKET), Token.synthetic(TokenType.RBRACKET))


@dataclass(frozen=True, slots=True)
class Pair:
    """A list item together with the separator that followed it, if any."""

    value: Any
    punct: Optional[Token] = None


@dataclass(frozen=True, slots=True)
class Punctuated:
    """
    A separator-joined sequence of items, e.g. the fields of `{ x: u8, y: u8, }`.

    Iterating yields the items; ``pairs`` keeps each separator so a trailing
    separator survives printing.
    """

    pairs: tuple[Pair, ...] = ()

    def __iter__(self) -> Iterator[Any]:
        return (pair.value for pair in self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def __getitem__(self, index: int) -> Any:
        return self.pairs[index].value

    @property
    def trailing_punct(self) -> bool:
        """True if the last item is followed by a separator."""
        return bool(self.pairs) and self.pairs[-1].punct is not None

    @classmethod
    def from_values(
        cls,
        values: "list[Any] | tuple[Any, ...]",
        separator: TokenType = TokenType.COMMA,
        trailing: bool = False,
    ) -> "Punctuated":
        """Build a list from bare values, inserting synthetic separators."""
        pairs = []
        for index, value in enumerate(values):
            is_last = index == len(values) - 1
            punct = None if is_last and not trailing else Token.synthetic(separator)
            pairs.append(Pair(value, punct))
        return cls(tuple(pairs))


# -----------------------------------------------------------------------------
# Identifiers and Paths
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Ident(ASTNode):
    """
    An identifier, or one of the path keywords (`self`, `super`, `crate`, `Self`)
    when it appears as a path segment.
    """

    token: Token

    @classmethod
    def new(cls, name: str) -> "Ident":
        """Build an identifier from its name."""
        return cls(Token.synthetic(TokenType.IDENTIFIER, name))

    @property
    def name(self) -> str:
        return str(self.token.value)

    def __str__(self) -> str:
        return self.name

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_ident(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "identifier"


@dataclass(frozen=True, slots=True)
class Lifetime(ASTNode):
    """A lifetime such as `'a` or `'static`."""

    token: Token

    @property
    def name(self) -> str:
        return str(self.token.value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_lifetime(self)


@dataclass(frozen=True, slots=True)
class AngleBracketedArgs(ASTNode):
    """
    Generic arguments of a path segment.

    Example:
        <T, 'a, Vec<u8>>
    """

    lt_token: Token
    args: Punctuated
    gt_token: Token

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_angle_bracketed_args(self)


@dataclass(frozen=True, slots=True)
class PathSegment(ASTNode):
    """One `::`-separated segment of a path, with optional generic arguments."""

    ident: Ident
    arguments: Optional[AngleBracketedArgs] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_path_segment(self)


@dataclass(frozen=True, slots=True)
class Path(ASTNode):
    """
    A path such as `self`, `super::inner`, `::std::vec::Vec<T>`.

    ``str(path)`` gives the segment names joined by `::`, without generic
    arguments.
    """

    segments: Punctuated
    leading_colon: Optional[Token] = None

    @classmethod
    def from_ident(cls, ident: Ident) -> "Path":
        """A single-segment path."""
        return cls(Punctuated((Pair(PathSegment(ident)),)))

    @classmethod
    def from_names(cls, *names: str) -> "Path":
        """Build a path from segment names, e.g. ``Path.from_names("a", "b")``."""
        segments = [PathSegment(Ident.new(name)) for name in names]
        return cls(Punctuated.from_values(segments, TokenType.DOUBLE_COLON))

    def __str__(self) -> str:
        prefix = "::" if self.leading_colon is not None else ""
        return prefix + "::".join(segment.ident.name for segment in self.segments)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_path(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "path"


# -----------------------------------------------------------------------------
# Types
# -----------------------------------------------------------------------------


class Type(ASTNode):
    """Base class for field types."""

    @classmethod
    def description(cls) -> Optional[str]:
        return "type"


@dataclass(frozen=True, slots=True)
class TypePath(Type):
    """
    A named type.

    Examples:
        f64, String, Vec<T>, std::collections::HashMap<K, V>
    """

    path: Path

    def __str__(self) -> str:
        return str(self.path)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_path(self)


@dataclass(frozen=True, slots=True)
class TypeReference(Type):
    """
    A reference type.

    Examples:
        &T, &'a str, &mut [u8]
    """

    and_token: Token
    elem: Type
    lifetime: Optional[Lifetime] = None
    mutability: Optional[Token] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_reference(self)


@dataclass(frozen=True, slots=True)
class TypePtr(Type):
    """A raw pointer type: `*const T` or `*mut T`."""

    star_token: Token
    qualifier: Token
    elem: Type

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_ptr(self)


@dataclass(frozen=True, slots=True)
class TypeTuple(Type):
    """
    A tuple type, including the unit type `()` and a parenthesized type `(T)`.
    """

    paren_token: Delimiter
    elems: Punctuated

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_tuple(self)


@dataclass(frozen=True, slots=True)
class TypeSlice(Type):
    """A slice type: `[T]`."""

    bracket_token: Delimiter
    elem: Type

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_slice(self)


@dataclass(frozen=True, slots=True)
class TypeArray(Type):
    """A fixed size array type: `[T; N]`."""

    bracket_token: Delimiter
    elem: Type
    semi_token: Token
    len: "Expression"

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_array(self)


@dataclass(frozen=True, slots=True)
class TypeNever(Type):
    """The never type: `!`."""

    bang_token: Token

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_type_never(self)


# -----------------------------------------------------------------------------
# Constant Expressions
# -----------------------------------------------------------------------------


class Expression(ASTNode):
    """Base class for the constant expressions used in discriminants and array lengths."""

    @classmethod
    def description(cls) -> Optional[str]:
        return "expression"


@dataclass(frozen=True, slots=True)
class ExprLit(Expression):
    """A literal: `1`, `0xFF`, `'a'`, `"text"`, `true`."""

    token: Token

    @property
    def value(self) -> Any:
        return self.token.value

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_lit(self)


@dataclass(frozen=True, slots=True)
class ExprPath(Expression):
    """A path used as a value, e.g. a constant `MAX` or `Flags::A`."""

    path: Path

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_path(self)


@dataclass(frozen=True, slots=True)
class ExprUnary(Expression):
    """A prefix operation: `-1`, `!0`."""

    op: Token
    expr: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_unary(self)


@dataclass(frozen=True, slots=True)
class ExprBinary(Expression):
    """
    A binary operation.

    ``op`` holds the operator tokens; shifts are two joint tokens (`<` `<`).
    """

    left: Expression
    op: tuple[Token, ...]
    right: Expression

    @property
    def operator(self) -> str:
        return "".join(token.lexeme for token in self.op)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_binary(self)


@dataclass(frozen=True, slots=True)
class ExprParen(Expression):
    """A parenthesized expression."""

    paren_token: Delimiter
    expr: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_paren(self)


@dataclass(frozen=True, slots=True)
class ExprCast(Expression):
    """A cast: `A as isize`."""

    expr: Expression
    as_token: Token
    ty: Type

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_cast(self)


# -----------------------------------------------------------------------------
# Attributes
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Attribute(ASTNode):
    """
    An outer attribute, e.g. `#[serde(rename = "x")]`.

    Only the path is interpreted; the tokens after it are kept verbatim.

    Attributes:
        pound_token: The `#`
        bracket_token: The `[` `]` pair
        path: Attribute name, e.g. `serde` or `doc`
        tokens: Remaining tokens inside the brackets, e.g. `( rename = "x" )`
    """

    pound_token: Token
    bracket_token: Delimiter
    path: Path
    tokens: tuple[Token, ...] = ()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_attribute(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "attribute"


@dataclass(frozen=True, slots=True)
class DocComment(ASTNode):
    """
    A `///` documentation comment attached to the following declaration.
    """

    token: Token

    @property
    def content(self) -> str:
        return str(self.token.value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_doc_comment(self)


OuterAttribute = Union[Attribute, DocComment]


# -----------------------------------------------------------------------------
# Visibility
# -----------------------------------------------------------------------------


class Visibility(ASTNode):
    """Visibility level of an item or field."""

    @classmethod
    def description(cls) -> Optional[str]:
        return "visibility qualifier, e.g. `pub`"


@dataclass(frozen=True, slots=True)
class VisPublic(Visibility):
    """Public, i.e. `pub`."""

    pub_token: Token

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_vis_public(self)


@dataclass(frozen=True, slots=True)
class VisCrate(Visibility):
    """Crate-visible, i.e. `pub(crate)`."""

    pub_token: Token
    paren_token: Delimiter
    crate_token: Token

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_vis_crate(self)


@dataclass(frozen=True, slots=True)
class VisRestricted(Visibility):
    """
    Restricted, e.g. `pub(self)`, `pub(super)` or `pub(in some::module)`.

    ``in_token`` is whatever was parsed: None for `self`/`super`, present for
    `in path`. The printer emits it as captured.
    """

    pub_token: Token
    paren_token: Delimiter
    path: Path
    in_token: Optional[Token] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_vis_restricted(self)


@dataclass(frozen=True, slots=True)
class VisInherited(Visibility):
    """Inherited, i.e. private. Consumes and prints no tokens."""

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_vis_inherited(self)


# -----------------------------------------------------------------------------
# Fields
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Field(ASTNode):
    """
    A field of a struct or enum variant.

    Examples:
        pub x: f64          # named
        pub(crate) String   # unnamed (tuple field)

    Attributes:
        attrs: Attributes tagged on the field
        vis: Visibility of the field
        ident: Name of the field; None for tuple fields
        colon_token: Present exactly when ``ident`` is present
        ty: Type of the field
    """

    ty: Type
    ident: Optional[Ident] = None
    colon_token: Optional[Token] = None
    vis: Visibility = VisInherited()
    attrs: tuple[OuterAttribute, ...] = ()

    @property
    def is_named(self) -> bool:
        return self.ident is not None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_field(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "field"


class Fields(ASTNode):
    """Data stored within an enum variant or struct."""

    fields: Punctuated

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True, slots=True)
class FieldsNamed(Fields):
    """
    Named fields of a struct or struct variant.

    Example:
        Point { x: f64, y: f64 }
    """

    brace_token: Delimiter
    fields: Punctuated

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_fields_named(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "named fields, e.g. `{ x: f64 }`"


@dataclass(frozen=True, slots=True)
class FieldsUnnamed(Fields):
    """
    Unnamed fields of a tuple struct or tuple variant.

    Example:
        Some(T)
    """

    paren_token: Delimiter
    fields: Punctuated

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_fields_unnamed(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "tuple fields, e.g. `(T)`"


@dataclass(frozen=True, slots=True)
class FieldsUnit(Fields):
    """Unit struct or unit variant such as `None`."""

    fields: Punctuated = Punctuated()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_fields_unit(self)


# -----------------------------------------------------------------------------
# Variants and Items
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Variant(ASTNode):
    """
    An enum variant.

    Examples:
        None
        Some(T)
        Point { x: f64, y: f64 }
        Red = 1

    Attributes:
        attrs: Attributes tagged on the variant
        ident: Name of the variant
        fields: Content stored in the variant
        discriminant: Explicit discriminant as the `=` token and expression
    """

    ident: Ident
    fields: Fields = FieldsUnit()
    discriminant: Optional[tuple[Token, Expression]] = None
    attrs: tuple[OuterAttribute, ...] = ()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_variant(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "enum variant"


class Item(ASTNode):
    """Base class for top-level declarations."""

    @classmethod
    def description(cls) -> Optional[str]:
        return "struct or enum declaration"


@dataclass(frozen=True, slots=True)
class ItemStruct(Item):
    """
    A struct declaration.

    Examples:
        pub struct Point { x: f64, y: f64 }
        struct Meters(f64);
        struct Marker;

    ``semi_token`` is present for the tuple and unit forms.
    """

    struct_token: Token
    ident: Ident
    fields: Fields
    semi_token: Optional[Token] = None
    vis: Visibility = VisInherited()
    attrs: tuple[OuterAttribute, ...] = ()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_item_struct(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "struct declaration"


@dataclass(frozen=True, slots=True)
class ItemEnum(Item):
    """
    An enum declaration.

    Example:
        pub enum Shape {
            Circle(f64),
            Rect { w: f64, h: f64 },
            Empty = 0,
        }
    """

    enum_token: Token
    ident: Ident
    brace_token: Delimiter
    variants: Punctuated
    vis: Visibility = VisInherited()
    attrs: tuple[OuterAttribute, ...] = ()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_item_enum(self)

    @classmethod
    def description(cls) -> Optional[str]:
        return "enum declaration"


@dataclass(frozen=True, slots=True)
class DeclFile(ASTNode):
    """A file of struct and enum declarations."""

    items: tuple[Item, ...] = ()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_decl_file(self)
