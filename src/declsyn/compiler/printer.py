"""
Token printer for declsyn syntax trees.

``emit`` walks a tree and produces the token sequence it was parsed from:
attributes first, then structural tokens in parse order. ``render_tokens``
joins tokens into text that lexes back into the same sequence.

Printing never fails. Tokens missing from programmatically built trees (a
field's `:`, a tuple struct's `;`) are filled in with their canonical
spelling.
"""

from typing import Callable, Optional

from declsyn.compiler.ast_nodes import (
    AngleBracketedArgs,
    ASTNode,
    ASTVisitor,
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
    Lifetime,
    Path,
    PathSegment,
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
from declsyn.compiler.tokens import Token, TokenType


class TokenPrinter(ASTVisitor):
    """Collects the tokens of a syntax tree in source order."""

    def __init__(self) -> None:
        self.tokens: list[Token] = []

    def emit(self, node: ASTNode) -> list[Token]:
        self.tokens = []
        self.visit(node)
        return self.tokens

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _token(self, token: Optional[Token], default: Optional[TokenType] = None) -> None:
        if token is not None:
            self.tokens.append(token)
        elif default is not None:
            self.tokens.append(Token.synthetic(default))

    def _group(self, delimiter: Delimiter, body: Callable[[], None]) -> None:
        self.tokens.append(delimiter.open)
        body()
        self.tokens.append(delimiter.close)

    def _punctuated(self, items: Punctuated) -> None:
        for pair in items.pairs:
            self.visit(pair.value)
            self._token(pair.punct)

    def _attrs(self, attrs) -> None:
        for attr in attrs:
            self.visit(attr)

    # -------------------------------------------------------------------------
    # Identifiers and paths
    # -------------------------------------------------------------------------

    def visit_ident(self, node: Ident) -> None:
        self.tokens.append(node.token)

    def visit_lifetime(self, node: Lifetime) -> None:
        self.tokens.append(node.token)

    def visit_angle_bracketed_args(self, node: AngleBracketedArgs) -> None:
        self.tokens.append(node.lt_token)
        self._punctuated(node.args)
        self.tokens.append(node.gt_token)

    def visit_path_segment(self, node: PathSegment) -> None:
        self.visit(node.ident)
        if node.arguments is not None:
            self.visit(node.arguments)

    def visit_path(self, node: Path) -> None:
        self._token(node.leading_colon)
        self._punctuated(node.segments)

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def visit_type_path(self, node: TypePath) -> None:
        self.visit(node.path)

    def visit_type_reference(self, node: TypeReference) -> None:
        self.tokens.append(node.and_token)
        if node.lifetime is not None:
            self.visit(node.lifetime)
        self._token(node.mutability)
        self.visit(node.elem)

    def visit_type_ptr(self, node: TypePtr) -> None:
        self.tokens.append(node.star_token)
        self.tokens.append(node.qualifier)
        self.visit(node.elem)

    def visit_type_tuple(self, node: TypeTuple) -> None:
        self._group(node.paren_token, lambda: self._punctuated(node.elems))

    def visit_type_slice(self, node: TypeSlice) -> None:
        self._group(node.bracket_token, lambda: self.visit(node.elem))

    def visit_type_array(self, node: TypeArray) -> None:
        def body() -> None:
            self.visit(node.elem)
            self.tokens.append(node.semi_token)
            self.visit(node.len)

        self._group(node.bracket_token, body)

    def visit_type_never(self, node: TypeNever) -> None:
        self.tokens.append(node.bang_token)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def visit_expr_lit(self, node: ExprLit) -> None:
        self.tokens.append(node.token)

    def visit_expr_path(self, node: ExprPath) -> None:
        self.visit(node.path)

    def visit_expr_unary(self, node: ExprUnary) -> None:
        self.tokens.append(node.op)
        self.visit(node.expr)

    def visit_expr_binary(self, node: ExprBinary) -> None:
        self.visit(node.left)
        # Multi-token operators (`<<`, `>>`) must stay adjacent
        for index, op in enumerate(node.op):
            if index < len(node.op) - 1 and not op.joint:
                op = Token(op.type, op.value, op.location, op.text, joint=True)
            self.tokens.append(op)
        self.visit(node.right)

    def visit_expr_paren(self, node: ExprParen) -> None:
        self._group(node.paren_token, lambda: self.visit(node.expr))

    def visit_expr_cast(self, node: ExprCast) -> None:
        self.visit(node.expr)
        self.tokens.append(node.as_token)
        self.visit(node.ty)

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def visit_attribute(self, node: Attribute) -> None:
        def body() -> None:
            self.visit(node.path)
            self.tokens.extend(node.tokens)

        self.tokens.append(node.pound_token)
        self._group(node.bracket_token, body)

    def visit_doc_comment(self, node: DocComment) -> None:
        self.tokens.append(node.token)

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------

    def visit_vis_public(self, node: VisPublic) -> None:
        self.tokens.append(node.pub_token)

    def visit_vis_crate(self, node: VisCrate) -> None:
        self.tokens.append(node.pub_token)
        self._group(node.paren_token, lambda: self.tokens.append(node.crate_token))

    def visit_vis_restricted(self, node: VisRestricted) -> None:
        def body() -> None:
            # `in` is printed exactly when it was captured
            self._token(node.in_token)
            self.visit(node.path)

        self.tokens.append(node.pub_token)
        self._group(node.paren_token, body)

    def visit_vis_inherited(self, node: VisInherited) -> None:
        pass

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def visit_field(self, node: Field) -> None:
        self._attrs(node.attrs)
        self.visit(node.vis)
        if node.ident is not None:
            self.visit(node.ident)
            self._token(node.colon_token, TokenType.COLON)
        self.visit(node.ty)

    def visit_fields_named(self, node: FieldsNamed) -> None:
        self._group(node.brace_token, lambda: self._punctuated(node.fields))

    def visit_fields_unnamed(self, node: FieldsUnnamed) -> None:
        self._group(node.paren_token, lambda: self._punctuated(node.fields))

    def visit_fields_unit(self, node: FieldsUnit) -> None:
        pass

    def visit_variant(self, node: Variant) -> None:
        self._attrs(node.attrs)
        self.visit(node.ident)
        self.visit(node.fields)
        if node.discriminant is not None:
            eq_token, value = node.discriminant
            self.tokens.append(eq_token)
            self.visit(value)

    def visit_item_struct(self, node: ItemStruct) -> None:
        self._attrs(node.attrs)
        self.visit(node.vis)
        self.tokens.append(node.struct_token)
        self.visit(node.ident)
        self.visit(node.fields)
        if isinstance(node.fields, FieldsNamed):
            self._token(node.semi_token)
        else:
            self._token(node.semi_token, TokenType.SEMICOLON)

    def visit_item_enum(self, node: ItemEnum) -> None:
        self._attrs(node.attrs)
        self.visit(node.vis)
        self.tokens.append(node.enum_token)
        self.visit(node.ident)
        self._group(node.brace_token, lambda: self._punctuated(node.variants))

    def visit_decl_file(self, node: DeclFile) -> None:
        for item in node.items:
            self.visit(item)


def emit(node: ASTNode) -> list[Token]:
    """The tokens of ``node`` in source order."""
    return TokenPrinter().emit(node)


def render_tokens(tokens: list[Token]) -> str:
    """
    Join tokens into source text.

    Tokens are separated by a single space, except after a token marked
    ``joint``; a doc comment always ends its line.
    """
    parts: list[str] = []
    for index, token in enumerate(tokens):
        parts.append(token.lexeme)
        if token.type == TokenType.DOC_COMMENT:
            parts.append("\n")
        elif index < len(tokens) - 1 and not token.joint:
            parts.append(" ")
    return "".join(parts).rstrip("\n")


def print_node(node: ASTNode) -> str:
    """Render ``node`` back to source text."""
    return render_tokens(emit(node))
