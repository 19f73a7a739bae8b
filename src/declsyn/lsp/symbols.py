"""
Document outline for the declsyn LSP.

Builds LSP ``DocumentSymbol`` trees from a parsed declaration file: structs
and enums at the top level, with their fields and variants as children.
"""

from typing import Optional

from lsprotocol import types

from declsyn.compiler.ast_nodes import (
    ASTNode,
    DeclFile,
    Field,
    ItemEnum,
    ItemStruct,
    Variant,
    VisInherited,
)
from declsyn.compiler.printer import emit, print_node
from declsyn.compiler.tokens import Token


def _position(token: Token, end: bool = False) -> types.Position:
    location = token.location
    if location is None:
        return types.Position(line=0, character=0)
    character = location.column - 1
    if end:
        character += len(token.lexeme)
    return types.Position(line=location.line - 1, character=character)


def node_range(node: ASTNode) -> Optional[types.Range]:
    """The source range covered by ``node``'s tokens."""
    tokens = [token for token in emit(node) if token.location is not None]
    if not tokens:
        return None
    return types.Range(start=_position(tokens[0]), end=_position(tokens[-1], end=True))


def _token_range(token: Token) -> types.Range:
    return types.Range(start=_position(token), end=_position(token, end=True))


def _symbol(
    node: ASTNode,
    name: str,
    name_token: Token,
    kind: types.SymbolKind,
    detail: Optional[str] = None,
    children: Optional[list[types.DocumentSymbol]] = None,
) -> types.DocumentSymbol:
    selection = _token_range(name_token)
    return types.DocumentSymbol(
        name=name,
        kind=kind,
        range=node_range(node) or selection,
        selection_range=selection,
        detail=detail,
        children=children or None,
    )


def field_symbol(field: Field, index: int) -> types.DocumentSymbol:
    """Symbol for a field; tuple fields are named by position."""
    detail = print_node(field.ty)
    if not isinstance(field.vis, VisInherited):
        detail = f"{print_node(field.vis)} {detail}"

    if field.ident is not None:
        return _symbol(field, field.ident.name, field.ident.token, types.SymbolKind.Field, detail)

    first = next((t for t in emit(field) if t.location is not None), None)
    if first is None:
        first = emit(field.ty)[0]
    return _symbol(field, str(index), first, types.SymbolKind.Field, detail)


def variant_symbol(variant: Variant) -> types.DocumentSymbol:
    detail = None
    if variant.discriminant is not None:
        detail = f"= {print_node(variant.discriminant[1])}"
    children = [field_symbol(field, index) for index, field in enumerate(variant.fields)]
    return _symbol(
        variant,
        variant.ident.name,
        variant.ident.token,
        types.SymbolKind.EnumMember,
        detail,
        children,
    )


def item_symbol(item: ASTNode) -> Optional[types.DocumentSymbol]:
    if isinstance(item, ItemStruct):
        children = [field_symbol(field, index) for index, field in enumerate(item.fields)]
        return _symbol(item, item.ident.name, item.ident.token, types.SymbolKind.Struct,
                       children=children)
    if isinstance(item, ItemEnum):
        children = [variant_symbol(variant) for variant in item.variants]
        return _symbol(item, item.ident.name, item.ident.token, types.SymbolKind.Enum,
                       children=children)
    return None


def document_symbols(tree: DeclFile) -> list[types.DocumentSymbol]:
    """Outline of every declaration in ``tree``."""
    symbols = []
    for item in tree.items:
        symbol = item_symbol(item)
        if symbol is not None:
            symbols.append(symbol)
    return symbols
