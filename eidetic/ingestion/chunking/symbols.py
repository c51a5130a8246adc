# eidetic/ingestion/chunking/symbols.py
"""
Declaration recognition over a parsed syntax tree.

Works on any node object exposing:
    type, start_byte, end_byte, start_point, end_point, children
and optionally child_by_field_name(name). tree-sitter nodes satisfy this;
tests use small stand-ins.

Byte offsets index into the UTF-8 encoded source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

MAX_SIGNATURE_CHARS = 200
ELLIPSIS = "…"

# Node type -> symbol kind
KIND_MAP = {
    # JavaScript / TypeScript
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "method_definition": "method",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
    # Python
    "function_definition": "function",
    "async_function_definition": "function",
    "class_definition": "class",
    # Java / C# / Go
    "method_declaration": "method",
    "constructor_declaration": "constructor",
    "struct_declaration": "struct",
    # Rust
    "function_item": "function",
    "impl_item": "impl",
    "struct_item": "struct",
    "enum_item": "enum",
    "trait_item": "trait",
    # C / C++
    "class_specifier": "class",
    "struct_specifier": "struct",
}

# Declarations whose contained functions are reported as methods
CONTAINER_TYPES = frozenset(
    {
        "class_declaration",
        "abstract_class_declaration",
        "class_definition",
        "class_specifier",
        "interface_declaration",
        "struct_declaration",
        "struct_specifier",
        "trait_item",
        "impl_item",
    }
)

# Wrapper node type -> field holding the real declaration
WRAPPER_FIELDS = {
    "export_statement": "declaration",
    "decorated_definition": "definition",
}

# `const foo = () => {}` style declarations
VARIABLE_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)

GO_TYPE_DECLARATION = "type_declaration"
GO_TYPE_KINDS = {"struct_type": "struct", "interface_type": "interface"}

IDENTIFIER_TYPES = frozenset(
    {
        "identifier",
        "type_identifier",
        "property_identifier",
        "field_identifier",
        "name",
        "qualified_identifier",
        "destructor_name",
        "operator_name",
    }
)


@dataclass(frozen=True)
class SymbolInfo:
    name: str
    kind: str
    signature: str


def node_text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def child_by_field(node: Any, field_name: str) -> Optional[Any]:
    getter = getattr(node, "child_by_field_name", None)
    if getter is None:
        return None
    return getter(field_name)


def is_declaration(node_type: str) -> bool:
    return (
        node_type in KIND_MAP
        or node_type in VARIABLE_DECLARATION_TYPES
        or node_type == GO_TYPE_DECLARATION
    )


def unwrap(node: Any) -> Optional[Any]:
    """
    Follow export/decorator wrappers down to the declaration they wrap.

    Returns None when a wrapper holds no declaration (e.g. `export { a, b }`).
    """
    while node is not None and node.type in WRAPPER_FIELDS:
        inner = child_by_field(node, WRAPPER_FIELDS[node.type])
        if inner is None:
            inner = next((c for c in node.children if is_declaration(c.type)), None)
        node = inner
    return node


def _first_identifier(node: Any, source: bytes) -> Optional[str]:
    for child in node.children:
        if child.type in IDENTIFIER_TYPES:
            return node_text(child, source)
    return None


def _declarator_name(node: Any, source: bytes) -> Optional[str]:
    # C/C++ nest the name inside declarator chains: pointer -> function -> identifier
    current = child_by_field(node, "declarator")
    while current is not None:
        if current.type in IDENTIFIER_TYPES:
            return node_text(current, source)
        nxt = child_by_field(current, "declarator")
        if nxt is None:
            return _first_identifier(current, source)
        current = nxt
    return None


def resolve_name(node: Any, source: bytes) -> Optional[str]:
    """Best-effort identifier of a declaration node, or None."""
    if node.type == "impl_item":
        impl_type = child_by_field(node, "type")
        if impl_type is not None:
            return node_text(impl_type, source)

    named = child_by_field(node, "name")
    if named is not None:
        return node_text(named, source)

    declared = _declarator_name(node, source)
    if declared:
        return declared

    return _first_identifier(node, source)


def extract_signature(text: str, language: str = "") -> str:
    """
    First line of a declaration, cut at the body-opening delimiter.

    Examples:
        >>> extract_signature("function foo(a, b) {\\n  return a;\\n}")
        'function foo(a, b)'
        >>> extract_signature("def foo(a):\\n    pass", "python")
        'def foo(a)'
    """
    first_line = text.split("\n", 1)[0]
    sig = first_line.split("{", 1)[0].rstrip()
    if language == "python" and sig.endswith(":"):
        sig = sig[:-1].rstrip()
    if not sig:
        sig = first_line.strip()
    if len(sig) > MAX_SIGNATURE_CHARS:
        sig = sig[:MAX_SIGNATURE_CHARS] + ELLIPSIS
    return sig


def _variable_function(node: Any, source: bytes) -> Optional[str]:
    declarators = [c for c in node.children if c.type == "variable_declarator"]
    if len(declarators) != 1:
        return None
    value = child_by_field(declarators[0], "value")
    if value is None:
        value = next((c for c in declarators[0].children if c.type in FUNCTION_VALUE_TYPES), None)
    if value is None or value.type not in FUNCTION_VALUE_TYPES:
        return None
    return resolve_name(declarators[0], source)


def _go_type(node: Any, source: bytes) -> Optional[Tuple[str, str]]:
    spec = next((c for c in node.children if c.type == "type_spec"), None)
    if spec is None:
        return None
    name = resolve_name(spec, source)
    if not name:
        return None
    type_node = child_by_field(spec, "type")
    kind = GO_TYPE_KINDS.get(type_node.type, "type") if type_node is not None else "type"
    return name, kind


def extract_symbol_info(
    node: Any,
    source: bytes,
    language: str = "",
    parent_name: Optional[str] = None,
) -> Optional[SymbolInfo]:
    """
    Name, kind and signature of a declaration node.

    Wrappers are unwrapped first. Functions inside a container are reported
    as methods when parent_name is given. Returns None for nodes that are
    not declarations or whose identifier cannot be resolved.
    """
    node = unwrap(node)
    if node is None:
        return None

    if node.type in VARIABLE_DECLARATION_TYPES:
        name = _variable_function(node, source)
        kind = "function"
    elif node.type == GO_TYPE_DECLARATION:
        resolved = _go_type(node, source)
        if resolved is None:
            return None
        name, kind = resolved
    elif node.type in KIND_MAP:
        name = resolve_name(node, source)
        kind = KIND_MAP[node.type]
    else:
        return None

    if not name:
        return None

    if parent_name and kind == "function":
        kind = "method"

    return SymbolInfo(
        name=name,
        kind=kind,
        signature=extract_signature(node_text(node, source), language),
    )


def is_container_type(node_type: str) -> bool:
    return node_type in CONTAINER_TYPES


__all__ = [
    "KIND_MAP",
    "CONTAINER_TYPES",
    "WRAPPER_FIELDS",
    "MAX_SIGNATURE_CHARS",
    "SymbolInfo",
    "extract_symbol_info",
    "extract_signature",
    "resolve_name",
    "unwrap",
    "is_container_type",
    "is_declaration",
    "node_text",
]
