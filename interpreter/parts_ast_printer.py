#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import is_dataclass, fields
from typing import List, Any

from parts_ast import Span, Node, Stmt
from parts_lexer import Token


def _format_span(span: Span | None) -> str:
    if span is None:
        return ""
    return f" @{span.start_line}:{span.start_column}-{span.end_line}:{span.end_column}"


def _format_scalar(value: Any) -> str:
    if isinstance(value, Token):
        return repr(value)
    if isinstance(value, list):
        return "[" + ", ".join(_format_scalar(v) for v in value) + "]"
    return repr(value)


def format_node(node: Any, indent: int = 0) -> List[str]:
    """
    Generic, reflection-based AST pretty-printer.

    - Shows the node class name.
    - Prints tokens and literal values inline (excluding `span`).
    - Recursively prints child Node / list-of-Node fields on new indented lines.
    - Appends a concise span annotation like `@1:1-7:1` when available.
    """
    ind = "  " * indent

    if isinstance(node, list):
        lines: List[str] = []
        for elem in node:
            lines.extend(format_node(elem, indent))
        return lines

    if isinstance(node, Node) and is_dataclass(node):
        data_fields = [f for f in fields(node) if f.name != "span"]
        simple_parts = []
        child_fields = []

        for f in data_fields:
            value = getattr(node, f.name)
            if isinstance(value, Node) or (isinstance(value, list) and any(isinstance(v, Node) for v in value)):
                child_fields.append((f.name, value))
            else:
                simple_parts.append((f.name, value))

        # Header: ClassName(field1=..., field2=...) @line:col-line:col
        header = node.__class__.__name__
        if simple_parts:
            inner = ", ".join(f"{name}={_format_scalar(value)}" for name, value in simple_parts)
            header = f"{header}({inner})"
        header += _format_span(node.span)

        lines = [ind + header]

        for name, value in child_fields:
            lines.append(ind + "  " + f"{name}:")
            lines.extend(format_node(value, indent + 2))

        return lines

    return [ind + repr(node)]


def format_program(statements: List[Stmt]) -> str:
    """
    Convenience: pretty-print a list of top-level statements as a string.
    """
    return "\n".join(format_node(statements, indent=0))
