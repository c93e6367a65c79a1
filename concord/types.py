"""
Shared type definitions for concord.

Usage:
    from concord.types import Trail

    def visit(node_id: str, trail: Trail) -> None:
        ...
"""

from __future__ import annotations

from typing import TypeAlias

Trail: TypeAlias = frozenset[str]
"""Node ids visited on the current recursive path."""

# Role questions are bound to a pseudo node rather than a diagram node
ROLE_QUESTION_NODE_ID = "meta_role"
ROLE_QUESTION_NODE_TYPE = "Meta"
