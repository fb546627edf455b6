"""Local $ref resolution for OpenAPI / Swagger documents."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any

from .exceptions import ExternalRefError, CircularRefError

logger = logging.getLogger(__name__)


class SchemaResolver:
    """
    Inlines ``#/...`` references against the root document.

    External and circular references cannot be inlined; they are left in
    place as ``{"$ref": ...}`` nodes and logged, so change detection still
    sees the rest of the operation.
    """

    def __init__(self, document: dict, max_depth: int = 100):
        self.document = document
        self.max_depth = max_depth
        self._resolution_stack: list[str] = []

    def resolve_node(self, node: Any) -> Any:
        """Resolve references inside one subtree of the document."""
        return self._resolve_node(node, depth=0)

    def _resolve_node(self, node: Any, depth: int) -> Any:
        """Recursively resolve a schema node."""
        if depth > self.max_depth:
            return node

        if isinstance(node, dict):
            if isinstance(node.get('$ref'), str):
                try:
                    return self._resolve_ref(node['$ref'], depth)
                except (ExternalRefError, CircularRefError) as e:
                    logger.warning("Leaving $ref unresolved: %s", e)
                    return node
                except KeyError:
                    logger.warning("Cannot resolve $ref %s: target not found", node['$ref'])
                    return node

            return {key: self._resolve_node(value, depth + 1) for key, value in node.items()}

        elif isinstance(node, list):
            return [self._resolve_node(item, depth + 1) for item in node]

        return node

    def _resolve_ref(self, ref: str, depth: int) -> Any:
        """Resolve a $ref reference."""
        if not ref.startswith('#/'):
            raise ExternalRefError(ref)

        if ref in self._resolution_stack:
            raise CircularRefError(ref)

        self._resolution_stack.append(ref)

        try:
            resolved = self.document
            for part in ref[2:].split('/'):
                # JSON pointer escaping
                part = part.replace('~1', '/').replace('~0', '~')
                if isinstance(resolved, dict) and part in resolved:
                    resolved = resolved[part]
                else:
                    raise KeyError(part)

            return self._resolve_node(deepcopy(resolved), depth + 1)

        finally:
            self._resolution_stack.pop()
