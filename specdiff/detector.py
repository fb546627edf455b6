"""Structural change detection between two OpenAPI documents."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathParserError

from .models import AtomicChange, ChangeKind
from .schema import SchemaResolver
from .exceptions import ValidationError
from .utils import is_http_method

logger = logging.getLogger(__name__)

# Relative to an operation object.
REQUEST_BODY_REQUIRED = (
    "requestBody.content.*.schema.required[*]",
    "requestBody.content.*.schema.allOf[*].required[*]",
)
SWAGGER_BODY_REQUIRED = "schema.required[*]"

# Relative to a single response object.
RESPONSE_REQUIRED = (
    "content.*.schema.required[*]",
    "content.*.schema.allOf[*].required[*]",
    "schema.required[*]",
)


@lru_cache(maxsize=64)
def _compile(expression: str):
    """Compile and cache a JSONPath expression."""
    try:
        return jsonpath_parse(expression)
    except JsonPathParserError as e:
        raise ValueError(f"Invalid JSONPath expression '{expression}': {e}")


def find_values(data: Any, expression: str) -> list[Any]:
    """All values matching a JSONPath expression."""
    if not isinstance(data, (dict, list)):
        return []
    return [m.value for m in _compile(expression).find(data)]


def _unique(values) -> list[str]:
    seen = []
    for value in values:
        if isinstance(value, str) and value not in seen:
            seen.append(value)
    return seen


class ChangeDetector:
    """
    Derives the ordered AtomicChange list between two spec versions.

    Paths are visited in the previous document's order, then paths only
    present in the current document. Inside a shared path, methods follow
    the same rule; inside a shared method, request-field changes come
    before response-field changes.
    """

    def detect(self, previous: Any, current: Any) -> list[AtomicChange]:
        """
        Compare the ``paths`` of two documents.

        Args:
            previous: The older OpenAPI/Swagger document
            current: The newer OpenAPI/Swagger document

        Returns:
            Changes in detection order

        Raises:
            ValidationError: If either document is not an object
        """
        for label, document in (("previous", previous), ("current", current)):
            if not isinstance(document, dict):
                raise ValidationError(
                    f"{label} document must be an object",
                    {"type": type(document).__name__}
                )

        self._old = SchemaResolver(previous)
        self._new = SchemaResolver(current)

        old_paths = _paths(previous)
        new_paths = _paths(current)
        changes: list[AtomicChange] = []

        for path, old_item in old_paths.items():
            if path not in new_paths:
                changes.append(AtomicChange(ChangeKind.ENDPOINT_REMOVED.value, path))
                continue
            changes.extend(self._diff_path(path, old_item, new_paths[path]))

        for path in new_paths:
            if path not in old_paths:
                changes.append(AtomicChange(ChangeKind.ENDPOINT_ADDED.value, path))

        logger.info("Detected %d structural changes across %d/%d paths",
                    len(changes), len(old_paths), len(new_paths))
        return changes

    def _diff_path(self, path: str, old_item: dict, new_item: dict) -> list[AtomicChange]:
        changes = []
        old_ops = _operations(old_item)
        new_ops = _operations(new_item)

        for method, old_op in old_ops.items():
            verb = method.upper()
            if method not in new_ops:
                changes.append(AtomicChange(ChangeKind.METHOD_REMOVED.value, path, verb))
                continue
            changes.extend(self._diff_operation(
                path, verb, old_item, old_op, new_item, new_ops[method]
            ))

        for method in new_ops:
            if method not in old_ops:
                changes.append(AtomicChange(ChangeKind.METHOD_ADDED.value, path, method.upper()))

        return changes

    def _diff_operation(
        self,
        path: str,
        verb: str,
        old_item: dict,
        old_op: dict,
        new_item: dict,
        new_op: dict
    ) -> list[AtomicChange]:
        changes = []

        old_request = self._request_fields(self._old, old_item, old_op)
        new_request = self._request_fields(self._new, new_item, new_op)
        for name in new_request:
            if name not in old_request:
                changes.append(AtomicChange(
                    ChangeKind.REQUIRED_REQUEST_FIELD_ADDED.value, path, verb, name))
        for name in old_request:
            if name not in new_request:
                changes.append(AtomicChange(
                    ChangeKind.REQUIRED_REQUEST_FIELD_REMOVED.value, path, verb, name))

        old_response = self._response_fields(self._old, old_op)
        new_response = self._response_fields(self._new, new_op)
        for name in old_response:
            if name not in new_response:
                changes.append(AtomicChange(
                    ChangeKind.REQUIRED_RESPONSE_FIELD_REMOVED.value, path, verb, name))
        for name in new_response:
            if name not in old_response:
                changes.append(AtomicChange(
                    ChangeKind.REQUIRED_RESPONSE_FIELD_ADDED.value, path, verb, name))

        return changes

    def _request_fields(self, resolver: SchemaResolver, path_item: dict, operation: dict) -> list[str]:
        """Required body properties plus required parameters of an operation."""
        operation = resolver.resolve_node(operation)
        fields = []
        for expression in REQUEST_BODY_REQUIRED:
            fields.extend(find_values(operation, expression))

        parameters = list(resolver.resolve_node(path_item.get('parameters') or []))
        parameters.extend(operation.get('parameters') or [])
        for parameter in parameters:
            if not isinstance(parameter, dict):
                continue
            if parameter.get('in') == 'body':
                fields.extend(find_values(parameter, SWAGGER_BODY_REQUIRED))
            elif parameter.get('required') is True and parameter.get('name'):
                fields.append(parameter['name'])

        return _unique(fields)

    def _response_fields(self, resolver: SchemaResolver, operation: dict) -> list[str]:
        """Required properties of all success (2xx) responses."""
        responses = operation.get('responses')
        if not isinstance(responses, dict):
            return []

        fields = []
        for status, response in responses.items():
            if not str(status).startswith('2'):
                continue
            response = resolver.resolve_node(response)
            for expression in RESPONSE_REQUIRED:
                fields.extend(find_values(response, expression))
        return _unique(fields)


def _paths(document: dict) -> dict:
    paths = document.get('paths')
    if not isinstance(paths, dict):
        return {}
    return {str(k): (v if isinstance(v, dict) else {}) for k, v in paths.items()}


def _operations(path_item: dict) -> dict:
    return {
        key.lower(): value
        for key, value in path_item.items()
        if is_http_method(key) and isinstance(value, dict)
    }


def detect_changes(previous: Any, current: Any) -> list[AtomicChange]:
    """Convenience function to detect changes between two documents."""
    return ChangeDetector().detect(previous, current)
