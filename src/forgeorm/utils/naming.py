"""
Table and column naming strategies.
"""

from __future__ import annotations

import re
from typing import Protocol

_WORD_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def camel_to_snake(name: str) -> str:
    """
    ``LineItem`` -> ``line_item``, ``HTTPRequestLog`` -> ``http_request_log``.
    """
    return _WORD_BOUNDARY_RE.sub("_", name).lower()


class NamingStrategy(Protocol):
    def column_name(self, property_name: str) -> str: ...

    def table_name(self, class_name: str) -> str: ...


class DefaultNamingStrategy:
    """Columns keep the property name; tables are the snake_cased class name."""

    def column_name(self, property_name: str) -> str:
        return property_name

    def table_name(self, class_name: str) -> str:
        return camel_to_snake(class_name)


class UnderscoreNamingStrategy(DefaultNamingStrategy):
    def column_name(self, property_name: str) -> str:
        return camel_to_snake(property_name)
