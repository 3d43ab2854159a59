"""Scalar Classifier - maps decoded JSON scalars to leaf kinds."""

from enum import Enum
from typing import Any


class FieldKind(str, Enum):
    """Semantic kind of a leaf field"""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OPAQUE = "opaque"  # raw text payloads and widened mixed scalars
    UNKNOWN = "unknown"  # null / no example

    @classmethod
    def from_token(cls, token: str) -> "FieldKind":
        """Resolve an override type token (e.g. "string", "number")"""
        normalized = str(token).strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        raise ValueError(f"Unknown field type token: {token!r}")


def classify_scalar(value: Any) -> FieldKind:
    """
    Classify a single JSON scalar

    Objects and arrays belong to the schema parser and are rejected here.
    """
    if value is None:
        return FieldKind.UNKNOWN
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return FieldKind.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER
    if isinstance(value, str):
        return FieldKind.STRING
    raise TypeError(f"Not a JSON scalar: {type(value).__name__}")


def widen(first: FieldKind, second: FieldKind) -> FieldKind:
    """Least specific kind covering both; UNKNOWN carries no shape"""
    if first == second:
        return first
    if first == FieldKind.UNKNOWN:
        return second
    if second == FieldKind.UNKNOWN:
        return first
    return FieldKind.OPAQUE
