"""Naming helpers for accessors and rendered identifiers."""

import keyword
import re

_SEPARATOR = re.compile(r"[^0-9a-zA-Z]+")
_LETTER_AFTER_DIGIT = re.compile(r"(?<=[0-9])([a-z])")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_camel(key: str) -> str:
    """
    Convert a JSON key into a CamelCase accessor

    Examples:
        "total"           -> "Total"
        "page_size"       -> "PageSize"
        "qualityGate"     -> "QualityGate"
        "numbers2and55"   -> "Numbers2And55"
        "10"              -> "_10"
    """
    parts = [part for part in _SEPARATOR.split(str(key)) if part]
    camel = "".join(part[:1].upper() + part[1:] for part in parts)
    camel = _LETTER_AFTER_DIGIT.sub(lambda m: m.group(1).upper(), camel)
    if not camel:
        return "_"
    if camel[0].isdigit():
        return f"_{camel}"
    return camel


def to_snake(accessor: str) -> str:
    """Convert an accessor (CamelCase) into a Python attribute name"""
    snake = _CAMEL_BOUNDARY.sub("_", accessor.lstrip("_"))
    snake = _SEPARATOR.sub("_", snake).strip("_").lower()
    if not snake or snake[0].isdigit():
        snake = f"_{snake}"
    if keyword.iskeyword(snake):
        snake = f"{snake}_"
    return snake
