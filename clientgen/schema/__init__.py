"""
Schema Inference Module

Turns example response documents into deterministic Field trees:
- Scalar classification
- Recursive object/array parsing with per-action overrides
- Array element unification
- Paging projection for paginated actions
"""

from .errors import (
    AccessorConflict,
    ClientGenError,
    FetchError,
    OverrideConfigError,
    ShapeConflict,
    UnsupportedFormat,
)
from .fields import CollectionField, EmptyField, Field, MapEntry, MapField, NodeTag, ScalarField
from .overrides import OverrideAction, OverrideRegistry, OverrideRule, OverrideView, load_registry
from .pagination import PaginationProjector, PagingSource, ProjectionResult
from .parser import SchemaParser, parse_example
from .scalar import FieldKind, classify_scalar

__all__ = [
    "AccessorConflict",
    "ClientGenError",
    "CollectionField",
    "EmptyField",
    "FetchError",
    "Field",
    "FieldKind",
    "MapEntry",
    "MapField",
    "NodeTag",
    "OverrideAction",
    "OverrideConfigError",
    "OverrideRegistry",
    "OverrideRule",
    "OverrideView",
    "PaginationProjector",
    "PagingSource",
    "ProjectionResult",
    "ScalarField",
    "SchemaParser",
    "ShapeConflict",
    "UnsupportedFormat",
    "classify_scalar",
    "load_registry",
    "parse_example",
]
