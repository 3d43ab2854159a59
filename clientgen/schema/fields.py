"""
Field Model - the normalized, typed shape of a response

Closed set of variants, each tagged with a NodeTag:
- MapField: children keyed by their JSON key, always sorted by key
- CollectionField: one unified element field for a JSON array
- ScalarField: a leaf with a FieldKind
- EmptyField: no response schema at all

Fields are frozen; transformations (projection, unification) build new trees.
Consumers dispatch on `field.tag`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from .errors import AccessorConflict, ShapeConflict
from .scalar import FieldKind, widen

logger = logging.getLogger(__name__)


class NodeTag(str, Enum):
    """Variant tag of a Field"""
    MAP = "map"
    COLLECTION = "collection"
    SCALAR = "scalar"
    EMPTY = "empty"


class Field(ABC):
    """Base of the Field variants"""

    tag: NodeTag
    name: str

    def children(self) -> List[Tuple[str, "Field", bool]]:
        return []

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready, deterministic description"""


@dataclass(frozen=True)
class ScalarField(Field):
    """Leaf field"""

    name: str
    kind: FieldKind = FieldKind.UNKNOWN
    tag: NodeTag = dataclass_field(default=NodeTag.SCALAR, init=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag.value, "name": self.name, "kind": self.kind.value}


@dataclass(frozen=True)
class EmptyField(Field):
    """Sentinel for actions without a response example"""

    name: str = ""
    tag: NodeTag = dataclass_field(default=NodeTag.EMPTY, init=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag.value}


@dataclass(frozen=True)
class CollectionField(Field):
    """Array of one unified element type"""

    name: str
    element: Field
    tag: NodeTag = dataclass_field(default=NodeTag.COLLECTION, init=False, repr=False)

    def children(self) -> List[Tuple[str, Field, bool]]:
        return [(self.name, self.element, True)]

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag.value, "name": self.name, "element": self.element.to_dict()}


@dataclass(frozen=True)
class MapEntry:
    """One child of a MapField"""

    key: str  # original JSON key, used for sorting and override matching
    accessor: str  # rendered accessor name
    field: Field
    required: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "accessor": self.accessor,
            "required": self.required,
            "field": self.field.to_dict(),
        }


@dataclass(frozen=True)
class MapField(Field):
    """Object with name-unique children in sorted-by-key order"""

    name: str
    entries: Tuple[MapEntry, ...] = ()
    tag: NodeTag = dataclass_field(default=NodeTag.MAP, init=False, repr=False)

    def __post_init__(self):
        ordered = tuple(sorted(self.entries, key=lambda entry: entry.key))
        keys: Dict[str, MapEntry] = {}
        accessors: Dict[str, List[str]] = {}
        for entry in ordered:
            if entry.key in keys:
                raise ValueError(f"Duplicate key in map '{self.name}': {entry.key}")
            keys[entry.key] = entry
            accessors.setdefault(entry.accessor, []).append(entry.key)

        for accessor, owners in accessors.items():
            if len(owners) > 1:
                raise AccessorConflict(accessor, owners)

        object.__setattr__(self, "entries", ordered)

    def accessors(self) -> List[str]:
        """Accessor names in output order"""
        return [entry.accessor for entry in self.entries]

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]

    def children(self) -> List[Tuple[str, Field, bool]]:
        """(accessor, child, required) triples for the emitter"""
        return [(entry.accessor, entry.field, entry.required) for entry in self.entries]

    def get(self, accessor: str) -> Optional[MapEntry]:
        for entry in self.entries:
            if entry.accessor == accessor:
                return entry
        return None

    def get_key(self, key: str) -> Optional[MapEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def without_keys(self, keys: Iterable[str], name: Optional[str] = None) -> "MapField":
        """New map without the given JSON keys"""
        dropped = set(keys)
        return MapField(
            name=name if name is not None else self.name,
            entries=tuple(entry for entry in self.entries if entry.key not in dropped),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag.value,
            "name": self.name,
            "entries": [entry.to_dict() for entry in self.entries],
        }


def is_null(field: Field) -> bool:
    """True for a scalar built from null (carries no shape)"""
    return field.tag == NodeTag.SCALAR and field.kind == FieldKind.UNKNOWN


def unify_fields(first: Field, second: Field, path: str = "") -> Field:
    """
    Merge two shapes of the same value into their superset

    Raises ShapeConflict when an object meets a non-object value.
    """
    if is_null(first):
        return second
    if is_null(second):
        return first

    if first.tag == NodeTag.MAP and second.tag == NodeTag.MAP:
        return _unify_maps(first, second, path)

    if first.tag == NodeTag.MAP or second.tag == NodeTag.MAP:
        other = second if first.tag == NodeTag.MAP else first
        raise ShapeConflict(path, f"object mixed with {other.tag.value}")

    if first.tag == NodeTag.COLLECTION and second.tag == NodeTag.COLLECTION:
        element = unify_fields(first.element, second.element, path)
        return CollectionField(name=first.name, element=element)

    if first.tag == NodeTag.SCALAR and second.tag == NodeTag.SCALAR:
        return ScalarField(name=first.name, kind=widen(first.kind, second.kind))

    # collection vs scalar: no object involved, degrade
    logger.debug(f"Degrading '{path}' to opaque: {first.tag.value} vs {second.tag.value}")
    return ScalarField(name=first.name, kind=FieldKind.OPAQUE)


def _unify_maps(first: MapField, second: MapField, path: str) -> MapField:
    merged: List[MapEntry] = []
    second_by_key = {entry.key: entry for entry in second.entries}

    for entry in first.entries:
        other = second_by_key.pop(entry.key, None)
        if other is None:
            merged.append(MapEntry(entry.key, entry.accessor, entry.field, required=False))
            continue

        child_path = f"{path}.{entry.key}" if path else entry.key
        merged.append(
            MapEntry(
                key=entry.key,
                accessor=entry.accessor,
                field=unify_fields(entry.field, other.field, child_path),
                required=entry.required and other.required,
            )
        )

    for entry in second_by_key.values():
        merged.append(MapEntry(entry.key, entry.accessor, entry.field, required=False))

    return MapField(name=first.name, entries=tuple(merged))
