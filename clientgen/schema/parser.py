"""
Schema Parser - builds a Field tree from an example document

Walks a decoded JSON example (or an opaque {format, example} envelope) and
applies the action-scoped override view at every object key. Pure and
synchronous: output depends only on the example and the view, never on the
iteration order of the decoded objects.
"""

from typing import Any, Dict, List, Optional, Sequence, Set
import logging
import sys

from .errors import ClientGenError, ShapeConflict
from .fields import CollectionField, Field, MapEntry, MapField, NodeTag, ScalarField, unify_fields
from .naming import to_camel
from .overrides import EMPTY_VIEW, OverrideView
from .scalar import FieldKind, classify_scalar

logger = logging.getLogger(__name__)

# Envelope key used upstream for non-JSON bodies (txt, xml, svg, log, proto).
# A genuine JSON root object with a "format" key takes the same path; nested
# objects are not affected.
OPAQUE_FORMAT_KEY = "format"


class SchemaParser:
    """Recursive-descent builder of Field trees"""

    def __init__(self, view: Optional[OverrideView] = None):
        self.view = view if view is not None else EMPTY_VIEW
        self._visited: Set[str] = set()

    def parse(self, name: str, example: Any) -> Field:
        """
        Parse an example document into a Field tree

        Args:
            name: Display name of the root (e.g. "SearchResponse")
            example: Decoded JSON value

        Returns:
            Root Field

        Raises:
            ShapeConflict: Array elements of incompatible kinds, or nesting
                deeper than the interpreter's recursion limit
            AccessorConflict: Two keys rendering to the same accessor
        """
        if isinstance(example, dict) and OPAQUE_FORMAT_KEY in example:
            logger.debug(f"'{name}' carries a '{OPAQUE_FORMAT_KEY}' key, treating as opaque text")
            return ScalarField(name=name, kind=FieldKind.OPAQUE)

        self._visited = set()
        try:
            root = self._parse_value(name, example, "")
        except RecursionError as e:
            raise ShapeConflict(
                "",
                f"nesting too deep (recursion limit {sys.getrecursionlimit()})",
                endpoint=self.view.endpoint or None,
                action=self.view.action or None,
            ) from e
        except ClientGenError as e:
            raise e.with_context(self.view.endpoint or None, self.view.action or None)

        for path in self.view.paths():
            if path not in self._visited:
                logger.debug(f"Override for '{path}' unused in {self.view.endpoint}/{self.view.action}")
        return root

    def _parse_value(self, name: str, value: Any, path: str) -> Field:
        if isinstance(value, dict):
            return self._parse_object(name, value, path)

        if isinstance(value, list):
            return CollectionField(name=name, element=self.unify_elements(name, value, path))

        return ScalarField(name=name, kind=classify_scalar(value))

    def _parse_object(self, name: str, value: Dict[str, Any], path: str) -> MapField:
        entries: List[MapEntry] = []

        for key in sorted(value):
            child_path = f"{path}.{key}" if path else key
            self._visited.add(child_path)

            if self.view.is_skipped(child_path):
                logger.debug(f"Skipping '{child_path}' ({self.view.endpoint}/{self.view.action})")
                continue

            accessor = self.view.renamed(child_path) or to_camel(key)
            forced = self.view.forced_kind(child_path)
            if forced is not None:
                child: Field = ScalarField(name=accessor, kind=forced)
            else:
                child = self._parse_value(accessor, value[key], child_path)

            entries.append(
                MapEntry(
                    key=key,
                    accessor=accessor,
                    field=child,
                    required=not self.view.is_optional(child_path),
                )
            )

        return MapField(name=name, entries=tuple(entries))

    def unify_elements(self, name: str, elements: Sequence[Any], path: str) -> Field:
        """
        Unify array elements into one element field

        Scans in sequence order. Empty arrays give an UNKNOWN element, scalars
        widen, objects merge into a superset map (keys missing from any
        element become optional), nested arrays unify their own elements.
        Objects mixed with scalars or arrays raise ShapeConflict.
        """
        if not elements:
            return ScalarField(name=name, kind=FieldKind.UNKNOWN)

        self._check_element_kinds(elements, path)

        unified: Optional[Field] = None
        for index, element in enumerate(elements):
            candidate = self._parse_value(name, element, path)
            if unified is None:
                unified = candidate
                continue
            try:
                unified = unify_fields(unified, candidate, path)
            except ShapeConflict as e:
                raise ShapeConflict(e.path, f"{e.detail} (element {index})") from e

        return unified

    @staticmethod
    def _check_element_kinds(elements: Sequence[Any], path: str) -> None:
        first_seen: Dict[str, int] = {}
        for index, element in enumerate(elements):
            if element is None:
                continue
            if isinstance(element, dict):
                kind = "object"
            elif isinstance(element, list):
                kind = "array"
            else:
                kind = "scalar"
            first_seen.setdefault(kind, index)

        if "object" in first_seen and len(first_seen) > 1:
            other = "scalar" if "scalar" in first_seen else "array"
            raise ShapeConflict(
                path,
                f"array mixes object (element {first_seen['object']}) "
                f"with {other} (element {first_seen[other]})",
            )


def parse_example(name: str, example: Any, view: Optional[OverrideView] = None) -> Field:
    """Parse one example with an optional action-scoped override view"""
    return SchemaParser(view).parse(name, example)


def is_paginable(field: Field) -> bool:
    """Only map-shaped responses can carry paging"""
    return field.tag == NodeTag.MAP
