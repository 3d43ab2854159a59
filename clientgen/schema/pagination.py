"""
Pagination Projector - paging metadata and collection-only schemas

For paging-capable actions (both `p` and `ps` request params) the primary
response tree yields:
- the source of paging metadata, either a nested `paging` object or the
  flattened top-level `p`/`ps`/`total` fields
- a new map with every paging artifact removed, i.e. the payload accumulated
  across all pages
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Optional
import logging

from .fields import Field, MapField, NodeTag

logger = logging.getLogger(__name__)

PAGING_KEY = "paging"
PAGING_ACCESSOR = "Paging"

# role -> flattened top-level JSON key
FLATTENED_PAGING_KEYS: Dict[str, str] = {
    "page_index": "p",
    "page_size": "ps",
    "total": "total",
}

PAGE_INDEX_PARAM = "p"
PAGE_SIZE_PARAM = "ps"


@dataclass(frozen=True)
class PagingSource:
    """Where the paging metadata of a response comes from"""

    accessor: Optional[str] = None  # structured: accessor of the nested paging object
    field: Optional[Field] = None
    synthesized_from: Dict[str, str] = dataclass_field(default_factory=dict)  # role -> accessor

    @property
    def is_structured(self) -> bool:
        return self.accessor is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_structured:
            return {"accessor": self.accessor}
        return {"synthesized_from": dict(sorted(self.synthesized_from.items()))}


@dataclass(frozen=True)
class ProjectionResult:
    """Outcome of projecting one action's primary tree"""

    paging: Optional[PagingSource] = None
    collection: Optional[MapField] = None

    @property
    def supported(self) -> bool:
        return self.paging is not None and self.collection is not None


class PaginationProjector:
    """Derives paging source and collection-only schema from a response tree"""

    def extract_paging_field(self, tree: Field) -> Optional[PagingSource]:
        """
        Find the paging metadata of a response

        Returns:
            PagingSource, or None when the tree cannot be paginated
        """
        if tree.tag != NodeTag.MAP:
            logger.warning(f"'{tree.name}' is a {tree.tag.value}, only map responses can be paginated")
            return None

        nested = tree.get(PAGING_ACCESSOR)
        if nested is not None:
            return PagingSource(accessor=nested.accessor, field=nested.field)

        synthesized: Dict[str, str] = {}
        for role, key in FLATTENED_PAGING_KEYS.items():
            entry = tree.get_key(key)
            if entry is None:
                logger.warning(
                    f"'{tree.name}' has neither a '{PAGING_KEY}' object nor a top-level '{key}', "
                    f"cannot extract paging"
                )
                return None
            synthesized[role] = entry.accessor

        return PagingSource(synthesized_from=synthesized)

    def project_collection_schema(self, tree: Field, name: Optional[str] = None) -> Optional[MapField]:
        """
        Build the collection-only schema (paging artifacts removed)

        The source tree is left untouched.
        """
        if tree.tag != NodeTag.MAP:
            logger.warning(f"'{tree.name}' is a {tree.tag.value}, no collection schema")
            return None

        dropped = [PAGING_KEY] + list(FLATTENED_PAGING_KEYS.values())
        projected = tree.without_keys(dropped, name=name)

        collections = [entry for entry in projected.entries if entry.field.tag == NodeTag.COLLECTION]
        if len(collections) != 1:
            logger.warning(
                f"Collection schema '{projected.name}' has {len(collections)} collection members, expected 1"
            )

        return projected

    def project(self, tree: Field, name: str, paging_capable: bool) -> ProjectionResult:
        """Paging source and collection schema for one action"""
        if not paging_capable:
            return ProjectionResult()

        return ProjectionResult(
            paging=self.extract_paging_field(tree),
            collection=self.project_collection_schema(tree, name),
        )
