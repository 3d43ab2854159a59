"""
Override Registry - curated per-(endpoint, action, path) exceptions

Rules are loaded once at startup and never change afterwards. Worker threads
share the registry without locking; each one only reads an action-scoped view.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import json
import logging

from .errors import OverrideConfigError
from .scalar import FieldKind

logger = logging.getLogger(__name__)


class OverrideAction(str, Enum):
    """What an override does to the field it matches"""
    FORCE_TYPE = "force-type"
    RENAME = "rename"
    SKIP = "skip"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class OverrideRule:
    """Single override, addressed by (endpoint, action, dotted field path)"""

    endpoint: str
    action: str
    path: str  # dotted JSON keys from the response root; arrays add no segment
    kind: OverrideAction
    value: Optional[str] = None  # type token for FORCE_TYPE, new name for RENAME

    def __post_init__(self):
        if not self.endpoint or not self.action or not self.path:
            raise OverrideConfigError(f"Override rule needs endpoint, action and path: {self}")
        if self.kind == OverrideAction.FORCE_TYPE:
            try:
                FieldKind.from_token(self.value or "")
            except ValueError as e:
                raise OverrideConfigError(f"Invalid force-type rule {self.path}: {e}") from e
        if self.kind == OverrideAction.RENAME and not self.value:
            raise OverrideConfigError(f"Rename rule for {self.path} has no new name")

    @property
    def forced_kind(self) -> Optional[FieldKind]:
        if self.kind != OverrideAction.FORCE_TYPE:
            return None
        return FieldKind.from_token(self.value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OverrideRule":
        try:
            kind = OverrideAction(data["kind"])
        except KeyError as e:
            raise OverrideConfigError(f"Override rule missing field {e}: {data}") from e
        except ValueError as e:
            raise OverrideConfigError(f"Unknown override kind in {data}") from e

        return cls(
            endpoint=data.get("endpoint", ""),
            action=data.get("action", ""),
            path=data.get("path", ""),
            kind=kind,
            value=data.get("value"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "action": self.action,
            "path": self.path,
            "kind": self.kind.value,
            "value": self.value,
        }


# Built-in corrections for examples that are known to lie about their shape
DEFAULT_RULES: Tuple[OverrideRule, ...] = (
    OverrideRule("issues", "search", "issues.flows.locations.msgFormattings", OverrideAction.OPTIONAL),
    OverrideRule("measures", "component", "component.measures.value", OverrideAction.FORCE_TYPE, "string"),
    OverrideRule("measures", "search_history", "measures.history.value", OverrideAction.FORCE_TYPE, "string"),
    OverrideRule("qualitygates", "project_status", "projectStatus.periods", OverrideAction.OPTIONAL),
    OverrideRule("system", "info", "System", OverrideAction.FORCE_TYPE, "opaque"),
)


class OverrideView:
    """Read-only rules of one (endpoint, action), keyed by dotted path"""

    def __init__(self, endpoint: str, action: str, rules: Mapping[str, Tuple[OverrideRule, ...]]):
        self.endpoint = endpoint
        self.action = action
        self._rules = MappingProxyType(dict(rules))

    def lookup(self, path: str) -> Tuple[OverrideRule, ...]:
        return self._rules.get(path, ())

    def _first(self, path: str, kind: OverrideAction) -> Optional[OverrideRule]:
        for rule in self.lookup(path):
            if rule.kind == kind:
                return rule
        return None

    def is_skipped(self, path: str) -> bool:
        return self._first(path, OverrideAction.SKIP) is not None

    def forced_kind(self, path: str) -> Optional[FieldKind]:
        rule = self._first(path, OverrideAction.FORCE_TYPE)
        return rule.forced_kind if rule else None

    def renamed(self, path: str) -> Optional[str]:
        rule = self._first(path, OverrideAction.RENAME)
        return rule.value if rule else None

    def is_optional(self, path: str) -> bool:
        return self._first(path, OverrideAction.OPTIONAL) is not None

    def paths(self) -> List[str]:
        return sorted(self._rules)

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def __bool__(self) -> bool:
        return len(self._rules) > 0

    def __repr__(self) -> str:
        return f"OverrideView({self.endpoint}/{self.action}, {len(self)} rules)"


EMPTY_VIEW = OverrideView("", "", {})


class OverrideRegistry:
    """Immutable set of override rules"""

    def __init__(self, rules: Iterable[OverrideRule] = ()):
        index: Dict[Tuple[str, str], Dict[str, List[OverrideRule]]] = {}
        for rule in rules:
            paths = index.setdefault((rule.endpoint, rule.action), {})
            paths.setdefault(rule.path, []).append(rule)

        self._index = MappingProxyType({
            scope: MappingProxyType({path: tuple(found) for path, found in paths.items()})
            for scope, paths in index.items()
        })

    def filter(self, endpoint: str, action: str) -> OverrideView:
        """View scoped to one action; empty when nothing matches"""
        return OverrideView(endpoint, action, self._index.get((endpoint, action), {}))

    @property
    def rules(self) -> Tuple[OverrideRule, ...]:
        return tuple(
            rule
            for scope in sorted(self._index)
            for path in sorted(self._index[scope])
            for rule in self._index[scope][path]
        )

    def __len__(self) -> int:
        return len(self.rules)

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> "OverrideRegistry":
        return cls(OverrideRule.from_dict(item) for item in items)

    @classmethod
    def from_file(cls, path: Path) -> "OverrideRegistry":
        """
        Load rules from a JSON file

        Format:
            [{"endpoint": "issues", "action": "search", "path": "issues.tags",
              "kind": "skip"}, ...]
        """
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise OverrideConfigError(f"Could not read overrides from {path}: {e}") from e

        if not isinstance(data, list):
            raise OverrideConfigError(f"Overrides file {path} must contain a JSON list")

        registry = cls.from_dicts(data)
        logger.info(f"Loaded {len(registry)} override rules from {path}")
        return registry


def load_registry(path: Optional[Path] = None, include_defaults: bool = True) -> OverrideRegistry:
    """Built-in rules plus an optional user file"""
    rules: List[OverrideRule] = list(DEFAULT_RULES) if include_defaults else []
    if path is not None:
        rules.extend(OverrideRegistry.from_file(path).rules)
    return OverrideRegistry(rules)
