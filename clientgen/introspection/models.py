"""
Web service catalog models

Parsed from the self-describing `/api/webservices/list` document:
webServices[] -> actions[] -> params[] / changelog[].
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, List, Optional
import logging

from clientgen.schema.naming import to_camel
from clientgen.schema.pagination import PAGE_INDEX_PARAM, PAGE_SIZE_PARAM

logger = logging.getLogger(__name__)


@dataclass
class Param:
    """Request parameter of an action"""
    key: str
    description: str = ""
    internal: bool = False
    required: bool = False
    since: str = ""
    deprecated_since: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Param":
        return cls(
            key=data["key"],
            description=data.get("description", ""),
            internal=data.get("internal", False),
            required=data.get("required", False),
            since=data.get("since", ""),
            deprecated_since=data.get("deprecatedSince", ""),
        )


@dataclass
class ChangelogEntry:
    version: str
    description: str = ""


@dataclass
class Action:
    """Single web service action (e.g. api/issues/search)"""
    key: str
    description: str = ""
    internal: bool = False
    post: bool = False
    has_response_example: bool = False
    params: List[Param] = dataclass_field(default_factory=list)
    changelog: List[ChangelogEntry] = dataclass_field(default_factory=list)
    since: str = ""
    deprecated_since: str = ""

    @property
    def id(self) -> str:
        return to_camel(self.key)

    @property
    def request_type_name(self) -> str:
        return f"{self.id}Request"

    @property
    def response_type_name(self) -> str:
        return f"{self.id}Response"

    @property
    def response_all_type_name(self) -> str:
        return f"{self.id}ResponseAll"

    def has_paging(self) -> bool:
        """Paging-capable when both page index and page size params exist"""
        keys = {param.key for param in self.params}
        return PAGE_INDEX_PARAM in keys and PAGE_SIZE_PARAM in keys

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        return cls(
            key=data["key"],
            description=data.get("description", ""),
            internal=data.get("internal", False),
            post=data.get("post", False),
            has_response_example=data.get("hasResponseExample", False),
            params=[Param.from_dict(p) for p in data.get("params", [])],
            changelog=[
                ChangelogEntry(version=c.get("version", ""), description=c.get("description", ""))
                for c in data.get("changelog", [])
            ],
            since=data.get("since", ""),
            deprecated_since=data.get("deprecatedSince", ""),
        )


@dataclass
class WebService:
    """A web service controller (e.g. api/issues) and its actions"""
    path: str
    description: str = ""
    actions: List[Action] = dataclass_field(default_factory=list)

    @property
    def endpoint(self) -> str:
        """Last path segment: "api/issues" -> "issues" """
        return self.path.rstrip("/").split("/")[-1]

    @property
    def getter(self) -> str:
        return to_camel(self.endpoint)

    def get_action(self, key: str) -> Optional[Action]:
        for action in self.actions:
            if action.key == key:
                return action
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebService":
        return cls(
            path=data["path"],
            description=data.get("description", ""),
            actions=[Action.from_dict(a) for a in data.get("actions", [])],
        )


@dataclass
class WebServiceCatalog:
    """All web services exposed by the server"""
    services: List[WebService] = dataclass_field(default_factory=list)

    def get_service(self, endpoint: str) -> Optional[WebService]:
        """Lookup by endpoint ("issues") or full path ("api/issues")"""
        for service in self.services:
            if service.endpoint == endpoint or service.path == endpoint:
                return service
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebServiceCatalog":
        services = [WebService.from_dict(s) for s in data.get("webServices", [])]
        logger.info(f"Catalog lists {len(services)} web services")
        return cls(services=services)
