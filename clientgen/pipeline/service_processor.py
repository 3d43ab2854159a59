"""
Service Processor - infers the schemas of one web service

Actions are processed sequentially in declared order. A failing action is
recorded with its (endpoint, action) context and never stops its siblings.
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, List, Optional
import logging

from config import GeneratorConfig
from clientgen.introspection.example_fetcher import ExampleFetcher
from clientgen.introspection.models import Action, WebService
from clientgen.schema.errors import ClientGenError
from clientgen.schema.fields import EmptyField, Field, MapField
from clientgen.schema.overrides import OverrideRegistry
from clientgen.schema.pagination import PaginationProjector, PagingSource
from clientgen.schema.parser import SchemaParser

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Schemas inferred for one action"""
    action: Action
    response: Field = dataclass_field(default_factory=EmptyField)
    collection: Optional[MapField] = None  # paging artifacts removed
    paging: Optional[PagingSource] = None
    error: Optional[ClientGenError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def paging_supported(self) -> bool:
        return self.collection is not None and self.paging is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.key,
            "paging_capable": self.action.has_paging(),
            "response": self.response.to_dict(),
            "collection": self.collection.to_dict() if self.collection else None,
            "paging": self.paging.to_dict() if self.paging else None,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class ServiceResult:
    """All action results of one web service"""
    service: WebService
    actions: List[ActionResult] = dataclass_field(default_factory=list)
    skipped: bool = False
    error: Optional[ClientGenError] = None  # failure outside any single action

    @property
    def endpoint(self) -> str:
        return self.service.endpoint

    @property
    def errors(self) -> List[ClientGenError]:
        found = [result.error for result in self.actions if result.error is not None]
        if self.error is not None:
            found.append(self.error)
        return found

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "path": self.service.path,
            "actions": [result.to_dict() for result in self.actions],
            "error": str(self.error) if self.error else None,
        }


class ServiceProcessor:
    """Runs fetch, parse and paging projection for every action of a service"""

    def __init__(
        self,
        fetcher: ExampleFetcher,
        registry: OverrideRegistry,
        config: Optional[GeneratorConfig] = None,
        projector: Optional[PaginationProjector] = None,
    ):
        """
        Initialize processor

        Args:
            fetcher: Source of response examples
            registry: Shared, read-only override rules
            config: Skip lists
            projector: Pagination projector (stateless)
        """
        self.fetcher = fetcher
        self.registry = registry
        self.config = config or GeneratorConfig()
        self.projector = projector or PaginationProjector()

    def process(self, service: WebService) -> ServiceResult:
        """Process all actions of a service, in order"""
        endpoint = service.endpoint
        if self.config.is_endpoint_skipped(endpoint):
            logger.info(f"Skipping endpoint '{endpoint}'")
            return ServiceResult(service=service, skipped=True)

        result = ServiceResult(service=service)
        for action in service.actions:
            if self.config.is_action_skipped(endpoint, action.key):
                logger.info(f"Skipping action '{endpoint}/{action.key}'")
                continue

            logger.info(f"Processing '{endpoint}' - '{action.key}'")
            result.actions.append(self.process_action(endpoint, action))

        return result

    def process_action(self, endpoint: str, action: Action) -> ActionResult:
        """Infer the schemas of a single action; errors are captured, not raised"""
        result = ActionResult(action=action)
        if not action.has_response_example:
            return result

        try:
            example = self.fetcher.fetch_example(endpoint, action.key)
            self.build_schemas(endpoint, action, example, result)
        except ClientGenError as e:
            e.with_context(endpoint, action.key)
            logger.error(f"Failed to generate {endpoint}/{action.key}: {e}")
            result.error = e
        except Exception as e:
            logger.exception(f"Unexpected error in {endpoint}/{action.key}")
            result.error = ClientGenError(
                f"unexpected {type(e).__name__}: {e}", endpoint=endpoint, action=action.key
            )

        return result

    def build_schemas(self, endpoint: str, action: Action, example: Any, result: ActionResult) -> None:
        """Parse an already fetched example into `result`"""
        parser = SchemaParser(self.registry.filter(endpoint, action.key))
        result.response = parser.parse(action.response_type_name, example)

        if action.has_paging():
            projection = self.projector.project(
                result.response,
                action.response_all_type_name,
                paging_capable=True,
            )
            result.collection = projection.collection
            result.paging = projection.paging
            if not projection.supported:
                logger.warning(f"Not generating paged variant for {endpoint}/{action.key}")
