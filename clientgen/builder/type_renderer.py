"""
Type Renderer - Emits Python dataclass modules from Field trees

Per action:
- <Id>Request dataclass from the action params (paging params omitted)
- <Id>Response from the primary tree; nested maps become <Parent><Accessor>
  classes, collections become List[...], scalar or collection roots become
  type aliases
- <Id>ResponseAll from the collection-only tree of paging-capable actions,
  plus a get_paging() method on <Id>Response
"""

from typing import Dict, List, Optional, Set, Tuple
import json
import logging

from clientgen.introspection.models import Action, Param
from clientgen.pipeline.service_processor import ActionResult, ServiceResult
from clientgen.schema.errors import AccessorConflict
from clientgen.schema.fields import Field, MapField, NodeTag
from clientgen.schema.naming import to_camel, to_snake
from clientgen.schema.pagination import PAGE_INDEX_PARAM, PAGE_SIZE_PARAM, PagingSource
from clientgen.schema.scalar import FieldKind

from .template_engine import TemplateEngine

logger = logging.getLogger(__name__)

INDENT = "    "

SCALAR_TYPES: Dict[FieldKind, str] = {
    FieldKind.STRING: "str",
    FieldKind.NUMBER: "float",
    FieldKind.BOOLEAN: "bool",
    FieldKind.OPAQUE: "str",
    FieldKind.UNKNOWN: "Any",
}

SCALAR_ZERO: Dict[FieldKind, str] = {
    FieldKind.STRING: '""',
    FieldKind.NUMBER: "0",
    FieldKind.BOOLEAN: "False",
    FieldKind.OPAQUE: '""',
    FieldKind.UNKNOWN: "None",
}

PAGING_CLASS_NAME = "Paging"

PAGING_CLASS = '''@dataclass
class Paging:
    """Paging assembled from flattened response fields"""

    page_index: Optional[float] = None
    page_size: Optional[float] = None
    total: Optional[float] = None
'''

MODULE_IMPORTS = [
    "import dataclasses",
    "from dataclasses import dataclass",
    "from typing import Any, List, Optional",
]


class TypeRenderer:
    """
    Renders one Python module per web service

    Class names are unique within a module: root names (request, response,
    collection) are reserved first, and a nested class whose derived name is
    already taken gets a numeric suffix. render_service starts a new module.
    """

    def __init__(self, engine: Optional[TemplateEngine] = None):
        self.engine = engine or TemplateEngine()
        self._class_names: Set[str] = set()

    def module_name(self, endpoint: str) -> str:
        """Python module name for an endpoint ("alm_settings" -> "alm_settings")"""
        return to_snake(to_camel(endpoint))

    def render_service(self, result: ServiceResult) -> str:
        """Render the types module of one service"""
        service = result.service
        blocks: List[str] = []
        self._class_names = set()

        needs_paging_class = any(
            action.paging_supported and not action.paging.is_structured
            for action in result.actions
        )
        if needs_paging_class:
            blocks.append(PAGING_CLASS)
            self._class_names.add(PAGING_CLASS_NAME)

        rendered = []
        for action_result in result.actions:
            if action_result.error is not None:
                logger.debug(f"Not rendering failed action {service.endpoint}/{action_result.action.key}")
                continue
            self._reserve_roots(action_result.action)
            rendered.append(action_result)

        for action_result in rendered:
            blocks.extend(self.render_action(action_result))

        header = self.engine.render_module_header(
            f"Types for {service.path}\n\n{service.description}" if service.description else f"Types for {service.path}",
            MODULE_IMPORTS,
        )
        return header + "\n\n" + "\n\n".join(blocks)

    def render_action(self, result: ActionResult) -> List[str]:
        """Request, response and collection blocks of one action"""
        action = result.action
        self._reserve_roots(action)
        blocks = [self.render_request(action)]

        blocks.extend(
            self.render_root(
                action.response_type_name,
                result.response,
                f"{action.response_type_name} is the response for {action.request_type_name}",
                paging=result.paging if result.paging_supported else None,
            )
        )

        if result.paging_supported:
            blocks.extend(
                self.render_root(
                    action.response_all_type_name,
                    result.collection,
                    f"{action.response_all_type_name} is the collection for {action.request_type_name}",
                )
            )
        return blocks

    def render_request(self, action: Action) -> str:
        """Request dataclass; required params first"""
        params = [p for p in action.params if p.key not in (PAGE_INDEX_PARAM, PAGE_SIZE_PARAM)]
        ordered = [p for p in params if p.required] + [p for p in params if not p.required]

        docstring = [action.description] if action.description else [action.request_type_name]
        if action.deprecated_since:
            docstring.append(f"Deprecated: this action has been deprecated since version {action.deprecated_since}")

        lines = ["@dataclass", f"class {action.request_type_name}:"]
        lines.extend(self._docstring("\n".join(docstring)))

        seen: Dict[str, str] = {}
        for param in ordered:
            attribute = to_snake(to_camel(param.key))
            self._claim(seen, attribute, param.key)
            lines.extend(self._param_comment(param))
            metadata = self._metadata(attribute, param.key)
            if param.required:
                if metadata:
                    lines.append(f"{INDENT}{attribute}: str = dataclasses.field({metadata})")
                else:
                    lines.append(f"{INDENT}{attribute}: str")
            else:
                lines.append(f"{INDENT}{attribute}: Optional[str] = {self._default('None', metadata)}")

        if not ordered:
            lines.append(f"{INDENT}pass")
        return "\n".join(lines) + "\n"


    def render_root(
        self,
        name: str,
        tree: Field,
        description: str = "",
        paging: Optional[PagingSource] = None,
    ) -> List[str]:
        """Blocks for a response root, dispatched on its tag"""
        if tree.tag == NodeTag.EMPTY:
            return []

        self._class_names.add(name)
        comment = f"# {description}\n" if description else ""

        if tree.tag == NodeTag.MAP:
            return self._render_class(name, tree, description, paging)

        if tree.tag == NodeTag.COLLECTION:
            blocks: List[str] = []
            annotation = self._annotation(f"{name}Item", tree.element, blocks)
            blocks.append(f"{comment}{name} = List[{annotation}]\n")
            return blocks

        if tree.tag == NodeTag.SCALAR:
            return [f"{comment}{name} = {SCALAR_TYPES[tree.kind]}\n"]

        raise ValueError(f"Unknown field tag: {tree.tag}")

    def _reserve_roots(self, action: Action) -> None:
        self._class_names.update(
            (action.request_type_name, action.response_type_name, action.response_all_type_name)
        )

    def _unique_class(self, name: str) -> str:
        """Claim a nested class name, suffixing it when already taken"""
        if name not in self._class_names:
            self._class_names.add(name)
            return name

        suffix = 2
        while f"{name}{suffix}" in self._class_names:
            suffix += 1
        unique = f"{name}{suffix}"
        logger.warning(f"Class name {name} already used in this module, emitting {unique}")
        self._class_names.add(unique)
        return unique

    def _render_class(
        self,
        name: str,
        tree: MapField,
        description: str,
        paging: Optional[PagingSource] = None,
    ) -> List[str]:
        nested: List[str] = []
        lines = ["@dataclass", f"class {name}:"]
        lines.extend(self._docstring(description))

        seen: Dict[str, str] = {}
        types: Dict[str, str] = {}
        for entry in tree.entries:
            if entry.field.tag == NodeTag.EMPTY:
                continue
            attribute = to_snake(entry.accessor)
            self._claim(seen, attribute, entry.accessor)
            types[entry.accessor] = self._annotation(f"{name}{entry.accessor}", entry.field, nested)
            annotation, default = self._attribute(types[entry.accessor], entry.field, entry.required)
            metadata = self._metadata(attribute, entry.key)
            lines.append(f"{INDENT}{attribute}: {annotation} = {self._default(default, metadata)}")

        extra = self._paging_method(name, paging, types) if paging is not None else []
        if not types and not extra:
            lines.append(f"{INDENT}pass")
        if extra:
            lines.append("")
            lines.extend(extra)

        nested.append("\n".join(lines) + "\n")
        return nested

    @staticmethod
    def _attribute(annotation: str, field: Field, required: bool) -> Tuple[str, str]:
        """(annotation, default expression) for one attribute"""
        if field.tag == NodeTag.SCALAR:
            if field.kind == FieldKind.UNKNOWN:
                return annotation, "None"
            if required:
                return annotation, SCALAR_ZERO[field.kind]
            return f"Optional[{annotation}]", "None"

        if not required:
            return f"Optional[{annotation}]", "None"
        if field.tag == NodeTag.COLLECTION:
            return annotation, "factory:list"
        return annotation, f"factory:{annotation}"

    def _annotation(self, class_name: str, field: Field, nested: List[str]) -> str:
        """Type expression of a field; nested classes are appended to `nested`"""
        if field.tag == NodeTag.SCALAR:
            return SCALAR_TYPES[field.kind]
        if field.tag == NodeTag.COLLECTION:
            return f"List[{self._annotation(class_name, field.element, nested)}]"
        if field.tag == NodeTag.MAP:
            class_name = self._unique_class(class_name)
            nested.extend(self._render_class(class_name, field, f"{class_name} is part of {field.name}"))
            return class_name
        if field.tag == NodeTag.EMPTY:
            return "Any"
        raise ValueError(f"Unknown field tag: {field.tag}")

    @staticmethod
    def _paging_method(name: str, paging: PagingSource, types: Dict[str, str]) -> List[str]:
        if paging.is_structured:
            return [
                f"{INDENT}def get_paging(self) -> Optional[{types.get(paging.accessor, 'Any')}]:",
                f'{INDENT}{INDENT}"""Extracts the paging from {name}"""',
                f"{INDENT}{INDENT}return self.{to_snake(paging.accessor)}",
            ]

        arguments = ", ".join(
            f"{role}=self.{to_snake(accessor)}" for role, accessor in sorted(paging.synthesized_from.items())
        )
        return [
            f"{INDENT}def get_paging(self) -> {PAGING_CLASS_NAME}:",
            f'{INDENT}{INDENT}"""Extracts the paging from {name}"""',
            f"{INDENT}{INDENT}return {PAGING_CLASS_NAME}({arguments})",
        ]

    def _docstring(self, text: str) -> List[str]:
        body = self.engine.escape_docstring(text)
        if not body:
            return []
        body_lines = body.splitlines()
        if len(body_lines) == 1:
            return [f'{INDENT}"""{body_lines[0]}"""', ""]
        lines = [f'{INDENT}"""{body_lines[0]}']
        lines.extend(f"{INDENT}{line}" if line else "" for line in body_lines[1:])
        lines.extend([f'{INDENT}"""', ""])
        return lines

    def _param_comment(self, param: Param) -> List[str]:
        notes = []
        if param.since:
            notes.append(f"Since {param.since}")
        if param.deprecated_since:
            notes.append(f"Deprecated since {param.deprecated_since}")
        lines = [f"{INDENT}# {'; '.join(notes)}"] if notes else []
        return lines + self.engine.as_comment(param.description, INDENT)

    @staticmethod
    def _metadata(attribute: str, key: str) -> str:
        if attribute == key:
            return ""
        return f'metadata={{"json": {json.dumps(key)}}}'

    @staticmethod
    def _default(default: str, metadata: str) -> str:
        if default.startswith("factory:"):
            factory = default[len("factory:"):]
            if metadata:
                return f"dataclasses.field(default_factory={factory}, {metadata})"
            return f"dataclasses.field(default_factory={factory})"
        if metadata:
            return f"dataclasses.field(default={default}, {metadata})"
        return default

    @staticmethod
    def _claim(seen: Dict[str, str], attribute: str, owner: str) -> None:
        if attribute in seen:
            raise AccessorConflict(attribute, [seen[attribute], owner])
        seen[attribute] = owner
