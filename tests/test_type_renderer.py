"""
Unit tests for the Builder Module

Tests:
- TemplateEngine: variable substitution, description cleaning
- TypeRenderer: request/response classes, paging helpers, aliases
- Generated modules compile and instantiate
"""

import dataclasses

import pytest

from clientgen.builder.template_engine import GENERATED_WARNING, TemplateEngine
from clientgen.builder.type_renderer import PAGING_CLASS, TypeRenderer
from clientgen.introspection.models import Action, Param, WebService
from clientgen.pipeline.service_processor import ActionResult, ServiceResult
from clientgen.schema.errors import AccessorConflict, ShapeConflict
from clientgen.schema.fields import EmptyField
from clientgen.schema.pagination import PaginationProjector
from clientgen.schema.parser import parse_example


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def renderer():
    return TypeRenderer()


@pytest.fixture
def search_action():
    return Action(
        key="search",
        description="Search for components.",
        has_response_example=True,
        params=[
            Param(key="p"),
            Param(key="ps"),
            Param(key="q", description="Limit search"),
            Param(key="componentKeys", since="6.1"),
            Param(key="qualifiers", required=True),
        ],
    )


def build_result(action, example):
    """ActionResult as the service processor would produce it"""
    response = parse_example(action.response_type_name, example)
    result = ActionResult(action=action, response=response)
    if action.has_paging():
        projection = PaginationProjector().project(response, action.response_all_type_name, True)
        result.collection = projection.collection
        result.paging = projection.paging
    return result


def load_module(source):
    """Execute generated source, return its namespace"""
    namespace = {"__name__": "generated"}
    exec(compile(source, "<generated>", "exec"), namespace)
    return namespace


# ============================================================================
# TEST: TemplateEngine
# ============================================================================


class TestTemplateEngine:
    """Tests for TemplateEngine"""

    def test_render_variables(self):
        """Test ${var} substitution from context and overrides"""
        engine = TemplateEngine({"name": "IssuesSearch"})

        assert engine.render("class ${name}:") == "class IssuesSearch:"
        assert engine.render("class ${name}:", name="Other") == "class Other:"

    def test_render_missing_variable(self):
        """Test missing variables render empty"""
        assert TemplateEngine().render("x = ${missing}") == "x = "

    def test_update_context(self):
        engine = TemplateEngine()
        engine.update_context(endpoint="issues")
        assert engine.render("${endpoint}") == "issues"

    def test_clean_description(self):
        """Test HTML fragments are turned into lines"""
        lines = TemplateEngine.clean_description("Search<br/>issues<ul><li>open</li><li>closed</li></ul>")
        assert lines == ["Search", "issues", " * open", " * closed"]

    def test_clean_empty_description(self):
        assert TemplateEngine.clean_description(None) == []
        assert TemplateEngine.clean_description("") == []

    def test_as_comment(self):
        assert TemplateEngine.as_comment("Page size<br>Max 500", "    ") == ["    # Page size", "    # Max 500"]

    def test_module_header(self):
        header = TemplateEngine().render_module_header("Types for api/issues", ["import dataclasses"])

        assert header.startswith(GENERATED_WARNING)
        assert '"""Types for api/issues"""' in header
        assert "import dataclasses" in header


# ============================================================================
# TEST: Request classes
# ============================================================================


class TestRenderRequest:
    """Tests for request dataclasses"""

    def test_paging_params_omitted(self, renderer, search_action):
        source = renderer.render_request(search_action)

        assert "class SearchRequest:" in source
        assert '"""Search for components."""' in source
        assert " p:" not in source
        assert " ps:" not in source

    def test_required_params_first(self, renderer, search_action):
        source = renderer.render_request(search_action)

        assert source.index("qualifiers: str") < source.index("q: Optional[str] = None")

    def test_renamed_param_keeps_json_key(self, renderer, search_action):
        source = renderer.render_request(search_action)

        assert 'component_keys: Optional[str] = dataclasses.field(default=None, metadata={"json": "componentKeys"})' in source
        assert "# Since 6.1" in source
        assert "# Limit search" in source

    def test_no_params(self, renderer):
        source = renderer.render_request(Action(key="ping"))

        assert "class PingRequest:" in source
        assert "    pass" in source

    def test_deprecated_action(self, renderer):
        source = renderer.render_request(Action(key="index", description="Old", deprecated_since="7.6"))
        assert "deprecated since version 7.6" in source


# ============================================================================
# TEST: Response classes
# ============================================================================


class TestRenderResponse:
    """Tests for response classes and paging helpers"""

    def test_structured_paging(self, renderer, search_action):
        """Test nested paging object, collection class and get_paging"""
        result = build_result(search_action, {
            "total": 3,
            "p": 1,
            "ps": 50,
            "paging": {"pageIndex": 1, "pageSize": 50, "total": 3},
            "components": [{"key": "a", "name": "A"}, {"key": "b"}],
        })

        source = "\n".join(renderer.render_action(result))

        assert "class SearchResponseComponents:" in source
        assert '    key: str = ""' in source
        assert "    name: Optional[str] = None" in source
        assert "    components: List[SearchResponseComponents] = dataclasses.field(default_factory=list)" in source
        assert "    paging: SearchResponsePaging = dataclasses.field(default_factory=SearchResponsePaging)" in source
        assert 'page_index: float = dataclasses.field(default=0, metadata={"json": "pageIndex"})' in source
        assert "    def get_paging(self) -> Optional[SearchResponsePaging]:" in source
        assert "        return self.paging" in source
        assert "class SearchResponseAll:" in source
        assert "    components: List[SearchResponseAllComponents]" in source

    def test_nested_class_before_parent(self, renderer, search_action):
        result = build_result(search_action, {"paging": {"total": 1}, "components": [{"key": "a"}]})
        source = "\n".join(renderer.render_action(result))

        assert source.index("class SearchResponseComponents:") < source.index("class SearchResponse:")

    def test_synthesized_paging(self, renderer, search_action):
        """Test Paging helper built from flattened fields"""
        result = build_result(search_action, {"p": 1, "ps": 100, "total": 5, "issues": [{"key": "x"}]})

        source = "\n".join(renderer.render_action(result))

        assert "    def get_paging(self) -> Paging:" in source
        assert "        return Paging(page_index=self.p, page_size=self.ps, total=self.total)" in source

    def test_collection_root(self, renderer):
        result = build_result(Action(key="list"), [{"id": 1}])
        source = "\n".join(renderer.render_action(result))

        assert "class ListResponseItem:" in source
        assert "ListResponse = List[ListResponseItem]" in source

    def test_opaque_root(self, renderer):
        result = build_result(Action(key="ping"), {"format": "txt", "example": "pong"})
        source = "\n".join(renderer.render_action(result))

        assert "PingResponse = str" in source

    def test_empty_response(self, renderer):
        """Test actions without example only get a request class"""
        result = ActionResult(action=Action(key="delete"), response=EmptyField())
        blocks = renderer.render_action(result)

        assert len(blocks) == 1
        assert "class DeleteRequest:" in blocks[0]

    def test_attribute_conflict(self, renderer):
        """Test distinct accessors that collapse to one attribute name"""
        result = build_result(Action(key="show"), {"HTMLUrl": "a", "htmlUrl": "b"})

        with pytest.raises(AccessorConflict):
            renderer.render_action(result)


# ============================================================================
# TEST: Service modules
# ============================================================================


class TestRenderService:
    """Tests for whole generated modules"""

    def test_module_executes(self, renderer, search_action):
        """Test the generated module compiles and its classes instantiate"""
        service = WebService(path="api/components", description="Components <b>lookup</b>", actions=[search_action])
        result = ServiceResult(
            service=service,
            actions=[build_result(search_action, {"p": 1, "ps": 100, "total": 5, "components": [{"key": "x"}]})],
        )

        source = renderer.render_service(result)
        module = load_module(source)

        assert source.startswith(GENERATED_WARNING)
        assert PAGING_CLASS in source
        response = module["SearchResponse"](p=2, ps=10, total=15)
        paging = response.get_paging()
        assert (paging.page_index, paging.page_size, paging.total) == (2, 10, 15)
        assert module["SearchResponseAll"]().components == []
        assert module["SearchRequest"](qualifiers="TRK").q is None

    def test_field_key_does_not_shadow(self, renderer):
        """Test a JSON key named "field" still renders a working class"""
        action = Action(key="show")
        result = ServiceResult(
            service=WebService(path="api/rules", actions=[action]),
            actions=[build_result(action, {"field": "severity", "tags": [], "params": {"key": "a"}})],
        )

        module = load_module(renderer.render_service(result))
        response = module["ShowResponse"]()

        assert response.field == ""
        assert response.tags == []
        assert response.params.key == ""

    def test_failed_actions_skipped(self, renderer):
        ok = Action(key="show")
        failed = Action(key="search")
        result = ServiceResult(
            service=WebService(path="api/users", actions=[ok, failed]),
            actions=[
                build_result(ok, {"login": "admin"}),
                ActionResult(action=failed, error=ShapeConflict("users", "object mixed with scalar")),
            ],
        )

        source = renderer.render_service(result)

        assert "class ShowResponse:" in source
        assert "SearchRequest" not in source
        assert PAGING_CLASS not in source

    def test_docstring_with_quotes(self, renderer):
        action = Action(key="show", description='Use """ carefully "')
        result = ServiceResult(service=WebService(path="api/users", actions=[action]), actions=[ActionResult(action=action)])

        load_module(renderer.render_service(result))

    def test_module_name(self, renderer):
        assert renderer.module_name("alm_settings") == "alm_settings"
        assert renderer.module_name("qualitygates") == "qualitygates"
        assert renderer.module_name("project-badges") == "project_badges"


# ============================================================================
# TEST: Class names and JSON keys
# ============================================================================


class TestClassNames:
    """Tests for unique class names within a module"""

    def test_colliding_nested_names(self, renderer):
        """Test two nested paths deriving the same class name"""
        action = Action(key="show")
        result = ServiceResult(
            service=WebService(path="api/rules", actions=[action]),
            actions=[build_result(action, {"a": {"b_c": {"x": 1}}, "a_b": {"c": {"y": 2}}})],
        )

        source = renderer.render_service(result)
        module = load_module(source)

        assert source.count("class ShowResponseABC:") == 1
        assert source.count("class ShowResponseABC2:") == 1
        assert module["ShowResponseA"]().bc.x == 0
        assert module["ShowResponseAB"]().c.y == 0

    def test_root_names_reserved(self, renderer, search_action):
        """Test a nested class never takes the name of a root class"""
        result = ServiceResult(
            service=WebService(path="api/components", actions=[search_action]),
            actions=[build_result(search_action, {
                "paging": {"pageIndex": 1, "pageSize": 50, "total": 1},
                "all": {"key": "a"},
                "components": [{"key": "b"}],
            })],
        )

        source = renderer.render_service(result)
        module = load_module(source)

        assert source.count("class SearchResponseAll:") == 1
        assert "    all: SearchResponseAll2 = dataclasses.field(default_factory=SearchResponseAll2)" in source
        assert module["SearchResponse"]().all.key == ""
        assert module["SearchResponseAll"]().components == []

    def test_names_reset_per_module(self, renderer):
        action = Action(key="show")
        result = ServiceResult(
            service=WebService(path="api/rules", actions=[action]),
            actions=[build_result(action, {"params": {"key": "a"}})],
        )

        first = renderer.render_service(result)
        second = renderer.render_service(result)

        assert first == second
        assert "ShowResponseParams2" not in second


class TestJsonKeys:
    """Tests for JSON keys that are not valid attribute names"""

    def test_key_with_quote_and_backslash(self, renderer):
        action = Action(key="show")
        key = 'a"b\\c'
        result = ServiceResult(
            service=WebService(path="api/rules", actions=[action]),
            actions=[build_result(action, {key: "value"})],
        )

        module = load_module(renderer.render_service(result))
        fields = dataclasses.fields(module["ShowResponse"])

        assert [f.name for f in fields] == ["abc"]
        assert fields[0].metadata["json"] == key

    def test_param_with_quote(self, renderer):
        action = Action(key="show", params=[Param(key='q"x', required=True)])
        result = ServiceResult(service=WebService(path="api/rules", actions=[action]), actions=[ActionResult(action=action)])

        module = load_module(renderer.render_service(result))
        fields = dataclasses.fields(module["ShowRequest"])

        assert fields[0].metadata["json"] == 'q"x'
        assert module["ShowRequest"](qx="a").qx == "a"
