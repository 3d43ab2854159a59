"""
Unit tests for the Override Registry

Tests:
- Rule validation
- Action-scoped filtering
- Loading from JSON files
- Sharing one registry between threads
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from clientgen.schema.errors import OverrideConfigError
from clientgen.schema.overrides import (
    DEFAULT_RULES,
    EMPTY_VIEW,
    OverrideAction,
    OverrideRegistry,
    OverrideRule,
    load_registry,
)
from clientgen.schema.parser import SchemaParser
from clientgen.schema.scalar import FieldKind


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def registry():
    return OverrideRegistry([
        OverrideRule("issues", "search", "issues.tags", OverrideAction.SKIP),
        OverrideRule("issues", "search", "issues.line", OverrideAction.FORCE_TYPE, "string"),
        OverrideRule("issues", "show", "issue.tags", OverrideAction.SKIP),
        OverrideRule("hotspots", "search", "hotspots.key", OverrideAction.RENAME, "HotspotKey"),
    ])


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "overrides.json"
    path.write_text(json.dumps([
        {"endpoint": "rules", "action": "search", "path": "rules.params", "kind": "optional"},
        {"endpoint": "rules", "action": "search", "path": "rules.sysTags", "kind": "skip"},
    ]))
    return path


# ============================================================================
# TEST: OverrideRule
# ============================================================================


class TestOverrideRule:
    """Tests for rule validation"""

    def test_from_dict(self):
        """Test rules load from their JSON form"""
        rule = OverrideRule.from_dict({
            "endpoint": "issues",
            "action": "search",
            "path": "issues.line",
            "kind": "force-type",
            "value": "number",
        })

        assert rule.kind == OverrideAction.FORCE_TYPE
        assert rule.forced_kind == FieldKind.NUMBER
        assert OverrideRule.from_dict(rule.to_dict()) == rule

    def test_unknown_kind(self):
        """Test unknown rule kinds are rejected"""
        with pytest.raises(OverrideConfigError):
            OverrideRule.from_dict({"endpoint": "a", "action": "b", "path": "c", "kind": "drop"})

    def test_missing_kind(self):
        with pytest.raises(OverrideConfigError):
            OverrideRule.from_dict({"endpoint": "a", "action": "b", "path": "c"})

    def test_bad_type_token(self):
        """Test force-type rules need a known type token"""
        with pytest.raises(OverrideConfigError):
            OverrideRule("a", "b", "c", OverrideAction.FORCE_TYPE, "integer")

    def test_rename_needs_value(self):
        with pytest.raises(OverrideConfigError):
            OverrideRule("a", "b", "c", OverrideAction.RENAME)

    def test_scope_required(self):
        """Test endpoint, action and path are mandatory"""
        with pytest.raises(OverrideConfigError):
            OverrideRule("", "search", "issues", OverrideAction.SKIP)


# ============================================================================
# TEST: OverrideRegistry.filter
# ============================================================================


class TestRegistryFilter:
    """Tests for action-scoped views"""

    def test_filter_matching_action(self, registry):
        """Test a view holds only its own rules"""
        view = registry.filter("issues", "search")

        assert len(view) == 2
        assert view.paths() == ["issues.line", "issues.tags"]
        assert view.is_skipped("issues.tags")
        assert view.forced_kind("issues.line") == FieldKind.STRING
        assert not view.is_skipped("issue.tags")

    def test_same_endpoint_other_action(self, registry):
        """Test rules of a sibling action do not leak"""
        view = registry.filter("issues", "show")

        assert view.paths() == ["issue.tags"]
        assert not view.is_skipped("issues.tags")

    def test_same_action_other_endpoint(self, registry):
        """Test rules of another endpoint with the same action name do not leak"""
        view = registry.filter("hotspots", "search")

        assert view.renamed("hotspots.key") == "HotspotKey"
        assert view.forced_kind("issues.line") is None

    def test_no_rules(self, registry):
        """Test unknown actions get an empty view"""
        view = registry.filter("users", "search")

        assert not view
        assert len(view) == 0
        assert view.lookup("anything") == ()
        assert not EMPTY_VIEW

    def test_views_are_read_only(self, registry):
        """Test views cannot be mutated"""
        view = registry.filter("issues", "search")
        with pytest.raises(TypeError):
            view._rules["issues.key"] = ()

    def test_isolation_in_parser(self, registry):
        """Test a rule for one action leaves the same path of another action alone"""
        example = {"issues": [{"key": "a", "tags": ["x"], "line": 3}]}

        search = SchemaParser(registry.filter("issues", "search")).parse("SearchResponse", example)
        other = SchemaParser(registry.filter("issues", "list")).parse("ListResponse", example)

        search_issue = search.get("Issues").field.element
        other_issue = other.get("Issues").field.element
        assert search_issue.accessors() == ["Key", "Line"]
        assert search_issue.get("Line").field.kind == FieldKind.STRING
        assert other_issue.accessors() == ["Key", "Line", "Tags"]
        assert other_issue.get("Line").field.kind == FieldKind.NUMBER

    def test_concurrent_readers(self, registry):
        """Test one registry shared by many workers gives identical results"""
        example = {"issues": [{"key": "a", "tags": ["x"], "line": 3}, {"key": "b"}]}

        def work(_):
            view = registry.filter("issues", "search")
            return SchemaParser(view).parse("SearchResponse", example)

        with ThreadPoolExecutor(max_workers=8) as pool:
            trees = list(pool.map(work, range(32)))

        assert all(tree == trees[0] for tree in trees)


# ============================================================================
# TEST: Loading
# ============================================================================


class TestLoading:
    """Tests for registry construction from files"""

    def test_from_file(self, rules_file):
        registry = OverrideRegistry.from_file(rules_file)

        assert len(registry) == 2
        view = registry.filter("rules", "search")
        assert view.is_optional("rules.params")
        assert view.is_skipped("rules.sysTags")

    def test_from_file_not_a_list(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text(json.dumps({"endpoint": "rules"}))

        with pytest.raises(OverrideConfigError):
            OverrideRegistry.from_file(path)

    def test_from_file_invalid_json(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text("[{")

        with pytest.raises(OverrideConfigError):
            OverrideRegistry.from_file(path)

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(OverrideConfigError):
            OverrideRegistry.from_file(tmp_path / "missing.json")

    def test_load_registry_defaults(self):
        """Test built-in rules are included by default"""
        assert len(load_registry()) == len(DEFAULT_RULES)
        assert len(load_registry(include_defaults=False)) == 0

    def test_load_registry_with_file(self, rules_file):
        registry = load_registry(rules_file)

        assert len(registry) == len(DEFAULT_RULES) + 2
        assert registry.filter("issues", "search").is_optional("issues.flows.locations.msgFormattings")
