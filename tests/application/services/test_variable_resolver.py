from __future__ import annotations

import random

from application.services.dynamic_variables import DynamicVariables
from application.services.variable_resolver import VariableResolver
from domain.variables import VariableContext, VariableScope


def _ctx() -> VariableContext:
    return VariableContext(
        global_variables={"host": "g.example", "token": "gt", "shared": "global", "blank": "from-global"},
        collection_variables={"shared": "coll", "only_coll": "c1", "blank": ""},
    )


def _resolver(logger, clock=lambda: 1_700_000_000.75) -> VariableResolver:
    return VariableResolver(logger, DynamicVariables(clock=clock, rng=random.Random(7)))


def test_unprefixed_prefers_collection_scope(logger) -> None:
    resolver = _resolver(logger)

    assert resolver.resolve("{{shared}}", _ctx()) == "coll"
    assert resolver.resolve("{{host}}", _ctx()) == "g.example"


def test_prefixed_lookup_is_scope_only(logger) -> None:
    resolver = _resolver(logger)

    assert resolver.resolve("{{global.shared}}", _ctx()) == "global"
    assert resolver.resolve("{{collection.shared}}", _ctx()) == "coll"
    assert resolver.resolve("{{collection.host}}", _ctx()) == ""
    assert resolver.resolve("{{global.only_coll}}", _ctx()) == ""


def test_empty_collection_value_falls_through_to_global(logger) -> None:
    assert _resolver(logger).resolve("{{blank}}", _ctx()) == "from-global"


def test_unresolved_becomes_empty_and_is_logged(logger) -> None:
    # Act
    out = _resolver(logger).resolve("https://{{host}}/{{missing}}/x", _ctx())

    # Assert
    assert out == "https://g.example//x"
    warnings = logger.find("variable.unresolved")
    assert warnings == [{"name": "missing", "placeholder": "{{missing}}"}]


def test_multiple_placeholders_in_one_string(logger) -> None:
    out = _resolver(logger).resolve("{{host}}:{{token}}:{{shared}}", _ctx())

    assert out == "g.example:gt:coll"


def test_dynamic_timestamp(logger) -> None:
    assert _resolver(logger).resolve("t={{$timestamp}}", _ctx()) == "t=1700000000"


def test_unknown_dynamic_name_falls_back_to_lookup(logger) -> None:
    assert _resolver(logger).resolve("{{$host}}", _ctx()) == "g.example"


def test_non_string_and_empty_input_returned_unchanged(logger) -> None:
    resolver = _resolver(logger)

    assert resolver.resolve(None, _ctx()) is None
    assert resolver.resolve(42, _ctx()) == 42
    assert resolver.resolve("", _ctx()) == ""
    assert resolver.resolve("no placeholders", _ctx()) == "no placeholders"


def test_malformed_placeholders_are_left_alone(logger) -> None:
    resolver = _resolver(logger)

    assert resolver.resolve("{{host}", _ctx()) == "{{host}"
    assert resolver.resolve("{host}}", _ctx()) == "{host}}"


def test_resolving_twice_gives_same_result(logger) -> None:
    resolver = _resolver(logger)
    once = resolver.resolve("{{host}}/{{shared}}/{{missing}}", _ctx())

    assert resolver.resolve(once, _ctx()) == once


def test_resolve_object_walks_nested_structures(logger) -> None:
    value = {"url": "{{host}}", "items": ["{{token}}", 1, {"inner": "{{shared}}"}], "flag": True}

    out = _resolver(logger).resolve_object(value, _ctx())

    assert out == {"url": "g.example", "items": ["gt", 1, {"inner": "coll"}], "flag": True}
    # 入力は変更しない
    assert value["url"] == "{{host}}"


def test_preview_reports_unresolved_without_logging(logger) -> None:
    preview = _resolver(logger).preview_resolution("{{host}}/{{nope}}/{{collection.only_coll}}", _ctx())

    assert preview.resolved == "g.example//c1"
    assert preview.unresolved == ["nope"]
    assert [(v.name, v.value, v.scope) for v in preview.variables] == [
        ("host", "g.example", VariableScope.GLOBAL),
        ("nope", "", VariableScope.GLOBAL),
        ("only_coll", "c1", VariableScope.COLLECTION),
    ]
    assert logger.find("variable.unresolved") == []


def test_preview_of_dynamic_variable(logger) -> None:
    preview = _resolver(logger).preview_resolution("{{$timestamp}}", _ctx())

    assert preview.unresolved == []
    assert preview.variables[0].scope is VariableScope.DYNAMIC
    assert preview.variables[0].original_text == "{{$timestamp}}"
