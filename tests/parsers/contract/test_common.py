import pytest

from celine.datamodel.parsers.contract import normalize_servers, resolve_field, resolve_ref


@pytest.mark.parametrize(
    "servers",
    [
        [{"server": "prod", "type": "postgres"}],
        [{"name": "prod", "type": "postgres"}],
        {"prod": {"type": "postgres"}},
    ],
)
def test_normalize_servers(servers):
    assert normalize_servers(servers) == [{"name": "prod", "type": "postgres"}]


def test_normalize_servers_fills_missing_names():
    assert normalize_servers([{"type": "kafka"}, {"host": "x"}]) == [
        {"name": "kafka_server", "type": "kafka"},
        {"name": "server", "host": "x"},
    ]


def test_normalize_servers_ignores_junk():
    assert normalize_servers(None) == []
    assert normalize_servers("prod") == []
    assert normalize_servers(["prod", {"server": "a"}]) == [{"name": "a"}]


def test_resolve_ref():
    doc = {"definitions": {"a/b": {"type": "x"}, "list": [{"type": "y"}]}}
    assert resolve_ref(doc, "#/definitions/a~1b") == {"type": "x"}
    assert resolve_ref(doc, "#/definitions/list/0") == {"type": "y"}
    assert resolve_ref(doc, "#/definitions/list/3") is None
    assert resolve_ref(doc, "other.yaml#/x") is None


def test_resolve_field_local_keys_win():
    doc = {"definitions": {"Id": {"type": "string", "description": "Shared id"}}}
    field, warning = resolve_field(doc, {"$ref": "#/definitions/Id", "description": "Local"})

    assert warning is None
    assert field == {"description": "Local", "type": "string"}


def test_resolve_field_follows_chains():
    doc = {
        "definitions": {
            "A": {"$ref": "#/definitions/B", "description": "from A"},
            "B": {"type": "integer"},
        }
    }
    field, warning = resolve_field(doc, {"$ref": "#/definitions/A"})
    assert warning is None
    assert field == {"description": "from A", "type": "integer"}


def test_resolve_field_unresolved():
    field, warning = resolve_field({}, {"$ref": "#/definitions/Missing", "required": True})
    assert "Unresolved" in warning
    assert field["$ref"] == "#/definitions/Missing"


def test_resolve_field_cycle():
    doc = {
        "definitions": {
            "A": {"$ref": "#/definitions/B"},
            "B": {"$ref": "#/definitions/A"},
        }
    }
    field, warning = resolve_field(doc, {"$ref": "#/definitions/A"})
    assert "Circular" in warning
    assert field == {"$ref": "#/definitions/A"}


def test_resolve_field_without_ref_is_untouched():
    field_def = {"type": "string"}
    assert resolve_field({}, field_def) == (field_def, None)
