"""Tests for the context_builder module."""

import pytest

from routegen.context_builder import build_context, emit_document
from routegen.errors import (
    DuplicateOperationId,
    InvalidIdentifier,
    InvalidSchema,
    PathParameterMismatch,
    UnresolvedReference,
)
from routegen.options import GeneratorOptions
from routegen.type_mapper import AliasDecl, LiteralSet, Nullable, Primitive, Record, RecordDecl
from conftest import minimal_spec

_ENUM_PATHS = {
    "/items": {
        "get": {
            "parameters": [{
                "in": "query",
                "name": "sort",
                "description": "Sort order",
                "schema": {"type": "string", "enum": ["asc", "desc"]},
            }],
        },
    },
}


class TestBuildContext:
    """Test the full context builder pipeline with the MOTIS document."""

    @pytest.fixture(autouse=True)
    def _context(self, motis_spec):
        self.ctx = build_context(motis_spec)
        self.handler = self.ctx["methods"][0]
        self.args = {a.name: a for a in self.handler.arguments}

    def test_one_route(self):
        assert self.ctx["route_count"] == 1
        [route] = self.ctx["routes"]
        assert (route.method, route.route_path) == ("get", "/api/v1/plan")

    def test_fallback_name(self):
        assert self.handler.name == "plan"

    def test_required_places(self):
        assert self.args["fromPlace"].type == Primitive("str")
        assert self.args["toPlace"].type == Primitive("str")
        assert self.args["fromPlace"].required

    def test_argument_order(self):
        assert list(self.args)[:4] == ["fromPlace", "toPlace", "date", "time"]

    def test_defaults(self):
        assert self.args["numItineraries"].default == 5
        assert self.args["timetableView"].default is False
        assert self.args["searchWindow"].parser.options == (("minimum", 0),)

    def test_optional_without_default(self):
        assert self.args["maxHours"].type == Nullable(Primitive("float"))

    def test_mode_keeps_every_enum_value(self):
        mode = self.args["mode"].type.inner
        assert "CAR_SHARING" in mode.item.values

    def test_response_is_inline_record(self):
        assert isinstance(self.handler.returns, Record)

    def test_every_component_declared_in_order(self):
        names = [d.name for d in self.ctx["declarations"]]
        assert names == [
            "Place", "RelativeDirection", "AbsoluteDirection", "StepInstruction",
            "VertexType", "FeedScopedId", "EncodedPolyline", "Itinerary", "Leg",
        ]

    def test_declaration_kinds(self):
        decls = {d.name: d for d in self.ctx["declarations"]}
        assert isinstance(decls["Leg"], RecordDecl)
        assert isinstance(decls["VertexType"], AliasDecl)
        assert isinstance(decls["VertexType"].type, LiteralSet)

    def test_metadata(self):
        assert (self.ctx["title"], self.ctx["version"]) == ("MOTIS API", "v1")
        assert isinstance(self.ctx["options"], GeneratorOptions)


class TestDocumentErrors:
    def test_duplicate_operation_id(self):
        spec = minimal_spec({
            "/a": {"get": {"operationId": "fetch"}},
            "/b": {"get": {"operationId": "fetch"}},
        })
        with pytest.raises(DuplicateOperationId) as info:
            build_context(spec)
        message = str(info.value)
        assert "GET /a" in message
        assert "GET /b" in message

    def test_duplicate_derived_id(self):
        spec = minimal_spec({
            "/v1/items": {"get": {}},
            "/v2/items": {"get": {}},
        })
        with pytest.raises(DuplicateOperationId, match="derived from the path"):
            build_context(spec)

    def test_unresolved_reference(self):
        spec = minimal_spec(
            {"/a": {"get": {
                "operationId": "a",
                "responses": {"200": {"content": {"application/json": {
                    "schema": {"$ref": "#/components/schemas/Missing"},
                }}}},
            }}},
            schemas={},
        )
        with pytest.raises(UnresolvedReference) as info:
            build_context(spec)
        assert info.value.operation_id == "a"

    def test_unresolved_reference_in_component(self):
        spec = minimal_spec({}, schemas={"A": {"type": "array", "items": {"$ref": "#/components/schemas/B"}}})
        with pytest.raises(UnresolvedReference):
            build_context(spec)

    def test_path_mismatch(self):
        spec = minimal_spec({"/a/{id}": {"get": {"operationId": "a"}}})
        with pytest.raises(PathParameterMismatch):
            build_context(spec)

    def test_component_class_name_clash(self):
        spec = minimal_spec({}, schemas={
            "feed-id": {"type": "string"},
            "FeedId": {"type": "string"},
        })
        with pytest.raises(InvalidIdentifier, match="already taken"):
            emit_document(spec)

    def test_component_named_like_interface(self):
        with pytest.raises(InvalidIdentifier):
            emit_document(minimal_spec({}, schemas={"Service": {"type": "string"}}))

    @pytest.mark.parametrize("name", ["None", "True", "False"])
    def test_component_named_like_constant(self, name):
        with pytest.raises(InvalidIdentifier, match="builtin"):
            emit_document(minimal_spec({}, schemas={name: {"type": "string"}}))

    @pytest.mark.parametrize("name", ["str", "int", "float", "bool", "list", "dict"])
    def test_component_named_like_builtin_type(self, name):
        with pytest.raises(InvalidIdentifier, match="builtin"):
            emit_document(minimal_spec({}, schemas={name: {"type": "object"}}))

    def test_self_alias_component(self):
        spec = minimal_spec({}, schemas={"A": {"$ref": "#/components/schemas/A"}})
        with pytest.raises(InvalidSchema, match="circular"):
            emit_document(spec)

    def test_alias_cycle_between_components(self):
        spec = minimal_spec({}, schemas={
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"$ref": "#/components/schemas/A"},
        })
        with pytest.raises(InvalidSchema, match="circular schema alias"):
            emit_document(spec)


class TestEmitDocument:
    """Generated text sections."""

    def test_two_variant_enum(self):
        module = emit_document(minimal_spec(_ENUM_PATHS))
        assert 'sort: Literal["asc", "desc"] | None,' in module.interface
        assert 'rt.query(request, "sort", rt.one_of("asc", "desc")),' in module.registration
        assert "from typing import Any, Literal, Protocol" in module.source

    def test_motis_interface(self, motis_spec):
        module = emit_document(motis_spec)
        assert module.interface.count("    def ") == 1
        assert "    def plan(\n        self,\n        fromPlace: str,\n        toPlace: str,\n" in module.interface
        assert ") -> PlanResponse:" in module.interface

    def test_motis_registration(self, motis_spec):
        registration = emit_document(motis_spec).registration
        assert 'app.get("/api/v1/plan", _handle_plan)' in registration
        assert (
            '            rt.query(request, "fromPlace", rt.string(), required=True),\n'
            '            rt.query(request, "toPlace", rt.string(), required=True),\n'
        ) in registration
        assert 'rt.query(request, "searchWindow", rt.integer(minimum=0), default=7200),' in registration
        assert 'rt.query(request, "timetableView", rt.boolean(), default=False),' in registration

    def test_motis_models(self, motis_spec):
        models = emit_document(motis_spec).models
        assert "@dataclass\nclass Leg:\n" in models
        assert '    from_: Place | None = field(default=None, metadata={"name": "from"})' in models
        assert 'RelativeDirection: TypeAlias = Literal["DEPART", ' in models
        assert '    legs: "list[Leg]"' not in models
        assert "    legs: list[Leg] | None = None" in models
        assert "class PlanResponse:" in models
        assert '    """EncodedPolylineBean"""' in models

    def test_float_enum_lists_values(self):
        spec = minimal_spec({}, schemas={
            "Factor": {"type": "number", "enum": [0.5, 1.5], "description": "Speed factor"},
            "Trip": {
                "type": "object",
                "required": ["factor"],
                "properties": {
                    "factor": {"type": "number", "enum": [0.5, 1.5]},
                    "backup": {"type": "number", "enum": [2.5]},
                },
            },
        })
        models = emit_document(spec).models
        assert "# Speed factor; one of 0.5, 1.5\nFactor: TypeAlias = float" in models
        assert "    factor: float  # one of 0.5, 1.5" in models
        assert "    backup: float | None = None  # one of 2.5" in models

    def test_options(self):
        options = GeneratorOptions(interface_name="Handlers", register_name="install", runtime_module="app.rt")
        module = emit_document(minimal_spec(_ENUM_PATHS), options)
        assert "class Handlers(Protocol):" in module.interface
        assert "def install(" in module.registration
        assert "import app.rt as rt" in module.source

    def test_empty_document(self):
        module = emit_document(minimal_spec({}))
        assert module.models == ""
        assert "class Service(Protocol):" in module.source
        assert "from dataclasses" not in module.source
