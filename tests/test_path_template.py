"""Tests for the path_template module."""

import pytest

from routegen import path_template
from routegen.errors import PathParameterMismatch
from routegen.model import Parameter, ParameterLocation, Schema, SchemaKind


def _path_param(name, kind=SchemaKind.STRING):
    return Parameter(name=name, location=ParameterLocation.PATH, schema=Schema(kind=kind), required=True)


class TestParse:
    @pytest.mark.parametrize("template", [
        "/",
        "/api/v1/plan",
        "/a/{id}",
        "/a/{id}/b/{x}",
        "/files/{name}.{ext}",
        "/{a}{b}",
        "/a/{id}/again/{id}",
    ])
    def test_reconstruct(self, template):
        assert path_template.parse(template).reconstruct() == template

    def test_parts(self):
        parsed = path_template.parse("/a/{id}/b/{x}")
        assert parsed.literals == ("/a/", "/b/", "")
        assert parsed.placeholders == ("id", "x")

    def test_empty_placeholder(self):
        with pytest.raises(PathParameterMismatch):
            path_template.parse("/a/{}")

    @pytest.mark.parametrize("template", ["/a/{id", "/a/id}", "/a/{{id}}"])
    def test_unbalanced(self, template):
        with pytest.raises(PathParameterMismatch):
            path_template.parse(template)


class TestExtractAndRewrite:
    def test_extract_order(self):
        assert path_template.extract("/a/{id}/b/{x}") == ["id", "x"]

    def test_extract_unique(self):
        assert path_template.extract("/a/{id}/b/{id}") == ["id"]

    def test_rewrite(self):
        assert path_template.rewrite("/a/{id}/b/{x}") == "/a/:id/b/:x"

    def test_rewrite_every_occurrence(self):
        assert path_template.rewrite("/a/{id}/b/{id}") == "/a/:id/b/:id"

    def test_rewrite_identity(self):
        assert path_template.rewrite("/api/v1/plan") == "/api/v1/plan"


class TestBind:
    def test_template_order(self):
        bound = path_template.bind("/a/{id}/b/{x}", [_path_param("x"), _path_param("id")])
        assert [p.name for p in bound] == ["id", "x"]

    def test_ignores_other_locations(self):
        query = Parameter(name="q", location=ParameterLocation.QUERY, schema=Schema(kind=SchemaKind.STRING))
        assert path_template.bind("/a/{id}", [query, _path_param("id")]) == [_path_param("id")]

    def test_missing_parameter(self):
        with pytest.raises(PathParameterMismatch, match="without a path parameter: x"):
            path_template.bind("/a/{id}/b/{x}", [_path_param("id")])

    def test_unused_parameter(self):
        with pytest.raises(PathParameterMismatch, match="without a placeholder: y"):
            path_template.bind("/a/{id}", [_path_param("id"), _path_param("y")])

    def test_error_carries_path(self):
        with pytest.raises(PathParameterMismatch) as info:
            path_template.bind("/a/{id}", [])
        assert info.value.path == "/a/{id}"

    def test_conflicting_declarations(self):
        with pytest.raises(PathParameterMismatch, match="twice"):
            path_template.bind("/a/{id}", [_path_param("id"), _path_param("id", SchemaKind.INTEGER)])
