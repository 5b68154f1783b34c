"""Tests for utility helpers."""

import gzip

import pytest

from graphql_schema_toolkit import utils
from tests.conftest import list_of, named, non_null


@pytest.mark.parametrize(
    "ref,expected",
    [
        (named("String"), "String"),
        (non_null(named("ID")), "ID!"),
        (list_of(named("Product", "OBJECT")), "[Product]"),
        (non_null(list_of(non_null(named("Product", "OBJECT")))), "[Product!]!"),
        (None, "null"),
    ],
)
def test_type_ref(ref, expected):
    assert utils.type_ref(ref) == expected


def test_schema_root_accepts_both_shapes():
    inner = {"types": []}
    assert utils.schema_root({"__schema": inner}) is inner
    assert utils.schema_root({"data": {"__schema": inner}}) is inner
    assert utils.schema_root({"data": None}) is None
    assert utils.schema_root([]) is None


def test_find_type_and_root_name():
    schema = {"queryType": {"name": "QueryRoot"}, "mutationType": None, "types": [{"name": "QueryRoot"}]}

    assert utils.root_type_name(schema, "queryType") == "QueryRoot"
    assert utils.root_type_name(schema, "mutationType") is None
    assert utils.find_type(schema, "QueryRoot") == {"name": "QueryRoot"}
    assert utils.find_type(schema, "Missing") is None
    assert utils.find_type(schema, None) is None


def test_is_internal_name():
    assert utils.is_internal_name("__Type")
    assert not utils.is_internal_name("_placeholder")
    assert not utils.is_internal_name(None)


def test_truncate_flattens_newlines():
    assert utils.truncate("a\nb", 10) == "a b"
    assert utils.truncate("abcdef", 3) == "abc..."


def test_sanitize_name():
    assert utils.sanitize_name("admin_2025-01") == "admin_2025-01"
    assert utils.sanitize_name("shop/admin 2025") == "shop_admin_2025"
    assert utils.sanitize_name("///") == "schema"


def test_hashes_are_stable_and_short():
    assert utils.sha256({"b": 1, "a": 2}) == utils.sha256({"a": 2, "b": 1})
    assert len(utils.sha256_text("x")) == 16


def test_write_text_creates_parents(tmp_path):
    path = tmp_path / "a" / "b" / "c.txt"
    utils.write_text(str(path), "hi")
    assert utils.read_text(str(path)) == "hi"


def test_gunzip_text():
    assert utils.gunzip_text(gzip.compress("héllo".encode("utf-8"))) == "héllo"
