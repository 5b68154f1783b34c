"""Shared fixtures: introspection documents and configs pointing at tmp dirs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pytest
from graphql import build_schema, introspection_from_schema

from graphql_schema_toolkit.config import Config, SchemaEntry

STORE_SDL = '''
directive @inContext(country: String) on QUERY | MUTATION

interface Node {
  id: ID!
}

scalar URL
scalar DateTime

enum ProductStatus {
  ACTIVE
  ARCHIVED
  DRAFT @deprecated(reason: "Use ARCHIVED")
}

input ProductInput {
  title: String!
  status: ProductStatus = ACTIVE
}

"""The shop the request is made for."""
type Shop implements Node {
  id: ID!
  name: String
  url: URL
}

type Product implements Node {
  id: ID!
  title: String!
  status: ProductStatus
  createdAt: DateTime
  variants(first: Int = 10): [ProductVariant!]!
}

type ProductVariant implements Node {
  id: ID!
  price: String
}

union SearchResult = Product | Shop

type QueryRoot {
  shop: Shop!
  product(id: ID!): Product
  products(first: Int): [Product!]!
  node(id: ID!): Node
  search(term: String!): [SearchResult!]!
}

type Mutation {
  productCreate(input: ProductInput!): Product
  productDelete(id: ID!): ID
}

schema {
  query: QueryRoot
  mutation: Mutation
}
'''


def named(name: str, kind: str = "SCALAR") -> dict[str, Any]:
    return {"kind": kind, "name": name, "ofType": None}


def non_null(inner: dict[str, Any]) -> dict[str, Any]:
    return {"kind": "NON_NULL", "name": None, "ofType": inner}


def list_of(inner: dict[str, Any]) -> dict[str, Any]:
    return {"kind": "LIST", "name": None, "ofType": inner}


def field(name: str, type_ref: dict[str, Any], args: Optional[list] = None, **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "description": extra.pop("description", None),
        "args": args or [],
        "type": type_ref,
        "isDeprecated": extra.pop("isDeprecated", False),
        "deprecationReason": extra.pop("deprecationReason", None),
        **extra,
    }


def arg(name: str, type_ref: dict[str, Any], default: Optional[str] = None) -> dict[str, Any]:
    return {"name": name, "description": None, "type": type_ref, "defaultValue": default}


def object_type(name: str, fields: list, kind: str = "OBJECT", **extra: Any) -> dict[str, Any]:
    return {
        "kind": kind,
        "name": name,
        "description": extra.pop("description", None),
        "fields": fields,
        "inputFields": extra.pop("inputFields", None),
        "interfaces": extra.pop("interfaces", []),
        "enumValues": extra.pop("enumValues", None),
        "possibleTypes": extra.pop("possibleTypes", None),
    }


def make_doc(types: list, query: Optional[str] = "QueryRoot", mutation: Optional[str] = None) -> dict[str, Any]:
    """Wrap hand-built type descriptors as an introspection result."""
    return {
        "data": {
            "__schema": {
                "queryType": {"name": query} if query else None,
                "mutationType": {"name": mutation} if mutation else None,
                "subscriptionType": None,
                "types": types,
                "directives": [],
            }
        }
    }


@pytest.fixture
def store_doc() -> dict[str, Any]:
    """Introspection result of STORE_SDL, as a GraphQL server would return it."""
    return {"data": introspection_from_schema(build_schema(STORE_SDL))}


@pytest.fixture
def product_doc() -> dict[str, Any]:
    """Small hand-built document for search ordering tests."""
    return make_doc(
        [
            object_type("QueryRoot", [
                field("productVariant", named("ProductVariant", "OBJECT")),
                field("product", named("Product", "OBJECT")),
                field("shop", named("Shop", "OBJECT")),
            ]),
            object_type("ProductVariant", [field("id", named("ID"))]),
            object_type("Product", [field("id", named("ID"))]),
            object_type("ProductImage", [field("url", named("String"))]),
            object_type("Shop", [field("name", named("String"))]),
            object_type("__Type", [field("name", named("String"))]),
        ]
    )


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(
        schema_cache_dir=str(tmp_path / "schemas"),
        schemas=[SchemaEntry(api="admin", version="2025-01")],
    )


@pytest.fixture
def stored_schema(cfg, store_doc) -> str:
    """Write the store introspection document where cfg expects it."""
    path = tmp_schema_path(cfg)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(store_doc), encoding="utf-8")
    return str(path)


def tmp_schema_path(cfg: Config) -> Path:
    return Path(cfg.schema_cache_dir) / "admin_2025-01.json"
