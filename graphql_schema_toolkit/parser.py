"""GraphQL parsing and validation."""

from graphql import (
    DocumentNode,
    GraphQLError,
    GraphQLSchema,
    build_client_schema,
    parse,
    validate,
)

from . import utils
from .errors import CompileError


def build_schema_from_client(schema_json: dict) -> GraphQLSchema:
    """
    Build GraphQL schema directly from introspection JSON.

    Args:
        schema_json: Introspection result, either {"__schema": {...}} or {"data": {"__schema": {...}}}

    Returns:
        GraphQLSchema object

    Raises:
        CompileError: If the document has no __schema or graphql-core rejects it
    """
    root = utils.schema_root(schema_json)
    if root is None:
        raise CompileError("Invalid schema format: missing __schema field")

    try:
        return build_client_schema({"__schema": root})
    except (GraphQLError, TypeError) as e:
        raise CompileError(f"Could not build client schema: {e}") from e


def parse_query(source: str) -> DocumentNode:
    """
    Parse GraphQL query string into AST.

    Args:
        source: GraphQL query string

    Returns:
        DocumentNode AST

    Raises:
        GraphQLSyntaxError: If query is syntactically invalid
    """
    return parse(source)


def validate_query(doc: DocumentNode, schema: GraphQLSchema) -> list[GraphQLError]:
    """
    Validate query against schema.

    Args:
        doc: Parsed query document
        schema: GraphQL schema

    Returns:
        List of validation errors (empty if valid)
    """
    return validate(schema, doc)
