"""Tests for single and batch operation validation."""

import json

import pytest

from graphql_schema_toolkit import compiler, parser
from graphql_schema_toolkit.errors import LoadError
from graphql_schema_toolkit.validation import (
    NO_OPERATION_DETAIL,
    ValidationOutcome,
    validate_codeblocks,
    validate_operation,
    validate_operations,
    validate_with_client_schema,
)
from tests.conftest import tmp_schema_path


@pytest.mark.asyncio
async def test_valid_query_in_code_block(cfg, stored_schema):
    response = await validate_operation("```graphql\nquery { shop { name } }\n```", "admin", cfg)

    assert response.result == ValidationOutcome.SUCCESS
    assert response.detail == "Successfully validated GraphQL query against admin (2025-01) schema."


@pytest.mark.asyncio
async def test_valid_mutation_reports_kind(cfg, stored_schema):
    text = 'mutation { productCreate(input: {title: "Hat"}) { id title } }'
    response = await validate_operation(text, "admin", cfg)

    assert response.result == ValidationOutcome.SUCCESS
    assert "GraphQL mutation" in response.detail


@pytest.mark.asyncio
async def test_unknown_field_fails(cfg, stored_schema):
    response = await validate_operation("query { shop { nonExistentField } }", "admin", cfg)

    assert response.result == ValidationOutcome.FAILED
    assert response.detail.startswith("GraphQL validation errors: ")
    assert "Cannot query field" in response.detail
    assert "nonExistentField" in response.detail


@pytest.mark.asyncio
async def test_syntax_error_fails_with_location(cfg, stored_schema):
    response = await validate_operation("query { shop { name }", "admin", cfg)

    assert response.result == ValidationOutcome.FAILED
    assert response.detail.startswith("GraphQL syntax error: ")
    assert "line 1" in response.detail


@pytest.mark.asyncio
async def test_unterminated_fence_is_a_syntax_error(cfg, stored_schema):
    response = await validate_operation("```graphql\nquery { shop { name } }", "admin", cfg)

    assert response.result == ValidationOutcome.FAILED
    assert response.detail.startswith("GraphQL syntax error: ")


@pytest.mark.asyncio
async def test_bare_and_fenced_operations_agree(cfg, stored_schema):
    bare = await validate_operation("{ shop { name } }", "admin", cfg)
    fenced = await validate_operation("```graphql\n{ shop { name } }\n```", "admin", cfg)
    assert bare == fenced


@pytest.mark.asyncio
async def test_syntax_error_reported_before_schema_is_loaded(cfg):
    response = await validate_operation("query {", "admin", cfg)
    assert response.result == ValidationOutcome.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "```graphql\n```"])
async def test_empty_input_is_skipped(cfg, text):
    response = await validate_operation(text, "admin", cfg)

    assert response.result == ValidationOutcome.SKIPPED
    assert response.detail == NO_OPERATION_DETAIL


@pytest.mark.asyncio
async def test_unsupported_schema_name(cfg):
    response = await validate_operation("{ shop { name } }", "partners", cfg)

    assert response.result == ValidationOutcome.FAILED
    assert response.detail == "Unsupported schema name: partners. Currently supported schemas: admin (2025-01)"


@pytest.mark.asyncio
async def test_missing_artifact_raises(cfg):
    with pytest.raises(LoadError):
        await validate_operation("{ shop { name } }", "admin", cfg)


@pytest.mark.asyncio
async def test_artifact_without_types_raises(cfg):
    path = tmp_schema_path(cfg)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"data": {"__schema": {"queryType": {"name": "QueryRoot"}}}}), encoding="utf-8")

    with pytest.raises(LoadError, match="__schema.types"):
        await validate_operation("{ shop { name } }", "admin", cfg)


@pytest.mark.asyncio
async def test_shared_cache_compiles_once(cfg, stored_schema):
    cache = compiler.SchemaCache()

    first = await validate_operation("{ shop { name } }", "admin", cfg, cache)
    second = await validate_operation("{ product(id: \"1\") { title } }", "admin", cfg, cache)

    assert first.result == second.result == ValidationOutcome.SUCCESS
    assert len(cache) == 1


# ---------------------------------------------------------------------------
# Client-schema variant
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_client_schema_clean_operation(cfg, stored_schema):
    response = await validate_with_client_schema("{ shop { name } }", "admin", cfg)

    assert response.result == ValidationOutcome.SUCCESS
    assert response.detail == "Operation is valid against admin (2025-01) schema."


@pytest.mark.asyncio
async def test_client_schema_ignores_unknown_types(cfg, stored_schema):
    text = "query($id: Money!) { product(id: $id) { title } }"
    response = await validate_with_client_schema(text, "admin", cfg)

    assert response.result == ValidationOutcome.SUCCESS
    assert response.detail == "Operation is likely valid. Some unknown types were detected but are being ignored."


@pytest.mark.asyncio
async def test_client_schema_still_catches_real_defects(cfg, stored_schema):
    text = "query($id: Money!) { product(id: $id) { title nonExistentField } }"
    response = await validate_with_client_schema(text, "admin", cfg)

    assert response.result == ValidationOutcome.FAILED
    assert "nonExistentField" in response.detail
    assert "Money" not in response.detail


@pytest.mark.asyncio
async def test_client_schema_custom_policy(cfg, stored_schema):
    text = "query($id: Money!) { product(id: $id) { title } }"
    response = await validate_with_client_schema(text, "admin", cfg, policy=lambda e, s, u: True)

    assert response.result == ValidationOutcome.FAILED
    assert "Unknown type" in response.detail
    assert "Money" in response.detail


@pytest.mark.asyncio
async def test_client_schema_with_cache(cfg, stored_schema):
    cache = compiler.SchemaCache(parser.build_schema_from_client)
    response = await validate_with_client_schema("{ shop { name } }", "admin", cfg, cache)

    assert response.result == ValidationOutcome.SUCCESS
    assert ("admin", "2025-01") in cache


@pytest.mark.asyncio
async def test_variants_sharing_a_cache_use_their_own_schemas(cfg, stored_schema):
    cache = compiler.SchemaCache()

    compiled = await validate_operation("{ shop { name } }", "admin", cfg, cache)
    client = await validate_with_client_schema("{ shop { name } }", "admin", cfg, cache)

    assert compiled.result == client.result == ValidationOutcome.SUCCESS
    assert ("admin", "2025-01", compiler.compile_schema) in cache
    assert ("admin", "2025-01", parser.build_schema_from_client) in cache
    assert len(cache) == 2


# ---------------------------------------------------------------------------
# Batch validation
# ---------------------------------------------------------------------------

GUIDE = """\
First fetch the shop:

```graphql
{ shop { name } }
```

This one is wrong:

```graphql
{ shop { price } }
```

And a mutation:

```graphql
mutation { productDelete(id: "1") }
```
"""


@pytest.mark.asyncio
async def test_batch_keeps_block_order(cfg, stored_schema):
    result = await validate_operations(GUIDE, "admin", cfg, compiler.SchemaCache())

    assert [c.result for c in result.checks] == [
        ValidationOutcome.SUCCESS,
        ValidationOutcome.FAILED,
        ValidationOutcome.SUCCESS,
    ]
    assert result.valid is False
    assert "price" in result.checks[1].detail


@pytest.mark.asyncio
async def test_batch_all_valid(cfg, stored_schema):
    blocks = ["{ shop { name } }", "{ products(first: 1) { id } }"]
    result = await validate_codeblocks(blocks, "admin", cfg, compiler.SchemaCache())

    assert result.valid is True
    assert len(result.checks) == 2


@pytest.mark.asyncio
async def test_batch_skipped_block_makes_batch_invalid(cfg, stored_schema):
    result = await validate_codeblocks(["{ shop { name } }", "```graphql\n```"], "admin", cfg)

    assert [c.result for c in result.checks] == [ValidationOutcome.SUCCESS, ValidationOutcome.SKIPPED]
    assert result.valid is False


@pytest.mark.asyncio
async def test_batch_without_operations(cfg):
    result = await validate_operations("Just prose, no code.\n\n```json\n{}\n```", "admin", cfg)

    assert result.valid is False
    assert len(result.checks) == 1
    assert result.checks[0].result == ValidationOutcome.SKIPPED


@pytest.mark.asyncio
async def test_empty_batch_is_not_valid(cfg):
    result = await validate_codeblocks([], "admin", cfg)
    assert result.valid is False
    assert result.checks == []


@pytest.mark.asyncio
async def test_batch_client_schema(cfg, stored_schema):
    blocks = ["query($id: Money!) { product(id: $id) { title } }", "{ shop { name } }"]
    cache = compiler.SchemaCache(parser.build_schema_from_client)
    result = await validate_codeblocks(blocks, "admin", cfg, cache, client_schema=True)

    assert result.valid is True
    assert result.checks[0].detail.startswith("Operation is likely valid")
