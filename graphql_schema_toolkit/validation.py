"""Validation of GraphQL operations against a configured schema."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from graphql import GraphQLSchema
from graphql.error import GraphQLSyntaxError

from . import compiler, extractor, inspector, parser
from . import config as config_mod
from .config import Config, SchemaEntry
from .errors import UnsupportedSchemaError
from .significance import SignificancePolicy, is_significant, significant_errors

logger = logging.getLogger(__name__)


class ValidationOutcome(str, Enum):
    """Result of validating one operation."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ValidationResponse:
    """Outcome plus a human-readable explanation."""

    result: ValidationOutcome
    detail: str


@dataclass
class BatchValidationResult:
    """Overall verdict for a batch; valid only when every check succeeded."""

    valid: bool
    checks: list[ValidationResponse] = field(default_factory=list)


NO_OPERATION_DETAIL = "No GraphQL operation found in the provided markdown code block."


async def validate_operation(
    text: str,
    schema_name: str,
    cfg: Optional[Config] = None,
    cache: Optional[compiler.SchemaCache] = None,
) -> ValidationResponse:
    """
    Validate one operation against a schema compiled from introspection SDL.

    Args:
        text: Markdown code block or raw operation text
        schema_name: API name of a configured schema (e.g. "admin")
        cfg: Configuration; loaded from disk when omitted
        cache: Compiled-schema cache; each call compiles afresh when omitted

    Returns:
        ValidationResponse

    Raises:
        LoadError: If the schema artifact cannot be loaded
        CompileError: If the schema cannot be compiled
    """
    cfg = cfg or config_mod.load()

    entry, operation, early = _resolve_and_extract(text, schema_name, cfg)
    if early is not None:
        return early

    try:
        doc = parser.parse_query(operation)
    except GraphQLSyntaxError as e:
        return ValidationResponse(ValidationOutcome.FAILED, f"GraphQL syntax error: {_describe_syntax_error(e)}")

    schema = await _schema_for(entry, cfg, cache, compiler.compile_schema)
    errors = parser.validate_query(doc, schema)
    logger.debug("Validated %s: %d error(s)", inspector.operation_names(doc), len(errors))

    if errors:
        return ValidationResponse(
            ValidationOutcome.FAILED,
            f"GraphQL validation errors: {'; '.join(e.message for e in errors)}",
        )

    return ValidationResponse(
        ValidationOutcome.SUCCESS,
        f"Successfully validated GraphQL {inspector.operation_kind(doc)} against {entry.display_name} schema.",
    )


async def validate_with_client_schema(
    text: str,
    schema_name: str,
    cfg: Optional[Config] = None,
    cache: Optional[compiler.SchemaCache] = None,
    policy: SignificancePolicy = is_significant,
) -> ValidationResponse:
    """
    Validate one operation against a schema built directly from introspection.

    Errors the significance policy attributes to lossy schema data are
    dropped; the operation fails only on the remaining ones. A shared cache
    keeps this variant's schemas apart from those of validate_operation.
    """
    cfg = cfg or config_mod.load()

    entry, operation, early = _resolve_and_extract(text, schema_name, cfg)
    if early is not None:
        return early

    try:
        doc = parser.parse_query(operation)
    except GraphQLSyntaxError as e:
        return ValidationResponse(ValidationOutcome.FAILED, f"GraphQL syntax error: {_describe_syntax_error(e)}")

    schema = await _schema_for(entry, cfg, cache, parser.build_schema_from_client)
    errors = parser.validate_query(doc, schema)
    significant = significant_errors(errors, schema, policy)

    if significant:
        return ValidationResponse(
            ValidationOutcome.FAILED,
            f"GraphQL validation errors: {'; '.join(e.message for e in significant)}",
        )

    if errors:
        logger.info("Ignored %d validation error(s) caused by unknown types", len(errors))
        return ValidationResponse(
            ValidationOutcome.SUCCESS,
            "Operation is likely valid. Some unknown types were detected but are being ignored.",
        )

    return ValidationResponse(ValidationOutcome.SUCCESS, f"Operation is valid against {entry.display_name} schema.")


async def validate_codeblocks(
    blocks: list[str],
    schema_name: str,
    cfg: Optional[Config] = None,
    cache: Optional[compiler.SchemaCache] = None,
    client_schema: bool = False,
) -> BatchValidationResult:
    """
    Validate several code blocks concurrently.

    Results keep the order of the input blocks.
    """
    cfg = cfg or config_mod.load()
    validate = validate_with_client_schema if client_schema else validate_operation
    checks = await asyncio.gather(*(validate(block, schema_name, cfg, cache) for block in blocks))
    return BatchValidationResult(
        valid=bool(checks) and all(c.result == ValidationOutcome.SUCCESS for c in checks),
        checks=list(checks),
    )


async def validate_operations(
    text: str,
    schema_name: str,
    cfg: Optional[Config] = None,
    cache: Optional[compiler.SchemaCache] = None,
    client_schema: bool = False,
) -> BatchValidationResult:
    """
    Extract every operation from free-form text and validate each one.

    Text with no operation yields a single SKIPPED check.
    """
    blocks = extractor.extract_operations(text)
    if not blocks:
        return BatchValidationResult(
            valid=False,
            checks=[ValidationResponse(ValidationOutcome.SKIPPED, NO_OPERATION_DETAIL)],
        )
    return await validate_codeblocks(blocks, schema_name, cfg, cache, client_schema)


def _resolve_and_extract(
    text: str, schema_name: str, cfg: Config
) -> tuple[Optional[SchemaEntry], Optional[str], Optional[ValidationResponse]]:
    try:
        entry = cfg.find_schema(schema_name)
    except UnsupportedSchemaError as e:
        return None, None, ValidationResponse(ValidationOutcome.FAILED, str(e))

    operation = extractor.extract_operation(text)
    if operation is None:
        return entry, None, ValidationResponse(ValidationOutcome.SKIPPED, NO_OPERATION_DETAIL)

    return entry, operation, None


def _describe_syntax_error(error: GraphQLSyntaxError) -> str:
    if error.locations:
        loc = error.locations[0]
        return f"{error.message} (line {loc.line}, column {loc.column})"
    return error.message


async def _schema_for(
    entry: SchemaEntry,
    cfg: Config,
    cache: Optional[compiler.SchemaCache],
    builder,
) -> GraphQLSchema:
    if cache is not None:
        return await cache.get(entry, cfg, builder)
    return await compiler.build_for_entry(entry, cfg, builder)
