"""Policy for telling real operation defects from schema reconstruction noise."""

import re
from typing import Callable, Iterable

from graphql import GraphQLError, GraphQLSchema

UNKNOWN_TYPE_RE = re.compile(r"Unknown type '([_A-Za-z][_0-9A-Za-z]*)'|Unknown type \"([_A-Za-z][_0-9A-Za-z]*)\"")

# (error, schema, type names reported unknown by any error in the same run)
SignificancePolicy = Callable[[GraphQLError, GraphQLSchema, set], bool]


def unknown_type_names(errors: Iterable[GraphQLError]) -> set[str]:
    """Type names reported as unknown by the validator."""
    names = set()
    for error in errors:
        for match in UNKNOWN_TYPE_RE.finditer(error.message):
            names.add(match.group(1) or match.group(2))
    return names


def is_significant(error: GraphQLError, schema: GraphQLSchema, unknown_types: set) -> bool:
    """
    Decide whether a validation error points at a real defect.

    Ignored: unknown type references and anything mentioning scalars. Field
    errors are always kept; the validator only reports them on parent types
    the schema defines.
    """
    message = error.message
    if "Unknown type" in message:
        return False
    if "scalar" in message.lower():
        return False
    return True


def significant_errors(
    errors: list[GraphQLError],
    schema: GraphQLSchema,
    policy: SignificancePolicy = is_significant,
) -> list[GraphQLError]:
    """Keep only the errors the policy considers significant."""
    unknown = unknown_type_names(errors)
    return [e for e in errors if policy(e, schema, unknown)]
