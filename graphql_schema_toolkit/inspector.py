"""Inspection of parsed operation documents."""

from graphql import DocumentNode, OperationDefinitionNode


def iter_operations(doc: DocumentNode):
    """Iterate over all operations in document."""
    for definition in doc.definitions:
        if isinstance(definition, OperationDefinitionNode):
            yield definition


def operation_kind(doc: DocumentNode) -> str:
    """
    Root kind of the document's first definition.

    Returns:
        "query", "mutation" or "subscription"; "operation" when the first
        definition is not an operation (e.g. a fragment)
    """
    if doc.definitions:
        first = doc.definitions[0]
        if isinstance(first, OperationDefinitionNode):
            return first.operation.value
    return "operation"


def operation_names(doc: DocumentNode) -> list[str]:
    """Names of the document's operations, "anonymous" for unnamed ones."""
    return [op.name.value if op.name else "anonymous" for op in iter_operations(doc)]
