"""Exception types for graphql-schema-toolkit."""


class ToolkitError(Exception):
    """Base class for toolkit errors."""


class LoadError(ToolkitError):
    """Schema artifact is missing, unreadable or malformed."""


class CompileError(ToolkitError):
    """Introspection data could not be turned into an executable schema."""


class UnsupportedSchemaError(ToolkitError):
    """Caller asked for a schema that is not configured."""

    def __init__(self, name: str, supported: list[str]):
        self.name = name
        self.supported = supported
        super().__init__(
            f"Unsupported schema name: {name}. Currently supported schemas: {', '.join(supported) or 'none'}"
        )
