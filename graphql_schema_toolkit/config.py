"""Configuration management for gql-toolkit."""

from dataclasses import asdict, dataclass, field
from typing import Optional

import yaml

from . import utils
from .errors import UnsupportedSchemaError

DEFAULT_SCHEMA_CACHE_DIR = "~/.gql-toolkit/schemas"


@dataclass
class SchemaEntry:
    """One configured schema version."""

    api: str
    version: str
    id: Optional[str] = None
    url: Optional[str] = None
    path: Optional[str] = None
    label: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            self.id = utils.sanitize_name(f"{self.api}_{self.version}")
        if self.path:
            self.path = utils.expand_path(self.path)

    @property
    def display_name(self) -> str:
        return self.label or f"{self.api} ({self.version})"


def default_schemas() -> list[SchemaEntry]:
    return [SchemaEntry(api="admin", version="2025-01", label="Admin API")]


@dataclass
class Config:
    """Configuration for gql-toolkit."""

    schema_cache_dir: str = DEFAULT_SCHEMA_CACHE_DIR
    default_api: str = "admin"
    default_version: Optional[str] = None
    max_results: int = 10
    max_fields: int = 50
    request_timeout: int = 30
    log_level: str = "WARNING"
    schemas: list[SchemaEntry] = field(default_factory=default_schemas)

    def __post_init__(self):
        """Expand paths after initialization."""
        self.schema_cache_dir = utils.expand_path(self.schema_cache_dir)

    def supported_names(self) -> list[str]:
        """Human-readable list of configured schemas."""
        return [f"{s.api} ({s.version})" for s in self.schemas]

    def find_schema(self, api: str, version: Optional[str] = None) -> SchemaEntry:
        """
        Resolve a schema entry by API name and optional version.

        When no version is given, the configured default_version is preferred,
        then the last entry declared for the API.

        Raises:
            UnsupportedSchemaError: If no entry matches
        """
        matches = [s for s in self.schemas if s.api == api]
        version = version or (self.default_version if api == self.default_api else None)
        if version:
            matches = [s for s in matches if s.version == version]
        if not matches:
            name = f"{api} ({version})" if version else api
            raise UnsupportedSchemaError(name, self.supported_names())
        return matches[-1]


def get_default_config_path() -> str:
    """Get default config file path."""
    return utils.expand_path("~/.gql-toolkit/config.yaml")


def _schema_entries(raw: Optional[list]) -> list[SchemaEntry]:
    if not raw:
        return default_schemas()
    return [SchemaEntry(**item) for item in raw]


def load(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Config object with defaults for missing values.
    """
    if config_path is None:
        config_path = get_default_config_path()

    # Return defaults if config doesn't exist
    if not utils.exists(config_path):
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Merge with defaults
    return Config(
        schema_cache_dir=data.get("schema_cache_dir", DEFAULT_SCHEMA_CACHE_DIR),
        default_api=data.get("default_api", "admin"),
        default_version=data.get("default_version"),
        max_results=data.get("max_results", 10),
        max_fields=data.get("max_fields", 50),
        request_timeout=data.get("request_timeout", 30),
        log_level=str(data.get("log_level", "WARNING")).upper(),
        schemas=_schema_entries(data.get("schemas")),
    )


def create_example_config(path: Optional[str] = None) -> str:
    """Create an example config file and return its path."""
    if path is None:
        path = get_default_config_path()

    utils.ensure_dir(utils.dirname(path))

    example = {
        "schema_cache_dir": DEFAULT_SCHEMA_CACHE_DIR,
        "default_api": "admin",
        "default_version": "2025-01",
        "max_results": 10,
        "max_fields": 50,
        "request_timeout": 30,
        "log_level": "WARNING",
        "schemas": [
            {k: v for k, v in asdict(entry).items() if v is not None}
            for entry in default_schemas()
        ]
        + [
            {
                "api": "storefront",
                "version": "2025-01",
                "url": "https://example.com/schemas/storefront_2025-01.json",
                "label": "Storefront API",
            }
        ],
    }

    with open(path, "w") as f:
        yaml.dump(example, f, default_flow_style=False, sort_keys=False)

    return path
