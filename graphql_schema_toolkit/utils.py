"""Utility functions for schema loading, compiling and searching."""

import gzip
import hashlib
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from graphql import get_introspection_query

# Standard GraphQL introspection query
INTROSPECTION_QUERY = get_introspection_query(descriptions=True)

BUILTIN_SCALARS = ("String", "Int", "Float", "Boolean", "ID")


# File system utilities
def ensure_dir(path: str) -> None:
    """Ensure directory exists, creating it if necessary."""
    Path(path).mkdir(parents=True, exist_ok=True)


def exists(path: str) -> bool:
    """Check if file exists."""
    return Path(path).exists()


def dirname(path: str) -> str:
    """Get directory name from path."""
    return str(Path(path).parent)


def join(*parts: str) -> str:
    """Join path components."""
    return str(Path(*parts))


def expand_path(path: str) -> str:
    """Expand ~ in path."""
    return str(Path(path).expanduser())


# File I/O
def read_text(path: str) -> str:
    """Read text file."""
    return Path(path).read_text(encoding="utf-8")


def write_text(path: str, text: str) -> None:
    """Write text file, creating the parent directory first."""
    ensure_dir(dirname(path))
    Path(path).write_text(text, encoding="utf-8")


def read_bytes(path: str) -> bytes:
    """Read binary file."""
    return Path(path).read_bytes()


def to_json(data: Any) -> str:
    """Convert data to JSON string."""
    return json.dumps(data, indent=2)


def gunzip_text(data: bytes) -> str:
    """Decompress gzip bytes into UTF-8 text."""
    return gzip.decompress(data).decode("utf-8")


# Hashing & timestamps
def now_iso() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def sha256(obj: Any) -> str:
    """Calculate SHA-256 hash of object."""
    s = json.dumps(obj, sort_keys=True)
    return sha256_text(s)


def sha256_text(text: str) -> str:
    """Calculate SHA-256 hash of a string."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def sanitize_name(name: str) -> str:
    """Make a schema id safe for use as a file name."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") or "schema"


# Introspection helpers
def schema_root(doc: Any) -> Optional[dict]:
    """
    Locate the __schema object of an introspection document.

    Args:
        doc: Introspection result, either {"__schema": {...}} or {"data": {"__schema": {...}}}

    Returns:
        The __schema dict, or None if the document has none
    """
    if not isinstance(doc, dict):
        return None
    if isinstance(doc.get("__schema"), dict):
        return doc["__schema"]
    data = doc.get("data")
    if isinstance(data, dict) and isinstance(data.get("__schema"), dict):
        return data["__schema"]
    return None


def is_internal_name(name: Optional[str]) -> bool:
    """Names starting with __ belong to the introspection system."""
    return bool(name) and name.startswith("__")


def type_ref(type_json: Optional[dict]) -> str:
    """Render an introspection type reference, e.g. [String!]!."""
    if not type_json:
        return "null"
    kind = type_json.get("kind")
    if kind == "NON_NULL":
        return f"{type_ref(type_json.get('ofType'))}!"
    if kind == "LIST":
        return f"[{type_ref(type_json.get('ofType'))}]"
    return type_json.get("name") or "null"


def root_type_name(schema: dict, key: str) -> Optional[str]:
    """Get the name of a root operation type (queryType, mutationType, ...)."""
    ref = schema.get(key)
    if isinstance(ref, dict):
        return ref.get("name")
    return None


def find_type(schema: dict, name: Optional[str]) -> Optional[dict]:
    """Find a type descriptor by name."""
    if not name:
        return None
    for t in schema.get("types") or []:
        if t.get("name") == name:
            return t
    return None


def truncate(text: str, limit: int) -> str:
    """Flatten newlines and cap text at limit characters."""
    flat = text.replace("\n", " ")
    if len(flat) > limit:
        return flat[:limit] + "..."
    return flat
