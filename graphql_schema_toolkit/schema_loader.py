"""Schema loading and caching."""

import asyncio
import json
import logging
import zlib
from dataclasses import dataclass
from typing import Optional

import requests

from . import utils
from .config import Config, SchemaEntry
from .errors import LoadError

logger = logging.getLogger(__name__)


@dataclass
class SchemaLocator:
    """Where to find one schema version: a JSON file, its .gz sibling, a URL."""

    path: str
    url: Optional[str] = None

    @property
    def gz_path(self) -> str:
        return f"{self.path}.gz"


@dataclass
class SchemaProfile:
    """Schema profile with metadata."""

    url: str
    fetched_at: str
    hash: str
    path: str


def locator_for(entry: SchemaEntry, cfg: Config) -> SchemaLocator:
    """
    Get the locator for a configured schema.

    Args:
        entry: Schema entry
        cfg: Configuration object

    Returns:
        SchemaLocator pointing at <schema_cache_dir>/<id>.json unless the entry overrides the path
    """
    path = entry.path or cache_path_for(entry, cfg)
    return SchemaLocator(path=path, url=entry.url)


def cache_path_for(entry: SchemaEntry, cfg: Config) -> str:
    """Get cache path for a schema entry."""
    return utils.join(cfg.schema_cache_dir, f"{utils.sanitize_name(entry.id)}.json")


def load_schema_text(locator: SchemaLocator, refresh: bool = False, timeout: int = 30) -> str:
    """
    Load introspection JSON text for one schema version.

    Resolution order: uncompressed file, compressed .gz file (decompressed and
    written back next to it), remote URL (fetched and written to locator.path).
    With refresh=True the remote URL is tried first and a failed fetch falls
    back to the files on disk.

    Args:
        locator: Where the schema lives
        refresh: Fetch from the remote URL even if a file exists
        timeout: HTTP timeout in seconds

    Returns:
        Raw JSON text

    Raises:
        LoadError: If no artifact exists and no remote source is configured
    """
    if refresh and locator.url:
        try:
            return _fetch_and_persist(locator, timeout)
        except LoadError as e:
            logger.warning("Refresh of %s failed, using local artifact: %s", locator.url, e)

    if utils.exists(locator.path):
        logger.info("Reading cached schema from %s", locator.path)
        try:
            return utils.read_text(locator.path)
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Could not read schema file {locator.path}: {e}") from e

    if utils.exists(locator.gz_path):
        return _decompress_and_persist(locator)

    if locator.url:
        return _fetch_and_persist(locator, timeout)

    raise LoadError(
        f"Schema not found: neither {locator.path} nor {locator.gz_path} exists and no remote URL is configured"
    )


async def aload_schema_text(locator: SchemaLocator, refresh: bool = False, timeout: int = 30) -> str:
    """Async variant of load_schema_text; disk and network I/O run in a worker thread."""
    return await asyncio.to_thread(load_schema_text, locator, refresh, timeout)


def parse_introspection(text: str, source: str = "schema") -> dict:
    """
    Parse introspection JSON text.

    Raises:
        LoadError: If the text is not JSON or has no __schema.types
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON in {source}: {e}") from e

    root = utils.schema_root(doc)
    if root is None or not isinstance(root.get("types"), list):
        raise LoadError(f"Invalid schema format in {source}: missing __schema.types")
    return doc


def load_introspection(locator: SchemaLocator, refresh: bool = False, timeout: int = 30) -> dict:
    """Load and parse the introspection document for a locator."""
    return parse_introspection(load_schema_text(locator, refresh, timeout), locator.path)


async def aload_introspection(locator: SchemaLocator, refresh: bool = False, timeout: int = 30) -> dict:
    """Async variant of load_introspection."""
    text = await aload_schema_text(locator, refresh, timeout)
    return parse_introspection(text, locator.path)


def fetch_schema_text(url: str, timeout: int = 30) -> str:
    """
    Download a published introspection JSON file.

    Raises:
        LoadError: On network failure or non-2xx status
    """
    logger.info("Fetching schema from %s", url)
    headers = {"Accept": "application/json", "Accept-Encoding": "gzip"}
    try:
        resp = requests.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise LoadError(f"Schema fetch from {url} failed: {e}") from e

    if not resp.ok:
        raise LoadError(f"Schema fetch from {url} failed with status {resp.status_code}")

    return resp.text


def introspect(graphql_url: str, token: Optional[str] = None, timeout: int = 30) -> dict:
    """
    Introspect a live GraphQL endpoint via HTTP.

    Args:
        graphql_url: GraphQL endpoint URL
        token: Optional bearer token for authentication
        timeout: HTTP timeout in seconds

    Returns:
        Introspection result wrapped as {"data": {"__schema": ...}}

    Raises:
        LoadError: If introspection fails
    """
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        resp = requests.post(
            graphql_url, json={"query": utils.INTROSPECTION_QUERY}, headers=headers, timeout=timeout
        )
    except requests.RequestException as e:
        raise LoadError(f"Introspection of {graphql_url} failed: {e}") from e

    if resp.status_code != 200:
        raise LoadError(f"Introspection failed with status {resp.status_code}")

    try:
        payload = resp.json()
    except ValueError as e:
        raise LoadError(f"Introspection of {graphql_url} returned non-JSON response") from e

    if payload.get("errors"):
        raise LoadError(f"Introspection errors: {payload['errors']}")

    return {"data": payload["data"]}


def pull_schema(
    entry: SchemaEntry,
    cfg: Config,
    endpoint: Optional[str] = None,
    token: Optional[str] = None,
    out: Optional[str] = None,
) -> SchemaProfile:
    """
    Refresh the on-disk artifact of a schema entry.

    Args:
        entry: Schema entry to refresh
        cfg: Configuration object
        endpoint: Live GraphQL endpoint to introspect instead of entry.url
        token: Optional token for the live endpoint
        out: Write to this path instead of the entry's cache path

    Returns:
        SchemaProfile describing the written artifact

    Raises:
        LoadError: If there is nothing to pull from, or the pull fails
    """
    locator = locator_for(entry, cfg)
    path = out or locator.path

    if endpoint:
        js = introspect(endpoint, token, cfg.request_timeout)
        text = utils.to_json(js)
        source = endpoint
    elif entry.url:
        text = fetch_schema_text(entry.url, cfg.request_timeout)
        source = entry.url
    else:
        raise LoadError(f"Schema {entry.display_name} has no url configured; pass --endpoint")

    js = parse_introspection(text, source)
    utils.write_text(path, text)

    return SchemaProfile(url=source, fetched_at=utils.now_iso(), hash=utils.sha256(js), path=path)


def _decompress_and_persist(locator: SchemaLocator) -> str:
    logger.info("Decompressing GraphQL schema from %s", locator.gz_path)
    try:
        text = utils.gunzip_text(utils.read_bytes(locator.gz_path))
    except (OSError, EOFError, UnicodeDecodeError, zlib.error) as e:
        raise LoadError(f"Could not decompress {locator.gz_path}: {e}") from e

    _persist(locator.path, text)
    return text


def _fetch_and_persist(locator: SchemaLocator, timeout: int) -> str:
    text = fetch_schema_text(locator.url, timeout)
    _persist(locator.path, text)
    return text


def _persist(path: str, text: str) -> None:
    # Best-effort write-through; the loaded text is returned either way
    try:
        utils.write_text(path, text)
        logger.info("Saved uncompressed schema to %s", path)
    except OSError as e:
        logger.warning("Could not cache schema to %s: %s", path, e)
