"""Free-text search over an introspection document."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from . import config as config_mod
from . import report, schema_loader, utils
from .config import Config
from .errors import LoadError, UnsupportedSchemaError

logger = logging.getLogger(__name__)

FALLBACK_QUERY_ROOT = "QueryRoot"
FALLBACK_MUTATION_ROOT = "Mutation"


class Section(str, Enum):
    """Searchable sections of a schema."""

    ALL = "all"
    TYPES = "types"
    QUERIES = "queries"
    MUTATIONS = "mutations"


@dataclass
class SectionResult:
    """Matches for one section after ranking and truncation."""

    items: list[dict] = field(default_factory=list)
    was_truncated: bool = False
    total_matches: int = 0


@dataclass
class SearchResult:
    """Search results; a section is None when it was not requested."""

    query: str
    term: str
    max_results: int
    types: Optional[SectionResult] = None
    queries: Optional[SectionResult] = None
    mutations: Optional[SectionResult] = None


@dataclass
class SearchResponse:
    """Outcome of a search call."""

    success: bool
    text: str = ""
    error: Optional[str] = None


def normalize_query(query: str) -> str:
    """
    Normalize a search term.

    Trims, strips one trailing "s", removes all whitespace and lower-cases.
    "Product variants" becomes "productvariant".
    """
    normalized = query.strip()
    if normalized.endswith("s"):
        normalized = normalized[:-1]
    normalized = re.sub(r"\s+", "", normalized)
    return normalized.lower()


def filter_and_sort_items(items: Iterable[dict], term: str, max_items: int) -> SectionResult:
    """
    Filter items by name, rank shortest names first, truncate.

    Args:
        items: Type or field descriptors
        term: Normalized search term
        max_items: Maximum number of items to keep

    Returns:
        SectionResult with at most max_items items
    """
    matched = [item for item in items if item.get("name") and term in item["name"].lower()]
    # Stable sort keeps document order for equal lengths
    matched.sort(key=lambda item: (item.get("name") is None, len(item.get("name") or "")))
    return SectionResult(
        items=matched[:max_items],
        was_truncated=len(matched) > max_items,
        total_matches=len(matched),
    )


def resolve_sections(sections: Optional[Iterable[str]]) -> set[Section]:
    """
    Expand requested section names into concrete sections.

    Raises:
        ValueError: For unknown section names
    """
    requested = {Section(s) for s in (sections or [Section.ALL])}
    if not requested or Section.ALL in requested:
        return {Section.TYPES, Section.QUERIES, Section.MUTATIONS}
    return requested


def search(
    doc: dict,
    query: str,
    sections: Optional[Iterable[str]] = None,
    max_results: int = 10,
) -> SearchResult:
    """
    Search types, query fields and mutation fields by name.

    Args:
        doc: Introspection document
        query: Free-text search term
        sections: Subset of all/types/queries/mutations (default: all)
        max_results: Maximum items per section

    Returns:
        SearchResult

    Raises:
        ValueError: If the document has no __schema.types, or a section name is unknown
    """
    schema = utils.schema_root(doc)
    if schema is None or not isinstance(schema.get("types"), list):
        raise ValueError("Invalid schema format: missing __schema.types")

    wanted = resolve_sections(sections)
    term = normalize_query(query or "")
    logger.debug("Filtering schema with query: %s (normalized: %s)", query, term)

    result = SearchResult(query=query, term=term, max_results=max_results)

    if Section.TYPES in wanted:
        public_types = [t for t in schema["types"] if not utils.is_internal_name(t.get("name"))]
        result.types = filter_and_sort_items(public_types, term, max_results)

    if Section.QUERIES in wanted:
        root = _root_type(schema, "queryType", FALLBACK_QUERY_ROOT)
        result.queries = filter_and_sort_items((root or {}).get("fields") or [], term, max_results)

    if Section.MUTATIONS in wanted:
        root = _root_type(schema, "mutationType", FALLBACK_MUTATION_ROOT)
        result.mutations = filter_and_sort_items((root or {}).get("fields") or [], term, max_results)

    return result


async def introspect_schema(
    query: str,
    sections: Optional[Iterable[str]] = None,
    api: Optional[str] = None,
    version: Optional[str] = None,
    cfg: Optional[Config] = None,
) -> SearchResponse:
    """
    Load a configured schema and search it.

    Errors are reported in the response rather than raised.
    """
    cfg = cfg or config_mod.load()
    try:
        entry = cfg.find_schema(api or cfg.default_api, version)
        locator = schema_loader.locator_for(entry, cfg)
        doc = await schema_loader.aload_introspection(locator, timeout=cfg.request_timeout)
        result = search(doc, query, sections, cfg.max_results)
    except (LoadError, UnsupportedSchemaError, ValueError) as e:
        logger.error("Error processing GraphQL schema: %s", e)
        return SearchResponse(success=False, error=str(e))

    return SearchResponse(success=True, text=report.render_search(result, cfg.max_fields))


def _root_type(schema: dict, key: str, fallback: str) -> Optional[dict]:
    return utils.find_type(schema, utils.root_type_name(schema, key)) or utils.find_type(schema, fallback)
