"""Introspection JSON to SDL compilation and compiled-schema caching."""

import asyncio
import json
import logging
import time
from typing import Callable, Optional

from graphql import GraphQLError, GraphQLSchema, build_schema, specified_directives, validate_schema

from . import schema_loader, utils
from .config import Config, SchemaEntry
from .errors import CompileError

logger = logging.getLogger(__name__)

PLACEHOLDER_FIELD = "_placeholder: String"
PLACEHOLDER_ENUM_VALUE = "PLACEHOLDER"
DEFAULT_QUERY_ROOT = "QueryRoot"
DEFAULT_MUTATION_ROOT = "Mutation"
SDL_SNIPPET_LENGTH = 500

SPECIFIED_DIRECTIVE_NAMES = frozenset(d.name for d in specified_directives)


def introspection_to_sdl(doc: dict) -> str:
    """
    Convert an introspection result into SDL text.

    Types come out grouped by kind: scalars, enums, inputs, objects,
    interfaces, unions, directives, then the schema block. Empty types get a
    placeholder member so every declaration stays valid SDL.

    Args:
        doc: Introspection result, either {"__schema": {...}} or {"data": {"__schema": {...}}}

    Returns:
        SDL text

    Raises:
        CompileError: If the document has no __schema or no __schema.types list
    """
    schema = utils.schema_root(doc)
    if schema is None:
        raise CompileError("Invalid schema format: missing __schema field")
    if not isinstance(schema.get("types"), list):
        raise CompileError("Invalid schema format: missing __schema.types")

    types = [t for t in schema["types"] if t.get("name") and not utils.is_internal_name(t["name"])]
    by_kind: dict[str, list[dict]] = {}
    for t in types:
        by_kind.setdefault(t.get("kind"), []).append(t)

    # Interfaces padded with a placeholder cannot be implemented by real types
    hollow_interfaces = {t["name"] for t in by_kind.get("INTERFACE", []) if not t.get("fields")}

    parts: list[str] = []

    for t in by_kind.get("SCALAR", []):
        if t["name"] not in utils.BUILTIN_SCALARS:
            parts.append(f"scalar {t['name']}\n")

    for t in by_kind.get("ENUM", []):
        parts.append(_enum_sdl(t))

    for t in by_kind.get("INPUT_OBJECT", []):
        parts.append(_input_sdl(t))

    object_names = set()
    for t in by_kind.get("OBJECT", []):
        object_names.add(t["name"])
        parts.append(_composite_sdl("type", t, hollow_interfaces))

    for t in by_kind.get("INTERFACE", []):
        parts.append(_composite_sdl("interface", t, hollow_interfaces))

    for t in by_kind.get("UNION", []):
        possible = [p["name"] for p in t.get("possibleTypes") or [] if p.get("name")]
        if possible:
            parts.append(f"union {t['name']} = {' | '.join(possible)}\n")
        else:
            logger.warning("Skipping union type %s with no possible types", t["name"])

    for d in schema.get("directives") or []:
        sdl = _directive_sdl(d)
        if sdl:
            parts.append(sdl)

    parts.extend(_root_sdl(schema, object_names))

    return "\n".join(parts)


def compile_schema(doc: dict) -> GraphQLSchema:
    """
    Compile an introspection result into an executable schema.

    Args:
        doc: Introspection result

    Returns:
        GraphQLSchema built from the generated SDL

    Raises:
        CompileError: If __schema is missing or the generated SDL does not build
    """
    started = time.perf_counter()
    sdl = introspection_to_sdl(doc)

    try:
        schema = build_schema(sdl)
    except (GraphQLError, TypeError) as e:
        raise CompileError(f"Could not build schema from generated SDL: {e}\nSDL snippet: {_snippet(sdl)}") from e

    errors = validate_schema(schema)
    if errors:
        messages = "; ".join(e.message for e in errors[:5])
        raise CompileError(f"Generated schema is invalid: {messages}\nSDL snippet: {_snippet(sdl)}")

    logger.info(
        "Built schema from %d chars of SDL in %.2fs (query root: %s)",
        len(sdl),
        time.perf_counter() - started,
        schema.query_type.name if schema.query_type else None,
    )
    return schema


class SchemaCache:
    """
    Compiled schemas keyed by (api, version, builder).

    The builder is part of the key, so schemas built from SDL and schemas
    built directly from introspection never stand in for each other. Builds
    happen at most once per key; concurrent callers wait for the in-flight
    build. Stored schemas are never modified, only replaced after
    invalidate().
    """

    def __init__(self, builder: Callable[[dict], GraphQLSchema] = compile_schema):
        self.builder = builder
        self._schemas: dict[tuple, GraphQLSchema] = {}
        self._lock = asyncio.Lock()

    async def get(
        self, entry: SchemaEntry, cfg: Config, builder: Optional[Callable[[dict], GraphQLSchema]] = None
    ) -> GraphQLSchema:
        """Get the schema for entry, building it with builder (default: self.builder) on a miss."""
        builder = builder or self.builder
        key = (entry.api, entry.version, builder)
        schema = self._schemas.get(key)
        if schema is not None:
            return schema

        async with self._lock:
            schema = self._schemas.get(key)
            if schema is None:
                schema = await build_for_entry(entry, cfg, builder)
                self._schemas[key] = schema
        return schema

    def invalidate(self, api: Optional[str] = None, version: Optional[str] = None) -> int:
        """Drop cached schemas matching api/version (all when both are None)."""
        doomed = [
            key
            for key in self._schemas
            if (api is None or key[0] == api) and (version is None or key[1] == version)
        ]
        for key in doomed:
            del self._schemas[key]
        return len(doomed)

    def __contains__(self, key: tuple) -> bool:
        # (api, version) matches any builder; (api, version, builder) is exact
        return any(stored[: len(key)] == tuple(key) for stored in self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)


async def build_for_entry(
    entry: SchemaEntry, cfg: Config, builder: Callable[[dict], GraphQLSchema] = compile_schema
) -> GraphQLSchema:
    """
    Load a configured schema and build it, without caching.

    Raises:
        LoadError: If the artifact is missing, unreadable or has no __schema.types
        CompileError: If the builder rejects the document
    """
    locator = schema_loader.locator_for(entry, cfg)
    text = await schema_loader.aload_schema_text(locator, timeout=cfg.request_timeout)
    doc = schema_loader.parse_introspection(text, locator.path)
    return builder(doc)


def _snippet(sdl: str) -> str:
    if len(sdl) > SDL_SNIPPET_LENGTH:
        return sdl[:SDL_SNIPPET_LENGTH] + "..."
    return sdl


def _deprecation(item: dict) -> str:
    if not item.get("isDeprecated"):
        return ""
    reason = item.get("deprecationReason")
    if reason:
        return f" @deprecated(reason: {json.dumps(reason, ensure_ascii=False)})"
    return " @deprecated"


def _input_value_sdl(arg: dict) -> str:
    out = f"{arg['name']}: {utils.type_ref(arg.get('type'))}"
    if arg.get("defaultValue") is not None:
        out += f" = {arg['defaultValue']}"
    return out


def _field_sdl(field: dict) -> str:
    out = f"  {field['name']}"
    args = field.get("args") or []
    if args:
        out += f"({', '.join(_input_value_sdl(a) for a in args)})"
    out += f": {utils.type_ref(field.get('type'))}"
    return out + _deprecation(field)


def _enum_sdl(t: dict) -> str:
    lines = [f"enum {t['name']} {{"]
    values = t.get("enumValues") or []
    for value in values:
        lines.append(f"  {value['name']}{_deprecation(value)}")
    if not values:
        lines.append(f"  {PLACEHOLDER_ENUM_VALUE}")
    lines.append("}\n")
    return "\n".join(lines)


def _input_sdl(t: dict) -> str:
    lines = [f"input {t['name']} {{"]
    fields = t.get("inputFields") or []
    for field in fields:
        lines.append(f"  {_input_value_sdl(field)}")
    if not fields:
        lines.append(f"  {PLACEHOLDER_FIELD}")
    lines.append("}\n")
    return "\n".join(lines)


def _composite_sdl(keyword: str, t: dict, hollow_interfaces: set[str]) -> str:
    header = f"{keyword} {t['name']}"
    interfaces = [
        i["name"] for i in t.get("interfaces") or [] if i.get("name") and i["name"] not in hollow_interfaces
    ]
    if interfaces:
        header += f" implements {' & '.join(interfaces)}"

    lines = [header + " {"]
    fields = [f for f in t.get("fields") or [] if not utils.is_internal_name(f.get("name"))]
    for field in fields:
        lines.append(_field_sdl(field))
    if not fields:
        lines.append(f"  {PLACEHOLDER_FIELD}")
    lines.append("}\n")
    return "\n".join(lines)


def _directive_sdl(d: dict) -> Optional[str]:
    name = d.get("name")
    if not name or name in SPECIFIED_DIRECTIVE_NAMES:
        return None
    locations = d.get("locations") or []
    if not locations:
        logger.warning("Skipping directive @%s with no locations", name)
        return None

    out = f"directive @{name}"
    args = d.get("args") or []
    if args:
        out += f"({', '.join(_input_value_sdl(a) for a in args)})"
    if d.get("isRepeatable"):
        out += " repeatable"
    return f"{out} on {' | '.join(locations)}\n"


def _root_sdl(schema: dict, object_names: set[str]) -> list[str]:
    parts = []

    query_name = utils.root_type_name(schema, "queryType") or DEFAULT_QUERY_ROOT
    if query_name not in object_names:
        logger.warning("Query root %s not found, adding placeholder root", query_name)
        parts.append(f"type {query_name} {{\n  {PLACEHOLDER_FIELD}\n}}\n")

    mutation_name = utils.root_type_name(schema, "mutationType")
    if mutation_name is None and DEFAULT_MUTATION_ROOT in object_names:
        mutation_name = DEFAULT_MUTATION_ROOT
    if mutation_name and mutation_name not in object_names:
        logger.warning("Mutation root %s not found, adding placeholder root", mutation_name)
        parts.append(f"type {mutation_name} {{\n  {PLACEHOLDER_FIELD}\n}}\n")

    subscription_name = utils.root_type_name(schema, "subscriptionType")
    if subscription_name not in object_names:
        subscription_name = None

    block = ["schema {", f"  query: {query_name}"]
    if mutation_name:
        block.append(f"  mutation: {mutation_name}")
    if subscription_name:
        block.append(f"  subscription: {subscription_name}")
    block.append("}\n")
    parts.append("\n".join(block))
    return parts
