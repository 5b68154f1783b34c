"""Output formatting and reporting."""

from dataclasses import asdict
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import utils

console = Console()

MAX_FIELDS_TO_SHOW = 50
TYPE_DESCRIPTION_LIMIT = 150
OPERATION_DESCRIPTION_LIMIT = 100


# Schema text formatting
def format_arg(arg: dict) -> str:
    out = f"{arg['name']}: {utils.type_ref(arg.get('type'))}"
    if arg.get("defaultValue") is not None:
        out += f" = {arg['defaultValue']}"
    return out


def format_field(field: dict) -> str:
    result = f"  {field['name']}"

    if field.get("args"):
        result += f"({', '.join(format_arg(a) for a in field['args'])})"

    result += f": {utils.type_ref(field.get('type'))}"

    if field.get("isDeprecated"):
        result += " @deprecated"
        if field.get("deprecationReason"):
            result += f" ({field['deprecationReason']})"

    return result


def _format_field_list(fields: list[dict], heading: str, noun: str, max_fields: int) -> str:
    result = f"\n  {heading}:"
    for field in fields[:max_fields]:
        result += f"\n{format_field(field)}"
    if len(fields) > max_fields:
        result += f"\n  ... and {len(fields) - max_fields} more {noun}"
    return result


def format_schema_type(item: dict, max_fields: int = MAX_FIELDS_TO_SHOW) -> str:
    """
    Render one type descriptor as plain text.

    Args:
        item: Type descriptor from the introspection document
        max_fields: Maximum number of fields to list

    Returns:
        Text block starting with "KIND Name"
    """
    result = f"{item.get('kind')} {item.get('name')}"

    if item.get("description"):
        result += f"\n  Description: {utils.truncate(item['description'], TYPE_DESCRIPTION_LIMIT)}"

    if item.get("interfaces"):
        result += f"\n  Implements: {', '.join(i['name'] for i in item['interfaces'])}"

    # Input objects list inputFields instead of fields
    if item.get("kind") == "INPUT_OBJECT" and item.get("inputFields"):
        result += _format_field_list(item["inputFields"], "Input Fields", "input fields", max_fields)
    elif item.get("fields"):
        result += _format_field_list(item["fields"], "Fields", "fields", max_fields)

    return result


def format_operation(field: dict) -> str:
    """Render a query or mutation root field as plain text."""
    result = f"{field['name']}"

    if field.get("description"):
        result += f"\n  Description: {utils.truncate(field['description'], OPERATION_DESCRIPTION_LIMIT)}"

    if field.get("args"):
        result += "\n  Arguments:"
        for arg in field["args"]:
            result += f"\n    {format_arg(arg)}"

    result += f"\n  Returns: {utils.type_ref(field.get('type'))}"

    return result


def _truncation_notice(max_results: int) -> str:
    return f"(Results limited to {max_results} items. Refine your search for more specific results.)\n\n"


def render_search(result, max_fields: int = MAX_FIELDS_TO_SHOW) -> str:
    """
    Render a SearchResult as markdown-ish text.

    Sections that were not requested are omitted.
    """
    text = ""

    if result.types is not None:
        text += "## Matching GraphQL Types:\n"
        if result.types.was_truncated:
            text += _truncation_notice(result.max_results)
        if result.types.items:
            text += "\n\n".join(format_schema_type(t, max_fields) for t in result.types.items) + "\n\n"
        else:
            text += "No matching types found.\n\n"

    if result.queries is not None:
        text += "## Matching GraphQL Queries:\n"
        if result.queries.was_truncated:
            text += _truncation_notice(result.max_results)
        if result.queries.items:
            text += "\n\n".join(format_operation(q) for q in result.queries.items) + "\n\n"
        else:
            text += "No matching queries found.\n\n"

    if result.mutations is not None:
        text += "## Matching GraphQL Mutations:\n"
        if result.mutations.was_truncated:
            text += _truncation_notice(result.max_results)
        if result.mutations.items:
            text += "\n\n".join(format_operation(m) for m in result.mutations.items)
        else:
            text += "No matching mutations found."

    return text


# Console output
def emit_checks(checks: list, fmt: str, valid: Optional[bool] = None) -> None:
    """
    Output validation results.

    Args:
        checks: ValidationResponse objects
        fmt: Output format ("json" or "console")
        valid: Overall verdict for batch runs
    """
    if fmt == "json":
        payload = {"checks": [{**asdict(c), "result": c.result.value} for c in checks]}
        if valid is not None:
            payload = {"valid": valid, **payload}
        print(utils.to_json(payload))
        return

    console.print("\n[bold cyan]GraphQL Validation[/bold cyan]\n")

    table = Table(show_header=True, box=None)
    table.add_column("#", style="dim")
    table.add_column("Result")
    table.add_column("Detail")

    for i, check in enumerate(checks, start=1):
        icon, color = {
            "success": ("✓", "green"),
            "failed": ("✖", "red"),
            "skipped": ("•", "yellow"),
        }.get(check.result.value, ("•", "white"))
        table.add_row(str(i), f"[{color}]{icon} {check.result.value.upper()}[/{color}]", escape(check.detail))

    console.print(table)

    if valid is not None:
        verdict = "[green]✓ All operations valid[/green]" if valid else "[red]✖ Validation failed[/red]"
        console.print(f"\n{verdict}")

    console.print()


def print_kv(title: str, data: dict) -> None:
    """
    Print key-value pairs (for schema pull, schema list).

    Args:
        title: Section title
        data: Key-value data
    """
    console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="yellow")

    for k, v in data.items():
        table.add_row(k, escape(str(v)))

    console.print(table)
    console.print()
