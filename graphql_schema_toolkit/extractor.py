"""Extraction of GraphQL operations from markdown or raw text."""

import re
from typing import Iterator, Optional

# Whole input is one fence, optionally tagged graphql/gql
SINGLE_BLOCK_RE = re.compile(r"^```(?:graphql|gql)?\s*\n?([\s\S]*?)\n?```$")

FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,})(.*)$")
OPERATION_TAG_RE = re.compile(r"^(?:graphql|gql|query|mutation|subscription)(?:\s+\w+)?$", re.IGNORECASE)


def extract_operation(text: str) -> Optional[str]:
    """
    Extract a single GraphQL operation.

    If the trimmed text is exactly one fenced block (untagged or tagged
    graphql/gql), its body is used; otherwise the trimmed text itself.

    Args:
        text: Markdown code block or raw operation text

    Returns:
        Operation source, or None when nothing but whitespace remains
    """
    trimmed = (text or "").strip()
    match = SINGLE_BLOCK_RE.match(trimmed)
    operation = match.group(1).strip() if match else trimmed
    return operation or None


def iter_fenced_blocks(text: str) -> Iterator[tuple[str, str]]:
    """
    Yield (info string, body) for every fenced block.

    A fence that is never closed runs to the end of the text.
    """
    lines = (text or "").splitlines()
    i = 0
    while i < len(lines):
        opening = FENCE_OPEN_RE.match(lines[i])
        if not opening or "`" in opening.group(2):
            i += 1
            continue

        fence = opening.group(1)
        info = opening.group(2).strip()
        body = []
        i += 1
        while i < len(lines) and not _closes(lines[i], fence):
            body.append(lines[i])
            i += 1
        # Skip the closing fence
        i += 1
        yield info, "\n".join(body)


def extract_operations(text: str) -> list[str]:
    """
    Extract every GraphQL operation from free-form text.

    Fences tagged graphql, gql, query, mutation or subscription (optionally
    followed by an operation name) win; untagged fences are only used when no
    tagged fence exists. Text without any fence is treated as one operation.

    Args:
        text: Markdown or raw text

    Returns:
        Non-empty operation sources in document order
    """
    blocks = list(iter_fenced_blocks(text))
    if not blocks:
        single = extract_operation(text)
        return [single] if single else []

    tagged = [body for info, body in blocks if OPERATION_TAG_RE.match(info)]
    if not tagged:
        tagged = [body for info, body in blocks if not info]

    return [body.strip() for body in tagged if body.strip()]


def _closes(line: str, fence: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(fence) and set(stripped) == {"`"}
