"""Reusable component entries that point at removed definitions.

Reusable parameters, responses, request bodies and headers are inlined into
operations when a document is loaded, but their raw entries are still
written back out with the rest of the document. Once a definition has been
collected, every entry that still names it, directly or through another
dropped entry, has to go as well.
"""

import logging
from typing import Any, Dict, Iterator, List, Tuple

from ..document.loader import SCHEMA_REF_PREFIXES, unescape_pointer
from ..document.schema import Document, DocumentFormat

logger = logging.getLogger(__name__)

# Swagger 2 keeps reusable parameters and responses at the top level.
OPENAPI_2_SECTIONS = ("parameters", "responses")

Section = Tuple[Dict[str, Any], str, str]


def iter_refs(value: Any) -> Iterator[str]:
    """Yield every ``$ref`` and discriminator mapping pointer inside raw data."""
    stack = [value]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            ref = current.get("$ref")
            if isinstance(ref, str):
                yield ref
            discriminator = current.get("discriminator")
            if isinstance(discriminator, dict) and isinstance(discriminator.get("mapping"), dict):
                for target in discriminator["mapping"].values():
                    if isinstance(target, str) and target.startswith("#/"):
                        yield target
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)


def _reusable_sections(document: Document) -> List[Section]:
    """``(container, key, pointer prefix)`` of every reusable entry table."""
    if document.source_format == DocumentFormat.OPENAPI_3:
        components = document.extensions.get("components")
        if not isinstance(components, dict):
            return []
        return [
            (components, key, f"#/components/{key}/")
            for key, entries in components.items()
            if isinstance(entries, dict)
        ]

    return [
        (document.extensions, key, f"#/{key}/")
        for key in OPENAPI_2_SECTIONS
        if isinstance(document.extensions.get(key), dict)
    ]


def drop_dangling_components(document: Document) -> List[str]:
    """Remove reusable entries whose references no longer resolve.

    References outside the document (or to tables not tracked here) are left
    alone. Section tables are replaced, never edited in place, so mappings
    shared with the loaded input are not touched.

    Returns:
        Pointer paths (``components/responses/Error``) of every removed entry
    """
    sections = _reusable_sections(document)
    if not sections:
        return []

    schema_prefix = SCHEMA_REF_PREFIXES[document.source_format]
    live = {prefix: dict(container[key]) for container, key, prefix in sections}

    def resolves(ref: str) -> bool:
        if ref.startswith(schema_prefix):
            name = unescape_pointer(ref[len(schema_prefix):].split("/")[0])
            return name in document.definitions
        for prefix, entries in live.items():
            if ref.startswith(prefix):
                return unescape_pointer(ref[len(prefix):].split("/")[0]) in entries
        return True

    removed: List[str] = []
    changed = True
    while changed:
        changed = False
        for prefix, entries in live.items():
            for name, entry in list(entries.items()):
                if all(resolves(ref) for ref in iter_refs(entry)):
                    continue
                del entries[name]
                removed.append(prefix[2:] + name)
                changed = True

    for container, key, prefix in sections:
        if len(live[prefix]) != len(container[key]):
            container[key] = live[prefix]
    return removed
