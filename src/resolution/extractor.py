"""Dependency extraction from DTDL model documents.

Only the parts of a model that reference other models are inspected:
``extends`` (strings, inline interfaces, or lists of either) and
``contents`` entries of type ``Component`` whose ``schema`` names another
interface or embeds one inline. Inline interfaces are scanned recursively,
but their own ``@id`` is never a dependency since they ship with the
document that embeds them.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from dtmi import is_valid_dtmi
from errors import ModelParseError
from common.logging_utils import extra_context, is_debug_enabled
from .models import ModelDocument

logger = logging.getLogger(__name__)

ID_KEY = "@id"
TYPE_KEY = "@type"
EXTENDS_KEY = "extends"
CONTENTS_KEY = "contents"
SCHEMA_KEY = "schema"
COMPONENT_TYPE = "Component"
INTERFACE_TYPE = "Interface"

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_DECODER = json.JSONDecoder()


def _load_json(content: str, location: Optional[str]) -> Any:
    try:
        return json.loads(content)
    except (TypeError, ValueError) as exc:
        raise ModelParseError(location, f"invalid JSON ({exc})") from exc


def _root_id(model: Any, location: Optional[str]) -> str:
    if not isinstance(model, dict):
        raise ModelParseError(location, "model document must be a JSON object")
    root = model.get(ID_KEY)
    if not isinstance(root, str) or not root:
        raise ModelParseError(location, "missing root @id")
    if not is_valid_dtmi(root):
        raise ModelParseError(location, f'root @id "{root}" is not a valid DTMI')
    return root


def _has_type(element: Dict[str, Any], wanted: str) -> bool:
    declared = element.get(TYPE_KEY)
    if isinstance(declared, str):
        return declared == wanted
    if isinstance(declared, list):
        return wanted in declared
    return False


class _DependencyCollector:
    """Accumulates referenced identifiers in first-occurrence order."""

    def __init__(self) -> None:
        self._seen: Dict[str, None] = {}

    def add(self, dtmi: Any) -> None:
        if isinstance(dtmi, str) and dtmi not in self._seen:
            self._seen[dtmi] = None

    def result(self) -> List[str]:
        return list(self._seen)

    def scan_interface(self, interface: Dict[str, Any]) -> None:
        self.scan_extends(interface.get(EXTENDS_KEY))
        self.scan_contents(interface.get(CONTENTS_KEY))

    def scan_extends(self, extends: Any) -> None:
        if isinstance(extends, str):
            self.add(extends)
        elif isinstance(extends, dict):
            self.scan_interface(extends)
        elif isinstance(extends, list):
            for entry in extends:
                if isinstance(entry, str):
                    self.add(entry)
                elif isinstance(entry, dict):
                    self.scan_interface(entry)

    def scan_contents(self, contents: Any) -> None:
        if not isinstance(contents, list):
            return
        for element in contents:
            if isinstance(element, dict) and _has_type(element, COMPONENT_TYPE):
                schema = element.get(SCHEMA_KEY)
                if isinstance(schema, str):
                    self.add(schema)
                elif isinstance(schema, dict) and _has_type(schema, INTERFACE_TYPE):
                    self.scan_interface(schema)


def parse_model(content: str, location: Optional[str] = None) -> ModelDocument:
    """Parse a single model document and collect the identifiers it references.

    Args:
        content: Raw JSON text of the model.
        location: Where the content came from, for diagnostics.

    Returns:
        ModelDocument: Declared root identifier, the raw content and its
        deduplicated dependencies.

    Raises:
        ModelParseError: If the content is not a JSON object with a valid @id.
    """
    model = _load_json(content, location)
    root = _root_id(model, location)
    collector = _DependencyCollector()
    collector.scan_interface(model)
    # A model referencing itself (directly or via an inline extends) is not a dependency.
    dependencies = tuple(dep for dep in collector.result() if dep != root)
    if is_debug_enabled(logger):
        logger.debug(
            "Discovered dependencies",
            extra=extra_context(
                event="parse",
                component="extractor",
                action="parse_model",
                dtmi=root,
                count=len(dependencies),
            ),
        )
    return ModelDocument(dtmi=root, content=content, dependencies=dependencies)


def _array_elements(content: str) -> List[Tuple[Any, str]]:
    """Decode a JSON array already known to be well formed, keeping each element's source text."""
    index = _WHITESPACE.match(content, 0).end() + 1
    index = _WHITESPACE.match(content, index).end()
    elements: List[Tuple[Any, str]] = []
    if content[index] == "]":
        return elements
    while True:
        value, end = _DECODER.raw_decode(content, index)
        elements.append((value, content[index:end]))
        index = _WHITESPACE.match(content, end).end()
        if content[index] == "]":
            return elements
        # Skip the separating comma.
        index = _WHITESPACE.match(content, index + 1).end()


def parse_expanded(content: str, location: Optional[str] = None) -> Dict[str, str]:
    """Split an expanded document into per-identifier model documents.

    Args:
        content: Raw JSON text holding an array of model objects.
        location: Where the content came from, for diagnostics.

    Returns:
        Dict mapping each model's @id to that element's text exactly as it
        appears in ``content``; when an @id repeats, the first occurrence is
        kept.

    Raises:
        ModelParseError: If the content is not an array of valid models.
    """
    models = _load_json(content, location)
    if not isinstance(models, list):
        raise ModelParseError(location, "expanded document must be a JSON array")
    decomposed: Dict[str, str] = {}
    for model, raw in _array_elements(content):
        root = _root_id(model, location)
        if root not in decomposed:
            decomposed[root] = raw
    return decomposed
