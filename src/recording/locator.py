"""Structural locator generation.

Builds a CSS selector path for an element from its static description,
walking up the ancestor chain until a unique id or the document body.
"""

import re
from typing import Optional

import structlog

from .errors import MalformedLocatorInput
from .models import ElementDescription

logger = structlog.get_logger().bind(component="locator")

# Ids that `#id` can address without escaping
_SAFE_ID = re.compile(r"^-?[_a-zA-Z][_a-zA-Z0-9-]*$")


def _attr(name: str, value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'[{name}="{escaped}"]'


def _id_selector(element_id: str) -> str:
    """Return `#id`, or raise if the id cannot be used for direct lookup."""
    if not _SAFE_ID.match(element_id):
        raise MalformedLocatorInput(element_id)
    return f"#{element_id}"


def _level_selector(element: ElementDescription) -> tuple[str, bool]:
    """Build the selector for one level.

    Returns the selector and whether the walk can stop here.
    """
    element_id = element.element_id.strip()
    selector = element.tag

    if element_id:
        if element.id_occurrences == 1:
            try:
                return _id_selector(element_id), True
            except MalformedLocatorInput:
                logger.debug("Id not usable for lookup", element_id=element_id)
        selector += _attr("id", element_id)

    classes = [c for c in element.class_names if c.strip()]
    if classes:
        selector += "." + ".".join(c.strip() for c in classes)

    if element.name is not None:
        selector += _attr("name", element.name)

    if element.tag == "input" and element.input_type is not None and not element_id:
        selector += _attr("type", element.input_type)

    if not element_id and (element.same_tag_index > 1 or element.sibling_count > 1):
        selector += f":nth-child({element.child_index})"

    return selector, False


def generate_locator(element: Optional[ElementDescription]) -> str:
    """Generate a stable locator for an element.

    Args:
        element: Element description with its ancestor chain

    Returns:
        Selector levels joined top-down with " > ", or "" without an element
    """
    path: list[str] = []
    current = element

    while current is not None:
        selector, done = _level_selector(current)
        path.insert(0, selector)
        if done:
            break
        current = current.parent
        if current is None or current.is_document_boundary:
            break

    return " > ".join(path)
