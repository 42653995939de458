"""SVG sanitizer — second line of defense before markup leaves the service.

Drops scriptable tags and event-handler attributes, clamps stroke-width to
at least 1 and rounds plain numeric attributes to 2 decimals.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET

from svgcraft.svg.serializer import SVG_NS
from svgcraft.utils.math_helpers import format_number

logger = logging.getLogger(__name__)

ALLOWED_TAGS = {
    "svg", "g", "path", "circle", "rect", "line", "polyline", "polygon",
    "ellipse", "text", "title", "desc",
}

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_SCRIPT_URL_RE = re.compile(r"^\s*(javascript|data):", re.IGNORECASE)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

ET.register_namespace("", SVG_NS)


def _strip_ns(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def _clean_element(element: ET.Element) -> None:
    for child in list(element):
        if _strip_ns(child.tag) not in ALLOWED_TAGS:
            element.remove(child)
            logger.debug("Sanitizer: dropped <%s>", _strip_ns(child.tag))
            continue
        _clean_element(child)

    for name in list(element.attrib):
        value = element.attrib[name]
        local = _strip_ns(name).lower()
        if local.startswith("on") or _SCRIPT_URL_RE.match(value):
            del element.attrib[name]
        elif local == "stroke-width" and _NUMBER_RE.match(value):
            element.attrib[name] = format_number(max(1.0, float(value)))
        elif _NUMBER_RE.match(value):
            element.attrib[name] = format_number(float(value))


def sanitize_svg(svg_text: str) -> str:
    """Return sanitized markup. Raises ValueError when the input is not an <svg> document."""
    svg_text = _COMMENT_RE.sub("", svg_text)
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise ValueError(f"Unparseable SVG: {e}") from e
    if _strip_ns(root.tag) != "svg":
        raise ValueError("No <svg> root element found.")

    _clean_element(root)
    return ET.tostring(root, encoding="unicode")
