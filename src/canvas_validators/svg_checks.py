from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal


SVG_OPEN_TOKEN = "<svg"
SVG_CLOSE_TOKEN = "</svg>"
SVG_NAMESPACE_DECL = 'xmlns="http://www.w3.org/2000/svg"'

SCRIPT_TAG_PREFIX_RE = re.compile(r"<script", re.IGNORECASE)
EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE | re.ASCII)

DANGEROUS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"<script[^>]*>", re.IGNORECASE), "script tags"),
    (re.compile(r"<iframe[^>]*>", re.IGNORECASE), "iframe tags"),
    (re.compile(r"<object[^>]*>", re.IGNORECASE), "object tags"),
    (re.compile(r"<embed[^>]*>", re.IGNORECASE), "embed tags"),
    (EVENT_HANDLER_RE, "event handlers (onclick, onload, etc.)"),
    (re.compile(r"javascript:", re.IGNORECASE), "javascript: protocol"),
    (re.compile(r"data:text/html", re.IGNORECASE), "data:text/html protocol"),
    (re.compile(r"<foreignObject", re.IGNORECASE), "foreignObject elements"),
)

EXTERNAL_REF_RE = re.compile(r"xlink:href\s*=\s*[\"'](https?://[^\"']+)[\"']", re.IGNORECASE)

# Heuristic tag tokens, not a parser. OPEN_TAG_RE also matches self-closing tags.
# \w matches ASCII word characters only.
OPEN_TAG_RE = re.compile(r"<(\w+)[^>]*>", re.ASCII)
CLOSE_TAG_RE = re.compile(r"</(\w+)>", re.ASCII)
SELF_CLOSING_TAG_RE = re.compile(r"<\w+[^>]*/>", re.ASCII)

CORRUPTED_ATTRIBUTE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"stroke-[\"']", re.IGNORECASE),
    re.compile(r"fill-[\"']", re.IGNORECASE),
    re.compile(r"width-[\"']", re.IGNORECASE),
    re.compile(r"height-[\"']", re.IGNORECASE),
)

VIEWBOX_RE = re.compile(r"viewBox\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")
NUMBER_RE = re.compile(r"^\s*([-+]?(?:Infinity|[0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?))")

SCRIPT_BLOCK_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
EVENT_HANDLER_ATTR_RE = re.compile(r"\s+on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE | re.ASCII)
JAVASCRIPT_URI_RE = re.compile(r"javascript:[^\"'\s]*", re.IGNORECASE)
BLANK_URI = "about:blank"

STAT_TAG_PATTERNS: dict[str, re.Pattern[str]] = {
    "rect": re.compile(r"<rect", re.IGNORECASE),
    "circle": re.compile(r"<circle", re.IGNORECASE),
    "path": re.compile(r"<path", re.IGNORECASE),
    "line": re.compile(r"<line", re.IGNORECASE),
    "text": re.compile(r"<text", re.IGNORECASE),
    # <g needs trailing whitespace so <glyph>, <group> etc. are not counted.
    "g": re.compile(r"<g\s", re.IGNORECASE),
    "ellipse": re.compile(r"<ellipse", re.IGNORECASE),
    "polygon": re.compile(r"<polygon", re.IGNORECASE),
    "polyline": re.compile(r"<polyline", re.IGNORECASE),
}


def local_name(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def parse_number(value: str) -> float | None:
    match = NUMBER_RE.match(value)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def byte_length(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogatepass"))


def format_fixed(numerator: int, denominator: int, digits: int = 2) -> str:
    """Format numerator/denominator with a fixed number of decimals, rounding half up."""
    quantum = Decimal(1).scaleb(-digits)
    value = Decimal(numerator) / Decimal(denominator)
    return str(value.quantize(quantum, rounding=ROUND_HALF_UP))


def count_matches(pattern: re.Pattern[str], text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


def split_viewbox(value: str) -> list[str]:
    return WHITESPACE_RE.split(value)
