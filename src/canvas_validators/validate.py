from __future__ import annotations

from .config import ValidatorLimits
from .report import (
    CORRUPTION_ERROR,
    FORMAT_ERROR,
    FORMAT_WARNING,
    LIMIT_ERROR,
    REFERENCE_WARNING,
    SECURITY_ERROR,
    STRUCTURAL_ERROR,
    STRUCTURAL_WARNING,
    ElementStats,
    ValidationIssue,
    ValidationResult,
)
from .svg_checks import (
    BLANK_URI,
    CLOSE_TAG_RE,
    CORRUPTED_ATTRIBUTE_PATTERNS,
    DANGEROUS_PATTERNS,
    EVENT_HANDLER_ATTR_RE,
    EVENT_HANDLER_RE,
    EXTERNAL_REF_RE,
    JAVASCRIPT_URI_RE,
    OPEN_TAG_RE,
    SCRIPT_BLOCK_RE,
    SCRIPT_TAG_PREFIX_RE,
    SELF_CLOSING_TAG_RE,
    STAT_TAG_PATTERNS,
    SVG_CLOSE_TOKEN,
    SVG_NAMESPACE_DECL,
    SVG_OPEN_TOKEN,
    VIEWBOX_RE,
    byte_length,
    count_matches,
    format_fixed,
    parse_number,
    split_viewbox,
)

E1001_MISSING_SVG_ROOT = "E1001_MISSING_SVG_ROOT"
E1002_MISSING_SVG_CLOSE = "E1002_MISSING_SVG_CLOSE"
E2001_DANGEROUS_CONTENT = "E2001_DANGEROUS_CONTENT"
E3001_CORRUPTED_ATTRIBUTE = "E3001_CORRUPTED_ATTRIBUTE"
E4001_VIEWBOX_FORMAT = "E4001_VIEWBOX_FORMAT"
E4002_VIEWBOX_VALUES = "E4002_VIEWBOX_VALUES"
E5001_TOO_LARGE = "E5001_TOO_LARGE"
E5002_TOO_MANY_ELEMENTS = "E5002_TOO_MANY_ELEMENTS"
W1101_UNCLOSED_TAGS = "W1101_UNCLOSED_TAGS"
W2101_EXTERNAL_REFERENCES = "W2101_EXTERNAL_REFERENCES"
W4101_MISSING_XMLNS = "W4101_MISSING_XMLNS"
W4102_MISSING_VIEWBOX = "W4102_MISSING_VIEWBOX"

_BYTES_PER_MB = 1024 * 1024


def _check_structure(svg_text: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if SVG_OPEN_TOKEN not in svg_text:
        issues.append(
            ValidationIssue(
                code=E1001_MISSING_SVG_ROOT,
                category=STRUCTURAL_ERROR,
                message="Missing <svg> root element",
                hint="Wrap the drawing in a single <svg> root element.",
            )
        )
    if SVG_CLOSE_TOKEN not in svg_text:
        issues.append(
            ValidationIssue(
                code=E1002_MISSING_SVG_CLOSE,
                category=STRUCTURAL_ERROR,
                message="Missing closing </svg> tag",
                hint="End the document with </svg>.",
            )
        )
    return issues


def _check_dangerous_content(svg_text: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for pattern, name in DANGEROUS_PATTERNS:
        match = pattern.search(svg_text)
        if match is None:
            continue
        issues.append(
            ValidationIssue(
                code=E2001_DANGEROUS_CONTENT,
                category=SECURITY_ERROR,
                message=f"Dangerous content detected: {name}",
                hint="Remove scripts, embedded documents, event handlers and script URIs.",
                context={"construct": name, "offset": match.start()},
            )
        )
    return issues


def _check_external_references(svg_text: str) -> list[ValidationIssue]:
    count = count_matches(EXTERNAL_REF_RE, svg_text)
    if count == 0:
        return []
    return [
        ValidationIssue(
            code=W2101_EXTERNAL_REFERENCES,
            category=REFERENCE_WARNING,
            message=(
                f"External resource references detected ({count}). "
                "These may not load correctly."
            ),
            hint="Inline external resources or reference elements inside the document.",
            context={"count": count},
        )
    ]


def _check_tag_balance(svg_text: str, limits: ValidatorLimits) -> list[ValidationIssue]:
    open_count = count_matches(OPEN_TAG_RE, svg_text)
    close_count = count_matches(CLOSE_TAG_RE, svg_text)
    self_closing_count = count_matches(SELF_CLOSING_TAG_RE, svg_text)
    expected_close = open_count - self_closing_count
    if close_count >= expected_close - limits.unclosed_tag_slack:
        return []
    return [
        ValidationIssue(
            code=W1101_UNCLOSED_TAGS,
            category=STRUCTURAL_WARNING,
            message=(
                f"Possible unclosed tags: {expected_close} open tags "
                f"but only {close_count} closing tags"
            ),
            hint="Close every container element or write empty elements as <tag/>.",
            context={"expected": expected_close, "actual": close_count},
        )
    ]


def _check_corrupted_attributes(svg_text: str) -> list[ValidationIssue]:
    for pattern in CORRUPTED_ATTRIBUTE_PATTERNS:
        match = pattern.search(svg_text)
        if match is None:
            continue
        return [
            ValidationIssue(
                code=E3001_CORRUPTED_ATTRIBUTE,
                category=CORRUPTION_ERROR,
                message="Corrupted SVG attributes detected (attribute name ends with dash)",
                hint='Use complete attribute names such as stroke-width="2".',
                context={"fragment": match.group(0)},
            )
        ]
    return []


def _check_namespace(svg_text: str) -> list[ValidationIssue]:
    if SVG_NAMESPACE_DECL in svg_text:
        return []
    return [
        ValidationIssue(
            code=W4101_MISSING_XMLNS,
            category=FORMAT_WARNING,
            message="Missing or incorrect xmlns attribute on <svg> tag",
            hint=f"Add {SVG_NAMESPACE_DECL} to the <svg> element.",
        )
    ]


def _check_viewbox(svg_text: str) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    match = VIEWBOX_RE.search(svg_text)
    if match is None:
        warning = ValidationIssue(
            code=W4102_MISSING_VIEWBOX,
            category=FORMAT_WARNING,
            message="No viewBox attribute found",
            hint='Add viewBox="x y width height" to the <svg> element.',
        )
        return [], [warning]

    raw = match.group(1)
    values = split_viewbox(raw)
    if len(values) != 4:
        error = ValidationIssue(
            code=E4001_VIEWBOX_FORMAT,
            category=FORMAT_ERROR,
            message="Invalid viewBox format (should have 4 values: x y width height)",
            hint="Separate the four viewBox numbers with single spaces.",
            context={"viewBox": raw},
        )
        return [error], []
    if any(parse_number(value) is None for value in values):
        error = ValidationIssue(
            code=E4002_VIEWBOX_VALUES,
            category=FORMAT_ERROR,
            message="Invalid viewBox values (must be numbers)",
            hint="Use numeric viewBox values.",
            context={"viewBox": raw},
        )
        return [error], []
    return [], []


def _format_limit_mb(limit_bytes: int) -> str:
    return f"{limit_bytes / _BYTES_PER_MB:g}"


def _check_size(svg_text: str, limits: ValidatorLimits) -> list[ValidationIssue]:
    size = byte_length(svg_text)
    if size <= limits.max_size_bytes:
        return []
    return [
        ValidationIssue(
            code=E5001_TOO_LARGE,
            category=LIMIT_ERROR,
            message=(
                f"SVG too large: {format_fixed(size, _BYTES_PER_MB)}MB "
                f"(max: {_format_limit_mb(limits.max_size_bytes)}MB)"
            ),
            hint="Simplify paths or split the drawing across canvases.",
            context={"size_bytes": size, "max_size_bytes": limits.max_size_bytes},
        )
    ]


def _check_element_count(svg_text: str, limits: ValidatorLimits) -> list[ValidationIssue]:
    count = count_matches(OPEN_TAG_RE, svg_text)
    if count <= limits.max_elements:
        return []
    return [
        ValidationIssue(
            code=E5002_TOO_MANY_ELEMENTS,
            category=LIMIT_ERROR,
            message=f"Too many elements: {count} (max: {limits.max_elements})",
            hint="Merge shapes into paths or remove unused elements.",
            context={"count": count, "max_elements": limits.max_elements},
        )
    ]


def sanitize_svg(svg_text: str) -> str:
    """Strip script blocks and event handler attributes, and neutralize javascript: URIs."""
    sanitized = SCRIPT_BLOCK_RE.sub("", svg_text)
    sanitized = EVENT_HANDLER_ATTR_RE.sub("", sanitized)
    sanitized = JAVASCRIPT_URI_RE.sub(BLANK_URI, sanitized)
    return sanitized


def validate_svg(svg_text: str | None, limits: ValidatorLimits | None = None) -> ValidationResult:
    """Run every check over ``svg_text`` and collect all findings in one pass.

    Checks never short-circuit: a document missing its root still gets the
    security, viewBox and limit checks so callers can show a complete report.
    The sanitized text is only attached when no errors were found.
    """
    text = svg_text if isinstance(svg_text, str) else ""
    limits = limits or ValidatorLimits()
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    errors.extend(_check_structure(text))
    errors.extend(_check_dangerous_content(text))
    warnings.extend(_check_external_references(text))
    warnings.extend(_check_tag_balance(text, limits))
    errors.extend(_check_corrupted_attributes(text))
    warnings.extend(_check_namespace(text))
    viewbox_errors, viewbox_warnings = _check_viewbox(text)
    errors.extend(viewbox_errors)
    warnings.extend(viewbox_warnings)

    errors.extend(_check_size(text, limits))
    errors.extend(_check_element_count(text, limits))
    sanitized = sanitize_svg(text)

    return ValidationResult(
        errors=errors,
        warnings=warnings,
        sanitized=sanitized if not errors else None,
    )


def is_valid_svg_structure(svg_text: str) -> bool:
    """Cheap pre-check: root markers present, no script tag, no event handler."""
    return (
        SVG_OPEN_TOKEN in svg_text
        and SVG_CLOSE_TOKEN in svg_text
        and SCRIPT_TAG_PREFIX_RE.search(svg_text) is None
        and EVENT_HANDLER_RE.search(svg_text) is None
    )


def get_svg_stats(svg_text: str) -> ElementStats:
    element_counts = {
        name: count_matches(pattern, svg_text) for name, pattern in STAT_TAG_PATTERNS.items()
    }
    return ElementStats(
        total_elements=sum(element_counts.values()),
        element_counts=element_counts,
        size_kb=format_fixed(byte_length(svg_text), 1024),
    )
