from __future__ import annotations

import pytest

from canvas_validators import ValidatorLimits, sanitize_svg, validate_svg
from canvas_validators.report import (
    CORRUPTION_ERROR,
    FORMAT_ERROR,
    LIMIT_ERROR,
    SECURITY_ERROR,
    STRUCTURAL_ERROR,
)
from canvas_validators.validate import (
    E1001_MISSING_SVG_ROOT,
    E1002_MISSING_SVG_CLOSE,
    E2001_DANGEROUS_CONTENT,
    E3001_CORRUPTED_ATTRIBUTE,
    E4001_VIEWBOX_FORMAT,
    E4002_VIEWBOX_VALUES,
    E5001_TOO_LARGE,
    E5002_TOO_MANY_ELEMENTS,
    W1101_UNCLOSED_TAGS,
    W2101_EXTERNAL_REFERENCES,
    W4101_MISSING_XMLNS,
    W4102_MISSING_VIEWBOX,
)

XMLNS = 'xmlns="http://www.w3.org/2000/svg"'
MAX_BYTES = 10 * 1024 * 1024


def _build_svg(body: str = "", viewbox: str | None = "0 0 100 100", xmlns: bool = True) -> str:
    attrs = []
    if xmlns:
        attrs.append(XMLNS)
    if viewbox is not None:
        attrs.append(f'viewBox="{viewbox}"')
    open_tag = "<svg " + " ".join(attrs) + ">" if attrs else "<svg>"
    return f"{open_tag}{body}</svg>"


def _codes(issues) -> list[str]:
    return [issue.code for issue in issues]


def test_minimal_document_passes_unchanged() -> None:
    svg_text = _build_svg('<rect id="a" data-type="box"/>')
    result = validate_svg(svg_text)
    assert result.valid
    assert result.errors == []
    assert result.warnings == []
    assert result.sanitized == svg_text


def test_empty_input_reports_both_missing_markers() -> None:
    result = validate_svg("")
    assert not result.valid
    assert result.error_messages == [
        "Missing <svg> root element",
        "Missing closing </svg> tag",
    ]
    assert _codes(result.errors) == [E1001_MISSING_SVG_ROOT, E1002_MISSING_SVG_CLOSE]
    assert {issue.category for issue in result.errors} == {STRUCTURAL_ERROR}
    assert result.sanitized is None


def test_none_input_degrades_to_empty_document() -> None:
    result = validate_svg(None)
    assert not result.valid
    assert _codes(result.errors) == [E1001_MISSING_SVG_ROOT, E1002_MISSING_SVG_CLOSE]


def test_missing_close_tag_only() -> None:
    result = validate_svg(f'<svg {XMLNS} viewBox="0 0 10 10"><rect/>')
    assert _codes(result.errors) == [E1002_MISSING_SVG_CLOSE]


def test_script_tag_is_rejected() -> None:
    result = validate_svg("<svg><script>alert(1)</script></svg>")
    assert not result.valid
    assert "Dangerous content detected: script tags" in result.error_messages
    assert result.sanitized is None
    assert sanitize_svg("<svg><script>alert(1)</script></svg>") == "<svg></svg>"


def test_event_handler_is_rejected_and_stripped() -> None:
    svg_text = '<svg onclick="x()"><rect/></svg>'
    result = validate_svg(svg_text)
    assert not result.valid
    assert (
        "Dangerous content detected: event handlers (onclick, onload, etc.)"
        in result.error_messages
    )
    assert sanitize_svg(svg_text) == "<svg><rect/></svg>"


def test_one_error_per_construct_in_rule_order() -> None:
    body = (
        '<foreignObject width="10" height="10"></foreignObject>'
        '<embed src="a.swf"/>'
        '<iframe src="x.html"></iframe>'
        '<iframe src="y.html"></iframe>'
    )
    result = validate_svg(_build_svg(body))
    assert result.error_messages == [
        "Dangerous content detected: iframe tags",
        "Dangerous content detected: embed tags",
        "Dangerous content detected: foreignObject elements",
    ]
    assert {issue.category for issue in result.errors} == {SECURITY_ERROR}
    assert _codes(result.errors) == [E2001_DANGEROUS_CONTENT] * 3


def test_protocols_are_flagged() -> None:
    body = (
        '<a href="JavaScript:alert(1)"><rect/></a>'
        '<image href="data:text/html;base64,PGI+"/>'
        "<object></object>"
    )
    result = validate_svg(_build_svg(body))
    assert result.error_messages == [
        "Dangerous content detected: object tags",
        "Dangerous content detected: javascript: protocol",
        "Dangerous content detected: data:text/html protocol",
    ]


def test_case_insensitive_script_detection() -> None:
    result = validate_svg(_build_svg("<SCRIPT type='text/javascript'>x</SCRIPT>"))
    assert "Dangerous content detected: script tags" in result.error_messages


def test_external_references_are_a_warning() -> None:
    body = (
        '<image xlink:href="https://example.com/a.png"/>'
        "<image xlink:href='http://example.com/b.png'/>"
        '<use xlink:href="#local"/>'
    )
    result = validate_svg(_build_svg(body))
    assert result.valid
    assert _codes(result.warnings) == [W2101_EXTERNAL_REFERENCES]
    assert result.warning_messages == [
        "External resource references detected (2). These may not load correctly."
    ]


def test_one_missing_close_tag_is_tolerated() -> None:
    result = validate_svg(_build_svg("<g><rect/>"))
    assert W1101_UNCLOSED_TAGS not in _codes(result.warnings)


def test_two_missing_close_tags_warn() -> None:
    result = validate_svg(_build_svg("<g><g><rect/>"))
    assert result.valid
    assert result.warning_messages == [
        "Possible unclosed tags: 3 open tags but only 1 closing tags"
    ]


def test_corrupted_attribute_reported_once() -> None:
    body = '<rect id="a" stroke-"2" fill-"red" width-"10"/>'
    result = validate_svg(_build_svg(body))
    assert _codes(result.errors) == [E3001_CORRUPTED_ATTRIBUTE]
    assert result.errors[0].category == CORRUPTION_ERROR
    assert result.error_messages == [
        "Corrupted SVG attributes detected (attribute name ends with dash)"
    ]


def test_complete_dashed_attributes_are_not_corrupted() -> None:
    body = '<rect stroke-width="2" stroke-linecap="round" fill-opacity="0.5"/>'
    result = validate_svg(_build_svg(body))
    assert result.valid


def test_missing_xmlns_is_a_warning() -> None:
    result = validate_svg(_build_svg("<rect/>", xmlns=False))
    assert result.valid
    assert _codes(result.warnings) == [W4101_MISSING_XMLNS]


def test_missing_viewbox_is_a_warning_not_an_error() -> None:
    result = validate_svg(_build_svg("<rect/>", viewbox=None))
    assert result.valid
    assert _codes(result.warnings) == [W4102_MISSING_VIEWBOX]
    assert result.warning_messages == ["No viewBox attribute found"]


@pytest.mark.parametrize(
    ("viewbox", "code"),
    [
        ("0 0 100", E4001_VIEWBOX_FORMAT),
        ("0,0,100,100", E4001_VIEWBOX_FORMAT),
        (" 0 0 100 100", E4001_VIEWBOX_FORMAT),
        ("0 0 abc 100", E4002_VIEWBOX_VALUES),
        ("0 0 NaN 100", E4002_VIEWBOX_VALUES),
        ("0 0 infinity 100", E4002_VIEWBOX_VALUES),
        ("0 0 ١٠ 100", E4002_VIEWBOX_VALUES),
    ],
)
def test_malformed_viewbox(viewbox: str, code: str) -> None:
    result = validate_svg(_build_svg("<rect/>", viewbox=viewbox))
    assert _codes(result.errors) == [code]
    assert result.errors[0].category == FORMAT_ERROR


def test_viewbox_accepts_decimal_and_negative_values() -> None:
    result = validate_svg(_build_svg("<rect/>", viewbox="-10.5 0 1e3 .5"))
    assert result.valid


@pytest.mark.parametrize("viewbox", ["0 0 Infinity 100", "+Infinity 0 10 10", "0 -Infinity 10 10"])
def test_viewbox_accepts_infinity(viewbox: str) -> None:
    result = validate_svg(_build_svg("<rect/>", viewbox=viewbox))
    assert result.valid
    assert result.errors == []


def test_accented_text_is_not_an_event_handler() -> None:
    svg_text = _build_svg("<text>donnée=5</text><text>Cañon = 3</text>")
    result = validate_svg(svg_text)
    assert result.error_messages == []
    assert result.warnings == []
    assert sanitize_svg(svg_text) == svg_text


def test_accented_tag_names_are_not_counted() -> None:
    result = validate_svg(_build_svg("<é><é><é>"))
    assert result.errors == []
    assert result.warnings == []

    limits_result = validate_svg(
        _build_svg("<é/>" * 5 + "<rect/>"), ValidatorLimits(max_elements=2)
    )
    assert limits_result.valid


def _sized_document(total_bytes: int) -> str:
    prefix = f'<svg {XMLNS} viewBox="0 0 10 10">'
    suffix = "</svg>"
    return prefix + "a" * (total_bytes - len(prefix) - len(suffix)) + suffix


def test_size_limit_is_inclusive() -> None:
    at_limit = _sized_document(MAX_BYTES)
    assert len(at_limit.encode("utf-8")) == MAX_BYTES
    assert E5001_TOO_LARGE not in _codes(validate_svg(at_limit).errors)


def test_size_limit_exceeded_by_one_byte() -> None:
    result = validate_svg(_sized_document(MAX_BYTES + 1))
    assert _codes(result.errors) == [E5001_TOO_LARGE]
    assert result.errors[0].category == LIMIT_ERROR
    assert result.error_messages == ["SVG too large: 10.00MB (max: 10MB)"]


def test_size_counts_utf8_bytes() -> None:
    prefix = f'<svg {XMLNS} viewBox="0 0 10 10"><text>'
    suffix = "</text></svg>"
    # Each "é" is two bytes in UTF-8.
    filler = "é" * ((MAX_BYTES - len(prefix) - len(suffix)) // 2 + 1)
    svg_text = prefix + filler + suffix
    assert len(svg_text) < MAX_BYTES
    assert E5001_TOO_LARGE in _codes(validate_svg(svg_text).errors)


def test_element_limit_boundary() -> None:
    at_limit = _build_svg("<rect/>" * 9_999)
    over_limit = _build_svg("<rect/>" * 10_000)
    assert E5002_TOO_MANY_ELEMENTS not in _codes(validate_svg(at_limit).errors)
    result = validate_svg(over_limit)
    assert _codes(result.errors) == [E5002_TOO_MANY_ELEMENTS]
    assert result.error_messages == ["Too many elements: 10001 (max: 10000)"]


def test_checks_do_not_short_circuit() -> None:
    result = validate_svg('<script>x</script><rect stroke-"1"/>')
    assert _codes(result.errors) == [
        E1001_MISSING_SVG_ROOT,
        E1002_MISSING_SVG_CLOSE,
        E2001_DANGEROUS_CONTENT,
        E3001_CORRUPTED_ATTRIBUTE,
    ]
    assert _codes(result.warnings) == [W4101_MISSING_XMLNS, W4102_MISSING_VIEWBOX]


@pytest.mark.parametrize(
    "svg_text",
    [
        "",
        _build_svg('<rect id="a"/>'),
        _build_svg("<g><g><rect/>"),
        '<svg onload="go()"><rect/></svg>',
        _build_svg('<image xlink:href="https://example.com/a.png"/>', viewbox="1 2"),
    ],
)
def test_valid_iff_no_errors_and_sanitized_iff_valid(svg_text: str) -> None:
    result = validate_svg(svg_text)
    assert result.valid == (len(result.errors) == 0)
    assert (result.sanitized is not None) == result.valid
    assert result.to_dict()["valid"] == result.valid
    assert ("sanitized" in result.to_dict()) == result.valid
