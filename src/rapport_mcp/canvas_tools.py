"""The canvas tools exposed over MCP.

Each tool fetches one project row, does its text work and, for
``update_svg``, writes the row back. The store and the user id lookup are
injected so the tools can run against any backend.
"""

from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from canvas_validators import ValidationResult, ValidatorLimits, get_svg_stats, validate_svg
from canvas_validators.svg_checks import local_name

from .errors import StoreError, ToolInputError
from .guide import DEFAULT_VIEWBOX, render_guide
from .store import ProjectStore

logger = logging.getLogger(__name__)

DRAWABLE_TAG_RE = re.compile(r"<(rect|circle|path|line|text|ellipse|polygon|polyline)")
VIEWBOX_ATTR_RE = re.compile(r'viewBox="([^"]+)"')
DATA_TYPE_SELECTOR_RE = re.compile(r'\[data-type="?([^"\]]+)"?\]')

GET_SVG_COLUMNS = ("svg_document", "title", "pins", "updated_at", "is_public", "user_id")
TEMPLATE_COLUMNS = ("id", "svg_document", "title", "pins")

_ATTRIBUTE_PREFIXES = {
    "http://www.w3.org/1999/xlink": "xlink",
    "http://www.w3.org/XML/1998/namespace": "xml",
}


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def count_drawable_elements(svg_document: str) -> int:
    return len(DRAWABLE_TAG_RE.findall(svg_document))


def extract_viewbox(svg_document: str, default: str) -> str:
    match = VIEWBOX_ATTR_RE.search(svg_document)
    return match.group(1) if match else default


def format_validation_failure(result: ValidationResult) -> str:
    lines = [
        "❌ SVG validation failed:",
        "",
        "**Errors:**",
        *[f"- {message}" for message in result.error_messages],
        "",
        "**Warnings:**" if result.warnings else "",
        *[f"- {message}" for message in result.warning_messages],
        "",
        "Please fix these issues and try again.",
        "If you believe this is a false positive, you can use skip_validation: true (NOT RECOMMENDED)",
    ]
    return "\n".join(line for line in lines if line != "")


def _attribute_name(name: str) -> str:
    if name.startswith("{"):
        namespace, local = name[1:].split("}", 1)
        prefix = _ATTRIBUTE_PREFIXES.get(namespace)
        return f"{prefix}:{local}" if prefix else local
    return name


def _describe_element(node: ET.Element) -> Dict[str, Any]:
    return {
        "id": node.get("id"),
        "type": node.get("data-type"),
        "tagName": local_name(node.tag),
        "attributes": {_attribute_name(key): value for key, value in node.attrib.items()},
    }


def select_elements(svg_document: str, selector: str) -> List[ET.Element]:
    """Resolve ``#id``, ``[data-type="value"]`` or a bare tag name against the document."""
    try:
        root = ET.fromstring(svg_document)
    except ET.ParseError as exc:
        raise ToolInputError(
            code="E4001_SVG_PARSE_ERROR",
            message=f"Failed to parse SVG: {exc}",
            hint="Repair the stored canvas with update_svg.",
        ) from exc

    if selector.startswith("#"):
        element_id = selector[1:]
        for node in root.iter():
            if node.get("id") == element_id:
                return [node]
        return []
    if selector.startswith("[data-type="):
        match = DATA_TYPE_SELECTOR_RE.search(selector)
        if not match:
            return []
        wanted = match.group(1)
        return [node for node in root.iter() if node.get("data-type") == wanted]
    return [node for node in root.iter() if local_name(node.tag) == selector]


class CanvasTools:
    def __init__(
        self,
        store: ProjectStore,
        user_id_provider: Callable[[], str],
        limits: Optional[ValidatorLimits] = None,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.store = store
        self._user_id_provider = user_id_provider
        self.limits = limits
        self._clock = clock

    def _fetch_own_project(self, columns) -> Dict[str, Any]:
        user_id = self._user_id_provider()
        try:
            return self.store.fetch_project(columns, user_id=user_id)
        except StoreError as exc:
            raise StoreError(
                code=exc.code,
                message=f"Project not found for your account - {exc.message}",
                hint=exc.hint,
            ) from exc

    def get_svg(
        self,
        project_id: str,
        include_metadata: bool = True,
        user_id: Optional[str] = None,
    ) -> str:
        try:
            project = self.store.fetch_project(
                GET_SVG_COLUMNS, project_id=project_id, user_id=user_id or None
            )
        except StoreError as exc:
            prefix = (
                f"Project not found or you don't have access: {project_id}"
                if user_id
                else f"Project not found: {project_id}"
            )
            raise StoreError(code=exc.code, message=f"{prefix} - {exc.message}", hint=exc.hint) from exc

        svg_document = project.get("svg_document") or ""
        if not include_metadata:
            return svg_document

        metadata = {
            "project_id": project_id,
            "title": project.get("title"),
            "element_count": count_drawable_elements(svg_document),
            "viewBox": extract_viewbox(svg_document, "unknown"),
            "pins": project.get("pins") or [],
            "is_public": project.get("is_public") or False,
            "last_updated": project.get("updated_at"),
        }
        return (
            f"# Canvas Metadata\n{json.dumps(metadata, indent=2, ensure_ascii=False)}"
            f"\n\n# SVG Document\n{svg_document}"
        )

    def get_canvas_template(self) -> str:
        project = self._fetch_own_project(TEMPLATE_COLUMNS)
        svg_document = project.get("svg_document") or ""
        return render_guide(
            project,
            viewbox=extract_viewbox(svg_document, DEFAULT_VIEWBOX),
            element_count=count_drawable_elements(svg_document),
        )

    def update_svg(
        self,
        project_id: str,
        svg_document: str,
        skip_validation: bool = False,
        user_id: Optional[str] = None,
    ) -> str:
        validation = validate_svg(svg_document, self.limits)
        if not validation.valid:
            if not skip_validation:
                logger.info(
                    f"Rejected SVG for project {project_id}: {len(validation.errors)} error(s)"
                )
                raise ToolInputError(
                    code="E4002_SVG_VALIDATION_FAILED",
                    message=format_validation_failure(validation),
                    hint="Fix the listed errors and call update_svg again.",
                )
            logger.warning(
                f"Saving unvalidated SVG for project {project_id} (skip_validation): "
                f"{'; '.join(validation.error_messages)}"
            )

        svg_to_save = validation.sanitized if validation.sanitized is not None else svg_document
        stats = get_svg_stats(svg_to_save)

        try:
            self.store.update_project(
                project_id,
                {"svg_document": svg_to_save, "updated_at": self._clock()},
                user_id=user_id or None,
            )
        except StoreError as exc:
            prefix = (
                "Failed to update SVG: You don't have permission to modify this project"
                if user_id
                else "Failed to update SVG"
            )
            raise StoreError(code=exc.code, message=f"{prefix}: {exc.message}", hint=exc.hint) from exc

        breakdown = "\n".join(
            f"- {tag}: {count}" for tag, count in stats.element_counts.items() if count > 0
        )
        warning_text = ""
        if validation.warnings:
            warning_lines = "\n".join(f"- {message}" for message in validation.warning_messages)
            warning_text = f"\n\n⚠️  Warnings:\n{warning_lines}"

        return (
            "✅ SVG updated successfully!\n\n"
            "**Canvas Statistics:**\n"
            f"- Total elements: {stats.total_elements}\n"
            f"- Size: {stats.size_kb} KB\n\n"
            "**Element Breakdown:**\n"
            f"{breakdown}{warning_text}"
        )

    def query_elements(self, selector: str) -> str:
        project = self._fetch_own_project(("svg_document",))
        elements = select_elements(project.get("svg_document") or "", selector)
        return json.dumps([_describe_element(node) for node in elements], indent=2, ensure_ascii=False)
