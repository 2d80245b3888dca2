"""Report renderer.

Renders analysis results to Markdown using Jinja2 templates, or to JSON
through the models' to_dict() views. Output is deterministic: the same result
always produces the same document.
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from springlens.models.analysis import AnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "report.md.j2"


def format_datetime(dt: datetime | str | None) -> str:
    """Format datetime for display in reports.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    # Ensure UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def table_cell(value: Any) -> str:
    """Render a value safely inside a Markdown table cell."""
    if value is None or value == "":
        return "-"
    return str(value).replace("|", "\\|").replace("\n", " ")


class ReportRenderer:
    """Renders analysis results to Markdown or JSON.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render(analysis_result)
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("springlens", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["cell"] = table_cell

    def render(self, result: AnalysisResult, template_name: str = DEFAULT_TEMPLATE) -> str:
        """Render analysis result to Markdown.

        Args:
            result: Analysis result from the pipeline
            template_name: Template file to use

        Returns:
            Rendered Markdown string

        Raises:
            ValueError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
        except Exception as e:
            logger.error(f"Failed to load template {template_name}: {e}")
            raise ValueError(f"Template not found: {template_name}") from e

        try:
            rendered = template.render(**self._build_context(result))
        except Exception as e:
            logger.error(f"Template rendering failed: {e}")
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.info(f"Rendered report ({len(rendered)} characters)")
        return rendered

    @staticmethod
    def render_json(result: AnalysisResult) -> str:
        """Serialize analysis result to indented JSON."""
        return json.dumps(result.to_dict(), indent=2) + "\n"

    def _build_context(self, result: AnalysisResult) -> dict[str, Any]:
        return {
            "run_id": result.run_id,
            "corpus_name": result.corpus_name,
            "timestamp": result.timestamp,
            "status": result.status.value,
            "classes": result.classes,
            "endpoints": result.endpoints,
            "relationships": result.relationships,
            "modules": result.modules,
            "communications": result.communications,
            "findings": result.findings,
            "metrics": result.metrics,
            "data_flow": result.data_flow,
            "dependencies": result.dependencies,
            "errors": result.errors,
            "summary": result.summary,
        }

    def render_to_file(
        self,
        result: AnalysisResult,
        output_path: Path,
        output_format: str = "markdown",
    ) -> Path:
        """Render analysis result and write to file.

        Args:
            result: Analysis result from the pipeline
            output_path: Path to write output file
            output_format: "markdown" or "json"

        Returns:
            Path to written file
        """
        if output_format == "json":
            content = self.render_json(result)
        else:
            content = self.render(result)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote report to {output_path}")

        return output_path
