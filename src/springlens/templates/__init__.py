"""SpringLens report rendering.

Jinja2-based Markdown rendering and JSON export with deterministic output.
"""

from springlens.templates.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
