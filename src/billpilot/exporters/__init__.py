"""Exporters package — convert reports to output formats."""
from billpilot.exporters.markdown import render_markdown, render_vendor_trends

__all__ = ["render_markdown", "render_vendor_trends"]
