"""Report renderers for CSV and Markdown exports."""

from . import csv_renderer, md_renderer

__all__ = ["csv_renderer", "md_renderer"]
