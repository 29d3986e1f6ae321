"""Streaming parsers for the parts of a workbook."""

from xlsx_checkbox.services.control_state import ControlStateResolver
from xlsx_checkbox.services.drawing_text import DrawingTextResolver

__all__ = ["ControlStateResolver", "DrawingTextResolver"]
