"""Output generation for selections and availability (text, PDF)."""

from fmscheduler.output.debug_generator import DebugGenerator
from fmscheduler.output.pdf_generator import PDFGenerator

__all__ = [
    "DebugGenerator",
    "PDFGenerator",
]
