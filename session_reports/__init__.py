from __future__ import annotations  # Session report package exports

from .models import HistoryEntry, QAPair, SessionReport
from .pdf import generate_session_report_pdf
from .store import HistoryStore
from .synthesizer import SYNTHESIS_FAILED_TEXT, ReportSynthesizer, build_qa_pairs, render_qa_table

__all__ = [
    "HistoryEntry",
    "HistoryStore",
    "QAPair",
    "ReportSynthesizer",
    "SYNTHESIS_FAILED_TEXT",
    "SessionReport",
    "build_qa_pairs",
    "generate_session_report_pdf",
    "render_qa_table",
]
