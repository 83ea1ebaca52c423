from __future__ import annotations  # PDF export for practice session reports

import os
from datetime import datetime
from typing import Any, List, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .models import QAPair, SessionReport

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
ROW_FILL = (248, 249, 255)  # Q&A row background


def _format_datetime(value: datetime | None) -> str:
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _format_elapsed(seconds: int) -> str:  # mm:ss session clock
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def _effective_width(pdf: FPDF) -> float:
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


class ReportPDF(FPDF):  # PDF with banner header and paginated footer
    def __init__(self, title: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.header_title = title
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_unicode_font(self) -> None:  # Switch to DejaVu when the system ships it
        if not (os.path.exists(DEJAVU_SANS) and os.path.exists(DEJAVU_SANS_BOLD)):
            return
        self.add_font("DejaVu", "", DEJAVU_SANS)
        self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    def prepare_text(self, value: Any) -> str:  # Core fonts are latin-1 only
        text = "" if value is None else str(value)
        if self.supports_unicode:
            return text
        return text.replace("•", "-").encode("latin-1", "ignore").decode("latin-1")

    def multi_cell(self, *args: Any, **kwargs: Any) -> Any:  # Wrapped paragraphs return to the left margin
        kwargs.setdefault("new_x", XPos.LMARGIN)
        kwargs.setdefault("new_y", YPos.NEXT)
        return super().multi_cell(*args, **kwargs)

    def header(self) -> None:
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_fill_color(*ACCENT)
            self.rect(0, 0, self.w, 20, style="F")
            self.set_text_color(255, 255, 255)
            self.set_font(self.font_bold, "B", 16)
            self.set_xy(self.l_margin, 6)
            self.cell(usable, 8, self.prepare_text(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.ln(8)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self.font_bold, "B", 12)
            self.cell(usable, 6, self.prepare_text(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.set_draw_color(*ACCENT)
            self.set_line_width(0.4)
            self.line(self.l_margin, self.get_y() + 1, self.w - self.r_margin, self.get_y() + 1)
            self.ln(4)
        self.set_text_color(*TEXT)

    def footer(self) -> None:
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_bold, "B", 13)
    pdf.cell(0, 9, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Two label/value pairs per line
    col = _effective_width(pdf) / 2.0
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.cell(col, 6, left[0], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, 6, right[0], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_bold, "B", 11)
        pdf.cell(col, 6, pdf.prepare_text(left[1]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, 6, pdf.prepare_text(right[1]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _render_summary(pdf: ReportPDF, report: SessionReport) -> None:
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.set_text_color(*(MUTED if report.synthesis_failed else TEXT))
    for raw in report.narrative_summary.splitlines():
        line = raw.strip()
        if not line:
            pdf.ln(2)
            continue
        if line.startswith("#"):
            pdf.set_font(pdf.font_bold, "B", 11)
            pdf.multi_cell(_effective_width(pdf), 6, pdf.prepare_text(line.lstrip("# ")))
            pdf.set_font(pdf.font_regular, "", 10)
            continue
        pdf.multi_cell(_effective_width(pdf), 5.5, pdf.prepare_text(line.replace("**", "")))
    pdf.set_text_color(*TEXT)
    pdf.ln(3)


def _render_pair(pdf: ReportPDF, index: int, pair: QAPair) -> None:
    width = _effective_width(pdf)
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*ROW_FILL)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.multi_cell(width, 5.5, pdf.prepare_text(f"Q{index}: {pair.question or '-'}"), fill=True)
    pdf.set_x(pdf.l_margin)
    pdf.set_text_color(60, 60, 60)
    if pair.kind == "code":
        pdf.set_font(pdf.font_regular if pdf.supports_unicode else "Courier", "", 9)
    else:
        pdf.set_font(pdf.font_regular, "", 10)
    pdf.multi_cell(width, 5.0, pdf.prepare_text(f"A: {pair.answer or '-'}"))
    if pair.non_answer:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 9)
        pdf.multi_cell(width, 5.0, "Flagged as a non-answer")
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y() + 1
    pdf.line(pdf.l_margin, y, pdf.l_margin + width, y)
    pdf.set_y(y + 3)
    pdf.set_text_color(*TEXT)


def _render_pairs(pdf: ReportPDF, report: SessionReport) -> None:
    if not report.qa_pairs:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No answers recorded for this session.")
        pdf.set_text_color(*TEXT)
        return
    for index, pair in enumerate(report.qa_pairs, start=1):
        _render_pair(pdf, index, pair)


def generate_session_report_pdf(report: SessionReport) -> bytes:  # Build PDF payload for a session report
    config = report.config
    pdf = ReportPDF(f"{config.job_role} - Practice Interview Report")
    pdf.use_unicode_font()
    pdf.alias_nb_pages()
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    _meta_block(
        pdf,
        [
            ("Role", config.job_role),
            ("Level", config.difficulty_level.title()),
            ("Company", config.target_company or "-"),
            ("Generated", _format_datetime(report.generated_at)),
            ("Questions Asked", str(report.question_count)),
            ("Your Answers", str(report.answer_count)),
            ("Session Time", _format_elapsed(report.elapsed_seconds)),
            ("Session ID", report.session_id),
        ],
    )

    _section_title(pdf, "Performance Report")
    _render_summary(pdf, report)

    _section_title(pdf, "Question & Answer Transcript")
    _render_pairs(pdf, report)

    return bytes(pdf.output())


__all__ = ["ReportPDF", "generate_session_report_pdf"]
