from __future__ import annotations  # End-of-session report synthesis

import logging
from datetime import datetime, timezone
from textwrap import dedent
from typing import Callable, List, Sequence

from agents.answer_classifier import is_non_answer
from interview_session.models import AnswerEntry, CodeEntry, PracticeConfig, QuestionEntry, TranscriptEntry
from interview_session.session import Session
from llm_gateway import CompletionClient, LlmGatewayError
from observability import log_event, span

from .models import HistoryEntry, QAPair, SessionReport
from .store import HistoryStore

SYNTHESIS_FAILED_TEXT = "Failed to generate report. Please try again."
REPORT_SYSTEM_PROMPT = "You are an expert technical interviewer and coach who writes strict, honest assessments."


def code_answer(entry: CodeEntry) -> str:
    return f"[code: {entry.language}]\n{entry.content}"


def build_qa_pairs(entries: Sequence[TranscriptEntry], classifier: Callable[[str], bool] = is_non_answer) -> List[QAPair]:
    """Pair every answer or code entry with the most recent question before it."""
    pairs: List[QAPair] = []
    last_question = ""
    for entry in entries:
        if isinstance(entry, QuestionEntry):
            last_question = entry.content
        elif isinstance(entry, AnswerEntry):
            pairs.append(QAPair(question=last_question, answer=entry.content, non_answer=classifier(entry.content)))
        elif isinstance(entry, CodeEntry):
            pairs.append(
                QAPair(
                    question=last_question,
                    answer=code_answer(entry),
                    kind="code",
                    non_answer=classifier(entry.content),
                )
            )
        else:
            raise TypeError(f"Unsupported transcript entry: {entry!r}")
    return pairs


def _cell(text: str) -> str:
    return text.replace("|", "").replace("\r\n", "\n").replace("\n", "<br>").strip()


def render_qa_table(pairs: Sequence[QAPair]) -> str:
    """Markdown table of the session; a Kind column appears only when code was submitted."""
    with_kind = any(pair.kind == "code" for pair in pairs)
    if with_kind:
        lines = ["| Question | Answer | Kind |", "|---|---|---|"]
        lines += [f"| {_cell(p.question)} | {_cell(p.answer)} | {p.kind} |" for p in pairs]
    else:
        lines = ["| Question | Answer |", "|---|---|"]
        lines += [f"| {_cell(p.question)} | {_cell(p.answer)} |" for p in pairs]
    return "\n".join(lines)


def build_report_prompt(config: PracticeConfig, qa_table: str) -> str:
    return dedent(
        """
        You are an expert technical interviewer and coach. Analyze the following interview session for a {label}.

        Here is the full Q&A from the session as a markdown table:
        {table}

        Instructions:
        - Carefully analyze the quality of the answers. If the answer is wrong, missing, or "I don't know", give a low score (0-30).
        - Rows of kind "code" are code submissions; judge correctness, clarity and complexity.
        - Be strict and realistic in scoring. Do not be overly positive.
        - Only show the score and report as you determine from the answers. Do not use any default or fallback values.
        - If all answers are wrong or missing, the score should be very low.
        - Your report should include:
          - Overall performance summary
          - Key strengths (if any)
          - Areas for improvement
          - Actionable suggestions
          - Final score (average, 0-100)
          - Encouragement for next steps
        - Format the report in markdown with clear sections.
        - Do not include any placeholder or dummy data. Only use your own analysis.
        """
    ).strip().format(label=config.describe(), table=qa_table)


class ReportSynthesizer:  # Turns a finished session into a scored report
    def __init__(
        self,
        client: CompletionClient,
        history: HistoryStore,
        classifier: Callable[[str], bool] = is_non_answer,
    ) -> None:
        self._client = client
        self._history = history
        self._classifier = classifier

    async def generate(self, session: Session) -> SessionReport:
        config = session.config
        if config is None:
            raise ValueError("Cannot synthesize a report for a session without a practice config")
        entries = session.transcript.entries
        pairs = build_qa_pairs(entries, self._classifier)
        generated_at = datetime.now(timezone.utc)
        try:
            self._history.prepend(
                HistoryEntry(
                    config=config,
                    qa_pairs=pairs,
                    transcript=list(entries),
                    ended_at=session.ended_at or generated_at,
                )
            )
        except Exception as exc:  # noqa: BLE001
            log_event("history_save_failed", session.session_id, level=logging.ERROR, error=str(exc))
        qa_table = render_qa_table(pairs)
        failed = False
        try:
            with span(session.session_id, "request_report"):
                summary = (await self._client.complete(build_report_prompt(config, qa_table), REPORT_SYSTEM_PROMPT)).strip()
        except LlmGatewayError as exc:
            log_event("report_failed", session.session_id, level=logging.WARNING, error_kind=exc.kind, status=exc.status)
            summary = ""
        if not summary:
            summary = SYNTHESIS_FAILED_TEXT
            failed = True
        return SessionReport(
            session_id=session.session_id,
            config=config,
            qa_pairs=pairs,
            qa_table=qa_table,
            narrative_summary=summary,
            generated_at=generated_at,
            synthesis_failed=failed,
            question_count=sum(1 for e in entries if isinstance(e, QuestionEntry)),
            answer_count=len(pairs),
            elapsed_seconds=session.elapsed_seconds,
        )


__all__ = [
    "REPORT_SYSTEM_PROMPT",
    "ReportSynthesizer",
    "SYNTHESIS_FAILED_TEXT",
    "build_qa_pairs",
    "build_report_prompt",
    "code_answer",
    "render_qa_table",
]
