from __future__ import annotations  # Prompt composition for the live interview

from textwrap import dedent
from typing import Dict, Sequence

from .models import DifficultyLevel, PracticeConfig, TranscriptEntry
from .transcript import code_block, render_dialogue

FALLBACK_QUESTION = "Tell me about a challenging project you worked on and how you overcame obstacles."

QUESTION_SYSTEM_PROMPT = (
    "You are an expert technical interviewer. Generate relevant interview questions based on the job role, "
    "difficulty level, and target company. Be specific and realistic."
)
INTERVIEWER_SYSTEM_PROMPT = (
    "You are a strict, realistic technical interviewer running a live mock interview. "
    "You speak only as the interviewer and never grade the candidate during the interview."
)
REVIEWER_SYSTEM_PROMPT = (
    "You are a strict, realistic technical interviewer reviewing code the candidate just submitted "
    "during a live mock interview. You never grade the candidate during the interview."
)

_DEPTH: Dict[DifficultyLevel, str] = {
    "beginner": "Focus on fundamentals and basic concepts.",
    "intermediate": "Include practical scenarios and problem-solving.",
    "advanced": "Include complex, open-ended technical challenges and system design.",
}


def build_question_prompt(config: PracticeConfig) -> str:
    company = f" at {config.target_company}" if config.target_company else ""
    return dedent(
        f"""
        Generate a single interview question for a {config.difficulty_level} level {config.job_role} position{company}.

        Requirements:
        - Make it specific to the role and experience level
        - If a company is specified, tailor it to that company's culture/tech stack
        - Depth for this level: {_DEPTH[config.difficulty_level]}
        - Keep it concise but detailed enough to be clear

        Return only the question, no additional text.
        """
    ).strip()


def build_reactive_prompt(
    config: PracticeConfig,
    history: Sequence[TranscriptEntry],
    answer: str,
    *,
    non_answer: bool = False,
) -> str:
    dialogue = _dialogue(history, f"Candidate: {answer}")
    signal = ""
    if non_answer:
        signal = "\nThe candidate's last reply is a non-answer (they declined or did not know). Move on to a new question.\n"
    return dedent(
        """
        You are acting as a strict, realistic, and interactive technical interviewer for a {label}.

        Here is the interview so far:
        {dialogue}
        {signal}
        Now, as the interviewer, react to the candidate's last answer. You can:
        - Acknowledge the answer (briefly)
        - Ask a relevant follow-up question if appropriate
        - If the answer is poor or a non-answer, encourage or move to a new question
        - Keep the conversation going as a real interview would
        - Only ask one question at a time
        - Do not provide feedback, analysis, or scores, just keep the interview interactive

        Your next message should be the next interviewer message/question only.
        """
    ).strip().format(label=config.describe(), dialogue=dialogue, signal=signal)


def build_code_review_prompt(
    config: PracticeConfig,
    history: Sequence[TranscriptEntry],
    code: str,
    language: str,
) -> str:
    submission = f"Candidate (code, {language}):\n{code_block(code, language)}"
    dialogue = _dialogue(history, submission)
    return dedent(
        """
        You are acting as a strict, realistic technical interviewer for a {label}, reviewing the candidate's code.

        Here is the interview so far:
        {dialogue}

        The candidate just submitted this {language} code:
        {block}

        Now, as the interviewer reviewing this code, respond with one message. You can:
        - Briefly acknowledge the submission
        - Ask about a specific implementation detail, edge case, or complexity trade-off
        - Move on to a new question if the code does not merit discussion
        - Only ask one question at a time
        - Do not provide feedback, corrections, or scores, just keep the interview interactive

        Your next message should be the next interviewer message/question only.
        """
    ).strip().format(label=config.describe(), dialogue=dialogue, language=language, block=code_block(code, language))


def _dialogue(history: Sequence[TranscriptEntry], latest: str) -> str:
    rendered = render_dialogue(history)
    return f"{rendered}\n{latest}" if rendered else latest


__all__ = [
    "FALLBACK_QUESTION",
    "INTERVIEWER_SYSTEM_PROMPT",
    "QUESTION_SYSTEM_PROMPT",
    "REVIEWER_SYSTEM_PROMPT",
    "build_code_review_prompt",
    "build_question_prompt",
    "build_reactive_prompt",
]
