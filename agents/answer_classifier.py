"""Degenerate-answer detection by exact phrase match."""
from __future__ import annotations

NON_ANSWERS = frozenset(
    {
        "i dont know",
        "i don't know",
        "idk",
        "no idea",
        "not sure",
        "skip",
        "pass",
        "n/a",
        "none",
        "cannot answer",
        "do not know",
        "dont know",
        "dunno",
        "",
    }
)


def normalize(text: str) -> str:
    return text.strip().lower()


def is_non_answer(text: str) -> bool:
    """True when ``text`` is a refusal or lack-of-knowledge phrase.

    Matching is whole-string after trimming and lower-casing; "idk really"
    is not a non-answer.
    """

    return normalize(text) in NON_ANSWERS


__all__ = ["NON_ANSWERS", "is_non_answer", "normalize"]
