"""Answer classification helpers."""
from .answer_classifier import NON_ANSWERS, is_non_answer

__all__ = ["NON_ANSWERS", "is_non_answer"]
