"""Speech capture and playback adapters for the live interview."""
from .speech import (
    PartialTranscript,
    QueueTranscriptionSource,
    QuestionVoicer,
    SpeechCapture,
    SpeechPlayback,
    TranscriptionSource,
)

__all__ = [
    "PartialTranscript",
    "QueueTranscriptionSource",
    "QuestionVoicer",
    "SpeechCapture",
    "SpeechPlayback",
    "TranscriptionSource",
]
