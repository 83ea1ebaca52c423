"""Speech-to-text capture feeding the orchestrator, and question playback.

Platform bindings (browser recognition, a cloud STT stream, a TTS engine)
live behind :class:`TranscriptionSource` and :class:`SpeechPlayback`; this
module only buffers results and decides when to submit.
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Protocol, Set

from pydantic import BaseModel

from config.settings import settings
from interview_session import InterviewOrchestrator, QuestionEntry, SessionStateError, TranscriptEntry, TurnResult

logger = logging.getLogger(__name__)


class PartialTranscript(BaseModel):  # One recognition result, interim or final
    text: str
    is_final: bool = False


class TranscriptionSource(Protocol):  # Restartable stream of partial transcripts
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def results(self) -> AsyncIterator[PartialTranscript]: ...


class SpeechPlayback(Protocol):  # Text-to-speech capability
    async def speak(self, text: str) -> None: ...

    def cancel(self) -> None: ...


class QueueTranscriptionSource:  # In-process source fed by a caller (websocket handler, tests)
    def __init__(self) -> None:
        self._queue: Optional[asyncio.Queue[Optional[PartialTranscript]]] = None

    @property
    def listening(self) -> bool:
        return self._queue is not None

    def start(self) -> None:
        self._queue = asyncio.Queue()

    def stop(self) -> None:
        if self._queue is not None:
            self._queue.put_nowait(None)

    def feed(self, text: str, *, is_final: bool = False) -> None:
        if self._queue is None:
            raise RuntimeError("Transcription source is not listening")
        self._queue.put_nowait(PartialTranscript(text=text, is_final=is_final))

    async def results(self) -> AsyncIterator[PartialTranscript]:
        queue = self._queue
        if queue is None:
            return
        while True:
            item = await queue.get()
            if item is None:
                break
            yield item
        if self._queue is queue:
            self._queue = None


class SpeechCapture:
    """Accumulates recognition results and flushes them as one answer.

    Final results are kept in order; the latest interim result stands in for
    whatever the recognizer has not finalized yet. :meth:`stop` waits a short
    debounce so trailing results settle before the buffer is submitted.
    """

    def __init__(
        self,
        orchestrator: InterviewOrchestrator,
        source: TranscriptionSource,
        *,
        debounce: Optional[float] = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._source = source
        self._debounce = settings.SPEECH_STOP_DEBOUNCE_S if debounce is None else debounce
        self._final: List[str] = []
        self._interim = ""
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def listening(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def text(self) -> str:
        parts = [*self._final, self._interim]
        return " ".join(part.strip() for part in parts if part.strip())

    def start(self) -> None:
        if self.listening:
            return
        self._final.clear()
        self._interim = ""
        self._source.start()
        self._task = asyncio.get_running_loop().create_task(self._consume(), name="speech-capture")

    async def stop(self) -> Optional[TurnResult]:
        """Settle, stop listening, then submit the buffered text as an answer.

        The source keeps delivering results during the debounce; only then is
        it stopped and the consumer drained.
        """
        if self._task is None:
            return None
        await asyncio.sleep(self._debounce)
        self._source.stop()
        task, self._task = self._task, None
        done, _ = await asyncio.wait({task}, timeout=max(self._debounce, 0.1))
        if not done:
            logger.warning("Transcription source did not finish after stop; cancelling")
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        text = self.text
        self._final.clear()
        self._interim = ""
        if not text:
            return None
        try:
            return await self._orchestrator.submit_answer(text)
        except SessionStateError as exc:
            logger.warning("Dropping transcribed answer: %s", exc)
            return None

    def abort(self) -> None:  # Stop without submitting
        self._source.stop()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._final.clear()
        self._interim = ""

    async def _consume(self) -> None:
        async for result in self._source.results():
            if result.is_final:
                self._final.append(result.text)
                self._interim = ""
            else:
                self._interim = result.text


class QuestionVoicer:  # Speaks every interviewer question as it is appended
    def __init__(self, orchestrator: InterviewOrchestrator, playback: SpeechPlayback) -> None:
        self._playback = playback
        self._tasks: Set[asyncio.Task[None]] = set()
        self._unsubscribe = orchestrator.subscribe(self._on_entry)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _on_entry(self, entry: TranscriptEntry) -> None:
        if not isinstance(entry, QuestionEntry):
            return
        task = asyncio.get_running_loop().create_task(self._speak(entry.content), name="question-playback")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _speak(self, text: str) -> None:
        try:
            await self._playback.speak(text)
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            logger.exception("Question playback failed")

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self._unsubscribe()
        self._playback.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


__all__ = [
    "PartialTranscript",
    "QueueTranscriptionSource",
    "QuestionVoicer",
    "SpeechCapture",
    "SpeechPlayback",
    "TranscriptionSource",
]
