from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from homevoice.config import RecognitionOptions


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    transcript: str
    is_final: bool


@dataclass(frozen=True, slots=True)
class RecognitionEvent:
    """A batch of results; only entries from `result_index` on are new."""

    results: Sequence[RecognitionResult]
    result_index: int = 0

    def final_transcript(self) -> str:
        return "".join(r.transcript for r in self.results[self.result_index :] if r.is_final)


class SpeechEngine(Protocol):
    def start(self, options: RecognitionOptions) -> None:
        ...

    def stop(self) -> None:
        ...


class FrequencyAnalyser(Protocol):
    def byte_frequency_data(self) -> Sequence[int]:
        ...

    def close(self) -> None:
        ...


class MicrophoneAccess(Protocol):
    async def request(self) -> FrequencyAnalyser:
        """Resolve once access is granted; raise PermissionDenied on refusal."""
        ...
