"""Ordered record of one call."""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from callcoach.models import TranscriptEntry


class TranscriptLog:
    """Append-only list of transcript entries; insertion order is conversation order."""

    def __init__(self):
        self._entries: List[TranscriptEntry] = []

    def append(self, role: str, text: str) -> TranscriptEntry:
        entry = TranscriptEntry(role=role, text=text.strip())
        self._entries.append(entry)
        return entry

    def add_caller(self, text: str) -> TranscriptEntry:
        return self.append("caller", text)

    def add_suggestion(self, text: str) -> TranscriptEntry:
        return self.append("suggestion", text)

    def recent(self, limit: int) -> List[TranscriptEntry]:
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def clear(self) -> None:
        self._entries = []

    @property
    def entries(self) -> Tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def to_dicts(self) -> List[Dict]:
        return [e.to_dict() for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(tuple(self._entries))
