"""Caller-owned artifact cache (in-memory only).

Keyed by activity id, last-request-wins: each run takes a sequence number when
it starts, and a finished run only replaces the cached artifact if no run that
started later has already stored one.
"""

import itertools
import threading

from loguru import logger

from memegen.models.meme import MemeArtifact


class ArtifactCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[int, MemeArtifact]] = {}
        self._sequence = itertools.count(1)

    @staticmethod
    def _key(activity_id: int | str) -> str:
        return str(activity_id)

    def begin_run(self, activity_id: int | str) -> int:
        """Reserve the next invocation sequence number for a run."""
        with self._lock:
            sequence = next(self._sequence)
        logger.debug("Run started", activity_id=activity_id, sequence=sequence)
        return sequence

    def store(self, activity_id: int | str, artifact: MemeArtifact, sequence: int) -> bool:
        """Store an artifact unless a later-started run already stored one.

        Returns:
            True if the artifact is now cached, False if it was stale
        """
        key = self._key(activity_id)
        with self._lock:
            current = self._entries.get(key)
            if current is not None and current[0] > sequence:
                logger.debug(
                    "Discarding stale artifact",
                    activity_id=activity_id,
                    sequence=sequence,
                    cached_sequence=current[0],
                )
                return False
            self._entries[key] = (sequence, artifact)
        return True

    def get(self, activity_id: int | str) -> MemeArtifact | None:
        with self._lock:
            entry = self._entries.get(self._key(activity_id))
        return entry[1] if entry else None

    def __contains__(self, activity_id: object) -> bool:
        with self._lock:
            return str(activity_id) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
