"""Thread-safe record of every attempt observed during a run."""

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from ci_reporter.errors import OrderingError, StoreClosedError
from ci_reporter.models.attempt import Attempt, TestIdentity, TestRecord

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class AttemptStore:
    """Ordered mapping from test identity to its attempts.

    With ``strict_ordering`` an attempt must carry the index following the
    attempts already recorded for its test. Without it, arrival order is
    authoritative and the attempt is re-indexed to its arrival position.
    """

    strict_ordering: bool = True
    _attempts: dict[TestIdentity, list[Attempt]] = field(
        default_factory=dict, init=False, repr=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )
    _closed: bool = field(default=False, init=False)

    def record_attempt(self, identity: TestIdentity, attempt: Attempt) -> Attempt:
        """Append an attempt to the record of ``identity``.

        Returns:
            The attempt as stored (re-indexed when ordering is not strict)

        Raises:
            OrderingError: If strict and the index is not the next expected one
            StoreClosedError: If the store was closed

        """
        with self._lock:
            if self._closed:
                raise StoreClosedError(
                    f"Cannot record attempt for {identity!r}: run is finalized"
                )

            expected = len(self._attempts.get(identity, ()))
            if attempt.attempt_index != expected:
                if self.strict_ordering:
                    raise OrderingError(
                        f"Attempt {attempt.attempt_index} for {identity!r} "
                        f"does not follow {expected} recorded attempt(s)"
                    )
                log.debug(
                    "Re-indexing attempt for %s: %d -> %d",
                    identity,
                    attempt.attempt_index,
                    expected,
                )
                attempt = replace(attempt, attempt_index=expected)

            self._attempts.setdefault(identity, []).append(attempt)
            return attempt

    def all_records(self) -> Sequence[TestRecord]:
        """Return a snapshot of all records in first-observed order."""
        with self._lock:
            return tuple(
                TestRecord(identity=identity, attempts=tuple(attempts))
                for identity, attempts in self._attempts.items()
            )

    def attempt_count(self, identity: TestIdentity) -> int:
        with self._lock:
            return len(self._attempts.get(identity, ()))

    def close(self) -> None:
        """Finalize the store; later attempts are rejected."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)
