"""
Correlation store: the append-only join of scan hits and blame events.
"""
import logging
from typing import Mapping, FrozenSet, Optional

from errors import MalformedEvent
from normalize.models import RawComment
from correlate.keys import identity_key
from correlate.linker import StoreState, ScanRecorded, AttributionRecorded, reduce_event
from correlate.models import CorrelatedComment, JoinKey

logger = logging.getLogger(__name__)


class CorrelationStore:
    """Holds the current StoreState and applies messages to it through the linker reducer.

    Malformed messages are logged and dropped here; they never raise to the caller
    and leave every counter untouched.
    """

    def __init__(self, state: Optional[StoreState] = None):
        self._state = state or StoreState()

    @property
    def state(self) -> StoreState:
        return self._state

    def apply(self, message) -> bool:
        """Apply a tagged message. Returns False if it was dropped as malformed."""
        try:
            self._state = reduce_event(self._state, message)
        except MalformedEvent as exc:
            logger.warning("Dropping malformed event: %s", exc)
            return False
        return True

    def record_scan(self, raw: RawComment) -> Optional[str]:
        """Insert or overwrite a scan hit and return its identity key (None if dropped)."""
        if not self.apply(ScanRecorded(raw)):
            return None
        return identity_key(raw.file, raw.line, raw.text)

    def record_attribution(self, key: str, commit_hash: str, event) -> None:
        self.apply(AttributionRecorded(key, commit_hash, event))

    def is_complete(self) -> bool:
        return self._state.is_complete()

    def snapshot(self) -> Mapping[JoinKey, CorrelatedComment]:
        """Read-only view of the joined comments; later merges produce a new state and never show through."""
        return self._state.comments

    def raw_comments(self) -> Mapping[str, RawComment]:
        return self._state.raw_comments

    def pending_keys(self) -> FrozenSet[str]:
        return self._state.pending_keys()

    @property
    def scan_count(self) -> int:
        return self._state.scan_count

    @property
    def joined_count(self) -> int:
        return self._state.joined_count

    @property
    def kind_counters(self) -> Mapping[str, int]:
        return self._state.kind_counters
