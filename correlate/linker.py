"""
Linker: fold scan hits and blame events into the correlated comment state.

The state is immutable; reduce_event() returns a new state for every message,
copying only the mapping it touches. Messages are tagged and dispatched by tag.
Merging is order independent: the two attribution kinds set disjoint fields
(``summary`` is shared but both kinds report the same commit summary).
"""
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, FrozenSet

from errors import MalformedEvent
from normalize.models import RawComment, ATTRIBUTION_KINDS, validate_attribution
from normalize.util import normalize_comment
from correlate.keys import identity_key
from correlate.models import CorrelatedComment, JoinKey

SCAN = "scan"
ATTRIBUTION = "attribution"


def _frozen(mapping=None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ScanRecorded:
    raw: RawComment
    tag = SCAN


@dataclass(frozen=True)
class AttributionRecorded:
    key: str
    commit_hash: str
    event: object
    tag = ATTRIBUTION


@dataclass(frozen=True)
class StoreState:
    """One immutable version of the correlation state."""
    raw_comments: Mapping[str, RawComment] = field(default_factory=_frozen)
    comments: Mapping[JoinKey, CorrelatedComment] = field(default_factory=_frozen)
    kind_counters: Mapping[str, int] = field(default_factory=lambda: _frozen({k: 0 for k in ATTRIBUTION_KINDS}))

    @property
    def scan_count(self) -> int:
        return len(self.raw_comments)

    @property
    def joined_count(self) -> int:
        return len(self.comments)

    def joined_keys(self) -> FrozenSet[str]:
        return frozenset(key for key, _ in self.comments)

    def pending_keys(self) -> FrozenSet[str]:
        """Scanned keys that have not received any blame event yet."""
        return frozenset(self.raw_comments) - self.joined_keys()

    def is_complete(self) -> bool:
        """Every distinct scan hit is joined and both blame kinds arrived equally often."""
        counters = self.kind_counters
        blames_loaded = len({counters.get(kind, 0) for kind in ATTRIBUTION_KINDS}) == 1
        return self.scan_count == self.joined_count and blames_loaded


def _reduce_scan(state: StoreState, message: ScanRecorded) -> StoreState:
    raw = message.raw.validate()
    key = identity_key(raw.file, raw.line, raw.text)
    raw_comments = dict(state.raw_comments)
    raw_comments[key] = raw
    return replace(state, raw_comments=MappingProxyType(raw_comments))


def _reduce_attribution(state: StoreState, message: AttributionRecorded) -> StoreState:
    event = message.event
    validate_attribution(event)
    if message.key not in state.raw_comments:
        raise MalformedEvent(event, ['scanned key'])
    if message.commit_hash != event.commit_hash:
        raise MalformedEvent(event, ['matching commit_hash'])

    fields = event.fields()
    fields.pop('commit_hash', None)
    if 'content' in fields:
        fields['content'] = normalize_comment(fields['content'])

    join_key = (message.key, message.commit_hash)
    current = state.comments.get(join_key) or CorrelatedComment(key=message.key, commit_hash=message.commit_hash)
    comments = dict(state.comments)
    comments[join_key] = current.merge(fields)

    counters = dict(state.kind_counters)
    counters[event.kind] = counters.get(event.kind, 0) + 1
    return replace(state, comments=MappingProxyType(comments), kind_counters=MappingProxyType(counters))


_REDUCERS = {
    SCAN: _reduce_scan,
    ATTRIBUTION: _reduce_attribution,
}


def reduce_event(state: StoreState, message) -> StoreState:
    """Apply one tagged message to ``state`` and return the new state.

    Raises MalformedEvent for messages that cannot be applied; ``state`` itself is never modified.
    """
    reducer = _REDUCERS.get(getattr(message, 'tag', None))
    if reducer is None:
        raise MalformedEvent(message, ['tag'])
    return reducer(state, message)
