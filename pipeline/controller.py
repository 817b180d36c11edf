"""
Pipeline controller: runs one scan, fans out one blame query per hit, and feeds every
event into the correlation store from a single consumer loop.

Producers (the scan and each blame query) run as asyncio tasks and only put messages
on a queue; the consumer applies them one at a time, so store mutations never
interleave. After each message the on_update callback receives the current view.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Mapping, NamedTuple, Optional, Set

from errors import TransportError
from normalize.models import RawComment
from correlate.store import CorrelationStore
from settings import PendingConfig

logger = logging.getLogger(__name__)

SCAN_STREAM = "scan"
BLAME_STREAM = "blame"


class PipelineView(NamedTuple):
    """What the presentation layer sees after each mutation."""
    comments: Mapping
    raw_count: int
    complete: bool
    pending: FrozenSet[str]
    raw_comments: Mapping


@dataclass(frozen=True)
class ScanHit:
    raw: RawComment


@dataclass(frozen=True)
class AttributionArrived:
    key: str
    event: object


@dataclass(frozen=True)
class StreamEnded:
    stream: str
    label: str
    error: Optional[BaseException] = None


class PipelineController:
    """Owns one run: scanner, blamer, store and the event loop that ties them together.

    ``scanner`` must provide ``scan(revision, pattern)`` and ``blamer`` must provide
    ``blame(file, line)``; both return async iterators and raise TransportError on failure.
    """

    def __init__(self, config: PendingConfig, scanner, blamer, store: Optional[CorrelationStore] = None,
                 on_update: Optional[Callable[[PipelineView], None]] = None):
        self.config = config
        self.scanner = scanner
        self.blamer = blamer
        self.store = store or CorrelationStore()
        self.on_update = on_update
        self.blame_requests = 0
        self._scan_finished = False
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: Set[asyncio.Future] = set()
        self._active = 0

    def is_complete(self) -> bool:
        return self._scan_finished and self.store.is_complete()

    def current_view(self) -> PipelineView:
        return PipelineView(
            comments=self.store.snapshot(),
            raw_count=self.store.scan_count,
            complete=self.is_complete(),
            pending=self.store.pending_keys(),
            raw_comments=self.store.raw_comments(),
        )

    async def run(self) -> PipelineView:
        """Run until the scan and every blame query have terminated and return the final view."""
        self._queue = asyncio.Queue()
        self._spawn(self._produce_scan())
        try:
            while self._active:
                message = await self._queue.get()
                self._handle(message)
                self._notify()
        finally:
            await self._cancel_producers()

        view = self.current_view()
        if not view.complete:
            logger.warning("Pipeline finished with %d unjoined comment(s)", len(view.pending))
        return view

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._active += 1

    async def _cancel_producers(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _handle(self, message) -> None:
        if isinstance(message, ScanHit):
            self._on_scan_hit(message.raw)
        elif isinstance(message, AttributionArrived):
            commit_hash = getattr(message.event, 'commit_hash', None)
            self.store.record_attribution(message.key, commit_hash, message.event)
        elif isinstance(message, StreamEnded):
            self._on_stream_ended(message)

    def _on_scan_hit(self, raw: RawComment) -> None:
        key = self.store.record_scan(raw)
        if key is None:
            return
        self.blame_requests += 1
        self._spawn(self._produce_blame(key, raw))

    def _on_stream_ended(self, message: StreamEnded) -> None:
        self._active -= 1
        if message.stream == SCAN_STREAM:
            self._scan_finished = True
            logger.info("Scan finished with %d distinct comment(s)", self.store.scan_count)
        if message.error is not None:
            logger.error("%s query for %s failed: %s", message.stream, message.label, message.error)

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.current_view())

    async def _produce_scan(self) -> None:
        error = None
        try:
            async for raw in self.scanner.scan(self.config.revision, self.config.marker_pattern):
                await self._queue.put(ScanHit(raw))
        except TransportError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Unexpected scan failure")
            error = exc
        await self._queue.put(StreamEnded(SCAN_STREAM, self.config.revision, error))

    async def _produce_blame(self, key: str, raw: RawComment) -> None:
        error = None
        try:
            async for event in self.blamer.blame(raw.file, raw.line):
                await self._queue.put(AttributionArrived(key, event))
        except TransportError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Unexpected blame failure for %s:%s", raw.file, raw.line)
            error = exc
        await self._queue.put(StreamEnded(BLAME_STREAM, f"{raw.file}:{raw.line}", error))


async def run_pipeline(config: PendingConfig, scanner, blamer,
                       on_update: Optional[Callable[[PipelineView], None]] = None) -> PipelineView:
    """Run a controller, bounded by ``config.timeout`` when set.

    On timeout the outstanding queries are cancelled and the partial, incomplete view is returned.
    """
    controller = PipelineController(config, scanner, blamer, on_update=on_update)
    if config.timeout is None:
        return await controller.run()
    try:
        return await asyncio.wait_for(controller.run(), timeout=config.timeout)
    except asyncio.TimeoutError:
        logger.warning("Gave up waiting for blame results after %.1fs", config.timeout)
        return controller.current_view()
