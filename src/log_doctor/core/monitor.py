"""Incident bundling loop.

Reads lines, classifies them, keeps recent context in a ring buffer and, when a
line triggers, extends the window forward until a timeout or until a line
arrives that belongs to a different incident. Closed incidents are dispatched
to the diagnosis handler as independent tasks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Sequence

from .buffer import RingBuffer
from .models import Incident, LogEntry, MonitorState
from .parsing import Parser, parse_log_entry

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "DEFAULT"
DEFAULT_BUFFER_SIZE = 100
DEFAULT_BUNDLING_TIMEOUT = 5.0

Handler = Callable[[LogEntry, list[LogEntry]], Awaitable[None]]

_CLOSED = object()


class LogMonitor:
    """Single-consumer state machine driving classification and bundling."""

    def __init__(
        self,
        lines: AsyncIterable[str],
        parsers: Sequence[Parser],
        handler: Handler,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        token_budget: int,
        bundling_timeout: float = DEFAULT_BUNDLING_TIMEOUT,
        queue_size: int = 1024,
    ) -> None:
        if not parsers:
            raise ValueError("at least one parser is required")
        if bundling_timeout < 0:
            raise ValueError("bundling_timeout must be >= 0")
        self._lines = lines
        self._parsers = list(parsers)
        self._handler = handler
        self._buffer_size = buffer_size
        self._token_budget = token_budget
        self._timeout = bundling_timeout
        self._queue_size = queue_size

        self._buffers: dict[str, RingBuffer] = {}
        self._line_no = 0
        self._state = MonitorState.SCANNING
        self._source_closed = False
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def line_no(self) -> int:
        """Number of lines read from the source so far."""
        return self._line_no

    def _bucket(self, key: str) -> RingBuffer:
        buf = self._buffers.get(key)
        if buf is None:
            buf = RingBuffer(self._buffer_size, self._token_budget)
            self._buffers[key] = buf
        return buf

    async def _pump(self, queue: asyncio.Queue[object], errors: list[BaseException]) -> None:
        try:
            async for line in self._lines:
                await queue.put(line)
        except Exception as exc:
            errors.append(exc)
        finally:
            await queue.put(_CLOSED)

    async def run(self) -> None:
        """Consume the source until it is exhausted.

        Raises NoParserMatchedError if a line cannot be classified, and
        re-raises any error from the line source.
        """
        queue: asyncio.Queue[object] = asyncio.Queue(maxsize=self._queue_size)
        errors: list[BaseException] = []
        pump = asyncio.create_task(self._pump(queue, errors))

        # a line read while bundling that opens the next incident
        pending: tuple[str, int] | None = None
        try:
            while True:
                if pending is not None:
                    text, line_no = pending
                    pending = None
                else:
                    item = await queue.get()
                    if item is _CLOSED:
                        break
                    self._line_no += 1
                    text, line_no = str(item), self._line_no

                entry, parser_index = parse_log_entry(self._parsers, text, line_no)
                if entry.excluded:
                    logger.debug("Excluded line %d", line_no)
                    continue

                buf = self._bucket(DEFAULT_BUCKET)
                buf.append(entry)

                if not entry.should_diagnose:
                    continue

                logger.info("Entry to diagnose (line %d): %s", entry.line_no, entry.text)
                pending = await self._bundle(queue, entry, parser_index, buf)
                if pending is None and self._source_closed:
                    break
        finally:
            self._state = MonitorState.SCANNING
            pump.cancel()
            await asyncio.gather(pump, return_exceptions=True)

        if errors:
            raise errors[0]

    async def _bundle(
        self,
        queue: asyncio.Queue[object],
        trigger: LogEntry,
        parser_index: int,
        buf: RingBuffer,
    ) -> tuple[str, int] | None:
        """Extend the incident window; return a disqualifying line, if any."""
        self._state = MonitorState.BUNDLING
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        catch_all = len(self._parsers) - 1
        disqualified: tuple[str, int] | None = None

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.info("Bundling timeout for line %d", trigger.line_no)
                break
            try:
                item = await asyncio.wait_for(queue.get(), timeout=remaining)
            except TimeoutError:
                logger.info("Bundling timeout for line %d", trigger.line_no)
                break
            if item is _CLOSED:
                logger.debug("Line source closed while bundling")
                self._source_closed = True
                break

            self._line_no += 1
            text, line_no = str(item), self._line_no
            entry, matched = parse_log_entry(self._parsers, text, line_no)
            if entry.excluded:
                logger.debug("Excluded line %d", line_no)
                continue

            if matched == catch_all or (matched == parser_index and entry.should_diagnose):
                logger.debug("Bundling line %d (catch-all=%s)", line_no, matched == catch_all)
                buf.append(entry)
                continue

            logger.debug("Line %d starts a new incident", line_no)
            disqualified = (text, line_no)
            break

        self._dispatch(trigger, buf)
        self._state = MonitorState.SCANNING
        return disqualified

    def _dispatch(self, trigger: LogEntry, buf: RingBuffer) -> None:
        context = buf.dump()
        buf.clear()
        task = asyncio.create_task(self._run_handler(Incident(trigger=trigger, context=context)))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_handler(self, incident: Incident) -> None:
        try:
            await self._handler(incident.trigger, incident.context)
        except Exception:
            logger.exception("Handler failed for line %d", incident.trigger.line_no)

    async def join(self) -> None:
        """Wait for all in-flight diagnosis dispatches to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)


async def monitor_log_loop(
    lines: AsyncIterable[str],
    parsers: Sequence[Parser],
    handler: Handler,
    *,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    token_budget: int,
    bundling_timeout: float = DEFAULT_BUNDLING_TIMEOUT,
    wait_for_dispatch: bool = False,
) -> None:
    """Run a LogMonitor over `lines` until the source is exhausted."""
    monitor = LogMonitor(
        lines,
        parsers,
        handler,
        buffer_size=buffer_size,
        token_budget=token_budget,
        bundling_timeout=bundling_timeout,
    )
    try:
        await monitor.run()
    finally:
        if wait_for_dispatch:
            await monitor.join()
