"""Batch distribution handler - drives validated rows one by one through the transfer service."""
import asyncio
import logging
from typing import Any, AsyncIterator, Callable, List, Optional, Sequence, Union

from ..errors import MalformedResponseError, PreconditionError
from ..models import DistributionConfig, DistributionRequest, DistributionResult, TransferResponse, ValidatedRow
from ..protocols import IProgressObserver, ITransferGateway
from ..utils.events import EventEmitter
from ..validation import validate_reason, validate_row, valid_rows
from .models import BatchState, RunMode, COMPLETED_MARKER, FAILED_MARKER, STOPPED_MARKER

logger = logging.getLogger(__name__)

NO_VALID_ROWS = "No valid rows found to distribute"

_TERMINAL_MARKERS = {
    RunMode.COMPLETED: COMPLETED_MARKER,
    RunMode.STOPPED: STOPPED_MARKER,
    RunMode.FAILED: FAILED_MARKER,
}

# Observer method name -> event name
_OBSERVER_EVENTS = {
    "on_validated": "validated",
    "on_start": "start",
    "on_item_start": "item_start",
    "on_item": "item",
    "on_progress": "progress",
    "on_pause": "pause",
    "on_resume": "resume",
    "on_finish": "finish",
    "on_error": "error",
}


def _describe_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"


class BatchDistributionProcess:
    """
    Process object for one batch run with event-based progress tracking.

    Rows are sent strictly one at a time, in input order. ``pause()``,
    ``resume()`` and ``stop()`` only flip the requested mode; the run loop
    picks the change up at the next item boundary, so a transfer already in
    flight always finishes. Signals must be sent from the event loop thread.

    Usage:
        process = handler.run(rows, reason="bonus payout", admin_id="admin-1")

        process.on_item(lambda result, state: print(result.address, result.success))
        process.on_finish(lambda state: print(f"{state.completed}/{state.total} sent"))

        await process.start()   # non-blocking
        process.pause()
        process.resume()
        state = await process.wait()
    """

    def __init__(
        self,
        gateway: ITransferGateway,
        rows: Sequence[ValidatedRow],
        reason: str,
        admin_id: str,
        item_delay: float = 2.0,
    ):
        self._gateway = gateway
        self._rows = list(rows)
        self._valid_rows = valid_rows(self._rows)
        self._reason = reason
        self._admin_id = admin_id
        self._item_delay = item_delay

        self._events = EventEmitter()
        self._state = BatchState(total=len(self._valid_rows))
        self._mode = RunMode.IDLE
        self._task: Optional[asyncio.Task] = None
        self._wake = asyncio.Event()
        self._wake.set()
        self._stopped = asyncio.Event()
        self._queues: List[asyncio.Queue] = []
        self._error: Optional[Exception] = None

    # Event subscription methods
    def on_validated(self, callback: Callable[[List[ValidatedRow]], Any]):
        """Called once on start with every validated row, invalid ones included."""
        self._events.on("validated", callback)

    def on_start(self, callback: Callable[[BatchState], Any]):
        self._events.on("start", callback)

    def on_item_start(self, callback: Callable[[ValidatedRow, BatchState], Any]):
        """Called before a row is sent. Receives the row and the state naming it as current."""
        self._events.on("item_start", callback)

    def on_item(self, callback: Callable[[DistributionResult, BatchState], Any]):
        """Called after each attempted transfer with its result and the updated state."""
        self._events.on("item", callback)

    def on_progress(self, callback: Callable[[BatchState], Any]):
        """Called with every new state snapshot."""
        self._events.on("progress", callback)

    def on_pause(self, callback: Callable[[BatchState], Any]):
        self._events.on("pause", callback)

    def on_resume(self, callback: Callable[[BatchState], Any]):
        self._events.on("resume", callback)

    def on_finish(self, callback: Callable[[BatchState], Any]):
        """Called once the run is completed, stopped or failed. Receives the final state."""
        self._events.on("finish", callback)

    def on_error(self, callback: Callable[[Exception], Any]):
        self._events.on("error", callback)

    def subscribe(self, observer: IProgressObserver):
        """Register every ``on_*`` method an observer object defines."""
        for method_name, event_name in _OBSERVER_EVENTS.items():
            callback = getattr(observer, method_name, None)
            if callable(callback):
                self._events.on(event_name, callback)

    # Control methods
    async def start(self):
        """Start the run (non-blocking)."""
        if self._mode is RunMode.STOPPED and self._task is None:
            # Stopped before it ever started
            if not self._state.is_finished:
                await self._finish(RunMode.STOPPED)
            return
        if self._mode is not RunMode.IDLE:
            raise RuntimeError(f"Cannot start process in state: {self._mode}")

        self._mode = RunMode.RUNNING
        self._state = self._state.with_mode(RunMode.RUNNING)
        logger.info(
            f"Starting distribution of {self._state.total} rows "
            f"({len(self._rows) - self._state.total} invalid skipped) by {self._admin_id}"
        )
        await self._events.emit("validated", list(self._rows))
        await self._events.emit("start", self._state)
        self._task = asyncio.create_task(self._run())

    def pause(self) -> bool:
        """Request a pause before the next item. Returns False if not running."""
        if self._mode is not RunMode.RUNNING:
            return False
        self._mode = RunMode.PAUSED
        self._wake.clear()
        logger.info("Pause requested")
        return True

    def resume(self) -> bool:
        """Resume a paused run. Returns False if not paused."""
        if self._mode is not RunMode.PAUSED:
            return False
        self._mode = RunMode.RUNNING
        self._wake.set()
        logger.info("Resume requested")
        return True

    def toggle_pause(self) -> bool:
        if self._mode is RunMode.PAUSED:
            return self.resume()
        return self.pause()

    def stop(self) -> bool:
        """Stop the run for good. Rows not yet started are never attempted."""
        if self._mode.is_terminal:
            return False
        self._mode = RunMode.STOPPED
        self._stopped.set()
        self._wake.set()
        logger.info("Stop requested")
        return True

    async def wait(self) -> BatchState:
        """Wait for the run to finish and return the final state."""
        if self._mode is RunMode.IDLE or (self._mode is RunMode.STOPPED and self._task is None):
            await self.start()

        if self._task:
            await self._task

        return self._state

    async def updates(self) -> AsyncIterator[BatchState]:
        """Yield the current state, then every new snapshot up to the final one."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            state = self._state
            yield state
            while not state.is_finished:
                state = await queue.get()
                yield state
        finally:
            self._queues.remove(queue)

    # State properties
    @property
    def state(self) -> BatchState:
        """Latest published snapshot."""
        return self._state

    @property
    def mode(self) -> RunMode:
        """Requested mode; the state's mode follows at the next boundary."""
        return self._mode

    @property
    def rows(self) -> List[ValidatedRow]:
        return list(self._rows)

    @property
    def valid_rows(self) -> List[ValidatedRow]:
        return list(self._valid_rows)

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def admin_id(self) -> str:
        return self._admin_id

    @property
    def is_running(self) -> bool:
        return self._mode is RunMode.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._mode is RunMode.PAUSED

    @property
    def is_finished(self) -> bool:
        return self._state.is_finished

    @property
    def error(self) -> Optional[Exception]:
        """Exception that crashed the run loop, if any."""
        return self._error

    # Internal methods
    async def _publish(self, state: BatchState, event_name: Optional[str] = None, *args):
        self._state = state
        for queue in self._queues:
            queue.put_nowait(state)
        if event_name:
            await self._events.emit(event_name, *args, state)
        await self._events.emit("progress", state)

    async def _run(self):
        try:
            last_index = len(self._valid_rows) - 1
            for index, row in enumerate(self._valid_rows):
                if not await self._wait_at_boundary():
                    break

                await self._publish(self._state.with_current(row.describe()), "item_start", row)
                result = await self._distribute(row)
                await self._publish(self._state.with_result(result), "item", result)

                if index < last_index:
                    await self._delay()
        except Exception as e:
            logger.error(f"Distribution loop crashed: {e}")
            self._error = e
            await self._events.emit("error", e)
            await self._finish(RunMode.FAILED)
            raise

        # A stop requested during the last transfer still counts as a stop
        await self._finish(RunMode.STOPPED if self._mode is RunMode.STOPPED else RunMode.COMPLETED)

    async def _wait_at_boundary(self) -> bool:
        """Honor pause/stop between items. Returns False when the run must end."""
        if self._mode is RunMode.STOPPED:
            return False

        if self._mode is RunMode.PAUSED:
            await self._publish(self._state.with_mode(RunMode.PAUSED), "pause")
            logger.info(f"Paused after {self._state.processed}/{self._state.total} rows")
            while self._mode is RunMode.PAUSED:
                await self._wake.wait()
            if self._mode is RunMode.STOPPED:
                return False
            await self._publish(self._state.with_mode(RunMode.RUNNING), "resume")
            logger.info("Resumed")

        return True

    async def _delay(self):
        """Inter-item delay, cut short by stop()."""
        if self._item_delay <= 0:
            return
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=self._item_delay)
        except asyncio.TimeoutError:
            pass

    async def _distribute(self, row: ValidatedRow) -> DistributionResult:
        try:
            response = await self._gateway.submit(row, self._reason, self._admin_id)
            if not isinstance(response, TransferResponse):
                response = TransferResponse.from_payload(response)
            result = DistributionResult.from_response(row, response)
        except MalformedResponseError as e:
            result = DistributionResult.fail(
                row.recipient_address, row.token_amount, "Malformed response", _describe_exception(e)
            )
        except Exception as e:
            result = DistributionResult.fail(
                row.recipient_address, row.token_amount, "Network error", _describe_exception(e)
            )

        if result.success:
            logger.info(f"Sent {row.describe()}: {result.transaction_hash}")
        else:
            logger.warning(f"Failed {row.describe()}: {result.error} {result.details or ''}".rstrip())
        return result

    async def _finish(self, mode: RunMode):
        self._mode = mode
        self._wake.set()
        await self._publish(self._state.with_mode(mode).with_current(_TERMINAL_MARKERS[mode]))
        logger.info(
            f"Distribution {mode.value}: {self._state.completed} sent, "
            f"{self._state.failed} failed, {self._state.remaining} remaining"
        )
        await self._events.emit("finish", self._state)


class BatchDistributionHandler:
    """Checks run preconditions and builds batch processes."""

    def __init__(self, gateway: ITransferGateway, config: Optional[DistributionConfig] = None):
        """
        Initialize batch handler.

        Args:
            gateway: Transfer gateway (ITransferGateway)
            config: DistributionConfig
        """
        self._gateway = gateway
        self._config = config or DistributionConfig()

    def run(
        self,
        rows: Sequence[Union[ValidatedRow, DistributionRequest]],
        reason: str,
        admin_id: Optional[str] = None,
    ) -> BatchDistributionProcess:
        """
        Prepare a batch run.

        Raw requests are validated here; already validated rows are used as is.
        Only valid rows are sent, invalid ones stay visible on the process.

        Raises:
            PreconditionError: reason too short or no valid rows
        """
        reason = validate_reason(reason)
        validated = [row if isinstance(row, ValidatedRow) else validate_row(row) for row in rows]
        if not valid_rows(validated):
            raise PreconditionError(NO_VALID_ROWS)

        return BatchDistributionProcess(
            self._gateway,
            validated,
            reason=reason,
            admin_id=admin_id or self._config.admin_id,
            item_delay=self._config.item_delay,
        )
