"""
Batch call dispatcher.

Owns the in-memory scheduling state: the batch currently being dialed and a
FIFO of batch ids waiting for their turn. Only one batch runs at a time, and
inside a batch calls are placed strictly one after another with a fixed
pause between them.

The record store stays the source of truth for every status and counter;
the queue itself is not persisted (see ``resume_interrupted`` for restarts).
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Callable, Optional

import structlog

from skyiq.config import settings
from skyiq.db.unit_of_work import UnitOfWork
from skyiq.logging_config import get_logger
from skyiq.models.schemas import BatchStatus
from skyiq.services.call_service import new_outbound_call
from skyiq.services.elevenlabs_service import initiate_outbound_call
from skyiq.utils.helper import utcnow_iso
from skyiq.utils.phone import normalize_phone_number

logger = get_logger(__name__)

INTERRUPTED_MESSAGE = "Interrupted by service restart"


def progress_snapshot(batch: dict[str, Any]) -> dict[str, Any]:
    return {
        "batch_id": batch["id"],
        "status": batch["status"],
        "total": batch["total_calls"],
        "completed": batch["completed_calls"],
        "successful": batch["successful_calls"],
        "failed": batch["failed_calls"],
    }


def resolve_final_status(batch: dict[str, Any]) -> BatchStatus:
    """Terminal status once no call of the batch is pending any more."""
    total = batch["total_calls"]
    if batch["failed_calls"] == total:
        return BatchStatus.FAILED
    if batch["successful_calls"] == total:
        return BatchStatus.COMPLETED
    return BatchStatus.PARTIALLY_COMPLETED


class BatchDispatcher:
    """
    Serializes batch execution.

    ``submit`` starts a batch right away when nothing is running, otherwise
    appends it to the queue. When a batch ends, however it ends, the next
    queued id is popped and started.
    """

    def __init__(
        self,
        broadcaster: Any,
        initiate_call: Callable[[str], dict[str, Any]] = initiate_outbound_call,
        uow_factory: Callable[[], UnitOfWork] = UnitOfWork,
        call_interval: Optional[float] = None,
    ) -> None:
        self._broadcaster = broadcaster
        self._initiate_call = initiate_call
        self._uow_factory = uow_factory
        self._call_interval = (
            settings.BATCH_CALL_INTERVAL_SECONDS if call_interval is None else call_interval
        )

        self._lock = asyncio.Lock()
        self._current_batch_id: Optional[str] = None
        self._queue: deque[str] = deque()
        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def current_batch_id(self) -> Optional[str]:
        return self._current_batch_id

    def status(self) -> dict[str, Any]:
        return {
            "current_batch_id": self._current_batch_id,
            "queued_batch_ids": list(self._queue),
        }

    # -- Scheduling --

    async def submit(self, batch_id: str) -> int:
        """Schedule a batch. Returns its queue position, 0 when started now."""
        async with self._lock:
            if self._current_batch_id is None:
                self._start(batch_id)
                position = 0
            else:
                self._queue.append(batch_id)
                position = len(self._queue)

        logger.info("batch_scheduled", batch_id=batch_id, queue_position=position)
        return position

    async def cancel(self, batch_id: str) -> bool:
        """Cancel a batch that has not started yet."""
        async with self._lock:
            with self._uow_factory() as uow:
                cancelled = uow.batches.cancel_if_pending(batch_id)

            if cancelled and batch_id in self._queue:
                self._queue.remove(batch_id)

        if cancelled:
            logger.info("batch_cancelled", batch_id=batch_id)
        return cancelled

    async def wait_idle(self) -> None:
        """Block until nothing is running and nothing is queued."""
        await self._idle.wait()

    async def resume_interrupted(self) -> list[str]:
        """
        Recover after a restart.

        Calls caught mid-flight are failed (they are never dialed twice),
        half-run batches go back to pending, and every pending batch is
        queued again, oldest first.
        """
        with self._uow_factory() as uow:
            interrupted = uow.batch_calls.fail_interrupted(INTERRUPTED_MESSAGE, utcnow_iso())
            for batch_id, count in interrupted.items():
                uow.batches.increment_failed(batch_id, count)
            uow.batches.reset_processing_to_pending()
            pending = [batch["id"] for batch in uow.batches.list_by_status(BatchStatus.PENDING.value)]

        if interrupted or pending:
            logger.info(
                "batches_resumed",
                interrupted_calls=sum(interrupted.values()),
                pending_batches=len(pending),
            )

        for batch_id in pending:
            await self.submit(batch_id)
        return pending

    def _start(self, batch_id: str) -> None:
        # Caller holds self._lock.
        self._current_batch_id = batch_id
        self._idle.clear()
        self._task = asyncio.create_task(self._run(batch_id), name=f"batch-{batch_id}")

    async def _advance(self) -> None:
        async with self._lock:
            self._current_batch_id = None
            self._task = None

            if self._queue:
                self._start(self._queue.popleft())
            else:
                self._idle.set()

    async def _run(self, batch_id: str) -> None:
        structlog.contextvars.bind_contextvars(batch_id=batch_id)
        try:
            await self._process_batch(batch_id)
        except Exception as e:
            logger.exception("batch_processing_error", error=str(e))
            self._fail_batch(batch_id, str(e))
        finally:
            structlog.contextvars.unbind_contextvars("batch_id")
            await self._advance()

    # -- Processing --

    async def _process_batch(self, batch_id: str) -> None:
        with self._uow_factory() as uow:
            batch = uow.batches.get_by_id(batch_id)
            if batch is None:
                raise LookupError("Batch not found")

            if not uow.batches.mark_processing(batch_id):
                logger.info("batch_skipped", status=batch["status"])
                return

            calls = uow.batch_calls.get_pending(batch_id)

        logger.info("batch_started", pending_calls=len(calls), total_calls=batch["total_calls"])

        for index, call in enumerate(calls):
            if index:
                await asyncio.sleep(self._call_interval)
            await self._process_call(batch_id, call)

        with self._uow_factory() as uow:
            batch = uow.batches.get_by_id(batch_id)
            final_status = resolve_final_status(batch)
            uow.batches.update_status(batch_id, final_status.value)

        batch["status"] = final_status.value
        logger.info(
            "batch_finished",
            status=final_status.value,
            successful=batch["successful_calls"],
            failed=batch["failed_calls"],
        )
        self._emit("batch_completed", progress_snapshot(batch))

    async def _process_call(self, batch_id: str, call: dict[str, Any]) -> None:
        batch_call_id = call["id"]

        with self._uow_factory() as uow:
            uow.batch_calls.mark_processing(batch_call_id)
            batch = uow.batches.get_by_id(batch_id)

        self._emit("batch_progress", {
            **progress_snapshot(batch),
            "batch_call_id": batch_call_id,
            "phone_number": call["phone_number"],
        })

        try:
            phone_number = normalize_phone_number(call["phone_number"])
            result = await asyncio.to_thread(self._initiate_call, phone_number)
        except Exception as e:
            with self._uow_factory() as uow:
                uow.batch_calls.mark_failed(batch_call_id, str(e), utcnow_iso())
                uow.batches.increment_failed(batch_id)
            logger.warning(
                "batch_call_failed",
                batch_call_id=batch_call_id,
                phone_number=call["phone_number"],
                error=str(e),
            )
            return

        call_record = new_outbound_call(phone_number, (result or {}).get("conversation_id"))

        with self._uow_factory() as uow:
            uow.calls.create_call(call_record)
            uow.batch_calls.mark_completed(
                batch_call_id,
                call_record["conversation_id"] or call_record["id"],
                call_record["timestamp"],
            )
            uow.batches.increment_successful(batch_id)

        logger.info(
            "batch_call_initiated",
            batch_call_id=batch_call_id,
            phone_number=phone_number,
            conversation_id=call_record["conversation_id"],
        )
        self._emit("new_call", call_record)

    def _fail_batch(self, batch_id: str, error: str) -> None:
        try:
            with self._uow_factory() as uow:
                uow.batches.update_status(batch_id, BatchStatus.FAILED.value)
        except Exception as e:
            logger.error("batch_fail_update_error", error=str(e))

        self._emit("batch_error", {"batch_id": batch_id, "error": error})

    def _emit(self, event: str, data: dict[str, Any]) -> None:
        try:
            self._broadcaster.publish(event, data)
        except Exception as e:
            logger.warning("broadcast_failed", event_name=event, error=str(e))
