"""Two-phase order pipeline orchestrator (analyze, then export).

Both phases share one `ConsoleState`. Each invocation opens exactly one
stream session, feeds its chunks through the frame decoder and dispatcher,
and folds the events into the state until a ``done`` event or the end of the
transport. Observers are notified after every state change so a renderer can
show logs as they arrive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import NoReturn

from order_console.core.error_handler import (
    StructuredLogger,
    describe_error,
    new_correlation_id,
)
from order_console.core.exceptions import (
    ConsoleError,
    InputValidationError,
    SessionBusyError,
    TransportError,
)
from order_console.schemas.orders import (
    ExportRequest,
    PipelineResult,
    has_maker_codes,
)
from order_console.services.orders.interfaces import (
    ChunkStream,
    OrderStreamClientProtocol,
)
from order_console.services.orders.models import InputFile, Phase
from order_console.services.stream.models import ConsoleState
from order_console.services.stream.reducer import Clock, append_log, begin_session
from order_console.services.stream.session import afold_stream


logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

StateObserver = Callable[[ConsoleState], None]

ANALYZE_STARTED = "Analysis started"
ANALYZE_COMPLETED = "Backend processing completed"
ANALYZE_FAILED = "An error occurred during analysis"
EXPORT_STARTED = "Request spreadsheet generation started"
EXPORT_COMPLETED = "Request spreadsheet generation completed"
EXPORT_FAILED = "An error occurred while generating the request spreadsheet"


class OrderPipelineOrchestrator:
    """Drives the analyze and export stream sessions against one result slot.

    Only one session runs at a time: starting either phase while a session is
    active raises `SessionBusyError` and leaves the running session untouched.
    Other failures raise after recording a single operator-facing message in
    `last_error`; logs and results gathered before the failure stay in
    `state`.
    """

    def __init__(
        self,
        client: OrderStreamClientProtocol,
        *,
        observers: Sequence[StateObserver] = (),
        clock: Clock = datetime.now,
    ) -> None:
        self._client = client
        self._observers: list[StateObserver] = list(observers)
        self._clock = clock
        self._state = ConsoleState()
        self._active_phase: Phase | None = None
        self.center_id: str | None = None
        self.last_error: str | None = None

    @property
    def state(self) -> ConsoleState:
        return self._state

    @property
    def result(self) -> PipelineResult | None:
        if self._state.result is None:
            return None
        return PipelineResult.from_payload(self._state.result)

    @property
    def active_phase(self) -> Phase | None:
        return self._active_phase

    @property
    def analyzing(self) -> bool:
        return self._active_phase == "analyze"

    @property
    def can_export(self) -> bool:
        return has_maker_codes(self._state.result)

    def _set_state(self, state: ConsoleState) -> None:
        if state is self._state:
            return
        self._state = state
        for observer in self._observers:
            observer(state)

    def _log(self, message: str) -> None:
        self._set_state(append_log(self._state, message, clock=self._clock))

    def _reject(self, error: ConsoleError) -> NoReturn:
        self.last_error = describe_error(error)
        structured_logger.warning(
            "Phase rejected", error_code=error.error_code, detail=error.message
        )
        raise error

    def _check_idle(self, phase: Phase) -> None:
        # last_error belongs to the running session; leave it alone.
        if self._active_phase is not None:
            error = SessionBusyError(phase, self._active_phase)
            structured_logger.warning(
                "Phase rejected", error_code=error.error_code, detail=error.message
            )
            raise error

    async def run_analyze(
        self,
        center_id: str,
        ocr_files: Sequence[InputFile],
        reference_file: InputFile | None = None,
    ) -> ConsoleState:
        """Upload the inputs and stream the analysis into a fresh state."""
        self._check_idle("analyze")
        if not center_id or not center_id.strip():
            self._reject(InputValidationError("No center ID was specified"))
        if not ocr_files:
            self._reject(InputValidationError("Select at least one file for OCR"))

        self.last_error = None
        self.center_id = center_id
        self._set_state(ConsoleState())
        self._log(ANALYZE_STARTED)

        opener = self._client.open_analyze_stream(
            center_id, list(ocr_files), reference_file
        )
        await self._run_session("analyze", opener, ANALYZE_COMPLETED, ANALYZE_FAILED)
        return self._state

    async def run_export(self, center_id: str | None = None) -> ConsoleState:
        """Generate the per-maker request spreadsheet from the current result."""
        self._check_idle("export")
        result = self._state.result
        if result is None or not has_maker_codes(result):
            self._reject(InputValidationError("No analysis result is available"))
        center_id = center_id or self.center_id
        if not center_id:
            self._reject(InputValidationError("No center ID was specified"))

        self.last_error = None
        self._log(EXPORT_STARTED)
        request = ExportRequest.from_result(center_id, result)
        opener = self._client.open_export_stream(request)
        await self._run_session("export", opener, EXPORT_COMPLETED, EXPORT_FAILED)
        return self._state

    async def _run_session(
        self,
        phase: Phase,
        opener: AbstractAsyncContextManager[ChunkStream],
        completion_message: str,
        failure_message: str,
    ) -> None:
        self._active_phase = phase
        new_correlation_id()
        structured_logger.info("Stream session started", phase=phase)
        self._set_state(begin_session(self._state, completion_message))
        logs_before = len(self._state.logs)
        try:
            async with opener as chunks:
                await afold_stream(chunks, self._state, self._clock, self._set_state)
        except TransportError as exc:
            self.last_error = describe_error(exc)
            structured_logger.error(
                "Stream session failed",
                phase=phase,
                error_code=exc.error_code,
                status_code=exc.status_code,
            )
            self._log(failure_message)
            raise
        finally:
            self._active_phase = None

        if not self._state.terminated:
            logger.info("%s stream ended without a done event", phase)
        structured_logger.info(
            "Stream session finished",
            phase=phase,
            new_log_lines=len(self._state.logs) - logs_before,
            terminated=self._state.terminated,
        )
