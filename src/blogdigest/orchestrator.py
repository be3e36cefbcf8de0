from __future__ import annotations

import logging
from dataclasses import asdict, replace
from typing import Any, Callable

from .client import GENERIC_FAILURE_MESSAGE, SummaryServiceClient, SummaryServiceError
from .models import (
    STAGE_ORDER,
    Address,
    PipelineResult,
    Stage,
    StageName,
    StageStatus,
    initial_stages,
)
from .utils import log_event
from .validation import Rejection, validate

Listener = Callable[["PipelineOrchestrator"], None]

_ALLOWED_TRANSITIONS = {
    StageStatus.PENDING: {StageStatus.PROCESSING},
    StageStatus.PROCESSING: {StageStatus.COMPLETED, StageStatus.ERRORED},
    StageStatus.COMPLETED: set(),
    StageStatus.ERRORED: set(),
}


class PipelineStateError(RuntimeError):
    pass


class PipelineOrchestrator:
    """Drives one summarize request and presents it as three sequential stages.

    The remote service answers extraction, synopsis and translation in a single
    response, so only extraction is ever awaited; the other two stages are
    advanced back to back once the response arrives.

    Each ``submit`` starts a new run. An outcome that settles after a newer run
    has started is discarded.
    """

    def __init__(
        self,
        client: SummaryServiceClient,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self._listeners: list[Listener] = []
        self._run_id = 0
        self._stages: tuple[Stage, ...] = initial_stages()
        self._result: PipelineResult | None = None
        self._error: str | None = None
        self._running = False

    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def result(self) -> PipelineResult | None:
        return self._result

    def error(self) -> str | None:
        return self._error

    def is_running(self) -> bool:
        return self._running

    @property
    def run_id(self) -> int:
        return self._run_id

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> dict[str, Any]:
        return {
            "run_id": self._run_id,
            "is_running": self._running,
            "stages": [
                {"name": stage.name.value, "status": stage.status.value, "detail": stage.detail}
                for stage in self._stages
            ],
            "result": asdict(self._result) if self._result is not None else None,
            "error": self._error,
        }

    async def submit_text(self, raw_text: str | None) -> Rejection | None:
        checked = validate(raw_text)
        if isinstance(checked, Rejection):
            log_event(self._logger, logging.INFO, "submission_rejected", reason=checked.reason.value)
            return checked
        await self.submit(checked)
        return None

    async def submit(self, address: Address) -> None:
        self._run_id += 1
        run_id = self._run_id
        self._result = None
        self._error = None
        self._stages = initial_stages()
        self._running = True
        log_event(self._logger, logging.INFO, "run_started", run_id=run_id, url=address)
        self._notify()

        self._transition(StageName.EXTRACTION, StageStatus.PROCESSING, "extracting content")
        try:
            result = await self._client.summarize(address)
        except SummaryServiceError as exc:
            if self._is_stale(run_id, "failure"):
                return
            self._fail(run_id, exc.message or GENERIC_FAILURE_MESSAGE)
            return
        except Exception as exc:  # noqa: BLE001
            log_event(self._logger, logging.ERROR, "run_unexpected_error", run_id=run_id, error=repr(exc))
            if self._is_stale(run_id, "failure"):
                return
            self._fail(run_id, str(exc).strip() or GENERIC_FAILURE_MESSAGE)
            return

        if self._is_stale(run_id, "success"):
            return
        self._transition(StageName.EXTRACTION, StageStatus.COMPLETED, "content extracted")
        self._transition(StageName.SYNOPSIS, StageStatus.PROCESSING, "generating summary")
        self._transition(StageName.SYNOPSIS, StageStatus.COMPLETED, "summary generated")
        self._transition(StageName.TRANSLATION, StageStatus.PROCESSING, "translating")
        self._transition(StageName.TRANSLATION, StageStatus.COMPLETED, "translation completed")
        self._result = result
        self._running = False
        log_event(
            self._logger,
            logging.INFO,
            "run_completed",
            run_id=run_id,
            title=result.title,
            word_count=result.word_count,
        )
        self._notify()

    def _fail(self, run_id: int, message: str) -> None:
        processing = [stage for stage in self._stages if stage.status is StageStatus.PROCESSING]
        if len(processing) != 1:
            raise PipelineStateError(
                f"expected exactly one processing stage, found {len(processing)}"
            )
        self._transition(processing[0].name, StageStatus.ERRORED, message)
        self._error = message
        self._running = False
        log_event(
            self._logger,
            logging.WARNING,
            "run_failed",
            run_id=run_id,
            stage=processing[0].name.value,
            error=message,
        )
        self._notify()

    def _is_stale(self, run_id: int, outcome: str) -> bool:
        if run_id == self._run_id:
            return False
        log_event(
            self._logger,
            logging.INFO,
            "stale_outcome_discarded",
            run_id=run_id,
            current_run_id=self._run_id,
            outcome=outcome,
        )
        return True

    def _transition(self, name: StageName, status: StageStatus, detail: str | None) -> None:
        index = STAGE_ORDER.index(name)
        current = self._stages[index]
        if status not in _ALLOWED_TRANSITIONS[current.status]:
            raise PipelineStateError(
                f"illegal transition for {name.value}: {current.status.value} -> {status.value}"
            )
        if status is StageStatus.PROCESSING:
            for earlier in self._stages[:index]:
                if earlier.status is not StageStatus.COMPLETED:
                    raise PipelineStateError(
                        f"{name.value} cannot start before {earlier.name.value} completes"
                    )
        stages = list(self._stages)
        stages[index] = replace(current, status=status, detail=detail)
        self._stages = tuple(stages)
        log_event(
            self._logger,
            logging.DEBUG,
            "stage_transition",
            stage=name.value,
            status=status.value,
            detail=detail,
        )
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
