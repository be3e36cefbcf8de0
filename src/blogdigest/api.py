from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError, version

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from .client import SummaryServiceClient
from .config import ConfigError, load_config
from .orchestrator import PipelineOrchestrator
from .utils import configure_logging, utc_now_iso

app = FastAPI(title="blogdigest API")

_orchestrator: PipelineOrchestrator | None = None


class RunRequest(BaseModel):
    url: str


def get_orchestrator() -> PipelineOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        logger = configure_logging("blogdigest.api")
        try:
            config = load_config(os.environ.get("BD_CONFIG"))
        except ConfigError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        client = SummaryServiceClient(config.service, logger=logger)
        _orchestrator = PipelineOrchestrator(client, logger=logger)
    return _orchestrator


@app.get("/health")
def health() -> dict[str, object]:
    return {
        "ok": True,
        "version": _get_version(),
        "time": utc_now_iso(),
    }


@app.post("/api/runs")
async def create_run(
    payload: RunRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> dict[str, object]:
    # the check and submit's state reset run without an await between them
    if orchestrator.is_running():
        raise HTTPException(
            status_code=409,
            detail={"reason": "run_in_progress", "run_id": orchestrator.run_id},
        )
    rejection = await orchestrator.submit_text(payload.url)
    if rejection is not None:
        raise HTTPException(
            status_code=400,
            detail={"reason": rejection.reason.value, "message": rejection.message},
        )
    return orchestrator.snapshot()


@app.get("/api/runs/current")
def current_run(
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> dict[str, object]:
    return orchestrator.snapshot()


def _get_version() -> str:
    try:
        return version("blogdigest")
    except PackageNotFoundError:
        return "unknown"
