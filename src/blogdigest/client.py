from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import jsonschema

from .config import ServiceConfig
from .models import Address, PipelineResult
from .utils import log_event

GENERIC_FAILURE_MESSAGE = "An unexpected error occurred"

RESULT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": [
        "id",
        "blog_url",
        "title",
        "summary_english",
        "summary_urdu",
        "created_at",
        "word_count",
    ],
    "properties": {
        "id": {"type": "number"},
        "blog_url": {"type": "string"},
        "title": {"type": "string"},
        "summary_english": {"type": "string"},
        "summary_urdu": {"type": "string"},
        "created_at": {"type": "string"},
        "word_count": {"type": "integer", "minimum": 0},
        "author": {"type": ["string", "null"]},
    },
}


class SummaryServiceError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RemoteRequestFailure(SummaryServiceError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(SummaryServiceError):
    pass


class MalformedResponse(SummaryServiceError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Malformed response from summary service: {detail}")
        self.detail = detail


class SummaryServiceClient:
    """Issues the single summarize request and turns its outcome into a result or an error."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._logger = logger or logging.getLogger(__name__)

    async def summarize(self, address: Address) -> PipelineResult:
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.timeout,
            headers={"User-Agent": self._config.user_agent},
        ) as http:
            try:
                response = await http.post(self._config.url, json={"url": str(address)})
            except httpx.RequestError as exc:
                message = str(exc).strip() or GENERIC_FAILURE_MESSAGE
                log_event(
                    self._logger,
                    logging.WARNING,
                    "summary_request_failed",
                    url=address,
                    error=message,
                )
                raise TransportFailure(message) from exc

        if not response.is_success:
            message = _error_message(response)
            log_event(
                self._logger,
                logging.WARNING,
                "summary_request_rejected",
                url=address,
                status=response.status_code,
                error=message,
            )
            raise RemoteRequestFailure(message, response.status_code)

        return _parse_result(response)


def _error_message(response: httpx.Response) -> str:
    fallback = f"HTTP error! status: {response.status_code}"
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return fallback
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return fallback


def _parse_result(response: httpx.Response) -> PipelineResult:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponse("body is not valid JSON") from exc
    try:
        jsonschema.validate(payload, RESULT_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise MalformedResponse(exc.message) from exc
    return PipelineResult.from_payload(payload)
