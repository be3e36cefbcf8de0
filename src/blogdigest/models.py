from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Address(str):
    """A trimmed http(s) address accepted by ``validation.validate``."""

    __slots__ = ()


class StageName(str, Enum):
    EXTRACTION = "extraction"
    SYNOPSIS = "synopsis"
    TRANSLATION = "translation"

    def label(self, target_language: str = "Urdu") -> str:
        if self is StageName.EXTRACTION:
            return "Scraping blog content"
        if self is StageName.SYNOPSIS:
            return "Generating summary"
        return f"Translating to {target_language}"


STAGE_ORDER: tuple[StageName, ...] = (
    StageName.EXTRACTION,
    StageName.SYNOPSIS,
    StageName.TRANSLATION,
)


class StageStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERRORED = "errored"


@dataclass(frozen=True)
class Stage:
    name: StageName
    status: StageStatus = StageStatus.PENDING
    detail: str | None = None


def initial_stages() -> tuple[Stage, ...]:
    return tuple(Stage(name=name) for name in STAGE_ORDER)


@dataclass(frozen=True)
class PipelineResult:
    id: int | float
    blog_url: str
    title: str
    summary_english: str
    summary_urdu: str
    created_at: str
    word_count: int
    author: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> PipelineResult:
        return cls(
            id=payload["id"],
            blog_url=payload["blog_url"],
            title=payload["title"],
            summary_english=payload["summary_english"],
            summary_urdu=payload["summary_urdu"],
            created_at=payload["created_at"],
            word_count=payload["word_count"],
            author=payload.get("author"),
        )
