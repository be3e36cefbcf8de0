from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from .models import Address

ALLOWED_SCHEMES = ("http", "https")


class RejectionReason(str, Enum):
    EMPTY_INPUT = "empty_input"
    MALFORMED_ADDRESS = "malformed_address"
    UNSUPPORTED_SCHEME = "unsupported_scheme"


REJECTION_MESSAGES = {
    RejectionReason.EMPTY_INPUT: "Please enter a blog URL",
    RejectionReason.MALFORMED_ADDRESS: "Please enter a valid URL (must start with http:// or https://)",
    RejectionReason.UNSUPPORTED_SCHEME: "Please enter a valid URL (must start with http:// or https://)",
}


@dataclass(frozen=True)
class Rejection:
    reason: RejectionReason

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self.reason]


def validate(raw_text: str | None) -> Address | Rejection:
    text = (raw_text or "").strip()
    if not text:
        return Rejection(RejectionReason.EMPTY_INPUT)
    try:
        split = urlsplit(text)
        # port is parsed lazily and raises on non-numeric or out-of-range values
        split.port
    except ValueError:
        return Rejection(RejectionReason.MALFORMED_ADDRESS)
    if not split.scheme:
        return Rejection(RejectionReason.MALFORMED_ADDRESS)
    if split.scheme not in ALLOWED_SCHEMES:
        return Rejection(RejectionReason.UNSUPPORTED_SCHEME)
    host = split.hostname
    if not host or any(char.isspace() for char in split.netloc):
        return Rejection(RejectionReason.MALFORMED_ADDRESS)
    return Address(text)
