"""Signature capture feature exceptions."""
from __future__ import annotations

from enum import Enum


class CaptureFailure(str, Enum):
    """Media-device failure taxonomy; each kind has its own user message."""
    NOT_SUPPORTED = "not_supported"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    DRIVER = "driver"
    GENERIC = "capture_failed"

    @property
    def user_message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    CaptureFailure.NOT_SUPPORTED: "This device does not support camera capture.",
    CaptureFailure.PERMISSION_DENIED: "Camera access was denied. Allow camera access and try again.",
    CaptureFailure.NOT_FOUND: "No camera was found.",
    CaptureFailure.DRIVER: "The camera is not supported by its driver or is in use by another program.",
    CaptureFailure.GENERIC: "Capturing the signature failed.",
}

# device error names -> failure kind
_BY_NAME = {
    "NotSupportedError": CaptureFailure.NOT_SUPPORTED,
    "TypeError": CaptureFailure.NOT_SUPPORTED,
    "NotAllowedError": CaptureFailure.PERMISSION_DENIED,
    "SecurityError": CaptureFailure.PERMISSION_DENIED,
    "NotFoundError": CaptureFailure.NOT_FOUND,
    "DevicesNotFoundError": CaptureFailure.NOT_FOUND,
    "NotReadableError": CaptureFailure.DRIVER,
    "OverconstrainedError": CaptureFailure.DRIVER,
}


class SignatureError(Exception):
    """Base exception for the signature feature."""


class MediaDeviceError(SignatureError):
    """Raised by a media backend; ``name`` follows the device error names above."""

    def __init__(self, name: str, message: str = "") -> None:
        super().__init__(message or name)
        self.name = name


class CaptureError(SignatureError):
    """Camera capture failed for good (after the fallback attempt)."""

    def __init__(self, kind: CaptureFailure, detail: str = "") -> None:
        super().__init__(detail or kind.user_message)
        self.kind = kind
        self.detail = detail

    @property
    def user_message(self) -> str:
        return self.kind.user_message


def classify(error: BaseException) -> CaptureFailure:
    name = getattr(error, "name", None) or type(error).__name__
    return _BY_NAME.get(str(name), CaptureFailure.GENERIC)
