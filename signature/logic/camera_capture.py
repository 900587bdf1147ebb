# signature/logic/camera_capture.py
"""
Camera capture of a handwritten signature.

A capture opens a stream on the environment-facing (rear) camera; if that
fails it retries once on the user-facing camera before giving up. The frame
is drawn onto the drawing surface and reduced to black ink by pen
extraction. Streams are released on completion, cancel and teardown.

Backends implement ``MediaDevices``; ``OpenCvMediaDevices`` drives local
cameras through OpenCV.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional, Protocol

from PIL import Image

from core.logging.logic.logger import logger
from ..exceptions.errors import CaptureError, CaptureFailure, MediaDeviceError, classify
from ..models.signature_config import SignatureConfig
from .drawing_surface import DrawingSurface
from .pen_extraction import extract_pen

_FEATURE = "SignatureCamera"

ENVIRONMENT = "environment"
USER = "user"

# device index per facing; 0 is the environment-facing (rear) camera
DEFAULT_INDICES: Dict[str, int] = {ENVIRONMENT: 0, USER: 1}


class MediaStream(Protocol):
    async def grab_frame(self) -> Image.Image: ...

    def stop(self) -> None: ...


class MediaDevices(Protocol):
    async def open_stream(self, facing: str) -> MediaStream:
        """Open a camera stream; raises ``MediaDeviceError`` on failure."""
        ...


class CameraCapture:
    """One capture attempt; usable as an async context manager."""

    def __init__(self, devices: MediaDevices, *, config: Optional[SignatureConfig] = None) -> None:
        self._devices = devices
        self._cfg = config or SignatureConfig()
        self._stream: Optional[MediaStream] = None
        self.facing: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    async def open(self) -> None:
        if self._stream is not None:
            return
        try:
            self._stream = await self._devices.open_stream(ENVIRONMENT)
            self.facing = ENVIRONMENT
            return
        except Exception as first:  # noqa: BLE001
            logger.log(_FEATURE, "EnvironmentCameraFailed", level="WARNING", message=f"{classify(first).value}: {first}")
        try:
            self._stream = await self._devices.open_stream(USER)
            self.facing = USER
        except Exception as second:  # noqa: BLE001
            kind = classify(second)
            logger.log(_FEATURE, "CaptureFailed", level="ERROR", message=f"{kind.value}: {second}")
            raise CaptureError(kind, str(second)) from second

    async def capture(self, surface: DrawingSurface) -> str:
        """
        Grab one frame onto ``surface`` (fully overwritten), apply pen
        extraction and return the image-data string. The stream is released
        afterwards whether or not the grab succeeded.
        """
        await self.open()
        if self._stream is None:
            logger.log(_FEATURE, "CaptureFailed", level="ERROR", message="no stream after open")
            raise CaptureError(CaptureFailure.GENERIC, "camera stream is not available")
        try:
            frame = await self._stream.grab_frame()
        except Exception as exc:  # noqa: BLE001
            kind = classify(exc)
            logger.log(_FEATURE, "CaptureFailed", level="ERROR", message=f"{kind.value}: {exc}")
            raise CaptureError(kind, str(exc)) from exc
        finally:
            self.release()
        surface.draw_frame(frame)
        surface.replace(extract_pen(surface.to_image(), self._cfg.luminance_threshold))
        logger.log(_FEATURE, "Captured", message=self.facing or "")
        return surface.to_data_url()

    def cancel(self) -> None:
        self.release()

    def release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()

    async def __aenter__(self) -> "CameraCapture":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


# --------------------------------------------------------------------------- #
#  OpenCV backend
# --------------------------------------------------------------------------- #
class _OpenCvStream:
    def __init__(self, cap) -> None:
        self._cap = cap

    async def grab_frame(self) -> Image.Image:
        ok, frame = await asyncio.to_thread(self._cap.read)
        if not ok or frame is None:
            raise MediaDeviceError("NotReadableError", "camera returned no frame")
        import cv2

        return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))

    def stop(self) -> None:
        self._cap.release()


class OpenCvMediaDevices:
    """Local cameras by index; ``facing`` maps to a configured device index."""

    def __init__(self, indices: Optional[Dict[str, int]] = None) -> None:
        self._indices = dict(indices or DEFAULT_INDICES)

    @property
    def indices(self) -> Dict[str, int]:
        return dict(self._indices)

    async def open_stream(self, facing: str) -> _OpenCvStream:
        try:
            import cv2
        except ImportError as exc:
            raise MediaDeviceError("NotSupportedError", "OpenCV is not installed") from exc
        index = self._indices.get(facing)
        if index is None:
            raise MediaDeviceError("NotFoundError", f"no camera configured for {facing}")
        cap = await asyncio.to_thread(cv2.VideoCapture, index)
        if not cap.isOpened():
            cap.release()
            raise MediaDeviceError("NotFoundError", f"camera {index} could not be opened")
        return _OpenCvStream(cap)
