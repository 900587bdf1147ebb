from __future__ import annotations

import unittest

from PIL import Image

from core.helpers.image_data import decode_image
from core.logging.logic.logger import logger
from signature.exceptions.errors import CaptureError, CaptureFailure, MediaDeviceError, classify
from signature.logic.camera_capture import ENVIRONMENT, USER, CameraCapture, OpenCvMediaDevices
from signature.logic.drawing_surface import DrawingSurface
from signature.logic.pen_extraction import BLACK, WHITE


class _FakeStream:
    def __init__(self, frame=None, error=None) -> None:
        self.frame = frame
        self.error = error
        self.stopped = False

    async def grab_frame(self):
        if self.error is not None:
            raise self.error
        return self.frame

    def stop(self) -> None:
        self.stopped = True


class _FakeDevices:
    def __init__(self, outcomes) -> None:
        self.outcomes = dict(outcomes)
        self.requested = []

    async def open_stream(self, facing):
        self.requested.append(facing)
        outcome = self.outcomes[facing]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _frame() -> Image.Image:
    img = Image.new("RGB", (40, 20), (240, 240, 240))
    for x in range(10, 30):
        img.putpixel((x, 10), (20, 20, 60))
    return img


class TestCameraCapture(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        logger.clear_logs()

    async def test_environment_camera_used_first(self) -> None:
        stream = _FakeStream(_frame())
        devices = _FakeDevices({ENVIRONMENT: stream, USER: _FakeStream(_frame())})
        surface = DrawingSurface(40, 20)
        data = await CameraCapture(devices).capture(surface)
        self.assertEqual(devices.requested, [ENVIRONMENT])
        self.assertTrue(stream.stopped)
        pixels = set(decode_image(data).convert("RGBA").getdata())
        self.assertEqual(pixels, {BLACK, WHITE})

    async def test_falls_back_to_user_camera_once(self) -> None:
        stream = _FakeStream(_frame())
        devices = _FakeDevices({ENVIRONMENT: MediaDeviceError("NotFoundError"), USER: stream})
        capture = CameraCapture(devices)
        await capture.capture(DrawingSurface(40, 20))
        self.assertEqual(devices.requested, [ENVIRONMENT, USER])
        self.assertEqual(capture.facing, USER)
        self.assertTrue(logger.query_logs(feature="SignatureCamera", event="EnvironmentCameraFailed"))

    async def test_both_cameras_fail(self) -> None:
        devices = _FakeDevices({
            ENVIRONMENT: MediaDeviceError("NotAllowedError"),
            USER: MediaDeviceError("NotAllowedError"),
        })
        with self.assertRaises(CaptureError) as ctx:
            await CameraCapture(devices).capture(DrawingSurface(40, 20))
        self.assertIs(ctx.exception.kind, CaptureFailure.PERMISSION_DENIED)
        self.assertEqual(devices.requested, [ENVIRONMENT, USER])

    async def test_stream_released_when_grab_fails(self) -> None:
        stream = _FakeStream(error=MediaDeviceError("NotReadableError", "busy"))
        capture = CameraCapture(_FakeDevices({ENVIRONMENT: stream, USER: stream}))
        with self.assertRaises(CaptureError) as ctx:
            await capture.capture(DrawingSurface(40, 20))
        self.assertIs(ctx.exception.kind, CaptureFailure.DRIVER)
        self.assertTrue(stream.stopped)
        self.assertFalse(capture.is_open)

    async def test_cancel_releases_stream(self) -> None:
        stream = _FakeStream(_frame())
        async with CameraCapture(_FakeDevices({ENVIRONMENT: stream})) as capture:
            await capture.open()
            self.assertTrue(capture.is_open)
            capture.cancel()
            self.assertFalse(capture.is_open)
        self.assertTrue(stream.stopped)


    async def test_missing_stream_is_a_generic_failure(self) -> None:
        devices = _FakeDevices({ENVIRONMENT: None})
        with self.assertRaises(CaptureError) as ctx:
            await CameraCapture(devices).capture(DrawingSurface(40, 20))
        self.assertIs(ctx.exception.kind, CaptureFailure.GENERIC)


class TestOpenCvDevices(unittest.TestCase):
    def test_rear_camera_is_device_zero(self) -> None:
        self.assertEqual(OpenCvMediaDevices().indices, {ENVIRONMENT: 0, USER: 1})

    def test_custom_indices(self) -> None:
        self.assertEqual(OpenCvMediaDevices({ENVIRONMENT: 2, USER: 0}).indices[ENVIRONMENT], 2)


class TestClassify(unittest.TestCase):
    def test_names_map_to_kinds(self) -> None:
        cases = {
            "NotSupportedError": CaptureFailure.NOT_SUPPORTED,
            "SecurityError": CaptureFailure.PERMISSION_DENIED,
            "DevicesNotFoundError": CaptureFailure.NOT_FOUND,
            "OverconstrainedError": CaptureFailure.DRIVER,
            "AbortError": CaptureFailure.GENERIC,
        }
        for name, kind in cases.items():
            with self.subTest(name=name):
                self.assertIs(classify(MediaDeviceError(name)), kind)
        self.assertIs(classify(TypeError("no api")), CaptureFailure.NOT_SUPPORTED)
        self.assertIs(classify(RuntimeError("x")), CaptureFailure.GENERIC)

    def test_user_message_per_kind(self) -> None:
        messages = {k.user_message for k in CaptureFailure}
        self.assertEqual(len(messages), len(CaptureFailure))
        self.assertEqual(CaptureError(CaptureFailure.NOT_FOUND).user_message, "No camera was found.")


if __name__ == "__main__":
    unittest.main()
