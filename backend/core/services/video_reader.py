"""
Video Reader Service

Seekable access to a video file with OpenCV, plus a helper for
spilling uploaded bytes to a temporary file.
"""

import asyncio
import os
import tempfile
from typing import Any, Optional

import cv2
import numpy as np


class VideoOpenError(ValueError):
    """The video resource could not be opened or has no usable metadata."""


class VideoReader:
    """
    Random access to frames of a video file.

    Seeks are blocking OpenCV calls, so seek() runs them in a worker
    thread and must be awaited before the next one is issued.

    Usage:
        with VideoReader("shot.mp4") as video:
            frame = await video.seek(1.5)
    """

    def __init__(self, video_path: str):
        self.video_path = video_path
        self._cap = cv2.VideoCapture(video_path)

        if not self._cap.isOpened():
            raise VideoOpenError(f"Could not open video: {video_path}")

        self.fps = self._cap.get(cv2.CAP_PROP_FPS) or 0.0
        self.frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)

    def __enter__(self) -> "VideoReader":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any]
    ) -> None:
        self.close()

    def close(self) -> None:
        self._cap.release()

    @property
    def duration_seconds(self) -> float:
        """Video duration, 0.0 when the container reports no frame rate."""
        if self.fps <= 0:
            return 0.0
        return self.frame_count / self.fps

    async def seek(self, t_seconds: float) -> Optional[np.ndarray]:
        """Seek to a time and return the BGR frame there, None if unreadable."""
        return await asyncio.to_thread(self._read_at, t_seconds)

    def _read_at(self, t_seconds: float) -> Optional[np.ndarray]:
        self._cap.set(cv2.CAP_PROP_POS_MSEC, t_seconds * 1000.0)
        ok, frame = self._cap.read()
        return frame if ok else None


def save_temp_video(file_bytes: bytes, suffix: str = ".mp4") -> str:
    """
    Write video bytes to a temporary file and return its path.

    The caller owns the file and must delete it.
    """
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as temp_file:
        temp_file.write(file_bytes)
        return temp_file.name


def remove_temp_video(path: Optional[str]) -> None:
    """Delete a file created by save_temp_video, ignoring missing files."""
    if path and os.path.exists(path):
        os.unlink(path)
