"""FFmpeg-based streaming frame decoder.

Implements :class:`FrameDecoderPort` by piping the uploaded container into a
long-lived ``ffmpeg`` subprocess and splitting its ``image2pipe`` output back
into individual PNG frames as they are produced.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import AsyncIterator, Optional

from backend.src.adapters.outbound.ffmpeg.ffmpeg_base import (
    build_frame_extraction_args,
    get_ffmpeg_path,
    matches_container,
)
from backend.src.adapters.outbound.ffmpeg.png_stream import PngStreamSplitter
from backend.src.core.exceptions import DecodeEngineError, DecodeInputError
from backend.src.core.value_objects.frame import Frame

logger = logging.getLogger(__name__)

# Default configuration values used when settings are absent.
_DEFAULT_INPUT_FORMAT = "webm"
_DEFAULT_FRAME_RATE: float = 20.0
_DEFAULT_QUEUE_SIZE = 32
_DEFAULT_READ_CHUNK = 64 * 1024

_EOF = object()


class FFmpegFrameDecoder:
    """Streams frames out of ``ffmpeg`` through a bounded queue.

    A reader task pulls stdout, splits it into PNG images and pushes them
    into an :class:`asyncio.Queue` of ``queue_size`` entries, so a slow
    consumer stalls the engine instead of buffering the whole video.
    Each call to :meth:`decode` starts a fresh engine process; the returned
    iterator cannot be restarted.
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        input_format: str = _DEFAULT_INPUT_FORMAT,
        frame_rate: float = _DEFAULT_FRAME_RATE,
        queue_size: int = _DEFAULT_QUEUE_SIZE,
        read_chunk_size: int = _DEFAULT_READ_CHUNK,
    ) -> None:
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        self.ffmpeg_path = get_ffmpeg_path(ffmpeg_path)
        self.input_format = input_format
        self.frame_rate = frame_rate
        self.queue_size = queue_size
        self.read_chunk_size = read_chunk_size

    # -- Port interface --------------------------------------------------------

    def build_command(self, frame_rate: Optional[float] = None) -> list[str]:
        rate = frame_rate or self.frame_rate
        return [self.ffmpeg_path, *build_frame_extraction_args(self.input_format, rate)]

    async def decode(
        self,
        video_bytes: bytes,
        frame_rate: Optional[float] = None,
    ) -> AsyncIterator[Frame]:
        """Yield frames numbered 1..K in emission order.

        Raises :class:`DecodeInputError` when the payload is not a parseable
        container and :class:`DecodeEngineError` when the engine faults after
        frames have been emitted. Frames yielded before an error stay valid.
        """
        self._check_input(video_bytes)
        cmd = self.build_command(frame_rate)
        logger.info(
            "Starting decode: %d bytes of %s at %s fps",
            len(video_bytes), self.input_format, frame_rate or self.frame_rate,
        )
        logger.debug("Running: %s", " ".join(cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise DecodeEngineError(
                f"Failed to start decode engine '{self.ffmpeg_path}'", str(exc)
            ) from exc

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        feeder = asyncio.create_task(self._feed(proc, video_bytes))
        reader = asyncio.create_task(self._read_frames(proc, queue))
        stderr_reader = asyncio.create_task(proc.stderr.read())
        emitted = 0
        try:
            while True:
                item = await queue.get()
                if item is _EOF:
                    break
                if isinstance(item, Exception):
                    raise DecodeEngineError(
                        f"Decode engine output unreadable after {emitted} frame(s)", str(item)
                    ) from item
                emitted += 1
                yield Frame(index=emitted, image_bytes=item)

            await feeder
            returncode = await proc.wait()
            diagnostic = (await stderr_reader).decode("utf-8", errors="replace").strip()
        finally:
            await self._shutdown(proc, (feeder, reader, stderr_reader))

        if returncode != 0:
            logger.error("FFmpeg exited with %d after %d frame(s): %s", returncode, emitted, diagnostic)
            if emitted == 0:
                raise DecodeInputError(
                    f"Decode engine could not parse the {self.input_format} input", diagnostic
                )
            raise DecodeEngineError(
                f"Decode engine failed (rc={returncode}) after {emitted} frame(s)", diagnostic
            )
        if emitted == 0:
            raise DecodeInputError(
                f"No frames could be decoded from the {self.input_format} input", diagnostic
            )
        logger.info("Decode completed: %d frames", emitted)

    # -- Private helpers -------------------------------------------------------

    def _check_input(self, video_bytes: bytes) -> None:
        if not video_bytes:
            raise DecodeInputError("Video payload is empty")
        if not matches_container(video_bytes, self.input_format):
            raise DecodeInputError(
                f"Video payload is not a {self.input_format} container",
                f"header {bytes(video_bytes[:8]).hex()}",
            )

    async def _feed(self, proc: asyncio.subprocess.Process, video_bytes: bytes) -> None:
        try:
            proc.stdin.write(video_bytes)
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # Engine stopped reading; its exit status carries the reason.
            logger.debug("Decode engine closed stdin early")
        finally:
            proc.stdin.close()

    async def _read_frames(self, proc: asyncio.subprocess.Process, queue: asyncio.Queue) -> None:
        splitter = PngStreamSplitter()
        try:
            while True:
                chunk = await proc.stdout.read(self.read_chunk_size)
                # An empty chunk at EOF still flushes anything left buffered.
                for image in splitter.feed(chunk):
                    await queue.put(image)
                if not chunk:
                    break
        except (ValueError, OSError) as exc:
            await queue.put(exc)
            return
        if splitter.pending:
            logger.warning("Discarding %d bytes of an incomplete trailing frame", splitter.pending)
        await queue.put(_EOF)

    @staticmethod
    async def _shutdown(proc: asyncio.subprocess.Process, tasks: tuple[asyncio.Task, ...]) -> None:
        if proc.returncode is None:
            logger.debug("Terminating decode engine (pid=%s)", proc.pid)
            with suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
