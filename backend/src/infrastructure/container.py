"""
Dependency injection container.
Wires together ports and adapters based on configuration.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from backend.src.infrastructure.config import Settings

logger = logging.getLogger(__name__)


class ApplicationContainer:
    """Simplified container that builds concrete instances from settings.

    Usage::

        container = ApplicationContainer(settings)
        service = container.frame_extraction_service()
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._cache: dict[str, object] = {}

    def _get_or_create(self, key: str, factory):
        if key not in self._cache:
            self._cache[key] = factory(self.settings)
        return self._cache[key]

    # ── Lazy factory helpers ──────────────────────────────────────

    @staticmethod
    def _build_decoder(settings: Settings):
        from backend.src.adapters.outbound.ffmpeg.ffmpeg_frame_decoder import FFmpegFrameDecoder
        cfg = settings.decoder
        return FFmpegFrameDecoder(
            ffmpeg_path=cfg.ffmpeg_path or None,
            input_format=cfg.input_format,
            frame_rate=cfg.frame_rate,
            queue_size=cfg.queue_size,
            read_chunk_size=cfg.read_chunk_size,
        )

    @staticmethod
    def _build_label_locks(settings: Settings):
        from backend.src.core.services.label_locks import LabelLockRegistry
        return LabelLockRegistry()

    @staticmethod
    def _build_object_store(settings: Settings):
        if settings.storage.backend == "gcs":
            from backend.src.adapters.outbound.storage.gcs_object_store import GCSObjectStore
            return GCSObjectStore(
                bucket_name=settings.gcs.bucket_name,
                credentials_path=settings.gcs.credentials_path,
            )
        from backend.src.adapters.outbound.storage.in_memory_object_store import InMemoryObjectStore
        logger.warning("Using in-memory object store; frames are lost on restart")
        return InMemoryObjectStore()

    # ── Port accessors ─────────────────────────────────────────────

    def decoder(self):
        return self._get_or_create("decoder", self._build_decoder)

    def label_locks(self):
        return self._get_or_create("label_locks", self._build_label_locks)

    def object_store(self):
        return self._get_or_create("object_store", self._build_object_store)

    def sequence_allocator(self):
        if "sequence_allocator" in self._cache:
            return self._cache["sequence_allocator"]
        storage = self.settings.storage
        if storage.backend == "local":
            from backend.src.adapters.outbound.persistence.local_sequence_allocator import LocalSequenceAllocator
            allocator = LocalSequenceAllocator(
                base_dir=Path(storage.base_dir),
                locks=self.label_locks(),
                view_name=storage.view_name,
                max_attempts=storage.allocation_attempts,
            )
        else:
            from backend.src.adapters.outbound.storage.remote_sequence_allocator import RemoteSequenceAllocator
            allocator = RemoteSequenceAllocator(
                self.object_store(),
                key_prefix=storage.key_prefix,
                locks=self.label_locks(),
                max_attempts=storage.allocation_attempts,
            )
        self._cache["sequence_allocator"] = allocator
        return allocator

    def frame_sink(self):
        if "frame_sink" in self._cache:
            return self._cache["frame_sink"]
        storage = self.settings.storage
        if storage.backend == "local":
            from backend.src.adapters.outbound.persistence.local_directory_sink import LocalDirectorySink
            sink = LocalDirectorySink(base_dir=Path(storage.base_dir), view_name=storage.view_name)
        else:
            from backend.src.adapters.outbound.storage.remote_object_sink import RemoteObjectSink
            sink = RemoteObjectSink(
                self.object_store(),
                key_prefix=storage.key_prefix,
                view_name=storage.view_name,
                max_concurrent_uploads=storage.max_concurrent_uploads,
                upload_retries=storage.upload_retries,
                retry_backoff_seconds=storage.retry_backoff_seconds,
            )
        self._cache["frame_sink"] = sink
        return sink

    # ── Application services ───────────────────────────────────────

    def frame_extraction_service(self):
        from backend.src.application.frame_extraction_service import FrameExtractionService
        pipeline = self.settings.pipeline
        return FrameExtractionService(
            decoder=self.decoder(),
            allocator=self.sequence_allocator(),
            sink=self.frame_sink(),
            timeout_seconds=pipeline.timeout_seconds,
            persist_source_video=pipeline.persist_source_video,
        )
