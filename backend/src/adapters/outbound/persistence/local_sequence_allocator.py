"""Local filesystem implementation of SequenceAllocatorPort."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from backend.src.core.exceptions import AllocationError, SequenceConflictError
from backend.src.core.services.label_locks import LabelLockRegistry
from backend.src.core.services.sequence_naming import DEFAULT_VIEW_NAME, next_sequence_number
from backend.src.core.value_objects.sequence_slot import SEQUENCE_PREFIX, SequenceSlot

logger = logging.getLogger(__name__)


class LocalSequenceAllocator:
    """Allocates ``<base>/<label>/sequence<N>`` directories.

    Reservation is ``mkdir(exist_ok=False)``, which fails atomically if
    another process created the same slot first; allocation within this
    process is additionally serialized per label.
    """

    def __init__(
        self,
        base_dir: str | Path,
        locks: Optional[LabelLockRegistry] = None,
        view_name: str = DEFAULT_VIEW_NAME,
        max_attempts: int = 50,
    ) -> None:
        self._base = Path(base_dir).resolve()
        self._base.mkdir(parents=True, exist_ok=True)
        self._locks = locks or LabelLockRegistry()
        self._view_name = view_name
        self._max_attempts = max_attempts
        logger.info("LocalSequenceAllocator initialised at %s", self._base)

    # -- helpers ---------------------------------------------------------------

    def _label_root(self, label: str) -> Path:
        return self._base / label

    def _scan_sync(self, label: str) -> int:
        root = self._label_root(label)
        root.mkdir(parents=True, exist_ok=True)
        names = [p.name for p in root.iterdir() if p.is_dir()]
        return next_sequence_number(names)

    def _reserve_sync(self, label: str, identifier: str) -> bool:
        """Create the slot and its view directory; False if the slot exists."""
        slot_dir = self._label_root(label) / identifier
        try:
            slot_dir.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            return False
        (slot_dir / self._view_name).mkdir(exist_ok=True)
        return True

    # -- SequenceAllocatorPort implementation ----------------------------------

    async def next_sequence_number(self, label: str) -> int:
        """Return ``max(existing) + 1`` without reserving it."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._scan_sync, label)
        except OSError as exc:
            raise AllocationError(f"Cannot list sequences for label '{label}': {exc}") from exc

    async def allocate(self, label: str) -> SequenceSlot:
        async with self._locks.lock(label):
            number = await self.next_sequence_number(label)
            loop = asyncio.get_running_loop()
            for _ in range(self._max_attempts):
                try:
                    reserved = await loop.run_in_executor(
                        None, self._reserve_sync, label, f"{SEQUENCE_PREFIX}{number}"
                    )
                except OSError as exc:
                    raise AllocationError(
                        f"Cannot create sequence{number} for label '{label}': {exc}"
                    ) from exc
                if reserved:
                    slot = SequenceSlot(label=label, sequence_number=number)
                    logger.info("Allocated %s", slot)
                    return slot
                logger.warning("sequence%d for %s taken concurrently, trying next", number, label)
                number += 1
        raise AllocationError(
            f"Could not reserve a sequence for label '{label}' after {self._max_attempts} attempts"
        )

    async def reserve_named(self, label: str, name: str) -> SequenceSlot:
        async with self._locks.lock(label):
            loop = asyncio.get_running_loop()
            try:
                reserved = await loop.run_in_executor(None, self._reserve_sync, label, name)
            except OSError as exc:
                raise AllocationError(f"Cannot create sequence '{name}' for label '{label}': {exc}") from exc
        if not reserved:
            raise SequenceConflictError(label, name)
        slot = SequenceSlot(label=label, name=name)
        logger.info("Reserved named sequence %s", slot)
        return slot
