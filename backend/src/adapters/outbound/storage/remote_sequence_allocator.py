"""Object-store implementation of SequenceAllocatorPort."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from backend.src.core.exceptions import AllocationError, SequenceConflictError
from backend.src.core.services.label_locks import LabelLockRegistry
from backend.src.core.services.sequence_naming import label_prefix, next_sequence_number, slot_prefix
from backend.src.core.value_objects.sequence_slot import SequenceSlot

logger = logging.getLogger(__name__)

# Zero-content object that claims a slot before any frame is uploaded.
RESERVATION_MARKER = ".sequence"


class RemoteSequenceAllocator:
    """Allocates ``<prefix>/<label>/sequence<N>/`` key prefixes.

    Existing sequences are discovered from object keys. A slot is claimed by
    conditionally creating ``<slot>/.sequence``; losing that race moves on
    to the next number.
    """

    def __init__(
        self,
        store,  # ObjectStorePort
        key_prefix: str = "input_folder",
        locks: Optional[LabelLockRegistry] = None,
        max_attempts: int = 50,
    ) -> None:
        self._store = store
        self._prefix = key_prefix
        self._locks = locks or LabelLockRegistry()
        self._max_attempts = max_attempts

    async def _existing_identifiers(self, label: str) -> set[str]:
        root = label_prefix(self._prefix, label)
        try:
            keys = await self._store.list_keys(root)
        except Exception as exc:
            raise AllocationError(f"Cannot list sequences for label '{label}': {exc}") from exc
        return {key[len(root):].split("/", 1)[0] for key in keys if key.startswith(root)}

    async def _reserve(self, slot: SequenceSlot) -> bool:
        marker = slot_prefix(self._prefix, slot) + RESERVATION_MARKER
        payload = json.dumps({
            "label": slot.label,
            "sequence": slot.identifier,
            "reserved_at": datetime.now(timezone.utc).isoformat(),
        }).encode("utf-8")
        try:
            return await self._store.create_if_absent(marker, payload, content_type="application/json")
        except Exception as exc:
            raise AllocationError(f"Cannot reserve {slot}: {exc}") from exc

    # -- SequenceAllocatorPort implementation ----------------------------------

    async def next_sequence_number(self, label: str) -> int:
        return next_sequence_number(await self._existing_identifiers(label))

    async def allocate(self, label: str) -> SequenceSlot:
        async with self._locks.lock(label):
            number = await self.next_sequence_number(label)
            for _ in range(self._max_attempts):
                slot = SequenceSlot(label=label, sequence_number=number)
                if await self._reserve(slot):
                    logger.info("Allocated %s", slot)
                    return slot
                logger.warning("%s taken concurrently, trying next", slot)
                number += 1
        raise AllocationError(
            f"Could not reserve a sequence for label '{label}' after {self._max_attempts} attempts"
        )

    async def reserve_named(self, label: str, name: str) -> SequenceSlot:
        slot = SequenceSlot(label=label, name=name)
        async with self._locks.lock(label):
            if name in await self._existing_identifiers(label) or not await self._reserve(slot):
                raise SequenceConflictError(label, name)
        logger.info("Reserved named sequence %s", slot)
        return slot
