"""Unit tests for sequence naming rules and label locks."""
from __future__ import annotations

import asyncio
import gc

import pytest

from backend.src.core.services import LabelLockRegistry
from backend.src.core.services.sequence_naming import (
    frame_key,
    is_safe_segment,
    label_prefix,
    next_sequence_number,
    parse_sequence_number,
    slot_prefix,
    source_filename,
)
from backend.src.core.value_objects.frame import Frame
from backend.src.core.value_objects.sequence_slot import SequenceSlot


class TestParseSequenceNumber:
    @pytest.mark.parametrize("name,expected", [
        ("sequence1", 1),
        ("sequence42", 42),
        ("sequence007", 7),
        ("sequenceX", None),
        ("sequence", None),
        ("seq3", None),
        ("sequence3b", None),
        ("morning", None),
    ])
    def test_parse(self, name, expected):
        assert parse_sequence_number(name) == expected


class TestNextSequenceNumber:
    def test_empty_label_starts_at_one(self):
        assert next_sequence_number([]) == 1

    def test_max_plus_one_with_gaps(self):
        assert next_sequence_number(["sequence1", "sequence2", "sequence5"]) == 6

    def test_unparseable_names_are_ignored(self):
        assert next_sequence_number(["sequenceX", "notes", "morning"]) == 1
        assert next_sequence_number(["sequenceX", "sequence2"]) == 3


class TestIsSafeSegment:
    @pytest.mark.parametrize("value", ["cat", "my-label", "Label_2", "walk 01", "v1.2"])
    def test_accepts(self, value):
        assert is_safe_segment(value)

    @pytest.mark.parametrize("value", ["", ".", "..", "a/b", "a\\b", "../etc", "a..b", "nul\x00", "-x"])
    def test_rejects(self, value):
        assert not is_safe_segment(value)


class TestKeyLayout:
    def test_frame_key(self, png_factory):
        slot = SequenceSlot(label="cat", sequence_number=2)
        frame = Frame(index=4, image_bytes=png_factory())
        assert frame_key("input_folder", slot, frame) == "input_folder/cat/sequence2/viewA/image4.png"

    def test_frame_key_without_prefix(self, png_factory):
        slot = SequenceSlot(label="cat", name="morning")
        frame = Frame(index=1, image_bytes=png_factory())
        assert frame_key("", slot, frame, view_name="viewB") == "cat/morning/viewB/image1.png"

    def test_prefixes_end_with_slash(self):
        slot = SequenceSlot(label="cat", sequence_number=1)
        assert slot_prefix("/input_folder/", slot) == "input_folder/cat/sequence1/"
        assert label_prefix("input_folder", "cat") == "input_folder/cat/"

    def test_source_filename(self):
        assert source_filename("webm") == "input.webm"
        assert source_filename(".mkv") == "input.mkv"


class TestLabelLockRegistry:
    def test_same_label_same_lock(self):
        registry = LabelLockRegistry()
        cat, dog = registry.lock("cat"), registry.lock("dog")
        assert registry.lock("cat") is cat
        assert cat is not dog
        assert "cat" in registry
        assert len(registry) == 2

    def test_unreferenced_locks_are_released(self):
        registry = LabelLockRegistry()
        held = registry.lock("keep")
        for i in range(1000):
            registry.lock(f"label-{i}")
        gc.collect()

        assert len(registry) == 1
        assert "keep" in registry
        assert registry.lock("keep") is held

    @pytest.mark.asyncio
    async def test_lock_survives_while_waiters_queue(self):
        registry = LabelLockRegistry()
        seen: list[asyncio.Lock] = []

        async def hold():
            lock = registry.lock("cat")
            async with lock:
                seen.append(lock)
                gc.collect()
                await asyncio.sleep(0.01)

        await asyncio.gather(hold(), hold(), hold())

        assert seen[0] is seen[1] is seen[2]
        seen.clear()
        gc.collect()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_serializes_holders_of_one_label(self):
        registry = LabelLockRegistry()
        order: list[str] = []

        async def hold(name: str):
            async with registry.lock("cat"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(hold("a"), hold("b"))
        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )
