from backend.src.core.value_objects.frame import PNG_SIGNATURE, Frame
from backend.src.core.value_objects.sequence_slot import SEQUENCE_PREFIX, SequenceSlot

__all__ = ["Frame", "SequenceSlot", "PNG_SIGNATURE", "SEQUENCE_PREFIX"]
