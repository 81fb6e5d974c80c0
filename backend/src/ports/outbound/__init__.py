from backend.src.ports.outbound.frame_decoder_port import FrameDecoderPort
from backend.src.ports.outbound.frame_sink_port import FrameSinkPort, FrameSinkSessionPort
from backend.src.ports.outbound.object_store_port import ObjectStorePort
from backend.src.ports.outbound.sequence_allocator_port import SequenceAllocatorPort

__all__ = [
    "FrameDecoderPort",
    "FrameSinkPort",
    "FrameSinkSessionPort",
    "ObjectStorePort",
    "SequenceAllocatorPort",
]
