from .batch import TransferConfig, TransferResult, process_single_image, run_batch
from .color import clamp_threshold, is_similar_color, reference_color
from .trimmer import trim_borders

__all__ = [
    "TransferConfig",
    "TransferResult",
    "clamp_threshold",
    "is_similar_color",
    "process_single_image",
    "reference_color",
    "run_batch",
    "trim_borders",
]
