from .daltonize import (
    ProcessingMode as ProcessingMode,
    VisionProfile as VisionProfile,
    apply_to_rgba as apply_to_rgba,
    transform_array as transform_array,
    transform_pixel as transform_pixel,
)

__all__ = [
    "ProcessingMode",
    "VisionProfile",
    "apply_to_rgba",
    "transform_array",
    "transform_pixel",
]
