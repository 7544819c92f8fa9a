"""LMS-space colour-vision deficiency simulation and daltonization.

Pixels are linearised with a plain 2.2 power curve (not the piecewise sRGB
transfer function), moved into LMS cone space, collapsed along the confusion
axis of the selected deficiency and brought back to RGB. In ``correct`` mode
the information lost by the simulation (original minus simulated) is routed
into the channels the viewer can still tell apart and added back onto the
original colour.

Everything here is pure: the functions take arrays or tuples and return new
values, so they can run inside worker threads without coordination.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Sequence, Tuple, Union

import numpy as np

GAMMA = 2.2

# Hunt-Pointer-Estevez derived RGB -> LMS transform
RGB_TO_LMS = np.array(
    [
        [17.8824, 43.5161, 4.11935],
        [3.45565, 27.1554, 3.86714],
        [0.0299566, 0.184309, 1.46709],
    ],
    dtype=np.float64,
)

# Approximate inverse of RGB_TO_LMS
LMS_TO_RGB = np.array(
    [
        [0.0809444479, -0.130504409, 0.116721066],
        [-0.0102485335, 0.0540193266, -0.113614708],
        [-0.000365296938, -0.00412161469, 0.693511405],
    ],
    dtype=np.float64,
)

# NTSC weights, applied to linear RGB for monochromacy
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


class VisionProfile(str, Enum):
    """Colour-vision profile applied to a pack."""

    NORMAL = "normal"
    PROTANOPIA = "protanopia"
    DEUTERANOPIA = "deuteranopia"
    TRITANOPIA = "tritanopia"
    ACHROMATOPSIA = "achromatopsia"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def description(self) -> str:
        return _PROFILE_DESCRIPTIONS[self]


_PROFILE_DESCRIPTIONS: Dict[VisionProfile, str] = {
    VisionProfile.NORMAL: "No deficiency (identity)",
    VisionProfile.PROTANOPIA: "Red-blind (L-cone)",
    VisionProfile.DEUTERANOPIA: "Green-blind (M-cone)",
    VisionProfile.TRITANOPIA: "Blue-blind (S-cone)",
    VisionProfile.ACHROMATOPSIA: "Monochromacy",
}


class ProcessingMode(str, Enum):
    """Whether to show the deficient view or compensate for it."""

    SIMULATE = "simulate"
    CORRECT = "correct"

    @classmethod
    def _missing_(cls, value: object):
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        if lowered in {"daltonize", "daltonise", "correction"}:
            return cls.CORRECT
        if lowered in {"simulation", "preview"}:
            return cls.SIMULATE
        for member in cls:
            if member.value == lowered:
                return member
        return None


# Confusion-plane matrices: each rebuilds one cone response from the other two
SIMULATION_MATRICES: Dict[VisionProfile, np.ndarray] = {
    VisionProfile.PROTANOPIA: np.array(
        [[0.0, 2.02344, -2.52581], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
    ),
    VisionProfile.DEUTERANOPIA: np.array(
        [[1.0, 0.0, 0.0], [0.494207, 0.0, 1.24827], [0.0, 0.0, 1.0]]
    ),
    VisionProfile.TRITANOPIA: np.array(
        [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [-0.395913, 0.801109, 0.0]]
    ),
}

# Route the lost channel's error into the two remaining ones
ERROR_SHIFT_MATRICES: Dict[VisionProfile, np.ndarray] = {
    VisionProfile.PROTANOPIA: np.array(
        [[0.0, 0.0, 0.0], [0.7, 1.0, 0.0], [0.7, 0.0, 1.0]]
    ),
    VisionProfile.DEUTERANOPIA: np.array(
        [[1.0, 0.7, 0.0], [0.0, 0.0, 0.0], [0.0, 0.7, 1.0]]
    ),
    VisionProfile.TRITANOPIA: np.array(
        [[1.0, 0.0, 0.7], [0.0, 1.0, 0.7], [0.0, 0.0, 0.0]]
    ),
}

ProfileLike = Union[VisionProfile, str]
ModeLike = Union[ProcessingMode, str]


def to_linear(encoded: np.ndarray) -> np.ndarray:
    """Map 8-bit encoded values to linear light in [0, 1]."""

    return (np.asarray(encoded, dtype=np.float64) / 255.0) ** GAMMA


def from_linear(linear: np.ndarray) -> np.ndarray:
    """Gamma-encode linear values back to clamped 8-bit integers.

    Values are clipped to [0, 1] first: simulation can produce small negative
    components, and those must land on 0 rather than NaN.
    """

    clipped = np.clip(linear, 0.0, 1.0)
    return np.rint(clipped ** (1.0 / GAMMA) * 255.0).astype(np.uint8)


def simulate_linear(linear: np.ndarray, profile: ProfileLike) -> np.ndarray:
    """Return the linear RGB a viewer with *profile* perceives for *linear*."""

    profile = VisionProfile(profile)
    if profile is VisionProfile.NORMAL:
        return np.array(linear, dtype=np.float64, copy=True)

    if profile is VisionProfile.ACHROMATOPSIA:
        # Pseudo-LMS of a grey with the same linear luminance
        gray = np.asarray(linear @ LUMA_WEIGHTS)
        lms = np.repeat(gray[..., np.newaxis], 3, axis=-1) @ RGB_TO_LMS.T
    else:
        lms = (linear @ RGB_TO_LMS.T) @ SIMULATION_MATRICES[profile].T

    return lms @ LMS_TO_RGB.T


def transform_array(
    rgb: np.ndarray, profile: ProfileLike, mode: ModeLike
) -> np.ndarray:
    """Vectorised transform of an ``(..., 3)`` array of 8-bit RGB values."""

    profile = VisionProfile(profile)
    mode = ProcessingMode(mode)
    source = np.asarray(rgb)
    if source.shape[-1] != 3:
        raise ValueError(f"Expected trailing RGB axis of size 3, got {source.shape}")

    if profile is VisionProfile.NORMAL:
        return source.astype(np.uint8, copy=True)

    linear = to_linear(source)
    simulated = simulate_linear(linear, profile)

    if mode is ProcessingMode.SIMULATE or profile is VisionProfile.ACHROMATOPSIA:
        # No error-shift model exists once all hue information is gone
        return from_linear(simulated)

    error = linear - simulated
    shift = error @ ERROR_SHIFT_MATRICES[profile].T
    return from_linear(linear + shift)


def apply_to_rgba(buffer: np.ndarray, profile: ProfileLike, mode: ModeLike) -> int:
    """Transform an ``(H, W, 4)`` uint8 buffer in place.

    Fully transparent pixels are skipped. Returns the number of pixels that
    were transformed.
    """

    profile = VisionProfile(profile)
    if buffer.ndim != 3 or buffer.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA buffer, got {buffer.shape}")
    if profile is VisionProfile.NORMAL:
        return 0

    visible = buffer[..., 3] != 0
    count = int(np.count_nonzero(visible))
    if count:
        buffer[visible, :3] = transform_array(buffer[visible, :3], profile, mode)
    return count


def transform_pixel(
    pixel: Sequence[int], profile: ProfileLike, mode: ModeLike
) -> Tuple[int, ...]:
    """Transform one ``(r, g, b)`` or ``(r, g, b, a)`` pixel.

    Alpha is returned unchanged, and a pixel with alpha 0 is returned as-is.
    """

    values = tuple(int(channel) for channel in pixel)
    if len(values) not in (3, 4):
        raise ValueError(f"Pixel must have 3 or 4 channels, got {len(values)}")
    if any(channel < 0 or channel > 255 for channel in values):
        raise ValueError(f"Pixel channels must be within [0, 255]: {values}")

    if len(values) == 4 and values[3] == 0:
        return values

    rgb = transform_array(np.array(values[:3], dtype=np.uint8), profile, mode)
    return tuple(int(channel) for channel in rgb) + values[3:]
