import numpy as np
import pytest

from mcsuite.libs.vision.daltonize import (
    ProcessingMode,
    VisionProfile,
    apply_to_rgba,
    from_linear,
    to_linear,
    transform_array,
    transform_pixel,
)

DEFICIENT = [
    VisionProfile.PROTANOPIA,
    VisionProfile.DEUTERANOPIA,
    VisionProfile.TRITANOPIA,
    VisionProfile.ACHROMATOPSIA,
]

# Colours a dichromat confuses with mid grey (148, 148, 148)
CONFUSION_PAIRS = {
    VisionProfile.PROTANOPIA: (197, 140, 147),
    VisionProfile.DEUTERANOPIA: (205, 113, 150),
    VisionProfile.TRITANOPIA: (138, 156, 70),
}
GREY = (148, 148, 148)


def _max_diff(a, b) -> int:
    return max(abs(int(x) - int(y)) for x, y in zip(a, b))


@pytest.mark.parametrize("mode", list(ProcessingMode))
def test_normal_profile_is_identity(mode):
    for pixel in [(0, 0, 0), (255, 0, 0), (12, 200, 77), (255, 255, 255)]:
        assert transform_pixel(pixel, VisionProfile.NORMAL, mode) == pixel


@pytest.mark.parametrize("profile", list(VisionProfile))
@pytest.mark.parametrize("mode", list(ProcessingMode))
def test_extremes_stay_in_range(profile, mode):
    assert transform_pixel((0, 0, 0), profile, mode) == (0, 0, 0)
    white = transform_pixel((255, 255, 255), profile, mode)
    assert all(252 <= channel <= 255 for channel in white)

    saturated = transform_array(
        np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255]], dtype=np.uint8), profile, mode
    )
    assert saturated.dtype == np.uint8
    assert saturated.shape == (3, 3)


@pytest.mark.parametrize("profile", DEFICIENT)
def test_grey_is_a_fixed_point(profile):
    for mode in ProcessingMode:
        assert _max_diff(transform_pixel(GREY, profile, mode), GREY) <= 1


@pytest.mark.parametrize("profile", list(CONFUSION_PAIRS))
def test_correction_separates_confused_colours(profile):
    colour = CONFUSION_PAIRS[profile]
    simulate = ProcessingMode.SIMULATE

    seen_colour = transform_pixel(colour, profile, simulate)
    seen_grey = transform_pixel(GREY, profile, simulate)
    assert _max_diff(seen_colour, seen_grey) <= 3

    corrected_colour = transform_pixel(colour, profile, ProcessingMode.CORRECT)
    corrected_grey = transform_pixel(GREY, profile, ProcessingMode.CORRECT)
    seen_after = transform_pixel(corrected_colour, profile, simulate)
    seen_grey_after = transform_pixel(corrected_grey, profile, simulate)
    assert _max_diff(seen_after, seen_grey_after) >= 10


def test_protanopia_correction_differs_from_simulation_for_red():
    simulated = transform_pixel((255, 0, 0), VisionProfile.PROTANOPIA, ProcessingMode.SIMULATE)
    corrected = transform_pixel((255, 0, 0), VisionProfile.PROTANOPIA, ProcessingMode.CORRECT)
    assert simulated != corrected


def test_achromatopsia_ignores_mode_and_produces_grey():
    pixel = (200, 100, 30)
    simulated = transform_pixel(pixel, VisionProfile.ACHROMATOPSIA, ProcessingMode.SIMULATE)
    corrected = transform_pixel(pixel, VisionProfile.ACHROMATOPSIA, ProcessingMode.CORRECT)
    assert simulated == corrected
    assert max(simulated) - min(simulated) <= 1


def test_transparent_pixel_is_returned_unchanged():
    pixel = (255, 0, 0, 0)
    assert transform_pixel(pixel, VisionProfile.PROTANOPIA, "simulate") == pixel


def test_alpha_is_preserved():
    result = transform_pixel((255, 0, 0, 128), VisionProfile.DEUTERANOPIA, "correct")
    assert len(result) == 4
    assert result[3] == 128


@pytest.mark.parametrize("pixel", [(256, 0, 0), (-1, 0, 0), (1, 2), (1, 2, 3, 4, 5)])
def test_invalid_pixels_are_rejected(pixel):
    with pytest.raises(ValueError):
        transform_pixel(pixel, VisionProfile.PROTANOPIA, ProcessingMode.SIMULATE)


def test_apply_to_rgba_skips_transparent_pixels():
    buffer = np.zeros((2, 2, 4), dtype=np.uint8)
    buffer[0, 0] = (255, 0, 0, 255)
    buffer[0, 1] = (255, 0, 0, 0)
    buffer[1, 0] = (10, 220, 40, 90)
    buffer[1, 1] = (0, 0, 0, 0)

    changed = apply_to_rgba(buffer, VisionProfile.PROTANOPIA, ProcessingMode.SIMULATE)

    assert changed == 2
    assert tuple(buffer[0, 1]) == (255, 0, 0, 0)
    assert tuple(buffer[1, 1]) == (0, 0, 0, 0)
    assert tuple(buffer[0, 0]) == transform_pixel(
        (255, 0, 0, 255), VisionProfile.PROTANOPIA, ProcessingMode.SIMULATE
    )
    assert buffer[1, 0, 3] == 90


def test_apply_to_rgba_rejects_rgb_buffers():
    with pytest.raises(ValueError):
        apply_to_rgba(np.zeros((2, 2, 3), dtype=np.uint8), "protanopia", "simulate")


def test_linearisation_round_trips_all_levels():
    levels = np.arange(256, dtype=np.uint8)
    assert np.array_equal(from_linear(to_linear(levels)), levels)


def test_from_linear_clamps_out_of_range_values():
    result = from_linear(np.array([-0.25, 0.0, 1.0, 1.7]))
    assert result.tolist() == [0, 0, 255, 255]


def test_enum_aliases():
    assert VisionProfile(" Protanopia ") is VisionProfile.PROTANOPIA
    assert ProcessingMode("daltonize") is ProcessingMode.CORRECT
    assert ProcessingMode("simulation") is ProcessingMode.SIMULATE
    with pytest.raises(ValueError):
        VisionProfile("colourblind")
