import re

import pytest
from PIL import Image

from mcsuite.apps.pack_daltonizer.core.models import OverlayDescriptor
from mcsuite.apps.pack_daltonizer.core.overlays import (
    OVERLAY_RULES,
    OverlayRule,
    decide,
    render,
)

BLOCK = "assets/minecraft/textures/block"


@pytest.mark.parametrize(
    "filename, text, colour",
    [
        ("diamond_ore.png", "Di", "#00ffff"),
        ("assets/minecraft/textures/item/diamond_ore.png", "Di", "#00ffff"),
        (f"{BLOCK}/deepslate_gold_ore.png", "Au", "#ffd700"),
        (f"{BLOCK}/nether_gold_ore.png", "Au", "#ffd700"),
        (f"{BLOCK}/redstone_ore.png", "Re", "#ff0000"),
        (f"{BLOCK}/nether_quartz_ore.png", "Q", "#ffffff"),
    ],
)
def test_ores_get_their_symbol(filename, text, colour):
    descriptor = decide(filename)
    assert descriptor == OverlayDescriptor(category="ores", text=text, color=colour)


def test_wool_gets_corner_initial():
    descriptor = decide(f"{BLOCK}/wool_red.png")
    assert descriptor is not None
    assert descriptor.category == "wool"
    assert descriptor.text == "R"
    assert descriptor.position == "corner"


def test_log_gets_smaller_initial():
    descriptor = decide(f"{BLOCK}/log_birch.png")
    assert descriptor is not None
    assert descriptor.category == "logs"
    assert descriptor.text == "B"
    assert descriptor.scale == pytest.approx(0.5)


@pytest.mark.parametrize(
    "filename", ["planks_oak.png", f"{BLOCK}/stone.png", "wool_.png", "diamond_ore.txt"]
)
def test_unrecognised_textures_get_nothing(filename):
    assert decide(filename) is None


def test_first_matching_rule_stops_evaluation():
    # Matches the ore rule but has no known mineral; the wool rule is never tried
    assert decide("wool_mystery_ore.png") is None

    calls = []

    def _record(name):
        calls.append(name)
        return OverlayDescriptor(category="custom", text="X")

    rules = (
        OverlayRule("first", re.compile(r"thing"), lambda name: None),
        OverlayRule("second", re.compile(r"thing"), _record),
    )
    assert decide("thing.png", rules) is None
    assert calls == []


def test_default_rules_are_ordered():
    assert [rule.category for rule in OVERLAY_RULES] == ["ores", "wool", "logs"]


@pytest.mark.parametrize(
    "descriptor",
    [
        OverlayDescriptor(category="ores", text="Di", color="#00ffff"),
        OverlayDescriptor(category="wool", text="R", position="corner"),
        OverlayDescriptor(category="logs", text="B", scale=0.5),
    ],
)
def test_render_draws_outlined_text(descriptor):
    image = Image.new("RGBA", (32, 32), (128, 128, 128, 255))
    render(image, descriptor)

    pixels = set(image.getdata())
    assert (128, 128, 128, 255) in pixels
    assert len(pixels) > 1


def test_render_without_descriptor_is_a_no_op():
    image = Image.new("RGBA", (16, 16), (10, 20, 30, 255))
    render(image, None)
    assert set(image.getdata()) == {(10, 20, 30, 255)}
