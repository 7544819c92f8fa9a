"""MC-Suite: accessibility tooling for Minecraft resource packs."""

__version__ = "0.1.0"
