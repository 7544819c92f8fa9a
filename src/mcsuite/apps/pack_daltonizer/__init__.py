"""Pack Daltonizer: recolour Minecraft resource packs for colour vision deficiencies."""
