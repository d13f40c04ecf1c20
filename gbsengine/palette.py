"""Monochrome palette packing."""

from __future__ import annotations


def dmg_palette(c0: int, c1: int, c2: int, c3: int) -> int:
    """Pack four 2-bit shades into a palette register byte, colour 0 in the low bits."""
    return (c0 & 3) | ((c1 & 3) << 2) | ((c2 & 3) << 4) | ((c3 & 3) << 6)


def default_dmg_palettes() -> tuple[int, int, int]:
    """Start-up palettes for background, sprite palette 0 and sprite palette 1."""
    background = dmg_palette(3, 2, 1, 0)
    return background, dmg_palette(3, 1, 0, 2), background