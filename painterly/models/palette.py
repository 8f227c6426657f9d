"""
Reference palette used by every stylization stage.

Colours are soft, film-like tones: skies, foliage, warm light, earth and a
dark line colour for outlines. The palette is a frozen value object; the
module-level ``PALETTE`` instance is shared process-wide and never mutated.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Tuple

Rgb = Tuple[int, int, int]


@dataclass(frozen=True)
class ReferencePalette:
    sky_blue:      Rgb = (133, 212, 255)   # open sky
    light_blue:    Rgb = (190, 230, 255)   # hazy / bright sky
    grass_green:   Rgb = (120, 190, 100)
    forest_green:  Rgb = (60, 130, 70)
    sunset_orange: Rgb = (255, 150, 80)
    rich_brown:    Rgb = (150, 100, 60)    # earth tones
    cream:         Rgb = (255, 250, 230)
    pastel_pink:   Rgb = (255, 220, 230)
    skin_tone:     Rgb = (255, 221, 205)
    soft_purple:   Rgb = (215, 195, 240)
    deep_blue:     Rgb = (70, 130, 190)    # water, deep shadows
    warm_yellow:   Rgb = (255, 225, 110)   # highlights
    dark_outline:  Rgb = (60, 50, 45)      # line work

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if len(value) != 3 or any(not 0 <= c <= 255 for c in value):
                raise ValueError(f"Palette colour {f.name}={value} is not an RGB triple in [0, 255]")

    def names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(self))

    def colors(self) -> Tuple[Rgb, ...]:
        """All palette colours, in declaration order."""
        return tuple(getattr(self, name) for name in self.names())


PALETTE = ReferencePalette()
