"""
Row colors for micromaps.

Row k of every group gets palette color k, so the palette only needs as many
colors as the largest group. Two colors are reserved: BACKGROUND_COLOR fills
map polygons that belong to other groups and HIGHLIGHT_COLOR marks the current
selection. Colors are normalized to lowercase ``#rrggbb`` once, so the
reservation holds for any spelling (name, short/long hex, alpha suffix,
16-bit-per-channel Tk hex).
"""

import logging
import re
from itertools import cycle, islice
from typing import List, Optional, Sequence

import matplotlib.colors as mcolors
import seaborn as sns

from .errors import InvalidColorError, ReservedColorError

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = 'cornsilk'
HIGHLIGHT_COLOR = 'magenta'

_TK_HEX12 = re.compile(r'^#([0-9a-f]{4})([0-9a-f]{4})([0-9a-f]{4})$')


def canonical_color(color) -> str:
    """Normalize any matplotlib or Tk color spelling to ``#rrggbb``."""
    value = color.strip().lower() if isinstance(color, str) else color
    if isinstance(value, str):
        m = _TK_HEX12.match(value)
        if m:
            value = '#' + ''.join(channel[:2] for channel in m.groups())
    try:
        return mcolors.to_hex(mcolors.to_rgba(value), keep_alpha=False)
    except (ValueError, TypeError):
        raise InvalidColorError(f"Cannot interpret {color!r} as a color") from None


RESERVED_COLORS = {
    canonical_color(BACKGROUND_COLOR): BACKGROUND_COLOR,
    canonical_color(HIGHLIGHT_COLOR): HIGHLIGHT_COLOR,
}


def check_reserved(colors: Sequence) -> List[str]:
    """
    Normalize colors and reject the reserved sentinels.

    Returns:
        Canonical ``#rrggbb`` strings in input order

    Raises:
        ReservedColorError: a color equals the background or highlight color
        InvalidColorError: a color cannot be parsed
    """
    canonical = [canonical_color(c) for c in colors]
    for original, hex_value in zip(colors, canonical):
        if hex_value in RESERVED_COLORS:
            raise ReservedColorError(
                f"color cannot be {original!r} ({RESERVED_COLORS[hex_value]}), "
                f"which is reserved for micromaps")
    return canonical


class SeabornPalette:
    """Default palette provider: evenly spaced husl hues."""

    def __init__(self, name: str = 'husl'):
        self.name = name

    def generate(self, k: int) -> List[str]:
        return list(sns.color_palette(self.name, k).as_hex())


def assign_colors(n_colors: int, palette: Optional[Sequence[str]] = None,
                  palette_provider=None) -> List[str]:
    """
    Colors for rows 1..n_colors.

    Args:
        n_colors: Largest group size
        palette: Optional requested colors; recycled when too short
        palette_provider: Object with ``generate(k)``, used when palette is None

    Returns:
        List of ``n_colors`` canonical hex colors
    """
    if n_colors <= 0:
        raise InvalidColorError(f"n_colors must be positive, got {n_colors}")

    if palette is None:
        provider = palette_provider or SeabornPalette()
        palette = provider.generate(n_colors)
        logger.debug(f"Generated palette with {len(palette)} colors")
    elif isinstance(palette, str):
        palette = [palette]

    if len(palette) == 0:
        raise InvalidColorError("color palette must not be empty")

    colors = check_reserved(list(palette))
    return list(islice(cycle(colors), n_colors))
