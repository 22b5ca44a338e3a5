"""
Synthetic example dataset for linked micromaps.

A small grid of square "states", every fourth one with an offshore island so
the multi-part polygon path gets exercised. Columns mirror the classic
education/poverty micromap example.
"""

from typing import List, Tuple

import numpy as np
import pandas as pd

from .link_index import PolygonCatalog


def _square(x0: float, y0: float, size: float) -> np.ndarray:
    return np.array([[x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size]])


def create_micromap_synthetic_data(n_regions: int = 12, seed: int = 42,
                                   columns: int = 4
                                   ) -> Tuple[pd.DataFrame, PolygonCatalog, List[np.ndarray]]:
    """
    Generate regions, their polygon parts and attribute data.

    Args:
        n_regions: Number of regions
        seed: Random seed for the statistics
        columns: Regions per row of the synthetic map

    Returns:
        (data, catalog, polygons) where ``polygons[i]`` holds the coordinates
        of polygon part ``i`` in draw order
    """
    rng = np.random.default_rng(seed)

    names = [f"State {i + 1:02d}" for i in range(n_regions)]
    data = pd.DataFrame({
        'ST': [f"S{i + 1:02d}" for i in range(n_regions)],
        'ST_NAME': names,
        'pov': np.round(rng.uniform(8, 22, n_regions), 1),       # % in poverty
        'ed': np.round(rng.uniform(18, 40, n_regions), 1),       # % with university education
        'pop': rng.integers(500_000, 20_000_000, n_regions),
    })

    parts = {}
    polygons = []
    for i, name in enumerate(names):
        col, row = i % columns, i // columns
        region_parts = [f"{name}#0"]
        polygons.append(_square(col * 10.0, -row * 10.0, 9.0))
        if i % 4 == 3:
            region_parts.append(f"{name}#1")
            polygons.append(_square(col * 10.0 + 9.5, -row * 10.0 - 2.0, 1.5))
        parts[name] = region_parts

    return data, PolygonCatalog(parts), polygons
