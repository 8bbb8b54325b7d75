"""Shared field builders for the numerics tests."""

import numpy as np

from fluidgrid.grid import as_grid


def gaussian_source(N, sigma=2.0, strength=1.0):
    """Radial outflow centred on the grid: strongly divergent, zero far away."""
    j, i = np.mgrid[0:N, 0:N].astype(float)
    cx = cy = (N - 1) / 2.0
    dx, dy = i - cx, j - cy
    g = strength * np.exp(-(dx ** 2 + dy ** 2) / (2 * sigma ** 2))
    return (dx * g).ravel(), (dy * g).ravel()


def interior(field, N):
    return as_grid(field, N)[1:-1, 1:-1]
