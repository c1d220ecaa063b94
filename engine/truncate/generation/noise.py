"""
Coherent value noise on numpy grids.

Random values are laid on a lattice and smoothly interpolated between
lattice points. Octaves add finer lattices at halving amplitude.
"""

from __future__ import annotations
import math

import numpy as np


def _smoothstep(t: np.ndarray) -> np.ndarray:
    return t * t * (3.0 - 2.0 * t)


def _lattice_layer(shape: tuple[int, int], rng: np.random.Generator, spacing: float) -> np.ndarray:
    height, width = shape
    lattice = rng.random((math.ceil(height / spacing) + 2, math.ceil(width / spacing) + 2))

    ys = np.arange(height) / spacing
    xs = np.arange(width) / spacing
    y0 = np.floor(ys).astype(int)
    x0 = np.floor(xs).astype(int)
    ty = _smoothstep(ys - y0)[:, None]
    tx = _smoothstep(xs - x0)[None, :]

    top = lattice[np.ix_(y0, x0)] * (1 - tx) + lattice[np.ix_(y0, x0 + 1)] * tx
    bottom = lattice[np.ix_(y0 + 1, x0)] * (1 - tx) + lattice[np.ix_(y0 + 1, x0 + 1)] * tx
    return top * (1 - ty) + bottom * ty


def value_noise(shape: tuple[int, int], rng: np.random.Generator,
                dispersion: float = 1.0, octaves: int = 1,
                persistence: float = 0.5, symmetric: bool = False) -> np.ndarray:
    """
    Generate noise in [0, 1].

    Args:
        shape: (height, width) of the output grid
        rng: Random source
        dispersion: Lattice spacing in squares; larger values give broader features
        octaves: Number of layers, each with half the spacing of the last
        persistence: Amplitude multiplier between octaves
        symmetric: Make the grid invariant under a half turn

    Returns:
        Array of the requested shape
    """
    if dispersion <= 0:
        raise ValueError(f"dispersion must be positive, got {dispersion}")
    if octaves < 1:
        raise ValueError(f"octaves must be at least 1, got {octaves}")

    result = np.zeros(shape)
    amplitude = 1.0
    total = 0.0
    for octave in range(octaves):
        spacing = max(dispersion / (2 ** octave), 1e-6)
        result += amplitude * _lattice_layer(shape, rng, spacing)
        total += amplitude
        amplitude *= persistence
    result /= total

    if symmetric:
        result = (result + result[::-1, ::-1]) / 2
    return result
