"""Pytest configuration and fixtures for fluidgrid tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from fluidgrid import FluidSimulation


@pytest.fixture
def small_sim():
    """16x16 inviscid simulation, no diffusion."""
    return FluidSimulation(N=16, dt=0.1, diffusion=0.0, viscosity=0.0)


@pytest.fixture
def random_field():
    """Factory for reproducible random flat fields."""
    def make(N, seed=0):
        return np.random.default_rng(seed).normal(size=N * N)
    return make

