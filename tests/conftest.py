import os
import random

import numpy as np
import pytest
import torch

from pdfock import QuantumState, labelled_overlap


@pytest.fixture(autouse=True)
def set_seed():
    seed = int(os.environ.get("PYTEST_SEED", 42))
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


@pytest.fixture
def labelled_state():
    """Empty state comparing ``(label, overlap)`` descriptors."""
    return QuantumState(labelled_overlap)


@pytest.fixture
def random_internal_state():
    """Factory of random normalised complex vectors."""

    def make(dim: int) -> np.ndarray:
        vector = np.random.randn(dim) + 1j * np.random.randn(dim)
        return vector / np.linalg.norm(vector)

    return make


@pytest.fixture
def partial_state():
    """Three photons on modes 0, 1, 2 with pairwise overlap 0.5."""
    state = QuantumState(labelled_overlap)
    state.add_photon(("a", 0.5), 0)
    state.add_photon(("b", 0.5), 1)
    state.add_photon(("c", 0.5), 2)
    return state
