# MIT License
#
# Copyright (c) 2025 Quandela
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Conversions between :class:`QuantumState` and Perceval / PyTorch objects.

Detection only resolves spatial modes, so exports to distributions sum the
probabilities of kets that differ only in their distinguishability labels.
Those kets are orthogonal, so their probabilities (not amplitudes) add.
"""

from __future__ import annotations

from functools import cache
from typing import Any

import perceval as pcvl  # type: ignore
import torch

from ..utils.normalization import normalize_probabilities, probabilities_from_amplitudes
from .mode_key import ModeKey
from .quantum_state import DEFAULT_TOLERANCE, QuantumState
from .wave_functions import OverlapFunction


def _compositions(n_photons: int, n_modes: int):
    if n_modes == 1:
        yield (n_photons,)
        return
    for first in range(n_photons, -1, -1):
        for rest in _compositions(n_photons - first, n_modes - 1):
            yield (first, *rest)


@cache
def fock_basis(n_modes: int, n_photons: int) -> tuple[tuple[int, ...], ...]:
    """Occupation tuples of ``n_photons`` over ``n_modes``, ``|n,0,...,0>`` first."""
    if n_modes <= 0:
        raise ValueError(f"n_modes must be positive, got {n_modes}")
    if n_photons < 0:
        raise ValueError(f"n_photons must be non-negative, got {n_photons}")
    return tuple(_compositions(n_photons, n_modes))


def spatial_pattern(key: ModeKey, n_modes: int) -> tuple[int, ...]:
    """Per-spatial-mode occupation of ``key`` over ``n_modes`` modes."""
    occupations = key.spatial_occupations()
    outside = [mode for mode in occupations if mode >= n_modes]
    if outside:
        raise ValueError(f"Key {key} occupies modes {outside} beyond n_modes={n_modes}")
    return tuple(occupations.get(mode, 0) for mode in range(n_modes))


def _resolve_n_modes(state: QuantumState, n_modes: int | None) -> int:
    if n_modes is not None:
        return n_modes
    used = [mode for key in state for mode in key.spatial_modes()]
    return max(used) + 1 if used else 1


def to_bs_distribution(
    state: QuantumState, n_modes: int | None = None
) -> pcvl.BSDistribution:
    """Spatial detection probabilities as a ``pcvl.BSDistribution``.

    Probabilities are not renormalised, so a filtered branch keeps its weight.
    """
    n_modes = _resolve_n_modes(state, n_modes)
    weights: dict[tuple[int, ...], float] = {}
    for key, amp in state.items():
        pattern = spatial_pattern(key, n_modes)
        weights[pattern] = weights.get(pattern, 0.0) + abs(amp) ** 2
    dist = pcvl.BSDistribution()
    for pattern, prob in weights.items():
        dist[pcvl.BasicState(pattern)] = float(prob)
    return dist


def to_perceval(state: QuantumState, n_modes: int | None = None) -> pcvl.StateVector:
    """Convert a state of indistinguishable photons to ``pcvl.StateVector``.

    Raises:
        ValueError: If the state carries more than one distinguishability label.
    """
    labels = {dmode for key in state for dmode in key.dmodes()}
    if len(labels) > 1:
        raise ValueError(
            f"Cannot express distinguishability labels {sorted(labels)} "
            "as a Perceval StateVector"
        )
    n_modes = _resolve_n_modes(state, n_modes)
    acc: pcvl.StateVector | None = None
    for key, amp in sorted(state.items()):
        term = pcvl.StateVector(pcvl.BasicState(spatial_pattern(key, n_modes)))
        if amp != 1:
            term = term * complex(amp)
        acc = term if acc is None else acc + term
    return acc if acc is not None else pcvl.StateVector()


def from_perceval(
    state_vector: pcvl.StateVector,
    wave_function: Any,
    overlap_fn: OverlapFunction | None = None,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
) -> QuantumState:
    """Build a state whose photons all share ``wave_function``.

    Raises:
        ValueError: If the Perceval state is empty.
    """
    items = list(state_vector)
    if not items:
        raise ValueError("Perceval StateVector is empty.")
    amplitudes: dict[ModeKey, complex] = {}
    for basic, amplitude in items:
        key = ModeKey.from_occupations([int(v) for v in basic])
        amplitudes[key] = amplitudes.get(key, 0.0) + complex(amplitude)
    state = QuantumState.from_amplitudes(
        amplitudes, overlap_fn=overlap_fn, tolerance=tolerance
    )
    state.loss_mode_floor = max(state.loss_mode_floor, len(items[0][0]))
    state.extend_basis(wave_function)
    return state


def probability_tensor(
    state: QuantumState,
    n_modes: int | None = None,
    *,
    normalize: bool = False,
    dtype: torch.dtype = torch.float64,
) -> torch.Tensor:
    """Spatial detection probabilities over :func:`fock_basis` ordering.

    Raises:
        ValueError: If the terms do not share a single total photon number.
    """
    n_modes = _resolve_n_modes(state, n_modes)
    photon_numbers = {key.total_photons() for key in state}
    if len(photon_numbers) > 1:
        raise ValueError(
            f"State mixes photon numbers {sorted(photon_numbers)}; "
            "include environment modes in n_modes to keep it uniform"
        )
    n_photons = photon_numbers.pop() if photon_numbers else 0
    basis = fock_basis(n_modes, n_photons)
    index_map = {pattern: idx for idx, pattern in enumerate(basis)}

    if not state:
        return torch.zeros(len(basis), dtype=dtype)
    indices = torch.tensor(
        [index_map[spatial_pattern(key, n_modes)] for key in state], dtype=torch.long
    )
    amplitudes = torch.tensor(
        [complex(amp) for amp in state.amplitudes.values()], dtype=torch.complex128
    )
    probabilities = torch.zeros(len(basis), dtype=torch.float64).index_add_(
        0, indices, probabilities_from_amplitudes(amplitudes)
    )
    if normalize:
        probabilities = normalize_probabilities(probabilities)
    return probabilities.to(dtype)


__all__ = [
    "fock_basis",
    "from_perceval",
    "probability_tensor",
    "spatial_pattern",
    "to_bs_distribution",
    "to_perceval",
]
