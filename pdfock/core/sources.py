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

"""Photon sources and input-state preparation.

A source is plain data; preparing a state injects the sources one by one
through :meth:`QuantumState.add_photon`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .quantum_state import DEFAULT_TOLERANCE, QuantumState
from .wave_functions import OverlapFunction


class SourceLayout(str, Enum):
    """Placement of one photon per source over the spatial modes."""

    SEQUENTIAL = "sequential"
    INTERLEAVED = "interleaved"


@dataclass(frozen=True)
class PhotonSource:
    """``count`` photons emitted with one wave function into one spatial mode."""

    spatial_mode: int
    wave_function: Any
    count: int = 1

    def __post_init__(self) -> None:
        if self.spatial_mode < 0:
            raise ValueError(f"spatial_mode must be non-negative, got {self.spatial_mode}")
        if self.count <= 0:
            raise ValueError(f"count must be positive, got {self.count}")


def source_modes(
    n_sources: int, layout: SourceLayout | str = SourceLayout.INTERLEAVED
) -> list[int]:
    """Spatial modes fed by ``n_sources`` sources.

    ``interleaved`` uses every other mode (``0, 2, 4, ...``), leaving the odd
    mode of each pair free, as for polarisation-encoded qubits.
    ``sequential`` uses ``0, 1, 2, ...``.

    Raises:
        ValueError: If the layout is unknown or ``n_sources`` is negative.
    """
    if n_sources < 0:
        raise ValueError(f"n_sources must be non-negative, got {n_sources}")
    try:
        layout = SourceLayout(layout)
    except ValueError as exc:
        raise ValueError(
            f"Unknown source layout '{layout}'. "
            f"Valid values: {[item.value for item in SourceLayout]}"
        ) from exc
    stride = 2 if layout is SourceLayout.INTERLEAVED else 1
    return [stride * index for index in range(n_sources)]


def make_sources(
    wave_functions: Sequence[Any],
    layout: SourceLayout | str = SourceLayout.INTERLEAVED,
    multi_photon: Iterable[int] = (),
) -> list[PhotonSource]:
    """One source per wave function, laid out by ``layout``.

    Args:
        wave_functions: Descriptor emitted by each source, in order.
        layout: Spatial placement of the sources.
        multi_photon: Indices of sources that emit two photons instead of one.
    """
    doubled = set(multi_photon)
    modes = source_modes(len(wave_functions), layout)
    return [
        PhotonSource(mode, wave, 2 if index in doubled else 1)
        for index, (mode, wave) in enumerate(zip(modes, wave_functions))
    ]


def prepare_state(
    sources: Iterable[PhotonSource],
    overlap_fn: OverlapFunction | None = None,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    loss_mode_floor: int = 0,
) -> QuantumState:
    """Fresh state with every source injected in order."""
    state = QuantumState(
        overlap_fn, tolerance=tolerance, loss_mode_floor=loss_mode_floor
    )
    for source in sources:
        state.add_photon(source.wave_function, source.spatial_mode, source.count)
    return state


__all__ = [
    "PhotonSource",
    "SourceLayout",
    "make_sources",
    "prepare_state",
    "source_modes",
]
