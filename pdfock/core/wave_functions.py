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

"""Wave-function descriptors and their overlaps.

Photons are tagged with caller-supplied descriptors of their wave packet. The
only thing the state algebra needs from a descriptor is its overlap with other
descriptors, provided by an :class:`OverlapFunction`. Orthonormal basis
vectors are stored as coefficient lists over the descriptors seen so far.
"""

from __future__ import annotations

import cmath
import math
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from ..utils.combinatorics import conjugate
from .mode_key import Amplitude


class OverlapFunction(Protocol):
    """Callable returning ``<first|second>`` for two descriptors."""

    def __call__(self, first: Any, second: Any) -> Amplitude: ...


def overlap_with_descriptor(
    coefficients: Sequence[Amplitude],
    descriptor: Any,
    overlap_fn: OverlapFunction,
    waves: Sequence[Any],
) -> Amplitude:
    """Inner product ``<b|descriptor>`` of a basis vector and a raw descriptor.

    Args:
        coefficients: Coefficients of ``b`` over the first ``len(coefficients)``
            entries of ``waves``.
        descriptor: Descriptor of the ket.
        overlap_fn: Pairwise descriptor overlap.
        waves: Descriptors the coefficients refer to.
    """
    result: Amplitude = 0.0
    for coefficient, wave in zip(coefficients, waves):
        result += conjugate(coefficient) * overlap_fn(wave, descriptor)
    return result


def inner_product(
    bra: Sequence[Amplitude],
    ket: Sequence[Amplitude],
    overlap_fn: OverlapFunction,
    waves: Sequence[Any],
) -> Amplitude:
    """Inner product ``<bra|ket>`` of two vectors expressed over ``waves``."""
    result: Amplitude = 0.0
    for coefficient, wave in zip(ket, waves):
        result += coefficient * overlap_with_descriptor(bra, wave, overlap_fn, waves)
    return result


def vector_overlap(first: Any, second: Any) -> complex:
    """Overlap of internal states given as normalised complex vectors."""
    return complex(np.vdot(np.asarray(first), np.asarray(second)))


def labelled_overlap(first: Sequence[Hashable], second: Sequence[Hashable]) -> float:
    """Overlap model for descriptors ``(label, overlap)``.

    Descriptors with equal labels are identical. Otherwise the overlap is the
    second component of the first descriptor, so photons sharing the same
    overlap value are pairwise partially distinguishable.
    """
    if first[0] == second[0]:
        return 1.0
    return float(first[1])


@dataclass(frozen=True)
class GaussianOverlap:
    """Overlap of equal-width Gaussian wave packets.

    Descriptors are ``(t0, omega)``: emission time and carrier frequency of a
    packet of temporal width ``sigma``. The overlap is
    ``exp(-dt^2 / (8 sigma^2) - sigma^2 dw^2 / 2 + i (w1 - w2) (t1 + t2) / 2)``.
    """

    sigma: float = 1.0

    def __post_init__(self) -> None:
        if self.sigma <= 0:
            raise ValueError(f"sigma must be positive, got {self.sigma}")

    def __call__(self, first: Sequence[float], second: Sequence[float]) -> complex:
        t1, w1 = float(first[0]), float(first[1])
        t2, w2 = float(second[0]), float(second[1])
        envelope = math.exp(
            -((t2 - t1) ** 2) / (8 * self.sigma**2)
            - self.sigma**2 * (w2 - w1) ** 2 / 2
        )
        return envelope * cmath.exp(1j * (w1 - w2) * (t1 + t2) / 2)


__all__ = [
    "GaussianOverlap",
    "OverlapFunction",
    "inner_product",
    "labelled_overlap",
    "overlap_with_descriptor",
    "vector_overlap",
]
