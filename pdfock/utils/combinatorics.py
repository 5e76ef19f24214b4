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

"""Factorial, binomial and conjugation helpers for bosonic amplitudes.

Occupation numbers in this package stay small: the factorial table covers up
to :data:`MAX_OCCUPATION` photons in a single mode, which is the regime the
state algebra is designed for.
"""

from __future__ import annotations

import numbers
import warnings

MAX_OCCUPATION = 12

FACTORIALS: tuple[int, ...] = (
    1,
    1,
    2,
    6,
    24,
    120,
    720,
    5040,
    40320,
    362880,
    3628800,
    39916800,
    479001600,
)


class OccupationRangeError(ValueError):
    """Raised when an occupation number falls outside the supported range."""


def factorial(n: int, *, strict: bool = True) -> int:
    """Return ``n!`` for a single-mode occupation number.

    Args:
        n: Occupation number, ``0 <= n <= MAX_OCCUPATION``.
        strict: When False, values above ``MAX_OCCUPATION`` are computed
            recursively after emitting a ``RuntimeWarning`` instead of raising.

    Returns:
        The exact factorial as an integer.

    Raises:
        OccupationRangeError: If ``n`` is negative, or above the table while
            ``strict`` is set.
    """
    if n < 0:
        raise OccupationRangeError(f"Occupation must be non-negative, got {n}")
    if n <= MAX_OCCUPATION:
        return FACTORIALS[n]
    if strict:
        raise OccupationRangeError(
            f"Occupation {n} exceeds the supported maximum of {MAX_OCCUPATION} "
            "photons per mode"
        )
    warnings.warn(
        f"Computing factorial of occupation {n} beyond the supported "
        f"maximum of {MAX_OCCUPATION}",
        RuntimeWarning,
        stacklevel=2,
    )
    return n * factorial(n - 1, strict=False)


def binomial(n: int, k: int) -> int:
    """Binomial coefficient ``C(n, k)`` for ``0 <= k <= n <= MAX_OCCUPATION``."""
    if k < 0 or k > n:
        raise ValueError(f"Invalid binomial arguments n={n}, k={k}")
    return factorial(n) // (factorial(k) * factorial(n - k))


def conjugate(value):
    """Complex conjugate of ``value``; the identity for real numbers."""
    if isinstance(value, numbers.Real):
        return value
    return value.conjugate()


__all__ = [
    "FACTORIALS",
    "MAX_OCCUPATION",
    "OccupationRangeError",
    "binomial",
    "conjugate",
    "factorial",
]
