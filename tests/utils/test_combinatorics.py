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

"""Unit tests for the factorial table and binomial coefficients."""

import math

import numpy as np
import pytest

from pdfock.utils.combinatorics import (
    FACTORIALS,
    MAX_OCCUPATION,
    OccupationRangeError,
    binomial,
    conjugate,
    factorial,
)


def test_factorial_table_matches_math():
    assert len(FACTORIALS) == MAX_OCCUPATION + 1
    for n in range(MAX_OCCUPATION + 1):
        assert factorial(n) == math.factorial(n)


def test_factorial_above_table_raises():
    with pytest.raises(OccupationRangeError):
        factorial(MAX_OCCUPATION + 1)


def test_factorial_above_table_non_strict_warns():
    with pytest.warns(RuntimeWarning):
        value = factorial(14, strict=False)
    assert value == math.factorial(14)


def test_factorial_negative_raises():
    with pytest.raises(ValueError):
        factorial(-1)
    with pytest.raises(ValueError):
        factorial(-1, strict=False)


@pytest.mark.parametrize("n,k,expected", [(0, 0, 1), (5, 2, 10), (12, 6, 924), (7, 7, 1)])
def test_binomial(n, k, expected):
    assert binomial(n, k) == expected


@pytest.mark.parametrize("n,k", [(3, 4), (3, -1)])
def test_binomial_out_of_range(n, k):
    with pytest.raises(ValueError):
        binomial(n, k)


def test_binomial_above_table_raises():
    with pytest.raises(OccupationRangeError):
        binomial(13, 1)


def test_conjugate():
    assert conjugate(2.5) == 2.5
    assert conjugate(3) == 3
    assert conjugate(1 + 2j) == 1 - 2j
    assert conjugate(np.complex128(1 + 1j)) == 1 - 1j
