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

"""Shared normalization helpers for amplitudes and probabilities."""

from __future__ import annotations

import torch


def probabilities_from_amplitudes(amplitudes: torch.Tensor) -> torch.Tensor:
    """Convert complex amplitudes into probabilities."""
    if not amplitudes.is_complex():
        return amplitudes.pow(2)
    return amplitudes.real**2 + amplitudes.imag**2


def normalize_probabilities(probabilities: torch.Tensor) -> torch.Tensor:
    """Rescale probabilities along the last axis so they sum to one.

    Rows with zero total mass are returned unchanged.
    """
    sum_probs = probabilities.sum(dim=-1, keepdim=True)
    valid_entries = sum_probs > 0
    if not valid_entries.any():
        return probabilities
    return torch.where(
        valid_entries,
        probabilities
        / torch.where(valid_entries, sum_probs, torch.ones_like(sum_probs)),
        probabilities,
    )


def joint_rescale_factor(norms: torch.Tensor) -> float:
    """Factor bringing a family of branch norms to unit total probability.

    Returns 1.0 when the family carries no probability mass.
    """
    total = torch.sum(norms.pow(2))
    if total == 0:
        return 1.0
    return float(torch.rsqrt(total))


__all__ = [
    "joint_rescale_factor",
    "normalize_probabilities",
    "probabilities_from_amplitudes",
]
