# SPDX-FileCopyrightText: Copyright (c) 2025 The softtet Developers
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Shared type aliases and enums."""

from __future__ import annotations

from enum import IntEnum
from typing import Sequence, Union

import numpy as np
import warp as wp

Devicelike = Union[wp.Device, str, None]
"""A warp device, a device alias such as ``"cpu"`` or ``"cuda:0"``, or None for the default device."""

Vec3 = Union[Sequence[float], np.ndarray, wp.vec3]
"""Anything that converts to three floats."""


class Axis(IntEnum):
    """Coordinate axis, used to pick the up direction of a scene."""

    X = 0
    Y = 1
    Z = 2

    @classmethod
    def from_any(cls, value: Axis | int | str) -> Axis:
        """Convert an ``Axis``, an index or a name such as ``"y"`` to an ``Axis``."""
        if isinstance(value, Axis):
            return value
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"Invalid axis name '{value}', expected one of 'X', 'Y', 'Z'") from None
        return cls(int(value))

    def to_vector(self) -> tuple[float, float, float]:
        """Unit vector pointing along this axis."""
        v = [0.0, 0.0, 0.0]
        v[int(self)] = 1.0
        return (v[0], v[1], v[2])


def vec3_tuple(value: Vec3, name: str = "value") -> tuple[float, float, float]:
    """Validate a three-component vector and return it as a tuple of floats."""
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected {name} with 3 components, got shape {np.asarray(value).shape}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


__all__ = [
    "Axis",
    "Devicelike",
    "Vec3",
    "vec3_tuple",
]
