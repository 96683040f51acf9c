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

"""Implementation of the softtet model class."""

from __future__ import annotations

import numpy as np
import warp as wp

from ..core.types import Axis, Devicelike, Vec3, vec3_tuple
from .state import State


class Model:
    """
    Represents the static (non-time-varying) definition of a soft body.

    The Model holds the particle store's constant part (masses) and the
    constraint set: distance constraints between particle pairs and signed
    volume constraints over particle quadruples. Constraints reference
    particles by index into the particle arrays, and their rest values are
    captured once when the body is built.

    Key Features:
        - Particles with zero mass have zero inverse mass and are pinned.
        - Distance constraints are stored as flat index pairs in
          :attr:`spring_indices`, volume constraints as rows of
          :attr:`tet_indices`. Both keep declaration order, which is the order
          the solver relaxes them in.
        - Render triangles (:attr:`tri_indices`) are carried along so callers
          can derive triangle vertex positions without knowing the topology.

    Note:
        Use :class:`~softtet.ModelBuilder` to construct a Model. Direct
        instantiation and manual population of Model fields is possible but
        skips index validation.
    """

    def __init__(self, device: Devicelike | None = None):
        """
        Initialize an empty Model.

        Args:
            device (wp.Device, optional): Device on which the Model's data will be allocated.
        """
        # particles
        self.particle_q: wp.array | None = None
        """Initial particle positions, shape [particle_count], :class:`wp.vec3`.
        :meth:`state` copies these into :attr:`State.particle_q`."""
        self.particle_qd: wp.array | None = None
        """Initial particle velocities, shape [particle_count], :class:`wp.vec3`."""
        self.particle_mass: wp.array | None = None
        """Particle mass, shape [particle_count], float. Zero marks a pinned particle."""
        self.particle_inv_mass: wp.array | None = None
        """Particle inverse mass, shape [particle_count], float. Zero for pinned particles."""

        # distance constraints
        self.spring_indices: wp.array | None = None
        """Distance constraint particle pairs, shape [spring_count*2], int."""
        self.spring_rest_length: wp.array | None = None
        """Distance constraint rest lengths, shape [spring_count], float."""

        # volume constraints
        self.tet_indices: wp.array | None = None
        """Volume constraint particle quadruples, shape [tet_count, 4], int."""
        self.tet_rest_volume: wp.array | None = None
        """Signed rest volume of each volume constraint, shape [tet_count], float.

        Computed as ``dot(p1 - p0, cross(p2 - p0, p3 - p0)) / 6``."""

        # rendering
        self.tri_indices: wp.array | None = None
        """Render triangle particle triples, shape [tri_count, 3], int."""

        self.gravity: wp.array | None = None
        """Gravity vector, shape [1], :class:`wp.vec3`. Use :meth:`set_gravity` to change it."""
        self.up_axis: Axis = Axis.Y
        """Up axis of the scene. The ground plane clamps this coordinate."""

        self.particle_count = 0
        """Total number of particles in the system."""
        self.spring_count = 0
        """Total number of distance constraints in the system."""
        self.tet_count = 0
        """Total number of volume constraints in the system."""
        self.tri_count = 0
        """Total number of render triangles in the system."""

        self.device = wp.get_device(device)
        """Device on which the Model was allocated."""

    def state(self) -> State:
        """
        Create and return a new :class:`State` object for this model.

        The returned state holds copies of the initial positions and velocities.
        The previous positions start out equal to the initial positions.

        Returns:
            State: The state object
        """
        s = State()
        if self.particle_count:
            s.particle_q = wp.clone(self.particle_q)
            s.particle_qd = wp.clone(self.particle_qd)
            s.particle_q_prev = wp.clone(self.particle_q)
        else:
            s.particle_q = wp.zeros(0, dtype=wp.vec3, device=self.device)
            s.particle_qd = wp.zeros(0, dtype=wp.vec3, device=self.device)
            s.particle_q_prev = wp.zeros(0, dtype=wp.vec3, device=self.device)
        return s

    def set_gravity(self, gravity: Vec3) -> None:
        """
        Set gravity for runtime modification.

        Args:
            gravity: Gravity acceleration vector (3,).
        """
        g = vec3_tuple(gravity, name="gravity")
        if self.gravity is None:
            self.gravity = wp.array([wp.vec3(*g)], dtype=wp.vec3, device=self.device)
        else:
            self.gravity.fill_(wp.vec3(*g))

    def get_gravity(self) -> np.ndarray:
        """Return the current gravity vector as a numpy array of shape (3,)."""
        if self.gravity is None:
            return np.zeros(3, dtype=np.float32)
        return self.gravity.numpy()[0]
