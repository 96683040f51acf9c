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

"""A module for building softtet models."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import warp as wp

from ..core.types import Axis, Devicelike, Vec3, vec3_tuple
from .model import Model

logger = logging.getLogger(__name__)

TETRAHEDRON_VERTICES: tuple[tuple[float, float, float], ...] = (
    (0.0, -0.5, 0.0),
    (-0.5, 0.5, 0.5),
    (0.5, 0.5, 0.5),
    (0.0, 0.5, -0.5),
)
"""Initial particle positions of the reference tetrahedron body."""

TETRAHEDRON_EDGES: tuple[tuple[int, int], ...] = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))
"""Local particle pairs of the six tetrahedron edges, in relaxation order."""

TETRAHEDRON_FACES: tuple[tuple[int, int, int], ...] = ((0, 1, 2), (0, 2, 3), (0, 3, 1), (1, 3, 2))
"""Local particle triples of the four render triangles (front, right, left, bottom)."""


def tetrahedron_volume(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3) -> float:
    """Signed volume ``dot(p1 - p0, cross(p2 - p0, p3 - p0)) / 6`` of a tetrahedron."""
    a = np.asarray(p0, dtype=np.float64)
    b = np.asarray(p1, dtype=np.float64)
    c = np.asarray(p2, dtype=np.float64)
    d = np.asarray(p3, dtype=np.float64)
    return float(np.dot(b - a, np.cross(c - a, d - a)) / 6.0)


class ModelBuilder:
    """A helper class for building soft body models at runtime.

    Use the ModelBuilder to add particles, distance constraints, volume
    constraints and render triangles. Once the body is complete, call
    :meth:`finalize` to upload everything to a :class:`Model` on a warp
    device::

        import softtet

        builder = softtet.ModelBuilder()
        builder.add_tetrahedron()
        model = builder.finalize(device="cpu")

    Rest lengths and rest volumes are captured from the particle positions at
    the moment a constraint is added, unless given explicitly. Indices are
    validated when they are added, so a constraint can never reference a
    particle that does not exist.

    Args:
        up_axis: The up axis of the scene. The ground plane clamps this coordinate.
        gravity: Gravity acceleration along the up axis (negative points down).
    """

    def __init__(self, up_axis: Axis | int | str = Axis.Y, gravity: float = -1.0):
        self.up_axis = Axis.from_any(up_axis)
        self.gravity = float(gravity)

        self.default_particle_mass = 1.0
        """Mass used by :meth:`add_particle` when none is given."""

        # particles
        self.particle_q: list[tuple[float, float, float]] = []
        self.particle_qd: list[tuple[float, float, float]] = []
        self.particle_mass: list[float] = []

        # distance constraints
        self.spring_indices: list[tuple[int, int]] = []
        self.spring_rest_length: list[float] = []

        # volume constraints
        self.tet_indices: list[tuple[int, int, int, int]] = []
        self.tet_rest_volume: list[float] = []

        # render triangles
        self.tri_indices: list[tuple[int, int, int]] = []

    @property
    def particle_count(self) -> int:
        return len(self.particle_q)

    @property
    def spring_count(self) -> int:
        return len(self.spring_rest_length)

    @property
    def tet_count(self) -> int:
        return len(self.tet_rest_volume)

    @property
    def tri_count(self) -> int:
        return len(self.tri_indices)

    def _check_indices(self, kind: str, indices: Sequence[int]) -> tuple[int, ...]:
        checked = []
        for i in indices:
            i = int(i)
            if i < 0 or i >= self.particle_count:
                raise IndexError(f"{kind} references particle {i} out of range [0, {self.particle_count})")
            checked.append(i)
        if len(set(checked)) != len(checked):
            raise ValueError(f"{kind} references the same particle more than once: {tuple(checked)}")
        return tuple(checked)

    # particles
    def add_particle(self, pos: Vec3, vel: Vec3 = (0.0, 0.0, 0.0), mass: float | None = None) -> int:
        """Add a single particle to the model.

        Args:
            pos: The initial position of the particle.
            vel: The initial velocity of the particle.
            mass: The mass of the particle. Zero pins the particle in place.
                Defaults to :attr:`default_particle_mass`.

        Returns:
            The index of the particle in the system.
        """
        if mass is None:
            mass = self.default_particle_mass
        mass = float(mass)
        if mass < 0.0 or not np.isfinite(mass):
            raise ValueError(f"Particle mass must be a finite non-negative number, got {mass}")

        self.particle_q.append(vec3_tuple(pos, name="particle position"))
        self.particle_qd.append(vec3_tuple(vel, name="particle velocity"))
        self.particle_mass.append(mass)
        return self.particle_count - 1

    def add_particles(
        self,
        pos: Sequence[Vec3],
        vel: Sequence[Vec3] | None = None,
        mass: Sequence[float] | None = None,
    ) -> list[int]:
        """Add a group of particles to the model.

        Args:
            pos: The initial positions of the particles.
            vel: The initial velocities of the particles, zero if omitted.
            mass: The masses of the particles, :attr:`default_particle_mass` if omitted.

        Returns:
            The indices of the new particles.
        """
        if vel is not None and len(vel) != len(pos):
            raise ValueError(f"Expected {len(pos)} velocities, got {len(vel)}")
        if mass is not None and len(mass) != len(pos):
            raise ValueError(f"Expected {len(pos)} masses, got {len(mass)}")

        indices = []
        for i, p in enumerate(pos):
            v = vel[i] if vel is not None else (0.0, 0.0, 0.0)
            m = mass[i] if mass is not None else None
            indices.append(self.add_particle(p, v, m))
        return indices

    # constraints
    def add_distance_constraint(self, i: int, j: int, rest_length: float | None = None) -> int:
        """Add a distance constraint between two particles.

        Args:
            i: Index of the first particle.
            j: Index of the second particle.
            rest_length: The rest length of the constraint. If None, the
                current distance between the particles is used.

        Returns:
            The index of the distance constraint in the system.
        """
        i, j = self._check_indices("Distance constraint", (i, j))
        if rest_length is None:
            rest_length = float(np.linalg.norm(np.subtract(self.particle_q[i], self.particle_q[j])))
        rest_length = float(rest_length)
        if rest_length < 0.0 or not np.isfinite(rest_length):
            raise ValueError(f"Rest length must be a finite non-negative number, got {rest_length}")

        self.spring_indices.append((i, j))
        self.spring_rest_length.append(rest_length)
        return self.spring_count - 1

    def add_volume_constraint(self, i: int, j: int, k: int, l: int, rest_volume: float | None = None) -> int:
        """Add a signed volume constraint over four particles.

        The sign of the volume depends on the order of the particles, so the
        same order is used for the rest value and during solving.

        Args:
            i, j, k, l: Indices of the four particles.
            rest_volume: The signed rest volume. If None, the current signed
                volume of the four particles is used.

        Returns:
            The index of the volume constraint in the system.
        """
        i, j, k, l = self._check_indices("Volume constraint", (i, j, k, l))
        if rest_volume is None:
            q = self.particle_q
            rest_volume = tetrahedron_volume(q[i], q[j], q[k], q[l])
        rest_volume = float(rest_volume)
        if not np.isfinite(rest_volume):
            raise ValueError(f"Rest volume must be finite, got {rest_volume}")

        self.tet_indices.append((i, j, k, l))
        self.tet_rest_volume.append(rest_volume)
        return self.tet_count - 1

    def add_triangle(self, i: int, j: int, k: int) -> int:
        """Add a render triangle. Triangles do not take part in the simulation.

        Returns:
            The index of the triangle in the system.
        """
        self.tri_indices.append(self._check_indices("Triangle", (i, j, k)))
        return self.tri_count - 1

    def add_tetrahedron(
        self,
        vertices: Sequence[Vec3] = TETRAHEDRON_VERTICES,
        pos: Vec3 = (0.0, 0.0, 0.0),
        vel: Vec3 = (0.0, 0.0, 0.0),
        mass: float | Sequence[float] | None = None,
    ) -> int:
        """Add a tetrahedral soft body.

        Adds four particles, one distance constraint per edge, one volume
        constraint over the four particles and the four surface triangles.

        Args:
            vertices: The four vertex positions in body space.
            pos: Translation applied to every vertex.
            vel: Initial velocity of every particle.
            mass: One mass for all particles, or one mass per particle.

        Returns:
            The index of the body's first particle.
        """
        if len(vertices) != 4:
            raise ValueError(f"A tetrahedron needs 4 vertices, got {len(vertices)}")
        if mass is None or np.isscalar(mass):
            masses = [mass] * 4
        else:
            masses = list(mass)
            if len(masses) != 4:
                raise ValueError(f"Expected 4 masses, got {len(masses)}")

        offset = np.asarray(vec3_tuple(pos, name="pos"))
        start = self.particle_count
        for v, m in zip(vertices, masses):
            self.add_particle(np.asarray(vec3_tuple(v, name="vertex")) + offset, vel, m)

        for a, b in TETRAHEDRON_EDGES:
            self.add_distance_constraint(start + a, start + b)
        self.add_volume_constraint(start, start + 1, start + 2, start + 3)
        for a, b, c in TETRAHEDRON_FACES:
            self.add_triangle(start + a, start + b, start + c)

        logger.debug(
            "Added tetrahedron at particle %d with rest volume %.6f", start, self.tet_rest_volume[-1]
        )
        return start

    def finalize(self, device: Devicelike | None = None) -> Model:
        """
        Convert this builder object to a concrete model for simulation.

        After building simulation elements this method should be called to transfer
        all data to device memory ready for simulation.

        Args:
            device: The simulation device to use, e.g.: 'cuda:0'

        Returns:
            A model object.
        """
        m = Model(device)
        device = m.device

        with wp.ScopedDevice(device):
            # particles
            mass = np.array(self.particle_mass, dtype=np.float32)
            inv_mass = np.divide(1.0, mass, out=np.zeros_like(mass), where=mass > 0.0)

            m.particle_count = self.particle_count
            m.particle_q = wp.array(np.array(self.particle_q, dtype=np.float32).reshape(-1, 3), dtype=wp.vec3)
            m.particle_qd = wp.array(np.array(self.particle_qd, dtype=np.float32).reshape(-1, 3), dtype=wp.vec3)
            m.particle_mass = wp.array(mass, dtype=wp.float32)
            m.particle_inv_mass = wp.array(inv_mass, dtype=wp.float32)

            # distance constraints
            m.spring_count = self.spring_count
            m.spring_indices = wp.array(np.array(self.spring_indices, dtype=np.int32).reshape(-1), dtype=wp.int32)
            m.spring_rest_length = wp.array(np.array(self.spring_rest_length, dtype=np.float32), dtype=wp.float32)

            # volume constraints
            m.tet_count = self.tet_count
            m.tet_indices = wp.array(np.array(self.tet_indices, dtype=np.int32).reshape(-1, 4), dtype=wp.int32)
            m.tet_rest_volume = wp.array(np.array(self.tet_rest_volume, dtype=np.float32), dtype=wp.float32)

            # render triangles
            m.tri_count = self.tri_count
            m.tri_indices = wp.array(np.array(self.tri_indices, dtype=np.int32).reshape(-1, 3), dtype=wp.int32)

        m.up_axis = self.up_axis
        m.set_gravity(np.asarray(self.up_axis.to_vector()) * self.gravity)

        logger.info(
            "Finalized model on %s: %d particles, %d distance constraints, %d volume constraints",
            device,
            m.particle_count,
            m.spring_count,
            m.tet_count,
        )
        return m
