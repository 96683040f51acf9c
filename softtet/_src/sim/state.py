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

"""Implementation of the softtet state class."""

from __future__ import annotations

import warp as wp


class State:
    """
    Represents the time-varying state of a soft body.

    A state holds the per-particle kinematic quantities that the solver
    advances each step. The static description (masses, constraint topology,
    rest values) lives in :class:`~softtet.Model`.

    States are created with :meth:`Model.state`, which copies the initial
    configuration from the model. A solver reads one state and writes another,
    so simulations usually keep two and swap them after every step.
    """

    def __init__(self) -> None:
        self.particle_q: wp.array | None = None
        """Particle positions, shape [particle_count], :class:`wp.vec3`."""
        self.particle_qd: wp.array | None = None
        """Particle velocities, shape [particle_count], :class:`wp.vec3`."""
        self.particle_q_prev: wp.array | None = None
        """Particle positions at the start of the last prediction phase, shape [particle_count], :class:`wp.vec3`.

        Only used to recompute velocities at the end of a step."""

    @property
    def particle_count(self) -> int:
        """Number of particles in this state."""
        return len(self.particle_q) if self.particle_q is not None else 0

    def assign(self, other: State) -> None:
        """Copy the particle arrays of ``other`` into this state."""
        if other.particle_count != self.particle_count:
            raise ValueError(
                f"Cannot assign a state with {other.particle_count} particles to one with {self.particle_count}"
            )
        if self.particle_count:
            self.particle_q.assign(other.particle_q)
            self.particle_qd.assign(other.particle_qd)
            self.particle_q_prev.assign(other.particle_q_prev)
