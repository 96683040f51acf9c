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

from __future__ import annotations

import warp as wp

from ..sim.model import Model
from ..sim.state import State
from .xpbd.kernels import integrate_particles, update_particle_velocities


class SolverBase:
    """Generic base class for solvers.

    The implementation provides the two phases every position-based solver
    shares: the explicit prediction of particle positions under gravity and
    the reconciliation of velocities from the corrected positions. Derived
    solvers implement :meth:`step` and run their constraint projection in
    between.
    """

    def __init__(self, model: Model):
        self.model = model

    def integrate_particles(self, model: Model, state_in: State, state_out: State, dt: float) -> None:
        """
        Predict particle positions for the next step.

        Every movable particle has its velocity advanced by gravity, its
        current position saved as the previous position, and its position
        advanced by the new velocity. Pinned particles are copied unchanged.

        Args:
            model (Model): The model to integrate.
            state_in (State): The input state.
            state_out (State): The output state.
            dt (float): The time step (typically in seconds).
        """
        if model.particle_count:
            wp.launch(
                kernel=integrate_particles,
                dim=model.particle_count,
                inputs=[
                    state_in.particle_q,
                    state_in.particle_qd,
                    state_in.particle_q_prev,
                    model.particle_inv_mass,
                    model.gravity,
                    dt,
                ],
                outputs=[state_out.particle_q, state_out.particle_qd, state_out.particle_q_prev],
                device=model.device,
            )

    def update_velocities(self, model: Model, state: State, dt: float) -> None:
        """Set the velocity of every movable particle to ``(q - q_prev) / dt``."""
        if model.particle_count:
            wp.launch(
                kernel=update_particle_velocities,
                dim=model.particle_count,
                inputs=[state.particle_q, state.particle_q_prev, model.particle_inv_mass, dt],
                outputs=[state.particle_qd],
                device=model.device,
            )

    def step(self, state_in: State, state_out: State, dt: float) -> None:
        """
        Simulate the model for a given time step using the given state as input.

        Args:
            state_in (State): The input state.
            state_out (State): The output state.
            dt (float): The time step (typically in seconds).
        """
        raise NotImplementedError()
