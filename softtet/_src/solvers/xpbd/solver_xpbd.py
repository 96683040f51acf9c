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

import logging
import math

import numpy as np
import warp as wp

from ...sim.collide import GroundPlane
from ...sim.model import Model
from ...sim.state import State
from ..solver import SolverBase
from .kernels import solve_distance_constraints, solve_volume_constraints

logger = logging.getLogger(__name__)

MIN_TIME_STEP = float(np.finfo(np.float32).tiny)
"""Smallest time step the single precision kernels can divide by."""

_FLOAT32_MAX = float(np.finfo(np.float32).max)


def compliance_to_alpha(compliance: float, dt2: float) -> float:
    """Time step scaled compliance ``compliance / dt**2``, computed in double precision."""
    if compliance == 0.0:
        return 0.0
    return min(compliance / dt2, _FLOAT32_MAX)


class SolverXPBD(SolverBase):
    """An implicit integrator using eXtended Position-Based Dynamics (XPBD) for soft bodies.

    References:
        - Miles Macklin, Matthias Müller, and Nuttapong Chentanez. 2016. XPBD: position-based simulation of compliant
          constrained dynamics. In Proceedings of the 9th International Conference on Motion in Games (MIG '16).
          Association for Computing Machinery, New York, NY, USA, 49-54. https://doi.org/10.1145/2994258.2994272

    After predicting positions under gravity, each step resolves ground
    penetration once and then relaxes the constraints ``iterations`` times.
    Every iteration first walks the distance constraints in declaration order,
    then the volume constraints. Corrections are applied immediately
    (Gauss-Seidel), so the result depends on constraint order.

    Compliance is the inverse of stiffness. Zero compliance makes a constraint
    rigid; larger values make it softer. The effective compliance for a step is
    ``compliance / dt**2``.

    Example
    -------

    .. code-block:: python

        solver = softtet.solvers.SolverXPBD(model, iterations=10)

        # simulation loop
        for i in range(100):
            solver.step(state_in, state_out, dt)
            state_in, state_out = state_out, state_in
    """

    def __init__(
        self,
        model: Model,
        iterations: int = 1,
        distance_compliance: float = 0.03,
        volume_compliance: float = 0.9,
        ground: GroundPlane | None = None,
    ):
        super().__init__(model=model)

        if int(iterations) < 1:
            raise ValueError(f"iterations must be at least 1, got {iterations}")
        if not distance_compliance >= 0.0:
            raise ValueError(f"distance_compliance must be non-negative, got {distance_compliance}")
        if not volume_compliance >= 0.0:
            raise ValueError(f"volume_compliance must be non-negative, got {volume_compliance}")

        self.iterations = int(iterations)
        self.distance_compliance = float(distance_compliance)
        self.volume_compliance = float(volume_compliance)
        self.ground = ground

        logger.info(
            "SolverXPBD: iterations=%d distance_compliance=%g volume_compliance=%g ground=%s",
            self.iterations,
            self.distance_compliance,
            self.volume_compliance,
            "off" if ground is None else f"{ground.height:g}",
        )

    def solve_constraints(self, state: State, dt: float) -> None:
        """Run one relaxation pass over the distance and then the volume constraints."""
        model = self.model
        dt2 = dt * dt

        if model.spring_count:
            wp.launch(
                kernel=solve_distance_constraints,
                dim=1,
                inputs=[
                    state.particle_q,
                    model.particle_inv_mass,
                    model.spring_indices,
                    model.spring_rest_length,
                    compliance_to_alpha(self.distance_compliance, dt2),
                ],
                device=model.device,
            )

        if model.tet_count:
            wp.launch(
                kernel=solve_volume_constraints,
                dim=1,
                inputs=[
                    state.particle_q,
                    model.particle_inv_mass,
                    model.tet_indices,
                    model.tet_rest_volume,
                    compliance_to_alpha(self.volume_compliance, dt2),
                ],
                device=model.device,
            )

    def step(self, state_in: State, state_out: State, dt: float) -> None:
        dt = float(dt)
        if not math.isfinite(dt) or dt < MIN_TIME_STEP:
            raise ValueError(f"Time step must be a finite number >= {MIN_TIME_STEP:g}, got {dt}")

        model = self.model

        with wp.ScopedDevice(model.device):
            self.integrate_particles(model, state_in, state_out, dt)

            if self.ground is not None:
                self.ground.collide(model, state_out)

            for _ in range(self.iterations):
                self.solve_constraints(state_out, dt)

            self.update_velocities(model, state_out, dt)
