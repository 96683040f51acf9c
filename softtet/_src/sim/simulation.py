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

"""High-level driver that owns a model, its states and a solver."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
import warp as wp

from ..core.types import Devicelike, Vec3, vec3_tuple
from ..solvers.xpbd.kernels import compute_tet_volumes
from ..solvers.xpbd.solver_xpbd import MIN_TIME_STEP, SolverXPBD
from .builder import ModelBuilder
from .collide import GroundPlane
from .model import Model
from .state import State

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Parameters of a :class:`Simulation`, fixed at construction."""

    gravity: Vec3 | None = None
    """Gravity acceleration vector. None keeps the gravity the model was built with."""
    ground_height: float | None = -3.5
    """Height of the ground plane along the model's up axis. None disables the plane."""
    distance_compliance: float = 0.03
    volume_compliance: float = 0.9
    iterations: int = 1
    """Constraint relaxation passes per substep."""
    substeps: int = 1
    """Number of equal substeps each call to :meth:`Simulation.step` is split into."""
    device: Devicelike = field(default=None, repr=False)

    def __post_init__(self):
        if self.gravity is not None:
            self.gravity = vec3_tuple(self.gravity, name="gravity")
        if self.ground_height is not None:
            self.ground_height = float(self.ground_height)
            if not math.isfinite(self.ground_height):
                raise ValueError(f"ground_height must be finite or None, got {self.ground_height}")
        for name in ("distance_compliance", "volume_compliance"):
            value = float(getattr(self, name))
            if not value >= 0.0 or math.isinf(value):
                raise ValueError(f"{name} must be a finite non-negative number, got {value}")
            setattr(self, name, value)
        for name in ("iterations", "substeps"):
            value = getattr(self, name)
            if int(value) != value or value < 1:
                raise ValueError(f"{name} must be an integer >= 1, got {value}")
            setattr(self, name, int(value))


class Simulation:
    """
    A soft body simulation that advances with :meth:`step`.

    The simulation owns the :class:`Model`, two :class:`State` objects that are
    swapped after every substep, an :class:`SolverXPBD` and the optional
    :class:`GroundPlane`. Each step runs prediction, ground clamping, the
    constraint iterations and velocity reconciliation, in that order, for
    every substep.

    Example
    -------

    .. code-block:: python

        sim = softtet.Simulation.tetrahedron()
        for _ in range(60):
            sim.step(1.0 / 60.0)
        print(sim.positions())
    """

    def __init__(self, model: Model, config: SimulationConfig | None = None):
        self.config = config if config is not None else SimulationConfig()
        self.model = model

        if self.config.gravity is not None:
            model.set_gravity(self.config.gravity)

        self.ground = None
        if self.config.ground_height is not None:
            self.ground = GroundPlane(self.config.ground_height, up_axis=model.up_axis)

        self.solver = SolverXPBD(
            model,
            iterations=self.config.iterations,
            distance_compliance=self.config.distance_compliance,
            volume_compliance=self.config.volume_compliance,
            ground=self.ground,
        )

        self.state_0 = model.state()
        self.state_1 = model.state()

        self.sim_time = 0.0
        self.frame = 0

        self._volumes = None
        if model.tet_count:
            self._volumes = wp.zeros(model.tet_count, dtype=wp.float32, device=model.device)

    @classmethod
    def from_builder(cls, builder: ModelBuilder, config: SimulationConfig | None = None) -> Simulation:
        """Finalize ``builder`` on the configured device and wrap the model in a simulation."""
        config = config if config is not None else SimulationConfig()
        return cls(builder.finalize(device=config.device), config)

    @classmethod
    def tetrahedron(
        cls,
        config: SimulationConfig | None = None,
        pos: Vec3 = (0.0, 0.0, 0.0),
        mass: float | None = None,
    ) -> Simulation:
        """Create the reference scene: one tetrahedron above the ground plane."""
        builder = ModelBuilder()
        builder.add_tetrahedron(pos=pos, mass=mass)
        return cls.from_builder(builder, config)

    @property
    def state(self) -> State:
        """The current state."""
        return self.state_0

    def step(self, dt: float) -> None:
        """
        Advance the simulation by ``dt`` seconds.

        A ``dt`` that is not a finite positive number, or whose substeps are too
        small to represent in single precision, leaves the simulation unchanged.
        """
        dt = float(dt)
        if not math.isfinite(dt) or dt <= 0.0:
            logger.debug("Skipping step with dt=%s", dt)
            return

        sub_dt = dt / self.config.substeps
        if sub_dt < MIN_TIME_STEP:
            logger.debug("Skipping step with dt=%s, substep %s is too small", dt, sub_dt)
            return

        for _ in range(self.config.substeps):
            self.solver.step(self.state_0, self.state_1, sub_dt)
            self.state_0, self.state_1 = self.state_1, self.state_0

        self.sim_time += dt
        self.frame += 1

    def positions(self) -> np.ndarray:
        """Particle positions, shape (particle_count, 3)."""
        return self.state_0.particle_q.numpy().reshape(-1, 3)

    def velocities(self) -> np.ndarray:
        """Particle velocities, shape (particle_count, 3)."""
        return self.state_0.particle_qd.numpy().reshape(-1, 3)

    def triangle_vertices(self) -> np.ndarray:
        """Positions of the render triangle corners, three rows per triangle, shape (tri_count * 3, 3)."""
        if not self.model.tri_count:
            return np.zeros((0, 3), dtype=np.float32)
        tris = self.model.tri_indices.numpy()
        return self.positions()[tris].reshape(-1, 3)

    def tet_volumes(self) -> np.ndarray:
        """Current signed volume of every volume constraint's tetrahedron, shape (tet_count,)."""
        if self._volumes is None:
            return np.zeros(0, dtype=np.float32)
        wp.launch(
            kernel=compute_tet_volumes,
            dim=self.model.tet_count,
            inputs=[self.state_0.particle_q, self.model.tet_indices],
            outputs=[self._volumes],
            device=self.model.device,
        )
        return self._volumes.numpy()
