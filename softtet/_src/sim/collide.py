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

from ..core.types import Axis
from ..solvers.xpbd.kernels import clamp_particles_to_ground
from .model import Model
from .state import State


class GroundPlane:
    """
    A static, infinite ground plane perpendicular to the up axis.

    Particles whose up coordinate falls below :attr:`height` are moved back onto
    the plane. Only the up coordinate changes: there is no friction and no
    restitution, so particles may slide freely along the plane. Pinned
    particles are never moved.

    Args:
        height: Position of the plane along the up axis.
        up_axis: The axis perpendicular to the plane.
    """

    def __init__(self, height: float = -3.5, up_axis: Axis | int | str = Axis.Y):
        self.height = float(height)
        self.up_axis = Axis.from_any(up_axis)

    def collide(self, model: Model, state: State) -> None:
        """
        Clamp the particles of ``state`` to the plane, in place.

        Applying the clamp twice gives the same result as applying it once.

        Args:
            model (Model): The model that provides the particle inverse masses.
            state (State): The state whose particle positions are clamped.
        """
        if not model.particle_count:
            return

        wp.launch(
            kernel=clamp_particles_to_ground,
            dim=model.particle_count,
            inputs=[state.particle_q, model.particle_inv_mass, int(self.up_axis), self.height],
            device=model.device,
        )

    def __repr__(self) -> str:
        return f"GroundPlane(height={self.height}, up_axis={self.up_axis.name})"
