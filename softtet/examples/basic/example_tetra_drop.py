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

###########################################################################
# Tetrahedron Drop
#
# Scene:
#   - Ground plane at y = -3.5
#   - One soft tetrahedron (4 particles, 6 distance constraints,
#     1 volume constraint) starting around the origin
#
# Purpose:
#   - Let the tetrahedron fall under gravity and settle on the ground.
#   - At each rendered frame, log the body's center of mass and volume.
#   - Compare settling and volume loss for different compliances and
#     iteration counts.
#
# Usage (headless):
#   python -m softtet.examples tetra_drop --num-frames 600
#   python -m softtet.examples tetra_drop --iterations 10 --volume-compliance 0.001
###########################################################################

import logging

import softtet
import softtet.examples

logger = logging.getLogger(__name__)


class Example:
    def __init__(self, viewer, args=None):
        # simulation timing
        self.fps = 60
        self.frame_dt = 1.0 / self.fps

        self.viewer = viewer

        config = softtet.SimulationConfig(
            ground_height=getattr(args, "ground_height", -3.5),
            distance_compliance=getattr(args, "distance_compliance", 0.03),
            volume_compliance=getattr(args, "volume_compliance", 0.9),
            iterations=getattr(args, "iterations", 1),
            substeps=getattr(args, "substeps", 1),
            device=getattr(args, "device", None),
        )
        self.sim = softtet.Simulation.tetrahedron(config)
        self.model = self.sim.model
        self.rest_volume = float(self.model.tet_rest_volume.numpy()[0])

        self.viewer.set_model(self.model)

    def step(self):
        self.sim.step(self.frame_dt)

        com = self.sim.positions().mean(axis=0)
        volume = float(self.sim.tet_volumes()[0])
        logger.info(
            "time=%.4f center=(%.6f, %.6f, %.6f) volume=%.6f (rest %.6f)",
            self.sim.sim_time,
            com[0],
            com[1],
            com[2],
            volume,
            self.rest_volume,
        )

    def test_final(self):
        ground = self.sim.config.ground_height
        softtet.examples.test_particle_state(
            self.sim,
            "particles above the ground",
            lambda q, qd: ground is None or q[1] >= ground - 5.0e-2,
        )

    def render(self):
        self.viewer.begin_frame(self.sim.sim_time)
        self.viewer.log_state(self.sim.state)
        self.viewer.end_frame()


if __name__ == "__main__":
    parser = softtet.examples.create_parser()
    parser.add_argument("--iterations", type=int, default=1, help="Constraint iterations per substep.")
    parser.add_argument("--substeps", type=int, default=1, help="Substeps per frame.")
    parser.add_argument("--distance-compliance", type=float, default=0.03, help="Edge compliance.")
    parser.add_argument("--volume-compliance", type=float, default=0.9, help="Volume compliance.")
    parser.add_argument("--ground-height", type=float, default=-3.5, help="Height of the ground plane.")

    viewer, args = softtet.examples.init(parser)

    example = Example(viewer, args)

    softtet.examples.run(example, args)
