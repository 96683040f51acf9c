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

import unittest

import numpy as np

import softtet
from softtet.geometry import GroundPlane


def build_particles(positions, masses=None, up_axis="y"):
    builder = softtet.ModelBuilder(up_axis=up_axis)
    builder.add_particles(positions, mass=masses)
    model = builder.finalize(device="cpu")
    return model, model.state()


class TestGroundPlane(unittest.TestCase):
    def test_clamp_is_exact(self):
        model, state = build_particles(
            [(0.1, -4.0, 0.2), (0.0, -3.5, 0.0), (1.0, 0.0, -1.0), (0.3, -10.0, 0.4)],
        )
        GroundPlane(height=-3.5).collide(model, state)

        q = state.particle_q.numpy()
        np.testing.assert_array_equal(q[:, 1], np.array([-3.5, -3.5, 0.0, -3.5], dtype=np.float32))
        # tangential coordinates are not touched
        np.testing.assert_array_equal(q[:, 0], np.array([0.1, 0.0, 1.0, 0.3], dtype=np.float32))
        np.testing.assert_array_equal(q[:, 2], np.array([0.2, 0.0, -1.0, 0.4], dtype=np.float32))

    def test_clamp_is_idempotent(self):
        model, state = build_particles([(0.0, -5.0, 0.0), (0.0, 2.0, 0.0)])
        ground = GroundPlane(height=-3.5)

        ground.collide(model, state)
        once = state.particle_q.numpy().copy()
        ground.collide(model, state)
        np.testing.assert_array_equal(state.particle_q.numpy(), once)

    def test_pinned_particles_are_skipped(self):
        model, state = build_particles([(0.0, -5.0, 0.0), (0.0, -5.0, 0.0)], masses=[0.0, 1.0])
        GroundPlane(height=-3.5).collide(model, state)

        q = state.particle_q.numpy()
        self.assertEqual(q[0, 1], -5.0)
        self.assertEqual(q[1, 1], -3.5)

    def test_z_up(self):
        model, state = build_particles([(0.0, -5.0, -1.0), (0.0, -5.0, 1.0)], up_axis="z")
        GroundPlane(height=0.0, up_axis=model.up_axis).collide(model, state)

        q = state.particle_q.numpy()
        np.testing.assert_array_equal(q[:, 2], [0.0, 1.0])
        np.testing.assert_array_equal(q[:, 1], [-5.0, -5.0])

    def test_no_particles(self):
        model = softtet.ModelBuilder().finalize(device="cpu")
        GroundPlane().collide(model, model.state())

    def test_defaults(self):
        ground = GroundPlane()
        self.assertEqual(ground.height, -3.5)
        self.assertEqual(ground.up_axis, softtet.Axis.Y)


if __name__ == "__main__":
    unittest.main(verbosity=2)
