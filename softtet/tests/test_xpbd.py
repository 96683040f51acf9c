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

import math
import unittest

import numpy as np

import softtet
from softtet.geometry import GroundPlane
from softtet.solvers import SolverXPBD

DT = 1.0 / 60.0


def step_n(solver, state_0, state_1, n, dt=DT):
    for _ in range(n):
        solver.step(state_0, state_1, dt)
        state_0, state_1 = state_1, state_0
    return state_0, state_1


def edge_model(p0, p1, rest_length):
    builder = softtet.ModelBuilder(gravity=0.0)
    builder.add_particles([p0, p1])
    builder.add_distance_constraint(0, 1, rest_length=rest_length)
    return builder.finalize(device="cpu")


def edge_error(model, iterations, compliance):
    solver = SolverXPBD(model, iterations=iterations, distance_compliance=compliance)
    state_0, state_1 = model.state(), model.state()
    solver.step(state_0, state_1, DT)
    q = state_1.particle_q.numpy()
    return abs(float(np.linalg.norm(q[0] - q[1])) - 1.0)


class TestSolverXPBD(unittest.TestCase):
    def test_rest_state_is_stable(self):
        builder = softtet.ModelBuilder(gravity=0.0)
        builder.add_tetrahedron()
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model)
        state_0, _ = step_n(solver, model.state(), model.state(), 100)

        np.testing.assert_allclose(state_0.particle_q.numpy(), softtet.TETRAHEDRON_VERTICES, atol=1e-4)
        np.testing.assert_allclose(state_0.particle_qd.numpy(), 0.0, atol=1e-3)

    def test_single_edge_exact_with_zero_compliance(self):
        model = edge_model((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), 1.0)
        self.assertAlmostEqual(edge_error(model, 1, 0.0), 0.0, places=6)

        # equal inverse masses share the correction symmetrically
        solver = SolverXPBD(model, distance_compliance=0.0)
        state_0, state_1 = model.state(), model.state()
        solver.step(state_0, state_1, DT)
        np.testing.assert_allclose(state_1.particle_q.numpy(), [[0.5, 0.0, 0.0], [1.5, 0.0, 0.0]], atol=1e-6)

    def test_single_edge_converges_with_compliance(self):
        model = edge_model((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), 1.0)

        errors = [edge_error(model, 1, c) for c in (1.0, 0.1, 0.01, 0.001, 0.0)]
        for a, b in zip(errors, errors[1:]):
            self.assertLess(b, a)

        # one relaxation leaves alpha / (w_sum + alpha) of the error
        alpha = 0.01 / (DT * DT)
        self.assertAlmostEqual(errors[2], alpha / (2.0 + alpha), places=5)

    def test_single_edge_converges_with_iterations(self):
        model = edge_model((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), 1.0)

        errors = [edge_error(model, n, 0.01) for n in (1, 2, 4, 8, 16)]
        for a, b in zip(errors, errors[1:]):
            self.assertLess(b, a)

    def test_degenerate_edge_is_skipped(self):
        model = edge_model((1.0, 1.0, 1.0), (1.0, 1.0, 1.0), 1.0)
        solver = SolverXPBD(model, distance_compliance=0.0)

        state_0, _ = step_n(solver, model.state(), model.state(), 3)

        q = state_0.particle_q.numpy()
        self.assertTrue(np.all(np.isfinite(q)))
        np.testing.assert_array_equal(q, [[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]])
        np.testing.assert_array_equal(state_0.particle_qd.numpy(), 0.0)

    def test_constraints_are_relaxed_in_order(self):
        builder = softtet.ModelBuilder(gravity=0.0)
        builder.add_particles([(0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (4.0, 0.0, 0.0)])
        builder.add_distance_constraint(0, 1, rest_length=1.0)
        builder.add_distance_constraint(1, 2, rest_length=1.0)
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model, distance_compliance=0.0)
        state_0, state_1 = model.state(), model.state()
        solver.step(state_0, state_1, DT)

        # the second constraint sees the correction made by the first one
        np.testing.assert_allclose(state_1.particle_q.numpy()[:, 0], [0.5, 2.25, 3.25], atol=1e-6)

    def test_volume_constraint_projection(self):
        p = np.array(softtet.TETRAHEDRON_VERTICES, dtype=np.float64)
        p[0] = (0.0, -1.0, 0.0)
        rest = 1.0 / 6.0
        compliance = 0.9

        builder = softtet.ModelBuilder(gravity=0.0)
        builder.add_particles(p)
        builder.add_volume_constraint(0, 1, 2, 3, rest_volume=rest)
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model, volume_compliance=compliance)
        state_0, state_1 = model.state(), model.state()
        solver.step(state_0, state_1, DT)

        p0, p1, p2, p3 = p
        grads = [
            np.cross(p2 - p1, p3 - p1),
            np.cross(p3 - p0, p2 - p0),
            np.cross(p0 - p1, p3 - p1),
            np.cross(p1 - p0, p2 - p0),
        ]
        c = np.dot(p1 - p0, np.cross(p2 - p0, p3 - p0)) / 6.0 - rest
        w_sum = sum(np.dot(g, g) for g in grads)
        lam = -6.0 * c / (w_sum + compliance / (DT * DT))
        expected = p + lam * np.array(grads)

        np.testing.assert_allclose(state_1.particle_q.numpy(), expected, atol=1e-5)

    def test_pinned_particle_is_invariant(self):
        builder = softtet.ModelBuilder()
        builder.add_tetrahedron(mass=[0.0, 1.0, 1.0, 1.0])
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model, iterations=4, ground=GroundPlane(-3.5))
        state_0, _ = step_n(solver, model.state(), model.state(), 200)

        q = state_0.particle_q.numpy()
        np.testing.assert_array_equal(q[0], np.array(softtet.TETRAHEDRON_VERTICES[0], dtype=np.float32))
        np.testing.assert_array_equal(state_0.particle_qd.numpy()[0], 0.0)
        # the free particles do move
        self.assertFalse(np.allclose(q[1:], softtet.TETRAHEDRON_VERTICES[1:]))
        self.assertTrue(np.all(np.isfinite(q)))

    def test_fully_pinned_constraint_is_skipped(self):
        builder = softtet.ModelBuilder()
        builder.add_particles([(0.0, 0.0, 0.0), (3.0, 0.0, 0.0)], mass=[0.0, 0.0])
        builder.add_distance_constraint(0, 1, rest_length=1.0)
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model, distance_compliance=0.0)
        state_0, _ = step_n(solver, model.state(), model.state(), 5)
        np.testing.assert_array_equal(state_0.particle_q.numpy(), [[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])

    def test_fully_pinned_volume_constraint_is_skipped(self):
        builder = softtet.ModelBuilder()
        builder.add_particles(softtet.TETRAHEDRON_VERTICES, mass=[0.0] * 4)
        builder.add_volume_constraint(0, 1, 2, 3, rest_volume=1.0)
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model, volume_compliance=0.0)
        state_0, _ = step_n(solver, model.state(), model.state(), 5)

        q = state_0.particle_q.numpy()
        self.assertTrue(np.all(np.isfinite(q)))
        np.testing.assert_array_equal(q, np.array(softtet.TETRAHEDRON_VERTICES, dtype=np.float32))

    def test_collapsed_volume_constraint_is_skipped(self):
        builder = softtet.ModelBuilder(gravity=0.0)
        builder.add_particles([(1.0, 2.0, 3.0)] * 4)
        builder.add_volume_constraint(0, 1, 2, 3, rest_volume=1.0)
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model, volume_compliance=0.0)
        state_0, _ = step_n(solver, model.state(), model.state(), 3)

        q = state_0.particle_q.numpy()
        self.assertTrue(np.all(np.isfinite(q)))
        np.testing.assert_array_equal(q, [[1.0, 2.0, 3.0]] * 4)

    def test_volume_error_stays_bounded(self):
        builder = softtet.ModelBuilder()
        builder.add_tetrahedron()
        model = builder.finalize(device="cpu")
        rest = float(model.tet_rest_volume.numpy()[0])

        solver = SolverXPBD(
            model,
            iterations=10,
            distance_compliance=1e-4,
            volume_compliance=1e-3,
            ground=GroundPlane(-3.5),
        )
        state_0, state_1 = model.state(), model.state()
        for _ in range(900):
            solver.step(state_0, state_1, DT)
            state_0, state_1 = state_1, state_0

            q = state_0.particle_q.numpy().astype(np.float64)
            self.assertTrue(np.all(np.isfinite(q)))
            volume = np.dot(q[1] - q[0], np.cross(q[2] - q[0], q[3] - q[0])) / 6.0
            self.assertLess(abs(volume - rest), 0.5 * rest)

    def test_gravity_prediction(self):
        builder = softtet.ModelBuilder()
        builder.add_particle((0.0, 0.0, 0.0), vel=(1.0, 0.0, 0.0))
        model = builder.finalize(device="cpu")

        solver = SolverXPBD(model)
        state_0, state_1 = model.state(), model.state()
        solver.step(state_0, state_1, 0.5)

        np.testing.assert_allclose(state_1.particle_qd.numpy(), [[1.0, -0.5, 0.0]], atol=1e-6)
        np.testing.assert_allclose(state_1.particle_q.numpy(), [[0.5, -0.25, 0.0]], atol=1e-6)
        np.testing.assert_allclose(state_1.particle_q_prev.numpy(), [[0.0, 0.0, 0.0]])

    def test_invalid_time_step(self):
        builder = softtet.ModelBuilder()
        builder.add_tetrahedron()
        model = builder.finalize(device="cpu")
        solver = SolverXPBD(model)

        for dt in (0.0, -DT, math.nan, math.inf):
            with self.assertRaises(ValueError):
                solver.step(model.state(), model.state(), dt)

    def test_tiny_time_step_stays_finite(self):
        model = edge_model((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), 1.0)
        solver = SolverXPBD(model, distance_compliance=0.0, volume_compliance=0.0)
        state_0, state_1 = model.state(), model.state()

        # dt * dt underflows in single precision
        solver.step(state_0, state_1, 1.0e-30)

        q = state_1.particle_q.numpy()
        self.assertTrue(np.all(np.isfinite(q)))
        self.assertTrue(np.all(np.isfinite(state_1.particle_qd.numpy())))
        np.testing.assert_allclose(q, [[0.5, 0.0, 0.0], [1.5, 0.0, 0.0]], atol=1e-6)

        # compliant constraints saturate instead of overflowing
        solver = SolverXPBD(model, distance_compliance=0.03)
        solver.step(model.state(), state_1, 1.0e-30)
        self.assertTrue(np.all(np.isfinite(state_1.particle_q.numpy())))

        with self.assertRaises(ValueError):
            solver.step(model.state(), state_1, 1.0e-40)

    def test_invalid_parameters(self):
        model = softtet.ModelBuilder().finalize(device="cpu")
        with self.assertRaises(ValueError):
            SolverXPBD(model, iterations=0)
        with self.assertRaises(ValueError):
            SolverXPBD(model, distance_compliance=-1.0)
        with self.assertRaises(ValueError):
            SolverXPBD(model, volume_compliance=math.nan)


if __name__ == "__main__":
    unittest.main(verbosity=2)
