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

import warp as wp


@wp.kernel
def integrate_particles(
    x: wp.array(dtype=wp.vec3),
    v: wp.array(dtype=wp.vec3),
    x_prev: wp.array(dtype=wp.vec3),
    inv_mass: wp.array(dtype=float),
    gravity: wp.array(dtype=wp.vec3),
    dt: float,
    x_out: wp.array(dtype=wp.vec3),
    v_out: wp.array(dtype=wp.vec3),
    x_prev_out: wp.array(dtype=wp.vec3),
):
    tid = wp.tid()

    x0 = x[tid]

    # pinned particles are carried over unchanged
    if inv_mass[tid] == 0.0:
        x_out[tid] = x0
        v_out[tid] = v[tid]
        x_prev_out[tid] = x_prev[tid]
        return

    # semi-implicit Euler
    v1 = v[tid] + gravity[0] * dt
    x1 = x0 + v1 * dt

    x_out[tid] = x1
    v_out[tid] = v1
    x_prev_out[tid] = x0


@wp.kernel
def clamp_particles_to_ground(
    x: wp.array(dtype=wp.vec3),
    inv_mass: wp.array(dtype=float),
    up_axis: int,
    height: float,
):
    tid = wp.tid()

    if inv_mass[tid] == 0.0:
        return

    q = x[tid]
    if q[up_axis] < height:
        q[up_axis] = height
        x[tid] = q


@wp.kernel
def solve_distance_constraints(
    x: wp.array(dtype=wp.vec3),
    inv_mass: wp.array(dtype=float),
    spring_indices: wp.array(dtype=int),
    spring_rest_length: wp.array(dtype=float),
    alpha: float,
):
    # launched with dim=1: constraints are relaxed one after the other so each
    # correction is seen by the next constraint (Gauss-Seidel)
    for c in range(spring_rest_length.shape[0]):
        i = spring_indices[c * 2 + 0]
        j = spring_indices[c * 2 + 1]

        delta = x[i] - x[j]
        l = wp.length(delta)
        if l < 1.0e-6:
            continue

        grad = delta / l

        wi = inv_mass[i]
        wj = inv_mass[j]
        w_sum = wi + wj
        if w_sum < 1.0e-6:
            continue

        lam = -(l - spring_rest_length[c]) / (w_sum + alpha)

        if wi > 0.0:
            x[i] = x[i] + grad * (lam * wi)
        if wj > 0.0:
            x[j] = x[j] - grad * (lam * wj)


@wp.func
def tet_volume(p0: wp.vec3, p1: wp.vec3, p2: wp.vec3, p3: wp.vec3):
    return wp.dot(p1 - p0, wp.cross(p2 - p0, p3 - p0)) / 6.0


@wp.kernel
def solve_volume_constraints(
    x: wp.array(dtype=wp.vec3),
    inv_mass: wp.array(dtype=float),
    tet_indices: wp.array2d(dtype=int),
    tet_rest_volume: wp.array(dtype=float),
    alpha: float,
):
    # launched with dim=1, see solve_distance_constraints
    for t in range(tet_rest_volume.shape[0]):
        i = tet_indices[t, 0]
        j = tet_indices[t, 1]
        k = tet_indices[t, 2]
        l = tet_indices[t, 3]

        p0 = x[i]
        p1 = x[j]
        p2 = x[k]
        p3 = x[l]

        grad0 = wp.cross(p2 - p1, p3 - p1)
        grad1 = wp.cross(p3 - p0, p2 - p0)
        grad2 = wp.cross(p0 - p1, p3 - p1)
        grad3 = wp.cross(p1 - p0, p2 - p0)

        w0 = inv_mass[i]
        w1 = inv_mass[j]
        w2 = inv_mass[k]
        w3 = inv_mass[l]

        C = tet_volume(p0, p1, p2, p3) - tet_rest_volume[t]

        w_sum = (
            w0 * wp.dot(grad0, grad0)
            + w1 * wp.dot(grad1, grad1)
            + w2 * wp.dot(grad2, grad2)
            + w3 * wp.dot(grad3, grad3)
        )
        if wp.abs(w_sum) <= 1.0e-6:
            continue

        lam = -6.0 * C / (w_sum + alpha)

        if w0 > 0.0:
            x[i] = p0 + grad0 * (lam * w0)
        if w1 > 0.0:
            x[j] = p1 + grad1 * (lam * w1)
        if w2 > 0.0:
            x[k] = p2 + grad2 * (lam * w2)
        if w3 > 0.0:
            x[l] = p3 + grad3 * (lam * w3)


@wp.kernel
def update_particle_velocities(
    x: wp.array(dtype=wp.vec3),
    x_prev: wp.array(dtype=wp.vec3),
    inv_mass: wp.array(dtype=float),
    dt: float,
    v_out: wp.array(dtype=wp.vec3),
):
    tid = wp.tid()

    if inv_mass[tid] == 0.0:
        return

    v_out[tid] = (x[tid] - x_prev[tid]) / dt


@wp.kernel
def compute_tet_volumes(
    x: wp.array(dtype=wp.vec3),
    tet_indices: wp.array2d(dtype=int),
    volumes: wp.array(dtype=float),
):
    tid = wp.tid()

    volumes[tid] = tet_volume(
        x[tet_indices[tid, 0]],
        x[tet_indices[tid, 1]],
        x[tet_indices[tid, 2]],
        x[tet_indices[tid, 3]],
    )
