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

"""
Solvers advance a :class:`~softtet.State` by a time step.

All solvers derive from :class:`SolverBase` and share its
``step(state_in, state_out, dt)`` interface. :class:`SolverXPBD` relaxes
distance and volume constraints with eXtended Position-Based Dynamics.
"""

from ._src.solvers.solver import SolverBase
from ._src.solvers.xpbd.solver_xpbd import SolverXPBD

__all__ = [
    "SolverBase",
    "SolverXPBD",
]
