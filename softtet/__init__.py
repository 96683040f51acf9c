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

# ==================================================================================
# core
# ==================================================================================
from ._src.core.types import Axis

__all__ = ["Axis"]

# ==================================================================================
# sim
# ==================================================================================
from ._src.sim.builder import TETRAHEDRON_EDGES, TETRAHEDRON_FACES, TETRAHEDRON_VERTICES, ModelBuilder
from ._src.sim.model import Model
from ._src.sim.simulation import Simulation, SimulationConfig
from ._src.sim.state import State

__all__ += [
    "TETRAHEDRON_EDGES",
    "TETRAHEDRON_FACES",
    "TETRAHEDRON_VERTICES",
    "Model",
    "ModelBuilder",
    "Simulation",
    "SimulationConfig",
    "State",
]

# ==================================================================================
# submodule APIs
# ==================================================================================
from . import geometry, solvers, utils, viewer  # noqa: E402

__all__ += [
    "geometry",
    "solvers",
    "utils",
    "viewer",
]

__version__ = "0.1.0"
