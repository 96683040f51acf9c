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

import numpy as np

from ..sim.model import Model
from ..sim.state import State

logger = logging.getLogger(__name__)


class ViewerNull:
    """
    A viewer that renders nothing.

    Used for headless runs and tests. It counts frames so that the example
    runner knows when to stop, and reports particle positions to the debug log.

    Args:
        num_frames: Number of frames to run before :meth:`is_running` returns False.
    """

    def __init__(self, num_frames: int = 1000):
        self.num_frames = int(num_frames)
        self.frame_count = 0
        self.time = 0.0

    def set_model(self, model: Model) -> None:
        logger.debug(
            "Viewing model with %d particles and %d render triangles", model.particle_count, model.tri_count
        )

    def begin_frame(self, time: float) -> None:
        self.time = time

    def log_state(self, state: State) -> None:
        if state.particle_count and logger.isEnabledFor(logging.DEBUG):
            q = state.particle_q.numpy()
            logger.debug("t=%.4f positions=%s", self.time, np.array2string(q, precision=4))

    def end_frame(self) -> None:
        self.frame_count += 1

    def is_running(self) -> bool:
        return self.frame_count < self.num_frames

    def close(self) -> None:
        pass
