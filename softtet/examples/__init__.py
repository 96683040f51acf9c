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

import argparse
import importlib
import logging
from typing import Any, Callable

import numpy as np
import warp as wp

from .._src.utils.logger import setup_logging
from .._src.viewer.viewer_null import ViewerNull

EXAMPLES = {
    "tetra_drop": "softtet.examples.basic.example_tetra_drop",
}
"""Map of example names to the modules that define them."""


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser shared by all examples.

    Examples add their own options to the returned parser before passing it
    to :func:`init`.
    """
    parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument("--device", type=str, default=None, help="Override the default Warp device.")
    parser.add_argument(
        "--viewer",
        type=str,
        default="null",
        choices=["null"],
        help="Viewer to use. 'null' runs headless.",
    )
    parser.add_argument("--num-frames", type=int, default=300, help="Number of frames to simulate.")
    parser.add_argument(
        "--test",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Run test_final() on the example after the last frame.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging level of the softtet logger.",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write the log to this file.")
    return parser


def init(parser: argparse.ArgumentParser | None = None, argv: list[str] | None = None):
    """
    Parse arguments, configure logging and the device, and create the viewer.

    Returns:
        A tuple ``(viewer, args)``.
    """
    if parser is None:
        parser = create_parser()

    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    if args.device:
        wp.set_device(args.device)

    if args.viewer == "null":
        viewer = ViewerNull(num_frames=args.num_frames)
    else:
        raise ValueError(f"Invalid viewer: {args.viewer}")

    return viewer, args


def run(example, args) -> None:
    """Drive ``example`` until the viewer stops, then optionally run its final test."""
    viewer = example.viewer
    while viewer.is_running():
        example.step()
        example.render()

    if getattr(args, "test", False):
        if not hasattr(example, "test_final"):
            raise NotImplementedError("Example does not have a test_final method")
        example.test_final()

    viewer.close()


def test_particle_state(
    sim,
    test_name: str,
    test_fn: Callable[[np.ndarray, np.ndarray], bool],
    indices: list[int] | None = None,
) -> None:
    """
    Evaluate ``test_fn(q, qd)`` on the position and velocity of every selected particle.

    Raises:
        ValueError: If the predicate fails for any particle.
    """
    q = sim.positions()
    qd = sim.velocities()
    if indices is None:
        indices = range(len(q))

    failures = [i for i in indices if not test_fn(q[i], qd[i])]
    if failures:
        details = ", ".join(f"{i}: q={q[i]}, qd={qd[i]}" for i in failures)
        raise ValueError(f'Test "{test_name}" failed for particles {details}')
    logging.getLogger(__name__).info('Test "%s" passed for %d particles', test_name, len(q))


def load_example(name: str) -> Any:
    """Import the module of the example called ``name``."""
    if name not in EXAMPLES:
        raise ValueError(f"Unknown example '{name}', expected one of {sorted(EXAMPLES)}")
    return importlib.import_module(EXAMPLES[name])


__all__ = [
    "EXAMPLES",
    "create_parser",
    "init",
    "load_example",
    "run",
    "test_particle_state",
]
