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

"""Run an example by name, e.g. ``python -m softtet.examples tetra_drop --num-frames 300``."""

import runpy
import sys

from . import EXAMPLES


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in EXAMPLES:
        print("Usage: python -m softtet.examples <example> [options]")
        print("Available examples:")
        for name in sorted(EXAMPLES):
            print(f"  {name}")
        sys.exit(1 if len(sys.argv) >= 2 else 0)

    name = sys.argv.pop(1)
    runpy.run_module(EXAMPLES[name], run_name="__main__", alter_sys=True)


if __name__ == "__main__":
    main()
