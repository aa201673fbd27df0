# Copyright 2020-present PlatformIO <contact@platformio.org>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Thin wrappers around the ESP-IDF command line tools.

Every call returns the same dictionary shape as
``platformio.proc.exec_command``: ``returncode``, ``out`` and ``err``.
"""

import os
import subprocess
from typing import Any, Dict

from platformio.compat import IS_WINDOWS
from platformio.proc import exec_command

from idf_blobs import chips
from idf_blobs.errors import CollectorError


class IdfToolchain:
    def __init__(self, idf_path: str):
        self.idf_path = idf_path

    @property
    def idf_py(self) -> str:
        return "idf.py.exe" if IS_WINDOWS else "idf.py"

    def archiver(self, chip: str) -> str:
        return chips.archiver_name(chip, windows=IS_WINDOWS)

    def _env(self) -> Dict[str, str]:
        idf_env = os.environ.copy()
        idf_env["IDF_PATH"] = self.idf_path
        return idf_env

    def build(self, project_dir: str, chip: str) -> Dict[str, Any]:
        """
        Run ``idf.py -DIDF_TARGET=<chip> build`` in the helper project.

        Standard input and output stay attached to the terminal so the build
        progress is visible; only standard error is captured for reporting.
        """
        cmd = [self.idf_py, f"-DIDF_TARGET={chip}", "build"]
        try:
            result = subprocess.run(
                cmd,
                cwd=project_dir,
                env=self._env(),
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise CollectorError(f"Unable to run command {cmd[0]}: {e}")

        return {
            "returncode": result.returncode,
            "out": "",
            "err": result.stderr.decode("utf8", errors="replace") if result.stderr else "",
        }

    def version(self) -> Dict[str, Any]:
        cmd = [self.idf_py, "--version"]
        try:
            return exec_command(cmd, env=self._env())
        except OSError as e:
            raise CollectorError(f"Unable to run command {cmd[0]}: {e}")

    def archive(self, chip: str, library: str, obj: str) -> Dict[str, Any]:
        cmd = [self.archiver(chip), "rcs", library, obj]
        try:
            return exec_command(cmd, env=self._env())
        except OSError as e:
            raise CollectorError(f"Unable to run command {cmd[0]}: {e}")
