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

import click


class CollectorError(click.ClickException):
    """Base class for fatal collector failures, rendered by click as 'Error: ...'"""


class ConfigError(CollectorError):
    pass


class CopyError(CollectorError):
    def __init__(self, src, dst, reason=None):
        self.src = str(src)
        self.dst = str(dst)
        message = f"Unable to copy '{self.src}' to '{self.dst}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BuildError(CollectorError):
    def __init__(self, cmd, returncode, stderr=""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr or ""
        message = "Command '%s' failed with exit code %d" % (" ".join(self.cmd), returncode)
        if self.stderr.strip():
            message += "\n" + self.stderr.strip()
        super().__init__(message)


class UnknownChipError(CollectorError):
    def __init__(self, chip):
        self.chip = chip
        super().__init__(f"Unknown chip '{chip}' to copy bt libs")


class PatchError(CopyError):
    def __init__(self, path, reason=None):
        self.src = self.dst = str(path)
        message = f"Unable to patch '{self.src}'"
        if reason:
            message += f": {reason}"
        CollectorError.__init__(self, message)
