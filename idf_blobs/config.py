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
Configuration handling for the collector.

Settings come from three places, later ones winning: built-in defaults,
an optional ``idf_blobs.yml`` file in the project root, and command line
options. The ESP-IDF location is always taken from ``IDF_PATH``.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from yaml import SafeLoader

from idf_blobs.chips import DEFAULT_CHIPS
from idf_blobs.errors import ConfigError

IDF_PATH_ENV = "IDF_PATH"
MARKER_FILE = "version"
CONFIG_FILE = "idf_blobs.yml"

DEFAULTS: Dict[str, Any] = {
    "chips": list(DEFAULT_CHIPS),
    "helper_project": "helper_project",
    "abort_on_build_failure": False,
    "archive_objects": True,
}

_TYPES = {
    "chips": list,
    "helper_project": str,
    "abort_on_build_failure": bool,
    "archive_objects": bool,
}


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load and validate a collector YAML file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Mapping of the options found in the file

    Raises:
        ConfigError: file is unreadable, not a mapping, or contains
            unknown keys or values of the wrong type
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.load(f, Loader=SafeLoader) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to read configuration '{file_path}': {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration '{file_path}' must be a mapping")

    for key, value in data.items():
        if key not in _TYPES:
            raise ConfigError(f"Unknown option '{key}' in '{file_path}'")
        if not isinstance(value, _TYPES[key]):
            raise ConfigError(
                f"Option '{key}' in '{file_path}' must be of type {_TYPES[key].__name__}"
            )

    if "chips" in data and not all(isinstance(chip, str) for chip in data["chips"]):
        raise ConfigError(f"Option 'chips' in '{file_path}' must be a list of chip names")

    return data


class CollectorConfig:
    """
    Resolved settings for one collector run.

    Paths are derived lazily from the project root so that creating a
    config object never touches the filesystem.
    """

    def __init__(self, project_dir: str = ".", options: Optional[Dict[str, Any]] = None,
                 environ: Optional[Dict[str, str]] = None):
        self.project_dir = str(Path(project_dir).resolve())
        self.environ = os.environ if environ is None else environ
        self.options: Dict[str, Any] = dict(DEFAULTS)
        self.options.update(options or {})

    @classmethod
    def load(cls, project_dir: str = ".", config_file: Optional[str] = None,
             overrides: Optional[Dict[str, Any]] = None,
             environ: Optional[Dict[str, str]] = None) -> "CollectorConfig":
        """
        Build a configuration from the optional YAML file plus overrides.

        Args:
            project_dir: Project root, the directory holding the marker file
            config_file: Explicit YAML file; defaults to idf_blobs.yml in the
                project root when that file exists
            overrides: Options from the command line, None values are ignored
            environ: Environment mapping, defaults to os.environ
        """
        options: Dict[str, Any] = {}
        if config_file is None:
            candidate = Path(project_dir) / CONFIG_FILE
            if candidate.is_file():
                config_file = str(candidate)
        if config_file is not None:
            options.update(load_config_file(config_file))

        for key, value in (overrides or {}).items():
            if value is not None:
                options[key] = value

        return cls(project_dir, options, environ)

    @property
    def idf_path(self) -> Optional[str]:
        return self.environ.get(IDF_PATH_ENV) or None

    @property
    def marker_file(self) -> str:
        return str(Path(self.project_dir) / MARKER_FILE)

    @property
    def helper_project_dir(self) -> str:
        return str(Path(self.project_dir) / self.options["helper_project"])

    @property
    def helper_build_dir(self) -> str:
        return str(Path(self.helper_project_dir) / "build")

    @property
    def chips(self) -> List[str]:
        return list(self.options["chips"])

    @property
    def abort_on_build_failure(self) -> bool:
        return bool(self.options["abort_on_build_failure"])

    @property
    def archive_objects(self) -> bool:
        return bool(self.options["archive_objects"])

    def patch_dir(self, chip: str) -> str:
        return str(Path(self.project_dir) / "patch" / chip)

    def libs_dir(self, chip: str) -> str:
        return str(Path(self.project_dir) / "libs" / chip)

    def include_dir(self, chip: Optional[str] = None) -> str:
        include = Path(self.project_dir) / "include"
        return str(include / chip if chip else include)
