# Copyright 2014-present PlatformIO <contact@platformio.org>
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
ESP-IDF blob collector

Builds a minimal helper project for every chip, then copies the resulting
static libraries, the vendor blobs and a patched set of headers out of the
ESP-IDF installation so they can be linked without the IDF build system.
"""

import os
import re
import sys
from pathlib import Path

import click
import semantic_version

from idf_blobs import chips as chip_table
from idf_blobs import fsutil, manifest
from idf_blobs.config import IDF_PATH_ENV, CollectorConfig
from idf_blobs.errors import BuildError
from idf_blobs.logger import CollectLogger
from idf_blobs.toolchain import IdfToolchain

EXIT_IDF_NOT_ACTIVATED = 254
EXIT_NOT_PROJECT_ROOT = 255


def check_preconditions(config):
    """
    Abort the process unless ESP-IDF is activated and we run in the project root.

    Nothing is written before both checks pass.
    """
    if not config.idf_path:
        sys.stderr.write(f"Error: No activated ESP-IDF installation ({IDF_PATH_ENV} is not set)\n")
        sys.exit(EXIT_IDF_NOT_ACTIVATED)

    if not os.path.isfile(config.marker_file):
        sys.stderr.write("Error: Execute in the root of the project\n")
        sys.exit(EXIT_NOT_PROJECT_ROOT)


def normalize_idf_version(reported):
    """Turn 'ESP-IDF v5.3.1-dirty' into '5.3.1', '0.0.0' if nothing looks like a version"""
    m = re.search(r"(\d+(?:\.\d+){0,2}\S*)", reported or "")
    if not m:
        return "0.0.0"
    try:
        coerced = semantic_version.Version.coerce(m.group(1), partial=True)
        return f"{coerced.major or 0}.{coerced.minor or 0}.{coerced.patch or 0}"
    except (ValueError, TypeError):
        m = re.match(r"(\d+)\.(\d+)\.(\d+)", m.group(1))
        return ".".join(m.groups()) if m else "0.0.0"


class Collector:
    """
    Drives the complete collection: every chip, then the shared headers,
    then the version record.
    """

    def __init__(self, config, toolchain=None, logger=None):
        self.config = config
        self.toolchain = toolchain
        self.logger = logger or CollectLogger()

    def _values(self, chip=""):
        return manifest.template_values(
            idf=self.config.idf_path,
            chip=chip,
            build=self.config.helper_build_dir,
            libs=self.config.libs_dir(chip) if chip else "",
            include=self.config.include_dir(chip or None),
        )

    def run(self, chips=None):
        check_preconditions(self.config)
        if self.toolchain is None:
            self.toolchain = IdfToolchain(self.config.idf_path)

        chips = list(chips) if chips else self.config.chips
        for chip in chips:
            self.process(chip)

        self.collect_common_headers()
        version = self.record_version()
        self.logger.print_changes_summary()
        return version

    def process(self, chip):
        self.logger.info(f"Processing {chip}")
        self.clean()
        self.configure(chip)
        self.build(chip)
        self.collect_static_libraries(chip)
        self.collect_chip_headers(chip)
        self.patch_chip_headers(chip)

    def clean(self):
        self.logger.info("Clean")
        helper = Path(self.config.helper_project_dir)
        fsutil.remove_dir_all(self.config.helper_build_dir)
        for name in ("sdkconfig", "sdkconfig.defaults", "sdkconfig.old"):
            fsutil.remove_file(str(helper / name))

    def configure(self, chip):
        fsutil.copy_file(
            str(Path(self.config.patch_dir(chip)) / "sdkconfig.defaults"),
            str(Path(self.config.helper_project_dir) / "sdkconfig.defaults"),
        )

    def build(self, chip):
        self.logger.info("Build")
        result = self.toolchain.build(self.config.helper_project_dir, chip)
        if result["returncode"] != 0:
            cmd = [self.toolchain.idf_py, f"-DIDF_TARGET={chip}", "build"]
            self._report_failure(f"Failed to run build for {chip}", cmd, result)

    def _report_failure(self, message, cmd, result):
        if self.config.abort_on_build_failure:
            raise BuildError(cmd, result["returncode"], result.get("err", ""))
        self.logger.error(f"{message} (exit code {result['returncode']})", result.get("err", ""))

    def collect_static_libraries(self, chip):
        self.logger.info("Copy static libraries")
        values = self._values(chip)
        fsutil.recreate_dir(values["libs"])

        for src, dst in manifest.static_libraries(chip, values):
            fsutil.copy_file(src, dst)
            self.logger.log_change(f"{chip}: {Path(dst).name}")

        if not self.config.archive_objects:
            return

        for obj, library in manifest.archives(chip, values):
            result = self.toolchain.archive(chip, library, obj)
            if result["returncode"] != 0:
                cmd = [self.toolchain.archiver(chip), "rcs", library, obj]
                self._report_failure(f"Failed to create {Path(library).name}", cmd, result)
            else:
                self.logger.log_change(f"{chip}: {Path(library).name} (archived)")

    def collect_chip_headers(self, chip):
        self.logger.info("Copy chip specific headers")
        values = self._values(chip)
        fsutil.recreate_dir(values["include"])
        self._copy_headers(manifest.chip_headers(chip, values), chip)

    def patch_chip_headers(self, chip):
        self._apply_patches(manifest.chip_patches(chip, self._values(chip)), chip)

    def collect_common_headers(self):
        self.logger.info("Copy common headers")
        values = self._values()
        fsutil.mk_dir(values["include"])
        self._copy_headers(manifest.common_headers(values), "common")
        self._apply_patches(manifest.common_patches(values), "common")

    def _copy_headers(self, entries, label):
        for src, dst, kind in entries:
            if kind == manifest.DIRECTORY:
                for name in fsutil.copy_files(src, dst):
                    self.logger.log_change(f"{label}: {name}")
            else:
                fsutil.copy_file(src, dst)
                self.logger.log_change(f"{label}: {Path(dst).name}")

    def _apply_patches(self, patches, label):
        for path, search, replace in patches:
            if fsutil.replace_in_file(path, search, replace):
                self.logger.log_change(f"{label}: patched {Path(path).name}")

    def record_version(self):
        result = self.toolchain.version()
        if result["returncode"] != 0:
            raise BuildError([self.toolchain.idf_py, "--version"], result["returncode"], result.get("err", ""))

        reported = result.get("out", "")
        with open(self.config.marker_file, "w", encoding="utf8", newline="") as fp:
            fp.write(reported)
        self.logger.info(f"Recorded ESP-IDF {normalize_idf_version(reported)}")
        return reported


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("chips", nargs=-1)
@click.option(
    "-d", "--project-dir", default=".", show_default=True,
    type=click.Path(file_okay=False),
    help="Project root holding the 'version' marker file.",
)
@click.option(
    "-c", "--config", "config_file", default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration file (default: idf_blobs.yml in the project root).",
)
@click.option(
    "--abort-on-build-failure/--keep-going", default=None,
    help="Stop when idf.py or the archiver fails instead of continuing.",
)
@click.option("--no-archive", is_flag=True, help="Skip extracting object files into libraries.")
@click.option("--list-chips", is_flag=True, help="List the built-in chips and exit.")
@click.option("-v", "--verbose", is_flag=True, help="Print every copied and patched file.")
def cli(chips, project_dir, config_file, abort_on_build_failure, no_archive, list_chips, verbose):
    """Collect ESP-IDF libraries and headers for CHIPS (default: all built-in chips)."""
    if list_chips:
        for chip in chip_table.DEFAULT_CHIPS:
            click.echo(chip)
        return

    config = CollectorConfig.load(
        project_dir,
        config_file,
        overrides={
            "abort_on_build_failure": abort_on_build_failure,
            "archive_objects": False if no_archive else None,
        },
    )
    logger = CollectLogger(verbose=verbose)

    for chip in chips:
        if not manifest.known_chip(chip):
            logger.warning(f"{chip} is not a built-in chip, the run will stop at its Bluetooth libraries")

    Collector(config, logger=logger).run(chips)


def main():
    cli(prog_name="idf-blobs")


if __name__ == "__main__":
    main()
