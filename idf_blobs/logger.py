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
Progress and change logging for collector runs.

Keeps the console output of a run readable: every step is printed with a
short prefix as it happens, and every file the collector produced or patched
is remembered so a summary can be printed once all chips are done.
"""

from typing import List

import click


class CollectLogger:
    """
    Simple logging functionality for collector operations.

    Prints prefixed progress lines immediately and tracks every produced
    artifact and applied patch for the end-of-run summary.
    """

    PREFIX = "[idf-blobs]"

    def __init__(self, verbose: bool = False):
        """
        Initialize the logger with empty change tracking.

        Args:
            verbose: Also print every single copied file and applied patch
        """
        self.verbose = verbose
        self.changes: List[str] = []
        self.warnings: List[str] = []
        self.failures: List[str] = []

    def info(self, message: str) -> None:
        print(f"{self.PREFIX} {message}")

    def log_change(self, message: str) -> None:
        """
        Record a change to the output tree.

        Changes are always kept for the summary but only echoed right away
        in verbose mode, a full run copies several hundred headers.

        Args:
            message: Description of the copied, archived or patched file
        """
        self.changes.append(message)
        if self.verbose:
            print(f"{self.PREFIX}   {message}")

    def warning(self, message: str) -> None:
        self.warnings.append(message)
        click.secho(f"{self.PREFIX} Warning: {message}", fg="yellow", err=True)

    def error(self, message: str, details: str = "") -> None:
        """
        Report a failed external command without stopping the run.

        Args:
            message: One line description, repeated in the summary
            details: Captured standard error of the command
        """
        self.failures.append(message)
        click.secho(f"{self.PREFIX} {message}", fg="red")
        if details.strip():
            click.echo(details.rstrip())

    def print_changes_summary(self) -> None:
        """
        Print a formatted summary of the run.

        Outputs the number of changes and repeats every warning and failure
        raised during the run, so failed builds are not lost in the build
        tool's output.
        """
        print("\n=== idf-blobs summary ===")
        print(f"  {len(self.changes)} files copied, archived or patched")
        for warning in self.warnings:
            print(f"  Warning: {warning}")
        for failure in self.failures:
            print(f"  Failed: {failure}")
        print("=" * 25)
