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

import os
import shutil
from pathlib import Path
from typing import List

from platformio import fs

from idf_blobs.errors import CopyError, PatchError


def remove_dir_all(path) -> None:
    # platformio's rmtree clears read-only bits before retrying on Windows
    if os.path.isdir(path):
        fs.rmtree(str(path))


def remove_file(path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def mk_dir(path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def recreate_dir(path) -> None:
    remove_dir_all(path)
    mk_dir(path)


def copy_file(src, dst) -> None:
    if not os.path.isfile(src):
        raise CopyError(src, dst, "source file does not exist")
    try:
        mk_dir(Path(dst).parent)
        shutil.copyfile(src, dst)
    except OSError as e:
        raise CopyError(src, dst, e.strerror or str(e))


def copy_files(src_dir, dst_dir) -> List[str]:
    """
    Copy the regular files found directly in src_dir into dst_dir.

    Returns:
        Names of the copied files, sorted
    """
    if not os.path.isdir(src_dir):
        raise CopyError(src_dir, dst_dir, "source directory does not exist")

    names = sorted(
        entry.name for entry in os.scandir(src_dir) if entry.is_file()
    )
    for name in names:
        copy_file(str(Path(src_dir) / name), str(Path(dst_dir) / name))
    return names


def replace_in_file(path, search: str, replace: str) -> bool:
    """
    Literal search and replace in a text file.

    The file is only rewritten when its content changes, so applying a
    patch twice is a no-op.

    Returns:
        True if the file was modified
    """
    try:
        with open(path, "r", encoding="utf8", newline="") as fp:
            original = fp.read()
    except OSError as e:
        raise PatchError(path, e.strerror or str(e))

    patched = original.replace(search, replace)
    if patched == original:
        return False

    with open(path, "w", encoding="utf8", newline="") as fp:
        fp.write(patched)
    return True
