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
Supported ESP chips and the per-chip facts the collector needs.

Everything here is a fixed table keyed by the IDF target name
(the value passed to ``idf.py -DIDF_TARGET=...``).
"""

from typing import Dict, Optional, Tuple

from idf_blobs.errors import UnknownChipError

DEFAULT_CHIPS = (
    "esp32",
    "esp32s2",
    "esp32s3",
    "esp32c2",
    "esp32c3",
    "esp32c5",
    "esp32c6",
    "esp32c61",
    "esp32h2",
)

XTENSA_CHIPS = ("esp32", "esp32s2", "esp32s3")

# Low power 802.15.4/BLE chip, no WiFi radio
NO_WIFI_CHIPS = ("esp32h2",)

# Chips whose phy library has no Bluetooth baseband part
NO_BTBB_CHIPS = ("esp32", "esp32s2")

# No mesh and WAPI support in the WiFi libraries
NO_MESH_WAPI_CHIPS = ("esp32c2",)

# SOC_PMU_SUPPORTED
PMU_CHIPS = ("esp32c5", "esp32c6", "esp32c61", "esp32h2")

# SOC_MODEM_CLOCK_IS_INDEPENDENT
MODEM_CLOCK_CHIPS = ("esp32c5", "esp32c6", "esp32c61", "esp32h2")

# Bluetooth controller blob per chip, None for chips without Bluetooth
BT_CONTROLLER_LIBS: Dict[str, Optional[Tuple[str, str]]] = {
    "esp32": (
        "{idf}/components/bt/controller/lib_esp32/esp32/libbtdm_app.a",
        "libbtdm_app.a",
    ),
    "esp32s2": None,
    "esp32s3": (
        "{idf}/components/bt/controller/lib_esp32c3_family/esp32s3/libbtdm_app.a",
        "libbtdm_app.a",
    ),
    "esp32c2": (
        "{idf}/components/bt/controller/lib_esp32c2/esp32c2-bt-lib/libble_app.a",
        "libble_app.a",
    ),
    "esp32c3": (
        "{idf}/components/bt/controller/lib_esp32c3_family/esp32c3/libbtdm_app.a",
        "libbtdm_app.a",
    ),
    "esp32c5": (
        "{idf}/components/bt/controller/lib_esp32c5/esp32c5-bt-lib/libble_app.a",
        "libble_app.a",
    ),
    "esp32c6": (
        "{idf}/components/bt/controller/lib_esp32c6/esp32c6-bt-lib/libble_app.a",
        "libble_app.a",
    ),
    "esp32c61": (
        "{idf}/components/bt/controller/lib_esp32c6/esp32c6-bt-lib/esp32c61/libble_app.a",
        "libble_app.a",
    ),
    "esp32h2": (
        "{idf}/components/bt/controller/lib_esp32h2/esp32h2-bt-lib/libble_app.a",
        "libble_app.a",
    ),
}

# Directory under components/bt/include holding a chip's esp_bt.h.
# Newer variants share the headers of the chip they were derived from.
BT_HEADER_DIRS: Dict[str, Optional[str]] = {
    "esp32": "esp32",
    "esp32s2": None,
    "esp32s3": "esp32c3",
    "esp32c2": "esp32c2",
    "esp32c3": "esp32c3",
    "esp32c5": "esp32c5",
    "esp32c6": "esp32c6",
    "esp32c61": "esp32c6",
    "esp32h2": "esp32h2",
}


def is_xtensa(chip: str) -> bool:
    return chip in XTENSA_CHIPS


def has_wifi(chip: str) -> bool:
    return chip not in NO_WIFI_CHIPS


def has_btbb(chip: str) -> bool:
    return chip not in NO_BTBB_CHIPS


def has_mesh_and_wapi(chip: str) -> bool:
    return has_wifi(chip) and chip not in NO_MESH_WAPI_CHIPS


def has_pmu(chip: str) -> bool:
    return chip in PMU_CHIPS


def has_independent_modem_clock(chip: str) -> bool:
    return chip in MODEM_CLOCK_CHIPS


def bt_controller_lib(chip: str) -> Optional[Tuple[str, str]]:
    """
    Look up the Bluetooth controller blob for a chip.

    Returns:
        (source path template, library file name), or None when the chip
        has no Bluetooth controller

    Raises:
        UnknownChipError: chip is not in the lookup table
    """
    if chip not in BT_CONTROLLER_LIBS:
        raise UnknownChipError(chip)
    return BT_CONTROLLER_LIBS[chip]


def bt_header_dir(chip: str) -> Optional[str]:
    return BT_HEADER_DIRS.get(chip)


def archiver_name(chip: str, windows: bool = False) -> str:
    name = "xtensa-esp-elf-ar" if is_xtensa(chip) else "riscv32-esp-elf-ar"
    return name + (".exe" if windows else "")
