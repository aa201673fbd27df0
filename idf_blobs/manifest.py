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
Artifact and header patch tables.

The collector never decides on its own what to copy: every library, header
and patch it touches is listed here together with the chips it applies to.
Path templates are expanded with ``str.format`` using the keys

    idf         root of the ESP-IDF installation (IDF_PATH)
    chip        IDF target name
    build       build directory of the helper project
    libs        per-chip library output directory
    include     include output directory (per-chip or shared)
    bt_headers  Bluetooth header directory of the chip
"""

from typing import Callable, Dict, List, Optional, Tuple

from idf_blobs import chips
from idf_blobs.errors import UnknownChipError

FILE = "file"
DIRECTORY = "directory"


def _always(chip: str) -> bool:
    return True


def only(*names: str) -> Callable[[str], bool]:
    def _predicate(chip: str) -> bool:
        return chip in names
    return _predicate


class Artifact:
    """
    A single (source, destination, applicability) entry.

    Directory artifacts copy every regular file found directly inside the
    source directory into the destination directory; subdirectories are
    not descended into.
    """

    def __init__(self, source: str, destination: str,
                 applies: Optional[Callable[[str], bool]] = None, kind: str = FILE):
        self.source = source
        self.destination = destination
        self.applies = applies or _always
        self.kind = kind

    def applies_to(self, chip: str) -> bool:
        return bool(self.applies(chip))

    def resolve(self, values: Dict[str, str]) -> Tuple[str, str]:
        return self.source.format(**values), self.destination.format(**values)

    def __repr__(self):
        return f"Artifact({self.source!r} -> {self.destination!r}, {self.kind})"


class HeaderPatch:
    """Literal search and replace applied to one copied header."""

    def __init__(self, path: str, search: str, replace: str = "",
                 applies: Optional[Callable[[str], bool]] = None):
        self.path = path
        self.search = search
        self.replace = replace
        self.applies = applies or _always

    def applies_to(self, chip: str) -> bool:
        return bool(self.applies(chip))

    def resolve(self, values: Dict[str, str]) -> Tuple[str, str, str]:
        return (
            self.path.format(**values),
            self.search.format(**values),
            self.replace.format(**values),
        )

    def __repr__(self):
        return f"HeaderPatch({self.path!r}: {self.search!r} -> {self.replace!r})"


class ArchiveRule:
    """Wrap a single object file of the helper build into a static library."""

    def __init__(self, obj: str, library: str,
                 applies: Optional[Callable[[str], bool]] = None):
        self.obj = obj
        self.library = library
        self.applies = applies or _always

    def applies_to(self, chip: str) -> bool:
        return bool(self.applies(chip))

    def resolve(self, values: Dict[str, str]) -> Tuple[str, str]:
        return self.obj.format(**values), "{libs}/{library}".format(library=self.library, **values)

    def __repr__(self):
        return f"ArchiveRule({self.obj!r} -> {self.library!r})"


def _wifi_blob(name: str, applies: Callable[[str], bool] = chips.has_wifi) -> Artifact:
    return Artifact(
        "{idf}/components/esp_wifi/lib/{chip}/%s" % name,
        "{libs}/%s" % name,
        applies,
    )


STATIC_LIBRARIES: List[Artifact] = [
    # built by the helper project
    Artifact("{build}/esp-idf/log/liblog.a", "{libs}/liblog.a"),
    Artifact(
        "{build}/esp-idf/wpa_supplicant/libwpa_supplicant.a",
        "{libs}/libwpa_supplicant.a",
        chips.has_wifi,
    ),
    # phy
    Artifact("{idf}/components/esp_phy/lib/{chip}/libphy.a", "{libs}/libphy.a"),
    Artifact("{idf}/components/esp_phy/lib/{chip}/librtc.a", "{libs}/librtc.a", only("esp32")),
    Artifact("{idf}/components/esp_phy/lib/{chip}/libbtbb.a", "{libs}/libbtbb.a", chips.has_btbb),
    # wifi
    _wifi_blob("libcore.a"),
    _wifi_blob("libpp.a"),
    _wifi_blob("libespnow.a"),
    _wifi_blob("libmesh.a", chips.has_mesh_and_wapi),
    _wifi_blob("libnet80211.a"),
    _wifi_blob("libsmartconfig.a"),
    _wifi_blob("libwapi.a", chips.has_mesh_and_wapi),
    # coex
    Artifact("{idf}/components/esp_coex/lib/{chip}/libcoexist.a", "{libs}/libcoexist.a"),
]

ARCHIVES: List[ArchiveRule] = [
    ArchiveRule(
        "{build}/esp-idf/esp_hw_support/CMakeFiles/__idf_esp_hw_support.dir/regi2c_ctrl.c.obj",
        "libregi2c_ctrl.a",
    ),
]


def _soc_header(name: str, applies: Optional[Callable[[str], bool]] = None) -> Artifact:
    return Artifact(
        "{idf}/components/soc/{chip}/include/soc/%s" % name,
        "{include}/soc/%s" % name,
        applies,
    )


def _hal_header(name: str, applies: Optional[Callable[[str], bool]] = None) -> Artifact:
    return Artifact(
        "{idf}/components/hal/{chip}/include/hal/%s" % name,
        "{include}/hal/%s" % name,
        applies,
    )


CHIP_HEADERS: List[Artifact] = [
    Artifact("{idf}/components/esp_phy/{chip}/include", "{include}", kind=DIRECTORY),
    Artifact(
        "{idf}/components/bt/include/{bt_headers}/include",
        "{include}",
        lambda chip: chips.bt_header_dir(chip) is not None,
        kind=DIRECTORY,
    ),
    Artifact("{build}/config/sdkconfig.h", "{include}/sdkconfig.h"),
    _soc_header("soc_caps.h"),
    _soc_header("soc.h"),
    _soc_header("reg_base.h"),
    # power management unit
    _soc_header("pmu_reg.h", chips.has_pmu),
    _soc_header("pmu_struct.h", chips.has_pmu),
    _hal_header("pmu_ll.h", chips.has_pmu),
    # modem clock
    _soc_header("modem_syscon_struct.h", chips.has_independent_modem_clock),
    _soc_header("modem_lpcon_struct.h", chips.has_independent_modem_clock),
    _hal_header("modem_syscon_ll.h", chips.has_independent_modem_clock),
    _hal_header("modem_lpcon_ll.h", chips.has_independent_modem_clock),
]

CHIP_PATCHES: List[HeaderPatch] = [
    HeaderPatch(
        "{include}/esp_bt.h",
        '#include "esp_task.h"',
        applies=lambda chip: chips.bt_header_dir(chip) is not None,
    ),
    HeaderPatch(
        "{include}/esp_bt.h",
        '#include "../../../../controller/{bt_headers}/esp_bt_cfg.h"',
        applies=lambda chip: chips.bt_header_dir(chip) is not None,
    ),
]


def _component_dir(path: str, destination: str = "{include}") -> Artifact:
    return Artifact("{idf}/components/%s" % path, destination, kind=DIRECTORY)


COMMON_HEADERS: List[Artifact] = [
    _component_dir("wpa_supplicant/esp_supplicant/include"),
    _component_dir("esp_phy/include"),
    _component_dir("esp_phy/include/esp_private"),
    _component_dir("esp_coex/include"),
    _component_dir("esp_wifi/include"),
    _component_dir("esp_wifi/include/esp_private", "{include}/esp_private"),
    _component_dir("esp_coex/include/private"),
    _component_dir("esp_timer/include"),
    _component_dir("esp_system/include"),
    _component_dir("esp_event/include"),
    _component_dir("nvs_flash/include"),
    Artifact("{idf}/components/esp_common/include/esp_err.h", "{include}/esp_err.h"),
    Artifact("{idf}/components/esp_common/include/esp_compiler.h", "{include}/esp_compiler.h"),
    Artifact("{idf}/components/esp_hw_support/include/esp_interface.h", "{include}/esp_interface.h"),
    # power management and modem clock
    Artifact(
        "{idf}/components/esp_hw_support/include/esp_private/esp_pmu.h",
        "{include}/esp_private/esp_pmu.h",
    ),
    Artifact(
        "{idf}/components/esp_hw_support/include/esp_private/esp_modem_clock.h",
        "{include}/esp_private/esp_modem_clock.h",
    ),
    Artifact("{idf}/components/hal/include/hal/pmu_types.h", "{include}/hal/pmu_types.h"),
    Artifact(
        "{idf}/components/hal/include/hal/modem_clock_types.h",
        "{include}/hal/modem_clock_types.h",
    ),
]

_FREERTOS_INCLUDES = (
    '#include "freertos/FreeRTOS.h"',
    '#include "freertos/task.h"',
    '#include "freertos/queue.h"',
    '#include "freertos/semphr.h"',
)

COMMON_PATCHES: List[HeaderPatch] = [
    HeaderPatch("{include}/esp_coexist_internal.h", "private/"),
    *[HeaderPatch("{include}/esp_event.h", include) for include in _FREERTOS_INCLUDES],
    HeaderPatch("{include}/esp_system.h", '#include "esp_attr.h"'),
    HeaderPatch("{include}/esp_system.h", '#include "esp_bit_defs.h"'),
    HeaderPatch("{include}/esp_system.h", '#include "esp_idf_version.h"'),
    HeaderPatch("{include}/nvs.h", '#include "esp_attr.h"'),
    HeaderPatch("{include}/esp_private/esp_wifi_private.h", '#include "freertos/FreeRTOS.h"'),
    HeaderPatch("{include}/esp_private/esp_wifi_private.h", '#include "freertos/queue.h"'),
    HeaderPatch("{include}/esp_private/wifi.h", '#include "freertos/FreeRTOS.h"'),
    HeaderPatch("{include}/esp_private/wifi.h", '#include "freertos/queue.h"'),
    HeaderPatch("{include}/esp_private/esp_modem_clock.h", '#include "freertos/FreeRTOS.h"'),
]


def template_values(idf: str, chip: str = "", build: str = "", libs: str = "", include: str = "") -> Dict[str, str]:
    return {
        "idf": idf,
        "chip": chip,
        "build": build,
        "libs": libs,
        "include": include,
        "bt_headers": (chips.bt_header_dir(chip) or "") if chip else "",
    }


def _applicable(entries, chip):
    return [entry for entry in entries if entry.applies_to(chip)]


def static_libraries(chip: str, values: Dict[str, str]) -> List[Tuple[str, str]]:
    """
    Resolve every static library requested for a chip.

    The Bluetooth controller blob comes last and is taken from the per-chip
    lookup table, so an unknown chip fails here.

    Raises:
        UnknownChipError: chip has no entry in the Bluetooth lookup table
    """
    resolved = [artifact.resolve(values) for artifact in _applicable(STATIC_LIBRARIES, chip)]

    bt_lib = chips.bt_controller_lib(chip)
    if bt_lib is not None:
        source, name = bt_lib
        resolved.append((source.format(**values), "{libs}/{name}".format(name=name, **values)))
    return resolved


def archives(chip: str, values: Dict[str, str]) -> List[Tuple[str, str]]:
    return [rule.resolve(values) for rule in _applicable(ARCHIVES, chip)]


def chip_headers(chip: str, values: Dict[str, str]) -> List[Tuple[str, str, str]]:
    return [artifact.resolve(values) + (artifact.kind,) for artifact in _applicable(CHIP_HEADERS, chip)]


def chip_patches(chip: str, values: Dict[str, str]) -> List[Tuple[str, str, str]]:
    return [patch.resolve(values) for patch in _applicable(CHIP_PATCHES, chip)]


def common_headers(values: Dict[str, str]) -> List[Tuple[str, str, str]]:
    return [artifact.resolve(values) + (artifact.kind,) for artifact in COMMON_HEADERS]


def common_patches(values: Dict[str, str]) -> List[Tuple[str, str, str]]:
    return [patch.resolve(values) for patch in COMMON_PATCHES]


def known_chip(chip: str) -> bool:
    try:
        chips.bt_controller_lib(chip)
    except UnknownChipError:
        return False
    return True
