# tests/conftest.py
from pathlib import Path

import pytest

from idf_blobs import chips, manifest
from idf_blobs.config import CollectorConfig
from idf_blobs.logger import CollectLogger

ESP_BT_H = """#pragma once
#include <stdint.h>
#include "esp_err.h"
#include "esp_task.h"
#include "../../../../controller/{bt_headers}/esp_bt_cfg.h"
"""

# Files of the chip independent header directories, keyed by component path
COMMON_FILES = {
    "wpa_supplicant/esp_supplicant/include": {"esp_wpa.h": "#pragma once\n"},
    "esp_phy/include": {"esp_phy_init.h": "#pragma once\n"},
    "esp_phy/include/esp_private": {"phy.h": "#pragma once\n"},
    "esp_coex/include": {"esp_coexist.h": "#pragma once\n"},
    "esp_coex/include/private": {
        "esp_coexist_internal.h": '#include "private/esp_coexist_adapter.h"\n',
        "esp_coexist_adapter.h": "#pragma once\n",
    },
    "esp_wifi/include": {"esp_wifi.h": "#pragma once\n", "esp_wifi_types.h": "#pragma once\n"},
    "esp_wifi/include/esp_private": {
        "esp_wifi_private.h": '#include "freertos/FreeRTOS.h"\n#include "freertos/queue.h"\n#include "esp_wifi.h"\n',
        "wifi.h": '#include "freertos/FreeRTOS.h"\n#include "freertos/queue.h"\n',
    },
    "esp_timer/include": {"esp_timer.h": "#pragma once\n"},
    "esp_system/include": {
        "esp_system.h": '#include "esp_err.h"\n#include "esp_attr.h"\n#include "esp_bit_defs.h"\n#include "esp_idf_version.h"\n',
    },
    "esp_event/include": {
        "esp_event.h": (
            '#include "esp_err.h"\n'
            '#include "freertos/FreeRTOS.h"\n'
            '#include "freertos/task.h"\n'
            '#include "freertos/queue.h"\n'
            '#include "freertos/semphr.h"\n'
        ),
    },
    "nvs_flash/include": {"nvs.h": '#include "esp_attr.h"\n#include "esp_err.h"\n'},
}

COMMON_SINGLE_FILES = {
    "esp_hw_support/include/esp_private/esp_modem_clock.h": '#include "freertos/FreeRTOS.h"\n#include "soc/soc_caps.h"\n',
}


def write(path, content=""):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf8")
    return path


def make_idf_tree(idf, targets):
    """Create the parts of an ESP-IDF installation the collector reads for chips."""
    idf = Path(idf)

    for component, files in COMMON_FILES.items():
        for name, content in files.items():
            write(idf / "components" / component / name, content)

    values = manifest.template_values(idf=str(idf), include="INCLUDE")
    for src, _, kind in manifest.common_headers(values):
        if kind == manifest.FILE and not Path(src).exists():
            write(src, "#pragma once\n")
    for rel, content in COMMON_SINGLE_FILES.items():
        write(idf / "components" / rel, content)

    for chip in targets:
        values = manifest.template_values(idf=str(idf), chip=chip, build="BUILD", libs="LIBS", include="INCLUDE")
        for src, _ in manifest.static_libraries(chip, values):
            if not src.startswith("BUILD"):
                write(src, f"!<arch> {chip}\n")
        for src, _, kind in manifest.chip_headers(chip, values):
            if src.startswith("BUILD"):
                continue
            if kind == manifest.DIRECTORY:
                if "/bt/include/" in src:
                    write(Path(src) / "esp_bt.h", ESP_BT_H.format(bt_headers=values["bt_headers"]))
                else:
                    write(Path(src) / "phy_init_data.h", "#pragma once\n")
            else:
                write(src, "#pragma once\n")
    return idf


class FakeToolchain:
    """Stands in for idf.py and the archiver, producing the files a real build leaves behind."""

    idf_py = "idf.py"

    def __init__(self, version_out="ESP-IDF v5.3.1\n", build_returncode=0, archive_returncode=0):
        self.version_out = version_out
        self.build_returncode = build_returncode
        self.archive_returncode = archive_returncode
        self.calls = []

    def archiver(self, chip):
        return "fake-ar"

    def build(self, project_dir, chip):
        self.calls.append(("build", chip))
        build = Path(project_dir) / "build"
        write(build / "esp-idf" / "log" / "liblog.a", "!<arch>\n")
        write(build / "esp-idf" / "wpa_supplicant" / "libwpa_supplicant.a", "!<arch>\n")
        write(build / "config" / "sdkconfig.h", f'#define CONFIG_IDF_TARGET "{chip}"\n')
        write(
            build / "esp-idf" / "esp_hw_support" / "CMakeFiles" / "__idf_esp_hw_support.dir" / "regi2c_ctrl.c.obj",
            "ELF",
        )
        return {"returncode": self.build_returncode, "out": "", "err": "" if self.build_returncode == 0 else "ninja: build stopped"}

    def archive(self, chip, library, obj):
        self.calls.append(("archive", chip))
        if self.archive_returncode == 0:
            write(library, "!<arch>\n")
        return {"returncode": self.archive_returncode, "out": "", "err": ""}

    def version(self):
        self.calls.append(("version",))
        return {"returncode": 0, "out": self.version_out, "err": ""}


@pytest.fixture
def idf_dir(tmp_path):
    return tmp_path / "esp-idf"


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "project"
    write(project / "version", "ESP-IDF v5.1.0\n")
    write(project / "helper_project" / "CMakeLists.txt", "project(helper)\n")
    for chip in chips.DEFAULT_CHIPS:
        write(project / "patch" / chip / "sdkconfig.defaults", f"CONFIG_IDF_TARGET=\"{chip}\"\n")
    return project


@pytest.fixture
def make_config(project_dir, idf_dir):
    def _make(**options):
        return CollectorConfig(str(project_dir), options, environ={"IDF_PATH": str(idf_dir)})
    return _make


@pytest.fixture
def logger():
    return CollectLogger()


@pytest.fixture
def toolchain():
    return FakeToolchain()


@pytest.fixture
def make_tree(idf_dir):
    def _make(*targets):
        return make_idf_tree(idf_dir, targets)
    return _make


@pytest.fixture
def toolchain_factory():
    return FakeToolchain
