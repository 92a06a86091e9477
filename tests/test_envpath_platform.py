import os
from pathlib import Path

import platformdirs
import pytest

from envpath.envpath_datatypes import QualifierTriple
from envpath.envpath_platform import (
    BASE_DIR_TABLE, Platform, SystemLookups, build_consts, get_architecture,
    get_deb_arch, project_path,
)
from envpath.envpath_runtime import resolve

TRIPLE = QualifierTriple("com", "x", "y")


def _lookups(platform=Platform.LINUX, **env):
    return SystemLookups(environ=env, platform=platform, pkg_name="demo", pkg_version="1.2.3")


@pytest.mark.parametrize("name, expected", [
    ("linux", Platform.LINUX),
    ("Darwin", Platform.MACOS),
    ("win32", Platform.WINDOWS),
    (" android ", Platform.ANDROID),
])
def test_platform_from_name(name, expected):
    assert Platform.from_name(name) is expected


def test_platform_from_unknown_name():
    with pytest.raises(ValueError):
        Platform.from_name("plan9")


def test_platform_current_is_a_platform():
    assert isinstance(Platform.current(), Platform)


def test_env_lookup_treats_empty_as_unset():
    lk = _lookups(HOME="/home/u", EMPTY="")
    assert lk.lookup_env("HOME") == "/home/u"
    assert lk.lookup_env("EMPTY") is None
    assert lk.lookup_env("MISSING") is None


def test_consts_per_platform():
    linux = _lookups(Platform.LINUX)
    windows = _lookups(Platform.WINDOWS)
    assert linux.lookup_const("exe_suffix") == ""
    assert windows.lookup_const("exe_suffix") == ".exe"
    assert windows.lookup_const("exe_extension") == "exe"
    assert linux.lookup_const("family") == "unix"
    assert windows.lookup_const("family") == "windows"
    assert linux.lookup_const("os") == "linux"
    assert linux.lookup_const("pkg") == "demo"
    assert linux.lookup_const("ver") == "1.2.3"
    assert linux.lookup_const("pkg-version") == "1.2.3"
    assert linux.lookup_const("empty") == ""
    assert linux.lookup_const("nope") is None


def test_const_overrides():
    lk = SystemLookups(environ={}, platform=Platform.LINUX, consts={"arch": "riscv64"})
    assert lk.lookup_const("arch") == "riscv64"


def test_build_consts_has_dashed_aliases():
    consts = build_consts(Platform.LINUX, "demo", "0")
    assert consts["deb-arch"] == consts["deb_arch"]


@pytest.mark.parametrize("machine, expected", [
    ("AMD64", "x86_64"),
    ("x86_64", "x86_64"),
    ("arm64", "aarch64"),
    ("i686", "x86"),
    ("armv7l", "arm"),
])
def test_get_architecture(machine, expected):
    assert get_architecture(machine) == expected


def test_get_deb_arch():
    assert get_deb_arch("x86_64") == "amd64"
    assert get_deb_arch("aarch64") == "arm64"
    assert get_deb_arch("riscv64") == "riscv64"


def test_path_list_separator():
    assert _lookups(Platform.LINUX, PATH="/a::/b").platform_path_list() == ["/a", "/b"]
    assert _lookups(Platform.WINDOWS, PATH=r"C:\a;C:\b").platform_path_list() == [r"C:\a", r"C:\b"]
    assert _lookups(Platform.LINUX).platform_path_list() == []


def test_home_dir_from_environment():
    assert _lookups(HOME="/home/u").lookup_base_dir("home", Platform.LINUX) == "/home/u"
    assert _lookups(Platform.WINDOWS, USERPROFILE=r"C:\Users\u").lookup_base_dir("home", Platform.WINDOWS) == r"C:\Users\u"


def test_base_dir_aliases_share_resolvers():
    assert BASE_DIR_TABLE["dl"] is BASE_DIR_TABLE["download"]
    assert BASE_DIR_TABLE["local_data"] is BASE_DIR_TABLE["local-data"]
    assert BASE_DIR_TABLE["video"] is BASE_DIR_TABLE["movie"]


def test_base_dir_unknown_and_empty():
    lk = _lookups()
    assert lk.lookup_base_dir("recycle_bin", Platform.LINUX) is None
    assert lk.lookup_base_dir("empty", Platform.LINUX) == ""


def test_linux_user_dirs_default_under_snapshot_home():
    lk = _lookups(HOME="/home/u")
    assert lk.lookup_base_dir("cache", Platform.LINUX) == "/home/u/.cache"
    assert lk.lookup_base_dir("cfg", Platform.LINUX) == "/home/u/.config"
    assert lk.lookup_base_dir("data", Platform.LINUX) == "/home/u/.local/share"
    assert lk.lookup_base_dir("state", Platform.LINUX) == "/home/u/.local/state"
    assert lk.lookup_base_dir("doc", Platform.LINUX) == "/home/u/Documents"
    assert lk.lookup_base_dir("dl", Platform.LINUX) == "/home/u/Downloads"
    assert lk.lookup_base_dir("font", Platform.LINUX) == "/home/u/.local/share/fonts"


def test_pinned_xdg_variable_wins_over_process_environment(monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", "/real/os/cache")
    lk = SystemLookups(environ={"XDG_CACHE_HOME": "/snap/cache"}, platform=Platform.LINUX)
    assert not lk.live
    assert resolve(["$dir: cache"], lk).path == Path("/snap/cache")
    assert resolve(["$proj(com.x.y): cache"], lk).path == Path("/snap/cache/y")


def test_snapshot_without_home_has_no_user_dirs(monkeypatch):
    monkeypatch.setenv("HOME", "/real/home")
    lk = _lookups()
    assert lk.lookup_base_dir("cache", Platform.LINUX) is None
    assert lk.lookup_base_dir("home", Platform.LINUX) is None


def test_windows_override_uses_windows_layout():
    lk = _lookups(Platform.WINDOWS, USERPROFILE=r"C:\Users\u",
                  LOCALAPPDATA=r"C:\Users\u\AppData\Local", APPDATA=r"C:\Users\u\AppData\Roaming")
    assert lk.lookup_base_dir("cache", Platform.WINDOWS) == r"C:\Users\u\AppData\Local"
    assert lk.lookup_base_dir("cfg", Platform.WINDOWS) == r"C:\Users\u\AppData\Roaming"
    assert lk.lookup_base_dir("bin", Platform.WINDOWS) == r"C:\Users\u\AppData\Local\Microsoft\WindowsApps"
    assert lk.lookup_base_dir("local_low", Platform.WINDOWS) == r"C:\Users\u\AppData\LocalLow"
    assert lk.lookup_base_dir("doc", Platform.WINDOWS) == r"C:\Users\u\Documents"
    assert lk.lookup_project_dir(TRIPLE, "cache", Platform.WINDOWS) == r"C:\Users\u\AppData\Local\x\y\cache"
    assert lk.lookup_project_dir(TRIPLE, "cfg", Platform.WINDOWS) == r"C:\Users\u\AppData\Roaming\x\y\config"
    assert lk.lookup_base_dir("state", Platform.WINDOWS) is None


def test_windows_override_falls_back_to_profile():
    lk = _lookups(Platform.WINDOWS, USERPROFILE=r"C:\Users\u")
    assert lk.lookup_base_dir("data", Platform.WINDOWS) == r"C:\Users\u\AppData\Roaming"
    assert lk.temp_dir() == r"C:\Users\u\AppData\Local\Temp"


def test_macos_override_uses_library():
    lk = _lookups(Platform.MACOS, HOME="/Users/u")
    assert lk.lookup_base_dir("cache", Platform.MACOS) == "/Users/u/Library/Caches"
    assert lk.lookup_base_dir("data", Platform.MACOS) == "/Users/u/Library/Application Support"
    assert lk.lookup_base_dir("video", Platform.MACOS) == "/Users/u/Movies"
    assert lk.lookup_base_dir("template", Platform.MACOS) is None
    assert lk.lookup_project_dir(TRIPLE, "data", Platform.MACOS) == "/Users/u/Library/Application Support/com.x.y"
    assert lk.lookup_project_dir(TRIPLE, "pref", Platform.MACOS) == "/Users/u/Library/Preferences/com.x.y"


def test_snapshot_temp_dir(monkeypatch):
    monkeypatch.setenv("TMPDIR", "/real/tmp")
    assert _lookups().temp_dir() == "/tmp"
    assert _lookups(TMPDIR="/snap/tmp").temp_dir() == "/snap/tmp"


def test_live_lookups_defer_to_platformdirs(monkeypatch):
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    lk = SystemLookups()
    assert lk.live
    if lk.platform in (Platform.LINUX, Platform.BSD, Platform.OTHER):
        assert lk.lookup_base_dir("cache", lk.platform) == platformdirs.user_cache_dir()


def test_linux_specific_dirs():
    lk = _lookups(HOME="/home/u", XDG_RUNTIME_DIR="/run/user/1000")
    assert lk.lookup_base_dir("var_tmp", Platform.LINUX) == "/var/tmp/demo"
    assert lk.lookup_base_dir("runtime", Platform.LINUX) == "/run/user/1000"
    assert lk.lookup_base_dir("bin", Platform.LINUX) == os.path.join("/home/u", ".local", "bin")
    assert lk.lookup_base_dir("template", Platform.LINUX) == os.path.join("/home/u", "Templates")
    assert lk.lookup_base_dir("program_files", Platform.LINUX) is None


def test_windows_program_files():
    lk = _lookups(Platform.WINDOWS, ProgramFiles=r"D:\Programs")
    assert lk.lookup_base_dir("program-files", Platform.WINDOWS) == r"D:\Programs"
    assert lk.lookup_base_dir("program_data", Platform.WINDOWS) == r"C:\ProgramData"
    assert lk.lookup_base_dir("var_tmp", Platform.WINDOWS) is None


def test_android_shared_storage():
    lk = _lookups(Platform.ANDROID)
    assert lk.lookup_base_dir("dl", Platform.ANDROID) == "/storage/self/primary/Download"
    assert lk.lookup_base_dir("sd", Platform.ANDROID) == "/storage/self/primary"


def test_project_path_per_platform():
    triple = QualifierTriple("com", "Acme Corp", "Foo Bar App")
    assert project_path(triple, Platform.LINUX) == "FooBarApp"
    assert project_path(triple, Platform.MACOS) == "com.Acme Corp.Foo Bar App"
    assert project_path(triple, Platform.WINDOWS) == r"Acme Corp\Foo Bar App"
    assert project_path(QualifierTriple("org", "", "app"), Platform.WINDOWS) == "app"


def test_project_dirs_linux():
    lk = _lookups(HOME="/home/u")
    assert lk.lookup_project_dir(TRIPLE, "path", Platform.LINUX) == "y"
    cache = lk.lookup_project_dir(TRIPLE, "cache", Platform.LINUX)
    assert cache and os.path.basename(cache) == "y"
    assert lk.lookup_project_dir(TRIPLE, "config", Platform.LINUX) == lk.lookup_project_dir(TRIPLE, "cfg", Platform.LINUX)
    assert lk.lookup_project_dir(TRIPLE, "nope", Platform.LINUX) is None


def test_project_runtime_needs_runtime_dir():
    assert _lookups().lookup_project_dir(TRIPLE, "runtime", Platform.LINUX) is None
    lk = _lookups(XDG_RUNTIME_DIR="/run/user/1")
    assert lk.lookup_project_dir(TRIPLE, "runtime", Platform.LINUX) == os.path.join("/run/user/1", "y")


def test_project_dirs_android():
    lk = _lookups(Platform.ANDROID)
    assert lk.lookup_project_dir(TRIPLE, "path", Platform.ANDROID) == "com.x.y"
    assert lk.lookup_project_dir(TRIPLE, "cache", Platform.ANDROID) == "/data/data/com.x.y/cache"
    assert lk.lookup_project_dir(TRIPLE, "local-data", Platform.ANDROID) == "/storage/self/primary/Android/data/com.x.y"
    assert lk.lookup_project_dir(TRIPLE, "state", Platform.ANDROID) is None


def test_filesystem_helpers(tmp_path):
    lk = _lookups()
    assert lk.path_exists(str(tmp_path))
    assert not lk.path_exists(str(tmp_path / "nope"))
    assert not lk.path_exists("")
    assert lk.is_writable(str(tmp_path))
    assert not lk.is_writable(str(tmp_path / "nope"))
    assert isinstance(lk.temp_dir(), str)
