"""
Lookup collaborators consumed by the evaluator.

`Lookups` is the read-only capability the engine needs: environment,
constants, base-directory and project-directory tables, filesystem
existence and the platform path list. `SystemLookups` implements it for
the running process, with the directory tables built on platformdirs.
"""
from __future__ import annotations

import enum
import logging
import ntpath
import os
import posixpath
import platform as _platform
import sys
import tempfile
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import platformdirs

from envpath.envpath_datatypes import QualifierTriple, __version__

logger = logging.getLogger(__name__)

ANDROID_SD = "/storage/self/primary"


class Platform(enum.Enum):
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    ANDROID = "android"
    BSD = "bsd"
    OTHER = "other"

    @classmethod
    def current(cls) -> 'Platform':
        plat = sys.platform
        if plat == "android" or hasattr(sys, "getandroidapilevel"):
            return cls.ANDROID
        if plat.startswith("linux"):
            return cls.LINUX
        if plat == "darwin":
            return cls.MACOS
        if plat in ("win32", "cygwin"):
            return cls.WINDOWS
        if "bsd" in plat or plat.startswith("dragonfly"):
            return cls.BSD
        return cls.OTHER

    @classmethod
    def from_name(cls, name: str) -> 'Platform':
        key = name.strip().lower()
        aliases = {"darwin": "macos", "mac": "macos", "osx": "macos", "win32": "windows", "win": "windows"}
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown platform: {name!r}") from None

    @property
    def family(self) -> str:
        return "windows" if self is Platform.WINDOWS else "unix"


class Lookups(ABC):
    """Read-only view of everything a resolution may consult."""

    platform: Platform

    @abstractmethod
    def lookup_env(self, name: str) -> Optional[str]: raise NotImplementedError
    @abstractmethod
    def lookup_const(self, key: str) -> Optional[str]: raise NotImplementedError
    @abstractmethod
    def lookup_base_dir(self, key: str, platform: Platform) -> Optional[str]: raise NotImplementedError
    @abstractmethod
    def lookup_project_dir(self, triple: QualifierTriple, key: str, platform: Platform) -> Optional[str]: raise NotImplementedError
    @abstractmethod
    def path_exists(self, path: str) -> bool: raise NotImplementedError
    @abstractmethod
    def temp_dir(self) -> str: raise NotImplementedError
    @abstractmethod
    def is_writable(self, path: str) -> bool: raise NotImplementedError

    def platform_path_list_separator(self) -> str:
        return ";" if self.platform is Platform.WINDOWS else ":"

    def platform_path_list(self) -> List[str]:
        value = self.lookup_env("PATH")
        if not value:
            return []
        return [p for p in value.split(self.platform_path_list_separator()) if p]


# ===================================================================
# Constants
# ===================================================================

_ARCH_ALIASES = {
    "amd64": "x86_64", "x64": "x86_64",
    "arm64": "aarch64", "armv8l": "aarch64",
    "i386": "x86", "i486": "x86", "i586": "x86", "i686": "x86",
    "ppc64le": "powerpc64", "ppc64": "powerpc64",
}

_DEB_ARCH = {
    "x86_64": "amd64",
    "aarch64": "arm64",
    "riscv64": "riscv64",
    "s390x": "s390x",
    "powerpc64": "ppc64el",
    "x86": "i386",
    "mips": "mipsel",
    "mips64": "mips64el",
}


def get_architecture(machine: Optional[str] = None) -> str:
    m = (machine if machine is not None else _platform.machine()).lower()
    if m.startswith("armv7") or m.startswith("armv6") or m == "arm":
        return "arm"
    return _ARCH_ALIASES.get(m, m)


def get_deb_arch(arch: Optional[str] = None) -> str:
    """Debian-style architecture name, e.g. amd64, arm64, armhf."""
    arch = arch or get_architecture()
    if arch == "arm":
        return "armhf" if _platform.machine().lower().startswith("armv7") else "armel"
    return _DEB_ARCH.get(arch, arch)


def build_consts(platform: Platform, pkg_name: str, pkg_version: str) -> Dict[str, str]:
    arch = get_architecture()
    windows = platform is Platform.WINDOWS
    table = {
        "arch": arch,
        "architecture": arch,
        "deb_arch": get_deb_arch(arch),
        "os": platform.value,
        "family": platform.family,
        "exe_suffix": ".exe" if windows else "",
        "exe_extension": "exe" if windows else "",
        "empty": "",
        "pkg": pkg_name,
        "pkg_name": pkg_name,
        "ver": pkg_version,
        "pkg_version": pkg_version,
    }
    # Also accept dashed spellings for remix lookups (`const * deb-arch`).
    table.update({k.replace("_", "-"): v for k, v in list(table.items()) if "_" in k})
    return table


# ===================================================================
# User directories
# ===================================================================
#
# Every directory is computed from the Lookups' own environment and
# platform. platformdirs is consulted only when the lookups are bound to
# the live process on the host platform, since it reads os.environ and
# the host OS itself.

DirFn = Callable[['SystemLookups'], Optional[str]]

_UNIX, _MAC, _WIN = "unix", "macos", "windows"


def _style(platform: Platform) -> str:
    if platform is Platform.WINDOWS:
        return _WIN
    if platform is Platform.MACOS:
        return _MAC
    return _UNIX


def _pathmod(lk: 'SystemLookups'):
    return ntpath if lk.platform is Platform.WINDOWS else posixpath


def _join(lk: 'SystemLookups', base: Optional[str], *parts: str) -> Optional[str]:
    if base is None:
        return None
    return _pathmod(lk).join(base, *parts)


def _aliases(*names: str) -> Tuple[str, ...]:
    out = []
    for n in names:
        out.append(n)
        if "_" in n:
            out.append(n.replace("_", "-"))
    return tuple(out)


def _home(lk: 'SystemLookups') -> Optional[str]:
    home = lk.lookup_env("USERPROFILE" if lk.platform is Platform.WINDOWS else "HOME")
    if home:
        return home
    return os.path.expanduser("~") if lk.live else None


_APP_SUPPORT = ("Library", "Application Support")
_LOCAL_APPDATA = ("LOCALAPPDATA", ("AppData", "Local"))
_ROAMING_APPDATA = ("APPDATA", ("AppData", "Roaming"))

# name -> style -> (environment variable, live platformdirs call, default under home)
_USER_DIRS: Dict[str, Dict[str, Tuple[Optional[str], Callable[[], str], Tuple[str, ...]]]] = {
    "cache": {
        _UNIX: ("XDG_CACHE_HOME", platformdirs.user_cache_dir, (".cache",)),
        _MAC: (None, platformdirs.user_cache_dir, ("Library", "Caches")),
        _WIN: (_LOCAL_APPDATA[0], platformdirs.user_cache_dir, _LOCAL_APPDATA[1]),
    },
    "config": {
        _UNIX: ("XDG_CONFIG_HOME", lambda: platformdirs.user_config_dir(roaming=True), (".config",)),
        _MAC: (None, lambda: platformdirs.user_config_dir(roaming=True), _APP_SUPPORT),
        _WIN: (_ROAMING_APPDATA[0], lambda: platformdirs.user_config_dir(roaming=True), _ROAMING_APPDATA[1]),
    },
    "local_config": {
        _UNIX: ("XDG_CONFIG_HOME", platformdirs.user_config_dir, (".config",)),
        _MAC: (None, platformdirs.user_config_dir, _APP_SUPPORT),
        _WIN: (_LOCAL_APPDATA[0], platformdirs.user_config_dir, _LOCAL_APPDATA[1]),
    },
    "data": {
        _UNIX: ("XDG_DATA_HOME", lambda: platformdirs.user_data_dir(roaming=True), (".local", "share")),
        _MAC: (None, lambda: platformdirs.user_data_dir(roaming=True), _APP_SUPPORT),
        _WIN: (_ROAMING_APPDATA[0], lambda: platformdirs.user_data_dir(roaming=True), _ROAMING_APPDATA[1]),
    },
    "local_data": {
        _UNIX: ("XDG_DATA_HOME", platformdirs.user_data_dir, (".local", "share")),
        _MAC: (None, platformdirs.user_data_dir, _APP_SUPPORT),
        _WIN: (_LOCAL_APPDATA[0], platformdirs.user_data_dir, _LOCAL_APPDATA[1]),
    },
    "state": {
        _UNIX: ("XDG_STATE_HOME", platformdirs.user_state_dir, (".local", "state")),
    },
}

for _name, _env, _fn, _folder, _mac_folder in [
    ("desktop", "XDG_DESKTOP_DIR", platformdirs.user_desktop_dir, "Desktop", "Desktop"),
    ("documents", "XDG_DOCUMENTS_DIR", platformdirs.user_documents_dir, "Documents", "Documents"),
    ("downloads", "XDG_DOWNLOAD_DIR", platformdirs.user_downloads_dir, "Downloads", "Downloads"),
    ("music", "XDG_MUSIC_DIR", platformdirs.user_music_dir, "Music", "Music"),
    ("pictures", "XDG_PICTURES_DIR", platformdirs.user_pictures_dir, "Pictures", "Pictures"),
    ("videos", "XDG_VIDEOS_DIR", platformdirs.user_videos_dir, "Videos", "Movies"),
]:
    _USER_DIRS[_name] = {
        _UNIX: (_env, _fn, (_folder,)),
        _MAC: (None, _fn, (_mac_folder,)),
        _WIN: (None, _fn, (_folder,)),
    }
del _name, _env, _fn, _folder, _mac_folder


def user_dir(lk: 'SystemLookups', name: str) -> Optional[str]:
    """A per-user directory for `lk.platform`, taken from `lk`'s environment.

    Order: the platform's environment variable, then platformdirs (live
    process only), then the platform's default location under home.
    """
    entry = _USER_DIRS[name].get(_style(lk.platform))
    if entry is None:
        return None
    env_name, live_fn, default = entry
    if env_name:
        value = lk.lookup_env(env_name)
        if value:
            return value
    if lk.live:
        return live_fn()
    return _join(lk, _home(lk), *default)


def _user(name: str) -> DirFn:
    return lambda lk: user_dir(lk, name)


def _android_or(sub: str, fn: DirFn) -> DirFn:
    def pick(lk: 'SystemLookups') -> Optional[str]:
        if lk.platform is Platform.ANDROID:
            return posixpath.join(ANDROID_SD, sub)
        return fn(lk)
    return pick


def _xdg_only(fn: DirFn) -> DirFn:
    def pick(lk: 'SystemLookups') -> Optional[str]:
        if lk.platform not in (Platform.LINUX, Platform.BSD):
            return None
        return fn(lk)
    return pick


def _home_or_env(env_name: str, folder: str) -> DirFn:
    def pick(lk: 'SystemLookups') -> Optional[str]:
        return lk.lookup_env(env_name) or _join(lk, _home(lk), folder)
    return pick


def _bin_dir(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is Platform.WINDOWS:
        return _join(lk, user_dir(lk, "local_data"), "Microsoft", "WindowsApps")
    return lk.lookup_env("XDG_BIN_HOME") or _join(lk, _home(lk), ".local", "bin")


def _font_dir(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is Platform.WINDOWS:
        return _join(lk, user_dir(lk, "local_data"), "Microsoft", "Windows", "Fonts")
    if lk.platform is Platform.MACOS:
        return _join(lk, _home(lk), "Library", "Fonts")
    return _join(lk, user_dir(lk, "local_data"), "fonts")


def _pref_dir(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is Platform.MACOS:
        return _join(lk, _home(lk), "Library", "Preferences")
    return user_dir(lk, "config")


def _public_dir(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is Platform.WINDOWS:
        return lk.lookup_env("PUBLIC") or r"C:\Users\Public"
    return _home_or_env("XDG_PUBLICSHARE_DIR", "Public")(lk)


def _template_dir(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is Platform.WINDOWS:
        return _join(lk, user_dir(lk, "config"), "Microsoft", "Windows", "Templates")
    if lk.platform is Platform.MACOS:
        return None
    return _home_or_env("XDG_TEMPLATES_DIR", "Templates")(lk)


def _var_tmp(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is Platform.WINDOWS:
        return None
    return posixpath.join("/var/tmp", lk.pkg_name)


def _windows_env_or(name: str, default: str) -> DirFn:
    def pick(lk: 'SystemLookups') -> Optional[str]:
        if lk.platform is not Platform.WINDOWS:
            return None
        return lk.lookup_env(name) or default
    return pick


def _local_low(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is not Platform.WINDOWS:
        return None
    local = user_dir(lk, "local_data")
    return _join(lk, ntpath.dirname(local), "LocalLow") if local else None


def _microsoft(lk: 'SystemLookups') -> Optional[str]:
    if lk.platform is not Platform.WINDOWS:
        return None
    return _join(lk, user_dir(lk, "data"), "Microsoft")


def _sd(lk: 'SystemLookups') -> Optional[str]:
    return ANDROID_SD if lk.platform is Platform.ANDROID else None


_BASE_DIRS: List[Tuple[Tuple[str, ...], DirFn]] = [
    (_aliases("home"), _home),
    (_aliases("cache"), _user("cache")),
    (_aliases("cfg", "config"), _user("config")),
    (_aliases("data"), _user("data")),
    (_aliases("local_data"), _android_or("Android/data", _user("local_data"))),
    (_aliases("local_cfg", "local_config"), _android_or("Android/data", _user("local_config"))),
    (_aliases("desktop"), _user("desktop")),
    (_aliases("doc", "document", "documentation"), _android_or("Documents", _user("documents"))),
    (_aliases("dl", "download"), _android_or("Download", _user("downloads"))),
    (_aliases("bin", "exe", "executable"), _bin_dir),
    (_aliases("font", "typeface"), _font_dir),
    (_aliases("music", "audio"), _android_or("Music", _user("music"))),
    (_aliases("pic", "picture"), _android_or("Pictures", _user("pictures"))),
    (_aliases("video", "movie"), _android_or("Movies", _user("videos"))),
    (_aliases("pref", "preference"), _pref_dir),
    (_aliases("pub", "public"), _public_dir),
    (_aliases("runtime"), _xdg_only(lambda lk: lk.lookup_env("XDG_RUNTIME_DIR"))),
    (_aliases("state"), _xdg_only(_user("state"))),
    (_aliases("template"), _template_dir),
    (_aliases("temp", "temporary"), lambda lk: lk.temp_dir()),
    (_aliases("var_tmp"), _var_tmp),
    (_aliases("cli_data"), _user("local_data")),
    (_aliases("cli_cfg", "cli_config"), _user("local_config")),
    (_aliases("cli_cache"), _user("cache")),
    (_aliases("program_files"), _windows_env_or("ProgramFiles", r"C:\Program Files")),
    (_aliases("program_files_x86"), _windows_env_or("ProgramFiles(x86)", r"C:\Program Files (x86)")),
    (_aliases("common_program_files"), _windows_env_or("CommonProgramFiles", r"C:\Program Files\Common Files")),
    (_aliases("common_program_files_x86"), _windows_env_or("CommonProgramFiles(x86)", r"C:\Program Files (x86)\Common Files")),
    (_aliases("program_data"), _windows_env_or("ProgramData", r"C:\ProgramData")),
    (_aliases("microsoft"), _microsoft),
    (_aliases("local_low"), _local_low),
    (_aliases("sd"), _sd),
    (_aliases("empty"), lambda lk: ""),
]

BASE_DIR_TABLE: Dict[str, DirFn] = {name: fn for names, fn in _BASE_DIRS for name in names}


# ===================================================================
# Project directories
# ===================================================================

def project_path(triple: QualifierTriple, platform: Platform) -> str:
    """Relative project directory name, as used inside the platform's base dirs."""
    match platform:
        case Platform.WINDOWS:
            return ntpath.join(triple.organization, triple.application) if triple.organization else triple.application
        case Platform.MACOS | Platform.ANDROID:
            return triple.name
        case _:
            return "".join(triple.application.split())


def _android_project(triple: QualifierTriple, key: str) -> Optional[str]:
    name = triple.name
    table = {
        "path": name,
        "cache": f"/data/data/{name}/cache",
        "cfg": f"/data/data/{name}/files",
        "data": f"/data/data/{name}",
        "local_data": f"{ANDROID_SD}/Android/data/{name}",
    }
    return table.get(key)


_PROJECT_KEYS = {name: canon for canon, names in {
    "path": _aliases("path"),
    "cache": _aliases("cache"),
    "cfg": _aliases("cfg", "config"),
    "data": _aliases("data"),
    "local_data": _aliases("local_data"),
    "local_cfg": _aliases("local_cfg", "local_config"),
    "pref": _aliases("pref", "preference"),
    "runtime": _aliases("runtime"),
    "state": _aliases("state"),
}.items() for name in names}

# project key -> (user directory it lives under, Windows leaf folder)
_PROJECT_BASES = {
    "cache": ("cache", "cache"),
    "cfg": ("config", "config"),
    "data": ("data", "data"),
    "local_data": ("local_data", "data"),
    "local_cfg": ("local_config", "config"),
}


# ===================================================================
# System implementation
# ===================================================================

class SystemLookups(Lookups):
    """Lookups against the running process.

    `environ` defaults to `os.environ`; pass a plain mapping to pin a
    snapshot. `platform` defaults to the host platform. Directory lookups
    only read `environ` and `platform`, so a pinned snapshot pins them too.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 platform: Optional[Platform] = None,
                 pkg_name: str = "envpath", pkg_version: str = "",
                 consts: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.platform = platform or Platform.current()
        self.pkg_name = pkg_name
        self.pkg_version = pkg_version or __version__
        self.consts = build_consts(self.platform, pkg_name, self.pkg_version)
        if consts:
            self.consts.update(consts)

    @property
    def live(self) -> bool:
        """True when bound to the real process environment on the host platform."""
        return self.environ is os.environ and self.platform is Platform.current()

    def lookup_env(self, name: str) -> Optional[str]:
        value = self.environ.get(name)
        return value if value else None

    def lookup_const(self, key: str) -> Optional[str]:
        return self.consts.get(key)

    def lookup_base_dir(self, key: str, platform: Platform) -> Optional[str]:
        fn = BASE_DIR_TABLE.get(key)
        if fn is None:
            logger.debug("no base directory named %r", key)
            return None
        return fn(self)

    def lookup_project_dir(self, triple: QualifierTriple, key: str, platform: Platform) -> Optional[str]:
        canon = _PROJECT_KEYS.get(key)
        if canon is None:
            return None
        if platform is Platform.ANDROID:
            return _android_project(triple, canon)
        name = project_path(triple, platform)
        if canon == "path":
            return name

        if canon in _PROJECT_BASES:
            base, leaf = _PROJECT_BASES[canon]
            parts = (name, leaf) if platform is Platform.WINDOWS else (name,)
            return _join(self, user_dir(self, base), *parts)
        match canon:
            case "pref":
                if platform is Platform.MACOS:
                    return _join(self, _home(self), "Library", "Preferences", name)
                return self.lookup_project_dir(triple, "cfg", platform)
            case "runtime":
                if platform not in (Platform.LINUX, Platform.BSD):
                    return None
                return _join(self, self.lookup_env("XDG_RUNTIME_DIR"), name)
            case "state":
                if platform not in (Platform.LINUX, Platform.BSD):
                    return None
                return _join(self, user_dir(self, "state"), name)
        return None

    def path_exists(self, path: str) -> bool:
        return bool(path) and os.path.exists(path)

    def temp_dir(self) -> str:
        windows = self.platform is Platform.WINDOWS
        for name in (("TMP", "TEMP") if windows else ("TMPDIR",)):
            value = self.lookup_env(name)
            if value:
                return value
        if self.live:
            return tempfile.gettempdir()
        if windows:
            return _join(self, user_dir(self, "local_data"), "Temp") or r"C:\Windows\Temp"
        return "/tmp"

    def is_writable(self, path: str) -> bool:
        return os.path.isdir(path) and os.access(path, os.W_OK)

    def __repr__(self) -> str:
        return f"<SystemLookups platform={self.platform.value}>"
