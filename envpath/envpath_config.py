"""
Resolver configuration and logging setup.

Settings come from a YAML, TOML or JSON file (an optional `envpath` table
or the document's top level) and are then overridden by `ENVPATH_PLATFORM`
and `ENVPATH_DEBUG` from the environment.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from envpath.envpath_platform import Platform, SystemLookups
from envpath.envpath_serialize import deserialize, format_from_path

SECTION = "envpath"
_TRUTHY = {"1", "true", "yes", "on"}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


@dataclass(frozen=True)
class ResolverConfig:
    pkg_name: str = "envpath"
    pkg_version: str = ""
    platform: Optional[Platform] = None
    debug: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'ResolverConfig':
        if SECTION in data and isinstance(data[SECTION], Mapping):
            data = data[SECTION]
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = str(key).replace("-", "_")
            if name in ("pkg_name", "pkg_version"):
                kwargs[name] = str(value)
            elif name == "platform":
                kwargs[name] = Platform.from_name(str(value))
            elif name == "debug":
                kwargs[name] = _as_bool(value)
        return cls(**kwargs)

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> 'ResolverConfig':
        environ = os.environ if environ is None else environ
        cfg = self
        if environ.get("ENVPATH_PLATFORM"):
            cfg = replace(cfg, platform=Platform.from_name(environ["ENVPATH_PLATFORM"]))
        if "ENVPATH_DEBUG" in environ:
            cfg = replace(cfg, debug=_as_bool(environ["ENVPATH_DEBUG"]))
        return cfg

    def make_lookups(self, environ: Optional[Mapping[str, str]] = None) -> SystemLookups:
        return SystemLookups(environ=environ, platform=self.platform,
                             pkg_name=self.pkg_name, pkg_version=self.pkg_version)


def load_config(path: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None) -> ResolverConfig:
    """Loads a ResolverConfig from `path` (if given) and applies environment overrides."""
    cfg = ResolverConfig()
    if path:
        with open(path, "rb") as f:
            data = deserialize(f.read(), fmt=format_from_path(path))
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"Config file {path!r} must contain a table, not {type(data).__name__}")
        cfg = ResolverConfig.from_mapping(data)
    return cfg.with_env(environ)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attaches a stderr handler to the package logger. Safe to call repeatedly."""
    logger = logging.getLogger("envpath")
    if not any(getattr(h, "_envpath", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        handler._envpath = True
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    return logger
