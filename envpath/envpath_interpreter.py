"""
The envpath Evaluator: walks fallback chains against a Lookups collaborator.
"""
import logging
import os
import sys
from typing import Callable, Dict, Optional, Tuple

from envpath.envpath_datatypes import (
    Candidate, Directive, DirectiveKind, Literal, QualifierTriple, Segment,
    SegmentOutcome, Strength,
)
from envpath.envpath_platform import Lookups, Platform

logger = logging.getLogger(__name__)

Resolver = Callable[[str, Optional[QualifierTriple]], Optional[str]]


class Evaluator:
    """Evaluates parsed segments.

    Candidates are tried strictly left to right and the first one that
    passes its strength test wins; nothing after the winner is looked up.
    The evaluator holds no state between calls, so one instance may be
    shared across threads.
    """

    def __init__(self, lookups: Lookups, debug: Optional[bool] = None):
        self.lookups = lookups
        self.debug = bool(os.environ.get("ENVPATH_DEBUG")) if debug is None else debug
        self.resolvers: Dict[DirectiveKind, Resolver] = {
            DirectiveKind.ENV: self._resolve_env,
            DirectiveKind.CONST: self._resolve_const,
            DirectiveKind.DIR: self._resolve_dir,
            DirectiveKind.PROJ: self._resolve_proj,
        }
        self.dir_specials: Dict[str, Callable[[], Optional[str]]] = {
            "tmp": self._tmp_dir,
            "temp": self.lookups.temp_dir,
            "temporary": self.lookups.temp_dir,
            "path": self._first_path,
            "first_path": self._first_path,
            "first-path": self._first_path,
            "last_path": self._last_path,
            "last-path": self._last_path,
        }

    @property
    def platform(self) -> Platform:
        return self.lookups.platform

    def _dbg(self, *parts):
        if self.debug:
            try:
                print("[DBG]", *parts, file=sys.stderr)
            except Exception:
                pass

    # -----------------------------------------------------------------
    # Segments
    # -----------------------------------------------------------------

    def evaluate(self, segment: Segment) -> SegmentOutcome:
        """Resolves one segment into its contribution to the assembled path."""
        if isinstance(segment, Literal):
            return SegmentOutcome(segment.text, segment, None, segment.text)
        if isinstance(segment, Directive):
            found = self.evaluate_chain(segment)
            if found is None:
                self._dbg("EXHAUSTED", repr(segment.text))
                return SegmentOutcome(segment.text, segment, None, segment.text)
            winner, value = found
            return SegmentOutcome(segment.text, segment, winner, value)
        raise TypeError(f"Cannot evaluate {type(segment).__name__}")

    def evaluate_chain(self, directive: Directive) -> Optional[Tuple[Candidate, str]]:
        """Returns (winning candidate, value), or None when the chain is exhausted."""
        for triple, cand in directive.candidates():
            value = self.lookup(directive.kind, cand, triple)
            ok = self.passes(value, cand.strength)
            self._dbg("CANDIDATE", directive.kind.value, repr(cand.identifier),
                      cand.strength.value, "->", repr(value), "ok" if ok else "fail")
            if ok:
                return cand, value
        return None

    def passes(self, value: Optional[str], strength: Strength) -> bool:
        if value is None:
            return False
        if strength is Strength.VALUE_AND_PATH:
            try:
                return bool(self.lookups.path_exists(value))
            except Exception as e:
                logger.debug("path_exists(%r) failed: %s", value, e)
                return False
        return True

    def lookup(self, kind: DirectiveKind, cand: Candidate,
               triple: Optional[QualifierTriple] = None) -> Optional[str]:
        """Performs the single lookup for one candidate. Never raises."""
        kind = cand.namespace or kind
        project = cand.project or triple
        resolver = self.resolvers[kind]
        try:
            return resolver(cand.identifier, project)
        except Exception as e:
            logger.debug("lookup of %s %r failed: %s", kind.value, cand.identifier, e)
            return None

    # -----------------------------------------------------------------
    # Per-kind resolvers
    # -----------------------------------------------------------------

    def _resolve_env(self, name: str, _project=None) -> Optional[str]:
        return self.lookups.lookup_env(name)

    def _resolve_const(self, key: str, _project=None) -> Optional[str]:
        return self.lookups.lookup_const(key)

    def _resolve_dir(self, key: str, _project=None) -> Optional[str]:
        special = self.dir_specials.get(key)
        if special is not None:
            return special()
        return self.lookups.lookup_base_dir(key, self.platform)

    def _resolve_proj(self, key: str, project: Optional[QualifierTriple]) -> Optional[str]:
        if key in ("first_path", "first-path"):
            return self._first_path()
        if key in ("last_path", "last-path"):
            return self._last_path()
        if project is None:
            return None
        return self.lookups.lookup_project_dir(project, key, self.platform)

    # -----------------------------------------------------------------
    # Policies
    # -----------------------------------------------------------------

    def _tmp_dir(self) -> Optional[str]:
        names = ("TEMP", "TMP") if self.platform is Platform.WINDOWS else ("TMPDIR",)
        for name in names:
            value = self.lookups.lookup_env(name)
            if value:
                return value

        temp = self.lookups.temp_dir()
        if temp and self.lookups.is_writable(temp):
            return temp
        cache = self.lookups.lookup_base_dir("cache", self.platform)
        if cache:
            return os.path.join(cache, "tmp")
        return ".tmp"

    def _first_path(self) -> Optional[str]:
        paths = self.lookups.platform_path_list()
        return paths[0] if paths else None

    def _last_path(self) -> Optional[str]:
        paths = self.lookups.platform_path_list()
        return paths[-1] if paths else None
