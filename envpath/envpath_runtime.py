# envpath_runtime.py

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from envpath.envpath_datatypes import RawExpression, ResolvedPath, ResolveResult, SegmentOutcome
from envpath.envpath_interpreter import Evaluator
from envpath.envpath_parser import parse_expression
from envpath.envpath_platform import Lookups, SystemLookups

logger = logging.getLogger(__name__)

RawLike = Union[RawExpression, Iterable[str], str]


def _as_raw(raw: RawLike) -> RawExpression:
    if isinstance(raw, ResolvedPath):
        return raw.raw
    if isinstance(raw, RawExpression):
        return raw
    return RawExpression(raw)


def assemble(outcomes: List[SegmentOutcome]) -> Optional[Path]:
    """Joins segment contributions into one path.

    A later absolute contribution restarts the path; empty contributions add
    nothing. When nothing contributes there is no path.
    """
    parts = [o.contribution for o in outcomes if o.contribution]
    if not parts:
        return None
    return Path(*parts)


class PathRunner:
    """Parses, evaluates and assembles raw expressions."""

    def __init__(self, lookups: Optional[Lookups] = None, debug: Optional[bool] = None):
        self.lookups = lookups if lookups is not None else SystemLookups()
        self.evaluator = Evaluator(self.lookups, debug=debug)

    def explain(self, raw: RawLike) -> ResolveResult:
        """Resolves `raw` and reports how each element contributed."""
        expr = _as_raw(raw)
        outcomes = [self.evaluator.evaluate(seg) for seg in parse_expression(expr)]
        path = assemble(outcomes)
        logger.debug("resolved %r -> %s", expr.to_list(), path)
        return ResolveResult(ResolvedPath(expr, path), outcomes)

    def resolve(self, raw: RawLike) -> ResolvedPath:
        return self.explain(raw).resolved

    async def resolve_async(self, raw: RawLike) -> ResolvedPath:
        """Runs `resolve` on the loop's default executor; `??` checks block on the filesystem."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.resolve, raw)


def resolve(raw: RawLike, lookups: Optional[Lookups] = None) -> ResolvedPath:
    """Convenience wrapper: resolve `raw` against `lookups` (the running system by default)."""
    return PathRunner(lookups).resolve(raw)
