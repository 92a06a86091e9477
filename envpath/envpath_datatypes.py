"""
Defines the core data types for envpath expressions.

A raw expression is an ordered list of strings. Each string parses into a
segment: either a Literal, used verbatim, or a Directive, which names a
fallback chain of candidates to look up at resolution time.
"""

import collections.abc
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

__version__ = "0.1.0"


class ExpressionSyntaxError(Exception):
    """Raised internally when an element looks like a directive but cannot be parsed."""
    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


# =================================================================
# Tagged variants
# =================================================================

class DirectiveKind(enum.Enum):
    ENV = "env"
    CONST = "const"
    DIR = "dir"
    PROJ = "proj"


class Strength(enum.Enum):
    """Test tier of a candidate: `?` checks the value, `??` also checks the path."""
    VALUE = "?"
    VALUE_AND_PATH = "??"


# =================================================================
# Raw form
# =================================================================

class RawExpression(collections.abc.Sequence):
    """The immutable, persisted form of a path expression.

    Order is significant: elements concatenate left to right into one path.
    """
    __slots__ = ("_items",)

    def __init__(self, items: Iterable[str] = ()):
        if isinstance(items, str):
            items = [items]
        collected = []
        for item in items:
            if not isinstance(item, str):
                raise TypeError(f"RawExpression items must be str, not {type(item).__name__}")
            collected.append(item)
        self._items: Tuple[str, ...] = tuple(collected)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return RawExpression(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RawExpression):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return list(self._items) == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"RawExpression({list(self._items)!r})"

    def to_list(self) -> List[str]:
        return list(self._items)


# =================================================================
# Parsed form
# =================================================================

class QualifierTriple:
    """A reverse-DNS project identity: (qualifier, organization, application)."""
    def __init__(self, qualifier: str, organization: str, application: str):
        self.qualifier = qualifier
        self.organization = organization
        self.application = application

    @property
    def name(self) -> str:
        return ".".join(p for p in (self.qualifier, self.organization, self.application) if p)

    def __iter__(self):
        return iter((self.qualifier, self.organization, self.application))

    def __repr__(self) -> str:
        return f"QualifierTriple({self.qualifier!r}, {self.organization!r}, {self.application!r})"

    def __eq__(self, other):
        return isinstance(other, QualifierTriple) and tuple(self) == tuple(other)

    def __hash__(self):
        return hash(tuple(self))


class Candidate:
    """One entry of a fallback chain.

    `namespace` is set only when the entry uses the remix form (`dir * cfg`);
    otherwise the directive's own kind applies. `raw` identifiers are passed
    to the lookup unchanged.
    """
    def __init__(self, identifier: str, strength: Strength = Strength.VALUE,
                 namespace: Optional[DirectiveKind] = None, raw: bool = False,
                 project: Optional[QualifierTriple] = None):
        self.identifier = identifier
        self.strength = strength
        self.namespace = namespace
        self.raw = raw
        self.project = project

    def __repr__(self) -> str:
        ns = f"{self.namespace.value} * " if self.namespace else ""
        return f"Candidate<{ns}{self.identifier!r} {self.strength.value}>"

    def __eq__(self, other):
        return (
            isinstance(other, Candidate) and
            self.identifier == other.identifier and
            self.strength == other.strength and
            self.namespace == other.namespace and
            self.raw == other.raw and
            self.project == other.project
        )


class ProjectGroup:
    """Candidates sharing one qualifier triple. Non-proj directives use a single group with no triple."""
    def __init__(self, triple: Optional[QualifierTriple], candidates: List[Candidate]):
        self.triple = triple
        self.candidates = list(candidates)

    def __repr__(self) -> str:
        return f"ProjectGroup({self.triple!r}, {self.candidates!r})"

    def __eq__(self, other):
        return isinstance(other, ProjectGroup) and self.triple == other.triple and self.candidates == other.candidates


class Segment:
    """Base class for the parse of one raw element."""
    text: str


class Literal(Segment):
    """An element used verbatim."""
    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"Literal({self.text!r})"

    def __eq__(self, other):
        return isinstance(other, Literal) and self.text == other.text


class Directive(Segment):
    """A recognized directive with its fallback chain, split into project groups."""
    def __init__(self, kind: DirectiveKind, groups: List[ProjectGroup], text: str = ""):
        if not groups or not any(g.candidates for g in groups):
            raise ValueError("Directive must have at least one candidate.")
        self.kind = kind
        self.groups = list(groups)
        self.text = text

    def candidates(self):
        """Yields (triple, candidate) pairs in evaluation order."""
        for group in self.groups:
            for cand in group.candidates:
                yield group.triple, cand

    def __repr__(self) -> str:
        return f"Directive({self.kind.value}, {self.groups!r})"

    def __eq__(self, other):
        return isinstance(other, Directive) and self.kind == other.kind and self.groups == other.groups


# =================================================================
# Resolution results
# =================================================================

@dataclass(frozen=True)
class ResolvedPath:
    """A raw expression together with the path it resolved to.

    `path` is None until resolution runs, and for an empty raw array.
    Only `raw` is ever persisted.
    """
    raw: RawExpression
    path: Optional[Path] = None

    @classmethod
    def unresolved(cls, raw: Iterable[str]) -> 'ResolvedPath':
        return cls(raw if isinstance(raw, RawExpression) else RawExpression(raw))

    def display(self) -> str:
        return "" if self.path is None else str(self.path)

    def exists(self) -> bool:
        from envpath.envpath_fs import path_exists
        return path_exists(self.path)

    def is_dir(self) -> bool:
        from envpath.envpath_fs import path_is_dir
        return path_is_dir(self.path)

    def is_file(self) -> bool:
        from envpath.envpath_fs import path_is_file
        return path_is_file(self.path)

    def metadata(self):
        from envpath.envpath_fs import path_metadata
        return path_metadata(self.path)


@dataclass
class SegmentOutcome:
    """How one raw element contributed to the assembled path."""
    text: str
    segment: Segment
    winner: Optional[Candidate] = None
    contribution: str = ""

    @property
    def resolved(self) -> bool:
        return self.winner is not None


@dataclass
class ResolveResult:
    """The resolved path plus a per-element account of how it was built."""
    resolved: ResolvedPath
    outcomes: List[SegmentOutcome] = field(default_factory=list)

    @property
    def path(self) -> Optional[Path]:
        return self.resolved.path
