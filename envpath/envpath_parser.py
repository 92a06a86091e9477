"""
Turns raw elements into segments.

Every element goes through `parse_element`, which consults one dispatch
table keyed by prefix head. Anything that is not a well-formed directive
comes back as a Literal; parse failures never escape this module.
"""
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional

from envpath.envpath_datatypes import (
    Candidate, Directive, DirectiveKind, ExpressionSyntaxError, Literal,
    ProjectGroup, QualifierTriple, Segment,
)
from envpath.envpath_tokenizer import (
    ChainToken, HALF_COLON, colon_style, match_remix, normalize_identifier,
    split_chain, split_prefix, starts_top_level_prefix, strip_ws,
)

logger = logging.getLogger(__name__)

_HEAD_RE = re.compile(r"^\$([a-z]+)")
_PROJ_PREFIX_RE = re.compile(r"^\$(?:proj|project)\((.*)\)$", re.DOTALL)


# -----------------------------------------------------------------
# Qualifier triples
# -----------------------------------------------------------------

def parse_qualifier(content: str) -> QualifierTriple:
    """Parses the inside of `( ... )` into a QualifierTriple.

    `com.x.y` -> (com, x, y). Fewer parts are padded, extra parts are
    concatenated into the application name.
    """
    parts = [strip_ws(p) for p in content.split(".")]
    if not content.strip() or any(p == "" for p in parts):
        raise ExpressionSyntaxError(f"malformed qualifier triple: {content!r}", content)
    if "(" in content or ")" in content:
        raise ExpressionSyntaxError(f"unbalanced parenthesis in qualifier: {content!r}", content)
    match len(parts):
        case 1:
            return QualifierTriple(parts[0], "", parts[0])
        case 2:
            return QualifierTriple(parts[0], "", parts[1])
        case 3:
            return QualifierTriple(parts[0], parts[1], parts[2])
        case _:
            return QualifierTriple(parts[0], parts[1], "".join(parts[2:]))


def _parse_group_header(header: str) -> QualifierTriple:
    """Accepts `(q.o.a)` or bare `q.o.a`."""
    if header.startswith("(") or header.endswith(")"):
        if not (header.startswith("(") and header.endswith(")")):
            raise ExpressionSyntaxError(f"unbalanced parenthesis: {header!r}", header)
        header = header[1:-1]
    return parse_qualifier(header)


def _split_key(text: str, colon: str):
    if colon not in text:
        raise ExpressionSyntaxError(f"expected {colon!r} in {text!r}", text)
    head, key = text.split(colon, 1)
    if not key:
        raise ExpressionSyntaxError(f"missing key after {colon!r} in {text!r}", text)
    return head, key


# -----------------------------------------------------------------
# Candidates
# -----------------------------------------------------------------

def _build_candidate(token: ChainToken, kind: DirectiveKind, colon: str, raw: bool) -> Candidate:
    text = token.text
    if starts_top_level_prefix(text):
        raise ExpressionSyntaxError(f"nested top-level directive {text!r} in a fallback chain", text)
    remix = match_remix(text)
    if remix is not None:
        ns, ident = remix
        if not ident:
            raise ExpressionSyntaxError(f"remix form without identifier: {text!r}", text)
        if ns is DirectiveKind.PROJ:
            head, key = _split_key(ident, colon)
            return Candidate(key, token.strength, namespace=ns, raw=True,
                             project=_parse_group_header(head))
        return Candidate(ident, token.strength, namespace=ns, raw=True)
    if raw:
        return Candidate(text, token.strength, raw=True)
    return Candidate(normalize_identifier(text, kind), token.strength)


def _build_chain(tokens: List[ChainToken], kind: DirectiveKind, colon: str, raw: bool = False) -> List[Candidate]:
    if not tokens:
        raise ExpressionSyntaxError("empty fallback chain")
    return [_build_candidate(t, kind, colon, raw) for t in tokens]


def _is_group_header(token: ChainToken, colon: str) -> bool:
    return colon in token.text and match_remix(token.text) is None


# -----------------------------------------------------------------
# Directive builders (the dispatch table)
# -----------------------------------------------------------------

def _simple_builder(kind: DirectiveKind) -> Callable[[str, str, str, str], Directive]:
    def build(prefix: str, chain: str, colon: str, element: str) -> Directive:
        if prefix != f"${kind.value}":
            raise ExpressionSyntaxError(f"unexpected text in prefix {prefix!r}", element)
        candidates = _build_chain(split_chain(chain), kind, colon)
        return Directive(kind, [ProjectGroup(None, candidates)], element)
    return build


def _build_project(prefix: str, chain: str, colon: str, element: str) -> Directive:
    m = _PROJ_PREFIX_RE.match(prefix)
    if not m:
        raise ExpressionSyntaxError(f"project prefix needs a qualifier: {prefix!r}", element)
    triple = _parse_group_header(f"({m.group(1)})")

    groups: List[ProjectGroup] = [ProjectGroup(triple, [])]
    for token in split_chain(chain):
        if _is_group_header(token, colon):
            head, key = _split_key(token.text, colon)
            new_triple = _parse_group_header(head)
            first = _build_candidate(ChainToken(key, token.strength), DirectiveKind.PROJ, colon, False)
            groups.append(ProjectGroup(new_triple, [first]))
            continue
        groups[-1].candidates.append(_build_candidate(token, DirectiveKind.PROJ, colon, False))

    groups = [g for g in groups if g.candidates]
    if not groups:
        raise ExpressionSyntaxError("empty fallback chain", element)
    return Directive(DirectiveKind.PROJ, groups, element)


PREFIX_BUILDERS: Dict[str, Callable[[str, str, str, str], Directive]] = {
    "env": _simple_builder(DirectiveKind.ENV),
    "const": _simple_builder(DirectiveKind.CONST),
    "dir": _simple_builder(DirectiveKind.DIR),
    "proj": _build_project,
    "project": _build_project,
}


def _parse_remix_element(element: str) -> Optional[Directive]:
    """Top-level `kind * ident ? ...`: every un-overridden candidate is raw."""
    compact = strip_ws(element)
    remix = match_remix(compact)
    if remix is None:
        return None
    kind, _ = remix
    colon = colon_style(element) or HALF_COLON
    # The first token carries the `kind *` marker itself.
    candidates = _build_chain(split_chain(element), kind, colon, raw=True)
    if kind is DirectiveKind.PROJ:
        last_project = None
        for cand in candidates:
            if cand.project is not None:
                last_project = cand.project
            elif cand.namespace is None:
                cand.project = last_project
    return Directive(kind, [ProjectGroup(None, candidates)], element)


def _parse_directive(element: str) -> Optional[Directive]:
    remix = _parse_remix_element(element)
    if remix is not None:
        return remix

    split = split_prefix(element)
    if split is None:
        return None
    prefix, chain, colon = split
    head = _HEAD_RE.match(prefix)
    if head is None:
        return None
    builder = PREFIX_BUILDERS.get(head.group(1))
    if builder is None:
        return None
    return builder(prefix, chain, colon, element)


def parse_element(element: str) -> Segment:
    """Parses one raw element. Never raises for string input."""
    try:
        directive = _parse_directive(element)
    except ExpressionSyntaxError as e:
        logger.debug("treating %r as literal: %s", element, e)
        return Literal(element)
    if directive is None:
        return Literal(element)
    return directive


def parse_expression(raw: Iterable[str]) -> List[Segment]:
    return [parse_element(element) for element in raw]
