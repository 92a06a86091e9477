"""
Low-level scanning of raw elements: separator style detection, prefix and
chain splitting, and identifier normalization.
"""
import re
from typing import List, NamedTuple, Optional, Tuple

from envpath.envpath_datatypes import DirectiveKind, Strength

HALF_COLON = ":"
FULL_COLON = "："
HALF_QM = "?"
FULL_QM = "？"

_REMIX_RE = re.compile(r"^(env|const|dir|proj)\*(.*)$", re.DOTALL)
_TOP_PREFIX_RE = re.compile(r"^\$(env|const|dir|proj|project)(?![a-z])")


class ChainToken(NamedTuple):
    text: str
    strength: Strength


def strip_ws(text: str) -> str:
    """Removes every whitespace character, inside and around."""
    return "".join(text.split())


def detect_style(text: str, half: str, full: str) -> Optional[str]:
    """Returns whichever of `half`/`full` occurs first in `text`, or None."""
    h = text.find(half)
    f = text.find(full)
    if h < 0 and f < 0:
        return None
    if f < 0 or (0 <= h < f):
        return half
    return full


def colon_style(text: str) -> Optional[str]:
    return detect_style(text, HALF_COLON, FULL_COLON)


def question_style(text: str) -> Optional[str]:
    return detect_style(text, HALF_QM, FULL_QM)


def split_prefix(element: str) -> Optional[Tuple[str, str, str]]:
    """Splits `$kind: chain` at the first colon of the element's colon style.

    Returns (prefix, chain, colon) with whitespace removed from the prefix,
    or None if the element has no colon at all.
    """
    colon = colon_style(element)
    if colon is None:
        return None
    prefix, rest = element.split(colon, 1)
    return strip_ws(prefix), rest, colon


def split_chain(chain: str, qm: Optional[str] = None) -> List[ChainToken]:
    """Splits a fallback chain into tokens.

    An empty piece between two separators is the second half of `??` and
    upgrades the preceding candidate to VALUE_AND_PATH. Leading empty pieces
    qualify nothing and are dropped.
    """
    if qm is None:
        qm = question_style(chain)
    if qm is None:
        text = strip_ws(chain)
        return [ChainToken(text, Strength.VALUE)] if text else []

    pieces = [strip_ws(p) for p in chain.split(qm)]
    # A single trailing `?` leaves one empty piece that qualifies nothing.
    if len(pieces) > 1 and pieces[-1] == "" and pieces[-2] != "":
        pieces.pop()

    tokens: List[ChainToken] = []
    for piece in pieces:
        if piece:
            tokens.append(ChainToken(piece, Strength.VALUE))
        elif tokens:
            tokens[-1] = ChainToken(tokens[-1].text, Strength.VALUE_AND_PATH)
    return tokens


def match_remix(token: str) -> Optional[Tuple[DirectiveKind, str]]:
    """Recognizes `kind*ident` (whitespace already removed)."""
    m = _REMIX_RE.match(token)
    if not m:
        return None
    return DirectiveKind(m.group(1)), m.group(2)


def starts_top_level_prefix(token: str) -> bool:
    """True for tokens such as `$env:home` that open a directive of their own."""
    return _TOP_PREFIX_RE.match(token) is not None


def normalize_identifier(identifier: str, kind: DirectiveKind) -> str:
    """Canonicalizes a bare identifier into its lookup key.

    Environment names follow the POSIX convention (`xdg-data-home` ->
    `XDG_DATA_HOME`); table keys are lower-cased (`Local-Data` -> `local_data`).
    """
    ident = strip_ws(identifier).replace("-", "_")
    if kind is DirectiveKind.ENV:
        return ident.upper()
    return ident.lower()
