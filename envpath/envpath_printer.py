"""
A pretty-printer for envpath segments and results.
"""
import json

from envpath.envpath_datatypes import (
    Candidate, Directive, DirectiveKind, Literal, QualifierTriple, RawExpression,
    ResolvedPath, ResolveResult, SegmentOutcome, Strength,
)


class Printer:
    """Formats parsed segments back into canonical expression text.

    Canonical text parses to an equal segment: `$env: home ?? temp`.
    """

    def __init__(self, sep=" ? ", strong_sep=" ?? "):
        self._sep = sep
        self._strong_sep = strong_sep
        self._handlers = self._create_handlers()

    def pformat(self, obj):
        """Public entry point to format an object."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            return repr(obj)
        return handler(obj)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            Literal: self._pformat_literal,
            Directive: self._pformat_directive,
            Candidate: self._pformat_candidate,
            QualifierTriple: self._pformat_triple,
            RawExpression: self._pformat_raw,
            ResolvedPath: self._pformat_resolved,
            SegmentOutcome: self._pformat_outcome,
            ResolveResult: self._pformat_result,
        }

    def _pformat_str(self, obj):
        return obj

    def _pformat_literal(self, obj):
        return obj.text

    def _pformat_triple(self, obj):
        if not obj.organization:
            if obj.qualifier == obj.application:
                return f"({obj.application})"
            return f"({obj.qualifier}.{obj.application})"
        return f"({obj.qualifier}.{obj.organization}.{obj.application})"

    def _pformat_candidate(self, obj):
        if obj.namespace is DirectiveKind.PROJ:
            return f"proj * {self._pformat_triple(obj.project)}: {obj.identifier}"
        if obj.namespace is not None:
            return f"{obj.namespace.value} * {obj.identifier}"
        return obj.identifier

    def _join_chain(self, pieces):
        """pieces: list of (text, strength); the marker trails what it qualifies."""
        out = []
        for i, (text, strength) in enumerate(pieces):
            out.append(text)
            last = i == len(pieces) - 1
            if strength is Strength.VALUE_AND_PATH:
                out.append(self._strong_sep.rstrip() if last else self._strong_sep)
            elif not last:
                out.append(self._sep)
        return "".join(out)

    def _is_top_level_remix(self, obj):
        cands = [c for _, c in obj.candidates()]
        return cands[0].namespace is obj.kind and all(c.raw for c in cands)

    def _pformat_directive(self, obj):
        if self._is_top_level_remix(obj):
            pieces = [(self._pformat_candidate(c), c.strength) for _, c in obj.candidates()]
            return self._join_chain(pieces)

        if obj.kind is not DirectiveKind.PROJ:
            pieces = [(self._pformat_candidate(c), c.strength) for _, c in obj.candidates()]
            return f"${obj.kind.value}: {self._join_chain(pieces)}"

        pieces = []
        for n, group in enumerate(obj.groups):
            for i, cand in enumerate(group.candidates):
                text = self._pformat_candidate(cand)
                if n > 0 and i == 0:
                    text = f"{self._pformat_triple(group.triple)}: {text}"
                pieces.append((text, cand.strength))
        head = self._pformat_triple(obj.groups[0].triple)
        return f"$proj{head}: {self._join_chain(pieces)}"

    def _pformat_raw(self, obj):
        return json.dumps(obj.to_list(), ensure_ascii=False)

    def _pformat_resolved(self, obj):
        return obj.display()

    def _pformat_outcome(self, obj):
        if obj.winner is None:
            how = "literal" if isinstance(obj.segment, Literal) else "unresolved, kept as text"
        else:
            how = f"via {self._pformat_candidate(obj.winner)}"
        return f"{obj.text!r} -> {obj.contribution!r} ({how})"

    def _pformat_result(self, obj):
        lines = [self._pformat_outcome(o) for o in obj.outcomes]
        lines.append(f"=> {obj.resolved.display()}")
        return "\n".join(lines)
