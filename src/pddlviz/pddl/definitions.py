import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import NoDefinitionsError
from .sexpr import SExpr

logger = logging.getLogger(__name__)


class DefinitionKind(str, Enum):
    DOMAIN = "domain"
    PROBLEM = "problem"
    UNKNOWN = "unknown"


@dataclass
class Definition:
    kind: DefinitionKind
    segments: List[SExpr]
    expr: List[SExpr]
    name: Optional[str] = None
    header_index: Optional[int] = None

    def body(self) -> List[SExpr]:
        """Segments other than the `(domain ...)`/`(problem ...)` header."""
        return [s for i, s in enumerate(self.segments) if i != self.header_index]


_HEADERS = {"domain": DefinitionKind.DOMAIN, "problem": DefinitionKind.PROBLEM}


def classify_definition(expr: SExpr) -> Optional[Definition]:
    """Classify one top-level list; returns None when it is not a `(define ...)`."""
    if not isinstance(expr, list) or not expr:
        return None
    head = expr[0]
    if not isinstance(head, str) or head.lower() != "define":
        return None

    segments = expr[1:]
    for index, segment in enumerate(segments):
        if not isinstance(segment, list) or not segment:
            continue
        seg_head = segment[0]
        if not isinstance(seg_head, str) or seg_head.startswith(":"):
            continue
        kind = _HEADERS.get(seg_head.lower())
        if kind is None:
            continue
        name = segment[1] if len(segment) > 1 and isinstance(segment[1], str) else None
        return Definition(kind, segments, expr, name=name, header_index=index)

    return Definition(DefinitionKind.UNKNOWN, segments, expr)


def classify_all(exprs: List[SExpr]) -> List[Definition]:
    definitions = [d for d in (classify_definition(e) for e in exprs) if d is not None]
    if not definitions:
        raise NoDefinitionsError()
    for d in definitions:
        if d.kind is DefinitionKind.UNKNOWN:
            logger.warning("Definition without a domain/problem header; rendering it generically.")
    summary = ", ".join(f"{d.kind.value}:{d.name or '?'}" for d in definitions)
    logger.debug(f"Classified {len(definitions)} definition(s): {summary}")
    return definitions
