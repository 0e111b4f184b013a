import logging
from typing import Union

from .definitions import classify_all
from .errors import NoDefinitionsError
from .model import Domain, PddlDocument, Problem, UnknownDefinition
from .sexpr import parse_many
from .structure import structure_definition

logger = logging.getLogger(__name__)


def parse_document(text: str) -> PddlDocument:
    """
    Parse every `(define ...)` form in `text`.

    Raises a PddlError subclass on the first failure; a malformed later
    definition aborts the whole parse.
    """
    exprs = parse_many(text)
    doc = PddlDocument()
    for definition in classify_all(exprs):
        result = structure_definition(definition)
        if isinstance(result, Domain):
            doc.domains.append(result)
        elif isinstance(result, Problem):
            doc.problems.append(result)
        elif isinstance(result, UnknownDefinition):
            doc.unknown.append(result)
    logger.debug(
        f"Parsed {len(doc.domains)} domain(s), {len(doc.problems)} problem(s), "
        f"{len(doc.unknown)} unclassified definition(s)"
    )
    return doc


def parse_pddl(text: str) -> Union[Domain, Problem]:
    """Return the primary definition: the first domain, else the first problem."""
    primary = parse_document(text).primary
    if primary is None:
        raise NoDefinitionsError("No domain or problem definition was found.")
    return primary
