from typing import Any, Dict, List, Optional, Union

from pddlviz.pddl.model import Domain, Problem
from pddlviz.pddl.parser import parse_pddl

from .action_graph import create_domain_graph
from .config import LayoutConfig
from .elements import Element
from .problem_graph import create_problem_graph
from .session import LayoutSession


def convert_domain_to_graph(
    domain: Domain,
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> List[Element]:
    return create_domain_graph(domain, session, config)


def convert_problem_to_graph(
    problem: Problem,
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> List[Element]:
    cfg = config or LayoutConfig()
    return create_problem_graph(problem, cfg.start_x, cfg.start_y, session, cfg).elements


def convert_structure_to_graph(
    structure: Union[Domain, Problem],
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> List[Element]:
    if isinstance(structure, Domain):
        return convert_domain_to_graph(structure, session, config)
    if isinstance(structure, Problem):
        return convert_problem_to_graph(structure, session, config)
    raise TypeError(f"Expected a Domain or Problem, got {type(structure).__name__}")


def convert_text_to_graph(
    text: str,
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> List[Element]:
    """Parse `text` and lay out its primary definition. Parse errors propagate."""
    return convert_structure_to_graph(parse_pddl(text), session, config)


def elements_to_dicts(elements: List[Element]) -> List[Dict[str, Any]]:
    return [e.to_dict() for e in elements]
