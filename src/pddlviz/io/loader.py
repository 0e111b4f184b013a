"""
Source loading: PDDL text from disk or from the packaged example assets, and
structured Domain/Problem payloads (YAML or JSON) in the parsing-service shape.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union
from importlib.resources import files as pkg_files

import yaml

from pddlviz.pddl.model import Domain, Problem

logger = logging.getLogger(__name__)

STRUCTURED_SUFFIXES = {".yaml", ".yml", ".json"}


# =========================
#  Asset I/O helpers
# =========================

def _strip_leading(part: Path, prefix: str) -> Path:
    parts = part.parts
    if parts and parts[0] == prefix:
        return Path(*parts[1:])
    return part


def _resolve(path: str):
    """Return a readable handle for `path`, on disk first, then under pddlviz.assets.examples."""
    p = Path(path)
    if p.exists():
        return p
    rel = _strip_leading(Path(path), "examples")
    cand = pkg_files("pddlviz.assets.examples") / str(rel)
    if cand.is_file():
        logger.debug(f"Using packaged example {rel}")
        return cand
    raise FileNotFoundError(
        f"Source not found: {path} (looked on disk and under pddlviz.assets.examples/{rel})"
    )


def is_structured(path: str) -> bool:
    return Path(path).suffix.lower() in STRUCTURED_SUFFIXES


def load_text(path: str) -> str:
    with _resolve(path).open("r", encoding="utf-8") as f:
        return f.read()


def _load_payload(path: str) -> Dict[str, Any]:
    handle = _resolve(path)
    with handle.open("r", encoding="utf-8") as f:
        if Path(str(path)).suffix.lower() == ".json":
            y = json.load(f)
        else:
            y = yaml.safe_load(f)
    if not isinstance(y, dict):
        raise ValueError(f"Structured source {path} must contain a mapping.")
    return y


def load_structured(path: str) -> Union[Domain, Problem]:
    """
    Build a Domain or Problem from a payload. A payload is a problem when it
    carries an `objects` list or a `domain_name`; otherwise it is a domain.
    Either may be wrapped as `{"domain": {...}}` / `{"problem": {...}}`.
    """
    y = _load_payload(path)
    if isinstance(y.get("problem"), dict):
        return Problem.from_dict(y["problem"])
    if isinstance(y.get("domain"), dict):
        return Domain.from_dict(y["domain"])
    if "objects" in y or "domain_name" in y:
        return Problem.from_dict(y)
    return Domain.from_dict(y)
