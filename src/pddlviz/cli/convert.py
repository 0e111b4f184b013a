import argparse
import json
import logging
import sys

from pddlviz.graph.config import LayoutConfig
from pddlviz.graph.convert import convert_structure_to_graph, convert_text_to_graph, elements_to_dicts
from pddlviz.io.loader import is_structured, load_structured, load_text
from pddlviz.mindmap.outline import build_mind_map

logger = logging.getLogger("pddlviz.cli")

DEFAULT_SOURCE = "examples/robot-domain.pddl"


def run(args) -> dict:
    """Load `args.source` and return the JSON-ready result for the chosen mode."""
    config = LayoutConfig.from_yaml(args.config) if args.config else LayoutConfig()

    if is_structured(args.source):
        if args.mode == "mind":
            raise ValueError("Mind-map mode needs PDDL text, not a structured payload.")
        elements = convert_structure_to_graph(load_structured(args.source), config=config)
        return {"type": "graph", "elements": elements_to_dicts(elements)}

    text = load_text(args.source)
    if args.mode == "mind":
        return {"type": "mind", "root": build_mind_map(text).to_dict()}
    elements = convert_text_to_graph(text, config=config)
    return {"type": "graph", "elements": elements_to_dicts(elements)}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert PDDL into diagram elements (JSON).")
    parser.add_argument("source", nargs="?", default=DEFAULT_SOURCE,
                        help="PDDL file, YAML/JSON payload, or packaged example id")
    parser.add_argument("--mode", choices=("graph", "mind"), default="graph")
    parser.add_argument("--config", help="Layout YAML (top level or under 'layout:')")
    parser.add_argument("--output", "-o", help="Write JSON here instead of stdout")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = run(args)
    except (ValueError, OSError, TypeError) as exc:
        logger.debug("Conversion failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    payload = json.dumps(result, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
        logger.info(f"Wrote {args.output}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
