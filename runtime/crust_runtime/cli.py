"""
Headless runner: load sprite scripts, tick them, optionally dump state.

    crust-run player.crst enemy.crst --ticks 120 --json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from .config import RuntimeConfig, SCHEDULING_POLICIES
from .errors import CrustError
from .project import Project
from .sprite import Sprite
from .values import Closure, to_string


def _json_value(value: Any, active: FrozenSet[int] = frozenset()) -> Any:
    if isinstance(value, (list, dict)):
        if id(value) in active:
            return "..."
        active = active | {id(value)}
        if isinstance(value, list):
            return [_json_value(v, active) for v in value]
        return {k: _json_value(v, active) for k, v in value.items()}
    if isinstance(value, Closure):
        return to_string(value)
    return value


def describe_sprite(sprite: Sprite) -> Dict[str, Any]:
    return {
        'name': sprite.name,
        'x': sprite.x,
        'y': sprite.y,
        'direction': sprite.direction,
        'visible': sprite.visible,
        'variables': _json_value(sprite.variables),
        'clones': [describe_sprite(clone) for clone in sprite.clones],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run Crust sprite scripts without a window.")
    parser.add_argument("scripts", nargs="+", help="Sprite script files; each becomes one sprite.")
    parser.add_argument("--ticks", type=int, default=60, help="Number of ticks to run (default: 60).")
    parser.add_argument("--scheduling", choices=SCHEDULING_POLICIES, default="cursor",
                        help="How suspended scripts resume (default: cursor).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for random().")
    parser.add_argument("--base-dir", default=None,
                        help="Directory imports and read() resolve against (default: first script's directory).")
    parser.add_argument("--json", action="store_true", help="Print final sprite state as JSON.")
    parser.add_argument("--quiet", action="store_true", help="Do not echo diagnostics.")
    parser.add_argument("--arg", dest="script_args", action="append", default=[],
                        help="Argument exposed to scripts through args(); repeatable.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    for script in args.scripts:
        if not Path(script).is_file():
            print(f"Error: File '{script}' not found.", file=sys.stderr)
            return 1

    config = RuntimeConfig(
        scheduling=args.scheduling,
        seed=args.seed,
        echo_diagnostics=not args.quiet,
        base_dir=args.base_dir or str(Path(args.scripts[0]).parent),
        args=args.script_args,
    )
    project = Project(config)
    try:
        for script in args.scripts:
            project.load_sprite(script)
    except CrustError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    project.run(args.ticks)

    if args.json:
        print(json.dumps({
            'ticks': project.frame_count,
            'globals': _json_value(project.globals),
            'sprites': [describe_sprite(s) for s in project.sprites],
            'diagnostics': len(project.diagnostics),
        }, indent=4))
    return 0


if __name__ == '__main__':
    sys.exit(main())
