"""Command line interface for levelchunk."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    SessionOptions,
    apply_script,
    clone_level_flat,
    inspect_level,
    load_level,
    reindex_level,
    resource_kind,
    save_level,
    validate_level,
    verify_level,
)
from .codec.errors import (
    CapacityError,
    ConsistencyError,
    EditError,
    FormatError,
    LevelError,
)
from .codec.tree import chunk_name, walk
from .logging import configure_logging, step
from .reporting import (
    get_reporter,
    make_reporter,
    set_reporter,
    set_verbosity,
)
from .script.loader import ScriptValidationError

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_FORMAT = 2


def _save(level, output: Path) -> int:
    result = save_level(level, output)
    get_reporter().status(
        f"Save summary: file={result.output_file.name} "
        f"bytes={result.bytes_written} free={result.trailing_zero_bytes}"
    )
    return EXIT_OK


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_level(args.level)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
        return EXIT_OK
    rep.section(f"Level {args.level.name}")
    cap = info["capacity"]
    rep.status(
        f"size={info['file_size']} body={info['body_size']} "
        f"free={cap['trailing_zero_bytes']} sections={','.join(info['sections'])}"
    )
    for flat in info["flats"]:
        solid = "solid" if flat["flags"]["a"] else "plain"
        w, h = flat["size"]
        rep.status(f"flat [{flat['id']}] {flat['name']} {w}x{h} {solid}")
    for name, arena in info["arenas"].items():
        rep.status(
            f"{arena['name']}: {arena['count']} entries, {arena['used']} used, "
            f"{arena['distinct']} distinct"
        )
    return EXIT_OK


def _tree_cmd(args: argparse.Namespace) -> int:
    level = load_level(args.level, SessionOptions(verify_roundtrip=False))
    for depth, chunk in walk(level):
        if depth <= args.depth:
            print("  " * depth + chunk_name(chunk))
    return EXIT_OK


def _validate_cmd(args: argparse.Namespace) -> int:
    step(f"validating {args.level.name}")
    issues = validate_level(args.level)
    rep = get_reporter()
    for issue in issues:
        rep.warning(issue)
    rep.status(f"Validation summary: issues={len(issues)}")
    return EXIT_ISSUES if issues else EXIT_OK


def _verify_cmd(args: argparse.Namespace) -> int:
    level = load_level(args.level, SessionOptions(verify_roundtrip=True))
    failures = verify_level(level)
    rep = get_reporter()
    for failure in failures:
        rep.error(failure)
    rep.status(
        f"Verify summary: flats={len(level.flats)} failures={len(failures)}"
    )
    return EXIT_ISSUES if failures else EXIT_OK


def _reindex_cmd(args: argparse.Namespace) -> int:
    level = load_level(args.level)
    reindex_level(level, resource_kind(args.resource))
    return _save(level, args.output)


def _clone_cmd(args: argparse.Namespace) -> int:
    level = load_level(args.level)
    clone_level_flat(level, args.flat_id)
    return _save(level, args.output)


def _apply_cmd(args: argparse.Namespace) -> int:
    level = load_level(args.level)
    results = apply_script(level, args.script)
    get_reporter().status(f"Script summary: operations={len(results)}")
    return _save(level, args.output)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="levelchunk", description="Level file inspection and editing"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, silent",
    )
    p.add_argument(
        "--json-errors",
        action="store_true",
        help="Also print failures as JSON on stdout",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("inspect", help="Summarise a level file")
    i.add_argument("level", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON summary")
    i.set_defaults(func=_inspect_cmd)

    t = sub.add_parser("tree", help="Print the chunk tree")
    t.add_argument("level", type=Path)
    t.add_argument(
        "--depth", type=int, default=2, help="Deepest level to print (default: 2)"
    )
    t.set_defaults(func=_tree_cmd)

    v = sub.add_parser("validate", help="Report problems in a level file")
    v.add_argument("level", type=Path)
    v.set_defaults(func=_validate_cmd)

    vf = sub.add_parser("verify", help="Round trip the file and every flat")
    vf.add_argument("level", type=Path)
    vf.set_defaults(func=_verify_cmd)

    r = sub.add_parser("reindex", help="Deduplicate a resource array")
    r.add_argument("level", type=Path)
    r.add_argument(
        "--resource",
        choices=["bump", "camera", "odd"],
        default="bump",
        help="Resource array to reindex (default: bump)",
    )
    r.add_argument("-o", "--output", type=Path, required=True)
    r.set_defaults(func=_reindex_cmd)

    c = sub.add_parser("clone", help="Append a copy of a flat")
    c.add_argument("level", type=Path)
    c.add_argument("flat_id", type=int)
    c.add_argument("-o", "--output", type=Path, required=True)
    c.set_defaults(func=_clone_cmd)

    a = sub.add_parser("apply", help="Apply a YAML/JSON edit script")
    a.add_argument("level", type=Path)
    a.add_argument("script", type=Path)
    a.add_argument("-o", "--output", type=Path, required=True)
    a.set_defaults(func=_apply_cmd)

    return p


def _select_reporter(requested: str) -> None:
    if requested == "rich" and not sys.stderr.isatty():
        # rich falls back to plain without a TTY
        requested = "plain"
    set_reporter(make_reporter(requested))


def _fail(args: argparse.Namespace, e: Exception) -> None:
    get_reporter().error(str(e))
    if not args.json_errors:
        return
    if isinstance(e, ScriptValidationError):
        payload = {"errors": [r.to_dict() for r in e.errors]}
    else:
        payload = {"errors": [e.to_dict()]}
    print(json.dumps(payload, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    _select_reporter(args.reporter)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    rep = get_reporter()
    try:
        return args.func(args)
    except (FormatError, ConsistencyError) as e:
        _fail(args, e)
        return EXIT_FORMAT
    except (CapacityError, EditError, ScriptValidationError) as e:
        _fail(args, e)
        return EXIT_ISSUES
    except LevelError as e:
        _fail(args, e)
        return EXIT_FORMAT
    finally:
        rep.flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
