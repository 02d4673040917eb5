"""rosettegrid command-line interface."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .io import load_project, save_mechanism, save_project, validate_project_payload
from .models import BranchOrder, LatticeKind, TessellationSymmetry
from .project import ProjectState, clamp_project_state, default_project_state


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="rosettegrid CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Write a default project file")
    init.add_argument("--out", dest="output_path", required=True)

    validate = sub.add_parser("validate", help="Validate a project file")
    validate.add_argument("--in", dest="input_path", required=True)

    lattice = sub.add_parser("lattice", help="List lattice cells as JSON")
    lattice.add_argument("--kind", choices=[k.value for k in LatticeKind], default="hex")
    lattice.add_argument("--rings", type=int, required=True)
    lattice.add_argument("--spacing", type=float, default=220.0)
    lattice.add_argument("--out", dest="output_path")

    mechanism = sub.add_parser("mechanism", help="Build a tessellation mechanism")
    _add_project_args(mechanism)
    mechanism.add_argument("--out", dest="output_path")
    mechanism.add_argument("--report", action="store_true", help="Print a diagnostics summary")

    render = sub.add_parser("render", help="Render a project to PNG")
    _add_project_args(render)
    render.add_argument("--out", dest="output_path", required=True)
    render.add_argument("--level", choices=["rosette", "tiling"], default="tiling")
    render.add_argument("--no-edges", action="store_true")
    render.add_argument("--dpi", type=int, default=150)

    return parser


def _add_project_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--project", dest="project_path", help="Project JSON (defaults if omitted)")
    parser.add_argument("--order", type=int)
    parser.add_argument("--kind", choices=[k.value for k in LatticeKind])
    parser.add_argument("--rings", type=int)
    parser.add_argument("--spacing", type=float)
    parser.add_argument("--symmetry", choices=[s.value for s in TessellationSymmetry])
    parser.add_argument("--branch-order", choices=[b.value for b in BranchOrder])
    parser.add_argument("--base-orientation", type=float, help="Degrees")
    parser.add_argument("--inter-cell-rotation", type=float, help="Degrees")
    parser.add_argument("--fold-progress", type=float)
    parser.add_argument("--fixed-cell")
    parser.add_argument("--clamp", action="store_true", help="Snap/clamp inputs to editor ranges")


def _project_from_args(args) -> ProjectState:
    state = load_project(args.project_path) if args.project_path else default_project_state()
    overrides = {
        "order": args.order,
        "lattice_kind": LatticeKind(args.kind) if args.kind else None,
        "tiling_rings": args.rings,
        "tiling_spacing": args.spacing,
        "symmetry": TessellationSymmetry(args.symmetry) if args.symmetry else None,
        "branch_order": BranchOrder(args.branch_order) if args.branch_order else None,
        "base_orientation_deg": args.base_orientation,
        "inter_cell_rotation_deg": args.inter_cell_rotation,
        "fold_progress": args.fold_progress,
        "fixed_cell_id": args.fixed_cell,
    }
    state = replace(state, **{k: v for k, v in overrides.items() if v is not None})
    return clamp_project_state(state) if args.clamp else state


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "init":
            save_project(default_project_state(), args.output_path)
            print(f"Saved {args.output_path}")

        elif args.command == "validate":
            _cmd_validate(args)

        elif args.command == "lattice":
            _cmd_lattice(args)

        elif args.command == "mechanism":
            _cmd_mechanism(args)

        elif args.command == "render":
            _cmd_render(args)
    except (ValueError, OSError, RuntimeError) as exc:
        print(exc)
        raise SystemExit(1)


def _cmd_validate(args) -> None:
    payload = json.loads(Path(args.input_path).read_text(encoding="utf-8"))
    errors = validate_project_payload(payload)
    if errors:
        for error in errors:
            print(error)
        raise SystemExit(1)
    print("OK")


def _cmd_lattice(args) -> None:
    from .lattice import build_lattice

    cells = build_lattice(args.kind, args.rings, args.spacing)
    text = json.dumps([cell.to_dict() for cell in cells], indent=2)
    if args.output_path:
        Path(args.output_path).write_text(text, encoding="utf-8")
        print(f"Saved {args.output_path} ({len(cells)} cells)")
    else:
        print(text)


def _cmd_mechanism(args) -> None:
    from .diagnostics import mechanism_report
    from .project import derive_geometry

    state = _project_from_args(args)
    mechanism = derive_geometry(state).mechanism
    if args.output_path:
        save_mechanism(mechanism, args.output_path)
        print(f"Saved {args.output_path}")
    else:
        print(json.dumps(mechanism.to_dict(), indent=2))
    if args.report:
        report = mechanism_report(mechanism, order=state.order, symmetry=state.symmetry)
        print(json.dumps(report, indent=2))
        if report["errors"]:
            raise SystemExit(1)


def _cmd_render(args) -> None:
    from .project import derive_geometry
    from .render import render_mechanism_png, render_rosette_png

    state = _project_from_args(args)
    tiling = args.level == "tiling"
    geometry = derive_geometry(state, include_tessellation=tiling)
    if tiling:
        render_mechanism_png(
            geometry.mechanism,
            geometry.rosette_curves,
            args.output_path,
            linewidth=state.line_thickness,
            show_edges=not args.no_edges,
            dpi=args.dpi,
        )
    else:
        render_rosette_png(
            geometry.rosette_curves,
            args.output_path,
            linewidth=state.line_thickness,
            dpi=args.dpi,
        )
    print(f"Saved {args.output_path}")


if __name__ == "__main__":
    main()
