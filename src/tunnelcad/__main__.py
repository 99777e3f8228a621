#!/usr/bin/env python3
"""
Command line for building tunnel geometry from design files.

Usage:
    python -m tunnelcad info DESIGN
    python -m tunnelcad build DESIGN -o OUTPUT.stl [--ascii] [sampling options]
    python -m tunnelcad plan DESIGN -o OUTPUT.dxf [--rings]

Examples:
    # Summarize a design and how many ring pairs it produces
    python -m tunnelcad info examples/portal.yaml

    # Sweep with finer arc sampling and write a binary STL
    python -m tunnelcad build examples/portal.yaml -o portal.stl --max-chord 1.0

    # Plan view of the axis with ring footprints
    python -m tunnelcad plan examples/portal.yaml -o portal.dxf --rings
"""

import argparse
import logging
import sys
from pathlib import Path

from tunnelcad.config import load_options, options_from_mapping
from tunnelcad.geometry_checks import check_segments
from tunnelcad.io.design import DesignFormatError, load_design
from tunnelcad.mesh import tube_mesh
from tunnelcad.sweep import sweep

logger = logging.getLogger(__name__)


def _overrides(args) -> dict:
    overrides = {}
    for name in ('max_chord', 'min_arc_steps', 'arc_step', 'axis_arc_step'):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if getattr(args, 'invert', False):
        overrides['invert_winding'] = True
    return overrides


def _load(args):
    base = load_options(args.config) if args.config else load_options()
    design = load_design(Path(args.file), base)
    overrides = _overrides(args)
    if overrides:
        design.options = options_from_mapping(overrides, design.options)
    logger.debug("loaded %s: %d axis segment(s), %d profile(s), %s",
                 args.file, len(design.axis), len(design.profiles), design.options)
    return design


def _sweep(design):
    return sweep(design.axis, design.height_assignments,
                 design.profile_assignments, design.profiles, design.options)


def cmd_info(args):
    """Print a summary of a design file."""
    design = _load(args)
    result = _sweep(design)

    print(f"Axis: {len(design.axis)} segment(s), length {design.total_length:.3f}")
    check = check_segments(design.axis)
    for warning in check.warnings:
        print(f"  Warning: {warning}")
    print(f"Profiles: {len(design.profiles)}")
    for profile_id, profile in design.profiles.items():
        label = f" ({profile.name})" if profile.name else ""
        print(f"  {profile_id}{label}: {len(profile.segments)} segment(s)")
        for warning in check_segments(profile.segments).warnings:
            print(f"    Warning: {warning}")
    print(f"Profile assignments: {len(design.profile_assignments)}")
    print(f"Height assignments: {len(design.height_assignments)}")
    print(f"Sample lengths: {len(result.sample_lengths)}")
    print(f"Sections: {result.section_count} built, {len(result.skipped)} skipped")
    for length_a, length_b in result.skipped:
        print(f"  Skipped: {length_a:.3f} .. {length_b:.3f}")
    return 0


def cmd_build(args):
    """Sweep a design and export the tube mesh to STL."""
    design = _load(args)
    result = _sweep(design)
    mesh = tube_mesh(result, invert=design.options.invert_winding)
    if mesh.is_empty:
        print("Error: design produced no geometry", file=sys.stderr)
        return 1

    output = Path(args.output)
    if output.exists() and not args.force:
        print(f"Error: {output} exists (use --force to overwrite)", file=sys.stderr)
        return 1

    from tunnelcad.io.stl import write_stl
    facets = write_stl(mesh, output, binary=not args.ascii, name=Path(args.file).stem)
    print(f"Exported {facets} facet(s) from {result.section_count} section(s) to: {output}")
    if result.skipped:
        print(f"Warning: {len(result.skipped)} range(s) skipped", file=sys.stderr)
    return 0


def cmd_plan(args):
    """Write a DXF plan view of the axis."""
    design = _load(args)

    rings = None
    if args.rings:
        result = _sweep(design)
        rings = [[(p.x, p.z) for p in section.profile1_points] for section in result.sections]

    from tunnelcad.io.dxf import write_plan_dxf
    path = write_plan_dxf(design.axis, args.output, rings)
    print(f"Exported to: {path}")
    return 0


def _add_sampling_args(parser):
    parser.add_argument('--max-chord', type=float, dest='max_chord',
                        help='Longest chord when sampling profile arcs')
    parser.add_argument('--min-arc-steps', type=int, dest='min_arc_steps',
                        help='Minimum number of steps per profile arc')
    parser.add_argument('--arc-step', type=float, dest='arc_step',
                        help='Longest ring spacing along axis arcs')
    parser.add_argument('--axis-arc-step', type=float, dest='axis_arc_step',
                        help='Largest angle (degrees) between rings along axis arcs')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='python -m tunnelcad',
        description='tunnelcad tunnel geometry builder',
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='Sweep options YAML file')

    subparsers = parser.add_subparsers(dest='action', required=True)

    info_parser = subparsers.add_parser('info', help='Summarize a design file')
    info_parser.add_argument('file', help='Design file (YAML or JSON)')
    _add_sampling_args(info_parser)

    build_parser_ = subparsers.add_parser('build', help='Sweep a design and export STL')
    build_parser_.add_argument('file', help='Design file (YAML or JSON)')
    build_parser_.add_argument('-o', '--output', required=True, metavar='FILE',
                               help='Output STL file')
    build_parser_.add_argument('--ascii', action='store_true', help='Write ASCII STL')
    build_parser_.add_argument('--invert', action='store_true',
                               help='Point mesh normals toward the axis')
    build_parser_.add_argument('-f', '--force', action='store_true',
                               help='Overwrite existing output')
    _add_sampling_args(build_parser_)

    plan_parser = subparsers.add_parser('plan', help='Write a DXF plan of the axis')
    plan_parser.add_argument('file', help='Design file (YAML or JSON)')
    plan_parser.add_argument('-o', '--output', required=True, metavar='FILE',
                             help='Output DXF file')
    plan_parser.add_argument('--rings', action='store_true',
                             help='Include ring footprints')
    _add_sampling_args(plan_parser)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    commands = {
        'info': cmd_info,
        'build': cmd_build,
        'plan': cmd_plan,
    }
    try:
        return commands[args.action](args)
    except (FileNotFoundError, DesignFormatError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
