#!/usr/bin/env python3
"""
Command line inspection of bspCSG primitives.

Usage:
    python -m bspcsg SHAPE [shape options] [--dim] [--geom] [--check] [--stl FILE]

Examples:
    # Bounds of the default 10-segment cylinder
    python -m bspcsg cylinder --radius 10 --height 10 --dim

    # Full polygon dump, vertices and planes
    python -m bspcsg cylinder --geom

    # Hollow cube, checked for closedness and written to STL
    python -m bspcsg demo --check --stl hollow.stl
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bspcsg.geometry_checks import polygons_oriented, solid_watertight
from bspcsg.io.stl import write_stl
from bspcsg.primitives import cone, cube, cylinder, sphere
from bspcsg.solid import Solid

logger = logging.getLogger(__name__)

SHAPES = ('cylinder', 'cube', 'cone', 'sphere', 'demo')


def build_solid(args: argparse.Namespace) -> Solid:
    """Construct the solid named by ``args.shape``."""
    if args.shape == 'cylinder':
        return cylinder(args.radius, args.height, segments=args.segments, axis=args.axis)
    if args.shape == 'cone':
        return cone(args.radius, args.top_radius, args.height,
                    segments=args.segments, axis=args.axis)
    if args.shape == 'cube':
        return cube(args.size)
    if args.shape == 'sphere':
        return sphere(args.radius, slices=args.segments, stacks=args.stacks)
    if args.shape == 'demo':
        return cube(args.size) - cube(args.size / 2.0)
    raise ValueError(f'unsupported shape {args.shape!r}')


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bspcsg',
        description='Build a CSG primitive and inspect its bounds and geometry.')
    parser.add_argument('shape', choices=SHAPES, help='solid to build')
    parser.add_argument('--radius', type=float, default=10.0, help='radius (cylinder, cone base, sphere)')
    parser.add_argument('--top-radius', type=float, default=0.0, help='cone top radius')
    parser.add_argument('--height', type=float, default=10.0, help='height along the axis')
    parser.add_argument('--segments', type=int, default=10, help='angular segments')
    parser.add_argument('--stacks', type=int, default=8, help='sphere stacks')
    parser.add_argument('--size', type=float, default=2.0, help='cube edge length')
    parser.add_argument('--axis', choices=('x', 'y', 'z'), default='z', help='axis of round shapes')
    parser.add_argument('--dim', action='store_true', help='print bounds and compiled mesh summary')
    parser.add_argument('--geom', action='store_true', help='print bounds and every polygon')
    parser.add_argument('--check', action='store_true', help='check closedness and orientation')
    parser.add_argument('--smooth', action='store_true', help='compile with smooth vertex normals')
    parser.add_argument('--stl', type=Path, help='write the solid to an STL file')
    parser.add_argument('--ascii', action='store_true', help='write ASCII rather than binary STL')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    try:
        solid = build_solid(args)
    except ValueError as exc:
        parser.error(str(exc))

    if args.dim or args.geom:
        print(f'{type(solid).__name__} {args.shape}')
        print(solid.bounds.to_string('\t', 1))
    if args.dim:
        print(solid.compile(smooth=args.smooth).summary('\t'))
    if args.geom:
        print()
        print(solid.to_string('\t'))

    status = 0
    if args.check:
        for label, result in (('watertight', solid_watertight(solid)),
                              ('oriented', polygons_oriented(solid))):
            print(f'{label}: {"ok" if result else "FAILED"}')
            for warning in result.warnings:
                print(f'\t{warning}')
            if not result:
                status = 1
        print(f'volume: {solid.volume():.6g}')

    if args.stl:
        args.stl.parent.mkdir(parents=True, exist_ok=True)
        write_stl(solid, args.stl, binary=not args.ascii, name=args.shape)
        logger.info('wrote %s', args.stl)

    return status


if __name__ == '__main__':
    sys.exit(main())
