#!/usr/bin/env python3
"""
OBJ to MDL Exporter
Converts a Wavefront .obj (+ .mtl) into an engine-ready .mdl mesh with tangents.
"""

import argparse
import sys

from mdl_converter import convert_obj_to_mdl
from mdl_errors import ConversionError
from mdl_tangents import FLAT_FACE_DOT_THRESHOLD
from mdl_writer import DEFAULT_MATERIAL_LAYOUT, MATERIAL_LAYOUTS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Convert a Wavefront OBJ model to MDL')
    parser.add_argument('input', help='Input model file (.obj)')
    parser.add_argument('-o', '--output', default=None, help='Output file (default: input with .mdl extension)')
    parser.add_argument('--mtl', default=None, help='Material library to use instead of the mtllib record')
    parser.add_argument('--material-layout', choices=sorted(MATERIAL_LAYOUTS), default=DEFAULT_MATERIAL_LAYOUT,
                        help='On-disk material record shape (single: base color texture only, '
                             'dual: base color + normal map)')
    parser.add_argument('--flat-threshold', type=float, default=FLAT_FACE_DOT_THRESHOLD,
                        help='Normal dot product above which a face counts as flat for tangent generation')
    parser.add_argument('--preview', default=None, help='Also export a preview mesh (e.g. preview.glb)')
    parser.add_argument('--quiet', action='store_true', help='Only print errors')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        report = convert_obj_to_mdl(
            args.input,
            output_path=args.output,
            mtl_path=args.mtl,
            material_layout=args.material_layout,
            flat_threshold=args.flat_threshold,
            preview_path=args.preview,
            verbose=not args.quiet,
        )
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print()
        print(report.summary())
    return 0


if __name__ == '__main__':
    sys.exit(main())
