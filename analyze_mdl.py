#!/usr/bin/env python3
"""Print the tables and buffer statistics of a .mdl file."""
import argparse
import os
import sys

import numpy as np

from mdl_errors import ConversionError
from mdl_reader import load_model
from mdl_writer import DEFAULT_MATERIAL_LAYOUT, MATERIAL_LAYOUTS


def analyze_mdl(filename, material_layout=DEFAULT_MATERIAL_LAYOUT):
    model = load_model(filename, material_layout)

    print(f"File: {filename} ({os.path.getsize(filename):,} bytes, {material_layout} material layout)")

    print(f"\nTextures: {len(model.textures)}")
    for i, name in enumerate(model.textures):
        print(f"   [{i}] {name}")

    print(f"\nMaterials: {len(model.materials)}")
    for i, mat in enumerate(model.materials):
        name = model.material_names[i] if i < len(model.material_names) else ''
        line = (f"   [{i}] {name or '<unnamed>'}: diffuse={tuple(round(c, 3) for c in mat.diffuse)} "
                f"power={mat.specular_power:g} texture={mat.base_color_texture}")
        if material_layout == 'dual':
            line += f" normal_map={mat.normal_map_texture}"
        print(line)

    print(f"\nDraw ranges: {len(model.mesh_infos)}")
    for i, info in enumerate(model.mesh_infos):
        print(f"   [{i}] material={info.material_index} start={info.start_index} "
              f"triangles={info.primitive_count}")

    vertices = model.vertices
    print(f"\nIndices: {len(model.indices)} ({len(model.indices) // 3} triangles)")
    print(f"Vertices: {len(vertices)}")
    if len(vertices):
        positions = vertices['position']
        print(f"   Bounds: min={positions.min(axis=0).round(4).tolist()} "
              f"max={positions.max(axis=0).round(4).tolist()}")
        tangent_length = np.linalg.norm(vertices['tangent'][:, :3], axis=1)
        flipped = int(np.count_nonzero(vertices['tangent'][:, 3] < 0))
        print(f"   Tangent length: {tangent_length.min():.4f}..{tangent_length.max():.4f}, "
              f"{flipped} with negative handedness")
    if len(model.indices) and model.indices.max() >= len(vertices):
        print(f"   WARNING: index {int(model.indices.max())} out of range")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Inspect a .mdl file')
    parser.add_argument('file', help='.mdl file to inspect')
    parser.add_argument('--material-layout', choices=sorted(MATERIAL_LAYOUTS), default=DEFAULT_MATERIAL_LAYOUT)
    args = parser.parse_args()
    try:
        analyze_mdl(args.file, args.material_layout)
    except ConversionError as e:
        print(f"Error: {e}")
        sys.exit(1)
