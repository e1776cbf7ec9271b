"""
MDL Mesh Assembler
Walks every submesh in file order, deduplicates corners by their full
(position, texcoord, normal) reference and builds the interleaved vertex
buffer, the 16-bit index buffer and the per-submesh draw ranges.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from mdl_errors import IndexOverflow, MaterialNotFound
from mdl_faces import ABSENT, FaceVertexRef
from mdl_mtl_parser import MaterialLibrary
from mdl_obj_parser import ObjScene

# Interleaved output vertex, little-endian, 48 bytes, no padding
VERTEX_DTYPE = np.dtype([
    ('position', '<f4', (3,)),
    ('normal', '<f4', (3,)),
    ('texcoord', '<f4', (2,)),
    ('tangent', '<f4', (4,)),
])

INDEX_DTYPE = np.dtype('<u2')

# 16-bit indices address at most this many vertices
MAX_VERTEX_COUNT = 65536

DEFAULT_NORMAL = (0.0, 0.0, 1.0)
DEFAULT_TEXCOORD = (0.0, 0.0)


@dataclass
class MeshInfo:
    material_index: int
    material_name_index: int
    start_index: int
    primitive_count: int


def make_vertex(scene: ObjScene, ref: FaceVertexRef) -> Tuple[tuple, tuple, tuple]:
    """Synthesize (position, normal, texcoord) for one corner, filling in defaults."""
    position = scene.positions[ref.position]

    normal = DEFAULT_NORMAL
    if ref.normal != ABSENT:
        n = np.asarray(scene.normals[ref.normal], dtype=np.float64)
        length = np.linalg.norm(n)
        if length > 0.0:
            normal = tuple((n / length).tolist())

    texcoord = DEFAULT_TEXCOORD
    if ref.texcoord != ABSENT:
        texcoord = scene.texcoords[ref.texcoord]

    return position, normal, texcoord


def build_buffers(scene: ObjScene,
                  library: MaterialLibrary) -> Tuple[List[MeshInfo], np.ndarray, np.ndarray]:
    """Return (mesh_infos, vertices, indices).

    `vertices` is a VERTEX_DTYPE array with zeroed tangents; `indices` is uint16.
    """
    mesh_infos: List[MeshInfo] = []
    index_map: Dict[FaceVertexRef, int] = {}
    corners: List[Tuple[tuple, tuple, tuple]] = []
    indices: List[int] = []

    for mesh in scene.meshes:
        for submesh in mesh.submeshes:
            material_index = library.index_of(submesh.material)
            if material_index is None:
                raise MaterialNotFound(f"material '{submesh.material}' not found in {library.path}",
                                       path=scene.path, name=submesh.material)

            # The name table is parallel to the material table, so one index serves both
            mesh_infos.append(MeshInfo(
                material_index=material_index,
                material_name_index=material_index,
                start_index=len(indices),
                primitive_count=len(submesh.triangles),
            ))

            for triangle in submesh.triangles:
                for ref in triangle:
                    index = index_map.get(ref)
                    if index is None:
                        index = len(corners)
                        if index >= MAX_VERTEX_COUNT:
                            raise IndexOverflow(
                                f'more than {MAX_VERTEX_COUNT} unique vertices; '
                                f'16-bit indices cannot address them',
                                path=scene.path, name=mesh.name)
                        index_map[ref] = index
                        corners.append(make_vertex(scene, ref))
                    indices.append(index)

    vertices = np.zeros(len(corners), dtype=VERTEX_DTYPE)
    if corners:
        positions, normals, texcoords = zip(*corners)
        vertices['position'] = positions
        vertices['normal'] = normals
        vertices['texcoord'] = texcoords

    return mesh_infos, vertices, np.asarray(indices, dtype=INDEX_DTYPE)
