"""
MDL Writer
Serializes the converted model into the little-endian .mdl layout:

    u32 textureCount       { u32 len, bytes[len] } * count
    u32 materialNameCount  { u32 len, bytes[len] } * count
    u32 materialCount      Material * count           (layout below)
    u32 meshInfoCount      { u32 materialIndex, u32 materialNameIndex,
                             u32 startIndex, u32 primitiveCount } * count
    u32 indexCount         u16 * count
    u32 vertexCount        { f32x3 position, f32x3 normal,
                             f32x2 texcoord, f32x4 tangent } * count

The file has no version tag, so the material record shape is chosen by the
caller and must match on the reading side:

    single: f32x3 ambient, f32x3 diffuse, f32x3 specular, f32 specularPower,
            f32x3 emissive, i32 textureIndex (base color)
    dual:   same, then i32 baseColorTexture, i32 normalMapTexture
"""

import struct
from dataclasses import dataclass, field
from typing import List

import numpy as np

from mdl_errors import IndexOverflow, OutputNotWritable
from mdl_mesh_builder import INDEX_DTYPE, VERTEX_DTYPE, MeshInfo
from mdl_mtl_parser import Material

MATERIAL_LAYOUTS = {
    'single': struct.Struct('<3f3f3ff3fi'),
    'dual': struct.Struct('<3f3f3ff3f2i'),
}
DEFAULT_MATERIAL_LAYOUT = 'single'

MESH_INFO_STRUCT = struct.Struct('<4I')
U32 = struct.Struct('<I')


@dataclass
class MdlModel:
    textures: List[str] = field(default_factory=list)
    material_names: List[str] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    mesh_infos: List[MeshInfo] = field(default_factory=list)
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=INDEX_DTYPE))
    vertices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=VERTEX_DTYPE))


def material_layout_struct(layout: str) -> struct.Struct:
    try:
        return MATERIAL_LAYOUTS[layout]
    except KeyError:
        raise ValueError(f"unknown material layout '{layout}' "
                         f"(expected one of {', '.join(MATERIAL_LAYOUTS)})") from None


def pack_material(material: Material, layout: str = DEFAULT_MATERIAL_LAYOUT) -> bytes:
    record = material_layout_struct(layout)
    values = [*material.ambient, *material.diffuse, *material.specular,
              material.specular_power, *material.emissive, material.base_color_texture]
    if layout == 'dual':
        values.append(material.normal_map_texture)
    return record.pack(*values)


def _pack_strings(names: List[str]) -> bytes:
    out = bytearray(U32.pack(len(names)))
    for name in names:
        data = name.encode('utf-8')
        out += U32.pack(len(data))
        out += data
    return bytes(out)


def serialize_model(model: MdlModel, material_layout: str = DEFAULT_MATERIAL_LAYOUT) -> bytes:
    """Build the complete file image in memory."""
    material_layout_struct(material_layout)

    if len(model.vertices) > np.iinfo(INDEX_DTYPE).max + 1:
        raise IndexOverflow(f'{len(model.vertices)} vertices exceed the 16-bit index space')

    out = bytearray()
    out += _pack_strings(model.textures)
    out += _pack_strings(model.material_names)

    out += U32.pack(len(model.materials))
    for material in model.materials:
        out += pack_material(material, material_layout)

    out += U32.pack(len(model.mesh_infos))
    for info in model.mesh_infos:
        out += MESH_INFO_STRUCT.pack(info.material_index, info.material_name_index,
                                     info.start_index, info.primitive_count)

    indices = np.ascontiguousarray(model.indices, dtype=INDEX_DTYPE)
    out += U32.pack(len(indices))
    out += indices.tobytes()

    vertices = np.ascontiguousarray(model.vertices, dtype=VERTEX_DTYPE)
    out += U32.pack(len(vertices))
    out += vertices.tobytes()

    return bytes(out)


def write_output(path: str, data: bytes) -> int:
    """Write an already serialized image to `path`."""
    try:
        with open(path, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise OutputNotWritable(f'could not open output for writing: {e.strerror or e}', path=path) from e
    return len(data)


def write_model(model: MdlModel, path: str,
                material_layout: str = DEFAULT_MATERIAL_LAYOUT) -> int:
    """Write the model to `path`; nothing is written unless serialization succeeds."""
    return write_output(path, serialize_model(model, material_layout))
