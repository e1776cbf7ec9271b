"""
MDL Reader
Parses a .mdl file back into an MdlModel. Used by analyze_mdl.py and to check
converter output.
"""

import struct
from typing import List

import numpy as np

from mdl_errors import InputNotFound, MalformedRecord
from mdl_mesh_builder import INDEX_DTYPE, VERTEX_DTYPE, MeshInfo
from mdl_mtl_parser import Material
from mdl_writer import DEFAULT_MATERIAL_LAYOUT, MESH_INFO_STRUCT, U32, MdlModel, material_layout_struct


class Reader:
    def __init__(self, data: bytes, base: int = 0):
        self.data = data
        self.ofs = base

    def tell(self) -> int:
        return self.ofs

    def remaining(self) -> int:
        return len(self.data) - self.ofs

    def u32(self) -> int:
        return self.unpack(U32)[0]

    def unpack(self, record: struct.Struct) -> tuple:
        if self.remaining() < record.size:
            raise MalformedRecord(f'unexpected EOF at {self.ofs:#x} '
                                  f'(need {record.size} bytes, {self.remaining()} left)')
        values = record.unpack_from(self.data, self.ofs)
        self.ofs += record.size
        return values

    def bytes(self, n: int) -> bytes:
        b = self.data[self.ofs: self.ofs + n]
        if len(b) != n:
            raise MalformedRecord(f'unexpected EOF at {self.ofs:#x} (need {n} bytes)')
        self.ofs += n
        return b

    def array(self, dtype: np.dtype, count: int) -> np.ndarray:
        raw = self.bytes(dtype.itemsize * count)
        return np.frombuffer(raw, dtype=dtype, count=count).copy()


def _read_strings(r: Reader) -> List[str]:
    count = r.u32()
    names = []
    for _ in range(count):
        n = r.u32()
        names.append(r.bytes(n).decode('utf-8', 'replace'))
    return names


def _unpack_material(values: tuple, layout: str) -> Material:
    material = Material(
        ambient=tuple(values[0:3]),
        diffuse=tuple(values[3:6]),
        specular=tuple(values[6:9]),
        specular_power=values[9],
        emissive=tuple(values[10:13]),
        base_color_texture=values[13],
    )
    if layout == 'dual':
        material.normal_map_texture = values[14]
    return material


def read_model(data: bytes, material_layout: str = DEFAULT_MATERIAL_LAYOUT) -> MdlModel:
    record = material_layout_struct(material_layout)
    r = Reader(data)

    model = MdlModel()
    model.textures = _read_strings(r)
    model.material_names = _read_strings(r)

    count = r.u32()
    model.materials = [_unpack_material(r.unpack(record), material_layout) for _ in range(count)]

    count = r.u32()
    model.mesh_infos = [MeshInfo(*r.unpack(MESH_INFO_STRUCT)) for _ in range(count)]

    count = r.u32()
    model.indices = r.array(INDEX_DTYPE, count)

    count = r.u32()
    model.vertices = r.array(VERTEX_DTYPE, count)

    if r.remaining():
        raise MalformedRecord(f'{r.remaining()} trailing bytes after vertex block '
                              f'(wrong material layout?)')
    return model


def load_model(path: str, material_layout: str = DEFAULT_MATERIAL_LAYOUT) -> MdlModel:
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise InputNotFound(f'could not open model file ({e.strerror})', path=path) from e
    try:
        return read_model(data, material_layout)
    except MalformedRecord as e:
        raise e.located(path) from None
