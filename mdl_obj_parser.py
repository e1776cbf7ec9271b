"""
MDL OBJ Parser
Reads a Wavefront .obj geometry file into an in-memory scene: attribute streams,
objects, and per-material submeshes of clockwise-front triangles.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from mdl_errors import ConversionError, InputNotFound, MalformedRecord, MissingMaterialBinding
from mdl_faces import Triangle, parse_face_tokens, triangulate_face


@dataclass
class ObjSubmesh:
    material: str
    triangles: List[Triangle] = field(default_factory=list)


@dataclass
class ObjMesh:
    name: str
    submeshes: List[ObjSubmesh] = field(default_factory=list)


@dataclass
class ObjScene:
    path: str = '<memory>'
    positions: List[Tuple[float, float, float]] = field(default_factory=list)
    normals: List[Tuple[float, float, float]] = field(default_factory=list)
    texcoords: List[Tuple[float, float]] = field(default_factory=list)
    meshes: List[ObjMesh] = field(default_factory=list)
    mtllib: Optional[str] = None
    # keyword -> number of lines skipped
    skipped: Dict[str, int] = field(default_factory=dict)

    @property
    def submesh_count(self) -> int:
        return sum(len(m.submeshes) for m in self.meshes)

    @property
    def triangle_count(self) -> int:
        return sum(len(s.triangles) for m in self.meshes for s in m.submeshes)


def _read_floats(args: List[str], count: int, line: str) -> Tuple[float, ...]:
    # Missing components read as zero, extras (w) are ignored
    values = [0.0] * count
    for i, text in enumerate(args[:count]):
        try:
            values[i] = float(text)
        except ValueError:
            raise MalformedRecord(f'bad number {text!r}', line=line) from None
    return tuple(values)


def parse_obj_lines(lines: Iterable[str], path: str = '<memory>') -> ObjScene:
    """Parse OBJ text lines. Errors are tagged with `path` and the line number."""
    scene = ObjScene(path=path)
    current: Optional[ObjSubmesh] = None
    object_name = ''

    for line_number, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        parts = line.split()
        keyword = parts[0]
        args = parts[1:]

        try:
            if keyword == 'v':
                scene.positions.append(_read_floats(args, 3, line))

            elif keyword == 'vn':
                scene.normals.append(_read_floats(args, 3, line))

            elif keyword == 'vt':
                u, v = _read_floats(args, 2, line)
                # OBJ V points up, the engine samples top-down
                scene.texcoords.append((u, 1.0 - v))

            elif keyword == 'f':
                if current is None:
                    label = object_name or '<unnamed object>'
                    raise MissingMaterialBinding(f'{label} has no material assigned',
                                                 line=line, name=object_name)
                refs = parse_face_tokens(args, len(scene.positions), len(scene.texcoords),
                                         len(scene.normals), line=line)
                current.triangles.extend(triangulate_face(refs, line=line))

            elif keyword == 'o':
                object_name = args[0] if args else ''
                scene.meshes.append(ObjMesh(name=object_name))
                current = None

            elif keyword == 'usemtl':
                if not scene.meshes:
                    scene.meshes.append(ObjMesh(name=''))
                current = ObjSubmesh(material=args[0] if args else '')
                scene.meshes[-1].submeshes.append(current)

            elif keyword == 'mtllib':
                if args:
                    scene.mtllib = args[0]

            else:
                scene.skipped[keyword] = scene.skipped.get(keyword, 0) + 1

        except ConversionError as e:
            raise e.located(path, line_number) from None

    return scene


def load_obj(path: str) -> ObjScene:
    """Parse a geometry file from disk."""
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return parse_obj_lines(f, path=path)
    except OSError as e:
        if isinstance(e, ConversionError):
            raise
        raise InputNotFound(f'could not open geometry file ({e.strerror})', path=path) from e


def resolve_mtllib_path(scene: ObjScene) -> str:
    """Locate the material library next to the geometry file that references it."""
    if not scene.mtllib:
        raise InputNotFound('geometry file references no material library (mtllib)',
                            path=scene.path)
    return os.path.join(os.path.dirname(scene.path), scene.mtllib)
