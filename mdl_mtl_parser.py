"""
MDL MTL Parser
Reads the companion .mtl file: material colors, specular power, and the
base-color / normal-map texture references, registering texture basenames in a
shared table.
"""

import ntpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from mdl_errors import ConversionError, InputNotFound, MalformedRecord

# Directive -> material attribute
COLOR_DIRECTIVES = {
    'Ka': 'ambient',
    'Kd': 'diffuse',
    'Ks': 'specular',
    'Ke': 'emissive',
}

BASE_COLOR_DIRECTIVES = ('map_Kd',)
NORMAL_MAP_DIRECTIVES = ('map_Bump', 'map_bump', 'bump', 'norm')


@dataclass
class Material:
    ambient: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    diffuse: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    specular: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    specular_power: float = 100.0
    emissive: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    base_color_texture: int = -1
    normal_map_texture: int = -1


class TextureRegistry:
    """Insertion-ordered set of texture basenames."""

    def __init__(self):
        self.names: List[str] = []
        self._indices: Dict[str, int] = {}

    def register(self, path: str) -> int:
        """Strip directories from `path` and return its (possibly existing) index."""
        # Handles both separators; MTL files written on Windows use backslashes
        name = ntpath.basename(path)
        index = self._indices.get(name)
        if index is None:
            index = len(self.names)
            self._indices[name] = index
            self.names.append(name)
        return index

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self):
        return iter(self.names)


@dataclass
class MaterialLibrary:
    path: str = '<memory>'
    materials: List[Material] = field(default_factory=list)
    # First-seen order is kept by the dict; a repeated name maps to its newest index
    index_by_name: Dict[str, int] = field(default_factory=dict)
    textures: TextureRegistry = field(default_factory=TextureRegistry)
    warnings: List[str] = field(default_factory=list)

    def material_names(self) -> List[str]:
        """Name table parallel to `materials`; slots shadowed by a redefinition stay empty."""
        names = [''] * len(self.materials)
        for name, index in self.index_by_name.items():
            names[index] = name
        return names

    def index_of(self, name: str) -> Optional[int]:
        return self.index_by_name.get(name)


def _read_color(args: List[str], line: str) -> Tuple[float, float, float]:
    values = [0.0, 0.0, 0.0]
    for i, text in enumerate(args[:3]):
        try:
            values[i] = float(text)
        except ValueError:
            raise MalformedRecord(f'bad color component {text!r}', line=line) from None
    return tuple(values)


def parse_mtl_lines(lines: Iterable[str], path: str = '<memory>',
                    textures: Optional[TextureRegistry] = None) -> MaterialLibrary:
    """Parse MTL text lines into a MaterialLibrary."""
    library = MaterialLibrary(path=path)
    if textures is not None:
        library.textures = textures
    current: Optional[Material] = None

    for line_number, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        parts = line.split()
        keyword = parts[0]
        args = parts[1:]

        try:
            if keyword == 'newmtl':
                name = args[0] if args else ''
                if name in library.index_by_name:
                    library.warnings.append(f"material '{name}' redefined at line {line_number}")
                library.index_by_name[name] = len(library.materials)
                current = Material()
                library.materials.append(current)
                continue

            known = (keyword in COLOR_DIRECTIVES or keyword == 'Ns'
                     or keyword in BASE_COLOR_DIRECTIVES or keyword in NORMAL_MAP_DIRECTIVES)
            if not known:
                continue
            if current is None:
                library.warnings.append(f"'{keyword}' before any newmtl at line {line_number} ignored")
                continue

            if keyword in COLOR_DIRECTIVES:
                setattr(current, COLOR_DIRECTIVES[keyword], _read_color(args, line))

            elif keyword == 'Ns':
                if args:
                    try:
                        current.specular_power = float(args[0])
                    except ValueError:
                        raise MalformedRecord(f'bad specular power {args[0]!r}', line=line) from None

            elif args:
                # Options like -bm 0.5 precede the file name; take the last token
                index = library.textures.register(args[-1])
                if keyword in BASE_COLOR_DIRECTIVES:
                    current.base_color_texture = index
                else:
                    current.normal_map_texture = index

        except ConversionError as e:
            raise e.located(path, line_number) from None

    return library


def load_mtl(path: str, referenced_by: Optional[str] = None) -> MaterialLibrary:
    """Parse a material file from disk. `referenced_by` names the geometry file for errors."""
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return parse_mtl_lines(f, path=path)
    except OSError as e:
        if isinstance(e, ConversionError):
            raise
        message = f'could not open material library ({e.strerror})'
        if referenced_by:
            message += f' referenced by {referenced_by}'
        raise InputNotFound(message, path=path) from e
