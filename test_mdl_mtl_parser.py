"""MTL material parsing and the texture registry."""

import pytest

from mdl_errors import InputNotFound, MalformedRecord
from mdl_mtl_parser import Material, TextureRegistry, load_mtl, parse_mtl_lines


def parse(text):
    return parse_mtl_lines(text.splitlines(), path='scene.mtl')


def test_material_properties():
    library = parse("""
# Blender MTL
newmtl body
Ns 250.0
Ka 0.1 0.2 0.3
Kd 0.8 0.7 0.6
Ks 0.5 0.5 0.5
Ke 0 0.1 0
d 1.0
illum 2
""")
    assert len(library.materials) == 1
    mat = library.materials[0]
    assert mat.ambient == (0.1, 0.2, 0.3)
    assert mat.diffuse == (0.8, 0.7, 0.6)
    assert mat.specular == (0.5, 0.5, 0.5)
    assert mat.emissive == (0.0, 0.1, 0.0)
    assert mat.specular_power == 250.0
    assert mat.base_color_texture == -1
    assert mat.normal_map_texture == -1


def test_defaults():
    mat = parse('newmtl plain\n').materials[0]
    assert mat == Material()
    assert mat.diffuse == (1.0, 1.0, 1.0)
    assert mat.specular_power == 100.0


def test_indices_follow_file_order():
    library = parse('newmtl b\nnewmtl a\nnewmtl c\n')
    assert library.index_by_name == {'b': 0, 'a': 1, 'c': 2}
    assert library.material_names() == ['b', 'a', 'c']
    assert library.index_of('c') == 2
    assert library.index_of('zzz') is None


def test_texture_last_token_basename_and_dedup():
    library = parse(r"""
newmtl one
map_Kd -bm 0.5 textures/albedo.png
map_Bump -bm 1.0 C:\art\normal.png
newmtl two
map_Kd ../other/albedo.png
map_Bump normal2.png
""")
    assert library.textures.names == ['albedo.png', 'normal.png', 'normal2.png']
    one, two = library.materials
    assert (one.base_color_texture, one.normal_map_texture) == (0, 1)
    assert (two.base_color_texture, two.normal_map_texture) == (0, 2)


def test_normal_map_aliases():
    library = parse('newmtl m\nbump n.png\nnewmtl k\nnorm k.png\n')
    assert [m.normal_map_texture for m in library.materials] == [0, 1]


def test_texture_directive_without_file_keeps_slot():
    library = parse('newmtl m\nmap_Kd\n')
    assert library.materials[0].base_color_texture == -1
    assert len(library.textures) == 0


def test_directives_before_newmtl_are_ignored():
    library = parse('Kd 0 0 0\nmap_Kd early.png\nnewmtl m\n')
    assert library.materials[0].diffuse == (1.0, 1.0, 1.0)
    assert len(library.textures) == 0
    assert len(library.warnings) == 2


def test_redefined_material_shadows_name_slot():
    library = parse('newmtl a\nnewmtl b\nnewmtl a\n')
    assert len(library.materials) == 3
    assert library.index_of('a') == 2
    assert library.material_names() == ['', 'b', 'a']
    assert library.warnings


def test_malformed_color():
    with pytest.raises(MalformedRecord) as info:
        parse('newmtl m\nKd 1 red 0\n')
    assert info.value.line_number == 2


def test_registry_shared_between_libraries():
    registry = TextureRegistry()
    assert registry.register('a/b/c.dds') == 0
    parse_mtl_lines(['newmtl m', 'map_Kd c.dds', 'map_Bump d.dds'], textures=registry)
    assert list(registry) == ['c.dds', 'd.dds']


def test_load_mtl_missing_names_geometry_file(tmp_path):
    with pytest.raises(InputNotFound) as info:
        load_mtl(str(tmp_path / 'gone.mtl'), referenced_by='ship.obj')
    message = str(info.value)
    assert 'gone.mtl' in message
    assert 'ship.obj' in message
