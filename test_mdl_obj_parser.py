"""OBJ geometry parsing."""

import os

import pytest

from mdl_errors import InputNotFound, MalformedRecord, MissingMaterialBinding, ZeroIndex
from mdl_faces import FaceVertexRef
from mdl_obj_parser import load_obj, parse_obj_lines, resolve_mtllib_path


def parse(text, path='model.obj'):
    return parse_obj_lines(text.splitlines(), path=path)


def test_attribute_streams_and_uv_flip():
    scene = parse("""
# comment
v 1 2 3
v 4.5 -1 0 1
vn 0 0 1
vt 0.25 0.75
vt 1 0 0
""")
    assert scene.positions == [(1.0, 2.0, 3.0), (4.5, -1.0, 0.0)]
    assert scene.normals == [(0.0, 0.0, 1.0)]
    assert scene.texcoords == [(0.25, 0.25), (1.0, 1.0)]


def test_missing_components_read_as_zero():
    scene = parse('v 1\nvt 0.5\n')
    assert scene.positions == [(1.0, 0.0, 0.0)]
    assert scene.texcoords == [(0.5, 1.0)]


def test_objects_and_submeshes():
    scene = parse("""
v 0 0 0
v 1 0 0
v 0 1 0
v 1 1 0
o First
usemtl red
f 1 2 3
f 2 4 3
usemtl blue
f 1 2 3 4
o Empty
o Second
usemtl red
f 1 2 3
""")
    assert [m.name for m in scene.meshes] == ['First', 'Empty', 'Second']
    first, empty, second = scene.meshes
    assert [s.material for s in first.submeshes] == ['red', 'blue']
    assert len(first.submeshes[0].triangles) == 2
    assert len(first.submeshes[1].triangles) == 2
    assert empty.submeshes == []
    assert len(second.submeshes) == 1
    assert scene.submesh_count == 3
    assert scene.triangle_count == 5


def test_usemtl_before_any_object_creates_unnamed_mesh():
    scene = parse('v 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl m\nf 1 2 3\n')
    assert len(scene.meshes) == 1
    assert scene.meshes[0].name == ''
    assert scene.meshes[0].submeshes[0].material == 'm'


def test_negative_indices_use_counts_at_face_time():
    scene = parse("""
o A
usemtl m
v 0 0 0
v 1 0 0
v 0 1 0
f -3 -2 -1
v 5 5 5
f -4 -3 -1
""")
    first, second = scene.meshes[0].submeshes[0].triangles
    assert first == (FaceVertexRef(0), FaceVertexRef(2), FaceVertexRef(1))
    assert second == (FaceVertexRef(0), FaceVertexRef(3), FaceVertexRef(1))


def test_face_without_material_names_object():
    text = 'o Crate\nv 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n'
    with pytest.raises(MissingMaterialBinding) as info:
        parse(text)
    assert info.value.name == 'Crate'
    assert 'Crate' in str(info.value)
    assert info.value.line_number == 5


def test_new_object_resets_current_submesh():
    text = 'v 0 0 0\nv 1 0 0\nv 0 1 0\no A\nusemtl m\nf 1 2 3\no B\nf 1 2 3\n'
    with pytest.raises(MissingMaterialBinding) as info:
        parse(text)
    assert info.value.name == 'B'


def test_malformed_number_reports_line():
    with pytest.raises(MalformedRecord) as info:
        parse('v 0 0 0\nv 1 abc 0\n', path='broken.obj')
    err = info.value
    assert err.path == 'broken.obj'
    assert err.line_number == 2
    assert 'v 1 abc 0' in str(err)


def test_zero_face_index_is_located():
    with pytest.raises(ZeroIndex) as info:
        parse('v 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl m\nf 0 1 2\n')
    assert info.value.line_number == 5


def test_mtllib_last_wins_and_unknown_records_counted():
    scene = parse('mtllib a.mtl\ng group\ns 1\ns off\nmtllib b.mtl\n')
    assert scene.mtllib == 'b.mtl'
    assert scene.skipped == {'g': 1, 's': 2}


def test_load_obj_missing_file(tmp_path):
    with pytest.raises(InputNotFound) as info:
        load_obj(str(tmp_path / 'nope.obj'))
    assert 'nope.obj' in str(info.value)


def test_load_obj_and_resolve_mtllib(tmp_path):
    path = tmp_path / 'm.obj'
    path.write_text('mtllib mats/m.mtl\nv 0 0 0\n')
    scene = load_obj(str(path))
    assert scene.path == str(path)
    assert resolve_mtllib_path(scene) == os.path.join(str(tmp_path), 'mats/m.mtl')


def test_resolve_without_mtllib():
    scene = parse('v 0 0 0\n', path='lonely.obj')
    with pytest.raises(InputNotFound) as info:
        resolve_mtllib_path(scene)
    assert 'lonely.obj' in str(info.value)
