"""
MDL Converter
OBJ + MTL -> .mdl pipeline: parse geometry and materials, build the indexed
buffers, generate tangents, then serialize. The output file is only opened once
the whole model has been serialized, so a failed run never leaves a partial file.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from mdl_mesh_builder import build_buffers
from mdl_mtl_parser import MaterialLibrary, load_mtl
from mdl_obj_parser import ObjScene, load_obj, resolve_mtllib_path
from mdl_tangents import DEGENERATE_UV_EPSILON, FLAT_FACE_DOT_THRESHOLD, generate_tangents
from mdl_writer import DEFAULT_MATERIAL_LAYOUT, MdlModel, serialize_model, write_output


@dataclass
class ConversionReport:
    source_path: str = ''
    material_path: str = ''
    output_path: Optional[str] = None
    positions: int = 0
    normals: int = 0
    texcoords: int = 0
    meshes: int = 0
    submeshes: int = 0
    triangles: int = 0
    vertices: int = 0
    indices: int = 0
    textures: int = 0
    materials: int = 0
    degenerate_uv_triangles: int = 0
    output_bytes: int = 0
    unused_materials: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def summary(self) -> str:
        lines = [
            f"Source:    {self.source_path}",
            f"Materials: {self.material_path}",
            f"Input:     {self.positions} positions, {self.normals} normals, {self.texcoords} texcoords",
            f"Scene:     {self.meshes} meshes, {self.submeshes} submeshes, {self.triangles} triangles",
            f"Buffers:   {self.vertices} vertices, {self.indices} indices",
            f"Tables:    {self.textures} textures, {self.materials} materials",
        ]
        if self.degenerate_uv_triangles:
            lines.append(f"Tangents:  {self.degenerate_uv_triangles} triangles skipped (degenerate UVs)")
        if self.output_path:
            lines.append(f"Output:    {self.output_path} ({self.output_bytes:,} bytes)")
        for warning in self.warnings:
            lines.append(f"WARNING: {warning}")
        return '\n'.join(lines)


def _collect_warnings(scene: ObjScene, library: MaterialLibrary, report: ConversionReport) -> None:
    for keyword, count in sorted(scene.skipped.items()):
        report.warnings.append(f"skipped {count} '{keyword}' record(s) in {scene.path}")
    report.warnings.extend(f'{library.path}: {w}' for w in library.warnings)

    used = {s.material for m in scene.meshes for s in m.submeshes}
    report.unused_materials = [name for name in library.index_by_name if name not in used]
    if report.unused_materials:
        report.warnings.append(f"materials never used: {', '.join(report.unused_materials)}")


def build_model(obj_path: str, mtl_path: Optional[str] = None,
                flat_threshold: float = FLAT_FACE_DOT_THRESHOLD,
                uv_epsilon: float = DEGENERATE_UV_EPSILON,
                verbose: bool = True) -> Tuple[MdlModel, ConversionReport]:
    """Run every stage up to (not including) serialization."""
    scene = load_obj(obj_path)
    if verbose:
        print(f"Parsed {len(scene.positions)} positions, {len(scene.normals)} normals, "
              f"{len(scene.texcoords)} texcoords, {scene.submesh_count} submeshes from {obj_path}")

    if mtl_path is None:
        mtl_path = resolve_mtllib_path(scene)
    library = load_mtl(mtl_path, referenced_by=obj_path)
    if verbose:
        print(f"Parsed {len(library.materials)} materials, {len(library.textures)} textures from {mtl_path}")

    mesh_infos, vertices, indices = build_buffers(scene, library)
    if verbose:
        print(f"Built {len(vertices)} unique vertices, {len(indices)} indices "
              f"in {len(mesh_infos)} draw ranges")

    skipped = generate_tangents(vertices, indices, flat_threshold=flat_threshold, epsilon=uv_epsilon)
    if verbose:
        print(f"Generated tangents ({skipped} degenerate-UV triangles skipped)")

    model = MdlModel(
        textures=list(library.textures),
        material_names=library.material_names(),
        materials=library.materials,
        mesh_infos=mesh_infos,
        indices=indices,
        vertices=vertices,
    )

    report = ConversionReport(
        source_path=obj_path,
        material_path=mtl_path,
        positions=len(scene.positions),
        normals=len(scene.normals),
        texcoords=len(scene.texcoords),
        meshes=len(scene.meshes),
        submeshes=scene.submesh_count,
        triangles=scene.triangle_count,
        vertices=len(vertices),
        indices=len(indices),
        textures=len(library.textures),
        materials=len(library.materials),
        degenerate_uv_triangles=skipped,
    )
    _collect_warnings(scene, library, report)
    if verbose:
        for warning in report.warnings:
            print(f"WARNING: {warning}")
    return model, report


def default_output_path(obj_path: str) -> str:
    return os.path.splitext(obj_path)[0] + '.mdl'


def convert_obj_to_mdl(obj_path: str, output_path: Optional[str] = None,
                       mtl_path: Optional[str] = None,
                       material_layout: str = DEFAULT_MATERIAL_LAYOUT,
                       flat_threshold: float = FLAT_FACE_DOT_THRESHOLD,
                       preview_path: Optional[str] = None,
                       verbose: bool = True) -> ConversionReport:
    """Convert `obj_path` to a .mdl file (default: same name, .mdl extension).

    With `preview_path`, the preview is encoded before anything is written, so
    an unsupported preview format also leaves no .mdl behind.
    """
    if output_path is None:
        output_path = default_output_path(obj_path)
    if preview_path:
        from mdl_preview import preview_file_type, render_preview
        preview_file_type(preview_path)

    model, report = build_model(obj_path, mtl_path=mtl_path,
                                flat_threshold=flat_threshold, verbose=verbose)
    data = serialize_model(model, material_layout)
    preview = render_preview(model, preview_path) if preview_path else None

    write_output(output_path, data)
    report.output_path = output_path
    report.output_bytes = len(data)
    if verbose:
        print(f"Wrote {output_path} ({len(data):,} bytes, {material_layout} material layout)")

    if preview is not None:
        write_output(preview_path, preview)
        if verbose:
            print(f"Wrote preview {preview_path}")

    return report
