"""
MDL Preview Export
Wraps the final buffers in a trimesh mesh so a conversion can be eyeballed in
any glTF viewer before it reaches the engine.
"""

import os

import numpy as np
import trimesh

from mdl_errors import PreviewExportFailed
from mdl_writer import MdlModel, write_output


def model_to_trimesh(model: MdlModel) -> trimesh.Trimesh:
    """Build a Trimesh from the model's vertex and index buffers.

    Faces are re-wound counter-clockwise and V is flipped back to OBJ/glTF
    convention. process=False keeps vertex order identical to the .mdl file.
    """
    vertices = model.vertices
    faces = np.asarray(model.indices, dtype=np.int64)
    faces = faces[:len(faces) // 3 * 3].reshape(-1, 3)[:, ::-1]

    mesh = trimesh.Trimesh(
        vertices=vertices['position'].astype(np.float64),
        faces=faces,
        vertex_normals=vertices['normal'].astype(np.float64),
        process=False,
    )

    uv = vertices['texcoord'].astype(np.float64).copy()
    uv[:, 1] = 1.0 - uv[:, 1]
    mesh.visual = trimesh.visual.TextureVisuals(uv=uv)
    return mesh


def preview_file_type(path: str) -> str:
    """Export format for `path`, taken from its extension."""
    file_type = os.path.splitext(path)[1].lstrip('.').lower()
    if not file_type:
        raise PreviewExportFailed('preview path needs an extension naming the format (e.g. .glb)', path=path)
    return file_type


def render_preview(model: MdlModel, path: str) -> bytes:
    """Encode the preview mesh in the format named by `path` without touching the disk."""
    file_type = preview_file_type(path)
    try:
        data = model_to_trimesh(model).export(file_type=file_type)
    except (ValueError, ImportError) as e:
        raise PreviewExportFailed(f'cannot export {file_type} preview: {e}', path=path) from e
    if isinstance(data, str):
        data = data.encode('utf-8')
    return data


def export_preview(model: MdlModel, path: str) -> int:
    """Export the preview mesh; the file type follows the extension (.glb, .obj, ...)."""
    return write_output(path, render_preview(model, path))
