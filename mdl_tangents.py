"""
MDL Tangent Generator
Computes per-vertex tangent space for normal mapping from the UV gradients of
each triangle.

Flat faces (all three vertex normals aligned) overwrite the running tangent of
their vertices while smooth faces accumulate into it. A hard-edged neighbour
therefore does not bleed into a smooth surface, at the cost of last-writer-wins
between flat faces that share a vertex.
"""

from itertools import groupby

import numpy as np

# Both consecutive normal dot products above this mark a face as flat. Heuristic, tune per asset set.
FLAT_FACE_DOT_THRESHOLD = 0.999

# |du1*dv2 - du2*dv1| below this means the UV mapping of a triangle is degenerate
DEGENERATE_UV_EPSILON = 1e-6

_ZERO_LENGTH = 1e-12

# Gram-Schmidt residual shorter than this fraction of the accumulated tangent is rounding noise
_PARALLEL_RATIO = 1e-6


def _triangle_gradients(vertices: np.ndarray, triangles: np.ndarray, epsilon: float):
    """Face tangent/bitangent per triangle plus the mask of usable (non-degenerate) ones."""
    positions = vertices['position'].astype(np.float64)
    texcoords = vertices['texcoord'].astype(np.float64)

    p0, p1, p2 = (positions[triangles[:, k]] for k in range(3))
    uv0, uv1, uv2 = (texcoords[triangles[:, k]] for k in range(3))

    du1 = uv1[:, 0] - uv0[:, 0]
    dv1 = uv1[:, 1] - uv0[:, 1]
    du2 = uv2[:, 0] - uv0[:, 0]
    dv2 = uv2[:, 1] - uv0[:, 1]

    denom = du1 * dv2 - du2 * dv1
    valid = np.abs(denom) >= epsilon

    scale = np.zeros_like(denom)
    scale[valid] = 1.0 / denom[valid]

    e1 = p1 - p0
    e2 = p2 - p0

    tangents = (e1 * dv2[:, None] - e2 * dv1[:, None]) * scale[:, None]
    bitangents = (e2 * du1[:, None] - e1 * du2[:, None]) * scale[:, None]
    return tangents, bitangents, valid


def _flat_faces(vertices: np.ndarray, triangles: np.ndarray, threshold: float) -> np.ndarray:
    normals = vertices['normal'].astype(np.float64)
    n0, n1, n2 = (normals[triangles[:, k]] for k in range(3))
    d01 = np.einsum('ij,ij->i', n0, n1)
    d12 = np.einsum('ij,ij->i', n1, n2)
    return (d01 > threshold) & (d12 > threshold)


def orthogonal_fallback(normals: np.ndarray) -> np.ndarray:
    """Unit vectors orthogonal to each normal (X axis where the normal is zero)."""
    normals = np.atleast_2d(np.asarray(normals, dtype=np.float64))
    # Cross with the axis the normal is least aligned with
    axes = np.zeros_like(normals)
    axes[np.arange(len(normals)), np.argmin(np.abs(normals), axis=1)] = 1.0
    result = np.cross(normals, axes)

    length = np.linalg.norm(result, axis=1)
    ok = length > _ZERO_LENGTH
    result[ok] /= length[ok, None]
    result[~ok] = (1.0, 0.0, 0.0)
    return result


def generate_tangents(vertices: np.ndarray, indices: np.ndarray,
                      flat_threshold: float = FLAT_FACE_DOT_THRESHOLD,
                      epsilon: float = DEGENERATE_UV_EPSILON) -> int:
    """Fill vertices['tangent'] in place from the triangle list in `indices`.

    Returns the number of triangles skipped for degenerate UVs.
    """
    vertex_count = len(vertices)
    triangle_count = len(indices) // 3
    triangles = np.asarray(indices[:triangle_count * 3], dtype=np.int64).reshape(-1, 3)

    tangent_sum = np.zeros((vertex_count, 3), dtype=np.float64)
    bitangent_sum = np.zeros((vertex_count, 3), dtype=np.float64)

    skipped = 0
    if triangle_count:
        tangents, bitangents, valid = _triangle_gradients(vertices, triangles, epsilon)
        flat = _flat_faces(vertices, triangles, flat_threshold)
        skipped = int(np.count_nonzero(~valid))

        # Order matters: a flat face resets whatever smooth faces summed before it.
        # Consecutive smooth faces commute with each other, so each run is added at once.
        for is_flat, run in groupby(np.flatnonzero(valid), key=lambda k: bool(flat[k])):
            run = np.fromiter(run, dtype=np.int64)
            if is_flat:
                for k in run:
                    tangent_sum[triangles[k]] = tangents[k]
                    bitangent_sum[triangles[k]] = bitangents[k]
            else:
                corners = triangles[run].ravel()
                np.add.at(tangent_sum, corners, np.repeat(tangents[run], 3, axis=0))
                np.add.at(bitangent_sum, corners, np.repeat(bitangents[run], 3, axis=0))

    normals = vertices['normal'].astype(np.float64)

    # Gram-Schmidt against the normal
    t = tangent_sum - normals * np.einsum('ij,ij->i', normals, tangent_sum)[:, None]
    length = np.linalg.norm(t, axis=1)
    ok = length > np.maximum(_ZERO_LENGTH, _PARALLEL_RATIO * np.linalg.norm(tangent_sum, axis=1))
    t[ok] /= length[ok, None]
    if not ok.all():
        t[~ok] = orthogonal_fallback(normals[~ok])

    handedness = np.einsum('ij,ij->i', np.cross(normals, t), bitangent_sum)
    w = np.where(handedness < 0.0, -1.0, 1.0)

    vertices['tangent'][:, :3] = t
    vertices['tangent'][:, 3] = w
    return skipped
