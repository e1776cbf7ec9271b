"""
MDL Face Resolver
Turns the tokens of an OBJ `f` record into zero-based attribute references and
fan-triangulates the polygon into clockwise-front triangles.
"""

from typing import List, NamedTuple, Optional, Sequence, Tuple

from mdl_errors import DegenerateFace, IndexOutOfRange, MalformedRecord, ZeroIndex

# Sentinel for a missing texcoord/normal reference; never a valid index
ABSENT = -1


class FaceVertexRef(NamedTuple):
    """One polygon corner: (position, texcoord, normal) indices, zero-based.

    Tuple equality is the vertex identity used for deduplication.
    """
    position: int
    texcoord: int = ABSENT
    normal: int = ABSENT


Triangle = Tuple[FaceVertexRef, FaceVertexRef, FaceVertexRef]


def fix_index(raw: int, size: int) -> int:
    """Map a one-based or negative OBJ index onto a zero-based one.

    Negative values count back from the end of the sequence as it is right now,
    so `fix_index(-1, n) == n - 1`. Zero is reserved by the format.
    """
    if raw > 0:
        return raw - 1
    if raw < 0:
        return size + raw
    raise ZeroIndex('OBJ face index cannot be zero')


def _resolve_field(text: str, size: int, kind: str, line: str) -> int:
    try:
        raw = int(text)
    except ValueError:
        raise MalformedRecord(f'bad {kind} index {text!r} in face record', line=line) from None

    try:
        index = fix_index(raw, size)
    except ZeroIndex as e:
        raise ZeroIndex(e.message, line=line) from None

    if not 0 <= index < size:
        raise IndexOutOfRange(
            f'{kind} index {raw} out of range ({size} {kind}s defined so far)', line=line)
    return index


def parse_face_tokens(tokens: Sequence[str], position_count: int,
                      texcoord_count: int, normal_count: int,
                      line: Optional[str] = None) -> List[FaceVertexRef]:
    """Resolve `pos[/tex][/norm]` tokens against the current attribute counts."""
    if line is None:
        line = 'f ' + ' '.join(tokens)

    refs = []
    for token in tokens:
        fields = token.split('/')

        position = _resolve_field(fields[0], position_count, 'position', line)

        texcoord = ABSENT
        if len(fields) > 1 and fields[1]:
            texcoord = _resolve_field(fields[1], texcoord_count, 'texcoord', line)

        normal = ABSENT
        if len(fields) > 2 and fields[2]:
            normal = _resolve_field(fields[2], normal_count, 'normal', line)

        refs.append(FaceVertexRef(position, texcoord, normal))
    return refs


def triangulate_face(refs: Sequence[FaceVertexRef],
                     line: Optional[str] = None) -> List[Triangle]:
    """Fan-triangulate a polygon around its first corner.

    Emits (v0, v[i+2], v[i+1]): the reverse of the OBJ scan order, which makes
    clockwise the front face.
    """
    if len(refs) < 3:
        raise DegenerateFace(f'face has {len(refs)} vertices, at least 3 required', line=line)

    return [(refs[0], refs[i + 2], refs[i + 1]) for i in range(len(refs) - 2)]
