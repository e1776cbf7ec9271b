"""
MDL Converter Errors
Every failure of an OBJ -> MDL conversion is fatal; these carry enough context
(file, line, name) for the message to be actionable on its own.
"""

from typing import Optional


class ConversionError(Exception):
    """Base class for all fatal conversion errors."""

    def __init__(self, message: str, path: Optional[str] = None,
                 line_number: Optional[int] = None, line: Optional[str] = None,
                 name: Optional[str] = None):
        self.message = message
        self.path = path
        self.line_number = line_number
        self.line = line
        self.name = name
        super().__init__(self._format())

    def located(self, path: str, line_number: Optional[int] = None) -> 'ConversionError':
        """Copy of this error tagged with the file (and line) it came from."""
        return type(self)(self.message, path=path,
                          line_number=line_number if line_number is not None else self.line_number,
                          line=self.line, name=self.name)

    def _format(self) -> str:
        where = ''
        if self.path:
            where = self.path
            if self.line_number is not None:
                where += f':{self.line_number}'
            where += ': '
        text = f'{where}{self.message}'
        if self.line is not None:
            text += f' (line: {self.line.strip()!r})'
        return text


class InputNotFound(ConversionError, FileNotFoundError):
    """A geometry or material file is missing or unreadable."""


class MissingMaterialBinding(ConversionError):
    """A face record appeared before any usemtl in the current object."""


class MalformedRecord(ConversionError, ValueError):
    """A numeric token could not be parsed."""


class IndexOutOfRange(MalformedRecord):
    """A face index resolves outside its attribute sequence."""


class ZeroIndex(ConversionError, ValueError):
    """A face index token was exactly zero."""


class DegenerateFace(ConversionError, ValueError):
    """A face record has fewer than three vertices."""


class MaterialNotFound(ConversionError, LookupError):
    """A submesh is bound to a material that the library does not declare."""


class IndexOverflow(ConversionError, OverflowError):
    """The vertex buffer outgrew the 16-bit index space."""


class OutputNotWritable(ConversionError, OSError):
    """An output file could not be created or written."""


class PreviewExportFailed(ConversionError):
    """The preview mesh could not be exported in the requested format."""
