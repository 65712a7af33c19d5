"""Multipart form descriptors used as request input."""

from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional, Union

FileContent = Union[bytes, BinaryIO]


@dataclass
class FormDataFile:
    """One file part of a multipart form.

    Attributes:
        field_name: The form field the file is sent under.
        filename: The filename reported in the part's Content-Disposition.
        content: In-memory bytes, or a readable binary stream for large uploads.
        content_type: The part's Content-Type.
        headers: Extra MIME headers written on the part.
    """

    field_name: str
    content: FileContent
    filename: str = "unknown-file"
    content_type: str = "application/octet-stream"
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_stream(self) -> bool:
        return not isinstance(self.content, (bytes, bytearray))


class FormData:
    """Scalar fields and files for a multipart request body, kept in insertion order."""

    def __init__(self) -> None:
        self._params: Dict[str, Any] = {}
        self._files: List[FormDataFile] = []

    def add_param(self, key: str, value: Any) -> "FormData":
        self._params[key] = value
        return self

    def add_file(
        self,
        field_name: str,
        content: FileContent,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "FormData":
        form_file = FormDataFile(field_name=field_name, content=content, headers=dict(headers or {}))
        if filename is not None:
            form_file.filename = filename
        if content_type is not None:
            form_file.content_type = content_type
        self._files.append(form_file)
        return self

    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    def files(self) -> List[FormDataFile]:
        return list(self._files)

    def has_stream(self) -> bool:
        """True if any file is backed by a stream rather than in-memory bytes."""
        return any(f.is_stream for f in self._files)

    def __repr__(self) -> str:
        return f"<FormData params={list(self._params)} files={[f.field_name for f in self._files]}>"
