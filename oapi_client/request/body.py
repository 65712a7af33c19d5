"""Request body materialization.

A body is built once per call and re-sent on retry, so every body is a
`RewindableBody`: it can be reset to offset zero before each transmission.
File-backed bodies remember the path they came from and reopen it if the
handle was closed by a previous send.
"""

import abc
import contextlib
import logging
import os
import tempfile
from typing import Any, BinaryIO, List, Optional, Tuple, Union

import httpx
from pydantic_core import PydanticSerializationError, to_json

from oapi_client.core.constants import DEFAULT_CONTENT_TYPE, HTTP_HEADER_CONTENT_TYPE, TEMP_FILE_PREFIX
from oapi_client.exceptions import BodyBuildError
from oapi_client.request.form_data import FormData

logger = logging.getLogger(__name__)

# Only used to drive httpx's multipart encoder; never sent anywhere.
_ENCODER_URL = "http://localhost/"


class RewindableBody(abc.ABC):
    """A request body that can be transmitted more than once."""

    @abc.abstractmethod
    def rewind(self) -> None:
        """Resets the body so the next `content()` starts at offset zero."""
        raise NotImplementedError

    @abc.abstractmethod
    def content(self) -> Union[bytes, BinaryIO]:
        """Returns what is handed to httpx as request content."""
        raise NotImplementedError

    @abc.abstractmethod
    def length(self) -> int:
        raise NotImplementedError

    def close(self) -> None:
        """Releases any resource backing the body."""
        pass


class BytesBody(RewindableBody):
    """A body held entirely in memory."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    def rewind(self) -> None:
        pass

    def content(self) -> bytes:
        return self.data

    def length(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"<BytesBody {len(self.data)} bytes>"


class FileBody(RewindableBody):
    """A body streamed from a file on disk.

    Attributes:
        path: Where the body lives; used to reopen the file if its handle was closed.
        remove_on_close: Delete the file on `close()` (true for temporary files).
    """

    def __init__(self, path: str, handle: Optional[BinaryIO] = None, remove_on_close: bool = False) -> None:
        self.path = path
        self.remove_on_close = remove_on_close
        self._handle = handle

    @property
    def handle(self) -> Optional[BinaryIO]:
        return self._handle

    def rewind(self) -> None:
        if self._handle is None or self._handle.closed:
            logger.debug(f"Body file {self.path} was closed, reopening it")
            self._handle = open(self.path, "rb")
            return
        self._handle.seek(0)

    def content(self) -> BinaryIO:
        if self._handle is None or self._handle.closed:
            self.rewind()
        assert self._handle is not None
        return self._handle

    def length(self) -> int:
        return os.path.getsize(self.path)

    def close(self) -> None:
        if self._handle is not None and not self._handle.closed:
            self._handle.close()
        if self.remove_on_close:
            with contextlib.suppress(FileNotFoundError):
                os.remove(self.path)

    def __repr__(self) -> str:
        return f"<FileBody {self.path}>"


def _form_value(value: Any) -> Union[str, bytes]:
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_form_body(form: FormData) -> Tuple[RewindableBody, str]:
    """Encodes a multipart form: every scalar field first, then every file part.

    When any file is a stream, the encoded body is spooled to a temporary file
    and returned as a `FileBody` instead of being held in memory.

    Returns:
        The body and its `multipart/form-data; boundary=...` content type.

    Raises:
        BodyBuildError: If encoding fails or the temporary file cannot be written.
    """
    # Scalar fields go in as filename-less parts so httpx keeps multipart encoding
    # (and insertion order) even when the form carries no files.
    parts: List[Tuple[str, Any]] = [(key, (None, _form_value(val))) for key, val in form.params().items()]
    parts.extend((f.field_name, (f.filename, f.content, f.content_type, dict(f.headers))) for f in form.files())
    if not parts:
        # httpx falls back to urlencoding without parts; emit just the closing boundary
        boundary = os.urandom(16).hex()
        return BytesBody(f"--{boundary}--\r\n".encode("ascii")), f"multipart/form-data; boundary={boundary}"
    try:
        encoded = httpx.Request("POST", _ENCODER_URL, files=parts)
    except (TypeError, ValueError) as e:
        raise BodyBuildError(f"Failed to encode form data: {e}") from e
    content_type = encoded.headers[HTTP_HEADER_CONTENT_TYPE]

    if not form.has_stream():
        return BytesBody(encoded.read()), content_type

    try:
        tmp = tempfile.NamedTemporaryFile(prefix=TEMP_FILE_PREFIX, delete=False)
    except OSError as e:
        raise BodyBuildError(f"Failed to create temporary body file: {e}") from e
    body = FileBody(tmp.name, handle=tmp, remove_on_close=True)
    try:
        for chunk in encoded.stream:
            tmp.write(chunk)
        tmp.flush()
    except (OSError, ValueError) as e:
        body.close()
        raise BodyBuildError(f"Failed to write form data to {tmp.name}: {e}") from e
    body.rewind()
    return body, content_type


def build_input_body(input: Any) -> Tuple[BytesBody, str]:
    """Uses a string input verbatim and JSON-encodes anything else.

    Raises:
        BodyBuildError: If the input cannot be serialized to JSON.
    """
    if isinstance(input, str):
        return BytesBody(input.encode("utf-8")), DEFAULT_CONTENT_TYPE
    try:
        data = to_json(input)
    except PydanticSerializationError as e:
        raise BodyBuildError(f"Failed to encode request input as JSON: {e}") from e
    return BytesBody(data), DEFAULT_CONTENT_TYPE
