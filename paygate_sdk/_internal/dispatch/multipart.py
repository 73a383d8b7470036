"""Streaming multipart/form-data encoder for file uploads."""

import mimetypes
import os
import secrets
from collections.abc import Mapping, Sequence
from typing import Any, BinaryIO

from paygate_sdk._internal.http import CHARSET
from paygate_sdk.exceptions import PaygateValidationError

LINE_BREAK = b"\r\n"
FILE_CHUNK_SIZE = 64 * 1024
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"

# HTML5 form-data escaping for quoted Content-Disposition parameters.
_PARAM_ESCAPES = str.maketrans({'"': "%22", "\r": "%0D", "\n": "%0A"})


def new_boundary() -> str:
    """Generate a random multipart boundary token."""
    return f"----Boundary{secrets.token_hex(16)}"


def is_file_value(value: Any) -> bool:
    """Whether a multipart value is uploaded as a file (a path or a readable stream)."""
    return isinstance(value, os.PathLike) or callable(getattr(value, "read", None))


class MultipartEncoder:
    """Writes multipart/form-data fields to a binary sink.

    Fields are written as they are added. File contents are copied in
    fixed-size chunks so uploads larger than memory are never held whole.
    `finish()` must be called exactly once, including when adding a field
    fails, or the body is left without its closing boundary.
    """

    def __init__(self, sink: BinaryIO, boundary: str, charset: str = CHARSET) -> None:
        """Initialize the encoder.

        Args:
            sink: Writable binary stream receiving the encoded body.
            boundary: Boundary token separating the parts.
            charset: Character set used for headers and form values.
        """
        self._sink = sink
        self._boundary = boundary
        self._charset = charset
        self._finished = False

    @property
    def boundary(self) -> str:
        return self._boundary

    @property
    def content_type(self) -> str:
        """Value for the request's Content-Type header."""
        return f"multipart/form-data; boundary={self._boundary}"

    def add_form_field(self, name: str, value: Any) -> None:
        """Write a plain form field.

        Args:
            name: The field name.
            value: A scalar value; it is written as its string form. Bytes
                are written unchanged.

        Raises:
            TypeError: If value is a mapping or list. Multipart bodies only
                support a single level of fields.
        """
        self._check_open()
        if isinstance(value, Mapping) or (
            isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))
        ):
            raise TypeError(
                f"Multipart field '{name}' must be a scalar value, "
                f"not {type(value).__name__}; nested parameters are not supported."
            )
        self._write_delimiter()
        self._write_line(f'Content-Disposition: form-data; name="{_quote_param(name)}"')
        self._sink.write(LINE_BREAK)
        if isinstance(value, (bytes, bytearray)):
            self._sink.write(value)
        else:
            self._sink.write(_text_form(value).encode(self._charset))
        self._sink.write(LINE_BREAK)

    def add_file_field(self, name: str, source: str | os.PathLike[str] | BinaryIO) -> None:
        """Write a file field, streaming the file's raw bytes.

        Args:
            name: The field name.
            source: Path of the file to upload, or an open binary stream.
                A stream is read from its current position; its `name`
                attribute, when a string, supplies the filename.

        Raises:
            PaygateValidationError: If the file cannot be opened or read.
            TypeError: If a stream yields text rather than bytes.
        """
        self._check_open()
        if isinstance(source, (str, os.PathLike)):
            filename = os.path.basename(os.fspath(source))
            try:
                stream = open(source, "rb")
            except OSError as e:
                raise PaygateValidationError(
                    f"Could not open file for key {name}: {e}", param=name
                ) from e
            with stream:
                self._write_file_part(name, filename, stream)
        else:
            stream_name = getattr(source, "name", None)
            filename = os.path.basename(stream_name) if isinstance(stream_name, str) else name
            self._write_file_part(name, filename, source)

    def finish(self) -> None:
        """Write the closing boundary and flush the sink."""
        if self._finished:
            raise RuntimeError("Multipart body has already been finished")
        self._finished = True
        self._sink.write(f"--{self._boundary}--".encode(self._charset))
        self._sink.write(LINE_BREAK)
        self._sink.flush()

    def _write_file_part(self, name: str, filename: str, stream: BinaryIO) -> None:
        content_type = mimetypes.guess_type(filename)[0] or DEFAULT_FILE_CONTENT_TYPE

        self._write_delimiter()
        self._write_line(
            f'Content-Disposition: form-data; name="{_quote_param(name)}"; '
            f'filename="{_quote_param(filename)}"'
        )
        self._write_line(f"Content-Type: {content_type}")
        self._write_line("Content-Transfer-Encoding: binary")
        self._sink.write(LINE_BREAK)
        while True:
            try:
                chunk = stream.read(FILE_CHUNK_SIZE)
            except OSError as e:
                raise PaygateValidationError(
                    f"Could not read file for key {name}: {e}", param=name
                ) from e
            if not chunk:
                break
            if not isinstance(chunk, (bytes, bytearray)):
                raise TypeError(
                    f"File for key {name} must be opened in binary mode, "
                    f"got {type(chunk).__name__} data."
                )
            self._sink.write(chunk)
        self._sink.write(LINE_BREAK)

    def _check_open(self) -> None:
        if self._finished:
            raise RuntimeError("Cannot add fields after the multipart body is finished")

    def _write_delimiter(self) -> None:
        self._write_line(f"--{self._boundary}")

    def _write_line(self, line: str) -> None:
        self._sink.write(line.encode(self._charset))
        self._sink.write(LINE_BREAK)


def _quote_param(value: str) -> str:
    return value.translate(_PARAM_ESCAPES)


def _text_form(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)
