"""Upload validation and data URI encoding.

Uploaded files are never parsed locally. They are checked, wrapped in a
``data:<mime>;base64,<payload>`` URI and handed to the parse flow.
"""

import base64
import binascii
import logging
import mimetypes
import re
from pathlib import PurePath

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_EXTENSIONS = frozenset({".pdf", ".docx", ".doc", ".png", ".jpg", ".jpeg", ".txt"})
ACCEPT_ATTRIBUTE = ",".join(sorted(ALLOWED_EXTENSIONS))

_FALLBACK_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".txt": "text/plain",
}

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.*)$", re.DOTALL)


class DocumentParseError(Exception):
    """Raised when an upload is rejected or cannot be parsed."""

    pass


class UploadRejectedError(DocumentParseError):
    """Raised when an upload fails validation before it reaches the model."""

    pass


class DataUri(BaseModel):
    """A decoded data URI.

    Attributes:
        mime_type: MIME type declared in the URI.
        data: Decoded payload bytes.
    """

    mime_type: str
    data: bytes


class DocumentUpload(BaseModel):
    """A validated upload ready for the parse flow.

    Attributes:
        name: Original file name.
        mime_type: MIME type guessed from the extension.
        data_uri: File content as a base64 data URI.
    """

    name: str
    mime_type: str
    data_uri: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


def encode_data_uri(content: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URI."""
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def decode_data_uri(uri: str) -> DataUri:
    """Split a base64 data URI into its MIME type and payload.

    Raises:
        UploadRejectedError: If the URI is malformed or the payload is not base64.
    """
    match = _DATA_URI_RE.match(uri.strip())
    if not match:
        raise UploadRejectedError("Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'")

    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise UploadRejectedError(f"Invalid base64 payload in data URI: {e}") from e

    return DataUri(mime_type=match.group("mime").lower(), data=data)


def guess_mime_type(filename: str) -> str:
    suffix = PurePath(filename).suffix.lower()
    guessed, _ = mimetypes.guess_type(filename)
    return _FALLBACK_MIME_TYPES.get(suffix) or guessed or "application/octet-stream"


def _validate_filename(filename: str | None) -> str:
    if not filename or not filename.strip():
        raise UploadRejectedError("Filename is required")

    suffix = PurePath(filename).suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_EXTENSIONS))
        raise UploadRejectedError(f"Unsupported file type '{suffix or filename}'. Allowed: {allowed}")

    return PurePath(filename).name


def _validate_content(content: bytes) -> None:
    if not content:
        raise UploadRejectedError("Empty file provided")

    if len(content) > MAX_FILE_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise UploadRejectedError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")


def prepare_upload(filename: str | None, content: bytes) -> DocumentUpload:
    """Validate an uploaded file and encode it for the parse flow.

    Args:
        filename: Name the browser sent with the file.
        content: Raw file bytes.

    Returns:
        DocumentUpload with name, MIME type and data URI.

    Raises:
        UploadRejectedError: If the name, type or size is not acceptable.
    """
    name = _validate_filename(filename)
    _validate_content(content)

    mime_type = guess_mime_type(name)
    logger.debug(f"Prepared upload {name} ({mime_type}, {len(content)} bytes)")

    return DocumentUpload(
        name=name,
        mime_type=mime_type,
        data_uri=encode_data_uri(content, mime_type),
    )
