"""Upload handling for document grounding.

Responsibilities:
    - File name, type and size validation
    - MIME type detection from the extension
    - Base64 data URI encoding and decoding

Text extraction itself is done by the parse flow in ``parseai.agent``.
"""

from parseai.parsing.documents import (
    ACCEPT_ATTRIBUTE,
    ALLOWED_EXTENSIONS,
    MAX_FILE_SIZE,
    DataUri,
    DocumentParseError,
    DocumentUpload,
    UploadRejectedError,
    decode_data_uri,
    encode_data_uri,
    prepare_upload,
)

__all__ = [
    "ACCEPT_ATTRIBUTE",
    "ALLOWED_EXTENSIONS",
    "MAX_FILE_SIZE",
    "DataUri",
    "DocumentParseError",
    "DocumentUpload",
    "UploadRejectedError",
    "decode_data_uri",
    "encode_data_uri",
    "prepare_upload",
]
