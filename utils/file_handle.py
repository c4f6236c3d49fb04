"""
Delivery handle codec.

A delivery handle is whatever lets us resend an already-uploaded file
without uploading the bytes again. Two shapes exist:

  FileToken          Bot API file_id, stored as-is
                     "CQACAgIAAxkDAAIBQ2Zk..."

  DocumentReference  MTProto InputDocument (id, access_hash, file_reference),
                     stored as tagged JSON
                     {"type": "document", "v": 1, "id": "...",
                      "accessHash": "...", "fileReference": "<base64>"}

decode() inspects only the stored string. Anything it does not recognise
comes back as None, which callers treat exactly like a cache miss.
"""
import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Optional, Union

HANDLE_VERSION = 1

# Bot API file ids are URL-safe base64 and never this short
_FILE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{20,}$")


@dataclass(frozen=True)
class FileToken:
    file_id: str


@dataclass(frozen=True)
class DocumentReference:
    id: int
    access_hash: int
    file_reference: bytes


DeliveryHandle = Union[FileToken, DocumentReference]


def encode(handle: DeliveryHandle) -> str:
    """Serialize a handle into the string kept in the file-id cache"""
    if isinstance(handle, FileToken):
        return handle.file_id
    if isinstance(handle, DocumentReference):
        return json.dumps({
            "type": "document",
            "v": HANDLE_VERSION,
            "id": str(handle.id),
            "accessHash": str(handle.access_hash),
            "fileReference": base64.b64encode(handle.file_reference).decode("ascii"),
        })
    raise TypeError(f"Unsupported handle type: {type(handle).__name__}")


def _decode_document(value: str) -> Optional[DocumentReference]:
    try:
        parsed = json.loads(value)
    except ValueError:
        return None
    if not isinstance(parsed, dict) or parsed.get("type") != "document":
        return None
    if parsed.get("v", HANDLE_VERSION) != HANDLE_VERSION:
        return None

    raw_id = parsed.get("id")
    raw_hash = parsed.get("accessHash")
    raw_ref = parsed.get("fileReference")
    if not all(isinstance(x, str) for x in (raw_id, raw_hash, raw_ref)):
        return None

    try:
        return DocumentReference(
            id=int(raw_id),
            access_hash=int(raw_hash),
            file_reference=base64.b64decode(raw_ref, validate=True),
        )
    except (ValueError, binascii.Error):
        return None


def decode(value) -> Optional[DeliveryHandle]:
    """
    Parse a stored cache value back into a handle.

    Returns None for empty, malformed or foreign values. Never raises.
    """
    if not isinstance(value, str) or not value:
        return None
    if value.startswith("{"):
        return _decode_document(value)
    if _FILE_ID_RE.match(value):
        return FileToken(value)
    return None
