import json

import pytest

from utils.file_handle import DocumentReference, FileToken, decode, encode


def test_document_reference_round_trip():
    ref = DocumentReference(id=5843299341241, access_hash=-7342412312876, file_reference=b"\x00\x01binary\xff")
    assert decode(encode(ref)) == ref


def test_document_reference_is_tagged_json():
    stored = json.loads(encode(DocumentReference(1, 2, b"abc")))
    assert stored == {"type": "document", "v": 1, "id": "1", "accessHash": "2", "fileReference": "YWJj"}


def test_file_token_is_stored_verbatim():
    file_id = "CQACAgIAAxkDAAIBQ2Zk1234567890abcdef"
    assert encode(FileToken(file_id)) == file_id
    assert decode(file_id) == FileToken(file_id)


def test_version_field_is_optional():
    value = json.dumps({"type": "document", "id": "10", "accessHash": "20", "fileReference": "YWJj"})
    assert decode(value) == DocumentReference(10, 20, b"abc")


@pytest.mark.parametrize("value", [
    None,
    "",
    "hello world",
    "short",
    "{",
    '{"type": "document", "id": "1"',
    '{"type": "photo", "id": "1", "accessHash": "2", "fileReference": "YWJj"}',
    '{"type": "document", "v": 2, "id": "1", "accessHash": "2", "fileReference": "YWJj"}',
    '{"type": "document", "id": 1, "accessHash": "2", "fileReference": "YWJj"}',
    '{"type": "document", "id": "x", "accessHash": "2", "fileReference": "YWJj"}',
    '{"type": "document", "id": "1", "accessHash": "2", "fileReference": "not base64!"}',
    '["document"]',
    "null",
    12345,
])
def test_malformed_values_decode_to_none(value):
    assert decode(value) is None


def test_encode_rejects_unknown_types():
    with pytest.raises(TypeError):
        encode("AgADplainStringNotAToken")
