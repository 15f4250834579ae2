import os

import pytest

from assetlib.errors import ValidationError
from assetlib.services.upload import (
    MAX_FILE_SIZE,
    UploadCandidate,
    UploadResult,
    decode_data_url,
    encode_data_url,
    format_file_size,
    has_room,
    partition,
    storage_warning,
    validate_file,
)


def test_rejects_unsupported_type():
    with pytest.raises(ValidationError) as exc:
        validate_file(UploadCandidate("notes.pdf", "application/pdf", b"%PDF"))
    assert exc.value.message == '"notes.pdf" is not a supported format'


def test_rejects_oversize_file():
    big = UploadCandidate("huge.png", "image/png", b"x", size=MAX_FILE_SIZE + 1)
    with pytest.raises(ValidationError) as exc:
        validate_file(big)
    assert exc.value.message == '"huge.png" exceeds 2MB limit'


def test_exactly_at_ceiling_is_accepted():
    validate_file(UploadCandidate("edge.webp", "image/webp", b"x", size=MAX_FILE_SIZE))


def test_partition_reports_each_rejection():
    result = UploadResult()
    valid = partition(
        [
            UploadCandidate("a.png", "image/png", b"1"),
            UploadCandidate("b.txt", "text/plain", b"2"),
            UploadCandidate("c.gif", "image/gif", b"3", size=MAX_FILE_SIZE * 2),
        ],
        result,
    )
    assert [c.name for c in valid] == ["a.png"]
    assert result.failed == 2
    assert len(result.errors) == 2


@pytest.mark.parametrize("mime", ["image/png", "image/svg+xml", "image/jpeg"])
def test_encode_then_decode_is_byte_identical(mime):
    payload = os.urandom(1024) + b"\x00\xff"
    decoded_mime, content = decode_data_url(encode_data_url(payload, mime))
    assert decoded_mime == mime
    assert content == payload


def test_decode_rejects_garbage():
    with pytest.raises(ValidationError):
        decode_data_url("not-a-data-url")
    with pytest.raises(ValidationError):
        decode_data_url("data:image/png;base64,@@@")


def test_quota_thresholds():
    quota = 1000
    assert has_room(949, quota)
    assert not has_room(950, quota)
    assert storage_warning(801, quota)
    assert not storage_warning(800, quota)


def test_format_file_size():
    assert format_file_size(0) == "0 B"
    assert format_file_size(512) == "512 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(2 * 1024 * 1024) == "2 MB"
