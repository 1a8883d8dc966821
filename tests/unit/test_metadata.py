"""Tests for the Upload-Metadata encoder."""
import base64
import json

import pytest

from pinupload.core.upload.models import Network, UploadOptions
from pinupload.core.upload.services import MetadataEncoder


def _b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


class TestMetadataEncoder:
    """Test suite for MetadataEncoder."""

    @pytest.fixture
    def encoder(self):
        return MetadataEncoder()

    def test_mandatory_only(self, encoder):
        header = encoder.encode("a.txt", "text/plain", Network.PUBLIC)

        assert header == 'filename YS50eHQ=,filetype dGV4dC9wbGFpbg==,network cHVibGlj'

    def test_network_string(self, encoder):
        header = encoder.encode("a.txt", "text/plain", "private")

        assert header.endswith(f"network {_b64('private')}")

    def test_full_order(self, encoder):
        options = UploadOptions(
            group_id="grp-1",
            keyvalues={"env": "prod", "team": "media"},
            streamable=True,
        )

        header = encoder.encode("video.mp4", "video/mp4", Network.PRIVATE, options)

        assert header.split(',') == [
            f"filename {_b64('video.mp4')}",
            f"filetype {_b64('video/mp4')}",
            f"network {_b64('private')}",
            f"group_id {_b64('grp-1')}",
            f"keyvalues {_b64(json.dumps({'env': 'prod', 'team': 'media'}))}",
            f"streamable {_b64('true')}",
        ]

    def test_optional_keys_skipped_when_absent(self, encoder):
        options = UploadOptions(keyvalues={"k": "v"})

        keys = [key for key, _ in encoder.pairs("a", "text/plain", Network.PUBLIC, options)]

        assert keys == ['filename', 'filetype', 'network', 'keyvalues']

    def test_unicode_name(self, encoder):
        pairs = dict(encoder.pairs("résumé.pdf", "application/pdf", Network.PUBLIC))

        assert pairs['filename'] == "résumé.pdf"
        assert encoder.decode(encoder.encode("résumé.pdf", "application/pdf", Network.PUBLIC))['filename'] == "résumé.pdf"

    def test_decode(self, encoder):
        decoded = encoder.decode(f"file_id {_b64('abc')}, empty ,cid {_b64('bafy')}")

        assert decoded == {'file_id': 'abc', 'empty': '', 'cid': 'bafy'}

    def test_decode_none(self, encoder):
        assert encoder.decode(None) == {}

    def test_extract(self, encoder):
        header = f"file_id {_b64('file-42')}"

        assert encoder.extract(header, 'file_id') == 'file-42'
        assert encoder.extract(header, 'missing') is None
