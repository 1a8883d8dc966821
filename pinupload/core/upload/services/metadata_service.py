"""
Upload-Metadata header encoding.

The header is a comma-separated list of ``key base64(value)`` pairs.
Mandatory keys come first, optional keys follow in a fixed order.
"""
from typing import Dict, List, Optional, Tuple, Union
import base64
import binascii
import json

from ..models import Network, UploadOptions

MANDATORY_KEYS = ('filename', 'filetype', 'network')
OPTIONAL_KEYS = ('group_id', 'keyvalues', 'streamable')


def _b64(value: str) -> str:
    return base64.b64encode(value.encode('utf-8')).decode('ascii')


class MetadataEncoder:
    """
    Encodes upload-time metadata for the initiation request.

    Example:
        >>> encoder = MetadataEncoder()
        >>> encoder.encode("a.txt", "text/plain", Network.PUBLIC)
        'filename YS50eHQ=,filetype dGV4dC9wbGFpbg==,network cHVibGlj'
    """

    def pairs(
        self,
        name: str,
        content_type: str,
        network: Union[Network, str],
        options: Optional[UploadOptions] = None
    ) -> List[Tuple[str, str]]:
        """
        Ordered (key, raw value) pairs before base64 encoding.

        Args:
            name: File name
            content_type: Content type of the payload
            network: Target network
            options: Optional upload options

        Returns:
            Mandatory pairs followed by the optional pairs that are present
        """
        options = options or UploadOptions()
        result = [
            ('filename', name),
            ('filetype', content_type),
            ('network', Network.parse(network).value),
        ]
        if options.group_id:
            result.append(('group_id', options.group_id))
        if options.keyvalues:
            result.append(('keyvalues', json.dumps(dict(options.keyvalues))))
        if options.streamable:
            result.append(('streamable', 'true'))
        return result

    def encode(
        self,
        name: str,
        content_type: str,
        network: Union[Network, str],
        options: Optional[UploadOptions] = None
    ) -> str:
        """Build the Upload-Metadata header value."""
        return ','.join(
            f"{key} {_b64(value)}"
            for key, value in self.pairs(name, content_type, network, options)
        )

    def decode(self, header: Optional[str]) -> Dict[str, str]:
        """
        Parse an Upload-Metadata header.

        Keys without a value map to an empty string; pairs whose value is not
        valid base64 are skipped.
        """
        result: Dict[str, str] = {}
        if not header:
            return result
        for part in header.split(','):
            part = part.strip()
            if not part:
                continue
            key, _, encoded = part.partition(' ')
            try:
                result[key] = base64.b64decode(encoded.strip()).decode('utf-8')
            except (binascii.Error, UnicodeDecodeError):
                continue
        return result

    def extract(self, header: Optional[str], key: str) -> Optional[str]:
        """Decoded value of ``key`` in an Upload-Metadata header, if present."""
        value = self.decode(header).get(key)
        return value or None
