"""
Response status handling shared by the upload services.
"""
import aiohttp

from ...exceptions import AuthenticationError, NetworkError, UploadError

AUTH_STATUSES = (401, 403)


def is_success(status: int) -> bool:
    """Any 2xx status counts as success."""
    return 200 <= status < 300


async def error_from_response(
    response: aiohttp.ClientResponse,
    message: str
) -> UploadError:
    """
    Build the error for a non-2xx response.

    Args:
        response: The failed response (body is consumed)
        message: Human-readable context, e.g. "Error initializing upload"

    Returns:
        AuthenticationError for 401/403, NetworkError otherwise
    """
    body = await _read_body(response)
    request_url = str(response.url)
    if response.status in AUTH_STATUSES:
        return AuthenticationError(
            f"Authentication failed: {body}",
            response.status,
            {
                'error': body,
                'code': 'AUTH_ERROR',
                'metadata': {'requestUrl': request_url},
            }
        )
    return NetworkError(
        f"{message}: HTTP {response.status} {body}".rstrip(),
        response.status,
        {
            'error': body,
            'code': 'HTTP_ERROR',
            'metadata': {'requestUrl': request_url},
        }
    )


async def _read_body(response: aiohttp.ClientResponse) -> str:
    try:
        return await response.text()
    except (aiohttp.ClientError, UnicodeDecodeError):
        return ''
