"""
HTTP client for packet endpoints.

The client only moves packets: it sends JSON, decodes packets, and turns an
error response into SourceError carrying the server's message and code
exactly as received.
"""
import json
import logging
from typing import Any

import requests

from datapacket.exceptions import SchemaError, SourceError
from datapacket.packet import ListResult, MultiPacket, Packet
from datapacket.transport import ErrorEnvelope, PacketEncoder, from_wire

logger = logging.getLogger(__name__)

__all__ = ['PacketClient']


class PacketClient:
    """Thin request/response wrapper around a requests.Session.

    Args:
        base_url: Prefix for every endpoint, e.g. 'http://localhost:5000/api'
        session: Session to use; a new one is created when omitted
        timeout: Per-request timeout in seconds
    """

    def __init__(self, base_url: str, session: requests.Session | None = None,
                 timeout: float = 30) -> None:
        self.base_url = base_url.rstrip('/')
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        return f'{self.base_url}/{endpoint.lstrip("/")}'

    def _request(self, method: str, endpoint: str, data: Any = None) -> Any:
        kwargs: dict[str, Any] = {'timeout': self.timeout}
        if data is not None:
            kwargs['data'] = json.dumps(data, cls=PacketEncoder)
            kwargs['headers'] = {'Content-Type': 'application/json'}
        url = self._url(endpoint)
        logger.debug(f'{method} {url}')
        response = self.session.request(method, url, **kwargs)
        if not response.ok:
            raise self._source_error(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise SchemaError(f'{method} {url} returned a non-JSON body') from e

    @staticmethod
    def _source_error(response: requests.Response) -> SourceError:
        """Server error as SourceError; the message is never rewritten."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get('message'), str):
            return ErrorEnvelope.from_dict(body).to_exception()
        return SourceError(response.text, None)

    def _expect(self, data: Any, kind: type) -> Any:
        packet = from_wire(data)
        if not isinstance(packet, kind):
            raise SchemaError(f'Expected {kind.__name__}, got {type(packet).__name__}')
        return packet

    def get(self, endpoint: str) -> Packet:
        return self._expect(self._request('GET', endpoint), Packet)

    def get_multi(self, endpoint: str) -> MultiPacket:
        return self._expect(self._request('GET', endpoint), MultiPacket)

    def list(self, endpoint: str) -> ListResult:
        return self._expect(self._request('GET', endpoint), ListResult)

    def post(self, endpoint: str, data: Any) -> Any:
        return self._request('POST', endpoint, data)

    def put(self, endpoint: str, data: Any) -> Any:
        return self._request('PUT', endpoint, data)

    def delete(self, endpoint: str) -> Any:
        return self._request('DELETE', endpoint)

    def close(self) -> None:
        self.session.close()
