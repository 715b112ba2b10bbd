"""
Tests for the HTTP packet client using a mocked requests session.
"""
import json
from unittest.mock import MagicMock

import pytest
from datapacket.builder import build, build_multi
from datapacket.client import PacketClient
from datapacket.exceptions import SchemaError, SourceError
from datapacket.packet import ListResult, MultiPacket, Packet


def make_response(payload=None, status=200, text=None):
    """Build a mock requests.Response"""
    response = MagicMock()
    response.ok = status < 400
    response.status_code = status
    if payload is not None:
        body = json.dumps(payload)
        response.json.return_value = payload
    else:
        body = text or ''
        response.json.side_effect = ValueError('No JSON object could be decoded')
    response.text = body
    response.content = body.encode()
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return PacketClient('http://localhost:5000/api/', session=session, timeout=5)


def test_get_packet(client, session, user_descriptors):
    """GET decodes a packet and calls the joined URL"""
    packet = build(user_descriptors, [(1, 'Ann', True, None)])
    session.request.return_value = make_response(packet.to_dict())

    result = client.get('/users/1')

    assert isinstance(result, Packet)
    assert result == packet
    session.request.assert_called_once_with('GET', 'http://localhost:5000/api/users/1', timeout=5)


def test_get_multi_and_list(client, session):
    """Multi-packets and list results decode to their own types"""
    multi = build_multi([
        ([('Total_CNT', int, None, False)], [(2,)]),
        ([('User_ID', int, None, False)], [(1,), (2,)]),
        ])
    session.request.return_value = make_response(multi.to_dict())
    assert isinstance(client.get_multi('users/summary'), MultiPacket)

    session.request.return_value = make_response(multi.paged().to_dict())
    page = client.list('users')
    assert isinstance(page, ListResult)
    assert page.total == 2


def test_unexpected_shape(client, session):
    """A response of the wrong packet shape is a schema error"""
    multi = build_multi([([('User_ID', int)], [])])
    session.request.return_value = make_response(multi.to_dict())
    with pytest.raises(SchemaError, match='Expected Packet'):
        client.get('users/1')


def test_post_sends_json(client, session):
    """POST bodies are sent as JSON"""
    session.request.return_value = make_response({'id': 3})

    assert client.post('users', {'User_NM': 'Cy'}) == {'id': 3}

    args, kwargs = session.request.call_args
    assert args == ('POST', 'http://localhost:5000/api/users')
    assert json.loads(kwargs['data']) == {'User_NM': 'Cy'}
    assert kwargs['headers'] == {'Content-Type': 'application/json'}


def test_empty_body(client, session):
    """Empty successful responses return None"""
    session.request.return_value = make_response(status=204)
    assert client.delete('users/3') is None


def test_non_json_success(client, session):
    """A successful response that is not JSON is a schema error"""
    session.request.return_value = make_response(text='<html>ok</html>')
    with pytest.raises(SchemaError):
        client.put('users/3', {'User_NM': 'Cy'})


def test_error_envelope_becomes_source_error(client, session):
    """Server error envelopes surface with message and code unchanged"""
    session.request.return_value = make_response(
        {'message': 'insufficient balance', 'code': 50001}, status=400)
    with pytest.raises(SourceError) as exc_info:
        client.post('payments', {'User_ID': 1, 'Amount_AMT': 5000})
    assert exc_info.value.message == 'insufficient balance'
    assert exc_info.value.code == 50001


def test_error_without_envelope(client, session):
    """Errors without an envelope carry the raw response text"""
    session.request.return_value = make_response(status=502, text='Bad Gateway')
    with pytest.raises(SourceError) as exc_info:
        client.get('users/1')
    assert exc_info.value.message == 'Bad Gateway'
    assert exc_info.value.code is None


def test_close(client, session):
    """close releases the session"""
    client.close()
    session.close.assert_called_once_with()


if __name__ == '__main__':
    __import__('pytest').main([__file__])
