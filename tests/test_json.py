import pytest

from attrdb import json
from attrdb.protocol import message


def test_backend():
    assert json.backend in ('msgspec', 'orjson', 'json')


def test_request_payloads():
    """ Each request type's payload survives encoding, and always encodes
        to bytes so it can be used directly as a message frame.
    """

    payloads = list()
    payloads.append({'item': 'record-1', 'names': None})
    payloads.append({'item': 'record-1', 'names': ['number', 'parity']})
    payloads.append({'item': 'record-2', 'attributes': [['color', 'blue', False], ['size', '12', True]]})
    payloads.append({'item': 'record-3', 'attributes': [['color', None, False]]})
    payloads.append({'query': "['parity' = 'odd']", 'cursor': None, 'page_size': 250})

    for payload in payloads:
        encoded = json.dumps(payload)
        assert isinstance(encoded, bytes)
        assert json.loads(encoded) == payload

        # Whitespace in the encoded form varies between libraries, so the
        # bytes themselves are not compared.

        assert json.loads(encoded.decode()) == payload


def test_response_payload():

    value = {'next_token': '250', 'items': ['record-%d' % (number) for number in range(250)]}
    encoded = json.dumps({'value': value, 'error': None})

    decoded = json.loads(encoded)
    assert decoded['error'] is None
    assert decoded['value']['next_token'] == '250'
    assert len(decoded['value']['items']) == 250


def test_decode_error():

    with pytest.raises(json.DecodeError):
        json.loads(b'{"item": ')

    # Malformed payloads in a received message surface as a ValueError.

    request = message.Request('GET', 'unittest', {'item': 'record-1'})
    parts = tuple(request)
    parts = parts[:4] + (b'{"item": ',)

    with pytest.raises(ValueError):
        message.from_parts(parts)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
