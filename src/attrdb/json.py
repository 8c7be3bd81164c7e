""" JSON encoding for the payload frame of attrdb messages. Payloads are
    small dictionaries: a record identifier with attribute triples of
    [name, value, replace], a query with its cursor and page size, or a
    response carrying a 'value' and an 'error'. Every encoder used here
    returns bytes, which is what goes into a ZeroMQ frame; :func:`loads`
    accepts bytes or str.
"""

# msgspec is the declared dependency. If it is not installed orjson is used,
# and failing that the standard library.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    try:
        import orjson
    except ImportError:
        import json


if msgspec is not None:
    backend = 'msgspec'

    _encoder = msgspec.json.Encoder()
    _decoder = msgspec.json.Decoder()

    dumps = _encoder.encode
    loads = _decoder.decode
    DecodeError = msgspec.DecodeError

elif orjson is not None:
    backend = 'orjson'

    dumps = orjson.dumps
    loads = orjson.loads
    DecodeError = orjson.JSONDecodeError

else:
    backend = 'json'

    def dumps(payload):
        return json.dumps(payload, separators=(',', ':')).encode()

    loads = json.loads
    DecodeError = json.JSONDecodeError


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
