""" The request/response protocol used to reach a remote record store.

    Each message is a ZeroMQ multipart sequence::

        version, id, type, target, payload

    where *version* is a single byte, *id* ties a response to its request,
    *type* is one of the request types (GET, PUT, DELETE, QUERY) or response
    types (ACK, REP), *target* is the domain name, and *payload* is JSON.
    Every request is acknowledged immediately with an ACK; the REP follows
    once the request has been handled, with a payload of the form
    ``{"value": ..., "error": null}``, or an error of the form
    ``{"type": ..., "text": ...}``.
"""

from . import message
from . import request


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
