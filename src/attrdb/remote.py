""" Client side of the record store protocol. A :class:`RemoteStore` turns
    each store operation into a single request against a
    :class:`attrdb.daemon.StoreServer`, and turns any failure along the
    way into a :class:`attrdb.errors.RemoteFault`.
"""

import zmq

from . import config
from .errors import RemoteFault
from .item import Attribute
from .protocol import message
from .protocol import request
from .store import Page, RemoteRecordStore


def encode_attributes(attributes):
    """ Attribute lists travel as a list of [name, value, replace] triples.
    """

    if attributes is None:
        return None

    return [[attribute.name, attribute.value, attribute.replace] for attribute in attributes]


def decode_attributes(encoded):

    if encoded is None:
        return None

    attributes = list()
    for entry in encoded:
        name = entry[0]
        value = entry[1]

        if len(entry) > 2:
            replace = entry[2]
        else:
            replace = False

        attributes.append(Attribute(name, value, replace))

    return attributes



class RemoteStore(RemoteRecordStore):
    """ Issue record store requests to a remote daemon listening at
        *address* and *port*. Connections are shared via
        :func:`attrdb.protocol.request.client`, so any number of
        :class:`RemoteStore` instances and threads pointed at the same
        daemon use a single socket. The *timeout* is the number of seconds
        to wait for each response; the configured default applies if it
        is not specified.
    """

    def __init__(self, address, port, timeout=None):

        if timeout is None:
            timeout = config.get().timeout

        self.address = address
        self.port = int(port)
        self.timeout = config.validate('timeout', timeout)


    def __repr__(self):
        return 'RemoteStore(%r, %d)' % (self.address, self.port)


    def _request(self, type, domain, payload):
        """ Send one request and return the 'value' of the response.
        """

        outgoing = message.Request(type, domain, payload)

        try:
            response = request.send(self.address, self.port, outgoing, self.timeout)
        except zmq.ZMQError as e:
            error = '%s %s @ %s:%d: %s' % (type, domain, self.address, self.port, str(e))
            raise RemoteFault(error) from e

        error = response.error
        if error is not None:
            error = '%s %s failed: %s: %s' % (type, domain, error.get('type'), error.get('text'))
            raise RemoteFault(error)

        return response.value


    def fetch_attributes(self, domain, identifier, names=None):

        if names:
            names = list(names)
        else:
            names = None

        payload = dict(item=identifier, names=names)
        value = self._request('GET', domain, payload)

        try:
            attributes = decode_attributes(value)
        except (TypeError, ValueError, IndexError) as e:
            raise RemoteFault('malformed GET response for %r' % (identifier)) from e

        if attributes is None:
            attributes = list()

        return attributes


    def put_attributes(self, domain, identifier, attributes):

        payload = dict(item=identifier, attributes=encode_attributes(attributes))
        self._request('PUT', domain, payload)


    def delete_attributes(self, domain, identifier, attributes=None):

        payload = dict(item=identifier, attributes=encode_attributes(attributes))
        self._request('DELETE', domain, payload)


    def query_page(self, domain, query, cursor, page_size=0):

        payload = dict(query=query, cursor=cursor, page_size=page_size)
        value = self._request('QUERY', domain, payload)

        try:
            return Page(value['next_token'], list(value['items']))
        except (TypeError, KeyError) as e:
            raise RemoteFault('malformed QUERY response for %r' % (query)) from e


# end of class RemoteStore


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
