""" Server-side handling of record store requests. A :class:`StoreServer`
    exposes any :class:`attrdb.store.RemoteRecordStore` implementation,
    typically an :class:`attrdb.store.MemoryStore`, to remote clients.
"""

import logging

from . import remote
from .protocol import request


logger = logging.getLogger(__name__)


class StoreServer(request.Server):
    """ Answer GET, PUT, DELETE, and QUERY requests using the supplied
        *backend* store. Any additional arguments are passed through to
        :class:`attrdb.protocol.request.Server`.

        Exceptions raised by the backend, including
        :class:`attrdb.errors.RemoteFault`, are returned to the client as
        errors by the base class.
    """

    def __init__(self, backend, *args, **kwargs):

        self.backend = backend
        request.Server.__init__(self, *args, **kwargs)
        logger.info("serving %r on port %d", backend, self.port)


    def req_handler(self, request):

        try:
            handler = getattr(self, 'req_' + request.type.lower())
        except AttributeError:
            raise ValueError('unhandled request type: ' + request.type)

        if request.target is None:
            raise ValueError('request does not specify a domain')

        payload = request.payload
        if payload is None:
            payload = dict()

        return handler(request.target, payload)


    def req_get(self, domain, payload):
        attributes = self.backend.fetch_attributes(domain, payload['item'], payload.get('names'))
        return remote.encode_attributes(attributes)


    def req_put(self, domain, payload):
        attributes = remote.decode_attributes(payload['attributes'])
        self.backend.put_attributes(domain, payload['item'], attributes)


    def req_delete(self, domain, payload):
        attributes = remote.decode_attributes(payload.get('attributes'))
        self.backend.delete_attributes(domain, payload['item'], attributes)


    def req_query(self, domain, payload):

        page = self.backend.query_page(domain, payload.get('query'),
                        payload.get('cursor'), payload.get('page_size', 0))

        result = dict()
        result['next_token'] = page.next_token
        result['items'] = page.identifiers
        return result


# end of class StoreServer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
