""" A class representation of an attrdb message, including the subclass
    used for requests that expect a response.
"""

import itertools
import threading
import time

from .. import json


# This is the version of the on-the-wire protocol implemented here,
# identified by a single byte.

version = b'a'


class Message:
    """ The :class:`Message` provides a very thin encapsulation of what it
        means to be a message in an attrdb context. This class is used to
        represent responses: an immediate ACK, and the REP carrying the
        result of a request.

        The fields are in order of how they are represented on the wire: the
        message *type*, the *target* domain of the request, and the *payload*,
        a dictionary that will be encoded as JSON. The identification number
        ties a response to its request; it is the last argument so that it
        can be omitted for new requests, where it is generated automatically.

        :ivar timestamp: A UNIX epoch timestamp for the message creation time.
    """

    valid_types = set(('ACK', 'REP'))

    def __init__(self, type, target=None, payload=None, id=None):

        if type in self.valid_types:
            pass
        else:
            raise ValueError('invalid message type: ' + repr(type))

        self.id = id
        self.type = type
        self.target = target
        self.payload = payload
        self.timestamp = time.time()

        self.parts = None


    def __iter__(self):
        self._finalize()
        return iter(self.parts)


    def __repr__(self):
        self._finalize()
        return repr(self.parts)


    @property
    def error(self):
        """ The error description included in the payload, if any; this is
            a dictionary with 'type' and 'text' keys, or None.
        """

        try:
            error = self.payload['error']
        except (KeyError, TypeError):
            return None

        if error == '':
            return None
        return error


    @property
    def value(self):
        try:
            return self.payload['value']
        except (KeyError, TypeError):
            return None


    def _finalize(self):
        """ Interpret the contents of this :class:`Message` as bytes, and
            prepare the tuple used for the multipart transmission on the wire.
        """

        if self.parts is not None:
            return

        id = self.id

        if id is None:
            raise RuntimeError('messages must have an id to be put on the wire')

        try:
            id.decode
        except AttributeError:
            id = ('%08x' % (id)).encode()

        if self.target is None:
            target = b''
        else:
            target = self.target.encode()

        if self.payload is None:
            payload = b''
        else:
            payload = json.dumps(self.payload)

        self.parts = (version, id, self.type.encode(), target, payload)


# end of class Message



class Request(Message):
    """ A :class:`Request` adds the ability to signal that a request has been
        acknowledged, and later completed. This is the class used on the
        client side whenever a response is expected.

        :ivar response: The final response to a request (also a Message).
    """

    valid_types = set(('GET', 'PUT', 'DELETE', 'QUERY'))

    def __init__(self, type, target=None, payload=None, id=None):

        # Requests are generally initiated without an id number; the id needs
        # to be locally unique so that the client can tie an incoming response
        # to the request that generated it.

        if id is None:
            id = _id_next()

        Message.__init__(self, type, target, payload, id)

        self.response = None

        self.ack_event = threading.Event()
        self.rep_event = threading.Event()


    def __repr__(self):
        self._finalize()
        request = 'REQ: ' + repr(self.parts)

        if self.response is None:
            response = 'REP: None'
        else:
            response = 'REP: ' + repr(tuple(self.response))

        return request + ', ' + response


    def _complete_ack(self):
        """ The request has been acknowledged; signal any callers blocking
            via :func:`wait_ack` to proceed.
        """

        self.ack_event.set()


    def _complete(self, response):
        """ Locally store the response and signal any callers blocking via
            :func:`wait` to proceed.
        """

        self.response = response
        self.ack_event.set()
        self.rep_event.set()


    def poll(self):
        """ Return True if the request is complete, otherwise return False.
        """

        return self.rep_event.is_set()


    def wait_ack(self, timeout):
        """ Block until the request has been acknowledged. Returns True if
            it was, False if *timeout* expired first.
        """

        return self.ack_event.wait(timeout)


    def wait(self, timeout=60):
        """ Block until the request has been handled. The response is
            returned; it will be None if the request is still pending.
        """

        self.rep_event.wait(timeout)
        return self.response


# end of class Request



def from_parts(parts):
    """ Decode a multipart sequence received from the wire, *without* any
        routing prefix, into a :class:`Message` or :class:`Request`. A
        ValueError is raised if the parts are not a well-formed message.
    """

    if len(parts) != 5:
        raise ValueError('expected 5 message parts, received %d' % (len(parts)))

    their_version, id, type, target, payload = parts

    if their_version != version:
        raise ValueError("message is protocol %r, recipient expects %r" % (their_version, version))

    type = type.decode()
    target = target.decode()

    if target == '':
        target = None

    if payload == b'':
        payload = None
    else:
        try:
            payload = json.loads(payload)
        except json.DecodeError as exc:
            raise ValueError('malformed payload: ' + str(exc))

    if type in Request.valid_types:
        return Request(type, target, payload, id)

    return Message(type, target, payload, id)



_id_min = 0
_id_max = 0xFFFFFFFF
_id_lock = threading.Lock()
_id_ticker = itertools.count(_id_min)


def _id_next():
    """ Return the next request identification number for subroutines to
        use when constructing a message.
    """

    global _id_ticker

    with _id_lock:
        id = next(_id_ticker)

        if id >= _id_max:
            _id_ticker = itertools.count(_id_min)

    return ('%08x' % (id)).encode()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
