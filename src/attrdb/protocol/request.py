""" Classes and methods implemented here implement the request/response
    aspects of the client/server protocol, using ZeroMQ DEALER and ROUTER
    sockets.
"""

import atexit
import concurrent.futures
import logging
import queue
import socket
import sys
import threading

import zmq

from . import message

logger = logging.getLogger(__name__)

minimum_port = 10079
maximum_port = 13679
zmq_context = zmq.Context()


class Client:
    """ Issue requests via a ZeroMQ DEALER socket and receive responses.
        Maintains a persistent connection to a single server; the *address*
        and *port* number must be specified. A single :class:`Client` can
        be shared by any number of threads.
    """

    timeout = 0.5

    def __init__(self, address, port):

        port = int(port)
        self.port = port
        self.address = address

        server = "tcp://%s:%d" % (address, port)
        identity = "request.Client.%d" % (id(self))

        self.socket = zmq_context.socket(zmq.DEALER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.identity = identity.encode()
        self.socket.connect(server)

        # ZeroMQ sockets are not thread-safe. Outbound requests are queued
        # and the background thread is signaled to put them on the wire; the
        # signal socket is itself protected by a lock.

        self._outbox = queue.SimpleQueue()

        internal = "inproc://request.Client.%d:signal" % (id(self))
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        self.pending = dict()
        self.shutdown = False
        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True
        self.thread.start()


    def _rep_incoming(self, parts):
        """ A client only receives two types of messages from the remote side:
            an ACK, or a REP. Either is handed to the relevant
            :class:`message.Request` instance for any further handling by the
            original caller.
        """

        try:
            response = message.from_parts(parts)
        except ValueError:
            logger.warning("%s:%d: discarding malformed response", self.address,
                                        self.port, exc_info=True)
            return

        try:
            pending = self.pending[response.id]
        except KeyError:
            # The original caller's request is gone, no further processing
            # is possible.
            return

        if response.type == 'ACK':
            pending._complete_ack()
            return

        pending._complete(response)

        # The caller may have given up and removed the entry already.
        self.pending.pop(response.id, None)


    def _req_outgoing(self):

        self._signal_rx.recv(flags=zmq.NOBLOCK)
        request = self._outbox.get(block=False)

        self.pending[request.id] = request
        self.socket.send_multipart(tuple(request))


    def close(self):
        self.shutdown = True
        self._signal()


    def run(self):

        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while self.shutdown == False:
            sockets = poller.poll(1000)
            for active, flag in sockets:
                if active == self._signal_rx:
                    if self.shutdown:
                        break
                    self._req_outgoing()
                elif active == self.socket:
                    parts = self.socket.recv_multipart()
                    self._rep_incoming(parts)

        self.socket.close()
        self._signal_rx.close()
        self._signal_tx.close()


    def send(self, request):
        """ A *request* is a fully populated :class:`message.Request`
            instance. This method blocks until the request has been
            acknowledged; the caller is free to decide whether to block
            while waiting for the full response. A :class:`zmq.ZMQError`
            is raised if no acknowledgement arrives in time.
        """

        if self.shutdown:
            raise zmq.ZMQError('client for %s:%d is closed' % (self.address, self.port))

        self._outbox.put(request)
        self._signal()

        ack = request.wait_ack(self.timeout)

        if ack == False:
            self.pending.pop(request.id, None)
            raise zmq.ZMQError("no response received in %.2fs" % (self.timeout))


    def _signal(self):
        with self._signal_lock:
            self._signal_tx.send(b'')


# end of class Client



class Server:
    """ Receive requests via a ZeroMQ ROUTER socket, and respond to them. The
        default behavior is to listen on every interface, on the first
        available port in the default range; an explicit *address* and/or
        *port* may be specified instead. The *avoid* set enumerates port
        numbers that should not be automatically assigned.

        Subclasses implement :func:`req_handler`.

        :ivar hostname: The hostname on which this server can be contacted.
        :ivar port: The port on which this server is listening for connections.
    """

    worker_count = 10

    def __init__(self, hostname=None, port=None, avoid=set(), address='*'):

        if hostname is None:
            hostname = socket.getfqdn()

        self.hostname = hostname
        self.address = address
        self.socket = zmq_context.socket(zmq.ROUTER)
        self.socket.setsockopt(zmq.LINGER, 0)

        if port is None:
            self.port = self._bind_any(avoid)
        else:
            port = int(port)
            try:
                self.socket.bind("tcp://%s:%d" % (address, port))
            except zmq.ZMQError:
                self.socket.close()
                raise zmq.ZMQError('port already in use: ' + str(port))
            self.port = port

        self._responses = queue.SimpleQueue()

        internal = "inproc://request.Server.%d:signal" % (id(self))
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        self.shutdown = False
        self.workers = concurrent.futures.ThreadPoolExecutor(max_workers=self.worker_count)
        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True
        self.thread.start()


    def _bind_any(self, avoid):

        for trial in range(minimum_port, maximum_port + 1):
            if trial in avoid:
                continue

            try:
                self.socket.bind("tcp://%s:%d" % (self.address, trial))
            except zmq.ZMQError:
                # Assume this port is in use.
                continue
            else:
                return trial

        self.socket.close()
        raise zmq.ZMQError("no ports available in range %d:%d" % (minimum_port, maximum_port))


    def req_ack(self, ident, request):
        """ Acknowledge the incoming request. The client is expecting an
            immediate ACK for all request types, including errors; this is
            how a client knows whether a server is online to respond to its
            request. This is only called from the background thread, before
            the request is handed to a worker.
        """

        ack = message.Message('ACK', request.target, id=request.id)
        self.socket.send_multipart((ident,) + tuple(ack))


    def req_handler(self, request):
        """ The default request handler rejects every request. Subclasses
            return the value to be included in the response; any exception
            raised is returned to the client as an error.
        """

        raise NotImplementedError('no handler for ' + request.type)


    def _req_incoming(self, ident, request):
        """ Hand an acknowledged request to :func:`req_handler`, and package
            the result, or any error raised, as a REP response. This runs on
            one of the worker threads.
        """

        payload = dict()
        payload['value'] = None
        payload['error'] = None

        try:
            payload['value'] = self.req_handler(request)
        except Exception:
            e_class, e_instance, e_traceback = sys.exc_info()
            error = dict()
            error['type'] = e_class.__name__
            error['text'] = str(e_instance)
            payload['error'] = error
            logger.debug("%s %s failed", request.type, request.target, exc_info=True)

        response = message.Message('REP', request.target, payload, request.id)
        self.send(ident, response)


    def _req_received(self, parts):
        """ All inbound requests are filtered through this method, on the
            background thread: parse, acknowledge, and queue for a worker.
        """

        ident = parts[0]

        try:
            request = message.from_parts(parts[1:])
        except ValueError:
            logger.warning("discarding malformed request", exc_info=True)
            return

        self.req_ack(ident, request)
        self.workers.submit(self._req_incoming, ident, request)


    def _rep_outgoing(self):

        self._signal_rx.recv(flags=zmq.NOBLOCK)
        ident, response = self._responses.get(block=False)
        self.socket.send_multipart((ident,) + tuple(response))


    def close(self):
        """ Stop handling requests and release the listening port. Requests
            already handed to a worker are allowed to complete, though their
            responses are discarded.
        """

        self.shutdown = True
        self.thread.join()
        self.workers.shutdown(wait=True)

        self.socket.close()
        self._signal_rx.close()
        self._signal_tx.close()


    def run(self):

        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while self.shutdown == False:
            sockets = poller.poll(100)
            for active, flag in sockets:
                if active == self._signal_rx:
                    self._rep_outgoing()
                elif active == self.socket:
                    parts = self.socket.recv_multipart()
                    self._req_received(parts)


    def send(self, ident, response):
        """ Queue a response for transmission. The background thread is the
            only one that touches the ROUTER socket.
        """

        self._responses.put((ident, response))

        with self._signal_lock:
            self._signal_tx.send(b'')


# end of class Server



client_connections = dict()
client_lock = threading.Lock()

def client(address, port):
    """ Factory function for a :class:`Client` instance. Use of this method is
        encouraged to streamline re-use of established connections.
    """

    key = (address, int(port))

    with client_lock:
        try:
            instance = client_connections[key]
        except KeyError:
            instance = Client(address, port)
            client_connections[key] = instance

    return instance



def send(address, port, request, timeout=60):
    """ Use :func:`client` to connect to the specified *address* and *port*,
        and send the specified :class:`message.Request` instance. This method
        blocks until the completion of the request, and returns the response.
        A :class:`zmq.ZMQError` is raised if the request times out.
    """

    connection = client(address, port)
    connection.send(request)
    response = request.wait(timeout)

    if response is None:
        connection.pending.pop(request.id, None)
        raise zmq.ZMQError("no response received in %.2fs" % (timeout))

    return response


def shutdown():
    with client_lock:
        for instance in client_connections.values():
            instance.close()
        client_connections.clear()


atexit.register(shutdown)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
