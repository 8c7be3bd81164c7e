""" Destinations for the results of a bulk fetch. Both variants implement
    :func:`record`, invoked by a worker thread once per successfully fetched
    record; no ordering across records is implied.
"""

import threading


class Aggregator:
    """ Collect results into a dictionary keyed by record identifier. The
        dictionary is returned by :func:`finalize` once every fetch has
        completed; ownership passes to the caller at that point.
    """

    def __init__(self):

        self._results = dict()
        self._results_lock = threading.Lock()


    def __len__(self):
        return len(self._results)


    def record(self, identifier, attributes):

        # Each task only ever writes its own identifier; the lock protects
        # the structure of the dictionary, not individual entries.

        with self._results_lock:
            self._results[identifier] = attributes


    def finalize(self):
        with self._results_lock:
            return self._results


# end of class Aggregator



class Listener:
    """ Relay each result to a caller-supplied *callback*, which is either a
        callable accepting (identifier, attributes), or an object with an
        :func:`item_available` method of the same signature. The callback is
        invoked from whichever worker thread completed the fetch, and must
        therefore be safe to call concurrently.
    """

    def __init__(self, callback):

        try:
            callback = callback.item_available
        except AttributeError:
            pass

        if callable(callback):
            pass
        else:
            raise TypeError('the listener must be callable')

        self.callback = callback


    def record(self, identifier, attributes):
        self.callback(identifier, attributes)


# end of class Listener



def sink(listener=None):
    """ Return a :class:`Listener` for the supplied *listener*, or a new
        :class:`Aggregator` if *listener* is None.
    """

    if listener is None:
        return Aggregator()

    return Listener(listener)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
