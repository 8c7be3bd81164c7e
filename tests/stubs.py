""" Stand-in record stores used by the unit tests. """

import attrdb
import threading
import time


record_count = 40


class CountingStore(attrdb.MemoryStore):
    """ A MemoryStore that tracks how many fetches are executing at once.
        Each fetch sleeps for *delay* seconds to give overlapping requests
        a chance to pile up.
    """

    def __init__(self, *args, delay=0.005, **kwargs):
        attrdb.MemoryStore.__init__(self, *args, **kwargs)
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.fetches = 0
        self.counter_lock = threading.Lock()


    def fetch_attributes(self, domain, identifier, names=None):

        with self.counter_lock:
            self.active += 1
            self.fetches += 1
            if self.active > self.peak:
                self.peak = self.active

        try:
            time.sleep(self.delay)
            return attrdb.MemoryStore.fetch_attributes(self, domain, identifier, names)
        finally:
            with self.counter_lock:
                self.active -= 1


# end of class CountingStore



class FlakyStore(CountingStore):
    """ A CountingStore that always fails to fetch the identifiers in
        *broken*.
    """

    def __init__(self, broken, *args, **kwargs):
        CountingStore.__init__(self, *args, **kwargs)
        self.broken = set(broken)


    def fetch_attributes(self, domain, identifier, names=None):

        if identifier in self.broken:
            raise attrdb.RemoteFault('simulated failure for ' + identifier)

        return CountingStore.fetch_attributes(self, domain, identifier, names)


# end of class FlakyStore



def populate(store, domain='unittest', count=record_count):
    """ Fill *store* with *count* records, each with a 'number' attribute and
        a 'parity' attribute. Returns the list of identifiers.
    """

    identifiers = list()

    for number in range(count):
        identifier = 'record-%d' % (number)

        if number % 2 == 0:
            parity = 'even'
        else:
            parity = 'odd'

        attributes = list()
        attributes.append(attrdb.Attribute('number', number))
        attributes.append(attrdb.Attribute('parity', parity))

        store.put_attributes(domain, identifier, attributes)
        identifiers.append(identifier)

    return identifiers


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
