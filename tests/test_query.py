import attrdb
import pytest
import threading


class PagedStore(attrdb.MemoryStore):
    """ Serve a fixed sequence of pages regardless of the query, recording
        the cursor passed with each request. The first *failures* requests
        raise RemoteFault.
    """

    def __init__(self, sizes, failures=0):
        attrdb.MemoryStore.__init__(self, ('unittest',))

        self.pages = dict()
        self.cursors = list()
        self.failures = failures

        cursor = None
        number = 0

        for index, size in enumerate(sizes):
            identifiers = list()
            for count in range(size):
                identifiers.append('record-%d' % (number))
                number += 1

            if index == len(sizes) - 1:
                next_token = ''
            else:
                next_token = 'token-%d' % (index)

            self.pages[cursor] = attrdb.Page(next_token, identifiers)
            cursor = next_token


    def query_page(self, domain, query, cursor, page_size=0):
        self.cursors.append(cursor)

        if self.failures > 0:
            self.failures -= 1
            raise attrdb.RemoteFault('simulated query failure')

        return self.pages[cursor]


# end of class PagedStore



class BrokenStore(attrdb.MemoryStore):

    def __init__(self):
        attrdb.MemoryStore.__init__(self, ('unittest',))
        self.attempts = 0

    def query_page(self, domain, query, cursor, page_size=0):
        self.attempts += 1
        raise attrdb.RemoteFault('query always fails')


# end of class BrokenStore



def test_drive():

    store = PagedStore((250, 250, 10))
    paginator = attrdb.Paginator(store, 'unittest', retry_delay=0)

    seen = list()
    count = paginator.drive('', seen.append)

    assert count == 510
    assert len(seen) == 510
    assert len(set(seen)) == 510
    assert store.cursors == [None, 'token-0', 'token-1']


def test_pages_are_lazy():

    store = PagedStore((5, 5, 5))
    paginator = attrdb.Paginator(store, 'unittest', retry_delay=0)

    pages = paginator.pages('')
    first = next(pages)

    assert len(first.identifiers) == 5
    assert store.cursors == [None]

    remaining = list(pages)
    assert len(remaining) == 2
    assert store.cursors == [None, 'token-0', 'token-1']


def test_whitespace_token_ends_listing():

    store = PagedStore((3,))
    store.pages[None] = attrdb.Page('   ', store.pages[None].identifiers)

    paginator = attrdb.Paginator(store, 'unittest', retry_delay=0)
    assert paginator.drive('', lambda identifier: None) == 3
    assert store.cursors == [None]


def test_transient_failure():

    store = PagedStore((4, 4), failures=2)
    paginator = attrdb.Paginator(store, 'unittest', retries=3, retry_delay=0)

    seen = list()
    paginator.drive('', seen.append)

    assert len(seen) == 8

    # The failed requests are retried with the same cursor.

    assert store.cursors == [None, None, None, 'token-0']


def test_retry_bound():

    store = BrokenStore()
    paginator = attrdb.Paginator(store, 'unittest', retries=2, retry_delay=0)

    with pytest.raises(attrdb.PaginationFault) as caught:
        paginator.drive("['a' = 'b']", lambda identifier: None)

    assert store.attempts == 3
    assert caught.value.attempts == 3
    assert caught.value.query == "['a' = 'b']"
    assert caught.value.cursor is None
    assert isinstance(caught.value.__cause__, attrdb.RemoteFault)


def test_no_retries():

    store = BrokenStore()
    paginator = attrdb.Paginator(store, 'unittest', retries=0, retry_delay=0)

    with pytest.raises(attrdb.PaginationFault):
        paginator.drive('', lambda identifier: None)

    assert store.attempts == 1


def test_cancel():

    store = PagedStore((5, 5, 5))
    paginator = attrdb.Paginator(store, 'unittest', retry_delay=0)
    cancel = threading.Event()

    def on_identifier(identifier):
        cancel.set()

    with pytest.raises(attrdb.Cancelled):
        paginator.drive('', on_identifier, cancel)

    assert store.cursors == [None]

    store = BrokenStore()
    paginator = attrdb.Paginator(store, 'unittest', retries=100, retry_delay=0.01)
    cancel = threading.Event()
    threading.Timer(0.05, cancel.set).start()

    with pytest.raises(attrdb.Cancelled):
        paginator.drive('', lambda identifier: None, cancel)

    assert store.attempts < 100


def test_domain_query_fetch(settings):
    """ Three pages of 250, 250, and 10 records yield exactly 510 distinct
        listener callbacks.
    """

    store = PagedStore((250, 250, 10))
    for number in range(510):
        identifier = 'record-%d' % (number)
        store.put_attributes('unittest', identifier, [attrdb.Attribute('number', number)])

    domain = attrdb.Domain('unittest', store, settings)
    domain.max_threads = 8

    received = list()
    lock = threading.Lock()

    def listener(identifier, attributes):
        with lock:
            received.append(identifier)

    count = domain.list_items_attributes('', listener)

    assert count == 510
    assert len(received) == 510
    assert len(set(received)) == 510


def test_domain_query_fault(settings):

    store = BrokenStore()
    domain = attrdb.Domain('unittest', store, settings.copy(page_retries=2))

    with pytest.raises(attrdb.PaginationFault):
        domain.list_items_attributes('', lambda identifier, attributes: None)

    assert store.attempts == 3


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
