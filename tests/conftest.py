import attrdb
import pytest

from stubs import CountingStore, populate


@pytest.fixture
def settings():
    return attrdb.config.Settings(interval=0.01, retry_delay=0.01)


@pytest.fixture
def store():
    store = attrdb.MemoryStore(('unittest',))
    populate(store)
    return store


@pytest.fixture
def counting_store():
    store = CountingStore(('unittest',))
    populate(store)
    return store


@pytest.fixture
def domain(store, settings):
    return attrdb.Domain('unittest', store, settings)


@pytest.fixture
def server():

    backend = attrdb.MemoryStore(('unittest',))
    populate(backend)

    server = attrdb.StoreServer(backend, hostname='127.0.0.1', address='127.0.0.1')

    yield server

    server.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
