import attrdb
import pytest


def test_defaults():

    settings = attrdb.config.Settings()

    assert settings.max_threads == 30
    assert settings.page_size == 250
    assert settings.interval == 0.1
    assert settings.page_retries == 3
    assert settings.retry_delay == 0.1
    assert settings.timeout == 60

    # The actual result from repr() is not enforced.

    repr(settings)


def test_overrides():

    settings = attrdb.config.Settings(max_threads='8', interval=0.5)
    assert settings.max_threads == 8
    assert settings.interval == 0.5

    copied = settings.copy(page_size=10)
    assert copied.max_threads == 8
    assert copied.page_size == 10
    assert settings.page_size == 250

    with pytest.raises(TypeError):
        attrdb.config.Settings(threads=4)

    with pytest.raises(ValueError):
        attrdb.config.Settings(max_threads=0)

    with pytest.raises(ValueError):
        attrdb.config.Settings(page_size='many')

    with pytest.raises(ValueError):
        attrdb.config.Settings(page_retries=-1)

    assert attrdb.config.Settings(page_retries=0).page_retries == 0


def test_environment():

    environment = dict()
    environment['ATTRDB_MAX_THREADS'] = '12'
    environment['ATTRDB_POLL_INTERVAL'] = '0.25'
    environment['ATTRDB_PAGE_RETRIES'] = '5'
    environment['UNRELATED'] = 'ignored'

    settings = attrdb.config.from_environment(environment)
    assert settings.max_threads == 12
    assert settings.interval == 0.25
    assert settings.page_retries == 5
    assert settings.page_size == 250

    environment['ATTRDB_PAGE_SIZE'] = '-3'

    with pytest.raises(ValueError):
        attrdb.config.from_environment(environment)


def test_shared(monkeypatch):

    monkeypatch.setenv('ATTRDB_MAX_THREADS', '7')
    attrdb.config.reset()

    try:
        shared = attrdb.config.get()
        assert shared.max_threads == 7
        assert attrdb.config.get() is shared

        domain = attrdb.Domain('unittest', attrdb.MemoryStore())
        assert domain.max_threads == 7
    finally:
        attrdb.config.reset()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
