""" Runtime settings for attrdb. The defaults can be overridden by setting
    environment variables before the first call to :func:`get`; changes to
    the environment after that point are ignored unless :func:`reset` is
    invoked.
"""

import os
import threading


_defaults = dict()
_defaults['max_threads'] = 30
_defaults['page_size'] = 250
_defaults['interval'] = 0.1
_defaults['page_retries'] = 3
_defaults['retry_delay'] = 0.1
_defaults['timeout'] = 60

_types = dict()
_types['max_threads'] = int
_types['page_size'] = int
_types['interval'] = float
_types['page_retries'] = int
_types['retry_delay'] = float
_types['timeout'] = float

# Settings that are allowed to be zero; everything else must be positive.

_nonnegative = set(('page_retries', 'retry_delay'))

_shared = None
_shared_lock = threading.Lock()


class Settings:
    """ A small container for the tunable values used by the bulk operations.
        Any keyword argument overrides the corresponding default; unknown
        keywords are rejected.

        :ivar max_threads: The number of worker threads, and the maximum
            number of concurrent fetches, for a bulk operation.
        :ivar page_size: The number of identifiers requested per page when
            a bulk operation is driven by a query.
        :ivar interval: How long, in seconds, a waiting thread sleeps before
            re-checking for a free slot or a cancellation request.
        :ivar page_retries: How many times a failed page request is retried
            before the operation is abandoned.
        :ivar retry_delay: Seconds to wait between page request attempts.
        :ivar timeout: Seconds to wait for a response from a remote store.
    """

    def __init__(self, **overrides):

        for name,value in _defaults.items():
            setattr(self, name, value)

        for name,value in overrides.items():
            if name in _defaults:
                pass
            else:
                raise TypeError('unknown setting: ' + repr(name))

            setattr(self, name, validate(name, value))


    def __repr__(self):
        values = list()
        for name in _defaults.keys():
            values.append('%s=%r' % (name, getattr(self, name)))

        return 'Settings(' + ', '.join(values) + ')'


    def copy(self, **overrides):
        """ Return a new :class:`Settings` instance with the same values as
            this one, modified by any *overrides*.
        """

        values = dict()
        for name in _defaults.keys():
            values[name] = getattr(self, name)

        values.update(overrides)
        return Settings(**values)


# end of class Settings



def validate(name, value):
    """ Convert *value* to the type expected for the setting *name*, and
        confirm that it is in range. A ValueError is raised if it is not.
    """

    converter = _types[name]

    try:
        converted = converter(value)
    except (TypeError, ValueError):
        raise ValueError("invalid value for %s: %r" % (name, value))

    if name in _nonnegative:
        if converted < 0:
            raise ValueError("%s must not be negative: %r" % (name, value))
    elif converted <= 0:
        raise ValueError("%s must be positive: %r" % (name, value))

    return converted



def from_environment(environment=None):
    """ Build a :class:`Settings` instance using the ``ATTRDB_*`` variables
        found in *environment*, which defaults to :data:`os.environ`. The
        variable name is the upper-case setting name with an ``ATTRDB_``
        prefix, with the exception of the polling interval, which is read
        from ``ATTRDB_POLL_INTERVAL``.
    """

    if environment is None:
        environment = os.environ

    overrides = dict()

    for name in _defaults.keys():
        if name == 'interval':
            variable = 'ATTRDB_POLL_INTERVAL'
        else:
            variable = 'ATTRDB_' + name.upper()

        try:
            value = environment[variable]
        except KeyError:
            continue

        overrides[name] = value

    return Settings(**overrides)



def get():
    """ Return the shared :class:`Settings` instance, creating it from the
        environment on first use.
    """

    global _shared

    with _shared_lock:
        if _shared is None:
            _shared = from_environment()

        return _shared



def reset():
    """ Discard the shared :class:`Settings` instance; the next call to
        :func:`get` will consult the environment again.
    """

    global _shared

    with _shared_lock:
        _shared = None


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
