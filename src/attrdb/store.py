""" The record store contract relied upon by :class:`attrdb.Domain`, and an
    in-process implementation of it. :class:`RemoteRecordStore` is the
    interface; :class:`MemoryStore` keeps everything in a dictionary, and
    :class:`attrdb.remote.RemoteStore` reaches a daemon over ZeroMQ.
"""

import abc
import itertools
import re
import threading

from typing import NamedTuple, Optional, List

from .errors import RemoteFault
from .item import Attribute


default_page_size = 100
maximum_page_size = 250


class Page(NamedTuple):
    next_token: Optional[str]
    identifiers: List[str]



class RemoteRecordStore(abc.ABC):
    """ Every method here raises :class:`attrdb.errors.RemoteFault` if the
        request could not be completed. Calls may arrive concurrently from
        any number of threads.
    """

    @abc.abstractmethod
    def fetch_attributes(self, domain, identifier, names=None):
        """ Return a list of :class:`attrdb.Attribute` instances for a single
            record, restricted to *names* if any are specified. A record
            that does not exist has no attributes.
        """
        raise NotImplementedError('fetch_attributes() must be implemented')


    @abc.abstractmethod
    def put_attributes(self, domain, identifier, attributes):
        raise NotImplementedError('put_attributes() must be implemented')


    @abc.abstractmethod
    def delete_attributes(self, domain, identifier, attributes=None):
        """ Remove the specified *attributes*; None, or an empty sequence,
            removes the whole record.
        """
        raise NotImplementedError('delete_attributes() must be implemented')


    @abc.abstractmethod
    def query_page(self, domain, query, cursor, page_size=0):
        """ Return a :class:`Page` of identifiers matching *query*, starting
            at *cursor*. A None cursor requests the first page; a None
            next_token in the result means there are no further pages.
        """
        raise NotImplementedError('query_page() must be implemented')


# end of class RemoteRecordStore



# Query expressions understood by the MemoryStore are a sequence of bracketed
# predicates joined by 'intersection', for example:
#     ['color' = 'blue'] intersection ['size' starts-with 'x']

predicate_pattern = re.compile(
    r"\[\s*'((?:[^'\\]|\\.)*)'\s*(=|!=|starts-with)\s*'((?:[^'\\]|\\.)*)'\s*\]")
joiner_pattern = re.compile(r'\s*intersection\s*', re.IGNORECASE)


def parse_query(query):
    """ Return a list of (name, operator, value) tuples parsed from *query*.
        A ValueError is raised if the expression cannot be parsed.
    """

    if query is None:
        return list()

    text = query.strip()
    if text == '':
        return list()

    predicates = list()
    position = 0

    while True:
        match = predicate_pattern.match(text, position)
        if match is None:
            raise ValueError('cannot parse query at offset %d: %r' % (position, query))

        name, operator, value = match.groups()
        name = name.replace("\\'", "'")
        value = value.replace("\\'", "'")
        predicates.append((name, operator, value))
        position = match.end()

        if position == len(text):
            break

        joined = joiner_pattern.match(text, position)
        if joined is None or joined.end() == position:
            raise ValueError("expected 'intersection' at offset %d: %r" % (position, query))

        position = joined.end()

    return predicates


def matches(attributes, predicates):

    for name, operator, value in predicates:
        values = [attribute.value for attribute in attributes if attribute.name == name]

        if operator == '=':
            found = value in values
        elif operator == '!=':
            found = any(candidate != value for candidate in values)
        else:
            found = any(candidate.startswith(value) for candidate in values)

        if found == False:
            return False

    return True



class MemoryStore(RemoteRecordStore):
    """ Thread-safe, in-process record store. Domains named in *domains*
        exist from the start, and :func:`put_attributes` creates a missing
        domain on first use; any other request against an unknown domain
        raises :class:`RemoteFault`, as a remote service would. Cursors are
        opaque strings, only valid for the query that issued them.
    """

    def __init__(self, domains=()):

        self._domains = dict()
        self._domains_lock = threading.Lock()

        for domain in domains:
            self._domains[domain] = dict()


    def create_domain(self, domain):
        with self._domains_lock:
            self._domains.setdefault(domain, dict())


    def domains(self):
        with self._domains_lock:
            return list(self._domains.keys())


    def _records(self, domain):
        """ Must be called with the lock held.
        """

        try:
            return self._domains[domain]
        except KeyError:
            raise RemoteFault('no such domain: %r' % (domain)) from None


    def fetch_attributes(self, domain, identifier, names=None):

        with self._domains_lock:
            attributes = self._records(domain).get(identifier, ())

            if names:
                wanted = set(names)
                attributes = [attribute for attribute in attributes if attribute.name in wanted]

            # Copies, so the caller can't reach back into the store.
            return [Attribute(attribute.name, attribute.value) for attribute in attributes]


    def put_attributes(self, domain, identifier, attributes):

        for attribute in attributes:
            if attribute.value is None:
                raise RemoteFault('attribute %r has no value' % (attribute.name))

        replaced = set()
        for attribute in attributes:
            if attribute.replace:
                replaced.add(attribute.name)

        with self._domains_lock:
            records = self._domains.setdefault(domain, dict())
            existing = records.get(identifier, ())
            kept = [attribute for attribute in existing if attribute.name not in replaced]

            for attribute in attributes:
                stored = Attribute(attribute.name, attribute.value)
                if stored not in kept:
                    kept.append(stored)

            if kept:
                records[identifier] = kept


    def delete_attributes(self, domain, identifier, attributes=None):

        with self._domains_lock:
            records = self._records(domain)

            if not attributes:
                records.pop(identifier, None)
                return

            existing = records.get(identifier)
            if existing is None:
                return

            kept = list()
            for current in existing:
                for attribute in attributes:
                    if attribute.name != current.name:
                        continue
                    if attribute.value is None or attribute.value == current.value:
                        break
                else:
                    kept.append(current)

            if kept:
                records[identifier] = kept
            else:
                del records[identifier]


    def query_page(self, domain, query, cursor, page_size=0):

        try:
            predicates = parse_query(query)
        except ValueError as e:
            raise RemoteFault(str(e)) from e

        if page_size is None or page_size <= 0:
            page_size = default_page_size
        elif page_size > maximum_page_size:
            page_size = maximum_page_size

        if cursor is None or cursor.strip() == '':
            offset = 0
        else:
            try:
                offset = int(cursor)
            except ValueError:
                raise RemoteFault('invalid next token: %r' % (cursor)) from None

        with self._domains_lock:
            records = self._records(domain)
            matching = (identifier for identifier, attributes in records.items()
                                        if matches(attributes, predicates))

            # One extra, to know whether another page follows.
            window = list(itertools.islice(matching, offset, offset + page_size + 1))

        if len(window) > page_size:
            return Page(str(offset + page_size), window[:page_size])

        return Page(None, window)


# end of class MemoryStore


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
