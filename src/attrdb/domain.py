""" The :class:`Domain` is the principal entry point for working with the
    records in one domain of a key/attribute store: fetching a single record,
    listing records a page at a time, fetching the attributes of many records
    concurrently, and deleting records.
"""

import logging

from . import config
from . import sink
from .item import Item, QueryResult, attribute_list
from .pool import WorkerPool
from .query import Paginator


logger = logging.getLogger(__name__)


class Domain:
    """ A named *domain* within the supplied *store*, which is any
        :class:`attrdb.store.RemoteRecordStore` implementation. The optional
        *settings* is an :class:`attrdb.config.Settings` instance; the shared
        settings are used if it is not provided.

        The bulk methods, :func:`get_items_attributes` and
        :func:`list_items_attributes`, issue one request per record using a
        new pool of :attr:`max_threads` worker threads for each call. They
        favor partial success: a record whose fetch fails is logged and left
        out of the results. Each bulk method blocks until every record has
        been handled.
    """

    def __init__(self, name, store, settings=None):

        if name is None or name == '':
            raise ValueError('the domain name must be specified')

        if settings is None:
            settings = config.get()

        self._name = str(name)
        self.store = store
        self.settings = settings
        self._max_threads = settings.max_threads


    def __repr__(self):
        return 'Domain(%r)' % (self._name)


    @property
    def name(self):
        """ The name of the domain represented by this object.
        """

        return self._name


    @property
    def max_threads(self):
        """ The number of worker threads, and thus the maximum number of
            concurrent requests, used by each bulk operation. Changing this
            value while a bulk operation is in progress only affects
            subsequent operations.
        """

        return self._max_threads


    @max_threads.setter
    def max_threads(self, threads):
        self._max_threads = config.validate('max_threads', threads)


    def get_item(self, identifier):
        """ Return an :class:`attrdb.item.Item` for *identifier* without
            contacting the store.
        """

        return Item(identifier, self._name, self.store)


    def list_items(self, query=None, next_token=None, max_results=0):
        """ Return one page of the items in this domain matching *query* as
            an :class:`attrdb.item.QueryResult`. Pass the *next_token* from
            a previous result to retrieve the following page. If
            *max_results* is zero the store's default page size applies.
        """

        if query is None:
            query = ''

        page = self.store.query_page(self._name, query, next_token, max_results)

        items = list()
        for identifier in page.identifiers:
            items.append(self.get_item(identifier))

        return QueryResult(page.next_token, items)


    def get_items_attributes(self, identifiers, listener=None, cancel=None, failures=None):
        """ Fetch the attributes of every record named in *identifiers*.

            Without a *listener* the results are returned as a dictionary
            mapping each identifier to its list of attributes. With a
            *listener*, the return value is None, and the listener is invoked
            as (identifier, attributes) once per record, from a worker thread,
            as each record arrives; see :class:`attrdb.sink.Listener`.

            Records that could not be fetched are absent from the results. If
            a *failures* list is provided, an (identifier, exception) pair is
            appended to it for each such record.

            *cancel* is an optional :class:`threading.Event`; if it is set,
            no further requests are issued and
            :class:`attrdb.errors.Cancelled` is raised once any request
            already in progress completes.
        """

        destination = sink.sink(listener)
        pool = self._pool()

        with pool:
            for identifier in identifiers:
                pool.submit(_Fetch(self.get_item(identifier), destination), cancel)

            pool.shutdown(cancel)

        self._report(pool, failures)

        if listener is None:
            return destination.finalize()


    def list_items_attributes(self, query, listener, cancel=None, failures=None):
        """ Fetch the attributes of every record matching *query*, delivering
            them to *listener* as with :func:`get_items_attributes`. Matching
            identifiers are retrieved a page at a time; every identifier on
            a page is submitted before the next page is requested.

            If a page request cannot be completed after the configured number
            of retries the whole operation is abandoned and
            :class:`attrdb.errors.PaginationFault` is raised, after waiting
            for any requests already in progress. Returns the number of
            records submitted.
        """

        if listener is None:
            raise TypeError('a listener is required')

        destination = sink.Listener(listener)
        paginator = Paginator(self.store, self._name,
                                page_size=self.settings.page_size,
                                retries=self.settings.page_retries,
                                retry_delay=self.settings.retry_delay)
        pool = self._pool()

        def submit(identifier):
            pool.submit(_Fetch(self.get_item(identifier), destination), cancel)

        with pool:
            count = paginator.drive(query, submit, cancel)
            pool.shutdown(cancel)

        self._report(pool, failures)
        return count


    def delete_item(self, identifier):
        """ Remove the record named *identifier* and all of its attributes.
        """

        self.delete_attributes(identifier, None)


    def delete_attributes(self, identifier, attributes=None):
        """ Remove *attributes* from the record named *identifier*. Each
            attribute is an :class:`attrdb.item.Attribute` or (name, value)
            pair; a None value removes every value for that name. If
            *attributes* is None or empty, every attribute is removed.
        """

        attributes = attribute_list(attributes)
        self.store.delete_attributes(self._name, str(identifier), attributes)


    def _pool(self):
        return WorkerPool(self._max_threads, interval=self.settings.interval)


    def _report(self, pool, failures):

        if len(pool.failures) == 0:
            return

        logger.warning("%s: %d of %d records could not be fetched", self._name,
                                len(pool.failures), pool.submitted)

        if failures is not None:
            for task, exception in pool.failures:
                failures.append((task.item.identifier, exception))


# end of class Domain



class _Fetch:
    """ A single unit of work for the pool: fetch the attributes for one
        *item* and hand them to the *destination* sink.
    """

    def __init__(self, item, destination):
        self.item = item
        self.destination = destination


    def __call__(self):
        attributes = self.item.get_attributes()
        self.destination.record(self.item.identifier, attributes)


    def __repr__(self):
        return 'fetch(%r)' % (self.item.identifier)


# end of class _Fetch


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
