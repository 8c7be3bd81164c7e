""" Cursor-driven iteration over a filtered listing of records. The
    :class:`Paginator` requests one page at a time from a record store,
    following the next token until the listing is exhausted.
"""

import logging
import time

from . import config
from .errors import Cancelled, PaginationFault, RemoteFault


logger = logging.getLogger(__name__)


def exhausted(token):
    """ Return True if *token* indicates there are no further pages.
    """

    return token is None or token.strip() == ''



class Paginator:
    """ Walk every page of *query* results for the named *domain* held by
        *store*. A failed page request is retried with the same cursor up to
        *retries* times, pausing *retry_delay* seconds between attempts; after
        that the walk is abandoned with :class:`attrdb.errors.PaginationFault`.

        Any setting left as None is taken from :func:`attrdb.config.get`.
    """

    def __init__(self, store, domain, page_size=None, retries=None, retry_delay=None):

        settings = config.get()

        if page_size is None:
            page_size = settings.page_size
        if retries is None:
            retries = settings.page_retries
        if retry_delay is None:
            retry_delay = settings.retry_delay

        self.store = store
        self.domain = domain
        self.page_size = config.validate('page_size', page_size)
        self.retries = config.validate('page_retries', retries)
        self.retry_delay = config.validate('retry_delay', retry_delay)


    def pages(self, query, cancel=None):
        """ Generator yielding one :class:`attrdb.store.Page` at a time. The
            next page is not requested until the caller asks for it.
        """

        cursor = None

        while True:
            if cancel is not None and cancel.is_set():
                raise Cancelled('cancelled while paging through %r' % (query,))

            page = self._request(query, cursor, cancel)
            logger.debug("%s: page of %d identifiers for %r", self.domain,
                                        len(page.identifiers), query)
            yield page

            if exhausted(page.next_token):
                break

            cursor = page.next_token


    def drive(self, query, on_identifier, cancel=None):
        """ Invoke *on_identifier* once for each identifier matching *query*,
            in page order. Each page is handled completely before the next
            page is requested. Returns the number of identifiers handled.
        """

        count = 0

        for page in self.pages(query, cancel):
            for identifier in page.identifiers:
                on_identifier(identifier)
                count += 1

        return count


    def _request(self, query, cursor, cancel):
        """ Request a single page, retrying on failure. The cursor is always
            passed back verbatim.
        """

        attempts = 0

        while True:
            attempts += 1

            try:
                return self.store.query_page(self.domain, query, cursor, self.page_size)
            except RemoteFault as exc:
                if attempts > self.retries:
                    logger.error("%s: query %r failed %d times, giving up",
                                            self.domain, query, attempts)
                    raise PaginationFault(query, cursor, attempts) from exc

                logger.warning("%s: query %r failed (attempt %d of %d): %s",
                        self.domain, query, attempts, self.retries + 1, exc)

            if self.retry_delay > 0:
                if cancel is None:
                    cancel_wait = _sleep
                else:
                    cancel_wait = cancel.wait

                if cancel_wait(self.retry_delay):
                    raise Cancelled('cancelled while retrying %r' % (query,))


# end of class Paginator



def _sleep(delay):
    """ Stand-in for :func:`threading.Event.wait` when no cancellation event
        is available; always returns False.
    """

    time.sleep(delay)
    return False


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
