""" Exceptions raised by attrdb. Saturation of a worker pool is not
    represented here: the affected task runs inline on the submitting
    thread, and the caller never sees it.
"""


class AttrDBError(Exception):
    pass



class RemoteFault(AttrDBError):
    """ A fetch, query, put, or delete against the record store failed.
        Transport failures and malformed responses are both reported this
        way; the underlying exception, if any, is chained as the
        ``__cause__``.
    """
    pass



class PaginationFault(AttrDBError):
    """ A page request kept failing at the same cursor, and the paged
        operation was abandoned. The *attempts* count includes the first
        request.
    """

    def __init__(self, query, cursor, attempts):
        self.query = query
        self.cursor = cursor
        self.attempts = attempts

        error = 'query %r failed %d times at cursor %r' % (query, attempts, cursor)
        AttrDBError.__init__(self, error)


# end of class PaginationFault



class Cancelled(AttrDBError):
    pass


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
