""" Value classes describing records and their attributes: :class:`Attribute`,
    the :class:`Item` handle used to address a single record, and the
    :class:`QueryResult` returned by one page of a listing.
"""

from . import query


class Attribute:
    """ A single (*name*, *value*) pair belonging to a record. The *value* may
        be None; when deleting attributes a None value means every value for
        that *name*. The *replace* flag is only meaningful when putting
        attributes: if set, any existing values for *name* are discarded
        before the new value is stored.

        Two attributes are equal if their names and values are equal; the
        *replace* flag is ignored for comparisons.
    """

    __slots__ = ('name', 'value', 'replace')

    def __init__(self, name, value=None, replace=False):

        if name is None or name == '':
            raise ValueError('an attribute must have a name')

        if value is not None:
            value = str(value)

        self.name = str(name)
        self.value = value
        self.replace = bool(replace)


    def __eq__(self, other):
        try:
            return self.name == other.name and self.value == other.value
        except AttributeError:
            return NotImplemented


    def __hash__(self):
        return hash((self.name, self.value))


    def __iter__(self):
        return iter((self.name, self.value))


    def __repr__(self):
        if self.replace:
            return 'Attribute(%r, %r, replace=True)' % (self.name, self.value)
        return 'Attribute(%r, %r)' % (self.name, self.value)


    @classmethod
    def from_pair(cls, pair):
        """ Accept an :class:`Attribute`, or a (name, value) sequence, and
            return an :class:`Attribute`.
        """

        if isinstance(pair, cls):
            return pair

        name, value = pair
        return cls(name, value)


# end of class Attribute



def attribute_list(attributes):
    """ Normalize an iterable of :class:`Attribute` instances or (name, value)
        pairs to a list of :class:`Attribute` instances. None is passed
        through unchanged.
    """

    if attributes is None:
        return None

    return [Attribute.from_pair(attribute) for attribute in attributes]



class Item:
    """ A handle for one record, identified by its *identifier* within the
        named *domain*. The *store* is the :class:`attrdb.store.RemoteRecordStore`
        that will service any requests made through this handle. Creating an
        :class:`Item` does not contact the store.
    """

    def __init__(self, identifier, domain, store):

        if identifier is None or identifier == '':
            raise ValueError('an item must have an identifier')

        self._identifier = str(identifier)
        self._domain = domain
        self._store = store


    @property
    def identifier(self):
        return self._identifier


    @property
    def domain(self):
        return self._domain


    def __eq__(self, other):
        try:
            return self.identifier == other.identifier and self.domain == other.domain
        except AttributeError:
            return NotImplemented


    def __hash__(self):
        return hash((self.domain, self.identifier))


    def __repr__(self):
        return 'Item(%r, domain=%r)' % (self.identifier, self.domain)


    def get_attributes(self, names=None):
        """ Return the list of :class:`Attribute` instances for this record.
            If *names* is provided only attributes with those names are
            returned. A record with no attributes yields an empty list.
        """

        return self._store.fetch_attributes(self.domain, self.identifier, names)


    def put_attributes(self, attributes):
        """ Store the supplied *attributes* for this record; see
            :class:`Attribute` for the meaning of the *replace* flag.
        """

        attributes = attribute_list(attributes)
        self._store.put_attributes(self.domain, self.identifier, attributes)


    def delete_attributes(self, attributes=None):
        """ Remove the supplied *attributes* from this record. If *attributes*
            is None or empty, every attribute is removed, which removes the
            record itself.
        """

        attributes = attribute_list(attributes)
        self._store.delete_attributes(self.domain, self.identifier, attributes)


# end of class Item



class QueryResult:
    """ One page of a listing: the :class:`Item` handles found on this page,
        and the *next_token* to pass back to retrieve the next page. An
        absent or blank *next_token* means the listing is exhausted.
    """

    def __init__(self, next_token, items):

        self.next_token = next_token
        self.items = list(items)


    def __iter__(self):
        return iter(self.items)


    def __len__(self):
        return len(self.items)


    def __repr__(self):
        return 'QueryResult(next_token=%r, items=%d)' % (self.next_token, len(self.items))


    @property
    def identifiers(self):
        return [item.identifier for item in self.items]


    @property
    def exhausted(self):
        return query.exhausted(self.next_token)


# end of class QueryResult


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
