""" Python client for key/attribute record stores. A :class:`Domain` offers
    per-domain operations: fetching a single record, paging through a
    filtered listing, fetching the attributes of many records concurrently,
    and deleting records.
"""

# Utility components.

from . import config
from . import json
from .errors import AttrDBError, Cancelled, PaginationFault, RemoteFault

# Submodules used by multiple other components.

from . import protocol
from .item import Attribute, Item, QueryResult
from .store import MemoryStore, Page, RemoteRecordStore

# Primary public-facing interfaces.

from .sink import Aggregator, Listener
from .pool import AdmissionController, WorkerPool
from .query import Paginator
from .domain import Domain
from .remote import RemoteStore
from .daemon import StoreServer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
