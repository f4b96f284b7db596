from ticketing.stores.interfaces import Catalog, Clock, LedgerStore, SessionStore
from ticketing.stores.memory import InMemoryCatalog, InMemoryLedgerStore, InMemorySessionStore

__all__ = [
    "Catalog",
    "Clock",
    "InMemoryCatalog",
    "InMemoryLedgerStore",
    "InMemorySessionStore",
    "LedgerStore",
    "SessionStore",
]
