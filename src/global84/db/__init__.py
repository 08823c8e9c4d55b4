from .sql_store import SqlDocumentStore
from .store import SERVER_TIMESTAMP, Datastore, DatastoreError, DatastorePermissionError, WriteOp, utc_now

__all__ = [
    "SERVER_TIMESTAMP",
    "Datastore",
    "DatastoreError",
    "DatastorePermissionError",
    "SqlDocumentStore",
    "WriteOp",
    "utc_now",
]
