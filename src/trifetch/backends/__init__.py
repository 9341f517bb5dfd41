"""Backend clients.

One client per external system, all behind `fetch() -> FetchResult`:
- rpc: NEAR JSON-RPC account balance
- relational: PostgREST select-all
- document: MongoDB aggregation summary
"""

from trifetch.backends.base import BackendClient
from trifetch.backends.document import DocumentBackend
from trifetch.backends.relational import RelationalBackend
from trifetch.backends.rpc import RpcBackend

__all__ = ["BackendClient", "DocumentBackend", "RelationalBackend", "RpcBackend"]
