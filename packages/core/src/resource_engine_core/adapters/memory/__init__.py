from .association import MemoryAssociation
from .authorization import AllowAllAuthorizer, PolicyAuthorizer
from .query import MemoryQuery
from .serialization import RecordSerializer
from .storage import InMemoryStorage

__all__ = [
    "AllowAllAuthorizer",
    "InMemoryStorage",
    "MemoryAssociation",
    "MemoryQuery",
    "PolicyAuthorizer",
    "RecordSerializer",
]
