from .authorization import IAuthorizer
from .serialization import ISerializer
from .storage import IAssociation, IQuery, IStorage
from .validation import IInputValidator

__all__ = [
    "IAssociation",
    "IAuthorizer",
    "IInputValidator",
    "IQuery",
    "ISerializer",
    "IStorage",
]
