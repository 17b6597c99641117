from .tenancy import Organization
from .auth import User, SessionToken
from .inventory import Product
from .sales import Sale
from .security import SecurityEvent

__all__ = [
    'Organization',
    'User', 'SessionToken',
    'Product',
    'Sale',
    'SecurityEvent',
]
