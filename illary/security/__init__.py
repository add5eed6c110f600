# Security module
from illary.security.session import SessionContext, TokenStore, MemoryTokenStore, FileTokenStore
from illary.security.guard import AuthGuard, GuardError, GuardState, evaluate_guard, is_admin

__all__ = [
    'SessionContext', 'TokenStore', 'MemoryTokenStore', 'FileTokenStore',
    'AuthGuard', 'GuardError', 'GuardState', 'evaluate_guard', 'is_admin'
]
