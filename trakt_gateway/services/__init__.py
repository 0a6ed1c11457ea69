"""Service layer exports."""

from .credentials import CredentialManager
from .repositories import PendingAuthorizationRepository, RecordStore, TenantConfigRepository
from .token_cipher import TokenCipherService, TokenDecryptionError

__all__ = [
    "CredentialManager",
    "PendingAuthorizationRepository",
    "RecordStore",
    "TenantConfigRepository",
    "TokenCipherService",
    "TokenDecryptionError",
]
