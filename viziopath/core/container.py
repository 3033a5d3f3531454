from dataclasses import dataclass

from ..application.services.account_service import AccountService
from ..application.services.profile_service import ProfileService
from ..domain.ports.persistence import PersistenceGateway
from ..services.credential_store import CredentialStore
from ..services.email_service import EmailService
from ..services.storage_service import StorageService
from ..services.token_issuer import TokenIssuer
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    credential_store: CredentialStore
    token_issuer: TokenIssuer
    email_service: EmailService
    storage_service: StorageService
    account_service: AccountService
    profile_service: ProfileService
