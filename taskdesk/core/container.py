from dataclasses import dataclass

from ..application.services.account_service import AccountService
from ..application.services.password_hasher import PasswordHasher
from ..application.services.token_service import TokenService
from ..application.services.user_admin_service import UserAdminService
from ..domain.ports.persistence import PersistenceGateway
from ..services.email_service import EmailService
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    password_hasher: PasswordHasher
    token_service: TokenService
    account_service: AccountService
    user_admin_service: UserAdminService
    email_service: EmailService
