import getpass
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from taskdesk.application.services.password_hasher import PasswordHasher  # noqa: E402
from taskdesk.application.services.user_admin_service import UserAdminService  # noqa: E402
from taskdesk.core.config import Settings  # noqa: E402
from taskdesk.domain.errors import DomainError  # noqa: E402
from taskdesk.domain.models import UserRole  # noqa: E402
from taskdesk.infrastructure.persistence.sqlite import SQLitePersistence  # noqa: E402


def main() -> None:
    load_dotenv()
    settings = Settings()

    email = os.getenv("ADMIN_EMAIL") or input("Administrator email: ").strip()
    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Administrator password: ").strip()
    first_name = input("First name [Admin]: ").strip() or "Admin"
    last_name = input("Last name [User]: ").strip() or "User"

    persistence = SQLitePersistence(settings.database_path)
    try:
        service = UserAdminService(users=persistence, hasher=PasswordHasher(rounds=settings.bcrypt_rounds))
        try:
            user = service.create_user(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=UserRole.ADMIN,
                department="Administration",
                position="System Administrator",
            )
        except DomainError as exc:
            raise SystemExit(f"Could not create administrator: {exc.message}") from exc
    finally:
        persistence.close()

    print(f"Administrator {user.email} created with id {user.id} in {settings.database_path}")


if __name__ == "__main__":
    main()
