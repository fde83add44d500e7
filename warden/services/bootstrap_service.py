"""
Bootstrap service that guarantees an administrative entry point exists.

Every run converges the store to the same state, so it is safe to call at
every process start and on a recurring timer:

- every catalog permission is stored
- the administrator user exists
- the root role exists and the administrator holds it
- the root role is granted every stored permission

Rows are written with insert-if-absent statements, so two processes
bootstrapping the same database at once do not produce duplicates.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from warden.core.database import transaction
from warden.core.permissions import PermissionCatalog
from warden.models.role import Role
from warden.models.user import User
from warden.repositories.permission_repository import PermissionRepository
from warden.repositories.role_repository import RoleRepository
from warden.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapReport:
    """What a bootstrap run found and changed."""

    admin_id: uuid.UUID
    root_role_id: uuid.UUID
    permissions_seeded: int
    admin_created: bool
    root_role_created: bool
    admin_linked: bool
    permissions_linked: int

    @property
    def changed(self) -> bool:
        return bool(
            self.permissions_seeded
            or self.admin_created
            or self.root_role_created
            or self.admin_linked
            or self.permissions_linked
        )


class BootstrapService:
    """
    Idempotent bootstrap of the administrator and root role.

    The routine opens its own session, so it can run outside any request.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        catalog: PermissionCatalog,
        admin_username: str,
        admin_password_hash: str,
        root_role_name: str = "root",
    ):
        """
        Initialize BootstrapService.

        Args:
            session_factory: Factory for the session the routine runs in
            catalog: Permissions to seed before granting them to root
            admin_username: Reserved administrator username
            admin_password_hash: Argon2 hash stored for a newly created administrator
            root_role_name: Reserved name of the all-powerful role
        """
        self.session_factory = session_factory
        self.catalog = catalog
        self.admin_username = admin_username
        self.admin_password_hash = admin_password_hash
        self.root_role_name = root_role_name

    async def run(self) -> BootstrapReport:
        """
        Run the routine inside a single transaction.

        Any failure rolls back every step of the run and propagates.
        """
        async with self.session_factory() as session:
            async with transaction(session):
                report = await self._converge(session)

        if report.changed:
            logger.info(
                f"Bootstrap applied: seeded={report.permissions_seeded} "
                f"admin_created={report.admin_created} "
                f"root_created={report.root_role_created} "
                f"admin_linked={report.admin_linked} "
                f"permissions_linked={report.permissions_linked}"
            )
        else:
            logger.debug("Bootstrap found nothing to do")
        return report

    async def _converge(self, session: AsyncSession) -> BootstrapReport:
        user_repo = UserRepository(session)
        role_repo = RoleRepository(session)
        permission_repo = PermissionRepository(session)

        seeded = await permission_repo.seed(self.catalog)

        admin_created = (
            await user_repo.insert_ignoring_conflicts(
                User,
                [
                    {
                        "username": self.admin_username,
                        "password_hash": self.admin_password_hash,
                    }
                ],
            )
            > 0
        )
        admin = await user_repo.get_by_username(self.admin_username)

        root_created = (
            await role_repo.insert_ignoring_conflicts(
                Role,
                [
                    {
                        "name": self.root_role_name,
                        "description": "Built-in role granted every permission",
                    }
                ],
            )
            > 0
        )
        root = await role_repo.get_by_name(self.root_role_name)

        admin_linked = await role_repo.link_user(admin.id, root.id)
        linked = await role_repo.link_permissions(
            root.id, await permission_repo.all_ids()
        )

        return BootstrapReport(
            admin_id=admin.id,
            root_role_id=root.id,
            permissions_seeded=seeded,
            admin_created=admin_created,
            root_role_created=root_created,
            admin_linked=admin_linked,
            permissions_linked=linked,
        )
