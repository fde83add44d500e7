"""
Integration tests for the bootstrap routine and its scheduler.

Tests cover:
- First run creates administrator, root role and full catalog
- Repeated and concurrent runs converge to the same state
- Permissions added later are granted to root on the next run
- RecurringTask error handling and lifecycle
"""

import asyncio

import pytest
from sqlalchemy import func, select

from tests.conftest import ADMIN_USERNAME
from warden.core.scheduler import RecurringTask
from warden.models import Permission, Role, RolePermission, User, UserRole


async def count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def assert_converged(session_factory) -> None:
    assert await count(session_factory, User) == 1
    assert await count(session_factory, Role) == 1
    assert await count(session_factory, UserRole) == 1
    assert await count(session_factory, RolePermission) == await count(
        session_factory, Permission
    )


class TestBootstrapService:
    """Test the idempotent bootstrap routine."""

    @pytest.mark.asyncio
    async def test_first_run_creates_everything(self, bootstrap_service, session_factory, catalog):
        report = await bootstrap_service.run()

        assert report.changed is True
        assert report.admin_created is True
        assert report.root_role_created is True
        assert report.admin_linked is True
        assert report.permissions_seeded == len(catalog)
        assert report.permissions_linked == len(catalog)

        async with session_factory() as session:
            admin = (
                await session.execute(select(User).where(User.username == ADMIN_USERNAME))
            ).scalar_one()
            root = (await session.execute(select(Role).where(Role.name == "root"))).scalar_one()
        assert admin.id == report.admin_id
        assert root.id == report.root_role_id
        await assert_converged(session_factory)

    @pytest.mark.asyncio
    async def test_repeated_runs_are_idempotent(self, bootstrap_service, session_factory):
        first = await bootstrap_service.run()
        for _ in range(3):
            report = await bootstrap_service.run()
            assert report.changed is False
            assert report.admin_id == first.admin_id
            assert report.root_role_id == first.root_role_id

        await assert_converged(session_factory)

    @pytest.mark.asyncio
    async def test_concurrent_runs_converge(self, bootstrap_service, session_factory):
        await asyncio.gather(*(bootstrap_service.run() for _ in range(3)))
        await assert_converged(session_factory)

    @pytest.mark.asyncio
    async def test_new_permission_granted_to_root(
        self, bootstrap_service, session_factory, make_permission
    ):
        await bootstrap_service.run()
        await make_permission("report:export", "GET", "/reports/export")

        report = await bootstrap_service.run()

        assert report.permissions_linked == 1
        assert report.permissions_seeded == 0
        await assert_converged(session_factory)

    @pytest.mark.asyncio
    async def test_existing_admin_keeps_password(
        self, bootstrap_service, session_factory, make_user
    ):
        """An administrator created out of band is adopted, not overwritten."""
        existing = await make_user(ADMIN_USERNAME)

        report = await bootstrap_service.run()

        assert report.admin_created is False
        assert report.admin_id == existing.id
        async with session_factory() as session:
            admin = await session.get(User, existing.id)
        assert admin.password_hash == existing.password_hash

    @pytest.mark.asyncio
    async def test_relinks_removed_root_grant(self, bootstrap_service, session_factory):
        report = await bootstrap_service.run()
        async with session_factory() as session:
            await session.execute(
                UserRole.__table__.delete().where(UserRole.user_id == report.admin_id)
            )
            await session.commit()

        again = await bootstrap_service.run()

        assert again.admin_linked is True
        await assert_converged(session_factory)


class TestRecurringTask:
    """Test the recurring task runner."""

    @pytest.mark.asyncio
    async def test_run_once_success(self):
        calls = []

        async def routine():
            calls.append(1)

        task = RecurringTask("test", routine, interval_seconds=60)
        assert await task.run_once() is True
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_run_once_failure_is_contained(self):
        async def routine():
            raise RuntimeError("store unavailable")

        task = RecurringTask("test", routine, interval_seconds=60)
        assert await task.run_once() is False

    @pytest.mark.asyncio
    async def test_loop_keeps_running_after_failure(self):
        calls = []

        async def routine():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("transient")

        task = RecurringTask("test", routine, interval_seconds=0.01)
        task.start()
        try:
            for _ in range(100):
                if len(calls) >= 3:
                    break
                await asyncio.sleep(0.01)
        finally:
            await task.stop()

        assert len(calls) >= 3
        assert task.running is False

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_without_start(self):
        async def routine():
            pass

        task = RecurringTask("test", routine, interval_seconds=60)
        await task.stop()

        task.start()
        first = task._task
        task.start()
        assert task._task is first
        assert task.running is True

        await task.stop()
        assert task.running is False

    @pytest.mark.asyncio
    async def test_runs_do_not_overlap(self):
        active = 0
        peak = 0

        async def routine():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        task = RecurringTask("test", routine, interval_seconds=60)
        await asyncio.gather(*(task.run_once() for _ in range(3)))
        assert peak == 1
