"""
Tests the automatic membership estimate.
"""

from uuid import uuid4

import pytest

from groupadmin.core.uuid import uuid7
from groupadmin.service import automatic as automatic_service
from groupadmin.service import groups as groups_service


@pytest.fixture
def domain():
    # Users persist across the test session, so every test gets its own domain.
    return f"somedomain-{uuid4().hex[:8]}"


@pytest.mark.asyncio(loop_scope="session")
async def test_estimate(session_manager, logger, create_user, create_group, domain):
    await create_user(email=f"user1@{domain}.org")
    await create_user(email=f"User2@{domain.upper()}.COM")
    await create_user(email=f"user1@not{domain}.com")
    group = await create_group()

    async with session_manager.session() as conn:
        async with conn.begin():
            count = await automatic_service.estimate(
                group_id=group.group_id,
                domain_pattern=f"{domain}.org|{domain}.com",
                conn=conn,
                log=logger,
            )

            assert count == 2

            # Listing a domain twice does not count its users twice
            count = await automatic_service.estimate(
                group_id=group.group_id,
                domain_pattern=f"{domain}.org|{domain}.ORG| {domain}.org ",
                conn=conn,
                log=logger,
            )

            assert count == 1


@pytest.mark.asyncio(loop_scope="session")
async def test_estimate_malformed(
    session_manager, logger, create_user, create_group, domain
):
    await create_user(email=f"user1@{domain}.org")
    await create_user(email=f"user1@{domain}.com")
    group = await create_group()

    async with session_manager.session() as conn:
        async with conn.begin():
            for domain_pattern in (
                f"@{domain}.org|@{domain}.com",
                "",
                "|||",
                "%|_",
                f"{domain}.org)(",
            ):
                count = await automatic_service.estimate(
                    group_id=group.group_id,
                    domain_pattern=domain_pattern,
                    conn=conn,
                    log=logger,
                )

                assert count == 0

            # Valid entries still count when mixed with malformed ones
            count = await automatic_service.estimate(
                group_id=group.group_id,
                domain_pattern=f"@{domain}.org|{domain}.com",
                conn=conn,
                log=logger,
            )

            assert count == 1


@pytest.mark.asyncio(loop_scope="session")
async def test_estimate_automatic_group(session_manager, logger, create_group):
    group = await create_group(automatic=True)

    async with session_manager.session() as conn:
        async with conn.begin():
            count = await automatic_service.estimate(
                group_id=group.group_id,
                domain_pattern="nobody-has-this-domain.org",
                conn=conn,
                log=logger,
            )

            assert count == 0


@pytest.mark.asyncio(loop_scope="session")
async def test_estimate_missing_group(session_manager, logger):
    with pytest.raises(groups_service.GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await automatic_service.estimate(
                    group_id=uuid7(),
                    domain_pattern="somedomain.org",
                    conn=conn,
                    log=logger,
                )
