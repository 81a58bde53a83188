"""
Tests the group administration endpoints.
"""

from uuid import UUID, uuid4

import pytest

from groupadmin.core.group import MembersVisibility
from groupadmin.core.uuid import uuid7
from groupadmin.service import notifications as notifications_service
from groupadmin.service import user as user_service

AUTOMATIC_ERROR = {"errors": ["You cannot modify an automatic group"]}


def unique_name(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:10]}"


@pytest.mark.asyncio(loop_scope="session")
async def test_create(client, create_user):
    admin = await create_user()
    user = await create_user()
    name = unique_name("testing")

    response = await client.post(
        "/admin/groups",
        json={
            "group": {
                "name": name,
                "usernames": f"{admin.user_name},{user.user_name}",
                "owner_usernames": user.user_name,
                "allow_membership_requests": True,
                "membership_request_template": "Testing",
                "members_visibility_level": int(MembersVisibility.STAFF),
            }
        },
    )

    assert response.status_code == 200

    group = response.json()

    assert group["group_name"] == name
    assert group["allow_membership_requests"] is True
    assert group["membership_request_template"] == "Testing"
    assert group["members_visibility_level"] == int(MembersVisibility.STAFF)
    assert {x["user"]["user_id"] for x in group["members"]} == {
        str(admin.user_id),
        str(user.user_id),
    }
    assert [x["user"]["user_id"] for x in group["members"] if x["owner"]] == [
        str(user.user_id)
    ]

    # Names are unique
    response = await client.post("/admin/groups", json={"group": {"name": name}})
    assert response.status_code == 422
    assert len(response.json()["errors"]) == 1


@pytest.mark.asyncio(loop_scope="session")
async def test_create_invalid(client):
    response = await client.post(
        "/admin/groups", json={"group": {"name": "bad/name", "grant_trust_level": 9}}
    )

    assert response.status_code == 400
    assert len(response.json()["errors"]) == 2


@pytest.mark.asyncio(loop_scope="session")
async def test_create_only_updates_allowed_custom_fields(client, registry):
    registry.register("test")

    try:
        response = await client.post(
            "/admin/groups",
            json={
                "group": {
                    "name": unique_name("testing"),
                    "custom_fields": {"test": "hello1", "test2": "hello2"},
                }
            },
        )
    finally:
        registry.reset()

    assert response.status_code == 200
    assert response.json()["custom_fields"] == {"test": "hello1"}


@pytest.mark.asyncio(loop_scope="session")
async def test_create_with_no_registered_custom_fields(client):
    response = await client.post(
        "/admin/groups",
        json={
            "group": {
                "name": unique_name("testing"),
                "custom_fields": {"test": "hello1", "test2": "hello2"},
            }
        },
    )

    assert response.status_code == 200
    assert response.json()["custom_fields"] == {}


@pytest.mark.asyncio(loop_scope="session")
async def test_update_custom_fields(client, registry, create_group):
    group = await create_group()
    registry.register("test")

    try:
        response = await client.put(
            f"/admin/groups/{group.group_id}/custom_fields",
            json={"custom_fields": {"test": "hello1", "test2": "hello2"}},
        )
    finally:
        registry.reset()

    assert response.status_code == 200
    assert response.json()["custom_fields"] == {"test": "hello1"}

    automatic = await create_group(automatic=True)
    response = await client.put(
        f"/admin/groups/{automatic.group_id}/custom_fields",
        json={"custom_fields": {"test": "hello1"}},
    )

    assert response.status_code == 422
    assert response.json() == AUTOMATIC_ERROR


@pytest.mark.asyncio(loop_scope="session")
async def test_add_owners(client, create_user, create_group):
    admin = await create_user()
    user = await create_user()
    group = await create_group()

    response = await client.put(
        f"/admin/groups/{group.group_id}/owners",
        json={"group": {"usernames": f"{user.user_name},{admin.user_name}"}},
    )

    assert response.status_code == 200
    assert set(response.json()["usernames"]) == {user.user_name, admin.user_name}

    response = await client.get(f"/admin/groups/{group.group_id}")
    owners = {x["user"]["user_id"] for x in response.json()["members"] if x["owner"]}
    assert owners == {str(user.user_id), str(admin.user_id)}


@pytest.mark.asyncio(loop_scope="session")
async def test_add_owners_missing_group(client, create_user):
    user = await create_user()

    response = await client.put(
        f"/admin/groups/{uuid7()}/owners",
        json={"group": {"usernames": user.user_name}},
    )

    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_add_owners_automatic_group(client, create_user, create_group):
    user = await create_user()
    group = await create_group(automatic=True)

    response = await client.put(
        f"/admin/groups/{group.group_id}/owners",
        json={"group": {"usernames": user.user_name}},
    )

    assert response.status_code == 422
    assert response.json() == AUTOMATIC_ERROR

    response = await client.get(f"/admin/groups/{group.group_id}")
    assert response.json()["members"] == []


@pytest.mark.asyncio(loop_scope="session")
async def test_add_owners_notify(client, session_manager, create_user, create_group):
    quiet = await create_user()
    notified = await create_user()
    group = await create_group()

    response = await client.put(
        f"/admin/groups/{group.group_id}/owners",
        json={"group": {"usernames": quiet.user_name}},
    )
    assert response.status_code == 200

    response = await client.put(
        f"/admin/groups/{group.group_id}/owners",
        json={"group": {"usernames": notified.user_name, "notify_users": True}},
    )
    assert response.status_code == 200

    subject = f"You have been added as an owner of the {group.group_name} group"

    async with session_manager.session() as conn:
        async with conn.begin():
            quiet_notifications = await notifications_service.read_for_user(
                user_id=quiet.user_id, conn=conn
            )
            assert quiet_notifications == []

            notifications = await notifications_service.read_for_user(
                user_id=notified.user_id, conn=conn
            )
            assert [(x.sender_name, x.subject) for x in notifications] == [
                ("system", subject)
            ]


@pytest.mark.asyncio(loop_scope="session")
async def test_remove_owner(client, create_user, create_group):
    user = await create_user()
    group = await create_group(owner_usernames=[user.user_name])

    response = await client.delete(
        f"/admin/groups/{group.group_id}/owners", params={"user_id": str(user.user_id)}
    )

    assert response.status_code == 200

    response = await client.get(f"/admin/groups/{group.group_id}")
    assert [x["owner"] for x in response.json()["members"]] == [False]


@pytest.mark.asyncio(loop_scope="session")
async def test_remove_owner_missing_group(client, create_user):
    user = await create_user()

    response = await client.delete(
        f"/admin/groups/{uuid7()}/owners", params={"user_id": str(user.user_id)}
    )

    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_remove_owner_automatic_group(client, create_user, create_group):
    user = await create_user()
    group = await create_group(automatic=True)

    response = await client.delete(
        f"/admin/groups/{group.group_id}/owners", params={"user_id": str(user.user_id)}
    )

    assert response.status_code == 422
    assert response.json() == AUTOMATIC_ERROR


@pytest.mark.asyncio(loop_scope="session")
async def test_bulk_assign(client, session_manager, create_user, create_group):
    group = await create_group(
        group_name=unique_name("test"),
        primary_group=True,
        title="WAT",
        grant_trust_level=3,
    )
    user = await create_user(trust_level=2)
    user2 = await create_user(trust_level=4)

    response = await client.put(
        "/admin/groups/bulk",
        json={
            "group_id": str(group.group_id),
            "users": [user.user_name.upper(), user2.email, "doesnt_exist"],
        },
    )

    assert response.status_code == 200

    json = response.json()
    assert json["message"] == "2 users have been added to the group."
    assert json["users_not_added"][0] == "doesnt_exist"

    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.read_by_id(user_id=user.user_id, conn=conn)
            assert user.primary_group_id == group.group_id
            assert user.title == "WAT"
            assert user.trust_level == 3

            user2 = await user_service.read_by_id(user_id=user2.user_id, conn=conn)
            assert user2.primary_group_id == group.group_id
            assert user2.title == "WAT"
            assert user2.trust_level == 4


@pytest.mark.asyncio(loop_scope="session")
async def test_bulk_assign_in_background(
    client, api_bulk_jobs, create_user, create_group
):
    group = await create_group()
    user = await create_user()

    response = await client.put(
        "/admin/groups/bulk",
        json={
            "group_id": str(group.group_id),
            "users": f"{user.user_name},doesnt_exist",
            "run_in_background": True,
        },
    )

    assert response.status_code == 202
    job_id = response.json()["job_id"]

    await api_bulk_jobs.wait(UUID(job_id))

    response = await client.get(f"/admin/groups/bulk/{job_id}")

    assert response.status_code == 200
    assert response.json()["status"] == "complete"
    assert response.json()["outcome"] == {
        "added_count": 1,
        "message": "1 user has been added to the group.",
        "users_not_added": ["doesnt_exist"],
    }

    response = await client.get(f"/admin/groups/bulk/{uuid7()}")
    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_bulk_assign_missing_group(client):
    response = await client.put(
        "/admin/groups/bulk", json={"group_id": str(uuid7()), "users": ["anyone"]}
    )

    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_destroy_missing_group(client):
    response = await client.delete(f"/admin/groups/{uuid7()}")
    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_destroy_automatic_group(client, create_group):
    group = await create_group(automatic=True)

    response = await client.delete(f"/admin/groups/{group.group_id}")

    assert response.status_code == 422

    response = await client.get(f"/admin/groups/{group.group_id}")
    assert response.status_code == 200
    assert response.json()["group_name"] == group.group_name


@pytest.mark.asyncio(loop_scope="session")
async def test_destroy(client, create_group):
    group = await create_group()

    response = await client.delete(f"/admin/groups/{group.group_id}")

    assert response.status_code == 200

    response = await client.get(f"/admin/groups/{group.group_id}")
    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_automatic_membership_count(client, create_user, create_group):
    domain = unique_name("somedomain").replace("_", "-")
    await create_user(email=f"user1@{domain}.org")
    await create_user(email=f"user1@{domain}.com")
    await create_user(email=f"user1@not{domain}.com")
    group = await create_group()

    response = await client.put(
        "/admin/groups/automatic_membership_count",
        json={
            "automatic_membership_email_domains": f"{domain}.org|{domain}.com",
            "id": str(group.group_id),
        },
    )

    assert response.status_code == 200
    assert response.json()["user_count"] == 2

    response = await client.put(
        "/admin/groups/automatic_membership_count",
        json={
            "automatic_membership_email_domains": f"@{domain}.org|@{domain}.com",
            "id": str(group.group_id),
        },
    )

    assert response.status_code == 200
    assert response.json()["user_count"] == 0

    response = await client.put(
        "/admin/groups/automatic_membership_count",
        json={"automatic_membership_email_domains": f"{domain}.org", "id": str(uuid7())},
    )

    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_bulk_assign_reports_tokens_verbatim(client, create_user, create_group):
    group = await create_group()
    user = await create_user()

    response = await client.put(
        "/admin/groups/bulk",
        json={
            "group_id": str(group.group_id),
            "users": [f" {user.user_name} ", " Doesnt_Exist ", ""],
        },
    )

    assert response.status_code == 200
    assert response.json()["message"] == "1 user has been added to the group."
    assert response.json()["users_not_added"] == [" Doesnt_Exist "]
