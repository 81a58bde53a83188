"""
Group administration endpoints.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from groupadmin.core.group import GroupData
from groupadmin.core.models import (
    AddOwnersContent,
    AddOwnersResponse,
    AutomaticMembershipCountContent,
    AutomaticMembershipCountResponse,
    BulkAssignContent,
    BulkJobData,
    BulkOutcome,
    GroupCreationContent,
    ModifyCustomFieldsContent,
    SuccessResponse,
)
from groupadmin.core.uuid import UUID
from groupadmin.service import automatic as automatic_service
from groupadmin.service import bulk as bulk_service
from groupadmin.service import groups as groups_service
from groupadmin.service import owners as owners_service

from .dependencies import (
    AllowedCustomFieldsDependency,
    BulkJobsDependency,
    DatabaseDependency,
    DatabaseManagerDependency,
    LoggerDependency,
    NotifierDependency,
    SettingsDependency,
)

group_admin_routes = APIRouter(tags=["Group Administration"])


@group_admin_routes.post(
    "",
    summary="Create a new group",
    description=(
        "Create a group with initial members and owners, given by user name or "
        "email. Custom fields are only stored when they are registered as editable."
    ),
    responses={
        200: {"description": "Group created successfully."},
        400: {"description": "Invalid input data."},
        422: {"description": "A group with this name already exists."},
    },
)
async def create_group(
    content: GroupCreationContent,
    allowed_custom_fields: AllowedCustomFieldsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> GroupData:
    request = content.group

    group = await groups_service.create(
        group_name=request.name,
        usernames=request.usernames,
        owner_usernames=request.owner_usernames,
        members_visibility_level=request.members_visibility_level,
        allow_membership_requests=request.allow_membership_requests,
        membership_request_template=request.membership_request_template,
        primary_group=request.primary_group,
        title=request.title,
        grant_trust_level=request.grant_trust_level,
        automatic_membership_email_domains=request.automatic_membership_email_domains,
        custom_fields=request.custom_fields,
        allowed_custom_fields=allowed_custom_fields,
        conn=conn,
        log=log,
    )

    await log.ainfo("api.groups.created", group_id=group.group_id)

    return group.to_core()


@group_admin_routes.put(
    "/bulk",
    summary="Assign users to a group in bulk",
    description=(
        "Add users, by user name or email, to a group and apply the group's "
        "primary group, title, and trust level to them. With `run_in_background`, "
        "a job is returned immediately and can be polled."
    ),
    responses={
        200: {"description": "Users assigned; unmatched entries are listed."},
        202: {"description": "Assignment job enqueued."},
        404: {"description": "Group not found."},
        422: {"description": "The group is automatic."},
    },
)
async def bulk_assign(
    content: BulkAssignContent,
    manager: DatabaseManagerDependency,
    jobs: BulkJobsDependency,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> BulkOutcome:
    log = log.bind(group_id=content.group_id, number_of_users=len(content.users))

    if content.run_in_background:
        await groups_service.read_mutable_by_id(
            group_id=content.group_id, conn=conn, log=log
        )
        job = await jobs.enqueue(group_id=content.group_id, tokens=content.users, log=log)
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED, content=job.model_dump(mode="json")
        )

    outcome = await bulk_service.assign(
        group_id=content.group_id,
        tokens=content.users,
        manager=manager,
        log=log,
        concurrency=settings.bulk_assign_concurrency,
    )

    await log.ainfo("api.groups.bulk_assigned", added_count=outcome.added_count)

    return outcome


@group_admin_routes.get(
    "/bulk/{job_id}",
    summary="Get the state of a bulk assignment job",
    responses={
        200: {"description": "Job state, with the outcome once complete."},
        404: {"description": "Job not found."},
    },
)
async def bulk_assign_status(job_id: UUID, jobs: BulkJobsDependency) -> BulkJobData:
    return jobs.get(job_id)


@group_admin_routes.put(
    "/automatic_membership_count",
    summary="Estimate automatic membership",
    description=(
        "Count the users whose email matches any of the pipe-delimited domains. "
        "Malformed domains match nobody."
    ),
    responses={
        200: {"description": "Number of matching users."},
        404: {"description": "Group not found."},
    },
)
async def automatic_membership_count(
    content: AutomaticMembershipCountContent,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> AutomaticMembershipCountResponse:
    user_count = await automatic_service.estimate(
        group_id=content.id,
        domain_pattern=content.automatic_membership_email_domains,
        conn=conn,
        log=log,
    )

    return AutomaticMembershipCountResponse(user_count=user_count)


@group_admin_routes.get(
    "/{group_id}",
    summary="Get group by ID",
    responses={
        200: {"description": "Group details with members."},
        404: {"description": "Group not found."},
    },
)
async def get_group(
    group_id: UUID, conn: DatabaseDependency, log: LoggerDependency
) -> GroupData:
    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    return group.to_core()


@group_admin_routes.delete(
    "/{group_id}",
    summary="Delete a group",
    responses={
        200: {"description": "Group deleted successfully."},
        404: {"description": "Group not found."},
        422: {"description": "The group is automatic."},
    },
)
async def delete_group(
    group_id: UUID, conn: DatabaseDependency, log: LoggerDependency
) -> SuccessResponse:
    await groups_service.delete_group(group_id=group_id, conn=conn, log=log)
    await log.ainfo("api.groups.deleted", group_id=group_id)
    return SuccessResponse()


@group_admin_routes.put(
    "/{group_id}/owners",
    summary="Add owners to a group",
    description=(
        "Make users, by user name or email, owners of the group. With "
        "`notify_users`, each of them is sent a message from the system."
    ),
    responses={
        200: {"description": "User names of the new owners."},
        404: {"description": "Group not found."},
        422: {"description": "The group is automatic."},
    },
)
async def add_owners(
    group_id: UUID,
    content: AddOwnersContent,
    notifier: NotifierDependency,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> AddOwnersResponse:
    user_names = await owners_service.add_owners(
        group_id=group_id,
        tokens=content.group.usernames,
        notify=content.group.notify_users,
        notifier=notifier,
        settings=settings,
        conn=conn,
        log=log,
    )

    return AddOwnersResponse(usernames=sorted(user_names))


@group_admin_routes.delete(
    "/{group_id}/owners",
    summary="Remove an owner from a group",
    responses={
        200: {"description": "The user is no longer an owner."},
        404: {"description": "Group not found."},
        422: {"description": "The group is automatic."},
    },
)
async def remove_owner(
    group_id: UUID, user_id: UUID, conn: DatabaseDependency, log: LoggerDependency
) -> SuccessResponse:
    await owners_service.remove_owner(
        group_id=group_id, user_id=user_id, conn=conn, log=log
    )
    return SuccessResponse()


@group_admin_routes.put(
    "/{group_id}/custom_fields",
    summary="Update group custom fields",
    description="Only custom fields registered as editable are written.",
    responses={
        200: {"description": "The updated group."},
        404: {"description": "Group not found."},
        422: {"description": "The group is automatic."},
    },
)
async def update_custom_fields(
    group_id: UUID,
    content: ModifyCustomFieldsContent,
    allowed_custom_fields: AllowedCustomFieldsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> GroupData:
    group = await groups_service.update_custom_fields(
        group_id=group_id,
        custom_fields=content.custom_fields,
        allowed_custom_fields=allowed_custom_fields,
        conn=conn,
        log=log,
    )
    return group.to_core()
