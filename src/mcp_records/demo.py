"""Example content: a users resource with sample data and user-specific tools."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from mcp_records.dispatcher import RecordDispatcher
from mcp_records.models import Resource, WireModel
from mcp_records.store import InMemoryDataService

Role = Literal["admin", "user", "guest"]

USERS_RESOURCE_NAME = "Users"
USERS_RESOURCE_DESCRIPTION = "User management resource"


class UserSchema(WireModel):
	id: str | None = None
	first_name: str = Field(min_length=1, description="First name")
	last_name: str = Field(min_length=1, description="Last name")
	email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", description="Email address")
	role: Role = "user"
	is_active: bool = True


class UserIdArgs(WireModel):
	resource_uri: str = Field(description="URI of the user resource")
	user_id: str = Field(description="ID of the user")


class FilterUsersByRoleArgs(WireModel):
	resource_uri: str = Field(description="URI of the user resource")
	role: Role = Field(description="Role to filter by")


SAMPLE_USERS: list[dict[str, object]] = [
	{
		"id": "usr_001",
		"firstName": "John",
		"lastName": "Doe",
		"email": "john.doe@example.com",
		"role": "admin",
		"isActive": True,
	},
	{
		"id": "usr_002",
		"firstName": "Jane",
		"lastName": "Smith",
		"email": "jane.smith@example.com",
		"role": "user",
		"isActive": True,
	},
	{
		"id": "usr_003",
		"firstName": "Bob",
		"lastName": "Johnson",
		"email": "bob.johnson@example.com",
		"role": "guest",
		"isActive": False,
	},
	{
		"id": "usr_004",
		"firstName": "Alice",
		"lastName": "Williams",
		"email": "alice.williams@example.com",
		"role": "user",
		"isActive": True,
	},
	{
		"id": "usr_005",
		"firstName": "Charlie",
		"lastName": "Brown",
		"email": "charlie.brown@example.com",
		"role": "user",
		"isActive": False,
	},
]


def seed_users(service: InMemoryDataService) -> Resource:
	"""Register the users resource and load the sample users into it."""
	resource = service.register_resource(USERS_RESOURCE_NAME, USERS_RESOURCE_DESCRIPTION)
	users = [UserSchema.model_validate(u).model_dump(by_alias=True) for u in SAMPLE_USERS]
	service.seed_data(resource.uri, users)
	return resource


def register_user_tools(dispatcher: RecordDispatcher) -> None:
	"""Install activate_user, deactivate_user and filter_users_by_role."""
	service = dispatcher.service

	async def activate_user(args: UserIdArgs) -> dict[str, object]:
		user = await service.update_record(args.resource_uri, args.user_id, {"isActive": True})
		return {"success": True, "user": user}

	async def deactivate_user(args: UserIdArgs) -> dict[str, object]:
		user = await service.update_record(args.resource_uri, args.user_id, {"isActive": False})
		return {"success": True, "user": user}

	async def filter_users_by_role(args: FilterUsersByRoleArgs) -> dict[str, object]:
		users = await service.query_resource(args.resource_uri, {"filter": {"role": args.role}})
		return {"users": users, "count": len(users)}

	dispatcher.register_tool("activate_user", "Activate a user account", UserIdArgs, activate_user)
	dispatcher.register_tool("deactivate_user", "Deactivate a user account", UserIdArgs, deactivate_user)
	dispatcher.register_tool(
		"filter_users_by_role", "Get users with a specific role", FilterUsersByRoleArgs, filter_users_by_role,
	)
