"""Test configuration and fixtures."""
from datetime import datetime

import pytest

from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import DimensionScores, OverlapGroup, OverlapMember, OverlapResult, PolicyRef


def build_policy(
    policy_id: str,
    name: str | None = None,
    state: str = "enabled",
    users: list[str] | None = None,
    exclude_users: list[str] | None = None,
    groups: list[str] | None = None,
    roles: list[str] | None = None,
    applications: list[str] | None = None,
    locations: list[str] | None = None,
    exclude_locations: list[str] | None = None,
    controls: list[str] | None = None,
    operator: str = "OR",
    session: dict | None = None,
    client_app_types: list[str] | None = None,
    modified: datetime | None = None,
) -> Policy:
    """Build a policy from a Graph-shaped payload."""
    payload = {
        "id": policy_id,
        "displayName": name or policy_id,
        "state": state,
        "modifiedDateTime": modified.isoformat() if modified else None,
        "conditions": {
            "users": {
                "includeUsers": users or [],
                "excludeUsers": exclude_users or [],
                "includeGroups": groups or [],
                "includeRoles": roles or [],
            },
            "applications": {"includeApplications": applications or []},
            "locations": (
                {"includeLocations": locations, "excludeLocations": exclude_locations or []}
                if locations is not None
                else None
            ),
            "clientAppTypes": client_app_types or ["all"],
        },
        "grantControls": {"operator": operator, "builtInControls": controls} if controls is not None else None,
        "sessionControls": session,
    }
    return Policy.model_validate(payload)


def build_group(main_id: str, member_ids: list[str], average: float) -> OverlapGroup:
    """Build an overlap group whose members all sit at the given similarity."""
    scores = DimensionScores(users=average, applications=average, locations=average, controls=average, sessions=average)
    return OverlapGroup(
        main_policy=PolicyRef(id=main_id, display_name=main_id),
        members=[
            OverlapMember(
                policy=PolicyRef(id=member_id, display_name=member_id),
                overlap=OverlapResult(policy_a_id=main_id, policy_b_id=member_id, scores=scores, similarity=average),
            )
            for member_id in member_ids
        ],
        average_similarity=average,
    )


@pytest.fixture
def make_policy():
    """Factory for Graph-shaped policies."""
    return build_policy


@pytest.fixture
def make_group():
    """Factory for overlap groups."""
    return build_group


@pytest.fixture
def baseline_policies():
    """Enabled policies covering MFA, admin MFA and legacy authentication."""
    return [
        build_policy("mfa-all", "Require MFA for all users", users=["All"], applications=["All"], controls=["mfa"]),
        build_policy(
            "mfa-admins",
            "Require MFA for admins",
            roles=["62e90394-69f5-4237-9190-012177145e10"],
            applications=["All"],
            controls=["mfa"],
        ),
        build_policy(
            "block-legacy",
            "Block legacy authentication",
            users=["All"],
            applications=["All"],
            controls=["block"],
            client_app_types=["exchangeActiveSync", "other"],
        ),
    ]
