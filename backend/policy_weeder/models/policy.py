"""Conditional access policy models."""
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ALL = "All"


class PolicyState(str, Enum):
    """Policy lifecycle state."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    REPORT_ONLY = "enabledForReportingButNotEnforced"


REPORT_ONLY_LABELS = frozenset({"report-only", "reportOnly"})


class GrantOperator(str, Enum):
    """Operator combining grant controls."""

    AND = "AND"
    OR = "OR"


class GraphModel(BaseModel):
    """Base for models validated from Graph payloads.

    Accepts both camelCase (Graph) and snake_case keys. Null values are
    dropped before validation so that defaults apply.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class UserConditions(GraphModel):
    """Users, groups and directory roles in scope."""

    include_users: tuple[str, ...] = ()
    exclude_users: tuple[str, ...] = ()
    include_groups: tuple[str, ...] = ()
    exclude_groups: tuple[str, ...] = ()
    include_roles: tuple[str, ...] = ()
    exclude_roles: tuple[str, ...] = ()


class ApplicationConditions(GraphModel):
    """Cloud applications in scope."""

    include_applications: tuple[str, ...] = ()
    exclude_applications: tuple[str, ...] = ()


class LocationConditions(GraphModel):
    """Named locations in scope."""

    include_locations: tuple[str, ...] = ()
    exclude_locations: tuple[str, ...] = ()


class PlatformConditions(GraphModel):
    """Device platforms in scope."""

    include_platforms: tuple[str, ...] = ()
    exclude_platforms: tuple[str, ...] = ()


class PolicyConditions(GraphModel):
    """Assignment conditions of a policy."""

    users: UserConditions = Field(default_factory=UserConditions)
    applications: ApplicationConditions = Field(default_factory=ApplicationConditions)
    locations: LocationConditions | None = None
    platforms: PlatformConditions | None = None
    client_app_types: tuple[str, ...] = ()
    sign_in_risk_levels: tuple[str, ...] = ()
    user_risk_levels: tuple[str, ...] = ()


class GrantControls(GraphModel):
    """Grant controls enforced when a policy applies."""

    operator: GrantOperator = GrantOperator.OR
    built_in_controls: tuple[str, ...] = ()
    custom_authentication_factors: tuple[str, ...] = ()


class SessionControls(GraphModel):
    """Session controls. Only compared for presence, never for equality."""

    model_config = ConfigDict(extra="allow")

    application_enforced_restrictions: Any = None
    cloud_app_security: Any = None
    sign_in_frequency: Any = None
    persistent_browser: Any = None

    @property
    def is_configured(self) -> bool:
        """True when any sub-setting carries a value."""
        return any(self.model_dump(exclude_none=True).values())


class Policy(GraphModel):
    """A conditional access policy as supplied to the engine.

    `state` takes the Graph values; `report-only` and `reportOnly` are read as
    `enabledForReportingButNotEnforced`.
    """

    id: str = Field(..., min_length=1)
    display_name: str = ""
    state: PolicyState
    created_date_time: datetime | None = None
    modified_date_time: datetime | None = None
    conditions: PolicyConditions = Field(default_factory=PolicyConditions)
    grant_controls: GrantControls | None = None
    session_controls: SessionControls | None = None

    @field_validator("state", mode="before")
    @classmethod
    def accept_state_labels(cls, value: Any) -> Any:
        """Accept the short report-only labels alongside the Graph value."""
        if isinstance(value, str) and value in REPORT_ONLY_LABELS:
            return PolicyState.REPORT_ONLY
        return value

    @field_validator("created_date_time", "modified_date_time")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC so that ordering is well defined."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_enabled(self) -> bool:
        return self.state == PolicyState.ENABLED

    @property
    def is_disabled(self) -> bool:
        return self.state == PolicyState.DISABLED

    @property
    def is_report_only(self) -> bool:
        return self.state == PolicyState.REPORT_ONLY

    @property
    def user_scope(self) -> tuple[str, ...]:
        """Included users, groups and roles, first occurrence kept."""
        users = self.conditions.users
        return tuple(dict.fromkeys(users.include_users + users.include_groups + users.include_roles))

    @property
    def application_scope(self) -> tuple[str, ...]:
        return self.conditions.applications.include_applications

    @property
    def location_scope(self) -> tuple[str, ...] | None:
        """Included locations, or None when the location condition is unset."""
        locations = self.conditions.locations
        if locations is None or not locations.include_locations:
            return None
        return locations.include_locations

    @property
    def excluded_locations(self) -> tuple[str, ...]:
        locations = self.conditions.locations
        return locations.exclude_locations if locations else ()

    @property
    def built_in_controls(self) -> tuple[str, ...]:
        return self.grant_controls.built_in_controls if self.grant_controls else ()

    @property
    def grant_operator(self) -> GrantOperator | None:
        return self.grant_controls.operator if self.grant_controls else None

    @property
    def has_grant_controls(self) -> bool:
        return bool(self.built_in_controls)

    @property
    def has_session_controls(self) -> bool:
        return self.session_controls is not None and self.session_controls.is_configured

    def requires(self, control: str) -> bool:
        """Check whether a built-in grant control is enforced."""
        return control in self.built_in_controls
