"""
Pydantic models for the TeamCity REST API.

Wire names are camelCase; models accept both the wire name and the Python
attribute name so that tests and callers can build them either way.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TeamcityModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BuildType(TeamcityModel):
    """A build configuration."""

    id: str
    name: str
    web_url: str
    type_: Optional[str] = Field(None, alias="type")

    def display_text(self) -> str:
        return self.id

    def preview_text(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


class BuildTypes(TeamcityModel):
    """Paged list of build configurations."""

    count: int
    href: Optional[str] = None
    next_href: Optional[str] = None
    prev_href: Optional[str] = None
    build_type: List[BuildType] = Field(default_factory=list)


class User(TeamcityModel):
    """A TeamCity user."""

    username: str
    name: Optional[str] = None
    id: int

    def display_text(self) -> str:
        return self.username

    def preview_text(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


class Users(TeamcityModel):
    count: int
    user: List[User] = Field(default_factory=list)


class Triggered(TeamcityModel):
    """Who or what queued a build."""

    type_: str = Field(alias="type")
    date: Optional[str] = None
    user: Optional[User] = None

    def describe(self) -> str:
        if self.user is not None:
            return self.user.name or self.user.username
        return self.type_


class Build(TeamcityModel):
    """A build as returned by the builds listing."""

    id: int
    build_type_id: Optional[str] = None
    number: Optional[str] = None
    # SUCCESS/FAILURE/UNKNOWN
    status: Optional[str] = None
    # queued/running/finished
    state: str
    branch_name: Optional[str] = None
    href: Optional[str] = None
    web_url: Optional[str] = None
    finish_on_agent_date: Optional[str] = None
    triggered: Optional[Triggered] = None


class Builds(TeamcityModel):
    count: Optional[int] = None
    href: Optional[str] = None
    next_href: Optional[str] = None
    prev_href: Optional[str] = None
    build: List[Build] = Field(default_factory=list)


class LastBuild(TeamcityModel):
    """The build a deployment is chained to."""

    id: int
    build_type_id: str
    branch_name: Optional[str] = None
    number: Optional[str] = None
    state: str
    status: Optional[str] = None


class BuildQueue(TeamcityModel):
    """Response to enqueuing a build."""

    id: int
    build_type_id: str
    state: str
    branch_name: Optional[str] = None
    href: str
    web_url: str
    wait_reason: Optional[str] = None
    queued_date: Optional[str] = None
    triggered: Optional[Triggered] = None


class BuildTypeRef(BaseModel):
    id: str


class BuildRef(BaseModel):
    id: int


class SnapshotDependencies(BaseModel):
    build: List[BuildRef]


class BuildBody(TeamcityModel):
    """Request body for enqueuing a build."""

    branch_name: Optional[str] = None
    build_type: BuildTypeRef
    snapshot_dependencies: Optional[SnapshotDependencies] = Field(
        None, alias="snapshot-dependencies"
    )


# Build-type selector: what ``--build-type`` on the command line asks for.


@dataclass(frozen=True)
class BuildTypeBuild:
    """Regular builds named Build."""


@dataclass(frozen=True)
class BuildTypeDeploy:
    """Deployment builds."""


@dataclass(frozen=True)
class BuildTypeAny:
    """No build type filter."""


@dataclass(frozen=True)
class BuildTypeCustom:
    """A build type chosen by id (or by a picker query matching ids)."""

    query: str


BuildTypeSelector = Union[BuildTypeBuild, BuildTypeDeploy, BuildTypeAny, BuildTypeCustom]


def parse_build_type(value: str) -> BuildTypeSelector:
    """Parse the ``--build-type`` argument."""
    lowered = value.lower()
    if lowered in ("build", "b"):
        return BuildTypeBuild()
    if lowered in ("deploy", "d"):
        return BuildTypeDeploy()
    if lowered == "any":
        return BuildTypeAny()
    return BuildTypeCustom(value)

