"""
TeamCity resource client: builds, build types, users and the build queue.
"""

import logging
from typing import Optional, Union
from urllib.parse import quote

from devtrack_sdk.client import ClientError, RestClient
from devtrack_sdk.fields import fields_query
from devtrack_sdk.teamcity.locators import BuildLocator
from devtrack_sdk.teamcity.models import (
    BuildBody,
    BuildQueue,
    BuildRef,
    Builds,
    BuildTypeRef,
    BuildTypes,
    LastBuild,
    SnapshotDependencies,
    Users,
)

logger = logging.getLogger(__name__)

# Characters TeamCity needs verbatim inside a locator.
_LOCATOR_SAFE = ":,()"


class BuildNotReady(ClientError):
    """The build a deployment would chain to is queued or failed."""

    def __init__(self, message: str, build: LastBuild):
        super().__init__(message)
        self.build = build


class TeamcityClient:
    """Client for the TeamCity REST API."""

    def __init__(self, http_client: RestClient):
        self.http_client = http_client

    def run_build(self, build_type_id: str, branch_name: Optional[str]) -> BuildQueue:
        """Enqueue a build of ``build_type_id`` on ``branch_name``."""
        body = BuildBody(branch_name=branch_name, build_type=BuildTypeRef(id=build_type_id))
        return self.http_client.post("/app/rest/buildQueue", body, BuildQueue)

    def get_builds(self, locator: Union[BuildLocator, str]) -> Builds:
        """List builds matching a locator."""
        locator_text = quote(str(locator), safe=_LOCATOR_SAFE)
        url = f"/app/rest/builds?locator={locator_text}&fields={fields_query(Builds)}"
        return self.http_client.get(url, Builds)

    def get_last_build(self, locator: Union[BuildLocator, str]) -> LastBuild:
        """
        Fetch the single build matched by ``locator``.

        Raises:
            BuildNotReady: If the build failed or is still queued
        """
        locator_text = quote(str(locator), safe=_LOCATOR_SAFE)
        url = f"/app/rest/builds/{locator_text}?fields={fields_query(LastBuild)}"
        build = self.http_client.get(url, LastBuild)

        if build.status == "FAILURE":
            raise BuildNotReady(f"Build #{build.id} is failed", build)
        if build.state == "queued":
            raise BuildNotReady(f"Build #{build.id} is queued", build)
        return build

    def build_type_list(self) -> BuildTypes:
        """List all build configurations."""
        return self.http_client.get(f"/app/rest/buildTypes?fields={fields_query(BuildTypes)}", BuildTypes)

    def deployment_list(self, build_type_id: str) -> BuildTypes:
        """List deployment configurations with a snapshot dependency on ``build_type_id``."""
        locator = (
            "type:deployment,project(archived:false),"
            f"snapshotDependency(from:(id:{build_type_id}))"
        )
        url = f"/app/rest/buildTypes?locator={locator}&fields={fields_query(BuildTypes)}"
        return self.http_client.get(url, BuildTypes)

    def user_list(self) -> Users:
        """List users visible to the token."""
        return self.http_client.get(f"/app/rest/users?fields={fields_query(Users)}", Users)

    def run_deploy(self, build: LastBuild, deploy_build_type_id: str) -> BuildQueue:
        """Enqueue ``deploy_build_type_id`` reusing ``build`` as its snapshot dependency."""
        logger.info(f"Deploying #{build.id} {build.build_type_id} {build.number or ''}")
        body = BuildBody(
            branch_name=build.branch_name,
            build_type=BuildTypeRef(id=deploy_build_type_id),
            snapshot_dependencies=SnapshotDependencies(build=[BuildRef(id=build.id)]),
        )
        return self.http_client.post("/app/rest/buildQueue", body, BuildQueue)
