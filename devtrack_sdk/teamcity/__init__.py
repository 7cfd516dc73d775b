"""TeamCity API: locators, models and the resource client."""

from devtrack_sdk.teamcity.client import BuildNotReady, TeamcityClient
from devtrack_sdk.teamcity.locators import (
    DEFAULT_COUNT,
    BuildLocator,
    BuildLocatorBuilder,
    BuildTypeLocator,
    clause_keys,
    split_locator,
)
from devtrack_sdk.teamcity.models import (
    Build,
    BuildQueue,
    Builds,
    BuildType,
    BuildTypeAny,
    BuildTypeBuild,
    BuildTypeCustom,
    BuildTypeDeploy,
    BuildTypes,
    BuildTypeSelector,
    LastBuild,
    User,
    Users,
    parse_build_type,
)

__all__ = [
    "TeamcityClient",
    "BuildNotReady",
    "DEFAULT_COUNT",
    "BuildLocator",
    "BuildLocatorBuilder",
    "BuildTypeLocator",
    "split_locator",
    "clause_keys",
    "Build",
    "Builds",
    "BuildQueue",
    "BuildType",
    "BuildTypes",
    "BuildTypeSelector",
    "BuildTypeBuild",
    "BuildTypeDeploy",
    "BuildTypeAny",
    "BuildTypeCustom",
    "LastBuild",
    "User",
    "Users",
    "parse_build_type",
]
