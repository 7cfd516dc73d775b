"""
devtrack SDK - Python clients for TeamCity, YouTrack and GitLab.
"""

from devtrack_sdk.client import (
    AuthenticationError,
    ClientError,
    DecodeError,
    HttpStatusError,
    RestClient,
    TransportError,
)
from devtrack_sdk.fields import fields_query, normalize_field_names
from devtrack_sdk.gitlab import GitlabClient
from devtrack_sdk.teamcity import TeamcityClient
from devtrack_sdk.youtrack import YoutrackClient

__all__ = [
    "RestClient",
    "ClientError",
    "TransportError",
    "HttpStatusError",
    "AuthenticationError",
    "DecodeError",
    "fields_query",
    "normalize_field_names",
    "TeamcityClient",
    "YoutrackClient",
    "GitlabClient",
]
