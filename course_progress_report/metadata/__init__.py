"""Remote collaborators: authentication, record source and name resolution."""

from .auth import authenticate
from .client import MetadataClient, get_with_retry
from .names import EntityName, EntityType, MemberProfile, ResolvedNames
from .resolver import MetadataResolver, chunked, fetch_members_bulk
from .session import ApiSession
from .source import RemoteQuery, fetch_records

__all__ = [
    "ApiSession",
    "EntityName",
    "EntityType",
    "MemberProfile",
    "MetadataClient",
    "MetadataResolver",
    "RemoteQuery",
    "ResolvedNames",
    "authenticate",
    "chunked",
    "fetch_members_bulk",
    "fetch_records",
    "get_with_retry",
]
