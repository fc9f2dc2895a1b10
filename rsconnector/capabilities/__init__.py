from rsconnector.capabilities.base import Capability, ComposedClient, attach, compose
from rsconnector.capabilities.batch import BatchApi, enforce_batch_limit, with_batch
from rsconnector.capabilities.collections import CollectionsApi, with_collections
from rsconnector.capabilities.fields import FieldsApi, with_fields
from rsconnector.capabilities.resources import ResourcesApi, with_resources
from rsconnector.capabilities.search import SearchApi, with_search
from rsconnector.capabilities.system import SystemApi, with_system
from rsconnector.capabilities.upload import UploadApi, with_upload
from rsconnector.capabilities.users import UsersApi, with_users

__all__ = [
    "Capability",
    "ComposedClient",
    "attach",
    "compose",
    "enforce_batch_limit",
    "BatchApi",
    "CollectionsApi",
    "FieldsApi",
    "ResourcesApi",
    "SearchApi",
    "SystemApi",
    "UploadApi",
    "UsersApi",
    "with_batch",
    "with_collections",
    "with_fields",
    "with_resources",
    "with_search",
    "with_system",
    "with_upload",
    "with_users",
]
