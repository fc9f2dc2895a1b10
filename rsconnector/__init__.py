import logging

from rsconnector.capabilities import (
    ComposedClient,
    attach,
    compose,
    with_batch,
    with_collections,
    with_fields,
    with_resources,
    with_search,
    with_system,
    with_upload,
    with_users,
)
from rsconnector.config import ClientConfig, config_from_env, validate_config
from rsconnector.errors import (
    ApiPermissionError,
    AppError,
    BatchSizeLimitError,
    ConfigurationError,
    ResourceSpaceError,
    SecurityError,
    ValidationError,
)
from rsconnector.factories import create_admin_client, create_basic_client, create_client
from rsconnector.infra.http.query_builder import build_query_string, build_signed_query
from rsconnector.infra.http.response import ensure_array, normalize_response, to_number
from rsconnector.infra.http.rs_client import RSClientCore
from rsconnector.infra.http.signature import constant_time_equals, sign
from rsconnector.infra.http.url_rewriter import rewrite_to_internal_url

# Библиотека молчит, пока приложение не настроит logging.
logging.getLogger("rsconnector").addHandler(logging.NullHandler())

__all__ = [
    "RSClientCore",
    "ClientConfig",
    "config_from_env",
    "validate_config",
    "AppError",
    "ApiPermissionError",
    "BatchSizeLimitError",
    "ConfigurationError",
    "ResourceSpaceError",
    "SecurityError",
    "ValidationError",
    "ComposedClient",
    "attach",
    "compose",
    "with_batch",
    "with_collections",
    "with_fields",
    "with_resources",
    "with_search",
    "with_system",
    "with_upload",
    "with_users",
    "create_client",
    "create_basic_client",
    "create_admin_client",
    "build_query_string",
    "build_signed_query",
    "sign",
    "constant_time_equals",
    "normalize_response",
    "ensure_array",
    "to_number",
    "rewrite_to_internal_url",
]
