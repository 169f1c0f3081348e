import logging
import re

from botocore.exceptions import BotoCoreError, ClientError

from aws_cert_utils.errors import ProviderError, UsageError

logger = logging.getLogger(__name__)

ALL_STATUSES = [
    "PENDING_VALIDATION",
    "ISSUED",
    "INACTIVE",
    "EXPIRED",
    "VALIDATION_TIMED_OUT",
    "REVOKED",
    "FAILED",
]

TAG_VALUE_PATTERN = r"[\w\s.:/=+\-@]*"

# Request parameters safe to write to the debug log; everything else is redacted.
LOGGED_PARAMS = frozenset([
    "CertificateArn",
    "CertificateStatuses",
    "Id",
    "ListenerArn",
    "LoadBalancerArn",
    "LoadBalancerName",
    "LoadBalancerNames",
    "LoadBalancerPort",
    "Names",
    "NewPath",
    "NewServerCertificateName",
    "PaginationConfig",
    "Path",
    "PathPrefix",
    "ServerCertificateName",
    "SSLCertificateId",
])


def loggable_params(params):
    return {key: value if key in LOGGED_PARAMS else "<redacted>" for key, value in params.items()}


def provider_call(func, *args, **kwargs):
    operation = getattr(func, '__name__', repr(func))
    logger.debug("%s %s", operation, loggable_params(kwargs))
    try:
        return func(*args, **kwargs)
    except (ClientError, BotoCoreError) as e:
        raise ProviderError(str(e), operation=operation) from e


def collect_pages(client, operation, max_items=0, starting_token="", **kwargs):
    """Run a boto3 paginator to completion and return every page.

    A failure on any page raises ProviderError and no pages are returned.
    """
    pagination_config = {}
    if max_items and max_items > 0:
        pagination_config['MaxItems'] = max_items
    if starting_token:
        pagination_config['StartingToken'] = starting_token
    if pagination_config:
        kwargs['PaginationConfig'] = pagination_config

    logger.debug("%s (paginated) %s", operation, loggable_params(kwargs))
    try:
        paginator = client.get_paginator(operation)
        return list(paginator.paginate(**kwargs))
    except (ClientError, BotoCoreError) as e:
        raise ProviderError(str(e), operation=operation) from e


def split_statuses(statuses):
    if statuses.strip().upper() == "ALL":
        return list(ALL_STATUSES)

    return [s.strip().upper() for s in statuses.split(",") if s.strip()]


def check_tag_value_pattern(value):
    if value == "":
        return

    if re.fullmatch(TAG_VALUE_PATTERN, value) is None:
        raise UsageError(
            f"Invalid tag value {value!r}. Tag value supports letters, digits, whitespace and _.:/=+-@"
        )


def to_flatten(values):
    return ' '.join(values or [])


def dry_run_banner():
    return [
        "# Dry run mode",
        "",
    ]


def update_message(location, src, dest):
    return f"Updated {location} {src} -> {dest}"
