import logging
import os
from dataclasses import dataclass
from typing import Optional

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError, ClientError

from aws_cert_utils.errors import ProviderError

logger = logging.getLogger(__name__)

# IAM and CloudFront are global services; their APIs are served from us-east-1.
GLOBAL_REGION = "us-east-1"
GLOBAL_SERVICES = ("iam", "cloudfront")

ROLE_SESSION_NAME = "aws-cert-utils"


@dataclass(frozen=True)
class SessionOptions:
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    assume_role_arn: Optional[str] = None
    token: Optional[str] = None
    region: Optional[str] = None
    profile: Optional[str] = None
    config_file: Optional[str] = None
    credentials_file: Optional[str] = None

    def region_for(self, service):
        if service in GLOBAL_SERVICES:
            return GLOBAL_REGION
        return self.region


def build_session(options, service=None):
    region = options.region_for(service)
    logger.debug("Building session for %s in %s", service or "-", region or "(default region)")

    botocore_session = botocore.session.Session()
    if options.config_file:
        botocore_session.set_config_variable('config_file', os.path.expanduser(options.config_file))
    if options.credentials_file:
        botocore_session.set_config_variable('credentials_file', os.path.expanduser(options.credentials_file))

    try:
        session = boto3.Session(
            aws_access_key_id=options.access_key or None,
            aws_secret_access_key=options.secret_key or None,
            aws_session_token=options.token or None,
            region_name=region or None,
            profile_name=options.profile or None,
            botocore_session=botocore_session,
        )

        if not options.assume_role_arn:
            return session

        creds = session.client('sts').assume_role(
            RoleArn=options.assume_role_arn,
            RoleSessionName=ROLE_SESSION_NAME,
        )['Credentials']
    except (ClientError, BotoCoreError) as e:
        raise ProviderError(str(e), operation='build_session') from e

    return boto3.Session(
        aws_access_key_id=creds['AccessKeyId'],
        aws_secret_access_key=creds['SecretAccessKey'],
        aws_session_token=creds['SessionToken'],
        region_name=region or None,
    )
