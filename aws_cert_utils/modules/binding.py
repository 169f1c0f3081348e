import abc
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from aws_cert_utils.modules.common import dry_run_banner, to_flatten, update_message

logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    ACM = "acm"
    IAM = "iam"
    ALB = "alb"
    ELB = "elb"
    CLOUDFRONT = "cloudfront"


class CertificateKind(Enum):
    ARN = "arn"
    IAM_ID = "iam-id"


@dataclass(frozen=True)
class CertificateId:
    kind: CertificateKind
    value: str

    @classmethod
    def arn(cls, value):
        return cls(CertificateKind.ARN, value)

    @classmethod
    def iam_id(cls, value):
        return cls(CertificateKind.IAM_ID, value)

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class CertificateBinding:
    """A listener or distribution and the certificate it currently presents."""

    kind: ResourceKind
    resource_id: str
    certificate: CertificateId
    port: Optional[int] = None
    listener_arn: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    dns_name: str = ""

    @property
    def location(self):
        if self.port is not None:
            return f"{self.resource_id}:{self.port}"
        return f"{self.resource_id} {to_flatten(self.aliases)}"

    def matches(self, cert_id):
        return not cert_id or self.certificate.value == str(cert_id)


class ResourceAdapter(abc.ABC):
    kind: ResourceKind
    service_name: str

    def __init__(self, session):
        self.client = session.client(self.service_name)


class BindingAdapter(ResourceAdapter):
    """Resource kinds whose listeners or distributions present a certificate."""

    @abc.abstractmethod
    def bindings(self) -> List[CertificateBinding]:
        """Every certificate binding of this kind, in provider order."""

    @abc.abstractmethod
    def rebind(self, binding, dest):
        """Point a single binding at ``dest``. Raises ProviderError on failure."""

    @abc.abstractmethod
    def readable_rows(self, bindings):
        pass

    def list(self, cert_filter=""):
        return locate_bindings(self, cert_filter)

    def bulk_update(self, src, dest, dry_run=True):
        bindings = locate_bindings(self, src)
        return bulk_rebind(self, bindings, dest, dry_run)


def locate_bindings(adapter, source_cert_id=""):
    bindings = [b for b in adapter.bindings() if b.matches(source_cert_id)]
    logger.debug("%d %s binding(s) match %r", len(bindings), adapter.kind.value, source_cert_id)
    return bindings


def bulk_rebind(adapter, bindings, dest, dry_run=True):
    """Rebind every binding to ``dest`` and describe each change.

    With ``dry_run`` no mutating call is made and the result starts with the
    dry run banner. Otherwise the first failing call aborts the batch; the
    bindings rebound before it stay rebound.
    """
    updates = dry_run_banner() if dry_run else []

    for binding in bindings:
        message = update_message(binding.location, binding.certificate, dest)
        if not dry_run:
            adapter.rebind(binding, dest)
            logger.info(message)
        updates.append(message)

    return updates
