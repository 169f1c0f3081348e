from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from aws_cert_utils.modules.binding import ResourceAdapter, ResourceKind
from aws_cert_utils.modules.common import collect_pages, provider_call, split_statuses


@dataclass(frozen=True)
class ACMDescription:
    arn: str
    name_tag: str
    status: str
    domain_name: str
    not_after: Optional[datetime] = None
    in_use_by: List[str] = field(default_factory=list)
    subject_alternative_names: List[str] = field(default_factory=list)


class ACM(ResourceAdapter):
    kind = ResourceKind.ACM
    service_name = 'acm'

    def import_certificate(self, cert, chain, pkey):
        kwargs = {'Certificate': cert, 'PrivateKey': pkey}
        if chain:
            kwargs['CertificateChain'] = chain

        out = provider_call(self.client.import_certificate, **kwargs)
        arn = out['CertificateArn']

        return arn, f"Imported {arn}"

    def get_name_tag(self, arn):
        out = provider_call(self.client.list_tags_for_certificate, CertificateArn=arn)
        for tag in out.get('Tags', []):
            if tag['Key'].lower() == 'name':
                return tag.get('Value', "")

        return ""

    def list(self, statuses="ALL", max_items=0, next_token=""):
        kwargs = {}
        cert_statuses = split_statuses(statuses)
        if cert_statuses:
            kwargs['CertificateStatuses'] = cert_statuses

        pages = collect_pages(self.client, 'list_certificates',
                              max_items=max_items, starting_token=next_token, **kwargs)

        result = []
        for page in pages:
            for summary in page.get('CertificateSummaryList', []):
                cert_info = provider_call(
                    self.client.describe_certificate, CertificateArn=summary['CertificateArn']
                )['Certificate']

                result.append(ACMDescription(
                    arn=cert_info['CertificateArn'],
                    name_tag=self.get_name_tag(cert_info['CertificateArn']),
                    status=cert_info.get('Status', "-"),
                    domain_name=cert_info.get('DomainName', "-"),
                    not_after=cert_info.get('NotAfter'),
                    in_use_by=cert_info.get('InUseBy', []),
                    subject_alternative_names=cert_info.get('SubjectAlternativeNames', []),
                ))

        return result

    def list_delete_targets(self, statuses="ALL", max_items=0, next_token=""):
        labels = []
        targets = {}
        for desc in self.list(statuses, max_items, next_token):
            label = f"[{desc.name_tag}] {desc.arn}"
            labels.append(label)
            targets[label] = desc.arn

        return labels, targets

    def add_tags(self, arn, tags):
        if not tags:
            return

        provider_call(
            self.client.add_tags_to_certificate,
            CertificateArn=arn,
            Tags=[{'Key': key, 'Value': value} for key, value in tags.items()],
        )

    def delete(self, arn):
        provider_call(self.client.delete_certificate, CertificateArn=arn)

        return f"Deleted {arn}"

    def readable_rows(self, descs):
        rows = []
        for desc in descs:
            in_use = "Yes" if desc.in_use_by else "No"
            not_after = desc.not_after.astimezone().replace(tzinfo=None).isoformat() if desc.not_after else "-"
            additional_names = [name for name in desc.subject_alternative_names if name != desc.domain_name]

            for name in additional_names or [""]:
                rows.append({
                    'Name tag': desc.name_tag,
                    'Domain Name': desc.domain_name,
                    'Additional Name': name,
                    'In Use?': in_use,
                    'Not After': not_after,
                    'Certificate Arn': desc.arn,
                })
        return rows
