from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aws_cert_utils.errors import UsageError
from aws_cert_utils.modules.binding import ResourceAdapter, ResourceKind
from aws_cert_utils.modules.common import collect_pages, provider_call


@dataclass(frozen=True)
class IAMDescription:
    name: str
    id: str
    path: str
    arn: str
    expiration: Optional[datetime] = None


class IAM(ResourceAdapter):
    kind = ResourceKind.IAM
    service_name = 'iam'

    def upload(self, cert, chain, pkey, path, name):
        kwargs = {
            'Path': path,
            'ServerCertificateName': name,
            'CertificateBody': cert.decode(),
            'PrivateKey': pkey.decode(),
        }
        if chain:
            kwargs['CertificateChain'] = chain.decode()

        out = provider_call(self.client.upload_server_certificate, **kwargs)

        return f"Uploaded {name} {out['ServerCertificateMetadata']['Arn']}"

    def list(self, marker="", max_items=0, path_prefix=""):
        kwargs = {'PathPrefix': path_prefix} if path_prefix else {}
        pages = collect_pages(self.client, 'list_server_certificates',
                              max_items=max_items, starting_token=marker, **kwargs)

        return [
            IAMDescription(
                name=metadata['ServerCertificateName'],
                id=metadata['ServerCertificateId'],
                path=metadata['Path'],
                arn=metadata['Arn'],
                expiration=metadata.get('Expiration'),
            )
            for page in pages
            for metadata in page.get('ServerCertificateMetadataList', [])
        ]

    def list_names(self, marker="", max_items=0, path_prefix=""):
        return [desc.name for desc in self.list(marker, max_items, path_prefix)]

    def list_map(self, marker="", max_items=0, path_prefix=""):
        return {desc.id: desc for desc in self.list(marker, max_items, path_prefix)}

    def update(self, new_path, new_name, name):
        if not name:
            raise UsageError("--name is required.")
        if not new_path and not new_name:
            raise UsageError("--new-path or --new-name is required.")

        kwargs = {'ServerCertificateName': name}
        if new_path:
            kwargs['NewPath'] = new_path
        if new_name:
            kwargs['NewServerCertificateName'] = new_name
        provider_call(self.client.update_server_certificate, **kwargs)

        return f"Updated {name} -> {new_name or name}"

    def delete(self, name):
        provider_call(self.client.delete_server_certificate, ServerCertificateName=name)

        return f"Deleted {name}"

    def readable_rows(self, descs):
        return [{
            'Name': desc.name,
            'ID': desc.id,
            'Path': desc.path,
            'Arn': desc.arn,
            'Expiration': desc.expiration.astimezone().replace(tzinfo=None).isoformat() if desc.expiration else "-",
        } for desc in descs]
