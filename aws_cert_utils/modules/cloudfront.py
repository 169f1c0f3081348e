from aws_cert_utils.errors import UsageError
from aws_cert_utils.modules.binding import (
    BindingAdapter,
    CertificateBinding,
    CertificateId,
    CertificateKind,
    ResourceKind,
    locate_bindings,
)
from aws_cert_utils.modules.common import collect_pages, provider_call, to_flatten, update_message
from aws_cert_utils.modules.iam import IAM

DEFAULT_MINIMUM_PROTOCOL_VERSION = 'TLSv1.2_2021'
DEFAULT_SSL_SUPPORT_METHOD = 'sni-only'


def resolve_certificate(acm_arn, iam_id, flag_prefix=""):
    """Pick the certificate kind from a pair of mutually exclusive flags."""
    acm_flag = f"--{flag_prefix}acm-arn"
    iam_flag = f"--{flag_prefix}iam-id"

    if not acm_arn and not iam_id:
        raise UsageError(f"{acm_flag} or {iam_flag} is required.")
    if acm_arn and iam_id:
        raise UsageError(f"{acm_flag} or {iam_flag} but not both.")

    if acm_arn:
        return CertificateId.arn(acm_arn)
    return CertificateId.iam_id(iam_id)


def get_certificate(viewer_certificate):
    if viewer_certificate.get('ACMCertificateArn'):
        return CertificateId.arn(viewer_certificate['ACMCertificateArn'])
    if viewer_certificate.get('IAMCertificateId'):
        return CertificateId.iam_id(viewer_certificate['IAMCertificateId'])

    return None


def create_viewer_certificate(viewer_certificate, cert):
    new_vc = {
        'CloudFrontDefaultCertificate': False,
        'MinimumProtocolVersion': viewer_certificate.get('MinimumProtocolVersion', DEFAULT_MINIMUM_PROTOCOL_VERSION),
        'SSLSupportMethod': viewer_certificate.get('SSLSupportMethod', DEFAULT_SSL_SUPPORT_METHOD),
    }
    if cert.kind is CertificateKind.IAM_ID:
        new_vc['IAMCertificateId'] = cert.value
    else:
        new_vc['ACMCertificateArn'] = cert.value

    return new_vc


def _as_certificate_id(cert):
    if isinstance(cert, CertificateId):
        return cert
    return CertificateId.arn(cert)


class CloudFront(BindingAdapter):
    kind = ResourceKind.CLOUDFRONT
    service_name = 'cloudfront'

    def __init__(self, session, marker="", max_items=0):
        super().__init__(session)
        self.iam = IAM(session)
        self.marker = marker
        self.max_items = max_items

    def bindings(self):
        pages = collect_pages(self.client, 'list_distributions',
                              max_items=self.max_items, starting_token=self.marker)

        cloudfront_data = []
        for page in pages:
            for summary in page.get('DistributionList', {}).get('Items', []):
                cert = get_certificate(summary.get('ViewerCertificate', {}))
                if cert is None:
                    continue

                cloudfront_data.append(CertificateBinding(
                    kind=self.kind,
                    resource_id=summary['Id'],
                    certificate=cert,
                    aliases=tuple(summary.get('Aliases', {}).get('Items', [])),
                    dns_name=summary.get('DomainName', ''),
                ))
        return cloudfront_data

    def list(self, cert_filter="", aliases_filter=""):
        dists = locate_bindings(self, cert_filter)
        if not aliases_filter:
            return dists

        return [d for d in dists if d.aliases and aliases_filter in to_flatten(d.aliases)]

    def get_distribution(self, dist_id):
        return provider_call(self.client.get_distribution, Id=dist_id)

    def _update_distribution(self, dist_out, cert):
        dist = dist_out['Distribution']
        config = dist['DistributionConfig']
        config['ViewerCertificate'] = create_viewer_certificate(config.get('ViewerCertificate', {}), cert)

        provider_call(
            self.client.update_distribution,
            Id=dist['Id'],
            IfMatch=dist_out['ETag'],
            DistributionConfig=config,
        )

    def rebind(self, binding, dest):
        self._update_distribution(self.get_distribution(binding.resource_id), _as_certificate_id(dest))

    def update(self, dist_id, cert):
        cert = _as_certificate_id(cert)
        dist_out = self.get_distribution(dist_id)
        config = dist_out['Distribution']['DistributionConfig']

        src = get_certificate(config.get('ViewerCertificate', {}))
        aliases = to_flatten(config.get('Aliases', {}).get('Items', []))

        self._update_distribution(dist_out, cert)

        return update_message(f"{dist_id} {aliases}", src or "", cert)

    def readable_rows(self, bindings):
        iam_certs = {}
        if any(b.certificate.kind is CertificateKind.IAM_ID for b in bindings):
            iam_certs = self.iam.list_map()

        rows = []
        for b in bindings:
            cert = b.certificate.value
            if b.certificate.kind is CertificateKind.IAM_ID:
                name = iam_certs[cert].name if cert in iam_certs else "-"
                cert = f"{cert} | {name}"

            for alias in b.aliases or ("-",):
                rows.append({
                    'Distribution ID': b.resource_id,
                    'Aliases': alias,
                    'SSL Certificate': cert,
                })
        return rows
