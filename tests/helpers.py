from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from botocore.exceptions import ClientError
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.x509.oid import NameOID


def client_error(operation, code="ValidationError", message="boom"):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def paginators(pages_by_operation):
    """``get_paginator`` side effect serving canned pages per operation.

    A value may be a list of pages or a callable taking the paginate kwargs.
    """
    def get_paginator(operation):
        pages = pages_by_operation[operation]
        paginator = Mock(name=f"{operation}_paginator")
        if callable(pages):
            paginator.paginate.side_effect = lambda **kwargs: pages(**kwargs)
        else:
            paginator.paginate.side_effect = lambda **kwargs: list(pages)
        return paginator
    return get_paginator


def classic_lb(name, *listeners):
    return {
        'LoadBalancerName': name,
        'DNSName': f"{name}.elb.amazonaws.com",
        'ListenerDescriptions': [{'Listener': listener} for listener in listeners],
    }


def https_listener(port, cert_arn):
    return {
        'Protocol': 'HTTPS',
        'LoadBalancerPort': port,
        'InstanceProtocol': 'HTTP',
        'InstancePort': 80,
        'SSLCertificateId': cert_arn,
    }


def http_listener(port):
    return {
        'Protocol': 'HTTP',
        'LoadBalancerPort': port,
        'InstanceProtocol': 'HTTP',
        'InstancePort': 80,
    }


def application_lb(name):
    return {
        'LoadBalancerName': name,
        'LoadBalancerArn': f"arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/{name}/1",
        'DNSName': f"{name}.us-east-1.elb.amazonaws.com",
    }


def alb_listener(lb_name, port, cert_arn=None):
    listener = {
        'ListenerArn': f"arn:aws:elasticloadbalancing:us-east-1:123456789012:listener/app/{lb_name}/1/{port}",
        'Port': port,
        'Protocol': 'HTTPS' if cert_arn else 'HTTP',
    }
    if cert_arn:
        listener['Certificates'] = [{'CertificateArn': cert_arn}]
    return listener


def distribution_summary(dist_id, aliases=(), acm_arn=None, iam_id=None):
    viewer_certificate = {'CloudFrontDefaultCertificate': True}
    if acm_arn:
        viewer_certificate = {'ACMCertificateArn': acm_arn, 'SSLSupportMethod': 'sni-only',
                              'MinimumProtocolVersion': 'TLSv1.2_2021'}
    elif iam_id:
        viewer_certificate = {'IAMCertificateId': iam_id, 'SSLSupportMethod': 'sni-only',
                              'MinimumProtocolVersion': 'TLSv1.2_2021'}

    return {
        'Id': dist_id,
        'DomainName': f"{dist_id.lower()}.cloudfront.net",
        'Aliases': {'Quantity': len(aliases), 'Items': list(aliases)} if aliases else {'Quantity': 0},
        'ViewerCertificate': viewer_certificate,
    }


def private_key_pem(key):
    return key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption(),
    )


def self_signed_pem(key, common_name="www.example.com"):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
    )
    algorithm = None if isinstance(key, ed25519.Ed25519PrivateKey) else hashes.SHA256()
    return certificate.sign(key, algorithm).public_bytes(serialization.Encoding.PEM)
