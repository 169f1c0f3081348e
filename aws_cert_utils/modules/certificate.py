from pathlib import Path

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from aws_cert_utils.errors import UsageError

MIN_PRIVATE_KEY_BIT_LENGTH = 1024
MAX_PRIVATE_KEY_BIT_LENGTH = 2048


def get_certificate_data(data, path):
    """Return PEM bytes from ``path`` when given, otherwise from inline ``data``."""
    if path:
        try:
            return Path(path).expanduser().read_bytes()
        except OSError as e:
            raise UsageError(f"Cannot read {path}: {e.strerror}") from e

    return (data or "").encode()


def _public_key_der(public_key):
    return public_key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)


def private_key_bit_len(cert, pkey):
    try:
        certificate = x509.load_pem_x509_certificate(cert)
        private_key = serialization.load_pem_private_key(pkey, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise UsageError(f"Invalid certificate or private key: {e}") from e

    if isinstance(private_key, rsa.RSAPrivateKey):
        bit = private_key.key_size
    elif isinstance(private_key, ec.EllipticCurvePrivateKey):
        bit = private_key.curve.key_size
    else:
        raise UsageError("unsupported private key")

    if _public_key_der(certificate.public_key()) != _public_key_der(private_key.public_key()):
        raise UsageError("Private key does not match the certificate")

    return bit


def check_private_key_bit_len(bit):
    if bit > MAX_PRIVATE_KEY_BIT_LENGTH:
        raise UsageError(
            f"Invalid private key length ({bit} bit). "
            f"AWS supports {MIN_PRIVATE_KEY_BIT_LENGTH} and {MAX_PRIVATE_KEY_BIT_LENGTH} bit RSA private key"
        )


class CertificateManager:
    def __init__(self):
        self.cert = b""
        self.chain = b""
        self.pkey = b""

    def load_certificate(self, cert, cert_path):
        self.cert = get_certificate_data(cert, cert_path)

    def load_chain(self, chain, chain_path):
        self.chain = get_certificate_data(chain, chain_path)

    def load_private_key(self, pkey, pkey_path):
        self.pkey = get_certificate_data(pkey, pkey_path)

    def check_private_key_bit_len(self):
        check_private_key_bit_len(private_key_bit_len(self.cert, self.pkey))
