from aws_cert_utils.errors import ResourceNotFound
from aws_cert_utils.modules.binding import BindingAdapter, CertificateBinding, CertificateId, ResourceKind
from aws_cert_utils.modules.common import collect_pages, provider_call, update_message

DEFAULT_PORT = 443


class ELB(BindingAdapter):
    kind = ResourceKind.ELB
    service_name = 'elb'

    def bindings(self, names=None):
        kwargs = {'LoadBalancerNames': list(names)} if names else {}
        elb_data = []
        for page in collect_pages(self.client, 'describe_load_balancers', **kwargs):
            for desc in page.get('LoadBalancerDescriptions', []):
                for ld in desc.get('ListenerDescriptions', []):
                    listener = ld['Listener']
                    cert_arn = listener.get('SSLCertificateId', '')
                    if not cert_arn:
                        continue

                    elb_data.append(CertificateBinding(
                        kind=self.kind,
                        resource_id=desc['LoadBalancerName'],
                        certificate=CertificateId.arn(cert_arn),
                        port=listener['LoadBalancerPort'],
                        dns_name=desc.get('DNSName', ''),
                    ))
        return elb_data

    def rebind(self, binding, dest):
        provider_call(
            self.client.set_load_balancer_listener_ssl_certificate,
            LoadBalancerName=binding.resource_id,
            LoadBalancerPort=binding.port,
            SSLCertificateId=str(dest),
        )

    def update(self, name, cert_arn, port=DEFAULT_PORT):
        for binding in self.bindings(names=[name]):
            if binding.port == port:
                self.rebind(binding, cert_arn)
                return update_message(binding.location, binding.certificate, cert_arn)

        raise ResourceNotFound(f"Listener not found: {name}:{port}")

    def readable_rows(self, bindings):
        return [{
            'Name': b.resource_id,
            'Port': str(b.port),
            'Listener SSL Certificate': b.certificate.value,
        } for b in bindings]
