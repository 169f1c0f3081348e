from tqdm import tqdm

from aws_cert_utils.errors import ResourceNotFound
from aws_cert_utils.modules.binding import BindingAdapter, CertificateBinding, CertificateId, ResourceKind
from aws_cert_utils.modules.common import collect_pages, provider_call, update_message


class ALB(BindingAdapter):
    kind = ResourceKind.ALB
    service_name = 'elbv2'

    def _load_balancers(self, names=None):
        kwargs = {'Names': list(names)} if names else {}
        pages = collect_pages(self.client, 'describe_load_balancers', **kwargs)
        return [lb for page in pages for lb in page.get('LoadBalancers', [])]

    def bindings(self, names=None):
        alb_data = []
        for lb in tqdm(self._load_balancers(names), desc="Describing listeners", disable=None, leave=False):
            pages = collect_pages(self.client, 'describe_listeners', LoadBalancerArn=lb['LoadBalancerArn'])
            for page in pages:
                for listener in page.get('Listeners', []):
                    for cert in listener.get('Certificates', []):
                        alb_data.append(CertificateBinding(
                            kind=self.kind,
                            resource_id=lb['LoadBalancerName'],
                            certificate=CertificateId.arn(cert['CertificateArn']),
                            port=listener['Port'],
                            listener_arn=listener['ListenerArn'],
                            dns_name=lb.get('DNSName', ''),
                        ))
        return alb_data

    def rebind(self, binding, dest):
        provider_call(
            self.client.modify_listener,
            ListenerArn=binding.listener_arn,
            Certificates=[{'CertificateArn': str(dest)}],
        )

    def update(self, name, cert_arn, port=None):
        bindings = self.bindings(names=[name])
        if port is not None:
            bindings = [b for b in bindings if b.port == port]
        if not bindings:
            where = name if port is None else f"{name}:{port}"
            raise ResourceNotFound(f"Listener not found: {where}")

        binding = bindings[0]
        self.rebind(binding, cert_arn)

        return update_message(binding.location, binding.certificate, cert_arn)

    def readable_rows(self, bindings):
        return [{
            'Name': b.resource_id,
            'Port': str(b.port),
            'Listener SSL Certificate': b.certificate.value,
        } for b in bindings]
