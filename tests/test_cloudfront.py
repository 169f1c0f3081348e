import copy
from unittest.mock import Mock

import pytest

from aws_cert_utils.errors import UsageError
from aws_cert_utils.modules.binding import CertificateId, CertificateKind
from aws_cert_utils.modules.cloudfront import CloudFront, create_viewer_certificate, resolve_certificate
from tests.helpers import distribution_summary, paginators

DISTRIBUTIONS = [
    distribution_summary("E1AAAAAAAAAAAA", aliases=("www.example.com", "example.com"), acm_arn="arn:src"),
    distribution_summary("E2BBBBBBBBBBBB", aliases=("static.example.com",), iam_id="ASCAIAMCERT"),
    distribution_summary("E3CCCCCCCCCCCC"),
    distribution_summary("E4DDDDDDDDDDDD", acm_arn="arn:src"),
]


def distribution(dist_id, aliases, viewer_certificate):
    return {
        'ETag': f"ETAG-{dist_id}",
        'Distribution': {
            'Id': dist_id,
            'DistributionConfig': {
                'CallerReference': "ref",
                'Aliases': {'Quantity': len(aliases), 'Items': list(aliases)},
                'Enabled': True,
                'ViewerCertificate': viewer_certificate,
            },
        },
    }


@pytest.fixture
def cloudfront_client(clients):
    client = Mock(name="cloudfront")
    clients['cloudfront'] = client
    client.get_paginator.side_effect = paginators({
        'list_distributions': [{'DistributionList': {'Items': DISTRIBUTIONS}}],
    })

    summaries = {d['Id']: d for d in DISTRIBUTIONS}

    def get_distribution(Id):
        summary = summaries[Id]
        return distribution(Id, summary['Aliases'].get('Items', []), copy.deepcopy(summary['ViewerCertificate']))

    client.get_distribution.side_effect = get_distribution
    return client


@pytest.fixture
def iam_client(clients):
    client = Mock(name="iam")
    clients['iam'] = client
    client.get_paginator.side_effect = paginators({
        'list_server_certificates': [{'ServerCertificateMetadataList': [{
            'ServerCertificateName': "legacy-example",
            'ServerCertificateId': "ASCAIAMCERT",
            'Path': "/cloudfront/",
            'Arn': "arn:aws:iam::123456789012:server-certificate/cloudfront/legacy-example",
        }]}],
    })
    return client


def test_resolve_certificate_requires_one():
    with pytest.raises(UsageError, match="is required"):
        resolve_certificate("", "")


def test_resolve_certificate_rejects_both():
    with pytest.raises(UsageError, match="not both"):
        resolve_certificate("arn:x", "ASCA")


def test_resolve_certificate_names_prefixed_flags():
    with pytest.raises(UsageError, match="--dest-acm-arn or --dest-iam-id"):
        resolve_certificate(None, None, "dest-")


def test_resolve_certificate_kind():
    assert resolve_certificate("arn:x", "") == CertificateId.arn("arn:x")
    assert resolve_certificate("", "ASCA") == CertificateId.iam_id("ASCA")


def test_bindings_skip_default_certificate(session, cloudfront_client):
    bindings = CloudFront(session).bindings()

    assert [b.resource_id for b in bindings] == ["E1AAAAAAAAAAAA", "E2BBBBBBBBBBBB", "E4DDDDDDDDDDDD"]
    assert bindings[1].certificate.kind is CertificateKind.IAM_ID
    assert bindings[0].aliases == ("www.example.com", "example.com")


def test_pagination_options_reach_paginator(session, cloudfront_client):
    seen = {}

    def list_distributions(**kwargs):
        seen.update(kwargs)
        return [{'DistributionList': {'Quantity': 0}}]

    cloudfront_client.get_paginator.side_effect = paginators({'list_distributions': list_distributions})

    assert CloudFront(session, marker="NEXT", max_items=10).bindings() == []
    assert seen == {'PaginationConfig': {'MaxItems': 10, 'StartingToken': "NEXT"}}


def test_list_filters_by_certificate_and_aliases(session, cloudfront_client):
    cf = CloudFront(session)

    assert [b.resource_id for b in cf.list("ASCAIAMCERT")] == ["E2BBBBBBBBBBBB"]
    assert [b.resource_id for b in cf.list("", "example.com")] == ["E1AAAAAAAAAAAA", "E2BBBBBBBBBBBB"]
    assert [b.resource_id for b in cf.list("arn:src", "www.")] == ["E1AAAAAAAAAAAA"]


def test_create_viewer_certificate_keeps_protocol_settings():
    vc = {'ACMCertificateArn': "arn:src", 'SSLSupportMethod': 'vip', 'MinimumProtocolVersion': 'TLSv1.1_2016'}

    assert create_viewer_certificate(vc, CertificateId.iam_id("ASCA")) == {
        'CloudFrontDefaultCertificate': False,
        'IAMCertificateId': "ASCA",
        'SSLSupportMethod': 'vip',
        'MinimumProtocolVersion': 'TLSv1.1_2016',
    }


def test_update_switches_to_iam_certificate(session, cloudfront_client):
    message = CloudFront(session).update("E1AAAAAAAAAAAA", CertificateId.iam_id("ASCANEW"))

    assert message == "Updated E1AAAAAAAAAAAA www.example.com example.com arn:src -> ASCANEW"
    kwargs = cloudfront_client.update_distribution.call_args.kwargs
    assert kwargs['Id'] == "E1AAAAAAAAAAAA"
    assert kwargs['IfMatch'] == "ETAG-E1AAAAAAAAAAAA"
    assert kwargs['DistributionConfig']['ViewerCertificate'] == {
        'CloudFrontDefaultCertificate': False,
        'IAMCertificateId': "ASCANEW",
        'SSLSupportMethod': 'sni-only',
        'MinimumProtocolVersion': 'TLSv1.2_2021',
    }
    assert kwargs['DistributionConfig']['CallerReference'] == "ref"


def test_bulk_update_dry_run(session, cloudfront_client):
    updates = CloudFront(session).bulk_update("arn:src", CertificateId.arn("arn:dest"), dry_run=True)

    assert updates == [
        "# Dry run mode",
        "",
        "Updated E1AAAAAAAAAAAA www.example.com example.com arn:src -> arn:dest",
        "Updated E4DDDDDDDDDDDD  arn:src -> arn:dest",
    ]
    cloudfront_client.get_distribution.assert_not_called()
    cloudfront_client.update_distribution.assert_not_called()


def test_bulk_update_updates_each_distribution(session, cloudfront_client):
    updates = CloudFront(session).bulk_update("arn:src", CertificateId.arn("arn:dest"), dry_run=False)

    assert len(updates) == 2
    ids = [c.kwargs['Id'] for c in cloudfront_client.update_distribution.call_args_list]
    assert ids == ["E1AAAAAAAAAAAA", "E4DDDDDDDDDDDD"]
    for c in cloudfront_client.update_distribution.call_args_list:
        assert c.kwargs['DistributionConfig']['ViewerCertificate']['ACMCertificateArn'] == "arn:dest"


def test_readable_rows_name_iam_certificates(session, cloudfront_client, iam_client):
    cf = CloudFront(session)

    assert cf.readable_rows(cf.list()) == [
        {'Distribution ID': "E1AAAAAAAAAAAA", 'Aliases': "www.example.com", 'SSL Certificate': "arn:src"},
        {'Distribution ID': "E1AAAAAAAAAAAA", 'Aliases': "example.com", 'SSL Certificate': "arn:src"},
        {'Distribution ID': "E2BBBBBBBBBBBB", 'Aliases': "static.example.com",
         'SSL Certificate': "ASCAIAMCERT | legacy-example"},
        {'Distribution ID': "E4DDDDDDDDDDDD", 'Aliases': "-", 'SSL Certificate': "arn:src"},
    ]


def test_readable_rows_skip_iam_lookup_for_acm_only(session, cloudfront_client, iam_client):
    cf = CloudFront(session)

    cf.readable_rows(cf.list("arn:src"))

    iam_client.get_paginator.assert_not_called()
