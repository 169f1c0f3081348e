import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import typer

from aws_cert_utils import __version__
from aws_cert_utils.config import SessionOptions, build_session
from aws_cert_utils.errors import CertUtilsError, UsageError
from aws_cert_utils.modules.acm import ACM
from aws_cert_utils.modules.alb import ALB
from aws_cert_utils.modules.certificate import CertificateManager
from aws_cert_utils.modules.cloudfront import CloudFront, resolve_certificate
from aws_cert_utils.modules.common import check_tag_value_pattern
from aws_cert_utils.modules.elb import DEFAULT_PORT, ELB
from aws_cert_utils.modules.iam import IAM
from aws_cert_utils.presentation import Presenter

logger = logging.getLogger(__name__)

MARKER_HELP = "Paginating results and only after you receive a response indicating that the results are truncated"
NEXT_TOKEN_HELP = "The token returned as NextToken by a previous truncated list"
XLSX_HELP = "Write the list to an Excel workbook instead of printing a table"
DELETE_PROMPT = "Choose the server certificate you want to delete"

app = typer.Typer(no_args_is_help=True, help="Certificate Utility for AWS(ACM, IAM, ALB, ELB, CloudFront)")
acm_app = typer.Typer(no_args_is_help=True, help="AWS Certificate Manager (ACM)")
iam_app = typer.Typer(no_args_is_help=True, help="AWS Identity and Access Management (IAM)")
cloudfront_app = typer.Typer(no_args_is_help=True, help="Amazon CloudFront")
elb_app = typer.Typer(no_args_is_help=True, help="Elastic Load Balancing")
alb_app = typer.Typer(no_args_is_help=True, help="Application Load Balancing")

app.add_typer(acm_app, name="acm")
app.add_typer(iam_app, name="iam")
app.add_typer(cloudfront_app, name="cloudfront")
app.add_typer(elb_app, name="elb")
app.add_typer(alb_app, name="alb")


@dataclass(frozen=True)
class Config:
    session: SessionOptions
    presenter: Presenter
    marker: str = ""
    max_items: int = 0


@contextmanager
def fatal_errors(config):
    try:
        yield
    except CertUtilsError as e:
        logger.debug("Command failed", exc_info=True)
        config.presenter.error(e)
        raise typer.Exit(code=e.exit_code)


def require(value, flag):
    if not value:
        raise UsageError(f"{flag} is required.")
    return value


def show_rows(config, rows, title, xlsx):
    if xlsx:
        config.presenter.export(rows, xlsx, title)
    else:
        config.presenter.table(rows, title=title)


def load_certificate_material(cert, cert_path, chain, chain_path, pkey, pkey_path):
    if not cert and not cert_path:
        raise UsageError("--cert or --cert-path is required.")
    if not pkey and not pkey_path:
        raise UsageError("--pkey or --pkey-path is required.")

    cm = CertificateManager()
    cm.load_certificate(cert, cert_path)
    cm.load_chain(chain, chain_path)
    cm.load_private_key(pkey, pkey_path)
    cm.check_private_key_bit_len()

    return cm


def _version_callback(value: bool):
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    access_key: Optional[str] = typer.Option(None, "--access-key", help="The AWS access key ID"),
    secret_key: Optional[str] = typer.Option(None, "--secret-key", help="The AWS secret access key"),
    assume_role_arn: Optional[str] = typer.Option(None, "--assume-role-arn", help="The AWS assume role ARN"),
    token: Optional[str] = typer.Option(None, "--token", help="The AWS access token"),
    region: Optional[str] = typer.Option(None, "--region", help="The AWS region"),
    profile: Optional[str] = typer.Option(None, "--profile", help="The AWS CLI profile"),
    aws_config: Optional[str] = typer.Option(None, "--aws-config", help="The AWS CLI Config file"),
    credentials: Optional[str] = typer.Option(None, "--credentials", help="The AWS CLI Credential file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log AWS calls to stderr"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(levelname)s - %(message)s')
    if verbose:
        logging.getLogger("aws_cert_utils").setLevel(logging.DEBUG)
    ctx.obj = Config(
        session=SessionOptions(
            access_key=access_key,
            secret_key=secret_key,
            assume_role_arn=assume_role_arn,
            token=token,
            region=region,
            profile=profile,
            config_file=aws_config,
            credentials_file=credentials,
        ),
        presenter=Presenter(),
    )


################################################################################
#
# acm
#
################################################################################
@acm_app.command("list")
def acm_list(
    ctx: typer.Context,
    cert_statuses: str = typer.Option("ALL", "--cert-statuses",
                                      help="The status or statuses on which to filter the list of ACM Certificates(comma separated)"),
    max_items: int = typer.Option(0, "--max-items", help="The total number of items to return in the command's output"),
    next_token: str = typer.Option("", "--next-token", help=NEXT_TOKEN_HELP),
    xlsx: Optional[Path] = typer.Option(None, "--xlsx", help=XLSX_HELP),
):
    """Retrieves a list of ACM Certificates and the domain name for each."""
    config = ctx.obj
    with fatal_errors(config):
        acm = ACM(build_session(config.session, "acm"))
        show_rows(config, acm.readable_rows(acm.list(cert_statuses, max_items, next_token)), "ACM Certificates", xlsx)


@acm_app.command("import")
def acm_import(
    ctx: typer.Context,
    cert_path: Optional[str] = typer.Option(None, "--cert-path", help="Path to certificate"),
    chain_path: Optional[str] = typer.Option(None, "--chain-path", help="Path to certificate chain"),
    pkey_path: Optional[str] = typer.Option(None, "--pkey-path", help="Path to private key"),
    cert: Optional[str] = typer.Option(None, "--cert", help="The certificate to import"),
    chain: Optional[str] = typer.Option(None, "--chain", help="The certificate chain"),
    pkey: Optional[str] = typer.Option(None, "--pkey",
                                       help="The private key that matches the public key in the certificate"),
    name: str = typer.Option("", "--name", help="The name tag value"),
):
    """Imports an SSL/TLS certificate into ACM."""
    config = ctx.obj
    with fatal_errors(config):
        check_tag_value_pattern(name)
        cm = load_certificate_material(cert, cert_path, chain, chain_path, pkey, pkey_path)

        acm = ACM(build_session(config.session, "acm"))
        arn, msg = acm.import_certificate(cm.cert, cm.chain, cm.pkey)
        if name:
            acm.add_tags(arn, {"Name": name})

        config.presenter.lines([msg])


@acm_app.command("delete")
def acm_delete(
    ctx: typer.Context,
    arn: str = typer.Option("", "--arn", help="String that contains the ARN of the ACM Certificate to be deleted"),
    cert_statuses: str = typer.Option("ALL", "--cert-statuses",
                                      help="The status or statuses on which to filter the list of ACM Certificates(comma separated)"),
    max_items: int = typer.Option(0, "--max-items", help="The total number of items to return in the command's output"),
    next_token: str = typer.Option("", "--next-token", help=NEXT_TOKEN_HELP),
):
    """Deletes an ACM Certificate and its associated private key."""
    config = ctx.obj
    with fatal_errors(config):
        acm = ACM(build_session(config.session, "acm"))
        if not arn:
            labels, targets = acm.list_delete_targets(cert_statuses, max_items, next_token)
            arn = targets.get(config.presenter.choose(labels, DELETE_PROMPT), "")
            if not arn:
                raise typer.Exit()

        config.presenter.lines([acm.delete(arn)])


################################################################################
#
# iam
#
################################################################################
@iam_app.command("list")
def iam_list(
    ctx: typer.Context,
    marker: str = typer.Option("", "--marker", help=MARKER_HELP),
    max_items: int = typer.Option(0, "--max-items", help="The total number of items to return"),
    path_prefix: str = typer.Option("/", "--path-prefix", help="The path prefix for filtering the results"),
    xlsx: Optional[Path] = typer.Option(None, "--xlsx", help=XLSX_HELP),
):
    """Lists the server certificates stored in IAM that have the specified path prefix."""
    config = ctx.obj
    with fatal_errors(config):
        iam = IAM(build_session(config.session, "iam"))
        show_rows(config, iam.readable_rows(iam.list(marker, max_items, path_prefix)), "IAM Server Certificates", xlsx)


@iam_app.command("upload")
def iam_upload(
    ctx: typer.Context,
    cert_path: Optional[str] = typer.Option(None, "--cert-path", help="Path to certificate"),
    chain_path: Optional[str] = typer.Option(None, "--chain-path", help="Path to certificate chain"),
    pkey_path: Optional[str] = typer.Option(None, "--pkey-path", help="Path to private key"),
    cert: Optional[str] = typer.Option(None, "--cert", help="The contents of the public key certificate"),
    chain: Optional[str] = typer.Option(None, "--chain", help="The contents of the certificate chain"),
    pkey: Optional[str] = typer.Option(None, "--pkey", help="The contents of the private key"),
    path: str = typer.Option("/", "--path", help="The path for the server certificate"),
    name: str = typer.Option("", "--name", help="The name for the server certificate"),
):
    """Uploads a server certificate entity for the AWS account."""
    config = ctx.obj
    with fatal_errors(config):
        require(name, "--name")
        cm = load_certificate_material(cert, cert_path, chain, chain_path, pkey, pkey_path)

        iam = IAM(build_session(config.session, "iam"))
        config.presenter.lines([iam.upload(cm.cert, cm.chain, cm.pkey, path, name)])


@iam_app.command("update")
def iam_update(
    ctx: typer.Context,
    new_path: str = typer.Option("", "--new-path", help="The new path for the server certificate"),
    new_name: str = typer.Option("", "--new-name", help="The new name for the server certificate"),
    name: str = typer.Option("", "--name", help="The name for the server certificate"),
):
    """Updates the name and/or the path of the specified server certificate stored in IAM."""
    config = ctx.obj
    with fatal_errors(config):
        require(name, "--name")
        if not new_path and not new_name:
            raise UsageError("--new-path or --new-name is required.")

        iam = IAM(build_session(config.session, "iam"))
        config.presenter.lines([iam.update(new_path, new_name, name)])


@iam_app.command("delete")
def iam_delete(
    ctx: typer.Context,
    name: str = typer.Option("", "--name", help="The name of the server certificate you want to delete"),
    marker: str = typer.Option("", "--marker", help=MARKER_HELP),
    max_items: int = typer.Option(0, "--max-items", help="The total number of items to return"),
    path_prefix: str = typer.Option("/", "--path-prefix", help="The path prefix for filtering the results"),
):
    """Deletes the specified server certificate."""
    config = ctx.obj
    with fatal_errors(config):
        iam = IAM(build_session(config.session, "iam"))
        if not name:
            name = config.presenter.choose(iam.list_names(marker, max_items, path_prefix), DELETE_PROMPT)
            if not name:
                raise typer.Exit()

        config.presenter.lines([iam.delete(name)])


################################################################################
#
# cloudfront
#
################################################################################
@cloudfront_app.callback()
def cloudfront(
    ctx: typer.Context,
    marker: str = typer.Option("", "--marker", help=MARKER_HELP),
    max_items: int = typer.Option(0, "--max-items", help="The total number of items to return in the command's output"),
):
    ctx.obj = replace(ctx.obj, marker=marker, max_items=max_items)


def _cloudfront(config):
    return CloudFront(build_session(config.session, "cloudfront"), config.marker, config.max_items)


@cloudfront_app.command("list")
def cloudfront_list(
    ctx: typer.Context,
    cert: str = typer.Option("", "--cert", help="ACM Arn or IAM Certificate ID"),
    aliases: str = typer.Option("", "--aliases", help="Domain name"),
    xlsx: Optional[Path] = typer.Option(None, "--xlsx", help=XLSX_HELP),
):
    """Lists the distributions."""
    config = ctx.obj
    with fatal_errors(config):
        cf = _cloudfront(config)
        show_rows(config, cf.readable_rows(cf.list(cert, aliases)), "CloudFront Distributions", xlsx)


@cloudfront_app.command("update")
def cloudfront_update(
    ctx: typer.Context,
    dist_id: str = typer.Option("", "--dist-id", help="The distribution's id"),
    acm_arn: str = typer.Option("", "--acm-arn", help="String that contains the ARN of the ACM Certificate"),
    iam_id: str = typer.Option("", "--iam-id", help="String that contains the IAM Certificate ID"),
):
    """Updates the configuration for a distribution."""
    config = ctx.obj
    with fatal_errors(config):
        cert = resolve_certificate(acm_arn, iam_id)
        require(dist_id, "--dist-id")

        config.presenter.lines([_cloudfront(config).update(dist_id, cert)])


@cloudfront_app.command("bulk-update")
def cloudfront_bulk_update(
    ctx: typer.Context,
    source_acm_arn: str = typer.Option("", "--source-acm-arn",
                                       help="String that contains the ARN of the source ACM Certificate"),
    source_iam_id: str = typer.Option("", "--source-iam-id",
                                      help="String that contains the source IAM Certificate ID"),
    dest_acm_arn: str = typer.Option("", "--dest-acm-arn",
                                     help="String that contains the ARN of the destination ACM Certificate"),
    dest_iam_id: str = typer.Option("", "--dest-iam-id",
                                    help="String that contains the destination IAM Certificate ID"),
    no_dry_run: bool = typer.Option(False, "--no-dry-run", help="Disable dry-run mode"),
):
    """Updates the configuration for distributions."""
    config = ctx.obj
    with fatal_errors(config):
        src = resolve_certificate(source_acm_arn, source_iam_id, "source-")
        dest = resolve_certificate(dest_acm_arn, dest_iam_id, "dest-")

        config.presenter.lines(_cloudfront(config).bulk_update(src.value, dest, dry_run=not no_dry_run))


################################################################################
#
# elb / alb
#
################################################################################
def list_bindings(config, adapter_class, cert, xlsx, title):
    with fatal_errors(config):
        adapter = adapter_class(build_session(config.session, adapter_class.service_name))
        show_rows(config, adapter.readable_rows(adapter.list(cert)), title, xlsx)


def bulk_update_bindings(config, adapter_class, source_cert_arn, dest_cert_arn, no_dry_run):
    with fatal_errors(config):
        require(source_cert_arn, "--source-cert-arn")
        require(dest_cert_arn, "--dest-cert-arn")

        adapter = adapter_class(build_session(config.session, adapter_class.service_name))
        config.presenter.lines(adapter.bulk_update(source_cert_arn, dest_cert_arn, dry_run=not no_dry_run))


@elb_app.command("list")
def elb_list(
    ctx: typer.Context,
    cert: str = typer.Option("", "--cert", metavar="ARN", help="String that contains the ARN of the ACM/IAM Certificate"),
    xlsx: Optional[Path] = typer.Option(None, "--xlsx", help=XLSX_HELP),
):
    """Describes the load balancers."""
    list_bindings(ctx.obj, ELB, cert, xlsx, "Classic Load Balancers")


@elb_app.command("update")
def elb_update(
    ctx: typer.Context,
    name: str = typer.Option("", "--name", help="The name of the load balancer"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="The port that uses the specified SSL certificate"),
    cert_arn: str = typer.Option("", "--cert-arn", help="The ARN of the ACM/IAM SSL Certificate"),
):
    """Updates a listener of the specified load balancer."""
    config = ctx.obj
    with fatal_errors(config):
        require(name, "--name")
        require(cert_arn, "--cert-arn")

        elb = ELB(build_session(config.session, ELB.service_name))
        config.presenter.lines([elb.update(name, cert_arn, port)])


@elb_app.command("bulk-update")
def elb_bulk_update(
    ctx: typer.Context,
    source_cert_arn: str = typer.Option("", "--source-cert-arn", help="The ARN of the source ACM/IAM SSL Certificate"),
    dest_cert_arn: str = typer.Option("", "--dest-cert-arn", help="The ARN of the destination ACM/IAM SSL Certificate"),
    no_dry_run: bool = typer.Option(False, "--no-dry-run", help="Disable dry-run mode"),
):
    """Updates every listener that uses the source certificate."""
    bulk_update_bindings(ctx.obj, ELB, source_cert_arn, dest_cert_arn, no_dry_run)


@alb_app.command("list")
def alb_list(
    ctx: typer.Context,
    cert: str = typer.Option("", "--cert", metavar="ARN", help="The ARN of the ACM/IAM SSL Certificate"),
    xlsx: Optional[Path] = typer.Option(None, "--xlsx", help=XLSX_HELP),
):
    """Describes the load balancers."""
    list_bindings(ctx.obj, ALB, cert, xlsx, "Application Load Balancers")


@alb_app.command("update")
def alb_update(
    ctx: typer.Context,
    name: str = typer.Option("", "--name", help="The name of the load balancer"),
    port: Optional[int] = typer.Option(None, "--port",
                                       help="The listener port (defaults to the first listener with a certificate)"),
    cert_arn: str = typer.Option("", "--cert-arn", help="The ARN of the ACM/IAM SSL Certificate"),
):
    """Updates a listener of the specified load balancer."""
    config = ctx.obj
    with fatal_errors(config):
        require(name, "--name")
        require(cert_arn, "--cert-arn")

        alb = ALB(build_session(config.session, ALB.service_name))
        config.presenter.lines([alb.update(name, cert_arn, port)])


@alb_app.command("bulk-update")
def alb_bulk_update(
    ctx: typer.Context,
    source_cert_arn: str = typer.Option("", "--source-cert-arn", help="The ARN of the source ACM/IAM SSL Certificate"),
    dest_cert_arn: str = typer.Option("", "--dest-cert-arn", help="The ARN of the destination ACM/IAM SSL Certificate"),
    no_dry_run: bool = typer.Option(False, "--no-dry-run", help="Disable dry-run mode"),
):
    """Updates every listener that uses the source certificate."""
    bulk_update_bindings(ctx.obj, ALB, source_cert_arn, dest_cert_arn, no_dry_run)


def run():
    app(prog_name="aws-cert-utils")


if __name__ == '__main__':
    run()
