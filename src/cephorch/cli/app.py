# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cli/app.py
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer

from cephorch.cluster.cluster import Cluster, cluster_owner_ref
from cephorch.cluster.differ import cluster_changed
from cephorch.cluster.dryrun import DryRunStatusReader, DryRunWorkloadManager, StaticVersionRunner
from cephorch.cluster.errors import OrchestrationError
from cephorch.cluster.interfaces import InMemoryIdentityStore
from cephorch.config.loader import load_cluster
from cephorch.config.settings import load_operator_settings
from cephorch.logging.log import default_log_dir, init_logging
from cephorch.observers.console import ConsoleObserver
from cephorch.observers.dispatcher import EventBus
from cephorch.observers.events import new_ctx
from cephorch.observers.jsonfile import JsonFileObserver
from cephorch.observers.logger import LoggerObserver
from cephorch.version.probe import VersionProbe
from cephorch.version.runners import LocalProcessRunner


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Ceph cluster orchestrator")


def _build_live_cluster(manifest, settings, bus, run_ctx, kube_context: Optional[str]) -> Cluster:
    from kubernetes import client

    from cephorch.k8s.client import KubeIdentityStore, KubeWorkloadManager, load_kube_config
    from cephorch.status.ceph_cli import CephCliStatusReader
    from cephorch.version.runners import KubernetesJobRunner

    load_kube_config(kube_context)
    ns = manifest.metadata.namespace
    owner_ref = cluster_owner_ref(manifest.metadata.name, manifest.metadata.uid)
    core = client.CoreV1Api()

    runner = KubernetesJobRunner(
        batch_api=client.BatchV1Api(),
        core_api=core,
        namespace=ns,
        owner_ref=owner_ref,
    )
    data_dir = manifest.spec.data_dir_host_path
    status = CephCliStatusReader(
        cluster=ns,
        config_file=f"{data_dir}/{ns}/{ns}.config",
        keyring=f"{data_dir}/{ns}/client.admin.keyring",
    )
    return Cluster(
        name=manifest.metadata.name,
        namespace=ns,
        uid=manifest.metadata.uid,
        spec=manifest.spec,
        probe=VersionProbe(runner),
        status=status,
        admin=status,
        workloads=KubeWorkloadManager(
            namespace=ns,
            apps_api=client.AppsV1Api(),
            core_api=core,
            ready_timeout=settings.role_ready_timeout,
            poll_interval=settings.role_poll_interval,
        ),
        identity_store=KubeIdentityStore(namespace=ns, core_api=core, owner_ref=owner_ref),
        settings=settings,
        bus=bus,
        run_ctx=run_ctx,
    )


@app.command()
def orchestrate(
    manifest_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CephCluster manifest"),
    kube_context: Optional[str] = typer.Option(None, "--kube-context"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log the plan without touching a cluster"),
    assume_version: str = typer.Option("14.2.1", "--assume-version", help="Ceph version reported in --dry-run"),
    nodes: str = typer.Option("", "--nodes", help="Comma separated storage nodes for --dry-run"),
    strict: bool = typer.Option(False, "--strict", help="Fail when running versions cannot be read"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Run orchestration passes until the cluster matches the manifest."""
    logger, run_id, _ = init_logging(verbose=verbose)
    manifest = load_cluster(manifest_path)
    settings = load_operator_settings()
    if strict:
        settings = replace(settings, strict_version_check=True)

    bus = EventBus(observers=[
        LoggerObserver(logger),
        JsonFileObserver(default_log_dir() / f"events-{run_id}.jsonl"),
    ])
    run_ctx = new_ctx(namespace=manifest.metadata.namespace, cluster=manifest.metadata.name, run_id=run_id)

    if dry_run:
        bus.subscribe(ConsoleObserver())
        cluster = Cluster(
            name=manifest.metadata.name,
            namespace=manifest.metadata.namespace,
            uid=manifest.metadata.uid,
            spec=manifest.spec,
            probe=VersionProbe(StaticVersionRunner(assume_version)),
            status=DryRunStatusReader(),
            workloads=DryRunWorkloadManager([n.strip() for n in nodes.split(",") if n.strip()]),
            identity_store=InMemoryIdentityStore(),
            settings=settings,
            bus=bus,
            run_ctx=run_ctx,
        )
    else:
        cluster = _build_live_cluster(manifest, settings, bus, run_ctx, kube_context)

    try:
        cluster.create_instance()
    except OrchestrationError as e:
        typer.secho(f"orchestration failed: {e}", fg=typer.colors.RED, err=True)
        if e.retriable:
            typer.echo("fix the cluster or the spec and re-run to retry", err=True)
        raise typer.Exit(code=1)

    typer.secho(
        f"cluster {manifest.metadata.namespace}/{manifest.metadata.name} orchestrated "
        f"(fsid={cluster.info.fsid}, upgrade={cluster.is_upgrade})",
        fg=typer.colors.GREEN,
    )


@app.command("detect-version")
def detect_version(
    image: str = typer.Argument(..., help="Ceph container image"),
    engine: str = typer.Option("docker", "--engine", help="Container engine used to run the image"),
    timeout: float = typer.Option(120, "--timeout"),
):
    """Print the ceph version shipped in IMAGE."""
    init_logging()
    try:
        version = VersionProbe(LocalProcessRunner(engine=engine)).detect(image, timeout)
    except OrchestrationError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(str(version))


@app.command()
def diff(
    old: Path = typer.Argument(..., exists=True, dir_okay=False),
    new: Path = typer.Argument(..., exists=True, dir_okay=False),
):
    """Show whether two CephCluster manifests differ in their spec."""
    changed, text = cluster_changed(load_cluster(old).spec, load_cluster(new).spec)
    if not changed:
        typer.echo("no changes")
        return
    typer.echo(text or "specs differ")
    raise typer.Exit(code=2)


if __name__ == "__main__":
    app()
