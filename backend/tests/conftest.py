"""
Shared pytest fixtures for preview dashboard tests.

This module provides:
- Builders for kubernetes client model objects (deployments, pods, ingresses)
- FakeExecChannel: scripted stand-in for the exec websocket client
- A KubeClient mock with async methods
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from kubernetes import client

from preview_dashboard.adapters import DashboardAdapters
from preview_dashboard.kube_client import KubeClient

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Kubernetes object builders
# =============================================================================

def make_deployment(
    name: str = "web",
    namespace: str = "previews",
    replicas: Optional[int] = 1,
    ready: Optional[int] = 1,
    available: Optional[int] = None,
    unavailable: Optional[int] = None,
    labels: Optional[Dict[str, str]] = None,
    match_labels: Optional[Dict[str, str]] = None,
    conditions: Optional[List[tuple]] = None,
    containers: Optional[List[client.V1Container]] = None,
    created: Optional[datetime] = NOW,
) -> client.V1Deployment:
    """Build a V1Deployment; ``conditions`` is a list of (type, status) pairs."""
    if containers is None:
        containers = [client.V1Container(name=name, image=f"registry.local/{name}:v1")]
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            labels=labels,
            creation_timestamp=created,
        ),
        spec=client.V1DeploymentSpec(
            replicas=replicas,
            selector=client.V1LabelSelector(match_labels=match_labels),
            template=client.V1PodTemplateSpec(spec=client.V1PodSpec(containers=containers)),
        ),
        status=client.V1DeploymentStatus(
            ready_replicas=ready,
            available_replicas=available,
            unavailable_replicas=unavailable,
            conditions=[
                client.V1DeploymentCondition(type=t, status=s) for t, s in (conditions or [])
            ],
        ),
    )


def make_container_status(
    name: str,
    ready: bool = True,
    restarts: int = 0,
    state: str = "running",
) -> client.V1ContainerStatus:
    states = {
        "running": client.V1ContainerState(running=client.V1ContainerStateRunning()),
        "waiting": client.V1ContainerState(waiting=client.V1ContainerStateWaiting(reason="CrashLoopBackOff")),
        "terminated": client.V1ContainerState(terminated=client.V1ContainerStateTerminated(exit_code=1)),
        "unknown": client.V1ContainerState(),
    }
    return client.V1ContainerStatus(
        name=name,
        ready=ready,
        restart_count=restarts,
        image=f"{name}:latest",
        image_id=f"sha256:{name}",
        state=states[state],
    )


def make_pod(
    name: str,
    phase: str = "Running",
    created: Optional[datetime] = NOW - timedelta(minutes=90),
    statuses: Optional[List[client.V1ContainerStatus]] = None,
) -> client.V1Pod:
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, creation_timestamp=created),
        status=client.V1PodStatus(phase=phase, container_statuses=statuses),
    )


def make_ingress(
    name: str,
    hosts: List[Optional[str]],
    tls: bool = False,
    labels: Optional[Dict[str, str]] = None,
) -> client.V1Ingress:
    return client.V1Ingress(
        metadata=client.V1ObjectMeta(name=name, labels=labels),
        spec=client.V1IngressSpec(
            rules=[client.V1IngressRule(host=h) for h in hosts],
            tls=[client.V1IngressTLS(hosts=[h for h in hosts if h])] if tls else None,
        ),
    )


# =============================================================================
# Exec channel fake
# =============================================================================

class FakeExecChannel:
    """
    Scripted stand-in for ``kubernetes.stream.ws_client.WSClient``.

    Each ``update`` delivers the next scripted frame; once the frames run out
    the channel closes and the error channel holds ``status_record``.

    Usage:
        channel = FakeExecChannel(
            frames=[("stdout", "hello")],
            status_record='{"status": "Success"}',
        )
    """

    def __init__(self, frames=None, status_record='{"metadata": {}, "status": "Success"}',
                 fail_on_update: Optional[Exception] = None, never_closes: bool = False):
        self._frames = list(frames or [])
        self._status_record = status_record
        self._fail_on_update = fail_on_update
        self._never_closes = never_closes
        self._open = True
        self._buffers = {"stdout": "", "stderr": ""}
        self.closed = False
        self.updates = 0

    def is_open(self):
        return self._open

    def update(self, timeout=0):
        self.updates += 1
        if self._fail_on_update is not None:
            raise self._fail_on_update
        if self._frames:
            stream_name, data = self._frames.pop(0)
            self._buffers[stream_name] += data
        elif self._never_closes:
            time.sleep(min(timeout or 0, 0.01))
        else:
            self._open = False

    def peek_stdout(self, timeout=0):
        return self._buffers["stdout"]

    def peek_stderr(self, timeout=0):
        return self._buffers["stderr"]

    def read_stdout(self, timeout=None):
        data, self._buffers["stdout"] = self._buffers["stdout"], ""
        return data

    def read_stderr(self, timeout=None):
        data, self._buffers["stderr"] = self._buffers["stderr"], ""
        return data

    def read_channel(self, channel, timeout=0):
        data, self._status_record = self._status_record, ""
        return data

    def close(self, **kwargs):
        self.closed = True
        self._open = False


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def kube_client_mock():
    """KubeClient with every cluster call replaced by an AsyncMock."""
    mock = MagicMock(spec=KubeClient)
    mock.list_namespaces = AsyncMock(return_value=[])
    mock.list_deployments = AsyncMock(return_value=[])
    mock.get_deployment = AsyncMock()
    mock.set_replicas = AsyncMock()
    mock.list_ingresses = AsyncMock(return_value=[])
    mock.list_pods = AsyncMock(return_value=[])
    mock.read_pod_log = AsyncMock(return_value="")
    mock.get_server_version = AsyncMock(return_value="v1.29.2")
    mock.open_exec_channel = MagicMock()
    return mock


@pytest.fixture
def adapters(kube_client_mock):
    return DashboardAdapters(kube_client_mock)
