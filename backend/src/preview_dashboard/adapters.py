"""
Adapters between the Kubernetes client and the HTTP routes.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .ingress import correlate_ingress_urls
from .kube_client import KubeClient
from .kube_types import (
    Deployment,
    DeploymentDetail,
    DeploymentList,
    DeploymentSummary,
    DirectoryListing,
    FileContent,
    PodInfo,
)
from .mappers import (
    build_label_selector,
    lookup_urls,
    map_deployment,
    map_pod,
    selector_match_labels,
    template_containers,
)
from .pod_exec import RemoteExecGateway

logger = logging.getLogger(__name__)


class DashboardAdapters:
    """Dashboard operations over a KubeClient."""

    def __init__(self, kube_client: KubeClient, exec_gateway: Optional[RemoteExecGateway] = None):
        self.kube_client = kube_client
        if exec_gateway is None:
            exec_gateway = RemoteExecGateway(kube_client.open_exec_channel)
        self.exec_gateway = exec_gateway

    async def get_namespaces(self, exclude: Iterable[str]) -> List[str]:
        """Sorted namespace names minus the excluded ones (case-insensitive)."""
        excluded = {n.lower() for n in exclude}
        try:
            names = await self.kube_client.list_namespaces()
        except Exception as e:
            logger.warning(f"Could not list namespaces: {e}")
            return []
        return sorted(n for n in names if n and n.lower() not in excluded)

    async def get_deployments(self, namespace: str) -> List[Deployment]:
        """Deployments of one namespace annotated with their ingress URLs."""
        items, url_map = await asyncio.gather(
            self.kube_client.list_deployments(namespace),
            correlate_ingress_urls(self.kube_client, namespace),
        )
        deployments = []
        for item in items:
            name = getattr(item.metadata, "name", None) or ""
            labels = getattr(item.metadata, "labels", None) or {}
            deployments.append(map_deployment(item, lookup_urls(url_map, labels, name)))
        return deployments

    async def list_deployments(self, exclude: Iterable[str]) -> DeploymentList:
        """
        Deployments of every visible namespace with a status summary.

        A namespace whose deployments cannot be fetched is left out.
        """
        namespaces = await self.get_namespaces(exclude)
        results = await asyncio.gather(
            *(self.get_deployments(ns) for ns in namespaces),
            return_exceptions=True,
        )

        deployments: List[Deployment] = []
        for namespace, result in zip(namespaces, results):
            if isinstance(result, BaseException):
                logger.warning(f"Skipping namespace {namespace}: {result}")
                continue
            deployments.extend(result)

        logger.info(f"Retrieved {len(deployments)} deployments from {len(namespaces)} namespaces")
        return DeploymentList(
            deployments=deployments,
            summary=DeploymentSummary.from_deployments(deployments),
            timestamp=datetime.now(timezone.utc),
        )

    async def get_deployment(self, namespace: str, name: str) -> Deployment:
        item = await self.kube_client.get_deployment(namespace, name)
        return map_deployment(item)

    async def _get_pods(self, namespace: str, item: Any) -> List[PodInfo]:
        selector = build_label_selector(selector_match_labels(item))
        if not selector:
            return []
        pods = await self.kube_client.list_pods(namespace, label_selector=selector)
        now = datetime.now(timezone.utc)
        return [map_pod(pod, now) for pod in pods]

    async def get_detail(self, namespace: str, name: str) -> DeploymentDetail:
        """
        Deployment with its pods, container specs and ingress URLs.

        Raises:
            NotFound: no such deployment
        """
        item = await self.kube_client.get_deployment(namespace, name)
        url_map, pods = await asyncio.gather(
            correlate_ingress_urls(self.kube_client, namespace),
            self._get_pods(namespace, item),
        )
        labels = item.metadata.labels or {}
        deployment = map_deployment(item, lookup_urls(url_map, labels, item.metadata.name or name))
        return DeploymentDetail(
            deployment=deployment,
            pods=pods,
            containers=template_containers(item),
        )

    async def scale(self, namespace: str, name: str, replicas: int) -> Deployment:
        """
        Scale a deployment and return its refreshed state.

        Raises:
            NotFound: no such deployment
        """
        await self.kube_client.get_deployment(namespace, name)
        await self.kube_client.set_replicas(namespace, name, replicas)
        return await self.get_deployment(namespace, name)

    async def get_logs(
        self,
        namespace: str,
        pod: str,
        container: Optional[str] = None,
        tail_lines: int = 100,
    ) -> str:
        return await self.kube_client.read_pod_log(namespace, pod, container, tail_lines)

    async def list_directory(self, namespace: str, pod: str, container: str, path: str) -> DirectoryListing:
        return await self.exec_gateway.list_directory(namespace, pod, container, path)

    async def read_file(self, namespace: str, pod: str, container: str, path: str) -> FileContent:
        return await self.exec_gateway.read_file(namespace, pod, container, path)

    async def health(self) -> Dict[str, Any]:
        """Cluster connectivity and server version."""
        try:
            version = await self.kube_client.get_server_version()
            connected = True
        except Exception as e:
            logger.warning(f"Kubernetes API not reachable: {e}")
            version = "unknown"
            connected = False

        return {
            "status": "healthy" if connected else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "kubernetes": {"connected": connected, "serverVersion": version},
        }
