"""
Kubernetes client for dashboard operations.
"""
import asyncio
import logging
import os
from typing import Any, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream

from .errors import NotFound, UpstreamUnavailable

logger = logging.getLogger(__name__)


class KubeClient:
    """Kubernetes client for orchestrator operations.

    The official client is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, in_cluster: Optional[bool] = None, context: Optional[str] = None):
        """
        Initialize Kubernetes client.

        Args:
            in_cluster: Whether running inside cluster (default: detect from
                ``KUBERNETES_SERVICE_HOST``)
            context: Kubernetes context name (optional)
        """
        if in_cluster is None:
            in_cluster = bool(os.environ.get("KUBERNETES_SERVICE_HOST"))
        self.in_cluster = in_cluster

        try:
            if in_cluster:
                config.load_incluster_config()
            else:
                if context:
                    config.load_kube_config(context=context)
                else:
                    config.load_kube_config()

            self.v1 = client.CoreV1Api()
            self.apps_v1 = client.AppsV1Api()
            self.networking_v1 = client.NetworkingV1Api()
            logger.info(f"✅ Kubernetes client initialized ({'in-cluster' if in_cluster else 'kubeconfig'})")

        except Exception as e:
            logger.error(f"❌ Failed to initialize Kubernetes client: {e}")
            raise

    async def get_server_version(self) -> str:
        info = await asyncio.to_thread(client.VersionApi().get_code)
        return info.git_version or "unknown"

    async def list_namespaces(self) -> List[str]:
        """
        Get all namespace names.

        Raises:
            UpstreamUnavailable: the API call failed
        """
        try:
            namespaces = await asyncio.to_thread(self.v1.list_namespace)
        except ApiException as e:
            logger.error(f"Failed to list namespaces: {e}")
            raise UpstreamUnavailable(f"Failed to list namespaces: {e.reason}") from e
        return [ns.metadata.name for ns in namespaces.items if ns.metadata and ns.metadata.name]

    async def list_deployments(self, namespace: str) -> List[Any]:
        """
        Get deployments in a namespace.

        Returns:
            List of ``V1Deployment``
        """
        try:
            deployments = await asyncio.to_thread(
                self.apps_v1.list_namespaced_deployment, namespace=namespace
            )
        except ApiException as e:
            logger.error(f"Failed to list deployments in {namespace}: {e}")
            raise UpstreamUnavailable(f"Failed to list deployments in {namespace}: {e.reason}") from e
        logger.debug(f"Retrieved {len(deployments.items)} deployments from namespace {namespace}")
        return list(deployments.items)

    async def get_deployment(self, namespace: str, name: str) -> Any:
        """
        Get a single deployment.

        Raises:
            NotFound: no such deployment
        """
        try:
            return await asyncio.to_thread(
                self.apps_v1.read_namespaced_deployment, name=name, namespace=namespace
            )
        except ApiException as e:
            if e.status == 404:
                raise NotFound("Deployment", namespace, name) from e
            logger.error(f"Failed to read deployment {namespace}/{name}: {e}")
            raise

    async def set_replicas(self, namespace: str, name: str, replicas: int) -> None:
        """
        Set the replica count through the deployment's scale subresource.

        Args:
            namespace: Deployment namespace
            name: Deployment name
            replicas: New replica count
        """
        try:
            scale = await asyncio.to_thread(
                self.apps_v1.read_namespaced_deployment_scale, name=name, namespace=namespace
            )
            scale.spec = client.V1ScaleSpec(replicas=replicas)
            await asyncio.to_thread(
                self.apps_v1.replace_namespaced_deployment_scale,
                name=name,
                namespace=namespace,
                body=scale,
            )
            logger.info(f"✅ Scaled {namespace}/{name} to {replicas} replicas")

        except ApiException as e:
            if e.status == 404:
                raise NotFound("Deployment", namespace, name) from e
            logger.error(f"Failed to scale deployment {namespace}/{name}: {e}")
            raise

    async def list_ingresses(self, namespace: str) -> List[Any]:
        """
        Get ingresses in a namespace.

        Returns:
            List of ``V1Ingress``
        """
        try:
            ingresses = await asyncio.to_thread(
                self.networking_v1.list_namespaced_ingress, namespace=namespace
            )
        except ApiException as e:
            raise UpstreamUnavailable(f"Failed to list ingresses in {namespace}: {e.reason}") from e
        return list(ingresses.items)

    async def list_pods(self, namespace: str, label_selector: Optional[str] = None) -> List[Any]:
        """
        Get pods in a namespace.

        Args:
            namespace: Target namespace
            label_selector: Optional label selector for filtering

        Returns:
            List of ``V1Pod``
        """
        try:
            pods = await asyncio.to_thread(
                self.v1.list_namespaced_pod,
                namespace=namespace,
                label_selector=label_selector,
            )
        except ApiException as e:
            logger.error(f"Failed to get pods: {e}")
            raise
        logger.debug(f"Retrieved {len(pods.items)} pods from namespace {namespace}")
        return list(pods.items)

    async def read_pod_log(
        self,
        namespace: str,
        pod: str,
        container: Optional[str] = None,
        tail_lines: int = 100,
    ) -> str:
        """
        Get the last lines of a container's log.

        Raises:
            NotFound: no such pod
        """
        kwargs = {"name": pod, "namespace": namespace, "tail_lines": tail_lines}
        if container:
            kwargs["container"] = container
        try:
            return await asyncio.to_thread(self.v1.read_namespaced_pod_log, **kwargs)
        except ApiException as e:
            if e.status == 404:
                raise NotFound("Pod", namespace, pod) from e
            logger.error(f"Failed to read logs of {namespace}/{pod}: {e}")
            raise

    def open_exec_channel(self, namespace: str, pod: str, container: str, command: List[str]) -> Any:
        """
        Open an exec websocket in a container (blocking, call from a worker thread).

        stream() swaps the request method of the client it is given, so each
        channel gets a fresh ApiClient instead of sharing ``self.v1``.

        Returns:
            ``kubernetes.stream.ws_client.WSClient`` with stdout and stderr attached
        """
        stream_api = client.CoreV1Api(api_client=client.ApiClient())
        try:
            return stream(
                stream_api.connect_get_namespaced_pod_exec,
                pod,
                namespace,
                container=container,
                command=command,
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
            )
        except ApiException as e:
            if e.status == 404:
                raise NotFound("Pod", namespace, pod) from e
            raise
