"""
Mapping of raw Kubernetes API objects to dashboard types.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .kube_types import (
    ContainerResources,
    ContainerSpec,
    ContainerStatusInfo,
    Deployment,
    PodInfo,
    ReplicaInfo,
    ResourceQuantities,
)
from .status import classify_status

DEFAULT_IMAGE_TAG = "latest"


def lookup_urls(url_map: Dict[str, List[str]], labels: Dict[str, str], name: str) -> List[str]:
    """Find the ingress URLs of a deployment by its release label, then by name."""
    release = labels.get("release") or name
    urls = url_map.get(release)
    if urls is None:
        urls = url_map.get(name)
    return list(urls or [])


def map_deployment(item: Any, urls: Optional[List[str]] = None) -> Deployment:
    """Convert a ``V1Deployment`` into a Deployment."""
    metadata = item.metadata
    spec = item.spec
    status = item.status

    desired = (spec.replicas if spec is not None else None) or 0
    replicas = ReplicaInfo(
        desired=desired,
        ready=getattr(status, "ready_replicas", None) or 0,
        available=getattr(status, "available_replicas", None) or 0,
        unavailable=getattr(status, "unavailable_replicas", None) or 0,
    )

    return Deployment(
        name=getattr(metadata, "name", None) or "unknown",
        namespace=getattr(metadata, "namespace", None) or "unknown",
        status=classify_status(desired, status),
        replicas=replicas,
        labels=dict(getattr(metadata, "labels", None) or {}),
        created_at=getattr(metadata, "creation_timestamp", None) or datetime.now(timezone.utc),
        urls=list(urls or []),
    )


def build_label_selector(match_labels: Optional[Dict[str, str]]) -> str:
    """Join ``matchLabels`` into an equality selector, e.g. ``app=web,tier=front``."""
    return ",".join(f"{key}={value}" for key, value in (match_labels or {}).items())


def split_image(image: str) -> Tuple[str, str]:
    """
    Split an image reference into repository and tag on the last colon.

    ``host:5000/repo:v2`` gives ``("host:5000/repo", "v2")``; an image with
    no colon gets the implicit ``latest`` tag.
    """
    repository, sep, tag = image.rpartition(":")
    if not sep:
        return image, DEFAULT_IMAGE_TAG
    return repository, tag


def format_age(created: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Render elapsed time in the largest whole unit: ``3d``, ``1h``, ``12m``, ``40s``."""
    if created is None:
        return "unknown"
    if now is None:
        now = datetime.now(timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)

    seconds = max(int((now - created).total_seconds()), 0)
    if seconds >= 86400:
        return f"{seconds // 86400}d"
    if seconds >= 3600:
        return f"{seconds // 3600}h"
    if seconds >= 60:
        return f"{seconds // 60}m"
    return f"{seconds}s"


def _container_state(state: Any) -> str:
    if state is None:
        return "unknown"
    if state.running is not None:
        return "running"
    if state.waiting is not None:
        return "waiting"
    if state.terminated is not None:
        return "terminated"
    return "unknown"


def map_pod(pod: Any, now: Optional[datetime] = None) -> PodInfo:
    """Convert a ``V1Pod`` into a PodInfo."""
    status = pod.status
    container_statuses = [
        ContainerStatusInfo(
            name=cs.name,
            ready=bool(cs.ready),
            restart_count=cs.restart_count or 0,
            state=_container_state(cs.state),
        )
        for cs in (getattr(status, "container_statuses", None) or [])
    ]

    return PodInfo(
        name=pod.metadata.name,
        phase=getattr(status, "phase", None) or "Unknown",
        restart_count=sum(cs.restart_count for cs in container_statuses),
        age=format_age(pod.metadata.creation_timestamp, now),
        container_statuses=container_statuses,
    )


def _quantities(values: Optional[Dict[str, str]]) -> ResourceQuantities:
    values = values or {}
    return ResourceQuantities(cpu=values.get("cpu"), memory=values.get("memory"))


def map_container_spec(container: Any) -> ContainerSpec:
    """Convert a ``V1Container`` from a pod template into a ContainerSpec."""
    image, tag = split_image(container.image or "")
    resources = container.resources
    return ContainerSpec(
        name=container.name,
        image=image,
        image_tag=tag,
        resources=ContainerResources(
            limits=_quantities(getattr(resources, "limits", None)),
            requests=_quantities(getattr(resources, "requests", None)),
        ),
    )


def template_containers(item: Any) -> List[ContainerSpec]:
    """Container specs declared in a deployment's pod template."""
    try:
        containers = item.spec.template.spec.containers or []
    except AttributeError:
        containers = []
    return [map_container_spec(c) for c in containers]


def selector_match_labels(item: Any) -> Dict[str, str]:
    try:
        return dict(item.spec.selector.match_labels or {})
    except AttributeError:
        return {}
