"""
Type definitions for dashboard views of Kubernetes objects.

Every value here is built per request from live cluster state and never
mutated afterwards. ``to_dict`` renders the camelCase shape served to the UI.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any


class DeploymentStatus(str, Enum):
    """Health status derived from replica counts and conditions."""

    RUNNING = "running"
    PENDING = "pending"
    ERROR = "error"
    SCALED_TO_ZERO = "scaled_to_zero"


@dataclass(frozen=True)
class ReplicaInfo:
    """Replica counts of a deployment."""
    desired: int = 0
    ready: int = 0
    available: int = 0
    unavailable: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "desired": self.desired,
            "ready": self.ready,
            "available": self.available,
            "unavailable": self.unavailable,
        }


@dataclass(frozen=True)
class Deployment:
    """Kubernetes Deployment representation."""
    name: str
    namespace: str
    status: DeploymentStatus
    replicas: ReplicaInfo
    labels: Dict[str, str]
    created_at: datetime
    urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "status": self.status.value,
            "replicas": self.replicas.to_dict(),
            "labels": dict(self.labels),
            "createdAt": self.created_at.isoformat(),
            "urls": list(self.urls),
        }


@dataclass(frozen=True)
class ContainerStatusInfo:
    """Runtime status of one container inside a pod."""
    name: str
    ready: bool
    restart_count: int
    state: str  # "running", "waiting", "terminated", "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "ready": self.ready,
            "restartCount": self.restart_count,
            "state": self.state,
        }


@dataclass(frozen=True)
class PodInfo:
    """Kubernetes Pod representation."""
    name: str
    phase: str
    restart_count: int
    age: str
    container_statuses: List[ContainerStatusInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phase": self.phase,
            "restartCount": self.restart_count,
            "age": self.age,
            "containerStatuses": [c.to_dict() for c in self.container_statuses],
        }


@dataclass(frozen=True)
class ResourceQuantities:
    """CPU and memory quantities, verbatim from the pod template."""
    cpu: Optional[str] = None
    memory: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {}
        if self.cpu is not None:
            out["cpu"] = self.cpu
        if self.memory is not None:
            out["memory"] = self.memory
        return out


@dataclass(frozen=True)
class ContainerResources:
    limits: ResourceQuantities = field(default_factory=ResourceQuantities)
    requests: ResourceQuantities = field(default_factory=ResourceQuantities)

    def to_dict(self) -> Dict[str, Any]:
        return {"limits": self.limits.to_dict(), "requests": self.requests.to_dict()}


@dataclass(frozen=True)
class ContainerSpec:
    """Container declared in a deployment's pod template."""
    name: str
    image: str
    image_tag: str
    resources: ContainerResources = field(default_factory=ContainerResources)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "image": self.image,
            "imageTag": self.image_tag,
            "resources": self.resources.to_dict(),
        }


@dataclass(frozen=True)
class DeploymentDetail:
    """Deployment plus its pods and container specs."""
    deployment: Deployment
    pods: List[PodInfo] = field(default_factory=list)
    containers: List[ContainerSpec] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out = self.deployment.to_dict()
        out["pods"] = [p.to_dict() for p in self.pods]
        out["containers"] = [c.to_dict() for c in self.containers]
        return out


@dataclass(frozen=True)
class DeploymentSummary:
    """Counts of deployments per status."""
    total: int = 0
    running: int = 0
    error: int = 0
    pending: int = 0
    scaled_to_zero: int = 0

    @classmethod
    def from_deployments(cls, deployments: List[Deployment]) -> "DeploymentSummary":
        statuses = [d.status for d in deployments]
        return cls(
            total=len(deployments),
            running=statuses.count(DeploymentStatus.RUNNING),
            error=statuses.count(DeploymentStatus.ERROR),
            pending=statuses.count(DeploymentStatus.PENDING),
            scaled_to_zero=statuses.count(DeploymentStatus.SCALED_TO_ZERO),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "running": self.running,
            "error": self.error,
            "pending": self.pending,
            "scaledToZero": self.scaled_to_zero,
        }


@dataclass(frozen=True)
class DeploymentList:
    """Deployments across all visible namespaces."""
    deployments: List[Deployment]
    summary: DeploymentSummary
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deployments": [d.to_dict() for d in self.deployments],
            "summary": self.summary.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class FileEntry:
    """One entry of a remote directory listing."""
    name: str
    type: str  # "file" or "directory"
    permissions: str
    size: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "permissions": self.permissions,
        }
        if self.size is not None:
            out["size"] = self.size
        return out


@dataclass(frozen=True)
class DirectoryListing:
    path: str
    entries: List[FileEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "entries": [e.to_dict() for e in self.entries]}


@dataclass(frozen=True)
class FileContent:
    """File read from a running container."""
    path: str
    content: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "content": self.content, "size": self.size}
