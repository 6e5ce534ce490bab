"""
Error kinds raised by the dashboard core.
"""
from typing import Optional


class DashboardError(Exception):
    """Base class for dashboard errors."""


class NotFound(DashboardError):
    """Target deployment or pod does not exist."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} not found")


class RemoteCommandError(DashboardError):
    """Command ran in the container but wrote only to stderr."""

    def __init__(self, stderr: str, command: Optional[list] = None):
        self.stderr = stderr
        self.command = command
        super().__init__(stderr.strip() or "remote command failed")


class TransportError(DashboardError):
    """Exec channel failed before reporting completion."""


class UpstreamUnavailable(DashboardError):
    """A listing call to the cluster API failed."""


class NamespaceExcluded(DashboardError):
    def __init__(self, namespace: str):
        self.namespace = namespace
        super().__init__(f"Namespace {namespace} is excluded")


class ScalingDisabled(DashboardError):
    def __init__(self):
        super().__init__("Scaling is disabled in configuration")


class InvalidReplicas(DashboardError):
    def __init__(self, replicas):
        self.replicas = replicas
        super().__init__("Replicas must be 0 or 1")
