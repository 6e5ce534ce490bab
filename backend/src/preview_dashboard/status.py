"""
Deployment status classification.
"""
from typing import Any, Optional

from .kube_types import DeploymentStatus


def _find_condition(conditions, condition_type: str):
    for condition in conditions:
        if getattr(condition, "type", None) == condition_type:
            return condition
    return None


def classify_status(desired_replicas: int, status: Optional[Any]) -> DeploymentStatus:
    """
    Derive a dashboard status from replica counts and deployment conditions.

    Args:
        desired_replicas: ``spec.replicas`` of the deployment
        status: ``V1DeploymentStatus`` (or anything with ``ready_replicas``
            and ``conditions`` attributes), may be None

    Returns:
        DeploymentStatus
    """
    if not desired_replicas:
        return DeploymentStatus.SCALED_TO_ZERO

    ready = getattr(status, "ready_replicas", None) or 0
    if ready == 0:
        conditions = getattr(status, "conditions", None) or []

        available = _find_condition(conditions, "Available")
        if available is not None and available.status == "False":
            return DeploymentStatus.ERROR

        progressing = _find_condition(conditions, "Progressing")
        if progressing is not None and progressing.status == "True":
            return DeploymentStatus.PENDING

        # Nothing ready and nothing says it is coming up
        return DeploymentStatus.ERROR

    if ready >= desired_replicas:
        return DeploymentStatus.RUNNING

    return DeploymentStatus.PENDING
