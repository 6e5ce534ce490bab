"""
Correlation of ingress hosts to deployment releases.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _release_key(ingress: Any) -> Optional[str]:
    metadata = ingress.metadata
    if metadata is None:
        return None
    labels = metadata.labels or {}
    return labels.get("release") or metadata.name


def build_release_urls(ingresses: Iterable[Any]) -> Dict[str, List[str]]:
    """
    Build a release -> URLs map from ``V1Ingress`` objects.

    The release is the ingress ``release`` label, or the ingress name. A host
    already recorded for a release is skipped, so the first URL seen wins.
    """
    url_map: Dict[str, List[str]] = {}
    seen_hosts: Dict[str, set] = {}

    for ingress in ingresses:
        release = _release_key(ingress)
        if not release:
            continue

        spec = ingress.spec
        rules = (spec.rules if spec is not None else None) or []
        scheme = "https" if spec is not None and spec.tls else "http"

        for rule in rules:
            if not rule.host:
                continue
            hosts = seen_hosts.setdefault(release, set())
            if rule.host in hosts:
                continue
            hosts.add(rule.host)
            url_map.setdefault(release, []).append(f"{scheme}://{rule.host}")

    return url_map


async def correlate_ingress_urls(kube_client, namespace: str) -> Dict[str, List[str]]:
    """Release -> URLs for a namespace; empty when ingresses cannot be listed."""
    try:
        ingresses = await kube_client.list_ingresses(namespace)
    except Exception as e:
        logger.warning(f"Could not list ingresses in {namespace}: {e}")
        return {}
    return build_release_urls(ingresses)
