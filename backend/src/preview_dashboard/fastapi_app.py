# fastapi_app.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .adapters import DashboardAdapters
from .config import DashboardConfig, get_config, settings
from .errors import (
    DashboardError,
    InvalidReplicas,
    NamespaceExcluded,
    NotFound,
    RemoteCommandError,
    ScalingDisabled,
    TransportError,
    UpstreamUnavailable,
)
from .kube_client import KubeClient
from .pod_exec import RemoteExecGateway

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------
_adapters: Optional[DashboardAdapters] = None


def get_adapters() -> DashboardAdapters:
    """Shared adapters, created on first use."""
    global _adapters
    if _adapters is None:
        kube_client = KubeClient(in_cluster=settings.K8S_IN_CLUSTER, context=settings.K8S_CONTEXT)
        gateway = RemoteExecGateway(
            kube_client.open_exec_channel,
            timeout=settings.EXEC_TIMEOUT_SECS,
            max_workers=settings.EXEC_MAX_WORKERS,
        )
        _adapters = DashboardAdapters(kube_client, gateway)
    return _adapters


def get_dashboard_config() -> DashboardConfig:
    return get_config()


def ensure_namespace_allowed(namespace: str, config: DashboardConfig) -> None:
    if not config.is_namespace_allowed(namespace):
        raise NamespaceExcluded(namespace)


# -----------------------------------------------------------------------------
# FastAPI app + CORS
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _adapters is not None:
        logger.info("Shutting down exec workers")
        _adapters.exec_gateway.shutdown()


app = FastAPI(title="Preview Dashboard Backend", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


_ERROR_STATUS = (
    (NotFound, 404, "NOT_FOUND"),
    (NamespaceExcluded, 403, "NAMESPACE_EXCLUDED"),
    (ScalingDisabled, 403, "SCALING_DISABLED"),
    (InvalidReplicas, 400, "INVALID_REPLICAS"),
    (RemoteCommandError, 400, "COMMAND_ERROR"),
    (TransportError, 502, "TRANSPORT_ERROR"),
    (UpstreamUnavailable, 502, "UPSTREAM_UNAVAILABLE"),
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    for error_type, status_code, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return _error_response(status_code, code, str(exc))
    logger.error(f"Unhandled dashboard error: {exc}")
    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------
class ScaleRequest(BaseModel):
    # validated by hand so that bad values answer INVALID_REPLICAS, not 422
    replicas: Any = None


# -----------------------------------------------------------------------------
# Health & config
# -----------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/api/v1/health")
async def api_health(adapters: DashboardAdapters = Depends(get_adapters)):
    """Kubernetes connectivity and server version."""
    try:
        return await adapters.health()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "kubernetes": {"connected": False, "serverVersion": "unknown"},
                "error": str(e),
            },
        )


@app.get("/api/v1/config")
async def api_config(config: DashboardConfig = Depends(get_dashboard_config)):
    return config.to_dict()


# -----------------------------------------------------------------------------
# Deployments
# -----------------------------------------------------------------------------
@app.get("/api/v1/deployments")
async def list_deployments(
    adapters: DashboardAdapters = Depends(get_adapters),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    """All deployments outside the excluded namespaces, with a status summary."""
    try:
        result = await adapters.list_deployments(config.exclude_namespaces)
    except Exception as e:
        logger.error(f"Error fetching deployments: {e}")
        return _error_response(500, "FETCH_ERROR", "Failed to fetch deployments")
    return result.to_dict()


@app.get("/api/v1/deployments/{namespace}/{name}")
async def get_deployment(
    namespace: str,
    name: str,
    adapters: DashboardAdapters = Depends(get_adapters),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    """Deployment with pods and containers."""
    ensure_namespace_allowed(namespace, config)
    try:
        detail = await adapters.get_detail(namespace, name)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error fetching deployment {namespace}/{name}: {e}")
        return _error_response(500, "FETCH_ERROR", "Failed to fetch deployment")
    return {"success": True, "data": detail.to_dict()}


@app.patch("/api/v1/deployments/{namespace}/{name}/scale")
async def scale_deployment(
    namespace: str,
    name: str,
    body: ScaleRequest,
    adapters: DashboardAdapters = Depends(get_adapters),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    """Start (1 replica) or stop (0 replicas) a deployment."""
    if not config.scaling_enabled:
        raise ScalingDisabled()
    ensure_namespace_allowed(namespace, config)

    replicas = body.replicas
    if type(replicas) is not int or replicas not in (0, 1):
        raise InvalidReplicas(replicas)

    try:
        deployment = await adapters.scale(namespace, name, replicas)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error scaling deployment {namespace}/{name}: {e}")
        return _error_response(500, "SCALE_ERROR", "Failed to scale deployment")

    logger.info(f"✅ Scaled deployment {namespace}/{name} to {replicas}")
    return {
        "success": True,
        "data": deployment.to_dict(),
        "message": f"Deployment scaled to {replicas} replica{'' if replicas == 1 else 's'}",
    }


# -----------------------------------------------------------------------------
# Pods: logs & filesystem
# -----------------------------------------------------------------------------
@app.get("/api/v1/deployments/{namespace}/pods/{pod}/logs")
async def get_pod_logs(
    namespace: str,
    pod: str,
    container: Optional[str] = Query(None),
    tail_lines: Optional[int] = Query(None, alias="tailLines", ge=1, le=10000),
    adapters: DashboardAdapters = Depends(get_adapters),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    ensure_namespace_allowed(namespace, config)
    tail_lines = tail_lines or settings.DEFAULT_TAIL_LINES
    logs = await adapters.get_logs(namespace, pod, container, tail_lines)
    return {
        "success": True,
        "data": {"pod": pod, "container": container, "tailLines": tail_lines, "logs": logs},
    }


@app.get("/api/v1/deployments/{namespace}/pods/{pod}/files")
async def list_pod_files(
    namespace: str,
    pod: str,
    container: str = Query(...),
    path: str = Query("/"),
    adapters: DashboardAdapters = Depends(get_adapters),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    """Directory listing inside a running container."""
    ensure_namespace_allowed(namespace, config)
    listing = await adapters.list_directory(namespace, pod, container, path)
    return {"success": True, "data": listing.to_dict()}


@app.get("/api/v1/deployments/{namespace}/pods/{pod}/file")
async def read_pod_file(
    namespace: str,
    pod: str,
    container: str = Query(...),
    path: str = Query(...),
    adapters: DashboardAdapters = Depends(get_adapters),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    """File content from a running container."""
    ensure_namespace_allowed(namespace, config)
    content = await adapters.read_file(namespace, pod, container, path)
    return {"success": True, "data": content.to_dict()}


# -----------------------------------------------------------------------------
# Static files
# -----------------------------------------------------------------------------
def mount_frontend(application: FastAPI, static_dir: str) -> None:
    """Serve a built single-page frontend, falling back to index.html."""
    index_file = os.path.join(static_dir, "index.html")
    assets_dir = os.path.join(static_dir, "assets")
    if os.path.isdir(assets_dir):
        application.mount("/assets", StaticFiles(directory=assets_dir), name="assets")

    @application.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str):
        if full_path.startswith("api/"):
            return _error_response(404, "NOT_FOUND", f"No route for /{full_path}")
        return FileResponse(index_file)


if settings.STATIC_DIR and os.path.isdir(settings.STATIC_DIR):
    mount_frontend(app, settings.STATIC_DIR)


def main() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.HTTP_PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
