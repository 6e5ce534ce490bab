"""
Command execution inside running containers.

Each call opens its own exec websocket through the Kubernetes client. The
blocking websocket pump runs in a worker thread and hands its outcome back
to the event loop through a write-once ExecResult.
"""
import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, List, Optional

import yaml
from kubernetes.stream.ws_client import ERROR_CHANNEL

from .errors import DashboardError, RemoteCommandError, TransportError
from .kube_types import DirectoryListing, FileContent
from .listing_parser import listing_command, parse_directory_listing

logger = logging.getLogger(__name__)


class ExecStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def completion_status(raw: str) -> ExecStatus:
    """
    Read the status record Kubernetes sends on the exec error channel.

    Raises:
        TransportError: the channel closed without a status record
    """
    if not raw or not raw.strip():
        raise TransportError("Exec channel closed without a completion status")
    try:
        record = yaml.safe_load(raw)
    except yaml.YAMLError:
        return ExecStatus.FAILURE
    if isinstance(record, dict) and record.get("status") == "Success":
        return ExecStatus.SUCCESS
    return ExecStatus.FAILURE


def pump_channel(
    channel: Any,
    on_stdout: Callable[[str], None],
    on_stderr: Callable[[str], None],
    on_complete: Callable[[ExecStatus], None],
    abandoned: threading.Event,
    poll_interval: float = 1.0,
) -> None:
    """
    Drive an exec websocket until it closes, then fire ``on_complete`` once.

    Returns without calling ``on_complete`` if ``abandoned`` is set first.
    """
    while channel.is_open() and not abandoned.is_set():
        channel.update(timeout=poll_interval)
        if channel.peek_stdout():
            on_stdout(channel.read_stdout())
        if channel.peek_stderr():
            on_stderr(channel.read_stderr())

    if abandoned.is_set():
        return

    # Frames that arrived together with the close
    if channel.peek_stdout():
        on_stdout(channel.read_stdout())
    if channel.peek_stderr():
        on_stderr(channel.read_stderr())

    on_complete(completion_status(channel.read_channel(ERROR_CHANNEL)))


class ExecResult:
    """
    Write-once result cell for one exec call.

    The first ``resolve`` or ``reject`` wins; later calls return False and
    change nothing. Safe to settle from any thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._lock = threading.Lock()
        self._settled = False
        self.future = loop.create_future()

    @property
    def settled(self) -> bool:
        return self._settled

    def resolve(self, value: str) -> bool:
        return self._settle(value, None)

    def reject(self, error: BaseException) -> bool:
        return self._settle(None, error)

    def _settle(self, value: Optional[str], error: Optional[BaseException]) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
        try:
            self._loop.call_soon_threadsafe(self._deliver, value, error)
        except RuntimeError:
            # event loop already closed
            return False
        return True

    def _deliver(self, value: Optional[str], error: Optional[BaseException]) -> None:
        if self.future.done():
            return
        if error is not None:
            self.future.set_exception(error)
        else:
            self.future.set_result(value)


class RemoteExecGateway:
    """Runs commands in containers and emulates ``ls`` / ``cat`` on top of them."""

    def __init__(
        self,
        open_channel: Callable[[str, str, str, List[str]], Any],
        timeout: Optional[float] = 30,
        poll_interval: float = 1.0,
        max_workers: int = 8,
    ):
        """
        Args:
            open_channel: Opens an exec websocket, e.g. ``KubeClient.open_exec_channel``
            timeout: Seconds before an exec is abandoned (None waits forever)
            poll_interval: Seconds each websocket poll may block
            max_workers: Concurrent exec pumps; further execs queue for a worker
        """
        self._open_channel = open_channel
        self.timeout = timeout
        self.poll_interval = poll_interval
        # pumps block for the whole command, so they stay off the default executor
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pod-exec")

    def shutdown(self) -> None:
        """Stop accepting execs; running pumps finish or hit their timeout."""
        self._executor.shutdown(wait=False)

    async def exec(self, namespace: str, pod: str, container: str, command: List[str]) -> str:
        """
        Run ``command`` in a container and return its stdout.

        Raises:
            RemoteCommandError: the command produced no stdout but wrote to stderr
            TransportError: the channel failed or timed out before completion
            NotFound: the pod does not exist
        """
        loop = asyncio.get_running_loop()
        result = ExecResult(loop)
        abandoned = threading.Event()
        stdout: List[str] = []
        stderr: List[str] = []

        def on_complete(status: ExecStatus) -> None:
            out = "".join(stdout)
            err = "".join(stderr)
            logger.debug(f"Exec in {namespace}/{pod}/{container} completed: {status.value}")
            if out:
                result.resolve(out)
            elif err:
                result.reject(RemoteCommandError(err, command))
            else:
                result.resolve("")

        def run() -> None:
            try:
                channel = self._open_channel(namespace, pod, container, command)
            except DashboardError as e:
                result.reject(e)
                return
            except Exception as e:
                result.reject(TransportError(f"Failed to open exec channel: {e}"))
                return
            try:
                pump_channel(channel, stdout.append, stderr.append, on_complete,
                             abandoned, self.poll_interval)
            except DashboardError as e:
                result.reject(e)
            except Exception as e:
                result.reject(TransportError(f"Exec channel failed: {e}"))
            finally:
                try:
                    channel.close()
                except Exception as e:
                    logger.debug(f"Closing exec channel for {namespace}/{pod} failed: {e}")

        logger.debug(f"Exec in {namespace}/{pod}/{container}: {' '.join(command)}")
        loop.run_in_executor(self._executor, run)
        try:
            return await asyncio.wait_for(result.future, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise TransportError(
                f"Exec in {namespace}/{pod}/{container} timed out after {self.timeout}s"
            ) from None
        finally:
            # stops the pump on timeout or cancellation; the worker closes the channel
            abandoned.set()

    async def list_directory(self, namespace: str, pod: str, container: str, path: str) -> DirectoryListing:
        output = await self.exec(namespace, pod, container, listing_command(path))
        return parse_directory_listing(output, path)

    async def read_file(self, namespace: str, pod: str, container: str, path: str) -> FileContent:
        """Read a file with ``cat``; size is the byte length of what came back."""
        content = await self.exec(namespace, pod, container, ["cat", path])
        return FileContent(path=path, content=content, size=len(content.encode("utf-8")))
