"""
shadowspec/capture/addon.py
The Passive Recorder.
Turns intercepted mitmproxy flows into transactions and feeds the living spec.
"""

import asyncio
import logging
import socket
from typing import Dict, List, Optional

from mitmproxy import http, options
from mitmproxy.tools.dump import DumpMaster
from pydantic import ValidationError

from shadowspec.capture.models import RequestRecord, ResponseRecord, Transaction, encode_body
from shadowspec.capture.storage import TransactionStore
from shadowspec.errors import ErrorCode, ShadowSpecError, handle_error
from shadowspec.shadow_spec import ShadowSpec

logger = logging.getLogger(__name__)

# Seconds stop() waits for mitmproxy before cancelling it.
SHUTDOWN_TIMEOUT = 5.0


def transaction_from_flow(flow: http.HTTPFlow) -> Transaction:
    """
    Build a Transaction from a completed mitmproxy flow.

    Raises:
        ShadowSpecError: TRANSACTION_INVALID when the flow does not fit the envelope
    """
    request, response = flow.request, flow.response

    query: Dict[str, List[str]] = {}
    for name, value in request.query.items(multi=True):
        query.setdefault(name, []).append(value)

    try:
        return Transaction(
            request=RequestRecord(
                method=request.method,
                path=request.path.split("?", 1)[0] or "/",
                query=query,
                headers=dict(request.headers.items()),
                body_b64=encode_body(request.get_content(strict=False)),
            ),
            response=ResponseRecord(
                status_code=response.status_code,
                headers=dict(response.headers.items()),
                body_b64=encode_body(response.get_content(strict=False)),
            ),
        )
    except ValidationError as e:
        raise ShadowSpecError(
            ErrorCode.TRANSACTION_INVALID,
            f"Flow does not fit the transaction envelope: {e.error_count()} error(s)",
            details={"url": request.pretty_url},
        )


class CaptureAddon:
    """
    mitmproxy addon that bridges traffic to a ShadowSpec session.
    Capture problems are logged, never raised into the proxy.
    """

    def __init__(self, spec: ShadowSpec, store: Optional[TransactionStore] = None):
        self.spec = spec
        self.store = store
        self.captured = 0
        self.failed = 0

    def response(self, flow: http.HTTPFlow):
        """
        Record every completed exchange.
        """
        if flow.response is None:
            return
        try:
            transaction = transaction_from_flow(flow)
            if self.store is not None:
                self.store.store(transaction)
            self.spec.observe(transaction)
            self.captured += 1
        except ShadowSpecError as e:
            self.failed += 1
            logger.warning(f"[Capture] Skipping {flow.request.pretty_url}: {e}")
        except Exception as e:
            self.failed += 1
            error = handle_error(e, f"processing {flow.request.pretty_url}")
            logger.error(f"[Capture] {error}")


class CaptureProxy:
    """
    Runs mitmproxy in the current event loop with a CaptureAddon attached.

    Usage:
        async with CaptureProxy(spec, TransactionStore.from_config()) as proxy:
            ...  # point clients at proxy.address
    """

    def __init__(
        self,
        spec: ShadowSpec,
        store: Optional[TransactionStore] = None,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        self.addon = CaptureAddon(spec, store)
        self.host = host
        self.port = port if port > 0 else self._find_free_port(host)
        self.master: Optional[DumpMaster] = None
        self._task: Optional[asyncio.Task] = None

    @staticmethod
    def _find_free_port(host: str) -> int:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            return s.getsockname()[1]

    @property
    def address(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        opts = options.Options(listen_host=self.host, listen_port=self.port)
        self.master = DumpMaster(opts, with_termlog=False, with_dumper=False)
        self.master.addons.add(self.addon)
        self._task = asyncio.create_task(self._serve())
        logger.info(f"[Capture] Proxy listening on {self.host}:{self.port}")

    async def _serve(self) -> None:
        try:
            await self.master.run()
        except Exception as e:
            logger.error(f"[Capture] Proxy exited: {handle_error(e, 'mitmproxy master')}")

    async def stop(self) -> None:
        """Ask mitmproxy to shut down; cancel it if it does not within SHUTDOWN_TIMEOUT."""
        if self.master is not None:
            self.master.shutdown()
        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=SHUTDOWN_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("[Capture] Proxy ignored shutdown, cancelled")
            self._task = None
        logger.info(f"[Capture] Proxy stopped: {self.addon.captured} captured, {self.addon.failed} failed")

    async def __aenter__(self) -> "CaptureProxy":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()
