"""
tests/unit/capture/test_capture_addon.py
Verify the mitmproxy recorder turns flows into observations.
"""
import asyncio
import json
import logging
from unittest.mock import MagicMock

import pytest
from mitmproxy.test import tflow

from shadowspec.capture import addon as addon_module
from shadowspec.capture.addon import CaptureAddon, CaptureProxy, transaction_from_flow
from shadowspec.capture.storage import TransactionStore
from shadowspec.config import InferenceConfig
from shadowspec.errors import ErrorCode, ShadowSpecError
from shadowspec.shadow_spec import ShadowSpec


def json_flow(method="POST", path="/users?page=2&page=3", request_body=None, response_body=None, status=201):
    flow = tflow.tflow(resp=True)
    flow.request.method = method
    flow.request.path = path
    flow.request.headers["Content-Type"] = "application/json"
    flow.request.content = json.dumps(request_body).encode() if request_body is not None else b""
    flow.response.status_code = status
    flow.response.headers["Content-Type"] = "application/json"
    flow.response.content = json.dumps(response_body).encode() if response_body is not None else b""
    return flow


@pytest.fixture
def spec():
    return ShadowSpec(InferenceConfig())


def test_transaction_from_flow():
    flow = json_flow(request_body={"name": "Jane"}, response_body={"id": 2})
    tx = transaction_from_flow(flow)

    assert tx.request.method == "POST"
    assert tx.request.path == "/users"
    assert tx.request.query == {"page": ["2", "3"]}
    assert tx.request.json_body() == {"name": "Jane"}
    assert tx.response.status_code == 201
    assert tx.response.json_body() == {"id": 2}


def test_empty_bodies_are_absent():
    tx = transaction_from_flow(json_flow(method="GET", path="/health", status=204))
    assert tx.request.has_body is False
    assert tx.response.has_body is False


def test_response_hook_observes(spec):
    addon = CaptureAddon(spec)
    addon.response(json_flow(request_body={"name": "Jane"}, response_body={"id": 2, "name": "Jane"}))

    assert addon.captured == 1
    assert spec.endpoints() == [("/users", "POST")]
    endpoint = spec.finalize()[("/users", "POST")]
    assert set(endpoint.request_schema.properties) == {"name"}
    assert set(endpoint.response_schema.properties) == {"id", "name"}


def test_response_hook_stores(spec, tmp_path):
    store = TransactionStore(tmp_path)
    addon = CaptureAddon(spec, store)
    addon.response(json_flow(request_body={"name": "Jane"}))
    assert len(store) == 1
    assert store.get_all()[0].request.path == "/users"


def test_non_json_bodies_are_skipped_not_fatal(spec):
    flow = tflow.tflow(resp=True)  # plain-text "content" / "message" bodies
    addon = CaptureAddon(spec)
    addon.response(flow)

    assert addon.captured == 1
    assert spec.get_statistics()["skipped_bodies"] == 2


def test_errors_never_reach_the_proxy(caplog):
    broken = MagicMock()
    broken.observe.side_effect = RuntimeError("boom")
    addon = CaptureAddon(broken)

    with caplog.at_level(logging.ERROR, logger="shadowspec.capture.addon"):
        addon.response(json_flow(response_body={"id": 1}))
    assert addon.failed == 1
    assert addon.captured == 0
    assert "[SYSTEM_001]" in caplog.text
    assert "boom" in caplog.text


def test_invalid_flow_is_rejected():
    flow = json_flow(response_body={"id": 1})
    flow.response.status_code = 99
    with pytest.raises(ShadowSpecError) as exc:
        transaction_from_flow(flow)
    assert exc.value.code == ErrorCode.TRANSACTION_INVALID


def test_invalid_flow_is_counted_not_raised(spec):
    flow = json_flow(response_body={"id": 1})
    flow.response.status_code = 99
    addon = CaptureAddon(spec)
    addon.response(flow)
    assert addon.failed == 1
    assert spec.endpoints() == []


class FakeMaster:
    """Stands in for DumpMaster: run() blocks until shutdown()."""

    def __init__(self, opts, with_termlog=True, with_dumper=True):
        self.options = opts
        self.addons = MagicMock()
        self.honours_shutdown = True
        self._done = asyncio.Event()

    async def run(self):
        await self._done.wait()

    def shutdown(self):
        if self.honours_shutdown:
            self._done.set()


@pytest.fixture
def fake_master(monkeypatch):
    monkeypatch.setattr(addon_module, "DumpMaster", FakeMaster)


@pytest.mark.asyncio
async def test_proxy_registers_addon_and_stops(spec, fake_master):
    proxy = CaptureProxy(spec, port=8899)
    assert proxy.address == "http://127.0.0.1:8899"

    await proxy.start()
    assert proxy.running is True
    proxy.master.addons.add.assert_called_once_with(proxy.addon)
    assert proxy.master.options.listen_port == 8899

    await proxy.stop()
    assert proxy.running is False


@pytest.mark.asyncio
async def test_proxy_cancels_a_master_that_ignores_shutdown(spec, fake_master, monkeypatch):
    monkeypatch.setattr(addon_module, "SHUTDOWN_TIMEOUT", 0.05)
    proxy = CaptureProxy(spec, port=8899)
    await proxy.start()
    proxy.master.honours_shutdown = False
    task = proxy._task

    await proxy.stop()
    assert task.cancelled()


@pytest.mark.asyncio
async def test_proxy_context_manager_feeds_spec(spec, fake_master):
    async with CaptureProxy(spec, port=8899) as proxy:
        # mitmproxy would call the hook for each completed flow
        proxy.addon.response(json_flow(response_body={"id": 1}))
    assert proxy.running is False
    assert spec.endpoints() == [("/users", "POST")]


def test_proxy_picks_a_free_port(spec):
    proxy = CaptureProxy(spec)
    assert proxy.port > 0
