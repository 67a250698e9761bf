"""
tests/unit/capture/test_transaction_store.py
Verify JSON session file persistence.
"""
import json

import pytest

from shadowspec.capture.models import Transaction
from shadowspec.capture.storage import TransactionStore
from shadowspec.errors import ErrorCode, ShadowSpecError


@pytest.fixture
def store(tmp_path):
    return TransactionStore(tmp_path / "transactions")


def test_store_and_reload(store):
    store.store(Transaction.from_json_bodies("GET", "/users", response_body=[{"id": 1}]))
    store.store(Transaction.from_json_bodies("POST", "/users", 201, request_body={"name": "Jane"}))

    assert len(store) == 2
    assert store.session_file.exists()
    assert len(json.loads(store.session_file.read_text())) == 2

    loaded = store.get_all()
    assert [tx.request.method for tx in loaded] == ["GET", "POST"]
    assert loaded[1].request.json_body() == {"name": "Jane"}


def test_single_object_files_are_accepted(store):
    tx = Transaction.from_json_bodies("GET", "/health")
    (store.base_dir / "single.json").write_text(tx.model_dump_json())
    assert [t.request.path for t in store.get_all()] == ["/health"]


def test_corrupt_files_are_skipped(store):
    (store.base_dir / "a-broken.json").write_text("{not json")
    (store.base_dir / "b-invalid.json").write_text(json.dumps([{"request": {"method": "GET"}}]))
    store.store(Transaction.from_json_bodies("GET", "/users"))

    assert [t.request.path for t in store.get_all()] == ["/users"]


def test_load_file_errors(store):
    broken = store.base_dir / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ShadowSpecError) as exc:
        store._load_file(broken)
    assert exc.value.code == ErrorCode.STORAGE_PARSE_ERROR

    with pytest.raises(ShadowSpecError) as exc:
        store._load_file(store.base_dir / "missing.json")
    assert exc.value.code == ErrorCode.STORAGE_READ_FAILED


def test_clear(store):
    store.store(Transaction.from_json_bodies("GET", "/users"))
    store.clear()
    assert len(store) == 0
    assert store.get_all() == []


def test_from_config_uses_transactions_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("SHADOWSPEC_DATA_DIR", str(tmp_path / "data"))
    store = TransactionStore.from_config()
    assert store.base_dir == tmp_path / "data" / "transactions"
    assert store.base_dir.is_dir()
