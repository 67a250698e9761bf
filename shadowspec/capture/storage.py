"""
Transaction Store - JSON Session Files

PURPOSE:
Persist captured transactions so inference can run later, offline, over
everything recorded so far.

LAYOUT:
- One session file per store instance: session-YYYYMMDD-HHMMSS.json
- Each session file is a JSON array of transactions, rewritten on every store
- Files holding a single transaction object are accepted on read

Reads are forgiving: an unreadable or corrupt file is skipped with a
warning so one bad file never hides the rest of the capture.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from shadowspec.capture.models import Transaction
from shadowspec.config import ShadowSpecConfig, get_config
from shadowspec.errors import ErrorCode, ShadowSpecError

logger = logging.getLogger(__name__)


class TransactionStore:
    """
    Stores transactions as JSON files under one directory.
    """

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ShadowSpecError(
                ErrorCode.STORAGE_WRITE_FAILED,
                f"Cannot create store directory: {e}",
                details={"base_dir": str(self.base_dir)},
            )
        self.session_file = self.base_dir / f"session-{datetime.now():%Y%m%d-%H%M%S}.json"
        self._transactions: List[Transaction] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[ShadowSpecConfig] = None) -> TransactionStore:
        """Store rooted at the configured transactions directory."""
        return cls((config or get_config()).storage.transactions_path)

    def store(self, transaction: Transaction) -> None:
        """Append a transaction and rewrite this store's session file."""
        with self._lock:
            self._transactions.append(transaction)
            payload = [tx.model_dump(mode="json") for tx in self._transactions]
            try:
                self.session_file.write_text(json.dumps(payload, indent=2))
            except OSError as e:
                raise ShadowSpecError(
                    ErrorCode.STORAGE_WRITE_FAILED,
                    f"Cannot write session file: {e}",
                    details={"file": str(self.session_file)},
                )

    def get_all(self) -> List[Transaction]:
        """Every transaction found in the store directory, file by file in name order."""
        transactions: List[Transaction] = []
        for path in sorted(self.base_dir.glob("*.json")):
            if not path.is_file():
                continue
            try:
                transactions.extend(self._load_file(path))
            except ShadowSpecError as e:
                logger.warning(f"[Store] Skipping {path.name}: {e}")
        return transactions

    def _load_file(self, path: Path) -> List[Transaction]:
        try:
            data = json.loads(path.read_text())
        except OSError as e:
            raise ShadowSpecError(ErrorCode.STORAGE_READ_FAILED, str(e), details={"file": str(path)})
        except json.JSONDecodeError as e:
            raise ShadowSpecError(ErrorCode.STORAGE_PARSE_ERROR, e.msg, details={"file": str(path)})

        records = data if isinstance(data, list) else [data]
        try:
            return [Transaction.model_validate(record) for record in records]
        except ValidationError as e:
            raise ShadowSpecError(
                ErrorCode.STORAGE_PARSE_ERROR,
                f"{e.error_count()} invalid transaction field(s)",
                details={"file": str(path)},
            )

    def clear(self) -> None:
        """Forget in-memory transactions and delete every JSON file in the store."""
        with self._lock:
            self._transactions = []
            for path in self.base_dir.glob("*.json"):
                if not path.is_file():
                    continue
                try:
                    path.unlink()
                except OSError as e:
                    raise ShadowSpecError(
                        ErrorCode.STORAGE_WRITE_FAILED,
                        f"Cannot remove {path.name}: {e}",
                        details={"file": str(path)},
                    )

    def __len__(self) -> int:
        return len(self._transactions)
