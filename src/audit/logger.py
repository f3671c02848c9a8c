"""Audit trail for webhook handling and message delivery.

Entries are appended as JSON Lines. Each line carries the SHA-256 of the
previous line in ``prev_hash`` so tampering breaks the chain.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
from dataclasses import dataclass
from pathlib import Path

from src.models import AuditEvent, AuditEventType, DeliveryStatus, MsgStatus, RiskLevel


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None


def _digest(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every entry points at the hash of the one before it."""
    text = log_path.read_text().strip()
    if not text:
        return ChainValidationResult(valid=True)

    previous: str | None = None
    for number, line in enumerate(text.split("\n"), start=1):
        expected = _digest(previous) if previous is not None else None
        if json.loads(line).get("prev_hash") != expected:
            return ChainValidationResult(valid=False, broken_at_line=number)
        previous = line
    return ChainValidationResult(valid=True)


class AuditLogger:
    """Append-only hash-chained audit log with size based rotation."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._last_line: str | None = None
        # continue the chain of an existing file
        if self.log_path.exists():
            existing = self.log_path.read_text().strip()
            if existing:
                self._last_line = existing.rsplit("\n", 1)[-1]

    def _backup(self, index: int) -> Path:
        return self.log_path.with_name(f"{self.log_path.name}.{index}")

    def _maybe_rotate(self) -> bool:
        if not self.log_path.exists() or self.log_path.stat().st_size < self._max_bytes:
            return False
        if self._backup_count == 0:
            self.log_path.unlink()
            return True

        self._backup(self._backup_count).unlink(missing_ok=True)
        for index in range(self._backup_count - 1, 0, -1):
            if self._backup(index).exists():
                self._backup(index).rename(self._backup(index + 1))
        self.log_path.rename(self._backup(1))
        return True

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        entry = json.loads(event.model_dump_json())

        lock_path = self.log_path.with_name(f".{self.log_path.name}.lock")
        with open(lock_path, "w") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                # each file carries its own chain
                if self._maybe_rotate():
                    self._last_line = None
                entry["prev_hash"] = (
                    _digest(self._last_line) if self._last_line is not None else None
                )
                line = json.dumps(entry, separators=(",", ":"))
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)

        self._last_line = line

    def log_delivery(self, status: DeliveryStatus) -> None:
        wired = status.status is MsgStatus.WIRED
        self.log(AuditEvent(
            event_type=AuditEventType.MSG_WIRED if wired else AuditEventType.MSG_ERRORED,
            channel_uuid=status.channel_uuid,
            action=f"send:{status.msg_id}",
            result="success" if wired else "failure",
            risk_level=RiskLevel.INFO if wired else RiskLevel.MEDIUM,
            details={
                "parts": len(status.parts),
                "external_id": status.external_id,
                "errors": status.errors,
            },
        ))
