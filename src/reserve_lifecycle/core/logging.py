"""Hash-chained run logging for reserve lifecycle operations.

Every list or delist invocation gets its own run log:
- A human-readable console and text file stream (loguru)
- A JSONL audit file of numbered entries, each carrying the hash of the one
  before it

A run log records what was sent to which market, so it is checked when the
run ends: ``OperationLogger.verify`` re-reads the file and compares it with
the chain head kept in memory, which also catches entries cut off the end.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

# Structured lifecycle events are written to loguru at this level
EVENT_LEVEL = "EVENT"


class LogEntry(BaseModel):
    """One line of a run log."""

    sequence: int = Field(ge=0)
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    run_id: str
    operation: str
    market: str
    level: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    previous_hash: str | None = None
    entry_hash: str | None = None

    def compute_hash(self) -> str:
        payload = json.dumps(
            self.model_dump(exclude={"entry_hash"}), sort_keys=True, default=str
        )
        return hashlib.sha256(payload.encode()).hexdigest()

    def seal(self, previous_hash: str | None) -> LogEntry:
        """Link the entry to its predecessor and fix its hash."""
        self.previous_hash = previous_hash
        self.entry_hash = self.compute_hash()
        return self


class OperationLogger:
    """Run log of one list or delist invocation.

    Usage:
        run_logger = OperationLogger.create_run("list", "plume")
        run_logger.info("Resolving rate strategies", {"count": 3})
        run_logger.log_event("strategy_deployed", {"name": "ReserveStrategy-x"})
        ok, errors = run_logger.verify()
        run_logger.close()
    """

    def __init__(
        self,
        run_id: str,
        log_dir: Path,
        operation: str,
        market_name: str,
    ) -> None:
        self.run_id = run_id
        self.log_dir = log_dir
        self.operation = operation
        self.market_name = market_name
        self._head: str | None = None
        self._sequence = 0
        self._handler_ids: list[int] = []

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.json_log_path = self.log_dir / f"{run_id}.jsonl"
        self.text_log_path = self.log_dir / f"{run_id}.log"
        self._setup_loguru()

    def _setup_loguru(self) -> None:
        """Attach the console and text sinks of this run."""
        logger.remove()
        try:
            logger.level(EVENT_LEVEL)
        except ValueError:
            logger.level(EVENT_LEVEL, no=22, color="<magenta>")

        def this_run(record: dict[str, Any]) -> bool:
            return record["extra"].get("run_id") == self.run_id

        self._handler_ids = [
            logger.add(
                sys.stderr,
                format=(
                    "<green>{time:HH:mm:ss.SSS}</green> | "
                    "<level>{level: <8}</level> | "
                    "<cyan>{extra[operation]}:{extra[market]}</cyan> | "
                    "{message}"
                ),
                level="DEBUG",
                filter=this_run,
            ),
            logger.add(
                self.text_log_path,
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}",
                level="DEBUG",
                filter=this_run,
            ),
        ]
        self._logger = logger.bind(
            run_id=self.run_id, operation=self.operation, market=self.market_name
        )

    @classmethod
    def create_run(
        cls,
        operation: str,
        market_name: str,
        log_dir: str | Path | None = None,
    ) -> OperationLogger:
        """Start the log of a new run.

        The run id is ``<operation>_<market>_<UTC timestamp>_<8 hex>``.
        ``log_dir`` defaults to ``$LOG_DIR`` or ``./logs``.
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        run_id = f"{operation}_{market_name}_{timestamp}_{uuid.uuid4().hex[:8]}"

        if log_dir is None:
            log_dir = os.getenv("LOG_DIR", "logs")
        return cls(run_id, Path(log_dir), operation, market_name)

    def _record(self, level: str, message: str, data: dict[str, Any] | None) -> None:
        entry = LogEntry(
            sequence=self._sequence,
            run_id=self.run_id,
            operation=self.operation,
            market=self.market_name,
            level=level,
            message=message,
            data=data or {},
        ).seal(self._head)

        with open(self.json_log_path, "a") as f:
            f.write(entry.model_dump_json() + "\n")

        self._head = entry.entry_hash
        self._sequence += 1
        self._logger.log(level, message)

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._record("DEBUG", message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._record("INFO", message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._record("WARNING", message, data)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._record("ERROR", message, data)

    def log_event(self, event_type: str, event_data: dict[str, Any]) -> None:
        """Record a structured lifecycle event.

        Args:
            event_type: Event name (e.g. 'strategy_deployed', 'reserve_dropped').
            event_data: Event payload; addresses, symbols, tx hashes.
        """
        self._record(EVENT_LEVEL, event_type, {"event_type": event_type, **event_data})

    def verify(self) -> tuple[bool, list[str]]:
        """Check the file on disk against what this run wrote."""
        if self._sequence == 0:
            return True, []
        return verify_log_integrity(
            self.json_log_path,
            expected_head=self._head,
            expected_entries=self._sequence,
        )

    def close(self) -> None:
        """Detach this run's sinks, flushing the text log."""
        for handler_id in self._handler_ids:
            # A later run may already have reset every sink
            with contextlib.suppress(ValueError):
                logger.remove(handler_id)
        self._handler_ids = []

    def get_log_summary(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "operation": self.operation,
            "market": self.market_name,
            "entry_count": self._sequence,
            "last_hash": self._head,
            "json_log_path": str(self.json_log_path),
        }


def verify_log_integrity(
    log_path: Path,
    expected_head: str | None = None,
    expected_entries: int | None = None,
) -> tuple[bool, list[str]]:
    """Re-validate a run log file.

    Checks that entries are numbered without gaps, belong to one run, and
    form an unbroken hash chain. When the writer's chain head or entry count
    is known, a file cut short is reported as well.

    Returns:
        Tuple of (is_valid, list_of_errors).
    """
    errors: list[str] = []
    previous_hash: str | None = None
    run_id: str | None = None
    count = 0

    with open(log_path) as f:
        for line_num, line in enumerate(f, 1):
            try:
                entry = LogEntry.model_validate_json(line)
            except ValueError as e:
                errors.append(f"Line {line_num}: Parse error - {e}")
                continue
            count += 1

            if entry.sequence != line_num - 1:
                errors.append(
                    f"Line {line_num}: Sequence gap. Expected {line_num - 1}, "
                    f"got {entry.sequence}"
                )
            if run_id is None:
                run_id = entry.run_id
            elif entry.run_id != run_id:
                errors.append(f"Line {line_num}: Entry of foreign run {entry.run_id}")

            if entry.previous_hash != previous_hash:
                errors.append(
                    f"Line {line_num}: Hash chain broken. "
                    f"Expected previous_hash={previous_hash}, "
                    f"got {entry.previous_hash}"
                )
            computed_hash = entry.compute_hash()
            if entry.entry_hash != computed_hash:
                errors.append(
                    f"Line {line_num}: Entry hash mismatch. "
                    f"Expected {computed_hash}, got {entry.entry_hash}"
                )
            previous_hash = entry.entry_hash

    if expected_entries is not None and count != expected_entries:
        errors.append(f"Expected {expected_entries} entries, found {count}")
    if expected_head is not None and previous_hash != expected_head:
        errors.append(f"Chain head {previous_hash} does not match {expected_head}")

    return len(errors) == 0, errors
