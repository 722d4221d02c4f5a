import structlog
import hashlib
import logging
from typing import Any, Dict, Optional
import os

# Configure structlog
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

class ForensicLogger:
    """
    Audit trail of scan and analyze requests, written as JSONL.
    User prompts are hashed so the audit log never stores their content.
    """

    def __init__(self, service_name: str, log_dir: str = "./logs"):
        self.service_name = service_name
        self.log_dir = log_dir

        os.makedirs(log_dir, exist_ok=True)

        self.log_file = os.path.join(log_dir, "audit.jsonl")

        # Keyed by file so two loggers never share a handler pointed at another directory
        self._audit_logger = logging.getLogger(f"audit_logger_{service_name}_{os.path.abspath(self.log_file)}")
        self._audit_logger.setLevel(logging.INFO)
        self._audit_logger.propagate = False

        if not self._audit_logger.handlers:
            handler = logging.FileHandler(self.log_file)
            handler.setFormatter(logging.Formatter('%(message)s'))  # JSON renderer does formatting
            self._audit_logger.addHandler(handler)

        self._logger = structlog.wrap_logger(self._audit_logger, processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ])

    def _hash_input(self, text: str) -> str:
        """SHA256 hash of the input for correlation without storage."""
        return hashlib.sha256(text.encode()).hexdigest()

    def log_event(
        self,
        event_type: str,
        severity: str,
        repo: Optional[str] = None,
        input_text: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an audit event.

        Args:
            event_type: e.g. "SCAN_REQUEST", "SCAN_RESULT", "ANALYZE_ERROR"
            severity: "INFO", "WARN", "CRITICAL"
            repo: Repository the event concerns
            input_text: The user prompt, if any (only its hash and length are kept)
            details: Extra metadata
        """
        log_entry: Dict[str, Any] = {
            "service_name": self.service_name,
            "event_type": event_type,
            "severity": severity,
        }

        if repo:
            log_entry["repo"] = repo

        if input_text:
            log_entry["input_hash"] = self._hash_input(input_text)
            log_entry["input_chars"] = len(input_text)

        if details:
            log_entry.update(details)

        self._logger.info(**log_entry)

    def close(self) -> None:
        for handler in list(self._audit_logger.handlers):
            handler.close()
            self._audit_logger.removeHandler(handler)
