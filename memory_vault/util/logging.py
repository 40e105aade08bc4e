"""
Structured operation logging for the Memory Vault service.
"""

import logging
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['password', 'pin', 'new_pin', 'token', 'unlock_token', 'content', 'secret']


class StructuredLogger:
    """Structured logger for account, note, and assistant operations."""

    def __init__(self, name: str = "memory_vault"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {sanitize_payload(details)}"

        self.logger.info(message)

    def log_auth_event(self, action: str, identifier: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a signup/signin/PIN event."""
        log_details = {"identifier": identifier}
        if details:
            log_details.update(details)

        self.log_operation(f"auth.{action}", status, log_details)

    def log_note_operation(self, operation: str, note_id: str, owner_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a note CRUD operation."""
        log_details = {"note_id": note_id, "owner_id": owner_id}
        if details:
            log_details.update(details)

        self.log_operation(f"note.{operation}", status, log_details)

    def log_assistant_reply(self, source: str, owner_id: str, details: Dict[str, Any] = None):
        """Log which path produced an assistant answer (policy, responder, fallback)."""
        log_details = {"source": source, "owner_id": owner_id}
        if details:
            log_details.update(details)

        self.log_operation("assistant.reply", source, log_details)

    def log_responder_failure(self, provider: str, error: str):
        """Log an external responder failure that triggered the local fallback."""
        self.log_operation("assistant.responder", "failed", {
            "provider": provider,
            "error": error[:200] if error else ""
        })

    # Plain messages for degraded paths (bad knowledge file, storage errors)
    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload


# Global logger instance
logger = StructuredLogger()
