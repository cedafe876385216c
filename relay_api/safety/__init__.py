"""Secret handling for the audit trail."""

from relay_api.safety.redaction import Redactor, SecretPattern

__all__ = ["Redactor", "SecretPattern"]
