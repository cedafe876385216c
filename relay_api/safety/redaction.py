"""Secret redaction for activity log details.

Webhook bodies and exchange errors are stored verbatim in the audit trail, so
anything that looks like key material is masked before it is persisted.
"""

import re
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger()

SENSITIVE_KEYS = frozenset(
    {
        "privatekey",
        "private_key",
        "secret",
        "api_secret",
        "password",
        "passphrase",
        "signature",
        "cb-access-signature",
        "authorization",
    }
)


@dataclass
class SecretPattern:
    """Pattern for detecting and redacting secrets."""

    name: str
    pattern: re.Pattern


class Redactor:
    """Redacts sensitive information from text and nested mappings."""

    DEFAULT_PATTERNS = [
        SecretPattern(
            name="PRIVATE_KEY",
            pattern=re.compile(
                r"-----BEGIN (?:RSA |EC |OPENSSH )?PRIVATE KEY-----.*?-----END (?:RSA |EC |OPENSSH )?PRIVATE KEY-----",
                re.DOTALL,
            ),
        ),
        SecretPattern(
            name="JSON_PRIVATE_KEY",
            pattern=re.compile(r"\"privateKey\"\s*:\s*\"[^\"]*\""),
        ),
        SecretPattern(
            name="BEARER_TOKEN",
            pattern=re.compile(r"Bearer\s+[a-zA-Z0-9\-_.+/=]{20,}", re.IGNORECASE),
        ),
        SecretPattern(
            name="JWT_TOKEN",
            pattern=re.compile(r"eyJ[A-Za-z0-9\-_=]+\.eyJ[A-Za-z0-9\-_=]+\.?[A-Za-z0-9\-_.+/=]*"),
        ),
    ]

    def __init__(self, patterns: list[SecretPattern] | None = None):
        """
        Initialize redactor with secret patterns.

        Args:
            patterns: List of secret patterns to detect. Uses defaults if None.
        """
        self.patterns = list(patterns or self.DEFAULT_PATTERNS)

    def redact(self, text: str) -> str:
        """
        Redact secrets from text.

        Args:
            text: Text potentially containing secrets

        Returns:
            Text with secrets replaced by [REDACTED:{name}]
        """
        if not text:
            return text

        redacted_text = text
        redaction_count = 0

        for secret_pattern in self.patterns:
            redacted_text, count = secret_pattern.pattern.subn(
                f"[REDACTED:{secret_pattern.name}]", redacted_text
            )
            redaction_count += count

        if redaction_count > 0:
            logger.debug("Redacted secrets", count=redaction_count)

        return redacted_text

    def redact_value(self, value: Any) -> Any:
        """Recursively redact a JSON-like value.

        Values stored under sensitive keys are masked outright; strings
        elsewhere go through the text patterns.
        """
        if isinstance(value, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in SENSITIVE_KEYS else self.redact_value(v)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [self.redact_value(v) for v in value]
        if isinstance(value, str):
            return self.redact(value)
        return value

    def add_pattern(self, name: str, pattern: str | re.Pattern) -> None:
        """
        Add a custom secret pattern.

        Args:
            name: Name for the secret type
            pattern: Regex pattern to detect the secret
        """
        compiled_pattern = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
        self.patterns.append(SecretPattern(name=name, pattern=compiled_pattern))
        logger.info("Added custom pattern", name=name)
