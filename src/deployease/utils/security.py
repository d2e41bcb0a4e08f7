"""Secret redaction for build output and log entries.

Build logs routinely echo environment variables, registry URLs and tokens
used for publishing. Everything persisted to disk or written to the log goes
through SecretRedactor first. Redaction is fail-closed: a pattern that fails
to compile or execute raises instead of passing text through.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


# GitHub owner and repository name segment
NAME_SEGMENT_PATTERN = re.compile(r"[a-zA-Z0-9_.-]+")

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class SecretRedactor:
    """Detects and redacts secrets from build output and log entries.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact(build_output)
        if redactor.detect(npmrc_text):
            ...

    Attributes:
        placeholder: The string to replace secrets with (default: "[REDACTED]").
    """

    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        # Generic key=value secrets, e.g. NPM_TOKEN=... in an echoed environment
        (
            r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
        (r"ghp_[a-zA-Z0-9]{36}", "GitHub PAT"),
        (r"github_pat_[a-zA-Z0-9_]{22,}", "GitHub fine-grained PAT"),
        (r"gho_[a-zA-Z0-9]{36}", "GitHub OAuth token"),
        (r"ghs_[a-zA-Z0-9]{36}", "GitHub server-to-server token"),
        (r"npm_[a-zA-Z0-9]{36}", "npm access token"),
        # .npmrc lines echoed by npm on auth failures
        (r"(?i)//[^\s/]+/:_authToken=[^\s]+", "npm registry auth token"),
        # https://<token>@github.com/... remotes and registry URLs
        (r"(?i)https?://[^\s/@:]+(?::[^\s/@]+)?@[^\s]+", "URL with credentials"),
        (r"AKIA[0-9A-Z]{16}", "AWS access key ID"),
        (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private key header"),
        (r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*", "JWT token"),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize the SecretRedactor.

        Args:
            placeholder: String to replace detected secrets with.
            custom_patterns: Additional (pattern, name) tuples to detect.

        Raises:
            RedactionError: If any pattern fails to compile.
        """
        self.placeholder = placeholder
        self._rules = [
            (name, _compile(pattern))
            for pattern, name in (*self.DEFAULT_PATTERNS, *(custom_patterns or ()))
        ]

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        """Return the list of compiled patterns."""
        return [pattern for _, pattern in self._rules]

    def redact(self, text: str) -> str:
        """Replace every detected secret with the placeholder.

        Raises:
            RedactionError: If a pattern fails while scanning; text is never
                returned partially redacted.
        """
        if not text:
            return text

        try:
            for _, pattern in self._rules:
                text = pattern.sub(self.placeholder, text)
        except (re.error, RecursionError) as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e

        return text

    def detect(self, text: str) -> list[str]:
        """Names of the secret kinds present in ``text``, in pattern order."""
        if not text:
            return []
        return [name for name, pattern in self._rules if pattern.search(text)]

    def has_secrets(self, text: str) -> bool:
        return bool(self.detect(text))


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        log.error("pattern_compilation_failed", pattern=pattern, error=str(e))
        raise RedactionError(f"Failed to compile secret pattern '{pattern}': {e}") from e


def validate_name_segment(name: str) -> bool:
    """Validate a GitHub owner or repository name.

    Accepts a single non-empty segment of alphanumerics, underscores,
    hyphens and periods; "." and ".." are rejected.
    """
    if name in (".", ".."):
        return False
    return bool(NAME_SEGMENT_PATTERN.fullmatch(name))


def sanitize_for_logging(text: str) -> str:
    """Strip ANSI escapes and control characters from build output.

    Tabs, newlines and carriage returns are kept.
    """
    if not text:
        return text
    return CONTROL_CHARS.sub("", ANSI_ESCAPE.sub("", text))
