"""
Secret redaction for captured text.

Prompts, responses and diffs are written to a plain file inside the
repository, so credentials that pass through them are masked first.
"""

import re

PRIVATE_KEY_BLOCK = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----"
)
PRIVATE_KEY_BEGIN = re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----")
PRIVATE_KEY_END = re.compile(r"-----END [A-Z ]*PRIVATE KEY-----")
REDACTED_PRIVATE_KEY = "[REDACTED_PRIVATE_KEY]"

_SECRET_NAMES = (
    r"api[_-]?key|secret|password|passwd|token|access[_-]?key"
    r"|client[_-]?secret|private[_-]?key|auth[_-]?token"
)

REDACTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bgh[pousr]_[A-Za-z0-9]{20,}\b"), "[REDACTED_GITHUB_TOKEN]"),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"), "[REDACTED_GITHUB_TOKEN]"),
    (re.compile(r"\bsk-[A-Za-z0-9]{20,}\b"), "[REDACTED_OPENAI_KEY]"),
    (re.compile(r"\bxox[baprs]-[A-Za-z0-9-]{10,}\b"), "[REDACTED_SLACK_TOKEN]"),
    (re.compile(r"\bAIza[0-9A-Za-z_-]{35}\b"), "[REDACTED_GOOGLE_KEY]"),
    (re.compile(r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b"), "[REDACTED_AWS_ACCESS_KEY]"),
    (
        re.compile(r"\beyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9._-]{10,}\.[A-Za-z0-9_-]{10,}\b"),
        "[REDACTED_JWT]",
    ),
    (re.compile(r"(authorization\s*:\s*bearer)\s+\S+", re.IGNORECASE), r"\1 [REDACTED]"),
    (
        re.compile(r"(\b(?:postgres|mysql|mongodb|redis|amqp)s?://)([^:\s/@]+):([^\s/@]+)@", re.IGNORECASE),
        r"\1\2:[REDACTED]@",
    ),
    (
        re.compile(rf"(\b(?:{_SECRET_NAMES})\b)(\s*[=:]\s*)(['\"]?)([^'\"\r\n]+)\3", re.IGNORECASE),
        r"\1\2[REDACTED]",
    ),
    (
        re.compile(rf"(\b(?:{_SECRET_NAMES})\b)\s+([A-Za-z0-9+/_=-]{{8,}})", re.IGNORECASE),
        r"\1 [REDACTED]",
    ),
    (
        re.compile(r"(\bssh-(?:rsa|ed25519)\b|\becdsa-\S+)\s+[A-Za-z0-9+/=]{40,}"),
        r"\1 [REDACTED_SSH_KEY]",
    ),
]


def _collapse_private_key(match: re.Match[str]) -> str:
    lines = match.group(0).split("\n")
    if len(lines) >= 2:
        return f"{lines[0]}\n{REDACTED_PRIVATE_KEY}\n{lines[-1]}"
    return REDACTED_PRIVATE_KEY


def _apply_patterns(text: str) -> str:
    for pattern, replacement in REDACTION_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def redact_sensitive(value: str) -> str:
    """Mask credentials in ``value``; empty input is returned unchanged."""
    if not value:
        return value

    return _apply_patterns(PRIVATE_KEY_BLOCK.sub(_collapse_private_key, value))


def redact_diff(diff: str) -> str:
    """
    Mask credentials in unified diff text, keeping it a valid diff.

    Only hunk body lines are rewritten, and only after their one-character
    prefix. Every line of a multi-line private key becomes its own
    ``[REDACTED_PRIVATE_KEY]`` line, so hunk line counts still hold.
    """
    if not diff:
        return diff

    redacted: list[str] = []
    in_hunk = False
    in_key = False
    for line in diff.split("\n"):
        if line.startswith("diff --git "):
            in_hunk = in_key = False
        elif line.startswith("@@"):
            in_hunk, in_key = True, False
        if not in_hunk or line[:1] not in ("+", "-", " "):
            redacted.append(line)
            continue

        prefix, body = line[0], line[1:]
        if in_key:
            if PRIVATE_KEY_END.search(body):
                in_key = False
                redacted.append(line)
            else:
                redacted.append(prefix + REDACTED_PRIVATE_KEY)
            continue
        if PRIVATE_KEY_BEGIN.search(body) and not PRIVATE_KEY_END.search(body):
            in_key = True
            redacted.append(line)
            continue
        redacted.append(prefix + _apply_patterns(PRIVATE_KEY_BLOCK.sub(REDACTED_PRIVATE_KEY, body)))
    return "\n".join(redacted)
