from __future__ import annotations

import re
from typing import Any, Mapping

REDACTED = "***"

# Greedy up to the last "@" of the authority, the same split urllib3 makes.
_USERINFO_RE = re.compile(
    r"(?P<scheme>\b[a-zA-Z][a-zA-Z0-9+.-]*://)(?P<userinfo>[^/?#\s]+)@"
)
_QUERY_SECRET_RE = re.compile(
    r"(?P<key>[?&][^=&#\s]*(?:token|secret|password|passwd|key|auth)[^=&#\s]*=)[^&#\s]*",
    re.IGNORECASE,
)
_PLACEHOLDER = r"\$\{[A-Za-z0-9_]+\}"


def _redact_userinfo(match: re.Match) -> str:
    user, sep, _ = match.group("userinfo").partition(":")
    userinfo = f"{user}:{REDACTED}" if sep else REDACTED
    return f"{match.group('scheme')}{userinfo}@"


def _replace_secrets(text: str, secrets: Mapping[str, str]) -> str:
    # Longest first so a secret containing another is replaced whole.
    ordered = sorted(
        ((name, secret) for name, secret in secrets.items() if secret),
        key=lambda kv: -len(kv[1]),
    )
    if not ordered:
        return text
    names = {secret: name for name, secret in reversed(ordered)}
    # Existing placeholders match first and are kept, so nothing inside
    # ${...} is rewritten on a second pass.
    pattern = re.compile(
        "|".join([f"(?P<placeholder>{_PLACEHOLDER})"] + [re.escape(s) for _, s in ordered])
    )

    def _sub(match: re.Match) -> str:
        if match.group("placeholder"):
            return match.group(0)
        return "${%s}" % names[match.group(0)]

    return pattern.sub(_sub, text)


def sanitise(value: Any, secrets: Mapping[str, str] | None = None) -> str | None:
    """
    Redact credentials from a value before it is logged or rendered.

    Configured secrets become ``${NAME}`` placeholders, URL userinfo and
    credential-bearing query parameters become ``***``. Applying it twice
    gives the same result as applying it once.
    """
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)

    if secrets:
        text = _replace_secrets(text, secrets)

    text = _USERINFO_RE.sub(_redact_userinfo, text)
    text = _QUERY_SECRET_RE.sub(lambda m: f"{m.group('key')}{REDACTED}", text)
    return text
