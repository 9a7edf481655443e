from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    status_code: int | None = None
    error: str | None = None

    @classmethod
    def success(cls, status_code: int) -> "ValidationOutcome":
        return cls(ok=True, status_code=status_code)

    @classmethod
    def failure(cls, error: str, status_code: int | None = None) -> "ValidationOutcome":
        return cls(ok=False, status_code=status_code, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        # Transport failures never saw a response, so the key is omitted.
        if self.status_code is not None:
            data["brokerClientValidationUrlStatusCode"] = self.status_code
        data["ok"] = self.ok
        if not self.ok:
            data["error"] = self.error
        return data
