from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from mindcare.config.constants import FailureKind


@dataclass(frozen=True)
class Outcome:
    """Result of a scheduling decision.

    Business-rule failures are returned, not raised: ``ok`` is False and
    ``kind``/``reason`` say why.
    """

    ok: bool
    kind: Optional[FailureKind] = None
    reason: Optional[str] = None
    end: Optional[datetime] = None
    price: Optional[int] = None
    appointment: Any = None

    @classmethod
    def success(cls, **values: Any) -> "Outcome":
        return cls(ok=True, **values)

    @classmethod
    def failure(cls, kind: FailureKind, reason: str) -> "Outcome":
        return cls(ok=False, kind=kind, reason=reason)
