"""Step outcomes for the authorizer chain.

Each chain step reports one of three results instead of raising:

- success: the step produced an authorizer; the chain stops and returns it.
- continue: the step did not apply or failed softly; the chain advances.
- abort: the step hit an error no later step can recover from; the chain
  raises it.

IMPORTANT: status uses Literal["success", "continue", "abort"], NOT an enum,
matching how outcomes are compared in logs and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from blobauth.auth.authorizer import BearerAuthorizer
    from blobauth.contracts.errors import BlobConfigError


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Result of one authorizer chain step.

    Use the factory methods to create instances.
    """

    status: Literal["success", "continue", "abort"]
    step: str
    authorizer: BearerAuthorizer | None = None
    error: BlobConfigError | None = None
    reason: str = ""

    def __post_init__(self) -> None:
        """Validate invariants - success carries an authorizer, abort carries an error."""
        if self.status == "success" and self.authorizer is None:
            raise ValueError(f"StepOutcome for step {self.step!r} with status='success' MUST carry an authorizer.")
        if self.status == "abort" and self.error is None:
            raise ValueError(f"StepOutcome for step {self.step!r} with status='abort' MUST carry an error.")

    @classmethod
    def success(cls, step: str, authorizer: BearerAuthorizer) -> StepOutcome:
        return cls(status="success", step=step, authorizer=authorizer)

    @classmethod
    def skip(cls, step: str, reason: str, error: BlobConfigError | None = None) -> StepOutcome:
        """Soft failure: log the reason and move on to the next step."""
        return cls(status="continue", step=step, error=error, reason=reason)

    @classmethod
    def abort(cls, step: str, error: BlobConfigError) -> StepOutcome:
        """Hard failure: stop the chain and raise error."""
        return cls(status="abort", step=step, error=error, reason=str(error))

    @property
    def is_success(self) -> bool:
        return self.status == "success"
