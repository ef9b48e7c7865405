"""Guards that keep unverified data from being presented as verified.

Proof of execution is not implemented. Nothing in this package can produce a
verified claim; these helpers exist so the rendering layer asks before it
labels anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class BadgeVariant(StrEnum):
    VERIFIED = "verified"
    DEMO = "demo"
    RECORDED = "recorded"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class VerificationFlags:
    is_mock_data: bool = True
    is_simulated: bool = True
    is_unverified: bool = True
    is_proof_placeholder: bool = True

    def to_dict(self) -> dict[str, bool]:
        return {
            "is_mock_data": self.is_mock_data,
            "is_simulated": self.is_simulated,
            "is_unverified": self.is_unverified,
            "is_proof_placeholder": self.is_proof_placeholder,
        }


DEFAULT_VERIFICATION_FLAGS = VerificationFlags()


def can_claim_verified(flags: VerificationFlags) -> bool:
    return not (
        flags.is_mock_data
        or flags.is_simulated
        or flags.is_unverified
        or flags.is_proof_placeholder
    )


def can_claim_proof_of_execution(flags: VerificationFlags) -> bool:
    """Always ``False``: there is no cryptographic verification behind this flag set."""
    del flags
    return False


def status_badge_text(flags: VerificationFlags) -> str:
    if flags.is_mock_data:
        return "Mock Data"
    if flags.is_simulated:
        return "Simulated"
    if flags.is_proof_placeholder:
        return "Demo / Placeholder"
    if flags.is_unverified:
        return "Unverified"
    return "Verified"


def status_badge_variant(flags: VerificationFlags) -> BadgeVariant:
    if flags.is_mock_data or flags.is_proof_placeholder or flags.is_simulated:
        return BadgeVariant.DEMO
    if flags.is_unverified:
        return BadgeVariant.RECORDED
    return BadgeVariant.VERIFIED


__all__ = [
    "DEFAULT_VERIFICATION_FLAGS",
    "BadgeVariant",
    "VerificationFlags",
    "can_claim_proof_of_execution",
    "can_claim_verified",
    "status_badge_text",
    "status_badge_variant",
]
