"""
Onboarding trust score.

Aggregates the per-check point awards of the onboarding wizard (email, phone, address, social,
referee) into a total and maps the total to a coarse tier. This is the consumer of the
address verdict: `apply_address_award` folds an `AddressAward` into the breakdown.

Each `apply_*` replaces that category's points (re-verifying never double counts) and returns
a new `TrustScore`; the model itself is immutable.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from kyctrust.config.settings import Settings
from kyctrust.domain.models import AddressAward

TrustTier = Literal["trusted", "medium", "unverified"]
Category = Literal["email", "phone", "address", "social", "referee"]

TIER_LABELS: dict[TrustTier, str] = {
    "trusted": "Trusted",
    "medium": "Medium Risk",
    "unverified": "Unverified",
}


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: int = Field(0, ge=0)
    phone: int = Field(0, ge=0)
    address: int = Field(0, ge=0)
    social: int = Field(0, ge=0)
    referee: int = Field(0, ge=0)


def calculate_trust_tier(total: int, *, settings: Settings) -> TrustTier:
    tiers = settings.trust_score.tiers
    if total >= tiers.trusted:
        return "trusted"
    if total >= tiers.medium:
        return "medium"
    return "unverified"


class TrustScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        b = self.breakdown
        return b.email + b.phone + b.address + b.social + b.referee

    def tier(self, *, settings: Settings) -> TrustTier:
        return calculate_trust_tier(self.total, settings=settings)

    def _with(self, category: Category, points: int) -> "TrustScore":
        return TrustScore(breakdown=self.breakdown.model_copy(update={category: points}))

    def apply_email(self, *, settings: Settings) -> "TrustScore":
        return self._with("email", settings.trust_score.email_points)

    def apply_phone(self, sim_age_months: int, *, settings: Settings) -> "TrustScore":
        cfg = settings.trust_score
        mature = sim_age_months >= cfg.phone_mature_sim_months
        return self._with("phone", cfg.phone_points_mature_sim if mature else cfg.phone_points_new_sim)

    def apply_address_award(self, award: AddressAward) -> "TrustScore":
        return self._with("address", award.points)

    def apply_social(
        self, *, google: bool = False, linkedin: bool = False, twitter: bool = False, settings: Settings
    ) -> "TrustScore":
        pts = settings.trust_score.social_points
        connected = {"google": google, "linkedin": linkedin, "twitter": twitter}
        return self._with("social", sum(pts[name] for name, on in connected.items() if on))

    def apply_referees(self, verified_count: int, *, settings: Settings) -> "TrustScore":
        cfg = settings.trust_score
        counted = max(0, min(verified_count, cfg.max_referees))
        return self._with("referee", counted * cfg.referee_points)
