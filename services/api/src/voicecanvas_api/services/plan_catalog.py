"""Plan catalog: what each Stripe price grants.

Price identifiers are configured per environment. Everything else about a plan
is fixed here.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from voicecanvas_shared.config import StripeSettings
from voicecanvas_shared.db.models import PLAN_MONTHLY, PLAN_TRIAL, PLAN_YEARLY

from ..errors import InvalidPriceIdentifier, ValidationError

PlanKind = Literal["subscription", "one_time", "trial"]

TRIAL_DAYS = 7
TRIAL_CHARACTERS = 10_000


@dataclass(frozen=True)
class PlanFeature:
    """A feature line shown on the pricing page."""

    key: str
    amount: int | None = None
    days: int | None = None


@dataclass(frozen=True)
class PlanDescriptor:
    key: str
    kind: PlanKind
    characters: int
    display_price: str
    plan_type: str | None = None
    duration_days: int | None = None
    features: tuple[PlanFeature, ...] = field(default_factory=tuple)

    @property
    def is_subscription(self) -> bool:
        return self.kind == "subscription"

    @property
    def purchasable(self) -> bool:
        return self.kind != "trial"


TRIAL_PLAN = PlanDescriptor(
    key="trial",
    kind="trial",
    characters=TRIAL_CHARACTERS,
    display_price="$0",
    plan_type=PLAN_TRIAL,
    duration_days=TRIAL_DAYS,
    features=(
        PlanFeature("freeChars", amount=TRIAL_CHARACTERS),
        PlanFeature("trialPeriod", days=TRIAL_DAYS),
        PlanFeature("languageSupport"),
        PlanFeature("basicSpeedControl"),
        PlanFeature("basicVoiceSelection"),
        PlanFeature("textInputOnly"),
        PlanFeature("standardSupport"),
    ),
)

YEARLY_PLAN = PlanDescriptor(
    key="yearly",
    kind="subscription",
    characters=1_500_000,
    display_price="$49.9",
    plan_type=PLAN_YEARLY,
    duration_days=365,
    features=(
        PlanFeature("yearlyQuota", amount=1_500_000),
        PlanFeature("languageSupport"),
        PlanFeature("fullSpeedControl"),
        PlanFeature("allVoices"),
        PlanFeature("wordByWordReading"),
        PlanFeature("fileUpload"),
        PlanFeature("audioVisualization"),
        PlanFeature("advancedAudioEdit"),
        PlanFeature("support247"),
        PlanFeature("earlyAccess"),
    ),
)

MONTHLY_PLAN = PlanDescriptor(
    key="monthly",
    kind="subscription",
    characters=100_000,
    display_price="$4.99",
    plan_type=PLAN_MONTHLY,
    duration_days=30,
    features=(
        PlanFeature("monthlyQuota", amount=100_000),
        PlanFeature("languageSupport"),
        PlanFeature("fullSpeedControl"),
        PlanFeature("allVoices"),
        PlanFeature("wordByWordReading"),
        PlanFeature("fileUpload"),
        PlanFeature("audioVisualization"),
        PlanFeature("prioritySupport"),
    ),
)

TEN_THOUSAND_CHARS_PLAN = PlanDescriptor(
    key="tenThousandChars",
    kind="one_time",
    characters=10_000,
    display_price="$6",
    features=(PlanFeature("permanentQuota", amount=10_000),),
)

MILLION_CHARS_PLAN = PlanDescriptor(
    key="millionChars",
    kind="one_time",
    characters=1_000_000,
    display_price="$55",
    features=(PlanFeature("permanentQuota", amount=1_000_000),),
)

THREE_MILLION_CHARS_PLAN = PlanDescriptor(
    key="threeMillionChars",
    kind="one_time",
    characters=3_000_000,
    display_price="$150",
    features=(PlanFeature("permanentQuota", amount=3_000_000),),
)

PURCHASABLE_PLANS: tuple[PlanDescriptor, ...] = (
    YEARLY_PLAN,
    MONTHLY_PLAN,
    TEN_THOUSAND_CHARS_PLAN,
    MILLION_CHARS_PLAN,
    THREE_MILLION_CHARS_PLAN,
)


class PlanCatalog:
    """Maps Stripe price identifiers to plan descriptors and back."""

    def __init__(self, price_ids: Mapping[str, str]):
        """Initialize the catalog.

        Args:
            price_ids: Plan key to Stripe price ID. Plans without a configured
                price cannot be bought.
        """
        self._plans = {plan.key: plan for plan in PURCHASABLE_PLANS}
        self._price_by_plan = {key: price for key, price in price_ids.items() if price}
        self._plan_by_price = {
            price: self._plans[key]
            for key, price in self._price_by_plan.items()
            if key in self._plans
        }

    @classmethod
    def from_settings(cls, settings: StripeSettings) -> "PlanCatalog":
        return cls(
            {
                YEARLY_PLAN.key: settings.yearly_price_id,
                MONTHLY_PLAN.key: settings.monthly_price_id,
                TEN_THOUSAND_CHARS_PLAN.key: settings.price_10k_id,
                MILLION_CHARS_PLAN.key: settings.price_1m_id,
                THREE_MILLION_CHARS_PLAN.key: settings.price_3m_id,
            }
        )

    def plan_for_price(self, price_id: str | None) -> PlanDescriptor:
        """Resolve a Stripe price ID.

        Raises:
            InvalidPriceIdentifier: If the ID is empty or not configured.
        """
        if not price_id or price_id not in self._plan_by_price:
            raise InvalidPriceIdentifier(f"Invalid price ID: {price_id!r}")
        return self._plan_by_price[price_id]

    def price_for_plan(self, plan_key: str) -> str:
        """Return the Stripe price ID of a purchasable plan.

        Raises:
            ValidationError: If the plan is unknown or has no configured price.
        """
        price_id = self._price_by_plan.get(plan_key)
        if plan_key not in self._plans or not price_id:
            raise ValidationError("Invalid plan type")
        return price_id

    def get(self, plan_key: str) -> PlanDescriptor | None:
        if plan_key == TRIAL_PLAN.key:
            return TRIAL_PLAN
        return self._plans.get(plan_key)

    def plans(self) -> list[PlanDescriptor]:
        """All plans in display order, trial first."""
        return [TRIAL_PLAN, *PURCHASABLE_PLANS]
