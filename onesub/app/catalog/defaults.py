"""Static launch catalog of bundles and partner perks."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Tuple

from .models import (
    Bundle,
    Perk,
    PerkDelivery,
    PerkDeliveryMethod,
    ServiceOffering,
    UnlockCriterion,
    UnlockCriterionType,
)

STREAMFLIX = ServiceOffering(
    id="x",
    name="StreamFlix Plus",
    original_price=Decimal("10"),
    description="Ad-free movies & original series.",
)
MUSICVERSE = ServiceOffering(
    id="y",
    name="MusicVerse Pro",
    original_price=Decimal("9"),
    description="Unlimited ad-free music streaming.",
)
NEWSNOW = ServiceOffering(
    id="z",
    name="NewsNow Premium",
    original_price=Decimal("11"),
    description="In-depth global news coverage.",
)
CAFE_ELEVATE = ServiceOffering(
    id="coffee",
    name="Café Elevate Weekly",
    original_price=Decimal("20"),
    description="Your weekly artisan coffee credit.",
)

DEFAULT_BUNDLES: Tuple[Bundle, ...] = (
    Bundle(
        id="bundle1",
        name="The Ultimate Harmony Pack",
        description="All essential digital services plus a weekly premium coffee.",
        services=(STREAMFLIX, MUSICVERSE, NEWSNOW, CAFE_ELEVATE),
        bundle_price=Decimal("30"),
        annual_price_multiplier=Decimal("0.85"),
    ),
    Bundle(
        id="bundle2",
        name="Digital Explorer Kit",
        description="Stream, listen, and read with curated digital essentials.",
        services=(STREAMFLIX, MUSICVERSE, NEWSNOW),
        bundle_price=Decimal("22"),
        annual_price_multiplier=Decimal("0.9"),
    ),
    Bundle(
        id="bundle3",
        name="Lifestyle Booster Pack",
        description="Unlimited music and your favorite coffee.",
        services=(MUSICVERSE, CAFE_ELEVATE),
        bundle_price=Decimal("21"),
        annual_price_multiplier=Decimal("0.9"),
    ),
    Bundle(
        id="bundle4",
        name="Entertainment Starter",
        description="Essential streaming and music services.",
        services=(STREAMFLIX, MUSICVERSE),
        bundle_price=Decimal("15"),
    ),
)

DEFAULT_PERKS: Tuple[Perk, ...] = (
    Perk(
        id="perk001",
        title="1 Month Free EduSpark Premium",
        partner_id="partner1",
        description="A full month of access to all EduSpark Premium courses.",
        unlock_criteria=(
            UnlockCriterion(
                type=UnlockCriterionType.MIN_SUBSCRIPTIONS_LINKED,
                value=2,
                description="Link at least 2 active subscriptions on OneSub.",
            ),
            UnlockCriterion(
                type=UnlockCriterionType.ACCOUNT_AGE_DAYS,
                value=30,
                description="Be a OneSub member for at least 30 days.",
            ),
        ),
        delivery=PerkDelivery(
            method=PerkDeliveryMethod.CODE,
            value="ONESUBEDU30",
            instructions="Redeem this code on EduSpark.example.com/redeem after signing up.",
        ),
        expiry_date=datetime(2027, 12, 31, tzinfo=timezone.utc),
        category="Education",
    ),
    Perk(
        id="perk002",
        title="25% Off GamerHaven Annual Pass",
        partner_id="partner2",
        description="25% discount on the first year of a GamerHaven Plus annual subscription.",
        unlock_criteria=(
            UnlockCriterion(
                type=UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED,
                value="bundle1",
                description='Subscribe to "The Ultimate Harmony Pack".',
            ),
        ),
        delivery=PerkDelivery(
            method=PerkDeliveryMethod.LINK,
            value="https://gamerhaven.example.com/onesuboffer?discount=25",
            instructions="Click the link to apply the discount automatically.",
        ),
        category="Gaming",
    ),
    Perk(
        id="perk003",
        title="3 Months Free ZenMind Meditation App",
        partner_id="partner3",
        description="3 months of guided meditations and mindfulness exercises.",
        unlock_criteria=(
            UnlockCriterion(
                type=UnlockCriterionType.MIN_MONTHLY_SPEND,
                value=25,
                description="Have a total monthly OneSub spend of €25 or more.",
            ),
        ),
        delivery=PerkDelivery(
            method=PerkDeliveryMethod.CODE,
            value="ZENONESUB90",
            instructions="Enter this code in the ZenMind app settings.",
        ),
        expiry_date=datetime(2027, 3, 31, tzinfo=timezone.utc),
        category="Wellness",
    ),
    Perk(
        id="perk004",
        title="Exclusive FitFlow Workout Plan",
        partner_id="partner4",
        description="A personalized 4-week workout plan from FitFlow Fitness experts.",
        unlock_criteria=(
            UnlockCriterion(
                type=UnlockCriterionType.MIN_SUBSCRIPTIONS_LINKED,
                value=1,
                description="Link at least 1 active subscription.",
            ),
        ),
        delivery=PerkDelivery(
            method=PerkDeliveryMethod.LINK,
            value="https://fitflow.example.com/onesub-plan",
            instructions="Access your plan via this exclusive link.",
        ),
        category="Fitness",
    ),
)


def get_default_bundle(bundle_id: str) -> Bundle:
    """Return a launch bundle definition, raising if unknown."""

    for bundle in DEFAULT_BUNDLES:
        if bundle.id == bundle_id:
            return bundle
    raise KeyError(f"Unknown bundle id: {bundle_id}")
