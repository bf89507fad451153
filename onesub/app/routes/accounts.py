"""API routes exposing subscriptions, credits and perks for the current account."""
from __future__ import annotations

import os
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from ... import app_context
from ..accounts.models import UserRecord
from ..catalog.repository import require_bundle
from ..engine.service import RulesEngine
from ..rules.exceptions import InvalidAmountError, RulesEngineError
from ..rules.money import to_money
from ..schemas.accounts import (
    AccountSummary,
    CreditAdjustmentRequest,
    PauseRequest,
    PerkLockerEntry,
    PerkLockerResponse,
    RedeemCreditsRequest,
    SubscribeRequest,
)
from ..services.rules_engine import get_rules_engine


_SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")


def _get_current_user(
    session_token: Optional[str] = Cookie(None, alias=_SESSION_COOKIE_NAME),
) -> Optional[UserRecord]:
    return app_context.get_current_user(session_token=session_token)


router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("/me", response_model=AccountSummary)
def read_account(
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    """Return the caller's account after resuming due pauses and recomputing credits and perks."""
    try:
        user = engine.refresh(current_user)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.post("/me/subscriptions", response_model=AccountSummary, status_code=status.HTTP_201_CREATED)
def subscribe(
    payload: SubscribeRequest,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        bundle = require_bundle(engine.lifecycle.bundle_catalog, payload.bundle_id)
        catalog_price = bundle.price_for_cycle(payload.cycle)
        if payload.price_paid is not None and to_money(payload.price_paid) != catalog_price:
            raise InvalidAmountError(
                "Price paid does not match the catalog price.",
                detail={"expected": str(catalog_price), "price_paid": str(payload.price_paid)},
            )
        user = engine.subscribe(current_user, payload.bundle_id, payload.cycle, catalog_price)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.delete("/me/subscriptions/{bundle_id}", response_model=AccountSummary)
def cancel_subscription(
    bundle_id: str,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        user = engine.cancel(current_user, bundle_id)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.post("/me/subscriptions/{bundle_id}/pause", response_model=AccountSummary)
def pause_subscription(
    bundle_id: str,
    payload: PauseRequest,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        user = engine.pause(current_user, bundle_id, payload.days)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.post("/me/subscriptions/{bundle_id}/resume", response_model=AccountSummary)
def resume_subscription(
    bundle_id: str,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        user = engine.resume(current_user, bundle_id)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.post("/me/credits/redeem", response_model=AccountSummary)
def redeem_credits(
    payload: RedeemCreditsRequest,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        user = engine.redeem(current_user, payload.amount)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.get("/me/perks", response_model=PerkLockerResponse)
def list_perks(
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> PerkLockerResponse:
    """Return every catalog perk with the caller's status and unlock progress."""
    try:
        user = engine.refresh(current_user)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc

    entries = []
    for perk in engine.perks.perk_catalog.list_perks():
        progress = engine.perks.describe_progress(user, perk)
        entries.append(PerkLockerEntry.from_progress(perk, user.find_perk_status(perk.id), progress))
    return PerkLockerResponse(perks=entries)


@router.post("/me/perks/{perk_id}/claim", response_model=AccountSummary)
def claim_perk(
    perk_id: str,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        user = engine.claim_perk(current_user, perk_id)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.put("/{user_id}/credits", response_model=AccountSummary)
def adjust_credits(
    user_id: str,
    payload: CreditAdjustmentRequest,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> AccountSummary:
    try:
        user = engine.admin_adjust(current_user, user_id, payload.new_available_balance)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return AccountSummary.from_user(user)


@router.post("/{user_id}/subscriptions/{bundle_id}/billing", status_code=status.HTTP_204_NO_CONTENT)
def record_billing(
    user_id: str,
    bundle_id: str,
    succeeded: bool,
    *,
    current_user: Optional[UserRecord] = Depends(_get_current_user),
    engine: RulesEngine = Depends(get_rules_engine),
) -> Response:
    """Record the payment gateway's verdict for a subscription's billing date (admin only)."""
    try:
        engine.record_billing(current_user, user_id, bundle_id, payment_succeeded=succeeded)
    except RulesEngineError as exc:
        raise exc.to_http_exception() from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
