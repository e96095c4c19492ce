"""Subscriptions router — detection, confirmation, renewal alerts, stats."""

from datetime import date

from fastapi import APIRouter, Depends
from supabase import Client

from apps.api.core.auth import get_current_user_id, get_user_client
from apps.api.core.config import Settings, get_settings
from apps.api.core.rate_limit import enforce_rate_limit
from apps.api.domains.subscriptions import service
from apps.api.domains.subscriptions.schemas import (
    AlertsResponse,
    ConfirmResponse,
    DetectResponse,
)
from apps.api.domains.subscriptions.store import (
    SupabaseSubscriptionStore,
    fetch_merchant_debits,
)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def get_today() -> date:
    """Reference date for detection and alerts; overridable in tests."""
    return date.today()


@router.post("/detect", response_model=DetectResponse)
async def detect(
    client: Client = Depends(get_user_client),
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
):
    """Re-run detection over the user's full debit history and merge results."""
    enforce_rate_limit(user_id, "detect")

    debits = fetch_merchant_debits(client, user_id)
    return service.run_detection(
        SupabaseSubscriptionStore(client),
        user_id,
        debits,
        now=today,
        default_currency=settings.DEFAULT_CURRENCY,
    )


@router.post("/{subscription_id}/confirm", response_model=ConfirmResponse)
async def confirm(
    subscription_id: str,
    client: Client = Depends(get_user_client),
    user_id: str = Depends(get_current_user_id),
):
    """Confirm a detected subscription so detection never rewrites its terms."""
    subscription = service.confirm_subscription(SupabaseSubscriptionStore(client), user_id, subscription_id)
    return {
        "message": "Subscription confirmed",
        "subscription": service.subscription_to_dict(subscription),
    }


@router.get("/alerts", response_model=AlertsResponse)
async def alerts(
    client: Client = Depends(get_user_client),
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
):
    """Upcoming renewals, price increases and inactive subscriptions."""
    subscriptions = SupabaseSubscriptionStore(client).list_for_user(user_id)
    debits = fetch_merchant_debits(client, user_id)
    return {
        "alerts": service.renewal_alerts(subscriptions, debits, today, settings.RENEWAL_WINDOW_DAYS)
    }


@router.get("/stats")
async def stats(
    client: Client = Depends(get_user_client),
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
):
    """Monthly and annual cost totals plus dashboard breakdowns."""
    subscriptions = SupabaseSubscriptionStore(client).list_for_user(user_id)
    return service.stats(subscriptions, today, settings.RENEWAL_WINDOW_DAYS)
