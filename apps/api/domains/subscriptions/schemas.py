"""Pydantic schemas for the subscriptions domain."""

import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DetectedSubscriptionOut(BaseModel):
    merchant_name: str
    amount: int  # cents, average charge
    frequency: str
    confidence: int
    next_charge_date: Optional[datetime.date] = None
    first_charge_date: Optional[datetime.date] = None
    last_charge_date: Optional[datetime.date] = None
    occurrences: int
    category: Optional[str] = None


class DetectResponse(BaseModel):
    message: str
    detected: int
    created: int
    updated: int
    refreshed: int
    unchanged: int
    subscriptions: list[DetectedSubscriptionOut] = Field(default_factory=list)


class SubscriptionOut(BaseModel):
    id: str
    merchant_name: str
    display_name: Optional[str] = None
    amount: int
    currency: str = "EUR"
    frequency: str
    confidence: int
    status: str
    category: Optional[str] = None
    next_charge_date: Optional[datetime.date] = None
    last_charge_date: Optional[datetime.date] = None
    first_charge_date: Optional[datetime.date] = None
    transaction_ids: list[str] = Field(default_factory=list)


class ConfirmResponse(BaseModel):
    message: str
    subscription: SubscriptionOut


class AlertOut(BaseModel):
    type: str
    severity: str
    subscription_id: str
    merchant_name: str
    message: str
    date: Optional[datetime.date] = None
    amount: Optional[int] = None


class AlertsResponse(BaseModel):
    alerts: list[AlertOut]
