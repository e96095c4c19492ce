from datetime import date

import pytest

from packages.subscription_detection.models import StoredTransaction, Subscription
from packages.subscription_detection.renewals import (
    AlertType,
    Severity,
    all_alerts,
    detect_price_increase,
    inactive_subscriptions,
    price_changes,
    upcoming_renewals,
)

NOW = date(2024, 3, 1)


def sub(id, **overrides):
    values = dict(
        id=id,
        user_id="u",
        merchant_name=id.capitalize(),
        amount=999,
        frequency="MONTHLY",
        confidence=80,
        last_charge_date=NOW,
    )
    values.update(overrides)
    return Subscription(**values)


def debits(merchant, *amounts):
    return [
        StoredTransaction(id=f"{merchant}-{i}", date=date(2024, i + 1, 15), amount=-a, merchant_name=merchant)
        for i, a in enumerate(amounts)
    ]


def test_upcoming_renewals_severity_and_window():
    subscriptions = [
        sub("info", next_charge_date=date(2024, 3, 20)),
        sub("urgent", next_charge_date=date(2024, 3, 3)),
        sub("warning", next_charge_date=date(2024, 3, 6)),
        sub("far", next_charge_date=date(2024, 4, 15)),
        sub("past", next_charge_date=date(2024, 2, 28)),
        sub("cancelled", next_charge_date=date(2024, 3, 2), status="CANCELLED"),
        sub("undated"),
    ]

    alerts = upcoming_renewals(subscriptions, NOW)

    assert [(a.subscription_id, a.severity) for a in alerts] == [
        ("urgent", Severity.URGENT),
        ("warning", Severity.WARNING),
        ("info", Severity.INFO),
    ]
    assert alerts[0].message == "Urgent renews in 2 days (9.99 EUR)"
    assert alerts[0].amount == 999


def test_renewal_uses_display_name():
    alerts = upcoming_renewals([sub("n", display_name="Netflix Premium", next_charge_date=date(2024, 3, 2))], NOW)
    assert alerts[0].merchant_name == "Netflix Premium"
    assert alerts[0].message.startswith("Netflix Premium renews in 1 day ")


def test_inactive_subscription_after_one_and_a_half_intervals():
    subscriptions = [
        sub("stale", last_charge_date=date(2024, 1, 1)),
        sub("recent", last_charge_date=date(2024, 2, 1)),
        sub("weekly", frequency="WEEKLY", amount=300, last_charge_date=date(2024, 2, 15)),
        sub("paused", status="PAUSED", last_charge_date=date(2023, 1, 1)),
    ]

    alerts = inactive_subscriptions(subscriptions, NOW)

    assert [a.subscription_id for a in alerts] == ["stale", "weekly"]
    assert all(a.severity == Severity.TIP and a.type == AlertType.INACTIVE for a in alerts)
    assert alerts[1].amount == 1300  # 300 * 52 / 12


def test_detect_price_increase():
    assert detect_price_increase(debits("N", 999, 999, 1199)) == 200
    assert detect_price_increase(debits("N", 999, 999, 1040)) is None
    assert detect_price_increase(debits("N", 999)) is None


def test_price_increase_only_looks_at_recent_history():
    # The oldest charge falls outside the five most recent ones
    assert detect_price_increase(debits("N", 5000, 999, 999, 999, 999, 1099)) == 100


def test_price_changes_need_three_linked_transactions():
    history = {"Netflix": debits("Netflix", 999, 999, 1199)}
    tracked = sub("netflix", merchant_name="Netflix", transaction_ids=["a", "b", "c"])
    untracked = sub("other", merchant_name="Netflix", transaction_ids=["a", "b"])

    alerts = price_changes([tracked, untracked], history)

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.type == AlertType.PRICE_INCREASE
    assert alert.severity == Severity.WARNING
    assert alert.amount == 200
    assert alert.date == date(2024, 3, 15)


def test_all_alerts_sorted_by_severity():
    subscriptions = [
        sub("stale", last_charge_date=date(2023, 12, 1)),
        sub("soon", next_charge_date=date(2024, 3, 20)),
        sub("tomorrow", next_charge_date=date(2024, 3, 2)),
        sub("netflix", merchant_name="Netflix", transaction_ids=["a", "b", "c"]),
    ]
    history = {"Netflix": debits("Netflix", 999, 999, 1199)}

    alerts = all_alerts(subscriptions, history, NOW)

    assert [a.severity for a in alerts] == [
        Severity.URGENT,
        Severity.WARNING,
        Severity.INFO,
        Severity.TIP,
    ]
    assert alerts[1].type == AlertType.PRICE_INCREASE
    assert alerts[0].to_dict()["severity"] == "urgent"


@pytest.mark.parametrize("window, expected", [(10, 1), (30, 2)])
def test_custom_window(window, expected):
    subscriptions = [
        sub("a", next_charge_date=date(2024, 3, 5)),
        sub("b", next_charge_date=date(2024, 3, 25)),
    ]
    assert len(upcoming_renewals(subscriptions, NOW, window_days=window)) == expected
