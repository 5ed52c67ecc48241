"""Tests for derived state on the quota and subscription models."""

from datetime import datetime, timedelta

import pytest

from voicecanvas_shared.db.models import CharacterQuota, Subscription

NOW = datetime(2025, 6, 1, 8, 30)


def quota(expiry: datetime | None) -> CharacterQuota:
    return CharacterQuota(
        permanent_quota=100,
        temporary_quota=50,
        used_characters=120,
        quota_expiry=expiry,
        last_updated=NOW,
    )


@pytest.mark.unit
class TestRemainingCharacters:
    def test_expired_temporary_quota_is_ignored(self):
        assert quota(NOW - timedelta(days=1)).remaining_characters(NOW) == -20

    def test_live_temporary_quota_counts(self):
        assert quota(NOW + timedelta(days=1)).remaining_characters(NOW) == 30

    def test_expiry_at_now_has_lapsed(self):
        assert quota(NOW).remaining_characters(NOW) == -20

    def test_no_expiry_never_lapses(self):
        assert quota(None).remaining_characters(NOW) == 30


@pytest.mark.unit
@pytest.mark.parametrize(
    ("status", "end_date", "expected"),
    [
        ("active", NOW + timedelta(seconds=1), True),
        ("active", NOW, False),
        ("canceled", NOW + timedelta(days=30), False),
        ("payment_failed", NOW + timedelta(days=30), False),
    ],
)
def test_subscription_is_active_at(status, end_date, expected):
    subscription = Subscription(
        plan_type="monthly",
        start_date=NOW - timedelta(days=1),
        end_date=end_date,
        status=status,
    )
    assert subscription.is_active_at(NOW) is expected
