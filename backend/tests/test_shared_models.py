"""Tests for shared model utilities."""

import re
import uuid
from datetime import UTC, datetime, timedelta, timezone

from app.models.order import generate_order_id
from app.models.return_request import generate_return_id
from app.models.shared import (
    UUIDType,
    ensure_utc,
    generate_public_id,
    generate_uuid,
    utc_now,
)

PUBLIC_ID = re.compile(r"^[A-Z]{3}-\d{13}-[A-Z0-9]{5}$")


class TestGenerateUuid:
    def test_returns_uuid4(self):
        result = generate_uuid()
        assert isinstance(result, uuid.UUID)
        assert result.version == 4

    def test_returns_unique_values(self):
        results = {generate_uuid() for _ in range(10)}
        assert len(results) == 10


class TestUtcNow:
    def test_returns_utc(self):
        result = utc_now()
        assert result.tzinfo == UTC

    def test_returns_current_time(self):
        before = datetime.now(UTC)
        result = utc_now()
        after = datetime.now(UTC)
        assert before <= result <= after


class TestEnsureUtc:
    def test_naive_value_gets_utc(self):
        result = ensure_utc(datetime(2026, 1, 1, 12, 0))
        assert result == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_aware_value_is_unchanged(self):
        value = datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_utc(value) is value


class TestPublicIds:
    def test_format(self):
        assert PUBLIC_ID.match(generate_public_id("ABC"))

    def test_order_and_return_prefixes(self):
        assert generate_order_id().startswith("ORD-")
        assert generate_return_id().startswith("RET-")
        assert PUBLIC_ID.match(generate_order_id())
        assert PUBLIC_ID.match(generate_return_id())

    def test_unique(self):
        assert len({generate_order_id() for _ in range(50)}) == 50


class TestUUIDType:
    def test_cache_ok(self):
        assert UUIDType.cache_ok is True

    def test_process_bind_param_none(self):
        t = UUIDType()
        assert t.process_bind_param(None, None) is None

    def test_process_bind_param_uuid(self):
        t = UUIDType()
        val = uuid.uuid4()
        assert t.process_bind_param(val, None) == str(val)

    def test_process_bind_param_string(self):
        t = UUIDType()
        val = "12345678-1234-5678-1234-567812345678"
        assert t.process_bind_param(val, None) == val

    def test_process_result_value_string(self):
        t = UUIDType()
        val = "12345678-1234-5678-1234-567812345678"
        result = t.process_result_value(val, None)
        assert isinstance(result, uuid.UUID)
        assert str(result) == val
