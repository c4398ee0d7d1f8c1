"""Tests for the BackoffPolicy value object."""

import pytest
from pydantic import ValidationError

from eureka_sdk.domain.value_objects import BackoffPolicy


class TestBackoffPolicy:
    """Test cases for BackoffPolicy."""

    def test_defaults(self):
        policy = BackoffPolicy()
        assert policy.base_ms == 1000
        assert policy.max_ms == 30000
        assert policy.multiplier == 2.0
        assert policy.jitter_factor == 0.1

    def test_exponential_growth_without_jitter(self):
        policy = BackoffPolicy(base_ms=100, max_ms=10000, multiplier=2.0, jitter_factor=0.0)
        assert [policy.delay_ms(n) for n in (1, 2, 3, 4)] == [100, 200, 400, 800]

    def test_delay_is_capped(self):
        policy = BackoffPolicy(base_ms=100, max_ms=500, jitter_factor=0.0)
        assert policy.delay_ms(10) == 500

    def test_very_large_attempt_stays_at_cap(self):
        policy = BackoffPolicy(jitter_factor=0.0)
        assert policy.delay_ms(1100) == 30000
        assert policy.delay_ms(10**9) == 30000

    def test_large_attempt_with_jitter_stays_at_cap(self):
        assert BackoffPolicy().delay_ms(5000) == 30000

    def test_constant_backoff(self):
        policy = BackoffPolicy(base_ms=50, max_ms=500, multiplier=1.0, jitter_factor=0.0)
        assert policy.delay_ms(1) == policy.delay_ms(2000) == 50

    def test_jitter_stays_within_bounds(self):
        policy = BackoffPolicy(base_ms=100, max_ms=10000, jitter_factor=0.5)
        for _ in range(50):
            assert 200 <= policy.delay_ms(2) <= 300

    def test_jitter_never_exceeds_cap(self):
        policy = BackoffPolicy(base_ms=1000, max_ms=1000, jitter_factor=1.0)
        for _ in range(20):
            assert policy.delay_ms(3) == 1000

    def test_attempt_below_one_has_no_delay(self):
        assert BackoffPolicy().delay_ms(0) == 0.0

    def test_delay_seconds(self):
        policy = BackoffPolicy(base_ms=250, jitter_factor=0.0)
        assert policy.delay_seconds(1) == 0.25

    def test_accepts_camel_case_keys(self):
        policy = BackoffPolicy.model_validate({"baseMs": 10, "maxMs": 20, "jitterFactor": 0})
        assert (policy.base_ms, policy.max_ms, policy.jitter_factor) == (10, 20, 0.0)

    def test_max_below_base_is_rejected(self):
        with pytest.raises(ValidationError):
            BackoffPolicy(base_ms=1000, max_ms=10)

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValidationError):
            BackoffPolicy.model_validate({"baseMs": 10, "retries": 3})
