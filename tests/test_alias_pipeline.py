"""Tests for the create/delete batch orchestration."""

import pytest

from adapters.cloudflare_gateway import CloudflareEmailRoutingGateway
from core.domain.bundles import get_bundle
from core.domain.models import AliasRecord, AliasStatus, RoutingRule
from core.errors import CapacityExhaustedError, FatalRemoteError, TransientRemoteError
from core.services.alias_pipeline import (
    BatchRequest,
    PipelineHooks,
    deletable_records,
    plan_batch,
    run_create_batch,
    run_delete_batch,
)
from core.services.retry import RetryPolicy


class FakeGateway:
    """Scripted gateway: `create_errors` maps call number (1-based) to an error."""

    def __init__(self, create_errors=None, delete_errors=None):
        self.create_errors = dict(create_errors or {})
        self.delete_errors = dict(delete_errors or {})
        self.created = []
        self.deleted = []
        self.create_calls = 0

    def create(self, address, destination):
        self.create_calls += 1
        error = self.create_errors.pop(self.create_calls, None)
        if error is not None:
            raise error
        self.created.append((address, destination))
        return f"rule-{len(self.created)}"

    def list(self, domain_filter=None):
        return []

    def delete(self, rule_id):
        error = self.delete_errors.get(rule_id)
        if error is not None:
            raise error
        self.deleted.append(rule_id)


@pytest.fixture
def request_for(tiny_bundle):
    def _make(count=3, seed=11):
        return BatchRequest(
            bundle=tiny_bundle,
            count=count,
            seed=seed,
            domain="example.com",
            destination="me@inbox.test",
        )

    return _make


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def policy(sleeps):
    return RetryPolicy(max_retries=3, base_delay=1.0, sleep=sleeps.append)


class TestRunCreateBatch:

    def test_all_succeed_in_plan_order(self, request_for, policy):
        request = request_for()
        gateway = FakeGateway()
        result = run_create_batch(gateway, request, policy=policy, delay=0)
        assert [r.address for r in result.records] == plan_batch(request)
        assert result.success_count == 3
        assert [r.rule_id for r in result.records] == ["rule-1", "rule-2", "rule-3"]
        assert all(r.theme == "tiny" for r in result.records)
        assert all(dest == "me@inbox.test" for _, dest in gateway.created)

    def test_failure_recorded_and_batch_continues(self, request_for, policy):
        gateway = FakeGateway(create_errors={2: FatalRemoteError("Cloudflare API Error: Invalid rule")})
        result = run_create_batch(gateway, request_for(), policy=policy, delay=0)
        assert [r.status for r in result.records] == [
            AliasStatus.SUCCESS,
            AliasStatus.FAILED,
            AliasStatus.SUCCESS,
        ]
        assert result.failures[0].error == "Cloudflare API Error: Invalid rule"
        assert result.failures[0].rule_id is None

    def test_transient_error_retried_once(self, request_for, policy, sleeps):
        gateway = FakeGateway(create_errors={2: TransientRemoteError("Rate limited", status_code=429)})
        result = run_create_batch(gateway, request_for(), policy=policy, delay=0)
        assert result.success_count == 3
        assert gateway.create_calls == 4
        assert sleeps == [1.0]

    def test_pause_between_items_not_after_last(self, request_for, policy):
        pauses = []
        run_create_batch(FakeGateway(), request_for(count=3), policy=policy, delay=0.1, sleep=pauses.append)
        assert pauses == [0.1, 0.1]

    def test_progress_hook(self, request_for, policy):
        seen = []
        hooks = PipelineHooks(progress=lambda i, total, record: seen.append((i, total, record.status)))
        run_create_batch(FakeGateway(), request_for(count=2), policy=policy, delay=0, hooks=hooks)
        assert seen == [(1, 2, AliasStatus.SUCCESS), (2, 2, AliasStatus.SUCCESS)]

    def test_capacity_checked_before_any_call(self, request_for, policy):
        gateway = FakeGateway()
        with pytest.raises(CapacityExhaustedError):
            run_create_batch(gateway, request_for(count=5), policy=policy, delay=0)
        assert gateway.create_calls == 0


def test_five_creates_with_rate_limit_on_third(make_settings, cloudflare):
    """One 429 on the third create: exactly one retry, five successes."""
    sleeps = []
    policy = RetryPolicy(max_retries=3, base_delay=0.5, sleep=sleeps.append)
    cloudflare.scripted_creates[3] = cloudflare.error(429, "Rate limited")
    request = BatchRequest(
        bundle=get_bundle("tech-wizard"),
        count=5,
        seed=2024,
        domain="example.com",
        destination="me@inbox.test",
    )
    settings = make_settings()
    with CloudflareEmailRoutingGateway.from_settings(settings, transport=cloudflare.transport()) as gateway:
        gateway.ensure_zone("example.com")
        result = run_create_batch(gateway, request, policy=policy, delay=0)

    assert result.success_count == 5
    assert result.failure_count == 0
    assert cloudflare.create_calls == 6
    assert sleeps == [0.5]
    assert len(cloudflare.rules) == 5


class TestDeletion:

    def test_deletable_records_skips_failed_and_missing_ids(self):
        ok = AliasRecord(address="red.fox@example.com")
        ok.mark_success("r1")
        failed = AliasRecord(address="red.owl@example.com")
        failed.mark_failed("boom")
        pending = AliasRecord(address="blue.fox@example.com")
        targets = deletable_records([ok, failed, pending])
        assert targets == [RoutingRule(rule_id="r1", address="red.fox@example.com")]

    def test_delete_batch_continues_after_failure(self, policy):
        gateway = FakeGateway(delete_errors={"r2": FatalRemoteError("Cloudflare API Error: Rule not found")})
        targets = [
            RoutingRule(rule_id="r1", address="a.b@example.com"),
            RoutingRule(rule_id="r2", address="c.d@example.com"),
            RoutingRule(rule_id="r3", address="e.f@example.com"),
        ]
        events = []
        hooks = PipelineHooks(deleted=lambda i, total, rule, error: events.append((rule.rule_id, error)))
        result = run_delete_batch(gateway, targets, policy=policy, delay=0, hooks=hooks)
        assert gateway.deleted == ["r1", "r3"]
        assert [r.rule_id for r in result.deleted] == ["r1", "r3"]
        assert result.failed == [(targets[1], "Cloudflare API Error: Rule not found")]
        assert result.total == 3
        assert events[1] == ("r2", "Cloudflare API Error: Rule not found")
