"""Alias batch orchestration.

The CLI delegates the create/delete flows to these helpers so that the
sequencing rules live in one place and stay testable with a fake gateway:

- names are generated up front; capacity or parameter problems abort before
  any network call;
- items are processed one at a time in generation order, with a fixed delay
  between requests (none after the last one);
- a remote failure is recorded on its item and the batch moves on.

Side-effects for the UI (progress lines, warnings) go through
`PipelineHooks`; nothing here prints.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from core.domain.bundles import WordBundle
from core.domain.models import AliasRecord, AliasStatus, RoutingRule
from core.errors import RemoteError
from core.interfaces.gateway import AliasGateway
from core.services.name_synthesizer import build_address, generate_alias_names
from core.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchRequest:
    """Parameters that fully determine a creation batch."""

    bundle: WordBundle
    count: int
    seed: int
    domain: str
    destination: str


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (per-item progress)."""

    progress: Callable[[int, int, AliasRecord], None] | None = None
    deleted: Callable[[int, int, RoutingRule, str | None], None] | None = None


@dataclass
class BatchResult:
    """Output of a creation batch, records in generation order."""

    request: BatchRequest
    records: list[AliasRecord] = field(default_factory=list)

    @property
    def successes(self) -> list[AliasRecord]:
        return [r for r in self.records if r.is_success]

    @property
    def failures(self) -> list[AliasRecord]:
        return [r for r in self.records if r.status is AliasStatus.FAILED]

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


@dataclass
class DeleteResult:
    """Output of a deletion batch."""

    deleted: list[RoutingRule] = field(default_factory=list)
    failed: list[tuple[RoutingRule, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.deleted) + len(self.failed)


def default_seed() -> int:
    """Wall clock in milliseconds, the seed used when none is configured."""

    return int(time.time() * 1000)


def plan_batch(request: BatchRequest) -> list[str]:
    """Full addresses the batch will create, in order."""

    names = generate_alias_names(request.count, request.seed, request.bundle)
    return [build_address(name, request.domain) for name in names]


def _pause(delay: float, sleep: Callable[[float], None], index: int, total: int) -> None:
    if delay > 0 and index < total - 1:
        sleep(delay)


def run_create_batch(
    gateway: AliasGateway,
    request: BatchRequest,
    *,
    policy: RetryPolicy,
    delay: float = 0.1,
    hooks: PipelineHooks | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchResult:
    """Create every planned alias through `policy` and record the outcome."""

    hooks = hooks or PipelineHooks()
    addresses = plan_batch(request)
    result = BatchResult(request=request)
    total = len(addresses)

    for index, address in enumerate(addresses):
        record = AliasRecord(address=address, theme=request.bundle.key)
        try:
            rule_id = policy.call(
                lambda: gateway.create(address, request.destination),
                label=f"create {address}",
            )
            record.mark_success(rule_id)
        except RemoteError as exc:
            record.mark_failed(exc.message)
            logger.info("Creating %s failed: %s", address, exc.message)

        result.records.append(record)
        if hooks.progress:
            hooks.progress(index + 1, total, record)
        _pause(delay, sleep, index, total)

    return result


def deletable_records(records: Iterable[AliasRecord]) -> list[RoutingRule]:
    """Successful records that carry a rule id, as deletion targets."""

    return [
        RoutingRule(rule_id=r.rule_id, address=r.address)
        for r in records
        if r.is_success and r.rule_id
    ]


def run_delete_batch(
    gateway: AliasGateway,
    targets: Sequence[RoutingRule],
    *,
    policy: RetryPolicy,
    delay: float = 0.1,
    hooks: PipelineHooks | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DeleteResult:
    """Delete each target rule sequentially; failures do not stop the batch."""

    hooks = hooks or PipelineHooks()
    result = DeleteResult()
    total = len(targets)

    for index, rule in enumerate(targets):
        error: str | None = None
        try:
            policy.call(lambda: gateway.delete(rule.rule_id), label=f"delete {rule.address}")
            result.deleted.append(rule)
        except RemoteError as exc:
            error = exc.message
            result.failed.append((rule, error))
            logger.info("Deleting %s failed: %s", rule.address, error)

        if hooks.deleted:
            hooks.deleted(index + 1, total, rule, error)
        _pause(delay, sleep, index, total)

    return result
