"""
Batched balance fetching with bounded concurrency.

Items are processed in fixed-size groups. A group runs concurrently and is
awaited in full before the next one starts, so at most `concurrency`
balance calls are in flight. Between groups the caller gets a progress
count and a fresh snapshot of the results, and may cancel.

One item failing never affects the others: its reading is recorded as
found=False. Authentication failure is the exception: it stops the batch.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional
import structlog

from exceptions import SigeAuthError, ValidationError
from models.balance import (
    BalanceReading,
    BalanceSummary,
    ItemWithBalance,
    MatchedItem,
)
from parsers.balance_parser import resolve_balance

logger = structlog.get_logger(__name__)

DEFAULT_CONCURRENCY = 3
MISSING_ID_ERROR = "Missing SIGE id"

FetchBalance = Callable[[str], Awaitable[Any]]
ProgressCallback = Callable[[int, int], Any]
PartialCallback = Callable[[list[ItemWithBalance]], Any]


class CancelToken:
    """Cooperative cancellation flag, checked between groups."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


async def _notify(callback: Optional[Callable], *args) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def _resolve_one(item: MatchedItem, fetch_balance: FetchBalance) -> BalanceReading:
    """Fetch and parse one balance. Only SigeAuthError escapes."""
    if not item.remote_id:
        return BalanceReading.failed(MISSING_ID_ERROR)

    try:
        raw = await fetch_balance(item.remote_id)
    except SigeAuthError:
        raise
    except Exception as e:
        logger.warning(
            "balance_item_failed",
            sku=item.sku,
            remote_id=item.remote_id,
            error=str(e),
        )
        return BalanceReading.failed(str(e) or type(e).__name__)

    return resolve_balance(raw)


def _snapshot(
    items: list[MatchedItem],
    readings: list[Optional[BalanceReading]]
) -> list[ItemWithBalance]:
    return [
        ItemWithBalance(item=item, balance=reading)
        for item, reading in zip(items, readings)
    ]


async def resolve_balances_batched(
    items: list[MatchedItem],
    fetch_balance: FetchBalance,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_progress: Optional[ProgressCallback] = None,
    on_partial: Optional[PartialCallback] = None,
    cancel_token: Optional[CancelToken] = None,
) -> list[ItemWithBalance]:
    """
    Fetch balances for items, `concurrency` at a time.

    Args:
        items: Items to fetch, in display order
        fetch_balance: Coroutine returning the raw balance payload for a SIGE id
        concurrency: Group size (max balance calls in flight)
        on_progress: Called as on_progress(done, total) after each group
        on_partial: Called with the full result list after each group
        cancel_token: Checked before each group starts

    Returns:
        One ItemWithBalance per input item, same order. Items never reached
        because of cancellation have balance=None.

    Raises:
        SigeAuthError: after the group in which it occurred has settled
    """
    if concurrency < 1:
        raise ValidationError(
            message="concurrency must be at least 1",
            details={"concurrency": concurrency}
        )

    total = len(items)
    readings: list[Optional[BalanceReading]] = [None] * total

    logger.info("balance_batch_started", total=total, concurrency=concurrency)

    for start in range(0, total, concurrency):
        if cancel_token is not None and cancel_token.cancelled:
            logger.info("balance_batch_cancelled", done=start, total=total)
            break

        group = items[start:start + concurrency]
        outcomes = await asyncio.gather(
            *(_resolve_one(item, fetch_balance) for item in group),
            return_exceptions=True
        )

        fatal = None
        for offset, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                fatal = fatal or outcome
            else:
                readings[start + offset] = outcome

        if fatal is not None:
            logger.error("balance_batch_aborted", done=start, total=total, error=str(fatal))
            raise fatal

        done = min(start + concurrency, total)
        logger.debug("balance_batch_progress", done=done, total=total)
        await _notify(on_progress, done, total)
        await _notify(on_partial, _snapshot(items, readings))

    results = _snapshot(items, readings)
    summary = summarize_balances(results)
    logger.info(
        "balance_batch_completed",
        total=total,
        in_stock=summary.in_stock,
        out_of_stock=summary.out_of_stock,
        errors=summary.errors + summary.not_found,
        pending=summary.pending,
    )
    return results


def summarize_balances(results: list[ItemWithBalance]) -> BalanceSummary:
    """
    Count readings by outcome.

    not_found covers items that had no SIGE id; errors covers fetches that
    failed. The diagnostic is set when every resolved reading is zero and
    one of them carried an unknown-fields diagnostic.
    """
    summary = BalanceSummary(total=len(results))
    found = []

    for entry in results:
        reading = entry.balance
        if reading is None:
            summary.pending += 1
        elif not reading.found:
            if not entry.item.remote_id:
                summary.not_found += 1
            else:
                summary.errors += 1
        else:
            found.append(reading)
            if reading.quantity > 0:
                summary.in_stock += 1
            else:
                summary.out_of_stock += 1

    if found and all(r.quantity == 0 for r in found):
        summary.diagnostic = next((r.diagnostic for r in found if r.diagnostic), None)

    return summary
