"""Tests for the pending-request table."""

from __future__ import annotations

import asyncio
import re

import pytest

from tgbridge.pending import Outcome, PendingRequestTable, RequestKind, generate_request_id


class TestGenerateRequestId:
    def test_same_timestamp_gives_distinct_ids(self):
        first = generate_request_id(1234567890)
        second = generate_request_id(1234567890)
        assert first != second
        assert first.startswith("req_1234567890_")
        assert second.startswith("req_1234567890_")

    def test_format(self):
        assert re.fullmatch(r"req_\d+_[a-z0-9]{7}", generate_request_id())


class TestPendingRequestTable:
    @pytest.mark.asyncio
    async def test_resolve_completes_waiter(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.APPROVAL)
        assert request.request_id in table

        assert table.resolve(request.request_id, "APPROVED") is True
        resolution = await table.wait(request)

        assert resolution.outcome is Outcome.RESOLVED
        assert resolution.value == "APPROVED"
        assert request.request_id not in table
        assert request.timer.cancelled()

    @pytest.mark.asyncio
    async def test_double_resolution_is_noop(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.PROMPT)
        assert table.resolve(request.request_id, "first") is True
        assert table.resolve(request.request_id, "second") is False
        assert (await table.wait(request)).value == "first"

    @pytest.mark.asyncio
    async def test_resolving_unknown_id_is_noop(self):
        table = PendingRequestTable()
        assert table.resolve("req_0_missing", "x") is False

    @pytest.mark.asyncio
    async def test_timeout(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.APPROVAL, timeout=0.01)
        resolution = await asyncio.wait_for(table.wait(request), timeout=1)
        assert resolution.outcome is Outcome.TIMEOUT
        assert resolution.value is None
        assert len(table) == 0

    @pytest.mark.asyncio
    async def test_resolve_after_timeout_is_noop(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.PROMPT, timeout=0.01)
        await table.wait(request)
        assert table.resolve(request.request_id, "late") is False

    @pytest.mark.asyncio
    async def test_timer_firing_after_claim_is_noop(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.APPROVAL)
        table.resolve(request.request_id, "DENIED")
        # a late timer callback must not overwrite the outcome
        table._expire(request.request_id)
        assert (await table.wait(request)).outcome is Outcome.RESOLVED

    @pytest.mark.asyncio
    async def test_default_timeouts_per_kind(self):
        table = PendingRequestTable(approval_timeout=30, prompt_timeout=60)
        loop = asyncio.get_running_loop()
        approval = table.register(RequestKind.APPROVAL)
        prompt = table.register(RequestKind.PROMPT)
        assert approval.timer.when() - loop.time() == pytest.approx(30, abs=1)
        assert prompt.timer.when() - loop.time() == pytest.approx(60, abs=1)
        table.discard(approval.request_id)
        table.discard(prompt.request_id)

    @pytest.mark.asyncio
    async def test_discard(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.PROMPT)
        assert table.discard(request.request_id) is True
        assert table.discard(request.request_id) is False
        assert (await table.wait(request)).outcome is Outcome.CANCELLED

    @pytest.mark.asyncio
    async def test_resolve_first_picks_oldest_of_kind(self):
        table = PendingRequestTable()
        approval = table.register(RequestKind.APPROVAL)
        older = table.register(RequestKind.PROMPT)
        newer = table.register(RequestKind.PROMPT)

        assert table.resolve_first(RequestKind.PROMPT, "answer") == older.request_id
        assert (await table.wait(older)).value == "answer"
        assert newer.request_id in table
        assert approval.request_id in table

        table.discard(approval.request_id)
        table.discard(newer.request_id)

    @pytest.mark.asyncio
    async def test_resolve_first_without_match(self):
        table = PendingRequestTable()
        table.register(RequestKind.APPROVAL)
        assert table.resolve_first(RequestKind.PROMPT, "text") is None
        assert len(table) == 1

    @pytest.mark.asyncio
    async def test_cancelled_waiter_discards_entry(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.PROMPT)
        waiter = asyncio.create_task(table.wait(request))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert request.request_id not in table

    @pytest.mark.asyncio
    async def test_attach_message(self):
        table = PendingRequestTable()
        request = table.register(RequestKind.APPROVAL)
        table.attach_message(request.request_id, 55)
        assert table.get(request.request_id).message_id == 55
        table.attach_message("req_0_gone", 1)  # no error
        table.discard(request.request_id)
