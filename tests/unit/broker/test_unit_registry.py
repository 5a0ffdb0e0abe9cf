# tests/unit/broker/test_unit_registry.py
"""Tests for broker/registry.py: pending request bookkeeping."""

from __future__ import annotations

import asyncio
import logging

import pytest

from inspectorbroker.broker.registry import PendingRequestEntry, PendingRequestRegistry
from inspectorbroker.core.errors import ConnectionClosed, UserRejected
from inspectorbroker.core.models import RequestKind

C = RequestKind.COMPLETION
E = RequestKind.ELICITATION


class TestPendingRequestEntry:
    @pytest.mark.asyncio
    async def test_resolve_once(self):
        entry = PendingRequestEntry(asyncio.get_running_loop().create_future())
        entry.resolve("first")
        entry.resolve("second")
        entry.reject(RuntimeError("late"))
        assert entry.future.result() == "first"


class TestSettleAndFail:
    @pytest.mark.asyncio
    async def test_settle_resolves_and_removes(self):
        registry = PendingRequestRegistry()
        future = registry.open(C, "c-1")
        assert (C, "c-1") in registry

        assert registry.settle(C, "c-1", "answer") is True
        assert await future == "answer"
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_fail_rejects_and_removes(self):
        registry = PendingRequestRegistry()
        future = registry.open(E, "e-1")

        assert registry.fail(E, "e-1", UserRejected()) is True
        with pytest.raises(UserRejected):
            await future
        assert not registry.has_pending(E)

    @pytest.mark.asyncio
    async def test_unknown_id_is_noop(self, caplog):
        caplog.set_level(logging.WARNING, logger="inspectorbroker")
        registry = PendingRequestRegistry()
        registry.open(C, "c-1")

        assert registry.settle(C, "nope", "x") is False
        assert registry.fail(C, "nope", UserRejected()) is False
        assert registry.pending_ids(C) == ["c-1"]
        assert "No resolver found" in caplog.text

    @pytest.mark.asyncio
    async def test_kinds_are_independent(self):
        registry = PendingRequestRegistry()
        registry.open(C, "same-id")
        registry.open(E, "same-id")

        assert registry.settle(E, "same-id", "e") is True
        assert registry.pending_ids(C) == ["same-id"]
        assert registry.pending_ids(E) == []

    @pytest.mark.asyncio
    async def test_settle_twice(self):
        registry = PendingRequestRegistry()
        registry.open(C, "c-1")
        assert registry.settle(C, "c-1", 1) is True
        assert registry.settle(C, "c-1", 2) is False

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self):
        registry = PendingRequestRegistry()
        registry.open(C, "c-1")
        with pytest.raises(ValueError, match="Duplicate"):
            registry.open(C, "c-1")

    @pytest.mark.asyncio
    async def test_discard_leaves_future_pending(self):
        registry = PendingRequestRegistry()
        future = registry.open(C, "c-1")
        registry.discard(C, "c-1")
        registry.discard(C, "c-1")
        assert len(registry) == 0
        assert not future.done()


class TestDrainAll:
    @pytest.mark.asyncio
    async def test_rejects_everything(self):
        registry = PendingRequestRegistry()
        futures = [registry.open(C, "c-1"), registry.open(C, "c-2"), registry.open(E, "e-1")]

        assert registry.drain_all() == 3
        assert len(registry) == 0
        for future in futures:
            with pytest.raises(ConnectionClosed):
                await future

    @pytest.mark.asyncio
    async def test_custom_reason(self):
        registry = PendingRequestRegistry()
        future = registry.open(E, "e-1")
        registry.drain_all(ConnectionClosed("Server went away"))
        with pytest.raises(ConnectionClosed, match="Server went away"):
            await future

    @pytest.mark.asyncio
    async def test_second_drain_is_noop(self):
        registry = PendingRequestRegistry()
        registry.open(C, "c-1")
        assert registry.drain_all() == 1
        assert registry.drain_all() == 0

    @pytest.mark.asyncio
    async def test_settle_after_drain_ignored(self):
        registry = PendingRequestRegistry()
        future = registry.open(C, "c-1")
        registry.drain_all()
        assert registry.settle(C, "c-1", "late") is False
        with pytest.raises(ConnectionClosed):
            await future

    def test_empty_registry(self):
        assert PendingRequestRegistry().drain_all() == 0
