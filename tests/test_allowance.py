"""Tests for the ERC20 allowance handshake."""

import time

import pytest

from conftest import ROUTER, SENDER, USDC
from monoswap.errors import (
    ApprovalFailed,
    ApprovalSubmissionFailed,
    ChainRpcError,
    ConfirmationTimeout,
    InvalidAmount,
)
from monoswap.swap.allowance import AllowanceManager, AllowanceStatus


@pytest.fixture
def manager(fake_chain, settings):
    return AllowanceManager(chain=fake_chain, settings=settings)


class TestCheckAllowance:
    """Tests for reading and classifying allowances."""

    @pytest.mark.asyncio
    async def test_insufficient(self, manager, fake_chain):
        fake_chain.allowance = 40

        state = await manager.check_allowance(SENDER, ROUTER, USDC, 100)

        assert state.status == AllowanceStatus.INSUFFICIENT_NEEDS_APPROVAL
        assert state.current_allowance == 40
        assert state.shortfall == 60
        assert not state.is_sufficient

    @pytest.mark.asyncio
    async def test_sufficient(self, manager, fake_chain):
        fake_chain.allowance = 150

        state = await manager.check_allowance(SENDER, ROUTER, USDC, 100)

        assert state.status == AllowanceStatus.SUFFICIENT
        assert state.shortfall == 0

    @pytest.mark.asyncio
    async def test_exact_amount_is_sufficient(self, manager, fake_chain):
        fake_chain.allowance = 100
        state = await manager.check_allowance(SENDER, ROUTER, USDC, 100)
        assert state.is_sufficient

    @pytest.mark.asyncio
    async def test_checks_are_idempotent_and_uncached(self, manager, fake_chain):
        """Each check reads the chain; unchanged chain state gives the same answer."""
        fake_chain.allowance = 40

        first = await manager.check_allowance(SENDER, ROUTER, USDC, 100)
        second = await manager.check_allowance(SENDER, ROUTER, USDC, 100)

        assert first == second
        assert len(fake_chain.calls) == 2
        assert fake_chain.sent == []

    @pytest.mark.asyncio
    async def test_reads_allowance_of_token_contract(self, manager, fake_chain):
        await manager.check_allowance(SENDER, ROUTER, USDC, 1)

        to, data = fake_chain.calls[0]
        assert to == USDC
        assert data.startswith("0xdd62ed3e")

    @pytest.mark.asyncio
    async def test_native_token_has_no_allowance(self, manager):
        with pytest.raises(ValueError):
            await manager.check_allowance(SENDER, ROUTER, "0x" + "0" * 40, 1)

    @pytest.mark.asyncio
    async def test_negative_required_amount(self, manager):
        with pytest.raises(InvalidAmount):
            await manager.check_allowance(SENDER, ROUTER, USDC, -1)

    @pytest.mark.asyncio
    async def test_many_owners_leave_no_state_behind(self, manager, fake_chain):
        """A long-lived manager does not accumulate per-pair entries."""
        attributes_before = dict(vars(manager))
        fake_chain.allowance = 5

        for i in range(1, 501):
            owner = "0x" + f"{i:040x}"
            state = await manager.check_allowance(owner, ROUTER, USDC, 10)
            assert state.status == AllowanceStatus.INSUFFICIENT_NEEDS_APPROVAL

        assert vars(manager) == attributes_before


class TestApprove:
    """Tests for approval submission."""

    @pytest.mark.asyncio
    async def test_approves_exact_amount(self, manager, fake_chain):
        tx_hash = await manager.approve(SENDER, ROUTER, USDC, 100)

        assert tx_hash.startswith("0x")
        sent = fake_chain.sent[0]
        assert sent["from"] == SENDER
        assert sent["to"] == USDC
        assert sent["value"] == "0x0"
        assert int(sent["data"][-64:], 16) == 100

    @pytest.mark.asyncio
    async def test_signer_rejection(self, manager, fake_chain):
        fake_chain.send_error = RuntimeError("user rejected")

        with pytest.raises(ApprovalSubmissionFailed, match="user rejected"):
            await manager.approve(SENDER, ROUTER, USDC, 100)


class TestWaitForConfirmation:
    """Tests for bounded receipt polling."""

    @pytest.mark.asyncio
    async def test_times_out_after_exactly_max_attempts(self, manager, fake_chain):
        """Three attempts at 10 ms: three lookups, then a timeout."""
        fake_chain.confirm_after = None

        started = time.monotonic()
        with pytest.raises(ConfirmationTimeout) as exc_info:
            await manager.wait_for_confirmation("0xabc", max_attempts=3, poll_interval_ms=10)
        elapsed = time.monotonic() - started

        assert fake_chain.receipt_lookups == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.tx_hash == "0xabc"
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_confirmed_on_later_attempt(self, manager, fake_chain):
        fake_chain.confirm_after = 3

        assert await manager.wait_for_confirmation("0xabc", max_attempts=5) is True
        assert fake_chain.receipt_lookups == 3

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, manager, fake_chain):
        fake_chain.receipt_status = "0x0"
        assert await manager.wait_for_confirmation("0xabc") is False

    @pytest.mark.asyncio
    async def test_rpc_errors_count_as_attempts(self, manager, fake_chain):
        async def failing_lookup(tx_hash):
            fake_chain.receipt_lookups += 1
            raise ChainRpcError("node down")

        fake_chain.get_transaction_receipt = failing_lookup

        with pytest.raises(ConfirmationTimeout):
            await manager.wait_for_confirmation("0xabc", max_attempts=2)
        assert fake_chain.receipt_lookups == 2

    @pytest.mark.asyncio
    async def test_max_attempts_must_be_positive(self, manager):
        with pytest.raises(ValueError):
            await manager.wait_for_confirmation("0xabc", max_attempts=0)


class TestEnsureAllowance:
    """Tests for the full check/approve/confirm handshake."""

    @pytest.mark.asyncio
    async def test_sufficient_allowance_sends_nothing(self, manager, fake_chain):
        fake_chain.allowance = 500

        state = await manager.ensure_allowance(SENDER, ROUTER, USDC, 100)

        assert state.is_sufficient
        assert fake_chain.sent == []
        assert fake_chain.receipt_lookups == 0

    @pytest.mark.asyncio
    async def test_approves_and_confirms(self, manager, fake_chain):
        fake_chain.allowance = 40

        state = await manager.ensure_allowance(SENDER, ROUTER, USDC, 100)

        assert state.is_sufficient
        assert state.current_allowance == 100
        assert len(fake_chain.sent) == 1
        assert len(fake_chain.calls) == 2

    @pytest.mark.asyncio
    async def test_reverted_approval(self, manager, fake_chain):
        fake_chain.receipt_status = "0x0"

        with pytest.raises(ApprovalFailed) as exc_info:
            await manager.ensure_allowance(SENDER, ROUTER, USDC, 100)

        assert exc_info.value.tx_hash is not None

    @pytest.mark.asyncio
    async def test_allowance_still_short_after_confirmation(self, manager, fake_chain):
        fake_chain.approve_sets_allowance = False

        with pytest.raises(ApprovalFailed, match="still"):
            await manager.ensure_allowance(SENDER, ROUTER, USDC, 100)

    @pytest.mark.asyncio
    async def test_timeout_is_not_retried(self, manager, fake_chain):
        fake_chain.confirm_after = None

        with pytest.raises(ConfirmationTimeout):
            await manager.ensure_allowance(SENDER, ROUTER, USDC, 100, max_attempts=2)

        assert len(fake_chain.sent) == 1


class TestTransactionStatus:
    @pytest.mark.asyncio
    async def test_pending(self, manager, fake_chain):
        fake_chain.confirm_after = None

        status = await manager.get_transaction_status("0xabc")

        assert status.status == "pending"
        assert status.block_number is None

    @pytest.mark.asyncio
    async def test_confirmed(self, manager):
        status = await manager.get_transaction_status("0xabc")

        assert status.status == "confirmed"
        assert status.block_number == 16
        assert status.gas_used == 0xB411

    @pytest.mark.asyncio
    async def test_failed(self, manager, fake_chain):
        fake_chain.receipt_status = "0x0"

        status = await manager.get_transaction_status("0xabc")

        assert status.status == "failed"
        assert status.error
