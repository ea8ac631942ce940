"""Tests for the transaction builder."""

import dataclasses
import time

import pytest

from conftest import CALLDATA, MON, ROUTER, SENDER, USDC
from monoswap.errors import InvalidAmount, MalformedQuote
from monoswap.routing.base import Quote, QuoteTransaction
from monoswap.web.services.transaction_builder import (
    APPROVAL_GAS_LIMIT,
    ERC20_APPROVE_SELECTOR,
    MAX_UINT256,
    TransactionBuilder,
    apply_gas_buffer,
    encode_allowance_call,
)


def reconciled_quote(to=ROUTER, data=CALLDATA, value="50000000000000000", gas=215000):
    return Quote(
        from_token=MON,
        to_token=USDC,
        from_amount="0.05",
        to_amount="1.234567",
        estimated_gas=gas,
        transaction=QuoteTransaction(to=to, data=data, value=value, gas_limit=gas),
    )


class TestBuildTransaction:
    """Tests for swap transaction assembly."""

    def test_fields_come_from_quote(self):
        builder = TransactionBuilder(chain_id=10143)

        tx = builder.build_transaction(reconciled_quote())

        assert tx.to == ROUTER
        assert tx.data == CALLDATA
        assert tx.value == "50000000000000000"
        assert tx.gas_limit == 215000
        assert tx.chain_id == 10143

    def test_gas_is_not_inflated(self):
        """The builder uses the estimate as-is; margins are caller policy."""
        tx = TransactionBuilder().build_transaction(reconciled_quote(gas=123456))
        assert tx.gas_limit == 123456

    def test_rpc_dict_uses_hex_quantities(self):
        tx = TransactionBuilder(chain_id=10143).build_transaction(reconciled_quote())

        rpc = tx.to_rpc_dict()

        assert rpc["value"] == "0xb1a2bc2ec50000"
        assert rpc["gas"] == hex(215000)
        assert rpc["chainId"] == hex(10143)

    @pytest.mark.parametrize("to,data", [(None, CALLDATA), (ROUTER, None), (ROUTER, "0x")])
    def test_missing_target_or_calldata(self, to, data):
        with pytest.raises(MalformedQuote):
            TransactionBuilder().build_transaction(reconciled_quote(to=to, data=data))

    @pytest.mark.parametrize("value", [None, "0x0", "0xb1a2bc2ec50000", "-1"])
    def test_unreconciled_value_rejected(self, value):
        with pytest.raises(MalformedQuote):
            TransactionBuilder().build_transaction(reconciled_quote(value=value))

    def test_quote_age_does_not_block_build(self):
        """Approval confirmation may sit between fetch and build."""
        quote = dataclasses.replace(reconciled_quote(), timestamp=time.time() - 600)

        tx = TransactionBuilder().build_transaction(quote)

        assert tx.to == ROUTER
        assert quote.to_dict()["timestamp"] == quote.timestamp

    def test_non_hex_calldata_rejected(self):
        with pytest.raises(MalformedQuote):
            TransactionBuilder().build_transaction(reconciled_quote(data="0xnothex"))


class TestBuildApproval:
    """Tests for bounded ERC20 approvals."""

    def test_approval_calldata(self):
        tx = TransactionBuilder().build_approval(USDC, ROUTER, 100)

        assert tx.to == USDC
        assert tx.value == "0"
        assert tx.gas_limit == APPROVAL_GAS_LIMIT
        assert tx.data.startswith(ERC20_APPROVE_SELECTOR)
        assert tx.data[10:74] == ROUTER[2:].lower().zfill(64)
        assert int(tx.data[74:], 16) == 100

    def test_unlimited_approval_refused(self):
        with pytest.raises(InvalidAmount):
            TransactionBuilder().build_approval(USDC, ROUTER, MAX_UINT256)

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5])
    def test_invalid_amount(self, amount):
        with pytest.raises(InvalidAmount):
            TransactionBuilder().build_approval(USDC, ROUTER, amount)

    def test_invalid_spender(self):
        with pytest.raises(ValueError):
            TransactionBuilder().build_approval(USDC, "0xabc", 1)


class TestHelpers:
    def test_allowance_calldata(self):
        data = encode_allowance_call(SENDER, ROUTER)

        assert data.startswith("0xdd62ed3e")
        assert len(data) == 10 + 128
        assert data.endswith(ROUTER[2:].lower())

    def test_gas_buffer(self):
        tx = TransactionBuilder().build_transaction(reconciled_quote(gas=200000))

        buffered = apply_gas_buffer(tx, 10)

        assert buffered.gas_limit == 220000
        assert tx.gas_limit == 200000

    def test_negative_gas_buffer(self):
        tx = TransactionBuilder().build_transaction(reconciled_quote())
        with pytest.raises(ValueError):
            apply_gas_buffer(tx, -5)
