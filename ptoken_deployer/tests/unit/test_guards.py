"""Unit tests for pre-flight guards and stage composition"""

from unittest.mock import AsyncMock, Mock

import pytest

from ptoken_deployer.core.guards import check_amount, check_is_hex, check_token_balance_is_sufficient
from ptoken_deployer.core.pipeline import Pipeline
from ptoken_deployer.tests.conftest import SIGNER_ADDRESS, encode_uint
from ptoken_deployer.utils.exceptions import InsufficientBalanceError, ValidationError


class TestCheckIsHex:
    """Test user data validation"""

    def test_prefixed_and_bare_normalize_equally(self):
        assert check_is_hex("0xdead") == check_is_hex("dead") == "0xdead"

    def test_uppercase_is_lowered(self):
        assert check_is_hex("0xDEAD") == "0xdead"

    @pytest.mark.parametrize("value", ["0x", "", None])
    def test_empty_payload(self, value):
        assert check_is_hex(value) == "0x"

    @pytest.mark.parametrize("value", ["zz", "0xabc", "0xdeadbeefg0", 42])
    def test_rejects_non_hex(self, value):
        with pytest.raises(ValidationError):
            check_is_hex(value)


class TestCheckAmount:
    """Test token amount validation"""

    def test_accepts_decimal_string(self):
        assert check_amount("1337") == 1337

    @pytest.mark.parametrize("amount", ["-1", "1.5", "abc", -5, "1_000", "+5", " 5", "１２"])
    def test_rejects_invalid(self, amount):
        with pytest.raises(ValidationError):
            check_amount(amount)


class TestBalanceGuard:
    """Test token balance check"""

    @pytest.mark.asyncio
    async def test_sufficient_balance_passes_contract_through(self, mock_client, ptoken):
        mock_client.call.return_value = encode_uint(100)

        result = await check_token_balance_is_sufficient(100)(ptoken)

        assert result is ptoken
        to, data = mock_client.call.call_args.args
        assert to == ptoken.address
        assert data.startswith("0x70a08231")
        assert data.lower().endswith(SIGNER_ADDRESS[2:].lower())

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, mock_client, ptoken):
        mock_client.call.return_value = encode_uint(99)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await check_token_balance_is_sufficient("100")(ptoken)

        assert exc_info.value.balance == 99
        assert exc_info.value.amount == 100
        assert exc_info.value.details == {"balance": 99, "amount": 100}

    @pytest.mark.asyncio
    async def test_invalid_amount_skips_balance_query(self, mock_client, ptoken):
        with pytest.raises(ValidationError):
            await check_token_balance_is_sufficient("lots")(ptoken)

        mock_client.call.assert_not_called()


class TestPipeline:
    """Test sequential stage composition"""

    @pytest.mark.asyncio
    async def test_threads_value_through_sync_and_async_stages(self):
        async def double(value):
            return value * 2

        pipeline = Pipeline("math").then(lambda v: v + 1).then(double).then(str)

        assert await pipeline.run(1) == "4"
        assert len(pipeline) == 3

    @pytest.mark.asyncio
    async def test_first_error_stops_the_run(self):
        later = AsyncMock()

        def fail(_):
            raise ValidationError("bad input")

        pipeline = Pipeline("failing", [Mock(return_value=1), fail, later])

        with pytest.raises(ValidationError, match="bad input"):
            await pipeline.run()

        later.assert_not_called()

    @pytest.mark.asyncio
    async def test_stages_run_in_order(self):
        calls = []

        def record(name):
            async def stage(value):
                calls.append(name)
                return value
            return stage

        pipeline = Pipeline("ordered")
        for name in ("a", "b", "c"):
            pipeline.then(record(name))

        await pipeline.run(None)
        assert calls == ["a", "b", "c"]
