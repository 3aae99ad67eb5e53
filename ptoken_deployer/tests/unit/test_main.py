"""
Unit tests for the command line front-end

Only offline commands run end to end here; chain-touching commands are
covered in test_commands.py.
"""

from unittest.mock import AsyncMock, patch

import pytest

from ptoken_deployer.core.reporter import RecordingReporter
from ptoken_deployer.main import build_parser, main
from ptoken_deployer.tests.conftest import RECIPIENT_ADDRESS, TOKEN_ADDRESS

ADMIN = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every CLI test in an empty directory with no deployer environment"""
    monkeypatch.chdir(tmp_path)
    for key in ("PTOKEN_CONFIG", "PTOKEN_NETWORK", "PTOKEN_RPC_URL", "ENDPOINT",
                "PTOKEN_PRIVATE_KEY", "PRIVATE_KEY", "ETHERSCAN_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


class TestParser:
    """Test argument parsing"""

    def test_peg_out_defaults(self):
        args = build_parser().parse_args(["pegOut", TOKEN_ADDRESS, "1000", "btc-address"])

        assert args.userData == "0x"
        assert args.destinationChainId == "0x00000000"
        assert args.amount == "1000"

    def test_peg_out_user_data(self):
        args = build_parser().parse_args(["pegOut", TOKEN_ADDRESS, "1", "btc-address", "--userData=0xc0ffee"])

        assert args.userData == "0xc0ffee"

    def test_gas_price_accepts_hex(self):
        args = build_parser().parse_args(["--gas-price", "0x3b9aca00", "showSuggestedFees"])

        assert args.gas_price == 10**9

    @pytest.mark.parametrize("value", ["0", "-5", "cheap"])
    def test_gas_price_rejects_invalid(self, value):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--gas-price", value, "showSuggestedFees"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Test the top-level error boundary"""

    @pytest.mark.asyncio
    async def test_get_encoded_init_args(self):
        reporter = RecordingReporter()

        code = await main(["getEncodedInitArgs", "Test", "TST", ADMIN], reporter)

        assert code == 0
        (encoded, _), = reporter.messages
        assert encoded.startswith("0x")
        assert reporter.errors == []

    @pytest.mark.asyncio
    async def test_get_encoded_proxy_constructor_args(self):
        reporter = RecordingReporter()

        code = await main([
            "getEncodedProxyConstructorArgs", "Test", "TST", TOKEN_ADDRESS, ADMIN, RECIPIENT_ADDRESS,
            "--originChainId", "0x00000001",
        ], reporter)

        assert code == 0
        (encoded, _), = reporter.messages
        assert not encoded.startswith("0x")
        assert len(encoded) == 832

    @pytest.mark.asyncio
    async def test_encoding_error_is_reported_once(self):
        reporter = RecordingReporter()

        code = await main(["getEncodedInitArgs", "Test", "TST", "0x1234"], reporter)

        assert code == 1
        assert reporter.messages == []
        assert len(reporter.errors) == 1
        assert "Invalid address value" in reporter.errors[0]

    @pytest.mark.asyncio
    async def test_invalid_user_data_fails_before_connecting(self):
        reporter = RecordingReporter()

        with patch("ptoken_deployer.commands.context.ChainClient.from_rpc_url") as from_rpc_url:
            code = await main(["pegOut", TOKEN_ADDRESS, "1", "btc-address", "--userData=zz"], reporter)

        assert code == 1
        assert "Not valid hex" in reporter.errors[0]
        from_rpc_url.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_explicit_config(self):
        reporter = RecordingReporter()

        code = await main(["--config", "missing.yaml", "showExistingContracts"], reporter)

        assert code == 1
        assert "Configuration file not found" in reporter.errors[0]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported(self):
        reporter = RecordingReporter()

        with patch("ptoken_deployer.main.show_existing_contracts", AsyncMock(side_effect=RuntimeError("boom"))):
            code = await main(["showExistingContracts"], reporter)

        assert code == 1
        assert reporter.errors == ["boom"]

    @pytest.mark.asyncio
    async def test_show_existing_contracts_from_config(self, isolated_cwd):
        (isolated_cwd / "ptoken.yaml").write_text(
            f"existing_contracts:\n  ropsten: '{TOKEN_ADDRESS}'\n"
        )
        reporter = RecordingReporter()

        code = await main(["showExistingContracts"], reporter)

        assert code == 0
        assert reporter.tables == [(["network", "pToken logic contract"], [["ropsten", TOKEN_ADDRESS]])]

    @pytest.mark.asyncio
    async def test_console_output(self, capsys):
        code = await main(["getEncodedInitArgs", "Test", "TST", "not-an-address"])

        assert code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("✘ Invalid address value")
