"""
Tests for data models, formatting helpers and settings.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from orcwallet.config import Settings
from orcwallet.formatting import format_address, format_balance
from orcwallet.models import (
    UTXO,
    BalanceInfo,
    NetworkType,
    PersistedConnection,
    SigningRequest,
    TransactionKind,
)
from tests.conftest import MAINNET_ADDRESS


class TestNetworkType:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("livenet", NetworkType.MAINNET),
            ("mainnet", NetworkType.MAINNET),
            ("Bitcoin", NetworkType.MAINNET),
            ("testnet", NetworkType.TESTNET),
            ("signet", NetworkType.TESTNET),
            ("testnet4", NetworkType.TESTNET),
            (" regtest ", NetworkType.REGTEST),
        ],
    )
    def test_parse(self, value: str, expected: NetworkType) -> None:
        assert NetworkType.parse(value) is expected

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError):
            NetworkType.parse("dogecoin")


class TestSigningRequest:
    def test_alias_and_defaults(self) -> None:
        request = SigningRequest.model_validate(
            {"type": "ORC721_DEPLOY", "data": {"name": "orcs"}, "tokenId": "7"}
        )
        assert request.kind is TransactionKind.NFT_DEPLOY
        assert request.token_id == "7"
        assert request.fee == 0
        assert request.recipient is None

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SigningRequest(type="ORC20_DEPLOY", fee=-1)

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SigningRequest(type="ORC1155_MINT")

    def test_data_must_be_json(self) -> None:
        with pytest.raises(ValidationError):
            SigningRequest(type="ORC20_DEPLOY", data={"blob": object()})

    def test_deeply_nested_data_rejected(self) -> None:
        data: dict = {}
        node = data
        for _ in range(12):
            node["child"] = {}
            node = node["child"]
        with pytest.raises(ValidationError, match="nesting depth"):
            SigningRequest(type="ORC20_DEPLOY", data=data)

    def test_frozen(self) -> None:
        request = SigningRequest(type="ORC20_DEPLOY")
        with pytest.raises(ValidationError):
            request.fee = 10


class TestPersistedConnection:
    def test_json_uses_wire_names(self) -> None:
        record = PersistedConnection(wallet_name="OKX", address=MAINNET_ADDRESS)
        raw = record.to_json()

        assert '"walletName":"OKX"' in raw
        assert PersistedConnection.from_json(raw) == record

    def test_empty_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PersistedConnection(wallet_name="", address=MAINNET_ADDRESS)


def test_utxo_outpoint() -> None:
    utxo = UTXO(txid="ab" * 32, vout=3, value=1_000)
    assert utxo.outpoint == ("ab" * 32, 3)
    assert utxo.confirmed is True


def test_balance_total() -> None:
    assert BalanceInfo(confirmed=5, unconfirmed=-2).total == 3
    assert BalanceInfo(confirmed=5).total == 5


class TestFormatting:
    def test_format_address(self) -> None:
        assert format_address(MAINNET_ADDRESS) == "bc1qar0s...zzwf5mdq"
        assert format_address(MAINNET_ADDRESS, 4) == "bc1q...5mdq"

    def test_format_short_and_empty(self) -> None:
        assert format_address("bc1qshort") == "bc1qshort"
        assert format_address(None) == ""
        assert format_address("") == ""

    @pytest.mark.parametrize(
        "sats,expected",
        [(0, "0.00000000"), (1, "0.00000001"), (42_000, "0.00042000"), (100_000_000, "1.00000000")],
    )
    def test_format_balance(self, sats: int, expected: str) -> None:
        assert format_balance(sats) == expected


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        settings = Settings()

        assert settings.mempool_api_url == "https://mempool.space/api"
        assert settings.min_utxo_value == 1000
        assert settings.default_fee_rate == 10
        assert settings.utxo_retry_delay == 1.0
        assert settings.connection_file == settings.state_dir / "connection.json"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ORC_DEFAULT_FEE_RATE", "25")
        monkeypatch.setenv("ORC_STATE_DIR", str(tmp_path / "state"))

        settings = Settings()

        assert settings.default_fee_rate == 25
        assert settings.connection_file == tmp_path / "state" / "connection.json"
