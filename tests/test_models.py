"""Tests for distributor models."""
import pytest

from distributor.errors import MalformedResponseError
from distributor.models import (
    DistributionConfig,
    DistributionResult,
    TransferResponse,
    ValidatedRow,
    format_usd,
)
from distributor.orchestrator.models import BatchState, RunMode

ADDRESS = "0x" + "ab" * 20


class TestDistributionResult:
    def test_ok_result(self):
        result = DistributionResult.ok(
            address=ADDRESS,
            tokens=40,
            transaction_hash="0xhash",
            distribution_id="dist-1",
        )
        assert result.success is True
        assert result.transaction_hash == "0xhash"
        assert result.error is None

    def test_fail_result(self):
        result = DistributionResult.fail(ADDRESS, 40, "Network error", "timed out")
        assert result.success is False
        assert result.error == "Network error"
        assert result.details == "timed out"
        assert result.transaction_hash is None

    def test_immutable(self):
        result = DistributionResult.ok(ADDRESS, 20, "0xhash")
        with pytest.raises(Exception):
            result.success = False

    def test_from_response_keeps_row_identity(self):
        row = ValidatedRow(ADDRESS, 100, is_valid=True, usd_value=5.0)
        response = TransferResponse(success=True, transaction_hash="0xabc", distribution_id="d1", message="ok")

        result = DistributionResult.from_response(row, response)

        assert result.address == ADDRESS
        assert result.tokens == 100
        assert result.transaction_hash == "0xabc"
        assert result.message == "ok"

    def test_from_failed_response_without_error_gets_default(self):
        row = ValidatedRow(ADDRESS, 100, is_valid=True, usd_value=5.0)
        result = DistributionResult.from_response(row, TransferResponse(success=False))
        assert result.success is False
        assert result.error == "Distribution failed"

    def test_to_dict_uses_service_field_names(self):
        data = DistributionResult.ok(ADDRESS, 20, "0xhash", "dist-1").to_dict()
        assert data["transactionHash"] == "0xhash"
        assert data["distributionId"] == "dist-1"
        assert data["address"] == ADDRESS


class TestTransferResponse:
    def test_from_payload_maps_camel_case(self):
        response = TransferResponse.from_payload({
            "success": True,
            "transactionHash": "0xhash",
            "distributionId": "abc",
            "message": "Successfully distributed 100 G33 tokens",
            "tokenAmount": 100,
        })
        assert response.success is True
        assert response.transaction_hash == "0xhash"
        assert response.distribution_id == "abc"
        assert response.error is None

    def test_from_payload_failure(self):
        response = TransferResponse.from_payload({
            "success": False,
            "error": "Token distribution failed",
            "details": "nonce too low",
        })
        assert response.success is False
        assert response.details == "nonce too low"

    @pytest.mark.parametrize("payload", [[], "ok", None, {}, {"success": "true"}, {"error": "x"}])
    def test_from_payload_rejects_malformed(self, payload):
        with pytest.raises(MalformedResponseError):
            TransferResponse.from_payload(payload)


class TestValidatedRow:
    def test_describe_integral_float(self):
        row = ValidatedRow(ADDRESS, 40.0, is_valid=True, usd_value=2.0)
        assert row.describe() == f"{ADDRESS} (40 tokens)"

    def test_describe_fractional(self):
        row = ValidatedRow(ADDRESS, 57.5, is_valid=True, usd_value=2.875)
        assert row.describe() == f"{ADDRESS} (57.5 tokens)"

    def test_request_round_trip(self):
        row = ValidatedRow(ADDRESS, 20, is_valid=True, usd_value=1.0)
        assert row.request.recipient_address == ADDRESS
        assert row.request.token_amount == 20


class TestFormatUsd:
    def test_two_decimals(self):
        assert format_usd(20) == "1.00"
        assert format_usd(100) == "5.00"
        assert format_usd(57) == "2.85"


class TestDistributionConfig:
    def test_default_config(self):
        config = DistributionConfig()
        assert config.endpoint == "/api/tokens/manual-distribute"
        assert config.admin_id == "unknown"
        assert config.item_delay == 2.0
        assert config.wait_for_confirmation is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DISTRIBUTOR_API_URL", "http://localhost:3000")
        monkeypatch.setenv("DISTRIBUTOR_ADMIN_ID", "admin-7")
        monkeypatch.setenv("DISTRIBUTOR_ITEM_DELAY", "0.5")
        monkeypatch.delenv("DISTRIBUTOR_ENDPOINT", raising=False)
        monkeypatch.delenv("DISTRIBUTOR_TIMEOUT", raising=False)

        config = DistributionConfig.from_env()

        assert config.api_url == "http://localhost:3000"
        assert config.admin_id == "admin-7"
        assert config.item_delay == 0.5

    def test_from_env_overrides_win(self, monkeypatch):
        monkeypatch.setenv("DISTRIBUTOR_API_URL", "http://env")
        monkeypatch.delenv("DISTRIBUTOR_ADMIN_ID", raising=False)
        config = DistributionConfig.from_env(api_url="http://flag", admin_id=None)
        assert config.api_url == "http://flag"
        assert config.admin_id == "unknown"


class TestBatchState:
    def test_with_result_returns_new_state(self):
        state = BatchState(total=2)
        updated = state.with_result(DistributionResult.ok(ADDRESS, 20, "0x1"))

        assert state.results == ()
        assert state.completed == 0
        assert updated.completed == 1
        assert updated.remaining == 1
        assert len(updated.results) == 1

    def test_failed_result_counts_as_failed(self):
        state = BatchState(total=1).with_result(DistributionResult.fail(ADDRESS, 20, "Network error"))
        assert state.failed == 1
        assert state.completed == 0
        assert state.remaining == 0
        assert state.all_success is False

    def test_with_result_refuses_overflow(self):
        state = BatchState(total=1).with_result(DistributionResult.ok(ADDRESS, 20))
        with pytest.raises(ValueError):
            state.with_result(DistributionResult.ok(ADDRESS, 20))

    def test_immutable(self):
        state = BatchState(total=1)
        with pytest.raises(Exception):
            state.completed = 1

    def test_terminal_modes(self):
        assert RunMode.COMPLETED.is_terminal
        assert RunMode.STOPPED.is_terminal
        assert RunMode.FAILED.is_terminal
        assert not RunMode.PAUSED.is_terminal
        assert not RunMode.RUNNING.is_terminal
        assert BatchState(total=0, mode=RunMode.STOPPED).is_finished
