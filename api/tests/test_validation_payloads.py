"""Tests for typed request metadata."""
import pytest

from tracker.core.validation_payloads import (
    BudgetIncreasePayload,
    EmptyPayload,
    PayloadError,
    StatusChangePayload,
    decode_payload,
    encode_payload,
    parse_payload,
    payload_to_metadata,
)
from tracker.models import ProjectStatus, RequestType


class TestParsePayload:
    def test_budget_keeps_integer(self):
        payload = parse_payload(RequestType.BUDGET_INCREASE, {"newBudget": 50000000})
        assert isinstance(payload, BudgetIncreasePayload)
        assert payload.new_budget == 50000000
        assert isinstance(payload.new_budget, int)
        assert encode_payload(payload) == '{"newBudget": 50000000}'

    def test_budget_accepts_float(self):
        payload = parse_payload(RequestType.BUDGET_INCREASE, {"newBudget": 1250.5})
        assert payload.new_budget == 1250.5

    @pytest.mark.parametrize("metadata", [
        None,
        {},
        {"newBudget": "lots"},
        {"newBudget": True},
        {"newBudget": -1},
        {"budget": 100},
        {"newBudget": float("nan")},
        {"newBudget": float("inf")},
        {"newBudget": float("-inf")},
        {"newBudget": 1e30},
        {"newBudget": 10 ** 16},
    ])
    def test_budget_rejects_bad_metadata(self, metadata):
        with pytest.raises(PayloadError):
            parse_payload(RequestType.BUDGET_INCREASE, metadata)

    def test_budget_just_below_column_limit(self):
        payload = parse_payload(RequestType.BUDGET_INCREASE, {"newBudget": 10 ** 16 - 1})
        assert payload.new_budget == 9999999999999999

    def test_status_change(self):
        payload = parse_payload(RequestType.STATUS_CHANGE, {"newStatus": "SUSPENDED"})
        assert isinstance(payload, StatusChangePayload)
        assert payload.new_status == ProjectStatus.SUSPENDED
        assert payload_to_metadata(payload) == {"newStatus": "SUSPENDED"}

    @pytest.mark.parametrize("metadata", [None, {"newStatus": "ARCHIVED"}, {"status": "BLOCKED"}])
    def test_status_change_rejects_bad_metadata(self, metadata):
        with pytest.raises(PayloadError):
            parse_payload(RequestType.STATUS_CHANGE, metadata)

    @pytest.mark.parametrize("request_type", [RequestType.PROJECT_APPROVAL, RequestType.UNBLOCK_REQUEST])
    def test_types_without_payload_ignore_metadata(self, request_type):
        payload = parse_payload(request_type, {"newBudget": 10})
        assert isinstance(payload, EmptyPayload)
        assert encode_payload(payload) is None
        assert payload_to_metadata(payload) is None


class TestDecodePayload:
    def test_decodes_stored_json(self):
        payload = decode_payload("BUDGET_INCREASE", '{"newBudget": 42}')
        assert payload.new_budget == 42

    @pytest.mark.parametrize("raw", [None, "", "{broken", '{"newBudget": "x"}', "[]"])
    def test_unreadable_budget_is_treated_as_absent(self, raw):
        assert isinstance(decode_payload("BUDGET_INCREASE", raw), EmptyPayload)

    def test_unreadable_status_is_treated_as_absent(self):
        assert isinstance(decode_payload("STATUS_CHANGE", '{"newStatus": "GONE"}'), EmptyPayload)

    def test_payload_free_type_ignores_stored_metadata(self):
        assert isinstance(decode_payload("UNBLOCK_REQUEST", '{"newBudget": 1}'), EmptyPayload)

    @pytest.mark.parametrize("raw", ['{"newBudget": NaN}', '{"newBudget": Infinity}', '{"newBudget": 1e30}'])
    def test_out_of_range_stored_budget_is_treated_as_absent(self, raw):
        assert isinstance(decode_payload("BUDGET_INCREASE", raw), EmptyPayload)
