"""Tests for response classification."""

import json

import pytest
from pydantic import BaseModel, ValidationError

from paygate_sdk._internal.dispatch.classifier import classify, classify_error
from paygate_sdk.exceptions import (
    PaygateAPIError,
    PaygateAuthenticationError,
    PaygateCardError,
    PaygateInvalidRequestError,
)


class Charge(BaseModel):
    id: str
    amount: int | None = None


def error_body(**fields) -> str:
    return json.dumps({"error": fields})


class TestClassifySuccess:
    """Tests for 2xx responses."""

    @pytest.mark.parametrize("status_code", [200, 201, 204, 299])
    def test_decodes_result_type(self, status_code):
        """Should decode any 2xx body into the result type."""
        result = classify(status_code, '{"id": "ch_1", "amount": 100}', "req_1", Charge)
        assert result == Charge(id="ch_1", amount=100)

    def test_decodes_plain_types(self):
        """Should decode into non-model types too."""
        assert classify(200, '{"id": "x"}', None, dict) == {"id": "x"}

    def test_decode_failure_propagates(self):
        """Should raise when a success body does not match the result type."""
        with pytest.raises(ValidationError):
            classify(200, '{"amount": 1}', None, Charge)


class TestClassifyError:
    """Tests for the status to error mapping."""

    @pytest.mark.parametrize("status_code", [400, 404])
    def test_invalid_request(self, status_code):
        """Should map 400 and 404 to invalid request errors with the param."""
        error = classify_error(
            status_code, error_body(message="No such charge", param="id"), "req_1"
        )
        assert isinstance(error, PaygateInvalidRequestError)
        assert error.message == "No such charge"
        assert error.param == "id"
        assert error.status_code == status_code
        assert error.request_id == "req_1"

    def test_authentication(self):
        """Should map 401 to an authentication error."""
        error = classify_error(401, error_body(message="Invalid API Key"), "req_2")
        assert isinstance(error, PaygateAuthenticationError)
        assert str(error) == "Invalid API Key"
        assert error.request_id == "req_2"

    def test_card_error_populates_sub_codes(self):
        """Should map 402 to a card error carrying every sub-code."""
        body = error_body(
            type="card_error",
            message="card declined",
            code="card_declined",
            param="number",
            decline_code="insufficient_funds",
            charge="ch_9",
        )
        error = classify_error(402, body, "req_3")
        assert isinstance(error, PaygateCardError)
        assert error.message == "card declined"
        assert error.code == "card_declined"
        assert error.param == "number"
        assert error.decline_code == "insufficient_funds"
        assert error.charge == "ch_9"
        assert error.request_id == "req_3"

    def test_card_error_with_partial_payload(self):
        """Should leave absent sub-codes as None."""
        error = classify_error(402, error_body(message="card declined", code="card_declined"), None)
        assert isinstance(error, PaygateCardError)
        assert error.code == "card_declined"
        assert error.decline_code is None
        assert error.charge is None
        assert error.request_id is None

    @pytest.mark.parametrize("status_code", [100, 302, 403, 409, 429, 500, 503])
    def test_other_statuses_are_api_errors(self, status_code):
        """Should map every other non-2xx status to a generic API error."""
        error = classify_error(status_code, error_body(message="Something broke"), "req_4")
        assert type(error) is PaygateAPIError
        assert error.status_code == status_code

    def test_mapping_is_total(self):
        """Every non-2xx status should map to exactly one variant."""
        variants = (
            PaygateAuthenticationError,
            PaygateInvalidRequestError,
            PaygateCardError,
            PaygateAPIError,
        )
        for status_code in [*range(100, 200), *range(300, 600)]:
            error = classify(status_code, error_body(message="x"), None, dict)
            assert sum(isinstance(error, variant) for variant in variants) == 1

    @pytest.mark.parametrize("body", ["<html>Bad Gateway</html>", "", '{"unexpected": 1}'])
    def test_invalid_error_body(self, body):
        """Should classify unparseable error bodies as API errors."""
        error = classify_error(502, body, "req_5")
        assert type(error) is PaygateAPIError
        assert "Invalid response object from API" in error.message
        assert error.status_code == 502
        assert error.request_id == "req_5"
        assert isinstance(error.__cause__, ValidationError)

    def test_missing_message_gets_default(self):
        """Should still produce a message when the API omits one."""
        error = classify_error(500, error_body(type="api_error"), None)
        assert "500" in error.message
