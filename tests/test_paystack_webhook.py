"""Tests for Paystack webhook signature verification and parsing."""

import pytest

from guesthouse.domain.errors import InvalidSignatureError
from guesthouse.paystack.webhook import (
    CHARGE_SUCCESS,
    InvalidPayloadError,
    compute_signature,
    verify_and_extract,
    verify_signature,
)

from tests.helpers import PAYSTACK_SECRET, paystack_event, signed


class TestVerifySignature:
    def test_valid_signature(self):
        payload, signature = signed(paystack_event())
        verify_signature(payload, signature, PAYSTACK_SECRET)

    def test_uppercase_hex_accepted(self):
        payload, signature = signed(paystack_event())
        verify_signature(payload, signature.upper(), PAYSTACK_SECRET)

    def test_sha512_hex_length(self):
        assert len(compute_signature(b"{}", PAYSTACK_SECRET)) == 128

    def test_missing_signature(self):
        with pytest.raises(InvalidSignatureError):
            verify_signature(paystack_event(), None, PAYSTACK_SECRET)

    def test_wrong_secret(self):
        payload, signature = signed(paystack_event(), secret="sk_test_other")
        with pytest.raises(InvalidSignatureError):
            verify_signature(payload, signature, PAYSTACK_SECRET)

    def test_tampered_payload(self):
        payload, signature = signed(paystack_event(reference="ref_original"))
        tampered = payload.replace(b"ref_original", b"ref_attacker")
        with pytest.raises(InvalidSignatureError):
            verify_signature(tampered, signature, PAYSTACK_SECRET)


class TestVerifyAndExtract:
    def test_extracts_event_and_reference(self):
        payload, signature = signed(paystack_event(reference="ref_123456789"))

        event = verify_and_extract(payload, signature, PAYSTACK_SECRET)

        assert event.event_type == CHARGE_SUCCESS
        assert event.reference == "ref_123456789"
        assert event.is_successful_charge

    def test_other_event_type(self):
        payload, signature = signed(paystack_event(event="transfer.success"))

        event = verify_and_extract(payload, signature, PAYSTACK_SECRET)

        assert not event.is_successful_charge

    def test_signature_checked_before_parsing(self):
        """Garbage with a bad signature is a signature error, not a payload error."""
        with pytest.raises(InvalidSignatureError):
            verify_and_extract(b"not json", "deadbeef", PAYSTACK_SECRET)

    def test_invalid_json(self):
        payload, signature = signed(b"not json")
        with pytest.raises(InvalidPayloadError):
            verify_and_extract(payload, signature, PAYSTACK_SECRET)

    def test_missing_event_type(self):
        payload, signature = signed(b'{"data": {"reference": "ref_1"}}')
        with pytest.raises(InvalidPayloadError):
            verify_and_extract(payload, signature, PAYSTACK_SECRET)

    def test_missing_data_gives_no_reference(self):
        payload, signature = signed(b'{"event": "charge.success"}')

        event = verify_and_extract(payload, signature, PAYSTACK_SECRET)

        assert event.reference is None
