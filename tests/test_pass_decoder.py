"""Tests for pass payload decoding."""

import json
from datetime import datetime, timezone
from urllib.parse import quote

import pytest

from gatepass.models.schemas import AccessClaim, AccessWindow
from gatepass.services.pass_decoder import PassDecoder
from gatepass.utils.exceptions import DecodeError, InvalidPayloadError

from .conftest import VALID_PASS


@pytest.fixture
def decoder():
    return PassDecoder(query_param="data")


def test_decodes_json_payload(decoder):
    claim = decoder.decode(VALID_PASS)

    assert claim.request_id == "2"
    assert claim.request_number == "REQ-00002"
    assert claim.requester_name == "Emmanuel Kamanda"
    assert claim.title == "Server room maintenance"
    assert claim.access.access_type == "physical"
    assert claim.facility == "server_room"
    assert claim.access.start == datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert claim.access.end == datetime(2099, 12, 31, tzinfo=timezone.utc)
    assert claim.verify_path == "/verify/REQ-00002"


def test_decodes_url_embedded_payload(decoder):
    raw = f"https://passes.example.com/verify?data={quote(VALID_PASS)}"

    assert decoder.decode(raw) == decoder.decode(VALID_PASS)


def test_url_form_ignores_other_query_params(decoder):
    raw = f"https://passes.example.com/p?lang=en&data={quote(VALID_PASS)}&v=2"

    assert decoder.decode(raw).request_number == "REQ-00002"


def test_missing_fields_stay_absent(decoder):
    claim = decoder.decode('{"number": "REQ-2"}')

    assert claim.request_number == "REQ-2"
    assert claim.access is None
    assert claim.request_id is None
    assert claim.requester_name is None
    assert claim.facility is None


def test_partial_access_block_keeps_absent_dates(decoder):
    claim = decoder.decode('{"number": "REQ-3", "access": {"facility": "lab", "end": null}}')

    assert claim.access == AccessWindow(facility="lab")
    assert claim.access.start is None
    assert claim.access.end is None


def test_unknown_fields_are_dropped(decoder):
    claim = decoder.decode('{"number": "REQ-4", "colour": "blue", "template": "IT Access Request"}')

    assert claim.template == "IT Access Request"
    assert "colour" not in claim.to_payload()


def test_instants_with_offsets_are_normalised_to_utc(decoder):
    claim = decoder.decode('{"number": "REQ-5", "access": {"start": "2024-03-01T10:00:00+02:00"}}')

    assert claim.access.start == datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "claim",
    [
        AccessClaim(request_number="REQ-2"),
        AccessClaim(
            request_id="9",
            request_number="REQ-9",
            requester_name='Ann "AJ" Jones',
            title="Night shift",
            template="IT Access Request",
            access=AccessWindow(
                access_type="physical",
                facility="data_center",
                level="restricted",
                start=datetime(2024, 1, 1, tzinfo=timezone.utc),
                end=datetime(2024, 2, 1, 17, 30, 15, 250000, tzinfo=timezone.utc),
            ),
            verify_path="/verify/REQ-9",
        ),
    ],
)
def test_encode_decode_round_trip(decoder, claim):
    assert decoder.decode(decoder.encode(claim)) == claim
    assert decoder.decode(decoder.encode_url(claim, "https://passes.example.com/v")) == claim


def test_encode_uses_wire_names(decoder):
    claim = AccessClaim(request_id="1", request_number="REQ-1", requester_name="Ann")

    assert json.loads(decoder.encode(claim)) == {"id": "1", "number": "REQ-1", "requester": "Ann"}


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "not a pass",
        "[1, 2, 3]",
        '"REQ-1"',
        '{"number": "REQ-1", "access": "server_room"}',
        '{"number": "REQ-1", "access": {"start": "yesterday"}}',
        "https://passes.example.com/verify?other=1",
        "https://passes.example.com/verify?data=not-json",
        "passes.example.com/verify?data=%7B%22number%22%3A%22REQ-1%22%7D",
    ],
)
def test_rejects_invalid_payloads(decoder, raw):
    with pytest.raises(InvalidPayloadError):
        decoder.decode(raw)


def test_invalid_payload_is_a_decode_error(decoder):
    with pytest.raises(DecodeError):
        decoder.decode("garbage")
