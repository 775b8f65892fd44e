"""Tests for the value codec and c32 addresses."""

from __future__ import annotations

import pytest

from indexer_service.services.clarity import (
    c32_address,
    c32_address_decode,
    cv_to_hex,
    decode_result,
    deserialize,
    encode_bool,
    encode_buffer,
    encode_err,
    encode_int,
    encode_list,
    encode_none,
    encode_ok,
    encode_principal,
    encode_some,
    encode_string_ascii,
    encode_string_utf8,
    encode_tuple,
    encode_uint,
    flatten_tuple,
    parse_event_payload,
    unwrap_optional,
    unwrap_response,
)
from tests.helpers import ALICE, event_record, u

DEPLOYER_ADDRESS = "ST356P5YEXBJC1ZANBWBNR0N0X7NT8AV7FZ017K55"


@pytest.mark.unit
class TestC32Addresses:
    """Test c32check address encoding."""

    def test_known_testnet_address_round_trips(self) -> None:
        """A real testnet address decodes to version 26 and re-encodes identically."""
        version, hash160 = c32_address_decode(DEPLOYER_ADDRESS)
        assert version == 26
        assert len(hash160) == 20
        assert c32_address(version, hash160) == DEPLOYER_ADDRESS

    def test_generated_address_has_testnet_prefix(self) -> None:
        assert ALICE.startswith("ST")

    def test_zero_hash_keeps_leading_zeros(self) -> None:
        """Leading zero bytes are kept as leading '0' characters."""
        address = c32_address(26, bytes(20))
        assert address.startswith("ST" + "0" * 20)
        assert c32_address_decode(address) == (26, bytes(20))

    def test_checksum_mismatch_rejected(self) -> None:
        tampered = DEPLOYER_ADDRESS[:-1] + ("6" if DEPLOYER_ADDRESS[-1] != "6" else "7")
        with pytest.raises(ValueError):
            c32_address_decode(tampered)

    @pytest.mark.parametrize("address", ["", "ST1", "XT356P5YEXBJC1ZANBWBNR0N0X7NT8AV7FZ017K55"])
    def test_malformed_addresses_rejected(self, address: str) -> None:
        with pytest.raises(ValueError):
            c32_address_decode(address)

    def test_invalid_character_rejected(self) -> None:
        with pytest.raises(ValueError):
            c32_address_decode("ST356P5YEXBJC1ZANBWBNR0N0X7NT8AV7FZ017K5!")


@pytest.mark.unit
class TestEncoding:
    """Test argument encoders."""

    def test_uint_matches_documented_hex(self) -> None:
        """Arguments match the hex strings the read API documents."""
        assert cv_to_hex(encode_uint(0)) == "0x0100000000000000000000000000000000"
        assert cv_to_hex(encode_uint(100_000_000)) == "0x01000000000000000000000005f5e100"

    def test_uint_range(self) -> None:
        with pytest.raises(ValueError):
            encode_uint(-1)
        with pytest.raises(ValueError):
            encode_uint(2**128)

    def test_int_range(self) -> None:
        with pytest.raises(ValueError):
            encode_int(2**127)

    def test_tuple_keys_are_sorted(self) -> None:
        """Field order in the input does not change the encoding."""
        first = encode_tuple({"b": encode_uint(1), "a": encode_uint(2)})
        second = encode_tuple({"a": encode_uint(2), "b": encode_uint(1)})
        assert first == second

    def test_contract_principal_prefix(self) -> None:
        encoded = encode_principal(f"{ALICE}.agent-registry")
        assert encoded[0] == 0x06
        assert encoded.endswith(b"agent-registry")

    def test_standard_principal_prefix(self) -> None:
        encoded = encode_principal(ALICE)
        assert encoded[0] == 0x05
        assert encoded[1] == 26
        assert len(encoded) == 22

    def test_invalid_principal_raises(self) -> None:
        with pytest.raises(ValueError):
            encode_principal("not-a-principal")


@pytest.mark.unit
class TestDecoding:
    """Test the decoder's output shape."""

    def test_uint(self) -> None:
        assert decode_result("0x01000000000000000000000005f5e100") == {
            "type": "uint",
            "value": "100000000",
        }

    def test_hex_without_prefix(self) -> None:
        assert decode_result(encode_uint(7).hex()) == {"type": "uint", "value": "7"}

    def test_negative_int(self) -> None:
        assert deserialize(encode_int(-5)) == {"type": "int", "value": "-5"}

    def test_bools(self) -> None:
        assert deserialize(encode_bool(True))["value"] is True
        assert deserialize(encode_bool(False))["value"] is False

    def test_none_and_some(self) -> None:
        assert deserialize(encode_none()) == {"type": "(optional none)", "value": None}
        some = deserialize(encode_some(encode_uint(3)))
        assert some == {"type": "(optional uint)", "value": {"type": "uint", "value": "3"}}

    def test_responses_carry_success(self) -> None:
        ok = deserialize(encode_ok(encode_uint(1)))
        err = deserialize(encode_err(encode_uint(2)))
        assert ok["success"] is True
        assert ok["type"].startswith("(response")
        assert err["success"] is False

    def test_principals(self) -> None:
        assert deserialize(encode_principal(ALICE)) == {"type": "principal", "value": ALICE}
        contract = f"{ALICE}.task-board"
        assert deserialize(encode_principal(contract))["value"] == contract

    def test_strings(self) -> None:
        assert deserialize(encode_string_ascii("hello"))["value"] == "hello"
        utf8 = deserialize(encode_string_utf8("héllo"))
        assert utf8["value"] == "héllo"
        assert utf8["type"].startswith("(string-utf8")

    def test_buffer(self) -> None:
        assert deserialize(encode_buffer(b"\x01\x02"))["value"] == "0x0102"

    def test_list(self) -> None:
        node = deserialize(encode_list([encode_uint(1), encode_uint(2)]))
        assert node["type"] == "(list 2 uint)"
        assert [item["value"] for item in node["value"]] == ["1", "2"]

    def test_tuple(self) -> None:
        node = deserialize(encode_tuple({"name": encode_string_ascii("x"), "id": encode_uint(4)}))
        assert node["type"].startswith("(tuple")
        assert flatten_tuple(node) == {"id": "4", "name": "x"}

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "zz",
            "0x01",
            "0xff",
            cv_to_hex(encode_uint(1)) + "00",
            cv_to_hex(encode_string_ascii("abc"))[:-2],
        ],
    )
    def test_malformed_input_yields_none(self, value: str | None) -> None:
        """Truncated, trailing, unknown or non-hex input never raises."""
        assert decode_result(value) is None

    def test_deeply_nested_input_yields_none(self) -> None:
        encoded = encode_uint(1)
        for _ in range(100):
            encoded = encode_some(encoded)
        assert decode_result(cv_to_hex(encoded)) is None


@pytest.mark.unit
class TestTreeHelpers:
    """Test unwrapping and flattening."""

    def test_unwrap_optional(self) -> None:
        inner = {"type": "uint", "value": "1"}
        assert unwrap_optional(None) is None
        assert unwrap_optional({"type": "(optional none)", "value": None}) is None
        assert unwrap_optional({"type": "(optional uint)", "value": inner}) == inner
        assert unwrap_optional(inner) == inner

    def test_unwrap_response(self) -> None:
        inner = {"type": "uint", "value": "1"}
        assert unwrap_response(deserialize(encode_ok(encode_uint(1)))) == inner
        assert unwrap_response(deserialize(encode_err(encode_uint(1)))) is None
        assert unwrap_response(None) is None
        assert unwrap_response(inner) == inner

    @pytest.mark.parametrize("node", [None, 5, "x", {}, {"type": "tuple", "value": []}])
    def test_flatten_tuple_never_fails(self, node: object) -> None:
        assert flatten_tuple(node) == {}

    def test_flatten_keeps_optional_wrappers_one_level_deep(self) -> None:
        node = deserialize(encode_tuple({"agent": encode_some(encode_principal(ALICE))}))
        assert flatten_tuple(node) == {"agent": {"type": "principal", "value": ALICE}}


@pytest.mark.unit
class TestParseEventPayload:
    """Test extraction of printed event payloads."""

    def test_valid_record(self) -> None:
        payload = parse_event_payload(event_record("bid-placed", task_id=u(3)))
        assert payload == {"event": "bid-placed", "task-id": "3"}

    @pytest.mark.parametrize(
        "record",
        [
            None,
            {},
            {"contract_log": None},
            {"contract_log": {"value": None}},
            {"contract_log": {"value": {"hex": "not-hex"}}},
            {"event_type": "stx_asset", "asset": {}},
        ],
    )
    def test_malformed_records_yield_none(self, record: object) -> None:
        assert parse_event_payload(record) is None

    def test_non_tuple_payload_is_empty(self) -> None:
        record = {"contract_log": {"value": {"hex": cv_to_hex(encode_uint(1))}}}
        assert parse_event_payload(record) == {}
