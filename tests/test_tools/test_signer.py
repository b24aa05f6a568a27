"""
Unit tests for canonical message construction and request signing.

These tests cover:
- Canonical message rendering per field kind
- Independence from parameter dict ordering
- Fail-fast behaviour on missing or mistyped signable fields
- Ed25519 signing with base58 keys and signatures
- Identity checks before any cryptographic work
"""

import pytest
from unittest.mock import patch

import base58
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from pacifica_mcp_server.errors import (
    ConfigurationError,
    NoIdentityConfigured,
    SigningError,
)
from pacifica_mcp_server.operations import OPERATIONS, FieldKind, get_operation
from pacifica_mcp_server.signer import (
    Identity,
    attach_signature,
    build_signed_request,
    canonicalize,
    sign,
    verify_signature,
)


# ============================================================================
# TEST FIXTURES
# ============================================================================


SEED = bytes.fromhex(
    "9f2c4b7a1d08e3f5a6b0c3d4e7f812349abcedf00123456789abcdef01234567"
)


def _public_bytes(seed: bytes) -> bytes:
    return Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


@pytest.fixture
def address():
    return base58.b58encode(_public_bytes(SEED)).decode("ascii")


@pytest.fixture
def identity(address):
    """Identity with a 64-byte (seed + public key) secret."""
    secret = base58.b58encode(SEED + _public_bytes(SEED)).decode("ascii")
    return Identity(address=address, secret=secret)


@pytest.fixture
def order_params():
    return {
        "symbol": "btc",
        "tick_level": 87000,
        "amount": "0.01",
        "side": "bid",
        "tif": "GTC",
        "reduce_only": False,
    }


# ============================================================================
# OPERATION TABLE
# ============================================================================


class TestOperationTable:
    """Test the operation table is internally consistent."""

    def test_signed_operations_are_posts_from_user(self):
        for spec in OPERATIONS.values():
            if spec.requires_signature:
                assert spec.method == "POST"
                assert spec.sender_field == "user"
                assert spec.signable_fields

    def test_unsigned_operations_have_no_signable_fields(self):
        for spec in OPERATIONS.values():
            if not spec.requires_signature:
                assert spec.signable_fields == ()

    def test_open_order_field_order(self):
        spec = get_operation("open_order")
        assert [f.name for f in spec.signable_fields] == [
            "symbol", "tick_level", "amount", "side", "tif", "reduce_only"
        ]
        assert spec.signable_fields[0].kind == FieldKind.SYMBOL

    def test_unknown_operation(self):
        with pytest.raises(ConfigurationError):
            get_operation("does_not_exist")


# ============================================================================
# CANONICALIZATION
# ============================================================================


class TestCanonicalize:
    """Test canonical message construction."""

    def test_place_order_message(self, order_params):
        message = canonicalize(get_operation("open_order"), order_params)
        assert message == "BTC,87000,0.01,bid,GTC,false"

    def test_update_leverage_message(self):
        message = canonicalize(get_operation("update_leverage"), {"symbol": "eth", "leverage": 10})
        assert message == "ETH,10"

    def test_integral_float_renders_without_fraction(self):
        message = canonicalize(get_operation("update_leverage"), {"symbol": "eth", "leverage": 10.0})
        assert message == "ETH,10"

    def test_fractional_number(self):
        assert canonicalize(get_operation("withdraw"), {"amount": 0.5}) == "0.5"

    def test_small_fraction_renders_plain_decimal(self):
        assert canonicalize(get_operation("withdraw"), {"amount": 0.00015}) == "0.00015"
        assert canonicalize(get_operation("withdraw"), {"amount": 0.000001}) == "0.000001"
        assert canonicalize(get_operation("withdraw"), {"amount": 1.5e-05}) == "0.000015"

    def test_tiny_fraction_exponent_form(self):
        assert canonicalize(get_operation("withdraw"), {"amount": 1e-7}) == "1e-7"
        assert canonicalize(get_operation("withdraw"), {"amount": 2.5e-8}) == "2.5e-8"

    def test_boolean_true(self):
        message = canonicalize(get_operation("update_margin_mode"), {"symbol": "Sol", "is_isolated": True})
        assert message == "SOL,true"

    def test_text_field_not_upper_cased(self):
        message = canonicalize(get_operation("bind_agent_wallet"), {"agent_wallet": "AgentWallet123"})
        assert message == "AgentWallet123"

    def test_deterministic(self, order_params):
        spec = get_operation("open_order")
        assert canonicalize(spec, order_params) == canonicalize(spec, dict(order_params))

    def test_parameter_order_does_not_matter(self, order_params):
        spec = get_operation("open_order")
        reversed_params = dict(reversed(list(order_params.items())))
        assert list(reversed_params) != list(order_params)
        assert canonicalize(spec, reversed_params) == canonicalize(spec, order_params)

    def test_non_signable_fields_ignored(self, order_params):
        spec = get_operation("open_order")
        extra = dict(order_params, limit=10, offset=5)
        assert canonicalize(spec, extra) == canonicalize(spec, order_params)

    def test_stop_order_full(self):
        params = {
            "symbol": "btc",
            "side": "ask",
            "reduce_only": True,
            "stop_order": {"amount": "0.01", "limit_tick_level": 84800, "stop_tick_level": 85000},
        }
        message = canonicalize(get_operation("create_stop_order"), params)
        assert message == (
            'BTC,ask,true,{"stop_tick_level":85000,"limit_tick_level":84800,"amount":"0.01"}'
        )

    def test_stop_order_optional_subfields_omitted(self):
        params = {
            "symbol": "btc",
            "side": "bid",
            "reduce_only": False,
            "stop_order": {"stop_tick_level": 85000},
        }
        message = canonicalize(get_operation("create_stop_order"), params)
        assert message == 'BTC,bid,false,{"stop_tick_level":85000}'

    def test_stop_order_missing_trigger(self):
        params = {
            "symbol": "btc",
            "side": "bid",
            "reduce_only": False,
            "stop_order": {"amount": "0.01"},
        }
        with pytest.raises(ConfigurationError, match="stop_order.stop_tick_level"):
            canonicalize(get_operation("create_stop_order"), params)

    def test_missing_field_raises(self, order_params):
        del order_params["tif"]
        with pytest.raises(ConfigurationError, match="tif"):
            canonicalize(get_operation("open_order"), order_params)

    def test_none_field_raises(self, order_params):
        order_params["amount"] = None
        with pytest.raises(ConfigurationError, match="amount"):
            canonicalize(get_operation("open_order"), order_params)

    def test_wrong_type_raises(self):
        with pytest.raises(ConfigurationError):
            canonicalize(get_operation("update_leverage"), {"symbol": "eth", "leverage": "10"})

    def test_boolean_is_not_a_number(self):
        with pytest.raises(ConfigurationError):
            canonicalize(get_operation("update_leverage"), {"symbol": "eth", "leverage": True})

    def test_unsigned_operation_has_empty_message(self):
        assert canonicalize(get_operation("get_info"), {}) == ""


# ============================================================================
# SIGNING
# ============================================================================


class TestSign:
    """Test Ed25519 signing and verification."""

    def test_sign_and_verify(self, identity, address):
        message = "BTC,87000,0.01,bid,GTC,false"
        signature = sign(message, identity)
        assert isinstance(signature, str) and signature
        assert len(base58.b58decode(signature)) == 64
        assert verify_signature(message, signature, address) is True

    def test_single_character_change_invalidates(self, identity, address):
        message = "ETH,10"
        signature = sign(message, identity)
        for i, char in enumerate(message):
            replacement = "X" if char != "X" else "Y"
            tampered = message[:i] + replacement + message[i + 1:]
            assert verify_signature(tampered, signature, address) is False

    def test_seed_only_secret(self, address):
        seed_identity = Identity(address=address, secret=base58.b58encode(SEED).decode("ascii"))
        signature = sign("ETH,10", seed_identity)
        assert verify_signature("ETH,10", signature, address) is True

    def test_no_identity(self):
        with pytest.raises(NoIdentityConfigured):
            sign("ETH,10", None)

    def test_identity_without_secret(self, address):
        with pytest.raises(NoIdentityConfigured):
            sign("ETH,10", Identity(address=address))

    def test_missing_identity_checked_before_crypto(self):
        with patch("pacifica_mcp_server.signer.Ed25519PrivateKey") as mock_key, \
                patch("pacifica_mcp_server.signer.base58") as mock_b58:
            with pytest.raises(NoIdentityConfigured):
                sign("ETH,10", Identity(address="addr", secret=None))
            mock_key.from_private_bytes.assert_not_called()
            mock_b58.b58decode.assert_not_called()

    def test_wrong_key_length(self, address):
        bad = Identity(address=address, secret=base58.b58encode(b"\x01" * 16).decode("ascii"))
        with pytest.raises(SigningError, match="32 or 64 bytes"):
            sign("ETH,10", bad)

    def test_invalid_base58(self, address):
        with pytest.raises(SigningError):
            sign("ETH,10", Identity(address=address, secret="0OIl"))

    def test_mismatched_keypair(self, address):
        other_public = _public_bytes(bytes(32))
        bad = Identity(address=address, secret=base58.b58encode(SEED + other_public).decode("ascii"))
        with pytest.raises(SigningError, match="does not match"):
            sign("ETH,10", bad)

    def test_verify_rejects_garbage(self, address):
        assert verify_signature("ETH,10", "not-base58!", address) is False
        assert verify_signature("ETH,10", base58.b58encode(b"\x00" * 64).decode(), address) is False

    def test_secret_not_in_repr(self, identity):
        assert identity.secret not in repr(identity)


# ============================================================================
# SIGNED REQUESTS
# ============================================================================


class TestBuildSignedRequest:
    """Test assembly of signed request payloads."""

    def test_payload_fields(self, identity, address, order_params):
        request = build_signed_request(get_operation("open_order"), order_params, identity)
        payload = request.payload()

        assert request.message == "BTC,87000,0.01,bid,GTC,false"
        assert payload["user"] == address
        assert payload["signature"] == request.signature
        for key, value in order_params.items():
            assert payload[key] == value

    def test_recipient_can_recompute_message(self, identity, address, order_params):
        spec = get_operation("open_order")
        payload = build_signed_request(spec, order_params, identity).payload()

        received = {k: v for k, v in payload.items() if k not in ("user", "signature")}
        assert verify_signature(canonicalize(spec, received), payload["signature"], address)

    def test_pass_through_fields_kept_and_none_dropped(self, identity, order_params):
        params = dict(order_params, client_tag="abc", unused=None)
        payload = build_signed_request(get_operation("open_order"), params, identity).payload()
        assert payload["client_tag"] == "abc"
        assert "unused" not in payload

    def test_integral_float_sent_as_int(self, identity, address):
        spec = get_operation("withdraw")
        request = build_signed_request(spec, {"amount": 100.0}, identity)
        payload = request.payload()

        assert request.message == "100"
        assert payload["amount"] == 100
        assert isinstance(payload["amount"], int)
        assert verify_signature(canonicalize(spec, {"amount": payload["amount"]}), payload["signature"], address)

    def test_stop_order_body_matches_message(self, identity):
        params = {
            "symbol": "btc",
            "side": "ask",
            "reduce_only": True,
            "stop_order": {"stop_tick_level": 85000.0, "amount": "0.01", "limit_tick_level": None},
        }
        payload = build_signed_request(get_operation("create_stop_order"), params, identity).payload()
        assert payload["stop_order"] == {"stop_tick_level": 85000, "amount": "0.01"}

    def test_missing_address(self, identity, order_params):
        no_address = Identity(address=None, secret=identity.secret)
        with pytest.raises(NoIdentityConfigured):
            build_signed_request(get_operation("open_order"), order_params, no_address)

    def test_missing_field_raises_before_signing(self, identity, order_params):
        del order_params["side"]
        with patch("pacifica_mcp_server.signer.sign") as mock_sign:
            with pytest.raises(ConfigurationError):
                build_signed_request(get_operation("open_order"), order_params, identity)
            mock_sign.assert_not_called()

    def test_attach_signature(self, address):
        spec = get_operation("update_leverage")
        with patch("pacifica_mcp_server.signer.sign") as mock_sign:
            request = attach_signature(spec, {"symbol": "eth", "leverage": 10}, address, "sig")
            mock_sign.assert_not_called()
        assert request.message == "ETH,10"
        assert request.payload() == {
            "user": address,
            "symbol": "eth",
            "leverage": 10,
            "signature": "sig",
        }
