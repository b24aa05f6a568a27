"""
Canonical message construction and Ed25519 request signing.

Mutating Pacifica endpoints authenticate a request by a detached Ed25519
signature over a canonical message: a fixed subset of the request fields, in a
fixed order, joined by commas. The exchange recomputes the same message from
the delivered body, so the rendering rules here must stay byte-for-byte stable:

- symbol fields are upper-cased
- booleans render as ``true`` / ``false``
- integral numbers render without a fractional part (``10``, not ``10.0``)
- nested objects render as compact JSON of their declared subfields, in
  declared order, with absent optional subfields omitted

Keys and signatures use the base58 alphabet.
"""

import json
import logging
from decimal import Decimal
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from pacifica_mcp_server.errors import (
    ConfigurationError,
    NoIdentityConfigured,
    SigningError,
)
from pacifica_mcp_server.operations import FieldKind, OperationSpec, SignableField

logger = logging.getLogger(__name__)


SEPARATOR = ","
SIGNATURE_FIELD = "signature"

SEED_LENGTH = 32
KEYPAIR_LENGTH = 64


@dataclass(frozen=True)
class Identity:
    """Sender address and its base58-encoded secret key."""

    address: Optional[str]
    secret: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class SignedRequest:
    """A canonical message, its signature and the parameters it was built from."""

    message: str
    signature: str
    sender: str
    params: Dict[str, Any]

    def payload(self, sender_field: str = "user") -> Dict[str, Any]:
        """Build the JSON body sent to the exchange."""
        body: Dict[str, Any] = {sender_field: self.sender}
        body.update(self.params)
        body[SIGNATURE_FIELD] = self.signature
        return body


def _render_number(name: str, value: Any) -> Union[int, float]:
    # bool is an int subclass and must not pass as a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            f"Field '{name}' must be a number, got {type(value).__name__}"
        )
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _render_value(spec_field: SignableField, value: Any) -> Any:
    """Normalize a single field value; returns a JSON-compatible value."""
    kind = spec_field.kind

    if kind == FieldKind.SYMBOL or kind == FieldKind.TEXT:
        if not isinstance(value, str):
            raise ConfigurationError(
                f"Field '{spec_field.name}' must be a string, got {type(value).__name__}"
            )
        return value.upper() if kind == FieldKind.SYMBOL else value

    if kind == FieldKind.NUMBER:
        return _render_number(spec_field.name, value)

    if kind == FieldKind.BOOLEAN:
        if not isinstance(value, bool):
            raise ConfigurationError(
                f"Field '{spec_field.name}' must be a boolean, got {type(value).__name__}"
            )
        return value

    if kind == FieldKind.OBJECT:
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                f"Field '{spec_field.name}' must be an object, got {type(value).__name__}"
            )
        rendered = {}
        for sub in spec_field.subfields:
            sub_value = value.get(sub.name)
            if sub_value is None:
                if sub.required:
                    raise ConfigurationError(
                        f"Signable field '{spec_field.name}.{sub.name}' is missing"
                    )
                continue
            rendered[sub.name] = _render_value(sub, sub_value)
        return rendered

    raise ConfigurationError(f"Unsupported field kind: {kind}")


def _render_float(value: float) -> str:
    """Shortest round-trip form, with exponents only below 1e-6 (`1e-7`, not `1e-07`)."""
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{exponent:+d}"


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, float):
        return _render_float(value)
    return str(value)


def _wire_params(spec: OperationSpec, params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Request parameters as sent. Signed numbers and objects carry the same
    normalized values the canonical message was built from.
    """
    wire = {k: v for k, v in params.items() if v is not None}
    for spec_field in spec.signable_fields:
        if spec_field.kind in (FieldKind.NUMBER, FieldKind.OBJECT) and spec_field.name in wire:
            wire[spec_field.name] = _render_value(spec_field, wire[spec_field.name])
    return wire


def canonicalize(spec: OperationSpec, params: Mapping[str, Any]) -> str:
    """
    Build the canonical message for an operation.

    Fields are taken in the order declared by ``spec``, so the iteration order
    of ``params`` never matters.

    Args:
        spec: Operation whose signable fields define the message
        params: Validated tool parameters

    Returns:
        str: Comma-separated canonical message

    Raises:
        ConfigurationError: If a signable field is missing or has the wrong type
    """
    parts = []
    for spec_field in spec.signable_fields:
        value = params.get(spec_field.name)
        if value is None:
            raise ConfigurationError(
                f"Signable field '{spec_field.name}' missing for operation '{spec.name}'"
            )
        parts.append(_to_text(_render_value(spec_field, value)))
    return SEPARATOR.join(parts)


def _load_private_key(secret: str) -> Ed25519PrivateKey:
    """Decode a base58 secret (32-byte seed or 64-byte keypair) into a signing key."""
    try:
        raw = base58.b58decode(secret)
    except ValueError as e:
        raise SigningError(f"Private key is not valid base58: {e}") from e

    if len(raw) not in (SEED_LENGTH, KEYPAIR_LENGTH):
        raise SigningError(
            f"Private key must decode to {SEED_LENGTH} or {KEYPAIR_LENGTH} bytes, got {len(raw)}"
        )

    private_key = Ed25519PrivateKey.from_private_bytes(raw[:SEED_LENGTH])

    if len(raw) == KEYPAIR_LENGTH:
        public_bytes = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        if public_bytes != raw[SEED_LENGTH:]:
            raise SigningError("Private key public half does not match its seed")

    return private_key


def sign(message: str, identity: Optional[Identity]) -> str:
    """
    Produce a base58-encoded detached Ed25519 signature over ``message``.

    Raises:
        NoIdentityConfigured: If no secret key is available
        SigningError: If the key material is unusable
    """
    if identity is None or not identity.secret:
        raise NoIdentityConfigured(
            "No private key configured; set PACIFICA_PRIVATE_KEY to use signed operations"
        )

    private_key = _load_private_key(identity.secret)
    signature = private_key.sign(message.encode("utf-8"))
    return base58.b58encode(signature).decode("ascii")


def build_signed_request(
    spec: OperationSpec,
    params: Mapping[str, Any],
    identity: Optional[Identity],
) -> SignedRequest:
    """
    Canonicalize and sign ``params`` on behalf of ``identity``.

    All non-None parameters are carried in the request, including fields that
    do not take part in the signature.
    """
    if identity is None or not identity.address or not identity.secret:
        raise NoIdentityConfigured(
            "Signed operations require both PACIFICA_ADDRESS and PACIFICA_PRIVATE_KEY"
        )

    message = canonicalize(spec, params)
    signature = sign(message, identity)
    logger.debug(f"Signed request built for {spec.name}")

    return SignedRequest(
        message=message,
        signature=signature,
        sender=identity.address,
        params=_wire_params(spec, params),
    )


def attach_signature(
    spec: OperationSpec,
    params: Mapping[str, Any],
    sender: str,
    signature: str,
) -> SignedRequest:
    """Wrap a caller-supplied signature without signing anything locally."""
    return SignedRequest(
        message=canonicalize(spec, params),
        signature=signature,
        sender=sender,
        params=_wire_params(spec, params),
    )


def verify_signature(message: str, signature: str, address: str) -> bool:
    """
    Check a base58 signature against a base58 Ed25519 public key.

    Returns:
        bool: True if the signature is valid for exactly this message
    """
    try:
        public_key = Ed25519PublicKey.from_public_bytes(base58.b58decode(address))
        public_key.verify(base58.b58decode(signature), message.encode("utf-8"))
        return True
    except (InvalidSignature, ValueError):
        return False
