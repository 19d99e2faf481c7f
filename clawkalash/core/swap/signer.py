"""
Signing capability used by the swap core.

Key storage lives outside this package: a signer is handed key material and
exposes only an address plus the two signing operations the router needs.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Protocol, runtime_checkable

from eth_account import Account

from .models import SignedPayload


@runtime_checkable
class Signer(Protocol):
    """Address plus structured-data and transaction signing."""

    @property
    def address(self) -> str: ...

    def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, Any],
        message: Dict[str, Any],
        primary_type: str,
    ) -> str: ...

    def sign_transaction(self, tx: Dict[str, Any]) -> str: ...


def _hex(value: Any) -> str:
    text = value.hex() if hasattr(value, "hex") else str(value)
    return text if text.startswith("0x") else f"0x{text}"


def _base_type(type_name: str) -> str:
    return type_name.split("[", 1)[0]


def reachable_types(types: Dict[str, Any], primary_type: str) -> Dict[str, Any]:
    """Struct definitions reachable from ``primary_type``.

    Only these take part in the EIP-712 hash; anything else in ``types`` is
    dropped so the signing library cannot pick a different root struct.
    """
    if primary_type not in types:
        raise ValueError(f"Primary type {primary_type!r} is not defined in types")

    reachable: Dict[str, Any] = {}
    pending = [primary_type]
    while pending:
        name = pending.pop()
        if name in reachable:
            continue
        reachable[name] = types[name]
        for field in types[name]:
            dependency = _base_type(field["type"])
            if dependency in types and dependency != "EIP712Domain":
                pending.append(dependency)
    return reachable


class LocalAccountSigner:
    """``Signer`` backed by an in-process ``eth_account`` account."""

    def __init__(self, key_or_mnemonic: str):
        secret = key_or_mnemonic.strip()
        if not secret:
            raise ValueError("A private key or mnemonic is required")

        if " " in secret:
            Account.enable_unaudited_hdwallet_features()
            self._account = Account.from_mnemonic(secret)
        else:
            key = secret if secret.startswith("0x") else f"0x{secret}"
            self._account = Account.from_key(key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, Any],
        message: Dict[str, Any],
        primary_type: str,
    ) -> str:
        full_message_types = reachable_types(types, primary_type)
        # Without an explicit EIP712Domain eth-account derives it from the domain keys
        if "EIP712Domain" in types:
            full_message_types["EIP712Domain"] = types["EIP712Domain"]

        signed = self._account.sign_typed_data(full_message={
            "types": full_message_types,
            "primaryType": primary_type,
            "domain": domain,
            "message": message,
        })
        return _hex(signed.signature)

    def sign_transaction(self, tx: Dict[str, Any]) -> str:
        signed = self._account.sign_transaction(tx)
        return _hex(signed.raw_transaction)


@dataclass(frozen=True)
class SignedAuthorization:
    """Signature plus the witness the settlement service needs back."""

    signature: str
    witness: Dict[str, Any]


def sign_permit(signer: Signer, payload: SignedPayload) -> SignedAuthorization:
    """Sign the quote's typed data exactly as received.

    Deep copies go to the signer so the quote's payload cannot be mutated by
    the signing library; the witness is returned untouched.
    """
    signature = signer.sign_typed_data(
        copy.deepcopy(payload.domain),
        copy.deepcopy(payload.types),
        copy.deepcopy(payload.message),
        payload.primary_type,
    )
    return SignedAuthorization(signature=signature, witness=payload.witness)
