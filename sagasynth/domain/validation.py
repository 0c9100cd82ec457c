"""Validation des montants ETH et des adresses avant toute soumission on-chain."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from web3 import Web3

from sagasynth.core.constants import ETH_DECIMALS
from sagasynth.domain.errors import ValidationError


def parse_eth_amount(
    raw: Any,
    *,
    maximum: Decimal,
    minimum: Decimal | None = None,
    field: str = "amount",
    label: str = "donation",
) -> Decimal:
    """Convertit un montant (str ou nombre) en `Decimal` borné.

    Rejette: valeur absente, non numérique, non finie, nulle ou négative, inférieure à
    `minimum`, supérieure à `maximum`, ou plus précise que le wei.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("Amount is required", fields=[field])
    if isinstance(raw, bool):
        raise ValidationError("Invalid amount format", fields=[field], details=repr(raw))
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Invalid amount format", fields=[field], details=str(raw)) from exc
    if not value.is_finite():
        raise ValidationError("Invalid amount format", fields=[field], details=str(raw))
    if value <= 0:
        raise ValidationError("Invalid amount. Must be a positive number.", fields=[field])
    if minimum is not None and value < minimum:
        raise ValidationError(
            f"Amount too small. Minimum {minimum} ETH per {label}.", fields=[field]
        )
    if value > maximum:
        raise ValidationError(
            f"Amount too large. Maximum {maximum} ETH per {label}.", fields=[field]
        )
    if -value.as_tuple().exponent > ETH_DECIMALS:
        raise ValidationError(
            f"Invalid amount. At most {ETH_DECIMALS} decimal places.", fields=[field]
        )
    return value


def require_address(value: Any, field: str = "address") -> str:
    """Retourne l'adresse au format checksum ou lève `ValidationError`."""
    if not value:
        raise ValidationError(f"{field} is required", fields=[field])
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValidationError("Invalid Ethereum address", fields=[field], details=str(value))
    return Web3.to_checksum_address(value)


def require_fields(values: dict[str, Any], message: str = "Missing required fields") -> None:
    """Lève `ValidationError` listant les champs absents (None ou chaîne vide)."""
    missing = [k for k, v in values.items() if v is None or v == ""]
    if missing:
        raise ValidationError(message, fields=missing)
