"""Adressage de contenu: sérialisation exacte et empreinte SHA-256.

L'empreinte porte sur les octets exacts remis au publisher (pas de hash structurel): deux
sérialisations qui diffèrent par l'ordre des clés ou les espaces donnent deux empreintes.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

HASH_PREFIX = "0x"


def serialize(payload: Any) -> bytes:
    """Sérialise en JSON compact UTF-8, dans l'ordre d'insertion des clés.

    Lève `TypeError` si le payload n'est pas sérialisable.
    """
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def digest(data: bytes) -> str:
    """Empreinte hexadécimale SHA-256 des octets fournis."""
    if not isinstance(data, bytes | bytearray | memoryview):
        raise TypeError(f"bytes expected, got {type(data).__name__}")
    return hashlib.sha256(data).hexdigest()


def content_hash(data: bytes) -> str:
    """Empreinte préfixée `0x`, telle qu'enregistrée on-chain."""
    return HASH_PREFIX + digest(data)


def matches(data: bytes, expected: str) -> bool:
    """Vérifie qu'un contenu récupéré correspond à l'empreinte annoncée (avec ou sans 0x)."""
    expected = expected.strip().lower()
    if expected.startswith(HASH_PREFIX):
        expected = expected[len(HASH_PREFIX) :]
    return digest(data) == expected
