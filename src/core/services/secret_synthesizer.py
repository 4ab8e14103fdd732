"""Generación de contraseñas para los alias creados.

Por qué `secrets` y no el generador con semilla:
- Las contraseñas no deben poder reproducirse conociendo la semilla del batch.

Política:
- Longitud mínima 8 (12 por defecto).
- Al menos un carácter de cada clase (minúscula, mayúscula, dígito, símbolo);
  el resto uniforme sobre la unión y todo barajado al final.
- Unicidad dentro del batch con un máximo de `MAX_SECRET_ATTEMPTS` sorteos.
"""

from __future__ import annotations

import secrets
import string
from typing import Iterable

from core.domain.models import CredentialPair
from core.errors import CapacityExhaustedError, InvalidParameterError

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()-_=+[]{}|;:,.<>?"
CHARACTER_CLASSES: tuple[str, ...] = (LOWERCASE, UPPERCASE, DIGITS, SYMBOLS)
ALL_CHARACTERS = "".join(CHARACTER_CLASSES)

MIN_SECRET_LENGTH = 8
DEFAULT_SECRET_LENGTH = 12
MAX_SECRET_ATTEMPTS = 100

_sysrandom = secrets.SystemRandom()


def generate_secret(length: int = DEFAULT_SECRET_LENGTH) -> str:
    if length < MIN_SECRET_LENGTH:
        raise InvalidParameterError(f"Password length must be at least {MIN_SECRET_LENGTH} characters")

    chars = [secrets.choice(charset) for charset in CHARACTER_CLASSES]
    chars.extend(secrets.choice(ALL_CHARACTERS) for _ in range(length - len(chars)))
    _sysrandom.shuffle(chars)
    return "".join(chars)


def generate_unique_secrets(
    addresses: Iterable[str],
    *,
    length: int = DEFAULT_SECRET_LENGTH,
) -> list[CredentialPair]:
    """Una `CredentialPair` por dirección, sin contraseñas repetidas en el batch."""

    if length < MIN_SECRET_LENGTH:
        raise InvalidParameterError(f"Password length must be at least {MIN_SECRET_LENGTH} characters")

    used: set[str] = set()
    credentials: list[CredentialPair] = []
    for address in addresses:
        for _ in range(MAX_SECRET_ATTEMPTS):
            candidate = generate_secret(length)
            if candidate not in used:
                break
        else:
            raise CapacityExhaustedError(
                f"Failed to generate a unique password after {MAX_SECRET_ATTEMPTS} attempts"
            )
        used.add(candidate)
        credentials.append(CredentialPair(address=address, secret=candidate))
    return credentials
