"""Canonical content fingerprints for change detection.

A fingerprint is a SHA-256 digest over a canonical JSON serialization,
rendered as ``sha256:<hex>``. Object keys are sorted at every depth; array
order is preserved.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

HASH_ALGORITHM = "sha256"

Fingerprint = str


def canonicalize(value: Any) -> str:
    """Serialize a JSON-representable value with keys sorted at every level.

    Integral floats serialize like integers so ``1.0`` and ``1`` are the same
    JSON number on both sides of a comparison.

    Args:
        value: Mapping, sequence, scalar, None, or pydantic model

    Returns:
        Canonical JSON string

    Raises:
        TypeError: If the value is not JSON-representable
    """
    if value is None:
        return "null"
    if isinstance(value, BaseModel):
        return canonicalize(value.model_dump(mode="json", exclude_none=True))
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return json.dumps(int(value))
    if isinstance(value, str | int | float):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, Mapping):
        pairs = [
            f"{json.dumps(str(key), ensure_ascii=False)}:{canonicalize(value[key])}"
            for key in sorted(value, key=str)
        ]
        return "{" + ",".join(pairs) + "}"
    if isinstance(value, list | tuple):
        return "[" + ",".join(canonicalize(item) for item in value) + "]"
    raise TypeError(f"Cannot canonicalize value of type {type(value).__name__}")


def _digest(data: str) -> Fingerprint:
    return f"{HASH_ALGORITHM}:{hashlib.sha256(data.encode('utf-8')).hexdigest()}"


def fingerprint(document: Any) -> Fingerprint:
    """Compute the content fingerprint of a structured document.

    Two documents that are deep-equal produce the same fingerprint regardless
    of key insertion order.
    """
    return _digest(canonicalize(document))


def fingerprint_text(text: str) -> Fingerprint:
    """Fingerprint raw text exactly as given (file content change detection)."""
    return _digest(text)


def normalize_prompt(prompt: str) -> str:
    """Normalize line endings and trim surrounding whitespace."""
    return prompt.replace("\r\n", "\n").strip()


def fingerprint_prompt(prompt: str) -> Fingerprint:
    """Fingerprint a prompt text after normalization."""
    return _digest(normalize_prompt(prompt))


def fingerprints_equal(first: Fingerprint | None, second: Fingerprint | None) -> bool:
    """Compare two fingerprints; two absent fingerprints are equal."""
    if first is None and second is None:
        return True
    if first is None or second is None:
        return False
    return first == second
