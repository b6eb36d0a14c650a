import hashlib
import json
from collections.abc import Mapping


def create_fingerprint(params: Mapping[str, object]) -> str:
    """SHA-256 of the key-sorted JSON encoding of ``params``."""
    encoded = json.dumps(params, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
