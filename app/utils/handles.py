import hashlib
from datetime import datetime, timezone
from typing import Callable, Optional

# (product_code, created_at, creator, nonce) -> handle
HandleFactory = Callable[[str, datetime, str, Optional[int]], str]


def derive_product_handle(
    product_code: str,
    created_at: datetime,
    creator: str,
    nonce: Optional[int] = None
) -> str:
    """
    Derives a product handle as SHA-256 over the pipe-joined fields.

    The timestamp is reduced to whole UNIX seconds, so the same code
    registered by the same caller twice within one second yields the same
    handle unless a nonce is mixed in.
    Example: ('SKU-1', 2024-01-01T00:00:00Z, 'alice', None) -> '0x5c1b...'
    """
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    parts = [product_code, str(int(created_at.timestamp())), creator]
    if nonce is not None:
        parts.append(str(nonce))

    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return f"0x{digest}"
