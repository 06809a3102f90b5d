from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque string identifier; both inventories share one id space."""
    return str(uuid.uuid4())
