import uuid


def generate_id(prefix: str) -> str:
    """Collision-resistant id such as ``trip-3f2c...`` (fits a String(64) column)."""
    return f"{prefix}-{uuid.uuid4().hex}"
