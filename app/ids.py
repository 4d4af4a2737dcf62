import secrets
import time

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_id(prefix: str) -> str:
    """Sortable-ish ids like ``booking-lx2k9f3a-7f3k2qz``: millisecond clock in base 36 plus randomness."""
    random_part = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"{prefix}-{_base36(int(time.time() * 1000))}-{random_part}"
