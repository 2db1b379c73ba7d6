import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .models import KINDS

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def validate_kind(s: str) -> str:
    if s not in KINDS:
        raise ValueError("kind must be income or expense")
    return s


def validate_description(s: str) -> str:
    if not isinstance(s, str) or not s.strip():
        raise ValueError("description required")
    return s.strip()


def parse_amount_to_cents(s: str) -> int:
    if not isinstance(s, str) or not s.strip():
        raise ValueError("amount required")
    try:
        d = Decimal(s.strip())
    except InvalidOperation as e:
        raise ValueError("amount invalid") from e
    if not d.is_finite():
        raise ValueError("amount invalid")
    if d <= 0:
        raise ValueError("amount must be greater than zero")
    cents = (d * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if (d * 100) != cents:
        raise ValueError("amount supports up to 2 decimals")
    return int(cents)


def amount_to_cents(value) -> int:
    """Lenient conversion for amounts read back from storage or an import file."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValueError("amount invalid")
    try:
        d = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError("amount invalid") from e
    if not d.is_finite():
        raise ValueError("amount invalid")
    cents = int((d * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents <= 0:
        raise ValueError("amount must be greater than zero")
    return cents


def cents_to_amount(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def parse_date(s) -> datetime:
    """Parse ``YYYY-MM-DD`` or an ISO-8601 timestamp into a naive UTC datetime."""
    if isinstance(s, datetime):
        value = s
    else:
        if not isinstance(s, str) or not s.strip():
            raise ValueError("date required")
        text = s.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except (ValueError, OverflowError) as e:
            raise ValueError("date invalid") from e
    if value.tzinfo is not None:
        try:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError as e:
            raise ValueError("date invalid") from e
    return value


def _to_base36(n: int) -> str:
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits)) or "0"


def generate_id(now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(10))
    return _to_base36(millis) + suffix
