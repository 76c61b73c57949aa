# app/utils.py
import math
import secrets
from decimal import Decimal, ROUND_HALF_UP

from passlib.context import CryptContext

# Support multiple schemes so verify can handle legacy hashes
# Default to bcrypt_sha256 (automatically avoids the 72-byte limit)
pwd_context = CryptContext(
    schemes=["bcrypt_sha256", "bcrypt", "pbkdf2_sha256"],
    default="bcrypt_sha256",
    deprecated="auto",
)

BCRYPT_MAX_BYTES = 72
MAX_FORM_PASSWORD_CHARS = 128


def _truncate_for_bcrypt(password: str) -> str:
    """
    Fallback truncation only if verification/hashing uses classic bcrypt.
    bcrypt_sha256 doesn't need this.
    """
    if password is None:
        return ""
    b = password.encode("utf-8")
    if len(b) <= BCRYPT_MAX_BYTES:
        return password
    return b[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def normalize_password(pwd: str) -> str:
    """Trim oversized password input before hashing or verifying."""
    if pwd is None:
        return ""
    return pwd[:MAX_FORM_PASSWORD_CHARS]


def hash_password(password: str) -> str:
    return pwd_context.hash(normalize_password(password))


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verification automatically supports bcrypt_sha256, bcrypt, and pbkdf2_sha256.
    """
    try:
        plain = normalize_password(plain)
        if pwd_context.verify(plain, hashed or ""):
            return True
        # Second attempt with truncation in case the hash is classic bcrypt
        return pwd_context.verify(_truncate_for_bcrypt(plain), hashed or "")
    except (ValueError, TypeError):
        return False


def make_verification_code() -> str:
    """Six random digits for the email verification step."""
    return f"{secrets.randbelow(1_000_000):06d}"


# ============================================
# Ratings
# ============================================
def _half_up(value: Decimal, places: str) -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def average_rating(ratings: dict | None) -> float | None:
    """Mean of the supplied criteria, rounded half-up to one decimal."""
    values = [int(v) for v in (ratings or {}).values() if v is not None]
    if not values:
        return None
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(_half_up(mean, "0.1"))


def overall_rating(ratings: dict | None) -> int | None:
    """Whole-star rating derived from the one-decimal average (half-up, so 2.5 -> 3)."""
    avg = average_rating(ratings)
    if avg is None:
        return None
    return int(_half_up(Decimal(str(avg)), "1"))


def one_decimal(value) -> float:
    """Half-up to one decimal; None counts as 0."""
    if value is None:
        return 0.0
    return float(_half_up(Decimal(str(value)), "0.1"))


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
