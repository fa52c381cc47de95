import secrets

from passlib.context import CryptContext

# Use a scheme without the 72-byte password limit as the preferred hashing algorithm.
# Keep bcrypt in the list so existing bcrypt hashes (if any) can still be verified.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

SALT_BYTES = 16


def generate_salt() -> str:
    return secrets.token_hex(SALT_BYTES)


def get_password_hash(password: str, salt: str) -> str:
    try:
        return pwd_context.hash(password + salt)
    except ValueError as exc:
        # bcrypt backends raise ValueError for inputs over 72 bytes
        raise ValueError("password too long to hash; choose a shorter password") from exc


def verify_password(password: str, salt: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password + salt, hashed_password)
    except (ValueError, TypeError):
        # unrecognized or corrupt digest
        return False


def dummy_verify() -> None:
    """Spend the same time as a real verify, for lookups that found no user."""
    pwd_context.dummy_verify()
