import secrets
from app.core.config import settings

# No 0/O, 1/I/l or o: codes are read aloud and typed by hand
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"

def generate_invite_code(length: int | None = None) -> str:
    """
    Random invite code. Uniqueness is enforced by the invite_link.code constraint.
    """
    length = length or settings.INVITE_CODE_LENGTH
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))
