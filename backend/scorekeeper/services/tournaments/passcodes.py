import random

from scorekeeper.exceptions import InvalidInput

# No 0/O or 1/I so codes can be read aloud and typed without confusion
PASSCODE_CHARS = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
PASSCODE_LENGTH = 4


def generate_passcode(length=PASSCODE_LENGTH):
    """Generate a short random passcode. Uniqueness is checked by the caller."""
    return ''.join(random.choices(PASSCODE_CHARS, k=length))


def normalize_passcode(raw) -> str:
    if not isinstance(raw, str):
        raise InvalidInput('Passcode is required')
    code = raw.strip().upper()
    if len(code) != PASSCODE_LENGTH:
        raise InvalidInput(f'Please enter a {PASSCODE_LENGTH}-character passcode')
    if any(ch not in PASSCODE_CHARS for ch in code):
        raise InvalidInput('Passcode contains invalid characters')
    return code
