"""招待コードの生成"""

import secrets
import string

INVITE_CODE_LENGTH = 6
_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code() -> str:
    """英大文字・数字6文字の招待コード"""
    return "".join(secrets.choice(_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()
