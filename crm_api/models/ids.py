"""Random document identifiers.

Ids are 17 characters from an alphabet without look-alike characters
(no 0/O, 1/I/l), so they stay readable when copied from URLs or logs.
"""

import secrets

ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTWXYZabcdefghijkmnopqrstuvwxyz"
ID_LENGTH = 17


def random_id() -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
