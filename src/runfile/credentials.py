"""SSH credential loading."""

from __future__ import annotations

import getpass
import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import asyncssh

from .errors import CredentialError

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

KEY_ERRORS = (asyncssh.KeyImportError, asyncssh.KeyEncryptionError)

# asyncssh error text for keys that need a passphrase or got a wrong one
IS_PASSPHRASE_ERROR = re.compile(r"passphrase|encrypted|decrypt", re.IGNORECASE)

PassphrasePrompt = Callable[[str], str]


def resolve_auth(
    config: Config, prompt: PassphrasePrompt = getpass.getpass
) -> dict[str, Any]:
    """Return the authentication options for :class:`ConnectionConfig`.

    A password wins over a key file. An encrypted key without a usable
    passphrase triggers one interactive prompt before giving up.
    """
    if config.password:
        logger.debug("Using password authentication")
        return {"password": config.password}

    key_path = str(config.key_file)
    try:
        return {"client_key": _read_key(key_path, config.passphrase)}
    except KEY_ERRORS as e:
        if not IS_PASSPHRASE_ERROR.search(str(e)):
            raise CredentialError(f"Unable to read keyfile {key_path} - {e}") from e
        logger.debug("Key %s needs a passphrase", key_path)

    try:
        passphrase = prompt("Enter Private Key Passphrase: ")
    except (EOFError, KeyboardInterrupt) as e:
        raise CredentialError("Unable to obtain Key Passphrase") from e

    try:
        key = _read_key(key_path, passphrase)
    except KEY_ERRORS as e:
        raise CredentialError(f"Unable to read keyfile {key_path} - {e}") from e

    config.passphrase = passphrase
    return {"client_key": key}


def _read_key(path: str, passphrase: str | None) -> asyncssh.SSHKey:
    try:
        return asyncssh.read_private_key(path, passphrase)
    except OSError as e:
        raise CredentialError(f"Unable to read keyfile {path} - {e}") from e
