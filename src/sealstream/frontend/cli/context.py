"""Small helper to build the runtime context for the command line."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import getpass
import os

from sealstream.core.models import Algorithm
from sealstream.security.ciphers import resolve_algorithm
from sealstream.security.encryption import Encryption


PASSWORD_ENV = "SEALSTREAM_PASSWORD"
ALGORITHM_ENV = "SEALSTREAM_ALGORITHM"
LOG_LEVEL_ENV = "SEALSTREAM_LOG_LEVEL"

DEFAULT_ALGORITHM = "aes"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class CliContext:
    """Container for runtime objects the commands need."""

    encryption: Encryption
    algorithm: Algorithm
    log_level: str


def build_context(
    password: Optional[str] = None,
    algorithm: Optional[str] = None,
    log_level: Optional[str] = None,
    prompt: bool = True,
) -> CliContext:
    """
    Resolve settings and build the encryption context.

    Precedence for each setting: explicit argument, then environment
    variable, then default. The password has no default: when neither
    ``password`` nor ``SEALSTREAM_PASSWORD`` is given, the user is prompted
    (unless ``prompt`` is False, in which case the empty password is
    rejected by :class:`Encryption`).
    """
    if password is None:
        password = os.getenv(PASSWORD_ENV)
    if password is None and prompt:
        password = getpass.getpass("Password: ")

    algo = resolve_algorithm(algorithm or os.getenv(ALGORITHM_ENV) or DEFAULT_ALGORITHM)
    level = (log_level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()

    return CliContext(
        encryption=Encryption(password or "", algo),
        algorithm=algo,
        log_level=level,
    )
