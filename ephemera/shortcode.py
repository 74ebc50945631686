"""Identifier generation for content ids and short codes."""

import base64
import logging
import random
import secrets
import string
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import CodeGenerationExhaustedError, DuplicateKeyError

T = TypeVar("T")


class ShortCodeGenerator:
    """Generate identifiers for content and shortened URLs."""

    # Base62 characters (0-9A-Za-z)
    BASE62_CHARS = string.digits + string.ascii_uppercase + string.ascii_lowercase
    ALPHANUMERIC = frozenset(string.ascii_letters + string.digits)

    CONTENT_ID_LENGTH = 8
    SHORT_CODE_LENGTH = 6

    def __init__(
        self,
        content_id_length: int = CONTENT_ID_LENGTH,
        short_code_length: int = SHORT_CODE_LENGTH,
        rng: Optional[random.Random] = None,
    ):
        """Initialize short code generator.

        Args:
            content_id_length: Length of content ids
            short_code_length: Length of URL short codes
            rng: Random source for short codes (seedable in tests)
        """
        self.content_id_length = content_id_length
        self.short_code_length = short_code_length
        self._rng = rng or random.Random()

    def generate_content_id(self) -> str:
        """Generate a content id from a cryptographically strong source.

        Random bytes are base64-url encoded and filtered to alphanumerics.
        Filtering can shrink the string below the target length, so more
        bytes are drawn until enough characters remain; it is never padded.

        Returns:
            Alphanumeric id of exactly ``content_id_length`` characters
        """
        chars = ""
        while len(chars) < self.content_id_length:
            encoded = base64.urlsafe_b64encode(secrets.token_bytes(self.content_id_length))
            chars += "".join(c for c in encoded.decode("ascii") if c in self.ALPHANUMERIC)
        return chars[:self.content_id_length]

    def generate_short_code(self) -> str:
        """Generate a base62 short code for a URL.

        The code is public; only uniqueness matters, so a non-cryptographic
        source is enough.
        """
        return self.generate_random(self.BASE62_CHARS, self.short_code_length)

    def generate_random(self, alphabet: str, length: int) -> str:
        """Generate a random code over ``alphabet``.

        Args:
            alphabet: Characters to draw from
            length: Length of the code

        Returns:
            Random code
        """
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        if length <= 0:
            raise ValueError("length must be positive")
        return "".join(self._rng.choices(alphabet, k=length))

    @staticmethod
    def is_valid_format(code: str, alphabet: str = BASE62_CHARS) -> bool:
        """Check if code only uses characters of ``alphabet``."""
        return bool(code) and all(c in alphabet for c in code)


async def ensure_unique(
    generate: Callable[[], str],
    exists: Callable[[str], Awaitable[bool]],
    max_attempts: int = 5,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Generate codes until one is not taken.

    The existence check and the later insert are separate operations, so a
    concurrent writer can still claim the code in between; the unique
    constraint rejects that insert with DuplicateKeyError.

    Args:
        generate: Produces a candidate code
        exists: Async check whether a code is taken
        max_attempts: Number of candidates to try
        logger: Optional logger instance

    Returns:
        A code that was free at the time of the check

    Raises:
        CodeGenerationExhaustedError: If every candidate was taken
    """
    logger = logger or logging.getLogger(__name__)

    for attempt in range(1, max_attempts + 1):
        code = generate()
        if not await exists(code):
            return code
        logger.warning(f"Code collision on attempt {attempt}/{max_attempts}: {code}")

    logger.error(f"Failed to generate unique code after {max_attempts} attempts")
    raise CodeGenerationExhaustedError()


async def insert_with_unique_code(
    generate: Callable[[], str],
    exists: Callable[[str], Awaitable[bool]],
    insert: Callable[[str], Awaitable[T]],
    max_attempts: int = 5,
    logger: Optional[logging.Logger] = None,
) -> T:
    """Reserve a code with ensure_unique and insert it.

    An insert rejected with DuplicateKeyError (a writer won the race after
    the check) counts as one more collision; the retry shares the same
    ``max_attempts`` budget.

    Raises:
        CodeGenerationExhaustedError: If the budget runs out
    """
    logger = logger or logging.getLogger(__name__)
    attempts = 0

    def _counted() -> str:
        nonlocal attempts
        attempts += 1
        return generate()

    while True:
        code = await ensure_unique(_counted, exists, max_attempts - attempts, logger)
        try:
            return await insert(code)
        except DuplicateKeyError as e:
            logger.warning(f"Code {code} was taken before insert (attempt {attempts}/{max_attempts})")
            if attempts >= max_attempts:
                raise CodeGenerationExhaustedError(cause=e) from e
