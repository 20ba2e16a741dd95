"""
Exceptions for SealStream
Everything raised on purpose by the package derives from SealStreamError
so callers have one general error catcher.
"""


class SealStreamError(Exception):
    # general container for errors
    pass


class InvalidPasswordError(SealStreamError, ValueError):
    # raised when the password is empty or whitespace only
    pass


class UnsupportedAlgorithmError(SealStreamError):
    # raised on an algorithm lookup miss
    pass


class UnsupportedTypeError(SealStreamError):
    # raised on a value kind lookup miss
    pass


class FramingError(SealStreamError):
    # raised when decrypted plaintext does not hold a valid frame
    pass


class TruncatedStreamError(FramingError):
    # raised when fewer bytes are available than the salt or a frame needs
    pass


class DecryptionFailedError(SealStreamError):
    # raised when the final block fails padding validation
    # (wrong password, wrong algorithm or corrupted ciphertext)
    pass


PaddingInvalidError = DecryptionFailedError
