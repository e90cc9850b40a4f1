# Pacote do esquema de criptografia homomórfica aditiva

from .ciphertext import AHECiphertext
from .constants import AHECryptographicParameters
from .ciphertext_factory import (
    AHECiphertextFactory,
    create_ciphertext_factory,
)
from .errors import (
    AHEError,
    CoefficientOutOfRange,
    DecryptionError,
    EncryptionError,
    InvalidPlaintext,
    KeyGenerationError,
    LengthMismatch,
    NoiseOverflowSuspected,
    ValidationError,
)
from .key_factory import (
    AHEKeyFactory,
    PrivateKey,
    PublicKey,
    create_key_factory,
)
from .scheme import AdditiveHomomorphicScheme

__all__ = [
    "AHECiphertext",
    "AHECryptographicParameters",
    "AHECiphertextFactory",
    "AHEKeyFactory",
    "AdditiveHomomorphicScheme",
    "PrivateKey",
    "PublicKey",
    "create_ciphertext_factory",
    "create_key_factory",
    "AHEError",
    "CoefficientOutOfRange",
    "DecryptionError",
    "EncryptionError",
    "InvalidPlaintext",
    "KeyGenerationError",
    "LengthMismatch",
    "NoiseOverflowSuspected",
    "ValidationError",
]
