"""
Interface única do esquema aditivo sobre um conjunto de parâmetros.

Reúne a fábrica de chaves e a fábrica de textos cifrados, compartilhando a
mesma fonte de aleatoriedade, e expõe as operações planas:
generate_keys, encrypt, decrypt, homomorphic_add, serialize e deserialize.
"""

from .ciphertext import AHECiphertext
from .ciphertext_factory import AHECiphertextFactory
from .constants import AHECryptographicParameters, default_random_source
from .key_factory import AHEKeyFactory, PrivateKey, PublicKey


class AdditiveHomomorphicScheme:
    def __init__(self, crypto_params: AHECryptographicParameters = None, rng=None):
        if crypto_params is None:
            crypto_params = AHECryptographicParameters()
        if rng is None:
            rng = default_random_source()

        self.crypto_params = crypto_params
        self.key_factory = AHEKeyFactory(crypto_params, rng)
        self.ciphertext_factory = AHECiphertextFactory(crypto_params, rng)

    def generate_keys(self):
        """Retorna (PublicKey, PrivateKey)."""
        return self.key_factory.generate_keys()

    def encrypt(self, plaintext: int, public_key: PublicKey) -> AHECiphertext:
        return self.ciphertext_factory.encrypt(plaintext, public_key)

    def decrypt(self, ciphertext: AHECiphertext, private_key: PrivateKey) -> int:
        return self.ciphertext_factory.decrypt(ciphertext, private_key)

    def homomorphic_add(self, ct1: AHECiphertext, ct2: AHECiphertext) -> AHECiphertext:
        return AHECiphertext.add_homomorphic(ct1, ct2)

    def serialize(self, ciphertext: AHECiphertext) -> bytes:
        return ciphertext.to_bytes()

    def deserialize(self, data: bytes) -> AHECiphertext:
        return AHECiphertext.from_bytes(data, self.crypto_params)
