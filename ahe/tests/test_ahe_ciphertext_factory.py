"""
Testes para a fábrica de textos cifrados do esquema aditivo.

Cobre criptografia, descriptografia, homomorfismo aditivo, crescimento do
ruído e a detecção de overflow.
"""

import random

import numpy as np
import pytest

from ahe.ciphertext import AHECiphertext
from ahe.ciphertext_factory import AHECiphertextFactory, create_ciphertext_factory
from ahe.constants import AHECryptographicParameters
from ahe.errors import (
    DecryptionError,
    EncryptionError,
    InvalidPlaintext,
    NoiseOverflowSuspected,
    ValidationError,
)
from ahe.key_factory import AHEKeyFactory, PrivateKey, PublicKey


class TestAHECiphertextFactory:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        rng = random.Random(2024)
        self.key_factory = AHEKeyFactory(self.params, rng)
        self.factory = AHECiphertextFactory(self.params, rng)
        self.pk, self.sk = self.key_factory.generate_keys()

    def test_factory_creation(self):
        factory = create_ciphertext_factory()
        assert isinstance(factory, AHECiphertextFactory)
        assert isinstance(factory.crypto_params, AHECryptographicParameters)

    def test_encrypt_decrypt_cycle(self):
        for m in [0, 1, 2, 5, 511, 512, 1023]:
            ct = self.factory.encrypt(m, self.pk)
            assert ct.size == 16
            assert self.factory.decrypt(ct, self.sk) == m

    def test_encryption_is_randomized(self):
        ct1 = self.factory.encrypt(7, self.pk)
        ct2 = self.factory.encrypt(7, self.pk)
        assert ct1 != ct2

    @pytest.mark.parametrize("plaintext", [-1, 1024, 5000])
    def test_plaintext_out_of_range(self, plaintext):
        with pytest.raises(InvalidPlaintext) as excinfo:
            self.factory.encrypt(plaintext, self.pk)
        assert excinfo.value.modulus == 1024

    @pytest.mark.parametrize("plaintext", [True, 1.0, "3", None])
    def test_plaintext_wrong_type(self, plaintext):
        with pytest.raises(InvalidPlaintext):
            self.factory.encrypt(plaintext, self.pk)

    def test_numpy_integer_plaintext_accepted(self):
        ct = self.factory.encrypt(np.int64(9), self.pk)
        assert self.factory.decrypt(ct, self.sk) == 9

    def test_encrypt_with_wrong_public_key_length(self):
        with pytest.raises(EncryptionError):
            self.factory.encrypt(1, PublicKey([1, 2, 3]))

    def test_decrypt_with_wrong_private_key_length(self):
        ct = self.factory.encrypt(1, self.pk)
        with pytest.raises(DecryptionError):
            self.factory.decrypt(ct, PrivateKey([1, 2, 3]))

    def test_decrypt_with_foreign_parameters(self):
        other = AHECryptographicParameters(ring_seed=b"outro anel")
        ct = AHECiphertext(self.factory.encrypt(1, self.pk).coefficients, other)
        with pytest.raises(DecryptionError):
            self.factory.decrypt(ct, self.sk)

    def test_encrypt_many(self):
        cts = self.factory.encrypt_many([1, 0, 2], self.pk)
        assert [self.factory.decrypt(ct, self.sk) for ct in cts] == [1, 0, 2]

    def test_encrypt_one_hot(self):
        cts = self.factory.encrypt_one_hot(2, 3, self.pk)
        assert [self.factory.decrypt(ct, self.sk) for ct in cts] == [0, 0, 1]

    @pytest.mark.parametrize("index, length", [(3, 3), (-1, 3), (True, 3), (0, 0)])
    def test_encrypt_one_hot_invalid(self, index, length):
        with pytest.raises(ValidationError):
            self.factory.encrypt_one_hot(index, length, self.pk)

    def test_one_hot_vectors_tally_per_position(self):
        votes = [0, 2, 2, 1, 2]
        vectors = [self.factory.encrypt_one_hot(v, 3, self.pk) for v in votes]
        tallies = [self.factory.sum_ciphertexts(column) for column in zip(*vectors)]
        assert [self.factory.decrypt(t, self.sk) for t in tallies] == [1, 1, 3]


class TestHomomorphicAddition:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        rng = random.Random(99)
        self.factory = AHECiphertextFactory(self.params, rng)
        self.pk, self.sk = AHEKeyFactory(self.params, rng).generate_keys()

    def _add_and_decrypt(self, m1, m2):
        ct1 = self.factory.encrypt(m1, self.pk)
        ct2 = self.factory.encrypt(m2, self.pk)
        return self.factory.decrypt(AHECiphertext.add_homomorphic(ct1, ct2), self.sk)

    def test_small_sum(self):
        assert self._add_and_decrypt(5, 3) == 8

    def test_larger_sum(self):
        assert self._add_and_decrypt(100, 200) == 300

    def test_sum_wraps_modulo_plaintext(self):
        assert self._add_and_decrypt(1000, 100) == (1000 + 100) % 1024

    def test_add_operator(self):
        total = self.factory.encrypt(4, self.pk) + self.factory.encrypt(6, self.pk)
        assert self.factory.decrypt(total, self.sk) == 10

    def test_sum_ciphertexts(self):
        plaintexts = [1, 0, 0, 0, 1, 2, 2]
        total = self.factory.sum_ciphertexts(self.factory.encrypt_many(plaintexts, self.pk))
        assert self.factory.decrypt(total, self.sk) == sum(plaintexts)

    def test_sum_ciphertexts_empty(self):
        with pytest.raises(ValidationError):
            self.factory.sum_ciphertexts([])


class TestNoise:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        rng = random.Random(5)
        self.factory = AHECiphertextFactory(self.params, rng)
        self.key_factory = AHEKeyFactory(self.params, rng)
        self.pk, self.sk = self.key_factory.generate_keys()

    def test_fresh_noise_is_small(self):
        ct = self.factory.encrypt(3, self.pk)
        assert self.factory.noise_magnitude(ct, self.sk) <= self.params.FRESH_NOISE_BOUND

    def test_noise_stays_below_threshold_after_many_additions(self):
        # Cada cifra nova contribui no máximo ~156k de ruído; o limiar S/4 = 2^28
        # comporta com folga 200 adições.
        count = 200
        total = self.factory.sum_ciphertexts(self.factory.encrypt_many([1] * count, self.pk))

        assert self.factory.noise_magnitude(total, self.sk) < self.params.NOISE_THRESHOLD
        assert self.factory.decrypt(total, self.sk) == count

    def test_noise_overflow_is_flagged(self):
        ct = self.factory.encrypt(5, self.pk)
        coeffs = ct.coefficients.copy()
        # Desloca a fase em 3S/8: acima do limiar S/4, mas ainda mais perto de 5·S
        coeffs[0] = (coeffs[0] + 3 * self.params.SCALING_FACTOR // 8) % self.params.CIPHERTEXT_MODULUS
        tampered = AHECiphertext(coeffs, self.params)

        with pytest.raises(NoiseOverflowSuspected) as excinfo:
            self.factory.decrypt(tampered, self.sk)
        assert excinfo.value.threshold == self.params.NOISE_THRESHOLD
        assert abs(excinfo.value.residual) > self.params.NOISE_THRESHOLD

    def test_noise_overflow_is_a_decryption_error(self):
        assert issubclass(NoiseOverflowSuspected, DecryptionError)

    def test_decrypt_under_unrelated_key_is_chance(self):
        _, other_sk = self.key_factory.generate_keys()

        trials = 40
        matches = 0
        for i in range(trials):
            m = i % 3
            ct = self.factory.encrypt(m, self.pk)
            try:
                if self.factory.decrypt(ct, other_sk) == m:
                    matches += 1
            except NoiseOverflowSuspected:
                pass

        # Acerto esperado ~ 1/P por tentativa
        assert matches <= 2
