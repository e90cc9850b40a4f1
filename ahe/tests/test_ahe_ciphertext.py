"""
Testes para a classe AHECiphertext: validação, adição e serialização.
"""

import random

import numpy as np
import pytest

from ahe.ciphertext import AHECiphertext
from ahe.constants import AHECryptographicParameters
from ahe.errors import CoefficientOutOfRange, LengthMismatch, ValidationError
from ahe.scheme import AdditiveHomomorphicScheme


class TestAHECiphertext:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        self.q = self.params.CIPHERTEXT_MODULUS

    def test_creation(self):
        ct = AHECiphertext(np.arange(16), self.params)
        assert ct.size == 16
        assert list(ct.c0) == list(range(8))
        assert list(ct.c1) == list(range(8, 16))

    @pytest.mark.parametrize("length", [0, 15, 17, 32])
    def test_wrong_length(self, length):
        with pytest.raises(LengthMismatch) as excinfo:
            AHECiphertext(np.zeros(length, dtype=np.int64), self.params)
        assert excinfo.value.expected == 16
        assert excinfo.value.actual == length

    def test_coefficient_out_of_range(self):
        coeffs = np.zeros(16, dtype=np.int64)
        coeffs[3] = self.q
        with pytest.raises(CoefficientOutOfRange) as excinfo:
            AHECiphertext(coeffs, self.params)
        assert excinfo.value.index == 3

    def test_negative_coefficient_rejected(self):
        coeffs = np.zeros(16, dtype=np.int64)
        coeffs[0] = -1
        with pytest.raises(CoefficientOutOfRange):
            AHECiphertext(coeffs, self.params)

    def test_add_reduces_modulo_q(self):
        ct1 = AHECiphertext(np.full(16, self.q - 1), self.params)
        ct2 = AHECiphertext(np.full(16, 3), self.params)
        total = AHECiphertext.add_homomorphic(ct1, ct2)
        assert np.all(total.coefficients == 2)

    def test_add_is_commutative(self):
        ct1 = AHECiphertext(np.arange(16) * 1000, self.params)
        ct2 = AHECiphertext(np.arange(16)[::-1] * 7, self.params)
        assert ct1 + ct2 == ct2 + ct1

    def test_add_incompatible_parameters(self):
        other = AHECryptographicParameters(polynomial_degree=4)
        ct1 = AHECiphertext(np.zeros(16, dtype=np.int64), self.params)
        ct2 = AHECiphertext(np.zeros(8, dtype=np.int64), other)

        assert not ct1.can_add_with(ct2)
        with pytest.raises(LengthMismatch):
            AHECiphertext.add_homomorphic(ct1, ct2)

    def test_copy_is_independent(self):
        ct = AHECiphertext(np.arange(16), self.params)
        clone = ct.copy()
        clone.coefficients[0] = 99
        assert ct.coefficients[0] == 0

    def test_print_summary(self, capsys):
        AHECiphertext(np.arange(16), self.params).print_summary()
        out = capsys.readouterr().out
        assert "RESUMO DO TEXTO CIFRADO" in out
        assert "128 bytes" in out


class TestSerialization:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        self.scheme = AdditiveHomomorphicScheme(self.params, random.Random(11))
        self.pk, self.sk = self.scheme.generate_keys()

    def test_round_trip(self):
        ct = self.scheme.encrypt(42, self.pk)
        data = self.scheme.serialize(ct)

        assert len(data) == 128
        restored = self.scheme.deserialize(data)
        assert restored == ct
        assert self.scheme.decrypt(restored, self.sk) == 42

    def test_little_endian_layout(self):
        coeffs = np.zeros(16, dtype=np.int64)
        coeffs[0] = 0x0102
        data = AHECiphertext(coeffs, self.params).to_bytes()
        assert data[:8] == bytes([0x02, 0x01, 0, 0, 0, 0, 0, 0])

    @pytest.mark.parametrize("length", [127, 129, 0])
    def test_wrong_length_rejected(self, length):
        with pytest.raises(LengthMismatch) as excinfo:
            self.scheme.deserialize(b"\x00" * length)
        assert excinfo.value.expected == 128
        assert excinfo.value.actual == length

    @pytest.mark.parametrize("data", ["x" * 128, None, 128, [0] * 128])
    def test_non_bytes_input_rejected(self, data):
        with pytest.raises(ValidationError):
            self.scheme.deserialize(data)

    def test_bytes_like_inputs_accepted(self):
        ct = self.scheme.encrypt(6, self.pk)
        data = self.scheme.serialize(ct)

        assert self.scheme.deserialize(bytearray(data)) == ct
        assert self.scheme.deserialize(memoryview(data)) == ct

    def test_coefficient_at_least_q_rejected(self):
        data = bytearray(self.scheme.serialize(self.scheme.encrypt(1, self.pk)))
        data[8:16] = (2**40).to_bytes(8, "little")

        with pytest.raises(CoefficientOutOfRange) as excinfo:
            self.scheme.deserialize(bytes(data))
        assert excinfo.value.index == 1

    def test_high_bit_coefficient_rejected(self):
        data = b"\xff" * 8 + b"\x00" * 120
        with pytest.raises(CoefficientOutOfRange) as excinfo:
            self.scheme.deserialize(data)
        assert excinfo.value.value == 2**64 - 1

    def test_homomorphic_add_after_transport(self):
        blobs = [self.scheme.serialize(self.scheme.encrypt(m, self.pk)) for m in (5, 3)]
        ct1, ct2 = (self.scheme.deserialize(b) for b in blobs)
        total = self.scheme.homomorphic_add(ct1, ct2)
        assert self.scheme.decrypt(total, self.sk) == 8
