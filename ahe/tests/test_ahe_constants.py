"""
Testes para a classe AHECryptographicParameters.
"""

import random

import numpy as np
import pytest

from ahe.constants import DEFAULT_RING_SEED, AHECryptographicParameters
from ahe.errors import ValidationError


class TestCanonicalParameters:
    def setup_method(self):
        self.params = AHECryptographicParameters.canonical()

    def test_canonical_values(self):
        assert self.params.PLAINTEXT_MODULUS == 1024
        assert self.params.CIPHERTEXT_MODULUS == 2**40
        assert self.params.POLYNOMIAL_DEGREE == 8
        assert self.params.GAUSSIAN_NOISE_STDDEV == 3.19
        assert self.params.RING_SEED == DEFAULT_RING_SEED

    def test_derived_values(self):
        assert self.params.SCALING_FACTOR == 2**30
        assert self.params.NOISE_BOUND == 19
        assert self.params.NOISE_THRESHOLD == 2**28
        assert self.params.CIPHERTEXT_SIZE == 16
        assert self.params.SERIALIZED_SIZE == 128

    def test_equality_and_hash(self):
        other = AHECryptographicParameters()
        assert self.params == other
        assert hash(self.params) == hash(other)
        assert self.params != AHECryptographicParameters(polynomial_degree=16)

    def test_print_summary(self, capsys):
        self.params.print_parameters_summary()
        out = capsys.readouterr().out
        assert "PARÂMETROS CRIPTOGRÁFICOS" in out
        assert "1024" in out


class TestParameterValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"plaintext_modulus": 1},
            {"ciphertext_modulus": 512},
            {"ciphertext_modulus": 1 << 63},
            {"polynomial_degree": 0},
            {"noise_std_dev": 0.0},
            {"ring_seed": b""},
        ],
    )
    def test_invalid_parameters_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            AHECryptographicParameters(**kwargs)

    def test_fresh_noise_bound_canonical(self):
        params = AHECryptographicParameters()
        # n·B·(P−1) + (n+1)·B com n=8, B=19, P=1024
        assert params.FRESH_NOISE_BOUND == 8 * 19 * 1023 + 9 * 19
        assert params.FRESH_NOISE_BOUND < params.NOISE_THRESHOLD

    def test_plaintext_modulus_too_large_for_q(self):
        with pytest.raises(ValidationError) as excinfo:
            AHECryptographicParameters.from_env(environ={"AHE_PLAINTEXT_MODULUS": str(2**20)})
        assert "limiar" in str(excinfo.value)

    def test_ciphertext_modulus_too_small_for_noise(self):
        with pytest.raises(ValidationError):
            AHECryptographicParameters(ciphertext_modulus=2**20)

    def test_from_dict_rejects_noisy_parameters(self):
        data = AHECryptographicParameters().to_dict()
        data["noise_std_dev"] = 10000.0
        with pytest.raises(ValidationError):
            AHECryptographicParameters.from_dict(data)

    def test_larger_plaintext_modulus_within_budget(self):
        params = AHECryptographicParameters(plaintext_modulus=2**12)
        assert params.FRESH_NOISE_BOUND < params.NOISE_THRESHOLD

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            AHECryptographicParameters(plaintext_modulus=0)


class TestConfiguration:
    def test_dict_round_trip(self):
        params = AHECryptographicParameters(polynomial_degree=16, ring_seed=b"outra")
        data = params.to_dict()

        assert data["ring_seed"] == b"outra".hex()
        assert AHECryptographicParameters.from_dict(data) == params

    def test_from_dict_missing_key(self):
        data = AHECryptographicParameters().to_dict()
        del data["ciphertext_modulus"]

        with pytest.raises(ValidationError) as excinfo:
            AHECryptographicParameters.from_dict(data)
        assert "ciphertext_modulus" in str(excinfo.value)

    def test_from_dict_without_seed_uses_default(self):
        data = AHECryptographicParameters().to_dict()
        del data["ring_seed"]
        assert AHECryptographicParameters.from_dict(data).RING_SEED == DEFAULT_RING_SEED

    def test_from_env_overrides(self):
        environ = {
            "AHE_POLYNOMIAL_DEGREE": "16",
            "AHE_NOISE_STD_DEV": "2.5",
            "AHE_RING_SEED": b"semente".hex(),
        }
        params = AHECryptographicParameters.from_env(environ=environ)

        assert params.POLYNOMIAL_DEGREE == 16
        assert params.GAUSSIAN_NOISE_STDDEV == 2.5
        assert params.RING_SEED == b"semente"
        assert params.PLAINTEXT_MODULUS == 1024

    def test_from_env_empty_is_canonical(self):
        assert AHECryptographicParameters.from_env(environ={}) == AHECryptographicParameters()

    def test_from_env_invalid_value(self):
        with pytest.raises(ValidationError):
            AHECryptographicParameters.from_env(environ={"AHE_CIPHERTEXT_MODULUS": "muito"})

    def test_from_env_custom_prefix(self):
        params = AHECryptographicParameters.from_env(
            prefix="TESTE_", environ={"TESTE_PLAINTEXT_MODULUS": "256"}
        )
        assert params.PLAINTEXT_MODULUS == 256
        assert params.SCALING_FACTOR == 2**32


class TestRingOperations:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        self.q = self.params.CIPHERTEXT_MODULUS

    def test_public_polynomial_is_deterministic(self):
        a1 = self.params.public_polynomial()
        a2 = AHECryptographicParameters().public_polynomial()

        assert len(a1) == 8
        assert np.array_equal(a1, a2)
        assert np.all((a1 >= 0) & (a1 < self.q))

    def test_public_polynomial_depends_on_seed(self):
        other = AHECryptographicParameters(ring_seed=b"outra semente")
        assert not np.array_equal(self.params.public_polynomial(), other.public_polynomial())

    def test_public_polynomial_returns_copy(self):
        a = self.params.public_polynomial()
        original = int(a[0])
        a[0] = original + 1
        assert self.params.public_polynomial()[0] == original

    def test_negacyclic_wrap(self):
        # X^(n-1) * X = X^n = -1
        x_high = np.zeros(8, dtype=np.int64)
        x_high[7] = 1
        x = np.zeros(8, dtype=np.int64)
        x[1] = 1

        result = self.params.ring_mul(x_high, x)

        expected = np.zeros(8, dtype=np.int64)
        expected[0] = self.q - 1
        assert np.array_equal(result, expected)

    def test_ring_mul_large_coefficients_no_overflow(self):
        big = np.full(8, self.q - 1, dtype=np.int64)
        result = self.params.ring_mul(big, big)

        # (-1)·(-1) em cada termo: coeficiente k = (k+1) - (n-1-k)
        expected = np.array([(2 * k + 2 - 8) % self.q for k in range(8)], dtype=np.int64)
        assert np.array_equal(result, expected)

    def test_ring_add_reduces(self):
        result = self.params.ring_add(np.full(8, self.q - 1), np.full(8, 2), np.full(8, -1))
        assert np.array_equal(result, np.zeros(8, dtype=np.int64))

    def test_mod_centered(self):
        assert AHECryptographicParameters.mod_centered(self.q - 1, self.q) == -1
        assert AHECryptographicParameters.mod_centered(5, self.q) == 5
        values = AHECryptographicParameters.mod_centered(np.array([1, self.q - 2]), self.q)
        assert list(values) == [1, -2]

    def test_poly_ring_mod_rejects_oversized(self):
        with pytest.raises(ValueError):
            AHECryptographicParameters.poly_ring_mod(np.zeros(17), 8, self.q)


class TestSamplers:
    def setup_method(self):
        self.params = AHECryptographicParameters()
        self.rng = random.Random(1234)

    def test_gaussian_is_bounded(self):
        coeffs = self.params.generate_gaussian_poly(self.rng, degree_n=2000, sigma_val=10.0)
        assert np.max(np.abs(coeffs)) <= self.params.NOISE_BOUND

    def test_ternary_values(self):
        coeffs = self.params.generate_ternary_poly(self.rng, degree_n=500)
        assert set(coeffs.tolist()) == {-1, 0, 1}

    def test_uniform_range(self):
        coeffs = self.params.generate_uniform_random_poly(self.rng, degree_n=500, q_bound=7)
        assert coeffs.min() >= 0
        assert coeffs.max() < 7

    def test_seeded_source_is_reproducible(self):
        first = self.params.generate_uniform_random_poly(random.Random(9))
        second = self.params.generate_uniform_random_poly(random.Random(9))
        assert np.array_equal(first, second)
