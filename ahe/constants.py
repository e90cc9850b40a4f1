"""
Parâmetros centralizados do esquema de criptografia homomórfica aditiva.

Esta classe organiza todos os parâmetros criptográficos de forma semântica
para facilitar manutenção e configuração do sistema.

Conjunto canônico (único suportado por padrão):
- P = 1024 (módulo do texto claro)
- Q = 2^40 (módulo do texto cifrado)
- n = 8 (grau do polinômio; textos cifrados têm 2n coeficientes)
- σ = 3.19 (desvio padrão do ruído gaussiano)
- S = floor(Q / P) = 2^30 (fator de escala)

A aritmética polinomial acontece no anel negacíclico R_Q = Z_Q[X]/(X^n + 1).
"""

import hashlib
import logging
import os
import secrets

import numpy as np

from .errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RING_SEED = b"ahe-challenge-ring-v1"

# Q precisa caber em 8 bytes na serialização e a soma de dois coeficientes
# reduzidos precisa caber em int64.
MAX_CIPHERTEXT_MODULUS = 1 << 62


def default_random_source():
    """Fonte de aleatoriedade segura do processo (os.urandom por baixo)."""
    return secrets.SystemRandom()


class AHECryptographicParameters:
    """
    Classe que centraliza todos os parâmetros criptográficos do esquema aditivo.

    Esta classe organiza as constantes de forma semântica, separando:
    - Parâmetros estruturais (n, P, Q)
    - Parâmetros de escala (S)
    - Configurações de ruído (σ, limites de amostragem e de detecção)

    Também concentra as operações no anel R_Q e os amostradores usados pelas
    fábricas de chaves e de textos cifrados. Os amostradores recebem a fonte
    de aleatoriedade explicitamente; nunca usam estado global.
    """

    def __init__(
        self,
        plaintext_modulus: int = 1024,  # P - limite (exclusivo) do texto claro
        ciphertext_modulus: int = 1 << 40,  # Q - módulo dos coeficientes
        polynomial_degree: int = 8,  # n - grau do polinômio
        noise_std_dev: float = 3.19,  # σ - desvio padrão gaussiano
        ring_seed: bytes = DEFAULT_RING_SEED,  # semente pública do elemento a
    ):
        """
        Inicializa os parâmetros criptográficos.

        Args:
            plaintext_modulus: P, módulo do texto claro
            ciphertext_modulus: Q, módulo do texto cifrado (Q >> P)
            polynomial_degree: n, número de coeficientes das chaves
            noise_std_dev: σ, desvio padrão do ruído gaussiano
            ring_seed: Semente pública usada para expandir o polinômio a

        Raises:
            ValidationError: Se os parâmetros forem inconsistentes
        """
        # === PARÂMETROS ESTRUTURAIS ===
        self.PLAINTEXT_MODULUS = int(plaintext_modulus)  # P
        self.CIPHERTEXT_MODULUS = int(ciphertext_modulus)  # Q
        self.POLYNOMIAL_DEGREE = int(polynomial_degree)  # n
        self.RING_SEED = bytes(ring_seed)

        # === PARÂMETROS DE RUÍDO ===
        self.GAUSSIAN_NOISE_STDDEV = float(noise_std_dev)  # σ

        self.validate_parameters()

        # === PARÂMETROS DE ESCALA ===
        # S = floor(Q / P)
        self.SCALING_FACTOR = self.CIPHERTEXT_MODULUS // self.PLAINTEXT_MODULUS

        # Amostras gaussianas são truncadas em 6σ
        self.NOISE_BOUND = max(1, int(6 * self.GAUSSIAN_NOISE_STDDEV))

        # Resíduos acima de S/4 são tratados como overflow de ruído suspeito
        self.NOISE_THRESHOLD = self.SCALING_FACTOR // 4
        self.FRESH_NOISE_BOUND = self.worst_case_fresh_noise(
            self.POLYNOMIAL_DEGREE, self.NOISE_BOUND, self.PLAINTEXT_MODULUS
        )

        # === TAMANHOS ===
        self.CIPHERTEXT_SIZE = 2 * self.POLYNOMIAL_DEGREE  # 2n coeficientes
        self.SERIALIZED_SIZE = 8 * self.CIPHERTEXT_SIZE  # 16n bytes

        self._public_polynomial = None

    # === VALIDAÇÃO ===
    def validate_parameters(self):
        """
        Verifica a consistência dos parâmetros.

        Raises:
            ValidationError: Se alguma restrição for violada
        """
        if self.PLAINTEXT_MODULUS < 2:
            raise ValidationError(
                f"Módulo do texto claro deve ser >= 2, recebido {self.PLAINTEXT_MODULUS}"
            )
        if self.CIPHERTEXT_MODULUS <= self.PLAINTEXT_MODULUS:
            raise ValidationError(
                f"Q ({self.CIPHERTEXT_MODULUS}) deve ser muito maior que "
                f"P ({self.PLAINTEXT_MODULUS})"
            )
        if self.CIPHERTEXT_MODULUS > MAX_CIPHERTEXT_MODULUS:
            raise ValidationError(
                f"Q não pode exceder 2^62, recebido {self.CIPHERTEXT_MODULUS}"
            )
        if self.POLYNOMIAL_DEGREE < 1:
            raise ValidationError(
                f"Grau do polinômio deve ser positivo, recebido {self.POLYNOMIAL_DEGREE}"
            )
        if self.GAUSSIAN_NOISE_STDDEV <= 0:
            raise ValidationError(
                f"Desvio padrão do ruído deve ser positivo, recebido {self.GAUSSIAN_NOISE_STDDEV}"
            )
        if not self.RING_SEED:
            raise ValidationError("Semente do anel não pode ser vazia")

        # Q >> P: o pior ruído de uma cifra nova precisa ficar abaixo do limiar
        # de detecção, senão a decifração erra sem levantar NoiseOverflowSuspected.
        worst_noise = self.worst_case_fresh_noise(
            self.POLYNOMIAL_DEGREE,
            max(1, int(6 * self.GAUSSIAN_NOISE_STDDEV)),
            self.PLAINTEXT_MODULUS,
        )
        threshold = (self.CIPHERTEXT_MODULUS // self.PLAINTEXT_MODULUS) // 4
        if worst_noise >= threshold:
            raise ValidationError(
                f"Q ({self.CIPHERTEXT_MODULUS}) pequeno demais para P "
                f"({self.PLAINTEXT_MODULUS}): ruído máximo de uma cifra nova "
                f"{worst_noise} >= limiar de detecção {threshold}"
            )

    @staticmethod
    def worst_case_fresh_noise(degree: int, noise_bound: int, plaintext_modulus: int) -> int:
        """
        Limite do ruído no coeficiente de sinal de uma cifra nova.

        |e·u| + |e1| + |e2·s| <= n·B + B + n·B·(P−1), com u ternário e s em [0, P).
        """
        return degree * noise_bound * (plaintext_modulus - 1) + (degree + 1) * noise_bound

    # === CONFIGURAÇÃO ===
    @classmethod
    def canonical(cls):
        """
        Conjunto canônico de parâmetros.

        Returns:
            AHECryptographicParameters: P=1024, Q=2^40, n=8, σ=3.19
        """
        return cls()

    @classmethod
    def from_dict(cls, data: dict):
        """
        Reconstrói os parâmetros a partir do objeto ``parameters`` do payload.

        Args:
            data: Dicionário no formato produzido por ``to_dict``

        Returns:
            AHECryptographicParameters: Parâmetros equivalentes
        """
        try:
            ring_seed = data.get("ring_seed")
            return cls(
                plaintext_modulus=data["plaintext_modulus"],
                ciphertext_modulus=data["ciphertext_modulus"],
                polynomial_degree=data["polynomial_degree"],
                noise_std_dev=data["noise_std_dev"],
                ring_seed=bytes.fromhex(ring_seed) if ring_seed else DEFAULT_RING_SEED,
            )
        except KeyError as e:
            raise ValidationError(f"Parâmetro ausente: {e.args[0]}") from e

    @classmethod
    def from_env(cls, prefix: str = "AHE_", environ=None):
        """
        Lê sobrescritas do ambiente; variáveis ausentes mantêm o padrão canônico.

        Variáveis reconhecidas (com o prefixo): PLAINTEXT_MODULUS,
        CIPHERTEXT_MODULUS, POLYNOMIAL_DEGREE, NOISE_STD_DEV, RING_SEED (hex).
        """
        if environ is None:
            environ = os.environ

        kwargs = {}
        conversions = {
            "PLAINTEXT_MODULUS": ("plaintext_modulus", int),
            "CIPHERTEXT_MODULUS": ("ciphertext_modulus", int),
            "POLYNOMIAL_DEGREE": ("polynomial_degree", int),
            "NOISE_STD_DEV": ("noise_std_dev", float),
            "RING_SEED": ("ring_seed", bytes.fromhex),
        }
        for name, (keyword, convert) in conversions.items():
            raw = environ.get(prefix + name)
            if raw is None:
                continue
            try:
                kwargs[keyword] = convert(raw)
            except ValueError as e:
                raise ValidationError(
                    f"Valor inválido para {prefix + name}: {raw!r}"
                ) from e

        if kwargs:
            logger.info("Parâmetros sobrescritos pelo ambiente: %s", sorted(kwargs))
        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Objeto ``parameters`` enviado ao executor."""
        return {
            "plaintext_modulus": self.PLAINTEXT_MODULUS,
            "ciphertext_modulus": self.CIPHERTEXT_MODULUS,
            "polynomial_degree": self.POLYNOMIAL_DEGREE,
            "noise_std_dev": self.GAUSSIAN_NOISE_STDDEV,
            "ring_seed": self.RING_SEED.hex(),
        }

    def __eq__(self, other):
        if not isinstance(other, AHECryptographicParameters):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(sorted(self.to_dict().items())))

    def __repr__(self):
        return (
            f"AHECryptographicParameters(P={self.PLAINTEXT_MODULUS}, "
            f"Q=2^{self.CIPHERTEXT_MODULUS.bit_length() - 1}, "
            f"n={self.POLYNOMIAL_DEGREE}, σ={self.GAUSSIAN_NOISE_STDDEV})"
        )

    def print_parameters_summary(self):
        """
        Imprime um resumo dos parâmetros configurados.
        """
        print("=== PARÂMETROS CRIPTOGRÁFICOS (ESQUEMA ADITIVO) ===")
        print(f"Módulo do texto claro (P): {self.PLAINTEXT_MODULUS}")
        print(
            f"Módulo do texto cifrado (Q): {self.CIPHERTEXT_MODULUS} "
            f"(~{self.CIPHERTEXT_MODULUS.bit_length()} bits)"
        )
        print(f"Grau do polinômio (n): {self.POLYNOMIAL_DEGREE}")
        print(f"Fator de escala (S): {self.SCALING_FACTOR}")
        print(f"Desvio padrão do ruído (σ): {self.GAUSSIAN_NOISE_STDDEV}")
        print(f"Limite de amostragem do ruído: ±{self.NOISE_BOUND}")
        print(f"Limiar de detecção de overflow: {self.NOISE_THRESHOLD}")
        print(f"Ruído máximo de uma cifra nova: {self.FRESH_NOISE_BOUND}")
        print(
            f"Texto cifrado: {self.CIPHERTEXT_SIZE} coeficientes, "
            f"{self.SERIALIZED_SIZE} bytes serializados"
        )
        print("=" * 50)

    # === ESTRUTURAS ALGÉBRICAS ===
    def public_polynomial(self) -> np.ndarray:
        """
        Retorna o elemento público a ∈ R_Q expandido da semente do anel.

        Cada coeficiente vem de 8 bytes little-endian da saída SHAKE-128,
        reduzidos módulo Q.

        Returns:
            np.ndarray: n coeficientes em [0, Q)
        """
        if self._public_polynomial is None:
            n = self.POLYNOMIAL_DEGREE
            stream = hashlib.shake_128(self.RING_SEED).digest(8 * n)
            raw = np.frombuffer(stream, dtype="<u8").astype(object)
            coeffs = raw % self.CIPHERTEXT_MODULUS
            self._public_polynomial = coeffs.astype(np.int64)
        return self._public_polynomial.copy()

    # === FUNÇÕES AUXILIARES PARA OPERAÇÕES POLINOMIAIS ===
    @staticmethod
    def mod_centered(value, modulus):
        """
        Reduz para a representação centrada ℤ_a = (-a/2, a/2].

        Aceita escalares ou arrays numpy.
        """
        reduced = np.mod(value, modulus)

        half_modulus = modulus // 2

        if np.isscalar(reduced):
            if reduced > half_modulus:
                return int(reduced) - modulus
            return int(reduced)
        else:
            # Para arrays
            result = reduced.copy()
            mask = result > half_modulus
            result[mask] = result[mask] - modulus
            return result

    @staticmethod
    def poly_ring_mod(coeffs, degree, q_coeff):
        """
        Aplica redução modular no anel polinomial R_q = ℤ_q[X]/(X^N + 1).

        Explora X^N ≡ -1: para cada i em [0, N), res[i] = (p[i] - p[i+N]) mod q.

        Args:
            coeffs: Coeficientes (comprimento até 2N)
            degree: Grau N do anel
            q_coeff: Módulo dos coeficientes

        Returns:
            np.ndarray: N coeficientes em [0, q)
        """
        coeffs = np.asarray(coeffs, dtype=object)

        # Garante exatamente 2*degree coeficientes (preenche com zeros)
        if len(coeffs) < 2 * degree:
            coeffs = np.concatenate(
                [coeffs, np.zeros(2 * degree - len(coeffs), dtype=object)]
            )
        elif len(coeffs) > 2 * degree:
            raise ValueError(
                f"Polinômio com {len(coeffs)} coeficientes excede 2N = {2 * degree}"
            )

        pp_low = coeffs[:degree] % q_coeff
        pp_high = coeffs[degree : 2 * degree] % q_coeff

        result_coeffs = (pp_low - pp_high) % q_coeff
        return result_coeffs.astype(np.int64)

    @staticmethod
    def poly_mul_mod(p1, p2, q, degree):
        """
        Multiplicação de polinômios com redução modular no anel R_q.

        A convolução é feita com inteiros de precisão arbitrária (dtype
        object) para evitar overflow de 64 bits antes da redução.

        Args:
            p1: Coeficientes do primeiro polinômio
            p2: Coeficientes do segundo polinômio
            q: Módulo para os coeficientes
            degree: Grau N do anel

        Returns:
            np.ndarray: Resultado em R_q com N coeficientes em [0, q)
        """
        full_poly = np.convolve(
            np.asarray(p1, dtype=object), np.asarray(p2, dtype=object)
        )
        return AHECryptographicParameters.poly_ring_mod(full_poly, degree, q)

    def ring_mul(self, p1, p2):
        """Atalho para ``poly_mul_mod`` com n e Q destes parâmetros."""
        return self.poly_mul_mod(
            p1, p2, self.CIPHERTEXT_MODULUS, self.POLYNOMIAL_DEGREE
        )

    def ring_add(self, *polys):
        """Soma coeficiente a coeficiente módulo Q."""
        q = self.CIPHERTEXT_MODULUS
        result = np.zeros(self.POLYNOMIAL_DEGREE, dtype=np.int64)
        for p in polys:
            result = (result + np.mod(np.asarray(p, dtype=np.int64), q)) % q
        return result

    # === AMOSTRADORES ===
    def generate_uniform_random_poly(self, rng, degree_n=None, q_bound=None):
        """
        Gera coeficientes uniformemente aleatórios em [0, q_bound).

        Args:
            rng: Fonte de aleatoriedade (interface de ``random.Random``)
            degree_n: Número de coeficientes (usa POLYNOMIAL_DEGREE se None)
            q_bound: Limite superior exclusivo (usa Q se None)

        Returns:
            np.ndarray: Coeficientes uniformes
        """
        if degree_n is None:
            degree_n = self.POLYNOMIAL_DEGREE
        if q_bound is None:
            q_bound = self.CIPHERTEXT_MODULUS

        return np.array([rng.randrange(q_bound) for _ in range(degree_n)], dtype=np.int64)

    def generate_gaussian_poly(self, rng, degree_n=None, sigma_val=None, bound=None):
        """
        Gera coeficientes gaussianos arredondados (DG(σ²)), truncados em ±bound.

        Args:
            rng: Fonte de aleatoriedade
            degree_n: Número de coeficientes (usa POLYNOMIAL_DEGREE se None)
            sigma_val: Desvio padrão (usa GAUSSIAN_NOISE_STDDEV se None)
            bound: Truncamento (usa NOISE_BOUND se None)

        Returns:
            np.ndarray: Coeficientes inteiros com sinal
        """
        if degree_n is None:
            degree_n = self.POLYNOMIAL_DEGREE
        if sigma_val is None:
            sigma_val = self.GAUSSIAN_NOISE_STDDEV
        if bound is None:
            bound = self.NOISE_BOUND

        coeffs = np.array(
            [round(rng.gauss(0.0, sigma_val)) for _ in range(degree_n)], dtype=np.int64
        )
        return np.clip(coeffs, -bound, bound)

    def generate_ternary_poly(self, rng, degree_n=None):
        """
        Gera coeficientes em {-1, 0, 1} com probabilidade uniforme.
        """
        if degree_n is None:
            degree_n = self.POLYNOMIAL_DEGREE

        return np.array([rng.randrange(3) - 1 for _ in range(degree_n)], dtype=np.int64)
