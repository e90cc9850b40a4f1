"""
Fábrica para criação e manipulação de textos cifrados do esquema aditivo.

Esta classe fornece uma interface de alto nível para criptografia,
descriptografia e agregação de textos cifrados.

Encrypt(m, pk = b):
- Sample u ← {-1, 0, 1}^n, e1, e2 ← DG(σ²)
- c0 ← b·u + e1 + S·m (mod Q), com m o polinômio constante
- c1 ← a·u + e2 (mod Q)

Decrypt(c, sk = s):
- fase ← c0 + c1·s = S·m + (e·u + e1 + e2·s) (mod Q)
- m ← round(fase[0] / S) mod P

O arredondamento ao múltiplo mais próximo de S elimina o viés para baixo da
divisão truncada; resíduos acima do limiar de ruído são reportados como
``NoiseOverflowSuspected`` em vez de produzirem um valor errado em silêncio.
"""

import logging
from typing import Iterable, List

import numpy as np

from .ciphertext import AHECiphertext
from .constants import AHECryptographicParameters, default_random_source
from .errors import (
    DecryptionError,
    EncryptionError,
    InvalidPlaintext,
    NoiseOverflowSuspected,
    ValidationError,
)
from .key_factory import PrivateKey, PublicKey

logger = logging.getLogger(__name__)


class AHECiphertextFactory:
    """
    Fábrica para criação e manipulação de textos cifrados.

    Esta classe encapsula as operações de criptografia e descriptografia
    do esquema aditivo, fornecendo uma interface orientada a objetos.
    """

    def __init__(self, crypto_params: AHECryptographicParameters = None, rng=None):
        """
        Inicializa a fábrica com parâmetros criptográficos.

        Args:
            crypto_params: Parâmetros criptográficos (usa o conjunto canônico se None)
            rng: Fonte de aleatoriedade (usa ``secrets.SystemRandom`` se None)
        """
        if crypto_params is None:
            crypto_params = AHECryptographicParameters()
        if rng is None:
            rng = default_random_source()

        self.crypto_params = crypto_params
        self.rng = rng

    def validate_plaintext(self, plaintext) -> int:
        """
        Garante que o texto claro é um inteiro em [0, P).

        Raises:
            InvalidPlaintext: Caso contrário
        """
        modulus = self.crypto_params.PLAINTEXT_MODULUS
        if isinstance(plaintext, bool) or not isinstance(plaintext, (int, np.integer)):
            raise InvalidPlaintext(plaintext, modulus)
        if not 0 <= plaintext < modulus:
            raise InvalidPlaintext(plaintext, modulus)
        return int(plaintext)

    def encrypt(self, plaintext: int, public_key: PublicKey) -> AHECiphertext:
        """
        Criptografa um texto claro sob a chave pública.

        Args:
            plaintext: Inteiro em [0, P)
            public_key: Chave pública b

        Returns:
            AHECiphertext: Texto cifrado com 2n coeficientes

        Raises:
            InvalidPlaintext: Se o texto claro estiver fora de [0, P)
            EncryptionError: Se a chave pública for incompatível com os parâmetros
        """
        m = self.validate_plaintext(plaintext)

        n_degree = self.crypto_params.POLYNOMIAL_DEGREE
        if len(public_key) != n_degree:
            raise EncryptionError(
                f"Chave pública com {len(public_key)} coeficientes, esperado {n_degree}"
            )

        q_mod = self.crypto_params.CIPHERTEXT_MODULUS
        a = self.crypto_params.public_polynomial()

        try:
            u = self.crypto_params.generate_ternary_poly(self.rng)
            e1 = self.crypto_params.generate_gaussian_poly(self.rng)
            e2 = self.crypto_params.generate_gaussian_poly(self.rng)
        except (OSError, NotImplementedError) as e:
            raise EncryptionError(f"Fonte de aleatoriedade indisponível: {e}") from e

        # Texto claro escalado como polinômio constante
        scaled = np.zeros(n_degree, dtype=np.int64)
        scaled[0] = (m * self.crypto_params.SCALING_FACTOR) % q_mod

        # c0 = b*u + e1 + S*m
        b_u = self.crypto_params.ring_mul(public_key.coefficients, u)
        c0 = self.crypto_params.ring_add(b_u, e1, scaled)

        # c1 = a*u + e2
        a_u = self.crypto_params.ring_mul(a, u)
        c1 = self.crypto_params.ring_add(a_u, e2)

        return AHECiphertext(np.concatenate([c0, c1]), self.crypto_params)

    def encrypt_many(self, plaintexts: Iterable[int], public_key: PublicKey) -> List[AHECiphertext]:
        """Criptografa cada texto claro de forma independente."""
        return [self.encrypt(m, public_key) for m in plaintexts]

    def encrypt_one_hot(self, index: int, length: int, public_key: PublicKey) -> List[AHECiphertext]:
        """
        Criptografa o vetor indicador de ``index``: 1 na posição, 0 nas demais.

        Somar vetores assim posição a posição conta quantas vezes cada índice
        foi escolhido (uma urna de votos com ``length`` opções).

        Raises:
            ValidationError: Se length < 1 ou index fora de [0, length)
        """
        if length < 1:
            raise ValidationError(f"Vetor indicador precisa de ao menos 1 posição, recebido {length}")
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)) or not 0 <= index < length:
            raise ValidationError(f"Índice {index!r} fora de [0, {length})")

        return self.encrypt_many([1 if i == index else 0 for i in range(length)], public_key)

    def _phase_constant_term(self, ciphertext: AHECiphertext, private_key: PrivateKey) -> int:
        """Coeficiente 0 de c0 + c1·s (mod Q)."""
        n_degree = self.crypto_params.POLYNOMIAL_DEGREE
        if len(private_key) != n_degree:
            raise DecryptionError(
                f"Chave privada com {len(private_key)} coeficientes, esperado {n_degree}"
            )
        if ciphertext.crypto_params != self.crypto_params:
            raise DecryptionError("Texto cifrado gerado com outros parâmetros")

        c1_s = self.crypto_params.ring_mul(ciphertext.c1, private_key.coefficients)
        return (int(ciphertext.c0[0]) + int(c1_s[0])) % self.crypto_params.CIPHERTEXT_MODULUS

    def _round_phase(self, phase: int):
        """Retorna (texto claro, resíduo centrado) para uma fase."""
        scaling = self.crypto_params.SCALING_FACTOR
        q_mod = self.crypto_params.CIPHERTEXT_MODULUS

        rounded = (phase + scaling // 2) // scaling
        residual = self.crypto_params.mod_centered(phase - rounded * scaling, q_mod)
        return rounded % self.crypto_params.PLAINTEXT_MODULUS, residual

    def noise_magnitude(self, ciphertext: AHECiphertext, private_key: PrivateKey) -> int:
        """
        Magnitude do ruído acumulado no coeficiente de sinal.

        Útil para medir quantas adições cabem antes do limiar de detecção.
        """
        _, residual = self._round_phase(self._phase_constant_term(ciphertext, private_key))
        return abs(residual)

    def decrypt(self, ciphertext: AHECiphertext, private_key: PrivateKey) -> int:
        """
        Descriptografa um texto cifrado com a chave secreta.

        Args:
            ciphertext: Texto cifrado
            private_key: Chave secreta s

        Returns:
            int: Texto claro em [0, P)

        Raises:
            DecryptionError: Se a chave ou o texto cifrado forem incompatíveis
            NoiseOverflowSuspected: Se o ruído exceder o limiar de detecção
        """
        phase = self._phase_constant_term(ciphertext, private_key)
        plaintext, residual = self._round_phase(phase)

        threshold = self.crypto_params.NOISE_THRESHOLD
        if abs(residual) > threshold:
            raise NoiseOverflowSuspected(residual, threshold)

        logger.debug("Decifrado com resíduo de ruído %d", residual)
        return int(plaintext)

    def sum_ciphertexts(self, ciphertexts: Iterable[AHECiphertext]) -> AHECiphertext:
        """
        Soma homomórfica de uma sequência não vazia de textos cifrados.

        Raises:
            ValidationError: Se a sequência estiver vazia
        """
        ciphertexts = list(ciphertexts)
        if not ciphertexts:
            raise ValidationError("Não há textos cifrados para somar")

        total = ciphertexts[0]
        for ct in ciphertexts[1:]:
            total = AHECiphertext.add_homomorphic(total, ct)
        return total


# Função de conveniência para criar instância da fábrica
def create_ciphertext_factory(
    crypto_params: AHECryptographicParameters = None, rng=None
) -> AHECiphertextFactory:
    """
    Cria uma nova instância da fábrica de textos cifrados.

    Args:
        crypto_params: Parâmetros criptográficos (usa padrão se None)
        rng: Fonte de aleatoriedade (usa a fonte segura do processo se None)

    Returns:
        AHECiphertextFactory: Nova instância da fábrica
    """
    return AHECiphertextFactory(crypto_params, rng)
