"""
Classe para representar textos cifrados do esquema aditivo.

Um texto cifrado é o par de polinômios (c0, c1) em R_Q armazenado como um
único vetor de 2n coeficientes: c0 ocupa as posições [0, n) e c1 as
posições [n, 2n). O coeficiente 0 carrega o sinal (texto claro escalado mais
ruído, mascarado); os demais carregam a aleatoriedade polinomial.
"""

import numpy as np

from .constants import AHECryptographicParameters
from .errors import CoefficientOutOfRange, LengthMismatch, ValidationError


class AHECiphertext:
    """
    Classe que representa um texto cifrado do esquema aditivo.

    Attributes:
        coefficients: Vetor de 2n coeficientes em [0, Q)
        crypto_params: Instância dos parâmetros criptográficos
    """

    def __init__(self, coefficients, crypto_params: AHECryptographicParameters = None):
        """
        Inicializa um novo texto cifrado.

        Args:
            coefficients: Sequência de 2n inteiros em [0, Q)
            crypto_params: Parâmetros criptográficos (usa o conjunto canônico se None)

        Raises:
            LengthMismatch: Se o número de coeficientes for diferente de 2n
            CoefficientOutOfRange: Se algum coeficiente estiver fora de [0, Q)
        """
        if crypto_params is None:
            crypto_params = AHECryptographicParameters()

        self.crypto_params = crypto_params

        coefficients = np.asarray(coefficients, dtype=np.int64)
        self._validate_initialization_params(coefficients)
        self.coefficients = coefficients.copy()

    def _validate_initialization_params(self, coefficients: np.ndarray):
        """Valida os parâmetros de inicialização."""
        expected = self.crypto_params.CIPHERTEXT_SIZE
        if coefficients.ndim != 1 or len(coefficients) != expected:
            raise LengthMismatch(expected, int(coefficients.size))

        q_mod = self.crypto_params.CIPHERTEXT_MODULUS
        out_of_range = np.flatnonzero((coefficients < 0) | (coefficients >= q_mod))
        if out_of_range.size:
            index = int(out_of_range[0])
            raise CoefficientOutOfRange(index, int(coefficients[index]), q_mod)

    @property
    def size(self) -> int:
        """Retorna o número de coeficientes do texto cifrado (2n)."""
        return len(self.coefficients)

    @property
    def c0(self) -> np.ndarray:
        """Primeiro polinômio (carrega o sinal no coeficiente 0)."""
        return self.coefficients[: self.crypto_params.POLYNOMIAL_DEGREE]

    @property
    def c1(self) -> np.ndarray:
        """Segundo polinômio (máscara)."""
        return self.coefficients[self.crypto_params.POLYNOMIAL_DEGREE :]

    def can_add_with(self, other: "AHECiphertext") -> bool:
        """
        Verifica se é possível somar com outro texto cifrado.

        Args:
            other: Outro texto cifrado

        Returns:
            bool: True se ambos têm o mesmo tamanho e os mesmos parâmetros
        """
        return self.size == other.size and self.crypto_params == other.crypto_params

    def copy(self) -> "AHECiphertext":
        """Cria uma cópia profunda do texto cifrado."""
        return AHECiphertext(self.coefficients.copy(), self.crypto_params)

    def __eq__(self, other):
        if not isinstance(other, AHECiphertext):
            return NotImplemented
        return self.crypto_params == other.crypto_params and np.array_equal(
            self.coefficients, other.coefficients
        )

    def __add__(self, other):
        if not isinstance(other, AHECiphertext):
            return NotImplemented
        return AHECiphertext.add_homomorphic(self, other)

    def __repr__(self):
        return f"AHECiphertext(size={self.size}, c0[0]={int(self.coefficients[0])})"

    @staticmethod
    def add_homomorphic(ct1: "AHECiphertext", ct2: "AHECiphertext") -> "AHECiphertext":
        """
        Realiza adição homomórfica entre dois textos cifrados.

        Soma coeficiente a coeficiente módulo Q. Os operandos são reduzidos
        antes da soma, então o resultado intermediário nunca passa de 2Q.

        Args:
            ct1: Primeiro texto cifrado
            ct2: Segundo texto cifrado

        Returns:
            AHECiphertext: Resultado da adição homomórfica

        Raises:
            LengthMismatch: Se os textos cifrados não são compatíveis para adição
        """
        if not ct1.can_add_with(ct2):
            raise LengthMismatch(ct1.size, ct2.size)

        q_mod = ct1.crypto_params.CIPHERTEXT_MODULUS
        result = (np.mod(ct1.coefficients, q_mod) + np.mod(ct2.coefficients, q_mod)) % q_mod

        return AHECiphertext(result, ct1.crypto_params)

    # === SERIALIZAÇÃO ===
    def to_bytes(self) -> bytes:
        """
        Serializa como 2n inteiros de 8 bytes little-endian (16n bytes).
        """
        return self.coefficients.astype("<u8").tobytes()

    @classmethod
    def from_bytes(
        cls, data: bytes, crypto_params: AHECryptographicParameters = None
    ) -> "AHECiphertext":
        """
        Desserializa um texto cifrado produzido por ``to_bytes``.

        Args:
            data: Buffer com exatamente 16n bytes
            crypto_params: Parâmetros criptográficos (usa o conjunto canônico se None)

        Returns:
            AHECiphertext: Texto cifrado reconstruído

        Raises:
            ValidationError: Se ``data`` não for bytes, bytearray ou memoryview
            LengthMismatch: Se o buffer não tiver 16n bytes
            CoefficientOutOfRange: Se algum coeficiente for >= Q
        """
        if crypto_params is None:
            crypto_params = AHECryptographicParameters()

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValidationError(
                f"Texto cifrado serializado deve ser bytes, recebido {type(data).__name__}"
            )
        data = bytes(data)

        expected = crypto_params.SERIALIZED_SIZE
        if len(data) != expected:
            raise LengthMismatch(expected, len(data))

        raw = np.frombuffer(data, dtype="<u8")
        q_mod = crypto_params.CIPHERTEXT_MODULUS
        # Comparação em uint64 antes da conversão: valores >= 2^63 viram negativos em int64
        out_of_range = np.flatnonzero(raw >= np.uint64(q_mod))
        if out_of_range.size:
            index = int(out_of_range[0])
            raise CoefficientOutOfRange(index, int(raw[index]), q_mod)

        return cls(raw.astype(np.int64), crypto_params)

    def print_summary(self):
        """Imprime um resumo do texto cifrado."""
        print("=== RESUMO DO TEXTO CIFRADO ===")
        print(f"Número de coeficientes: {self.size}")
        print(f"Coeficiente de sinal (c0[0]): {int(self.coefficients[0])}")
        print(f"Máximo: {int(np.max(self.coefficients))}")
        print(f"Tamanho serializado: {self.crypto_params.SERIALIZED_SIZE} bytes")
        print("=" * 31)
