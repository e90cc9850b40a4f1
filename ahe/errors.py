"""
Hierarquia de erros do esquema aditivo.

Todos os erros de validação também são ``ValueError``, de modo que código
que já trata entradas inválidas dessa forma continua funcionando.
"""


class AHEError(Exception):
    """Erro base do esquema de criptografia homomórfica aditiva."""


class ValidationError(AHEError, ValueError):
    """Entrada rejeitada antes de qualquer operação criptográfica."""


class InvalidPlaintext(ValidationError):
    def __init__(self, plaintext, modulus: int):
        self.plaintext = plaintext
        self.modulus = modulus
        super().__init__(
            f"Texto claro {plaintext!r} fora do intervalo [0, {modulus})"
        )


class LengthMismatch(ValidationError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Tamanho inválido: esperado {expected}, recebido {actual}"
        )


class CoefficientOutOfRange(ValidationError):
    def __init__(self, index: int, value: int, modulus: int):
        self.index = index
        self.value = value
        self.modulus = modulus
        super().__init__(
            f"Coeficiente {index} = {value} fora de [0, {modulus})"
        )


class KeyGenerationError(AHEError):
    """Falha ao amostrar ou derivar o par de chaves."""


class EncryptionError(AHEError):
    """Falha ao criptografar (chave pública incompatível, etc.)."""


class DecryptionError(AHEError):
    """Falha ao descriptografar."""


class NoiseOverflowSuspected(DecryptionError):
    """
    O resíduo da fase está longe demais de um múltiplo do fator de escala.

    Acima de S/2 o ruído é indistinguível de outro texto claro; o limiar
    usado aqui é mais conservador (S/4 por padrão) para sinalizar o
    problema antes que o valor decifrado seja silenciosamente errado.
    """

    def __init__(self, residual: int = None, threshold: int = None, message: str = None):
        self.residual = residual
        self.threshold = threshold
        if message is None:
            message = (
                f"Ruído suspeito de overflow: |resíduo| = {abs(residual)} "
                f"excede o limiar {threshold}"
            )
        super().__init__(message)
