"""
Erros do protocolo de verificação.

As subclasses de ``VerificationError`` são levantadas dentro do pipeline de
verificação e devolvidas em ``VerificationResult.error``; nunca escapam de
``Challenger.verify_result``.
"""

from typing import List

from ahe.errors import NoiseOverflowSuspected


class VerificationError(Exception):
    """Motivo tipado da rejeição de um resultado do executor."""

    tag = "VERIFICATION_FAILED"


class ReceiptInvalid(VerificationError):
    tag = "RECEIPT_INVALID"

    def __init__(self, program_identity: str):
        self.program_identity = program_identity
        super().__init__(
            f"Recibo rejeitado pelo verificador (programa esperado: {program_identity})"
        )


class ResultRejected(VerificationError):
    """Um texto cifrado de resultado não pôde ser desserializado ou decifrado."""

    tag = "RESULT_REJECTED"

    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"Resultado {index} rejeitado: {cause}")


class ArithmeticMismatch(VerificationError):
    tag = "ARITHMETIC_MISMATCH"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Aritmética homomórfica incorreta: soma esperada {expected}, obtida {actual}"
        )


class TallyMismatch(VerificationError):
    """A soma confere, mas a contagem de alguma opção de voto não."""

    tag = "TALLY_MISMATCH"

    def __init__(self, expected: List[int], actual: List[int]):
        self.expected = list(expected)
        self.actual = list(actual)
        super().__init__(
            f"Contagem por opção incorreta: esperada {self.expected}, obtida {self.actual}"
        )


class ExecutionFailed(VerificationError):
    tag = "EXECUTION_FAILED"

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Executor falhou: {cause}")


class ImplausibleResult(NoiseOverflowSuspected):
    """
    Valor decifrado fora do domínio declarado do desafio.

    Um total maior que len(textos claros) * max(domínio) só pode surgir de
    ruído além do limite (ou de um executor que somou coisas a mais).
    """

    def __init__(self, value: int, bound: int):
        self.value = value
        self.bound = bound
        super().__init__(
            message=f"Valor decifrado {value} excede o máximo plausível {bound}"
        )


class ProtocolStateError(RuntimeError):
    """Operação chamada em um estado inválido da máquina de estados."""
