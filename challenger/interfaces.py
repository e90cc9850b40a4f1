"""
Interfaces dos colaboradores externos consumidos pelo desafiante.

O executor (não confiável) e o verificador de recibos (confiável) são caixas
pretas: este pacote só depende das assinaturas abaixo, nunca do formato
interno de um sistema de provas específico.
"""

from dataclasses import dataclass
from typing import List, Protocol, Sequence, runtime_checkable


@dataclass
class ExecutorResponse:
    receipt: bytes
    result_ciphertexts: List[bytes]


class ExecutorError(Exception):
    """O executor não conseguiu produzir um recibo e resultados."""


@runtime_checkable
class Executor(Protocol):
    def execute(
        self,
        public_key: Sequence[int],
        ciphertexts: Sequence[bytes],
        operations: Sequence[str],
    ) -> ExecutorResponse:
        ...


@runtime_checkable
class ReceiptVerifier(Protocol):
    def verify_receipt(self, receipt: bytes, expected_program_identity: str) -> bool:
        ...
