"""
Condutor do protocolo: cria o desafio, envia ao executor e verifica.

Cada chamada de ``run_proof_test`` é um teste independente; os resultados
ficam acumulados para o resumo final.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .challenger import Challenger
from .errors import ExecutionFailed
from .interfaces import Executor, ExecutorError, ExecutorResponse
from .models import Challenge, ChallengerState, VerificationResult

logger = logging.getLogger(__name__)


@dataclass
class ProtocolTestResult:
    test_id: str
    challenge: Challenge
    response: Optional[ExecutorResponse]
    verification: VerificationResult

    @property
    def proof_valid(self) -> bool:
        return self.verification.success


class ChallengeProtocol:
    def __init__(self, challenger: Challenger, executor: Executor):
        self.challenger = challenger
        self.executor = executor
        self.results: List[ProtocolTestResult] = []

    def run_proof_test(
        self, test_id: str, num_challenges: int, plaintexts: Optional[Sequence[int]] = None
    ) -> ProtocolTestResult:
        """
        Executa um teste completo: criar -> enviar -> executar -> verificar.

        Falhas do executor viram um resultado FAILED com ``ExecutionFailed``.
        """
        challenge = self.challenger.create_challenge(test_id, num_challenges, plaintexts)
        return self._run(test_id, challenge)

    def run_vote_test(
        self, test_id: str, num_votes: int, votes: Optional[Sequence[int]] = None
    ) -> ProtocolTestResult:
        """Mesmo fluxo com uma votação cifrada; o executor deve contar cada opção."""
        challenge = self.challenger.create_vote_challenge(test_id, num_votes, votes)
        return self._run(test_id, challenge)

    def _run(self, test_id: str, challenge: Challenge) -> ProtocolTestResult:
        payload = self.challenger.dispatch(challenge)

        try:
            response = self.executor.execute(
                payload["public_key"],
                payload["ciphertexts"],
                challenge.metadata.expected_operations,
            )
        except ExecutorError as e:
            logger.warning("Executor falhou no teste %s: %s", test_id, e)
            self.challenger.state = ChallengerState.FAILED
            response = None
            verification = VerificationResult(
                success=False,
                status=ChallengerState.FAILED,
                error=ExecutionFailed(e),
                log=[f"Executor falhou: {e}"],
            )
        else:
            verification = self.challenger.verify_result(
                challenge, response.receipt, response.result_ciphertexts
            )

        result = ProtocolTestResult(test_id, challenge, response, verification)
        self.results.append(result)
        logger.info(
            "Teste %s: %s", test_id, "PROVA VÁLIDA" if result.proof_valid else "FALHOU"
        )
        return result

    def summary(self) -> dict:
        successful = sum(1 for r in self.results if r.proof_valid)
        return {
            "total": len(self.results),
            "successful": successful,
            "failed": len(self.results) - successful,
        }
