"""Estruturas de dados trocadas no protocolo de desafio."""

import base64
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ahe.constants import AHECryptographicParameters
from ahe.key_factory import PublicKey

from .errors import VerificationError


class ChallengerState(Enum):
    UNINITIALIZED = "uninitialized"
    KEYS_GENERATED = "keys_generated"
    CHALLENGE_CREATED = "challenge_created"
    AWAITING_EXECUTOR_RESULT = "awaiting_executor_result"
    VERIFIED = "verified"
    FAILED = "failed"


@dataclass
class ChallengeMetadata:
    """Dados mantidos apenas pelo desafiante; nunca enviados ao executor."""

    test_id: str
    challenge_plaintexts: List[int]
    plaintext_domain: Tuple[int, ...]
    expected_operations: List[str]
    timestamp: int
    # Desafios de votação: opção escolhida por cada voto; challenge_plaintexts
    # guarda os vetores indicadores achatados (voto a voto)
    votes: Optional[List[int]] = None
    num_options: Optional[int] = None

    @property
    def is_vote_challenge(self) -> bool:
        return self.num_options is not None

    @property
    def expected_sum(self) -> int:
        return sum(self.challenge_plaintexts)

    @property
    def expected_tallies(self) -> Optional[List[int]]:
        """Contagem esperada de cada opção (``None`` fora de votações)."""
        if not self.is_vote_challenge:
            return None
        return [self.votes.count(option) for option in range(self.num_options)]

    @property
    def plausible_maximum(self) -> int:
        """Maior valor que um resultado legítimo pode atingir."""
        if self.is_vote_challenge:
            return len(self.votes)
        return len(self.challenge_plaintexts) * max(self.plaintext_domain)


@dataclass
class Challenge:
    challenge_id: str
    parameters: AHECryptographicParameters
    public_key: PublicKey
    ciphertexts: List[bytes]
    metadata: ChallengeMetadata = field(repr=False)

    def to_executor_payload(self) -> dict:
        """
        Payload enviado ao executor não confiável.

        Contém somente parâmetros, chave pública e textos cifrados; os textos
        claros e as somas esperadas ficam com o desafiante. Votações incluem
        ainda ``num_options``, público, para o executor agrupar os vetores.
        """
        payload = {
            "parameters": self.parameters.to_dict(),
            "public_key": self.public_key.to_list(),
            "ciphertexts": list(self.ciphertexts),
        }
        if self.metadata.is_vote_challenge:
            payload["num_options"] = self.metadata.num_options
        return payload

    def executor_payload_json(self) -> str:
        """O mesmo payload em JSON, com os textos cifrados em base64."""
        payload = self.to_executor_payload()
        payload["ciphertexts"] = [
            base64.b64encode(ct).decode() for ct in payload["ciphertexts"]
        ]
        return json.dumps(payload, sort_keys=True)


@dataclass
class VerificationResult:
    success: bool
    status: ChallengerState
    decrypted_results: Optional[List[int]] = None
    error: Optional[VerificationError] = None
    log: List[str] = field(default_factory=list)

    @property
    def tag(self) -> Optional[str]:
        """Rótulo do motivo da falha (``None`` em caso de sucesso)."""
        return self.error.tag if self.error is not None else None
