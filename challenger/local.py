"""
Executor e verificador locais de referência.

Simulam os colaboradores externos para demonstrações e testes. O recibo é um
JSON que liga a identidade do programa ao digest SHA-256 dos resultados;
não é uma prova e não oferece garantia de integridade alguma.
"""

import hashlib
import json
import logging
from typing import Sequence

from ahe.ciphertext import AHECiphertext
from ahe.ciphertext_factory import AHECiphertextFactory
from ahe.constants import AHECryptographicParameters
from ahe.errors import AHEError, ValidationError
from ahe.key_factory import PublicKey

from .interfaces import ExecutorError, ExecutorResponse

logger = logging.getLogger(__name__)

PROGRAM_IDENTITY = "ahe-homomorphic-sum-v1"
DEFAULT_NUM_OPTIONS = 3


def journal_digest(result_ciphertexts: Sequence[bytes]) -> str:
    """SHA-256 da concatenação dos resultados serializados."""
    digest = hashlib.sha256()
    for blob in result_ciphertexts:
        digest.update(blob)
    return digest.hexdigest()


class LocalAdditionExecutor:
    """
    Executor que soma homomorficamente os desafios recebidos.

    Usa apenas material público: cada contagem parte de uma cifra de zero sob
    a chave pública do payload e recebe os desafios por adição.
    """

    SUPPORTED_OPERATIONS = ("HomomorphicAdd", "DecryptFinalTallies")

    def __init__(
        self,
        crypto_params: AHECryptographicParameters = None,
        program_identity: str = PROGRAM_IDENTITY,
        rng=None,
    ):
        if crypto_params is None:
            crypto_params = AHECryptographicParameters()

        self.crypto_params = crypto_params
        self.program_identity = program_identity
        self.ciphertext_factory = AHECiphertextFactory(crypto_params, rng)

    @classmethod
    def from_payload(cls, payload: dict, **kwargs):
        """Cria um executor com os parâmetros anunciados no payload."""
        return cls(AHECryptographicParameters.from_dict(payload["parameters"]), **kwargs)

    @property
    def group_count(self) -> int:
        """Número de contagens independentes (1: soma única)."""
        return 1

    def _tally(self, public_key, ciphertexts):
        groups = self.group_count
        if len(ciphertexts) % groups:
            raise ExecutorError(
                f"{len(ciphertexts)} textos cifrados não formam vetores de {groups} posições"
            )

        try:
            pk = PublicKey.from_list(list(public_key), self.crypto_params)
            tallies = [self.ciphertext_factory.encrypt(0, pk) for _ in range(groups)]
            for index, blob in enumerate(ciphertexts):
                ct = AHECiphertext.from_bytes(blob, self.crypto_params)
                tallies[index % groups] = AHECiphertext.add_homomorphic(tallies[index % groups], ct)
        except AHEError as e:
            raise ExecutorError(str(e)) from e

        return tallies

    def execute(
        self,
        public_key: Sequence[int],
        ciphertexts: Sequence[bytes],
        operations: Sequence[str],
    ) -> ExecutorResponse:
        """
        Soma os textos cifrados e emite o recibo.

        Raises:
            ExecutorError: Se uma operação não for suportada ou a entrada for inválida
        """
        unknown = [op for op in operations if op not in self.SUPPORTED_OPERATIONS]
        if unknown:
            raise ExecutorError(f"Operações não suportadas: {unknown}")

        results = [tally.to_bytes() for tally in self._tally(public_key, ciphertexts)]
        receipt = json.dumps(
            {
                "program_identity": self.program_identity,
                "operations": list(operations),
                "journal_digest": journal_digest(results),
            },
            sort_keys=True,
        ).encode()

        logger.info(
            "Executor somou %d textos cifrados em %d contagens", len(ciphertexts), len(results)
        )
        return ExecutorResponse(receipt=receipt, result_ciphertexts=results)


class LocalTallyExecutor(LocalAdditionExecutor):
    """
    Executor de votação: recebe vetores indicadores cifrados, voto a voto, e
    devolve uma contagem cifrada por opção.
    """

    SUPPORTED_OPERATIONS = ("EncryptedVoteTally", "DecryptFinalTallies")

    def __init__(
        self,
        crypto_params: AHECryptographicParameters = None,
        program_identity: str = PROGRAM_IDENTITY,
        rng=None,
        num_options: int = DEFAULT_NUM_OPTIONS,
    ):
        super().__init__(crypto_params, program_identity, rng)
        if num_options < 1:
            raise ValidationError(f"Votação precisa de ao menos 1 opção, recebido {num_options}")
        self.num_options = num_options

    @classmethod
    def from_payload(cls, payload: dict, **kwargs):
        kwargs.setdefault("num_options", payload.get("num_options", DEFAULT_NUM_OPTIONS))
        return super().from_payload(payload, **kwargs)

    @property
    def group_count(self) -> int:
        return self.num_options


class ProgramIdentityVerifier:
    """Aceita recibos JSON que nomeiam a identidade de programa esperada."""

    def verify_receipt(self, receipt: bytes, expected_program_identity: str) -> bool:
        try:
            claims = json.loads(receipt)
        except (ValueError, TypeError):
            logger.warning("Recibo não é um JSON válido")
            return False

        if not isinstance(claims, dict):
            return False
        return claims.get("program_identity") == expected_program_identity
