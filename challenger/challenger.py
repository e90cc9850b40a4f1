"""
Desafiante do protocolo de verificação externa.

O desafiante gera o par de chaves, cifra uma bateria de textos claros,
entrega ao executor não confiável apenas o material público e, ao receber
de volta recibo e textos cifrados de resultado, decide se o executor
realmente somou os desafios de forma homomórfica.

Máquina de estados:
    UNINITIALIZED -> KEYS_GENERATED -> CHALLENGE_CREATED
    -> AWAITING_EXECUTOR_RESULT -> {VERIFIED, FAILED}
"""

import logging
import time
import uuid
from typing import List, Optional, Sequence

from ahe.constants import AHECryptographicParameters, default_random_source
from ahe.errors import AHEError, InvalidPlaintext, ValidationError
from ahe.scheme import AdditiveHomomorphicScheme

from .errors import (
    ArithmeticMismatch,
    ImplausibleResult,
    ProtocolStateError,
    ReceiptInvalid,
    ResultRejected,
    TallyMismatch,
    VerificationError,
)
from .interfaces import ReceiptVerifier
from .models import (
    Challenge,
    ChallengeMetadata,
    ChallengerState,
    VerificationResult,
)

logger = logging.getLogger(__name__)

EXPECTED_OPERATIONS = ("HomomorphicAdd", "DecryptFinalTallies")
VOTE_OPERATIONS = ("EncryptedVoteTally", "DecryptFinalTallies")
DEFAULT_PLAINTEXT_DOMAIN = (0, 1, 2)
DEFAULT_NUM_OPTIONS = 3


class Challenger:
    """
    Parte confiável do protocolo: detém a chave privada.

    A chave privada nunca sai deste objeto; o payload do executor contém
    apenas parâmetros, chave pública e textos cifrados.
    """

    def __init__(
        self,
        receipt_verifier: ReceiptVerifier,
        program_identity: str,
        crypto_params: AHECryptographicParameters = None,
        rng=None,
        plaintext_domain: Sequence[int] = DEFAULT_PLAINTEXT_DOMAIN,
        num_options: int = DEFAULT_NUM_OPTIONS,
    ):
        """
        Inicializa o desafiante e gera o par de chaves.

        Args:
            receipt_verifier: Verificador confiável dos recibos do executor
            program_identity: Identidade do programa que o executor deve rodar
            crypto_params: Parâmetros criptográficos (conjunto canônico se None)
            rng: Fonte de aleatoriedade (``secrets.SystemRandom`` se None)
            plaintext_domain: Valores possíveis de cada desafio
            num_options: Número de opções das votações

        Raises:
            ValidationError: Se o domínio for vazio ou sair de [0, P), ou se
                num_options < 1
        """
        self.state = ChallengerState.UNINITIALIZED

        if crypto_params is None:
            crypto_params = AHECryptographicParameters()
        if rng is None:
            rng = default_random_source()

        self.crypto_params = crypto_params
        self.receipt_verifier = receipt_verifier
        self.program_identity = program_identity
        self.rng = rng

        self.scheme = AdditiveHomomorphicScheme(crypto_params, rng)
        self.plaintext_domain = self._validate_domain(plaintext_domain)
        if num_options < 1:
            raise ValidationError(f"Votação precisa de ao menos 1 opção, recebido {num_options}")
        self.num_options = num_options

        self.public_key, self._private_key = self.scheme.generate_keys()
        self._issued = {}
        self.log: List[str] = []
        self.state = ChallengerState.KEYS_GENERATED

    def _validate_domain(self, domain):
        domain = tuple(domain)
        if not domain:
            raise ValidationError("Domínio de textos claros vazio")
        for value in domain:
            self.scheme.ciphertext_factory.validate_plaintext(value)
        return domain

    def _record(self, message: str, session_log: Optional[List[str]] = None):
        logger.info(message)
        self.log.append(message)
        if session_log is not None:
            session_log.append(message)

    def _require_issued(self, challenge: Challenge):
        if self.state == ChallengerState.UNINITIALIZED:
            raise ProtocolStateError("Desafiante ainda não gerou chaves")
        if self._issued.get(challenge.challenge_id) is not challenge:
            raise ProtocolStateError(
                f"Desafio {challenge.challenge_id} não foi emitido por este desafiante"
            )

    def create_challenge(
        self, test_id: str, count: int, plaintexts: Optional[Sequence[int]] = None
    ) -> Challenge:
        """
        Cria um desafio com ``count`` textos claros cifrados.

        Args:
            test_id: Identificador do teste
            count: Número de textos cifrados de desafio
            plaintexts: Textos claros explícitos (sorteados do domínio se None)

        Returns:
            Challenge: Desafio com os textos cifrados serializados

        Raises:
            ValidationError: Se count < 1, se ``plaintexts`` não tiver
                ``count`` elementos ou tiver valores fora do domínio
            ProtocolStateError: Se as chaves ainda não existirem
        """
        if self.state == ChallengerState.UNINITIALIZED:
            raise ProtocolStateError("Desafiante ainda não gerou chaves")
        if count < 1:
            raise ValidationError(f"Número de desafios deve ser >= 1, recebido {count}")

        if plaintexts is None:
            plaintexts = [self.rng.choice(self.plaintext_domain) for _ in range(count)]
        else:
            plaintexts = list(plaintexts)
            if len(plaintexts) != count:
                raise ValidationError(
                    f"Esperados {count} textos claros, recebidos {len(plaintexts)}"
                )
            for value in plaintexts:
                if isinstance(value, bool) or value not in self.plaintext_domain:
                    raise InvalidPlaintext(value, self.crypto_params.PLAINTEXT_MODULUS)

        ciphertexts = self.scheme.ciphertext_factory.encrypt_many(plaintexts, self.public_key)
        metadata = ChallengeMetadata(
            test_id=test_id,
            challenge_plaintexts=[int(p) for p in plaintexts],
            plaintext_domain=self.plaintext_domain,
            expected_operations=list(EXPECTED_OPERATIONS),
            timestamp=int(time.time()),
        )
        return self._issue(ciphertexts, metadata)

    def encrypt_vote_vector(self, vote: int):
        """
        Cifra um voto como vetor indicador sobre as ``num_options`` opções.

        Raises:
            ValidationError: Se o voto não for uma opção válida
        """
        return self.scheme.ciphertext_factory.encrypt_one_hot(
            vote, self.num_options, self.public_key
        )

    def create_vote_challenge(
        self, test_id: str, count: int, votes: Optional[Sequence[int]] = None
    ) -> Challenge:
        """
        Cria uma votação cifrada com ``count`` votos.

        Cada voto vira ``num_options`` textos cifrados (vetor indicador), em
        sequência voto a voto. O executor deve somar cada opção separadamente
        e devolver uma contagem cifrada por opção.

        Args:
            test_id: Identificador do teste
            count: Número de votos
            votes: Opções explícitas (sorteadas em [0, num_options) se None)

        Returns:
            Challenge: Desafio com count * num_options textos cifrados

        Raises:
            ValidationError: Se count < 1, se ``votes`` não tiver ``count``
                elementos ou tiver opções inválidas
            ProtocolStateError: Se as chaves ainda não existirem
        """
        if self.state == ChallengerState.UNINITIALIZED:
            raise ProtocolStateError("Desafiante ainda não gerou chaves")
        if count < 1:
            raise ValidationError(f"Número de votos deve ser >= 1, recebido {count}")

        if votes is None:
            votes = [self.rng.randrange(self.num_options) for _ in range(count)]
        else:
            votes = list(votes)
            if len(votes) != count:
                raise ValidationError(f"Esperados {count} votos, recebidos {len(votes)}")

        ciphertexts = []
        for vote in votes:
            ciphertexts.extend(self.encrypt_vote_vector(vote))

        metadata = ChallengeMetadata(
            test_id=test_id,
            challenge_plaintexts=[1 if i == vote else 0 for vote in votes for i in range(self.num_options)],
            plaintext_domain=(0, 1),
            expected_operations=list(VOTE_OPERATIONS),
            timestamp=int(time.time()),
            votes=[int(v) for v in votes],
            num_options=self.num_options,
        )
        return self._issue(ciphertexts, metadata)

    def _issue(self, ciphertexts, metadata: ChallengeMetadata) -> Challenge:
        challenge = Challenge(
            challenge_id=uuid.uuid4().hex,
            parameters=self.crypto_params,
            public_key=self.public_key,
            ciphertexts=[self.scheme.serialize(ct) for ct in ciphertexts],
            metadata=metadata,
        )

        self._issued[challenge.challenge_id] = challenge
        self.state = ChallengerState.CHALLENGE_CREATED
        self._record(
            f"Desafio {challenge.challenge_id} criado para o teste {metadata.test_id!r} "
            f"com {len(challenge.ciphertexts)} textos cifrados"
        )
        return challenge

    def dispatch(self, challenge: Challenge) -> dict:
        """
        Retorna o payload do executor e passa a aguardar o resultado.

        Raises:
            ProtocolStateError: Se o desafio não foi emitido por este desafiante
        """
        self._require_issued(challenge)
        self.state = ChallengerState.AWAITING_EXECUTOR_RESULT
        self._record(f"Desafio {challenge.challenge_id} enviado ao executor")
        return challenge.to_executor_payload()

    def _decrypt_results(self, challenge, result_ciphertexts, session_log):
        bound = challenge.metadata.plausible_maximum
        decrypted = []

        if isinstance(result_ciphertexts, (bytes, bytearray, str)) or not hasattr(
            result_ciphertexts, "__iter__"
        ):
            cause = ValidationError(
                f"Resultados devem ser uma sequência, recebido {type(result_ciphertexts).__name__}"
            )
            self._record(f"Resultados rejeitados: {cause}", session_log)
            raise ResultRejected(0, cause)

        for index, blob in enumerate(result_ciphertexts):
            try:
                ciphertext = self.scheme.deserialize(blob)
                value = self.scheme.decrypt(ciphertext, self._private_key)
                if value > bound:
                    raise ImplausibleResult(value, bound)
            except AHEError as e:
                self._record(f"Resultado {index} rejeitado: {e}", session_log)
                raise ResultRejected(index, e) from e

            logger.debug("Resultado %d decifrado: %d", index, value)
            decrypted.append(value)

        return decrypted

    def _run_verification(self, challenge, receipt, result_ciphertexts, session_log):
        if not self.receipt_verifier.verify_receipt(receipt, self.program_identity):
            self._record("Recibo inválido; nenhum resultado foi decifrado", session_log)
            raise ReceiptInvalid(self.program_identity)
        self._record(f"Recibo válido para o programa {self.program_identity}", session_log)

        decrypted = self._decrypt_results(challenge, result_ciphertexts, session_log)

        expected = challenge.metadata.expected_sum
        actual = sum(decrypted)
        self._record(f"Soma esperada {expected}, soma decifrada {actual}", session_log)

        if expected != actual:
            raise ArithmeticMismatch(expected, actual)

        if challenge.metadata.is_vote_challenge:
            expected_tallies = challenge.metadata.expected_tallies
            self._record(
                f"Contagem esperada por opção {expected_tallies}, decifrada {decrypted}",
                session_log,
            )
            if decrypted != expected_tallies:
                raise TallyMismatch(expected_tallies, decrypted)
        return decrypted

    def verify_result(
        self, challenge: Challenge, receipt: bytes, result_ciphertexts: Sequence[bytes]
    ) -> VerificationResult:
        """
        Verifica o recibo e os resultados devolvidos pelo executor.

        O recibo é checado primeiro: se for inválido nenhum texto cifrado é
        decifrado. Depois cada resultado é desserializado e decifrado na
        ordem; a primeira falha encerra a verificação.

        Args:
            challenge: Desafio emitido por este desafiante
            receipt: Recibo opaco produzido pelo executor
            result_ciphertexts: Textos cifrados de resultado serializados

        Returns:
            VerificationResult: VERIFIED com os valores decifrados, ou
                FAILED com o motivo tipado em ``error``

        Raises:
            ProtocolStateError: Se o desafio não foi emitido por este desafiante
        """
        self._require_issued(challenge)

        session_log: List[str] = []
        try:
            decrypted = self._run_verification(
                challenge, receipt, result_ciphertexts, session_log
            )
        except VerificationError as e:
            self.state = ChallengerState.FAILED
            self._record(f"Verificação falhou: {e.tag}", session_log)
            return VerificationResult(
                success=False,
                status=self.state,
                error=e,
                log=session_log,
            )

        self.state = ChallengerState.VERIFIED
        self._record("Verificação concluída com sucesso", session_log)
        return VerificationResult(
            success=True,
            status=self.state,
            decrypted_results=decrypted,
            log=session_log,
        )
