"""
Fábrica para geração e gerenciamento das chaves do esquema aditivo.

KeyGen:
- Sample s ← U([0, P)^n): chave secreta com coeficientes uniformes
- Expand a ← SHAKE-128(semente do anel) mod Q: elemento público
- Sample e ← DG(σ²) truncada em 6σ
- Set sk ← s, pk ← b onde b ← −a·s + e (mod Q)

A chave pública é derivada da secreta (e não amostrada de forma
independente) para que a máscara da criptografia dependa de fato do par de
chaves: descriptografar com uma chave não relacionada produz lixo.
"""

import logging

import numpy as np

from .constants import AHECryptographicParameters, default_random_source
from .errors import KeyGenerationError, LengthMismatch

logger = logging.getLogger(__name__)


class PublicKey:
    """Chave pública: n coeficientes em [0, Q)."""

    def __init__(self, coefficients):
        self.coefficients = np.asarray(coefficients, dtype=np.int64).copy()

    def __len__(self):
        return len(self.coefficients)

    def __eq__(self, other):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return np.array_equal(self.coefficients, other.coefficients)

    def __repr__(self):
        return f"PublicKey(n={len(self)})"

    def to_list(self):
        """Representação de transporte (lista de inteiros)."""
        return [int(c) for c in self.coefficients]

    @classmethod
    def from_list(cls, values, crypto_params: AHECryptographicParameters = None):
        """
        Reconstrói uma chave pública recebida como lista de inteiros.

        Raises:
            LengthMismatch: Se o número de coeficientes for diferente de n
        """
        if crypto_params is None:
            crypto_params = AHECryptographicParameters()
        if len(values) != crypto_params.POLYNOMIAL_DEGREE:
            raise LengthMismatch(crypto_params.POLYNOMIAL_DEGREE, len(values))
        return cls([int(v) % crypto_params.CIPHERTEXT_MODULUS for v in values])


class PrivateKey:
    """
    Chave secreta: n coeficientes em [0, P).

    Não pode ser copiada, serializada com pickle nem impressa; o material
    da chave fica restrito ao objeto que a criou.
    """

    __slots__ = ("_coefficients",)

    def __init__(self, coefficients):
        self._coefficients = np.asarray(coefficients, dtype=np.int64).copy()
        self._coefficients.setflags(write=False)

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    def __len__(self):
        return len(self._coefficients)

    def __repr__(self):
        return f"PrivateKey(n={len(self)}, <oculta>)"

    def __copy__(self):
        raise TypeError("Chave privada não pode ser copiada")

    def __deepcopy__(self, memo):
        raise TypeError("Chave privada não pode ser copiada")

    def __reduce_ex__(self, protocol):
        raise TypeError("Chave privada não pode ser serializada")


class AHEKeyFactory:
    """
    Fábrica para geração e gerenciamento de chaves do esquema aditivo.

    A fonte de aleatoriedade é injetada: em produção é
    ``secrets.SystemRandom`` (os.urandom); testes podem passar um
    ``random.Random`` com semente fixa. Nunca use uma fonte determinística
    para gerar chaves reais.
    """

    def __init__(self, crypto_params: AHECryptographicParameters = None, rng=None):
        """
        Inicializa a fábrica de chaves.

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

    def generate_secret_key(self) -> PrivateKey:
        """
        Gera a chave secreta: s ← U([0, P)^n).

        Returns:
            PrivateKey: Chave secreta

        Raises:
            KeyGenerationError: Se a fonte de aleatoriedade falhar
        """
        try:
            s = self.crypto_params.generate_uniform_random_poly(
                self.rng, q_bound=self.crypto_params.PLAINTEXT_MODULUS
            )
        except (OSError, NotImplementedError) as e:
            raise KeyGenerationError(f"Fonte de aleatoriedade indisponível: {e}") from e

        return PrivateKey(s)

    def generate_public_key(self, secret_key: PrivateKey) -> PublicKey:
        """
        Deriva a chave pública b ← −a·s + e (mod Q).

        Args:
            secret_key: Chave secreta s

        Returns:
            PublicKey: n coeficientes em [0, Q)

        Raises:
            KeyGenerationError: Se a chave secreta não tiver n coeficientes
                ou a fonte de aleatoriedade falhar
        """
        n_degree = self.crypto_params.POLYNOMIAL_DEGREE
        if len(secret_key) != n_degree:
            raise KeyGenerationError(
                f"Chave secreta com {len(secret_key)} coeficientes, esperado {n_degree}"
            )

        q_mod = self.crypto_params.CIPHERTEXT_MODULUS
        a = self.crypto_params.public_polynomial()

        try:
            e = self.crypto_params.generate_gaussian_poly(self.rng)
        except (OSError, NotImplementedError) as exc:
            raise KeyGenerationError(f"Fonte de aleatoriedade indisponível: {exc}") from exc

        # b = e - a*s (mod Q)
        a_s = self.crypto_params.ring_mul(a, secret_key.coefficients)
        b = np.mod(e - a_s, q_mod)

        return PublicKey(b)

    def generate_keys(self):
        """
        Gera um par completo de chaves.

        Returns:
            Tuple[PublicKey, PrivateKey]: (chave pública, chave secreta)
        """
        secret_key = self.generate_secret_key()
        public_key = self.generate_public_key(secret_key)
        logger.info(
            "Par de chaves gerado (n=%d, P=%d, Q=%d)",
            self.crypto_params.POLYNOMIAL_DEGREE,
            self.crypto_params.PLAINTEXT_MODULUS,
            self.crypto_params.CIPHERTEXT_MODULUS,
        )
        return public_key, secret_key

    def validate_keypair(self, public_key: PublicKey, secret_key: PrivateKey) -> bool:
        """
        Valida se um par de chaves é consistente.

        Para um par legítimo, b + a·s = e tem coeficientes pequenos
        (|e| <= NOISE_BOUND); para um par não relacionado o resultado é
        essencialmente uniforme em Z_Q.

        Args:
            public_key: Chave pública para validar
            secret_key: Chave secreta para validar

        Returns:
            bool: True se as chaves são consistentes, False caso contrário
        """
        n_degree = self.crypto_params.POLYNOMIAL_DEGREE
        if len(public_key) != n_degree or len(secret_key) != n_degree:
            return False

        q_mod = self.crypto_params.CIPHERTEXT_MODULUS
        a = self.crypto_params.public_polynomial()

        a_s = self.crypto_params.ring_mul(a, secret_key.coefficients)
        error = self.crypto_params.mod_centered(public_key.coefficients + a_s, q_mod)

        return int(np.max(np.abs(error))) <= self.crypto_params.NOISE_BOUND


# Função de conveniência para criar instância da fábrica de chaves
def create_key_factory(
    crypto_params: AHECryptographicParameters = None, rng=None
) -> AHEKeyFactory:
    """
    Cria uma nova instância da fábrica de chaves.

    Args:
        crypto_params: Parâmetros criptográficos (usa padrão se None)
        rng: Fonte de aleatoriedade (usa a fonte segura do processo se None)

    Returns:
        AHEKeyFactory: Nova instância da fábrica de chaves
    """
    return AHEKeyFactory(crypto_params, rng)
