import argparse
import logging

from ahe.constants import AHECryptographicParameters
from challenger.challenger import Challenger
from challenger.local import (
    PROGRAM_IDENTITY,
    LocalAdditionExecutor,
    LocalTallyExecutor,
    ProgramIdentityVerifier,
)
from challenger.protocol import ChallengeProtocol


def parse_args():
    parser = argparse.ArgumentParser(
        description="Demonstração do protocolo de desafio com soma homomórfica"
    )
    parser.add_argument("--tests", type=int, default=3, help="número de testes")
    parser.add_argument("--challenges", type=int, default=5, help="desafios por teste")
    parser.add_argument("--votes", type=int, default=6, help="votos por votação")
    parser.add_argument("-v", "--verbose", action="store_true", help="logs detalhados")
    return parser.parse_args()


# --- Demonstração de Uso ---
if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Parâmetros: canônicos, com sobrescritas AHE_* do ambiente
    crypto_params = AHECryptographicParameters.from_env()
    crypto_params.print_parameters_summary()

    # 1. Desafiante (gera as chaves) e executor local
    challenger = Challenger(ProgramIdentityVerifier(), PROGRAM_IDENTITY, crypto_params)
    executor = LocalAdditionExecutor(crypto_params)
    protocol = ChallengeProtocol(challenger, executor)
    print(f"Chave Pública gerada: {challenger.public_key}")
    print("-" * 40)

    # 2. Testes de prova
    for i in range(1, args.tests + 1):
        result = protocol.run_proof_test(f"teste-{i}", args.challenges)
        plaintexts = result.challenge.metadata.challenge_plaintexts
        print(f"Teste {result.test_id}: desafios {plaintexts}")
        for entry in result.verification.log:
            print(f"  {entry}")
        status = "✓ PROVA VÁLIDA" if result.proof_valid else f"✗ {result.verification.tag}"
        print(f"  {status}")
        print("-" * 40)

    # 3. Votação: vetores indicadores contados por opção
    vote_protocol = ChallengeProtocol(
        challenger, LocalTallyExecutor(crypto_params, num_options=challenger.num_options)
    )
    result = vote_protocol.run_vote_test("votacao-1", args.votes)
    print(f"Votação {result.test_id}: votos {result.challenge.metadata.votes}")
    print(f"  Contagem esperada por opção: {result.challenge.metadata.expected_tallies}")
    print(f"  Contagem decifrada por opção: {result.verification.decrypted_results}")
    status = "✓ PROVA VÁLIDA" if result.proof_valid else f"✗ {result.verification.tag}"
    print(f"  {status}")
    print("-" * 40)

    summary = protocol.summary()
    print(
        f"Resumo: {summary['successful']}/{summary['total']} testes verificados, "
        f"{summary['failed']} falharam"
    )
