# Pacote do protocolo de desafio com verificação externa

from .challenger import Challenger
from .errors import (
    ArithmeticMismatch,
    ExecutionFailed,
    ImplausibleResult,
    ProtocolStateError,
    ReceiptInvalid,
    ResultRejected,
    TallyMismatch,
    VerificationError,
)
from .interfaces import Executor, ExecutorError, ExecutorResponse, ReceiptVerifier
from .local import LocalAdditionExecutor, LocalTallyExecutor, ProgramIdentityVerifier
from .models import (
    Challenge,
    ChallengeMetadata,
    ChallengerState,
    VerificationResult,
)
from .protocol import ChallengeProtocol, ProtocolTestResult

__all__ = [
    "Challenger",
    "ChallengeProtocol",
    "ProtocolTestResult",
    "Challenge",
    "ChallengeMetadata",
    "ChallengerState",
    "VerificationResult",
    "Executor",
    "ExecutorError",
    "ExecutorResponse",
    "ReceiptVerifier",
    "LocalAdditionExecutor",
    "LocalTallyExecutor",
    "ProgramIdentityVerifier",
    "ArithmeticMismatch",
    "ExecutionFailed",
    "ImplausibleResult",
    "ProtocolStateError",
    "ReceiptInvalid",
    "ResultRejected",
    "TallyMismatch",
    "VerificationError",
]
