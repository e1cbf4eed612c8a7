"""
Falhas tipadas do ciclo de vida de chamados.

Toda operação sobre um chamado ou termina com sucesso ou lança
uma destas exceções sem alterar o chamado.

    BusinessRuleViolationError
    ├── InvalidTransitionError (evento ilegal para o status atual)
    ├── InvalidJustificationRequestError (submissão de justificativa inválida)
    └── NoPendingProposalError (aprovação/rejeição sem proposta pendente)

    ValidationError
    ├── MissingEvidenceError (foto de abertura/conclusão ausente)
    ├── MissingReasonError (prorrogação/rejeição sem motivo)
    └── InvalidPriorityError (prioridade desconhecida)
"""

from typing import Any, Optional

from src.core.shared.exceptions import BusinessRuleViolationError, ValidationError


class InvalidTransitionError(BusinessRuleViolationError):
    """Evento não permitido a partir do status atual do chamado."""

    def __init__(
        self,
        message: str,
        status_atual: Optional[str] = None,
        evento: Optional[str] = None,
        rule: str = "transicao_invalida",
    ):
        self.status_atual = status_atual
        self.evento = evento
        super().__init__(message, rule=rule, code="INVALID_TRANSITION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.status_atual:
            result["status_atual"] = self.status_atual
        if self.evento:
            result["evento"] = self.evento
        return result


class InvalidJustificationRequestError(BusinessRuleViolationError):
    """Submissão de justificativa fora das condições exigidas."""

    def __init__(self, message: str, rule: str = "justificativa_invalida"):
        super().__init__(message, rule=rule, code="INVALID_JUSTIFICATION_REQUEST")


class NoPendingProposalError(BusinessRuleViolationError):
    """Não há justificativa pendente para decidir."""

    def __init__(self, message: str, rule: str = "sem_proposta_pendente"):
        super().__init__(message, rule=rule, code="NO_PENDING_PROPOSAL")


class MissingEvidenceError(ValidationError):
    """Foto obrigatória ausente."""

    def __init__(self, message: str, field: str = "foto"):
        super().__init__(message, field=field, code="MISSING_EVIDENCE")


class MissingReasonError(ValidationError):
    """Texto explicativo obrigatório ausente."""

    def __init__(self, message: str, field: str = "motivo"):
        super().__init__(message, field=field, code="MISSING_REASON")


class InvalidPriorityError(ValidationError):
    """Prioridade fora do conjunto conhecido."""

    def __init__(self, valor: Any):
        self.valor = valor
        super().__init__(
            f"Prioridade inválida: {valor!r}",
            field="prioridade",
            code="INVALID_PRIORITY",
        )
