"""
Exceções de Domínio da Central de Chamados.

Erros tipados que atravessam as camadas sem perder significado:
cada exceção carrega uma mensagem legível e um código estável
que adapters (APIs, filas, CLI) podem repassar ao usuário.

Hierarquia:
    DomainException (base)
    ├── ValidationError (dado de entrada inválido)
    ├── EntityNotFoundError (chamado inexistente)
    ├── BusinessRuleViolationError (regra de negócio violada)
    └── ConcurrencyError (versão persistida divergente)

As falhas específicas do ciclo de vida de chamados ficam em
src/core/chamados/exceptions.py e herdam destas classes.
"""

from typing import Optional


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Example:
        try:
            chamado.finalizar(foto=None, ...)
        except DomainException as e:
            logger.warning(f"Operação recusada: {e}")
    """

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Dado de entrada inválido.

    O código inclui o campo para facilitar o mapeamento em formulários:
    VALIDATION_ERROR_TITULO, VALIDATION_ERROR_LOCAL, ...
    """

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        self.field = field
        if code is None:
            code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Example:
        chamado = repo.get_by_id(chamado_id)
        if chamado is None:
            raise EntityNotFoundError(
                f"Chamado {chamado_id} não encontrado",
                entity_type="Chamado",
                entity_id=chamado_id,
            )
    """

    def __init__(
        self,
        message: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    `rule` identifica a regra de forma estável (ex: "finalizado_imutavel"),
    enquanto `code` identifica a família do erro.
    """

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.rule = rule
        super().__init__(message, code or "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class ConcurrencyError(DomainException):
    """
    Conflito de versão ao persistir um agregado.

    Lançada pelo repositório quando o chamado foi alterado por outro
    processo entre a leitura e a gravação.
    """

    def __init__(self, message: str, entity_id: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message, "CONCURRENCY_ERROR")
