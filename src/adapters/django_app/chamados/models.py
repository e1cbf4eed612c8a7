"""
Django Models para o domínio de Chamados.

Estes models são ADAPTERS - implementam a persistência para a
entidade Chamado definida em src/core/chamados/entities.py.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Lógica de negócio fica nas Entities do Core
- Models são mapeados para/de Entities via Mappers

Relacionamentos:
- ChamadoModel: Tabela principal de chamados
- HistoricoChamadoModel: Histórico append-only de cada chamado
"""

from django.db import models


class StatusChamadoChoices(models.TextChoices):
    """Choices para status (espelha StatusChamado do Core)."""
    ABERTO = 'ABERTO', 'Aberto'
    EM_FILA = 'EM FILA', 'Em fila'
    EM_ATENDIMENTO = 'EM ATENDIMENTO', 'Em atendimento'
    AGUARDANDO_MATERIAL = 'AGUARDANDO MATERIAL', 'Aguardando material'
    BLOQUEADO = 'BLOQUEADO', 'Bloqueado'
    FINALIZADO = 'FINALIZADO', 'Finalizado'


class PrioridadeChoices(models.TextChoices):
    """Choices para prioridade (espelha Prioridade do Core)."""
    BAIXA = 'BAIXA', 'Baixa'
    MEDIA = 'MÉDIA', 'Média'
    ALTA = 'ALTA', 'Alta'
    EMERGENCIA = 'EMERGÊNCIA', 'Emergência'


class StatusJustificativaChoices(models.TextChoices):
    NENHUMA = 'Nenhuma', 'Nenhuma'
    PENDENTE = 'Pendente', 'Pendente'
    APROVADA = 'Aprovada', 'Aprovada'
    REJEITADA = 'Rejeitada', 'Rejeitada'


class CategoriaChoices(models.TextChoices):
    ELETRICA = 'Elétrica', 'Elétrica'
    HIDRAULICA = 'Hidráulica', 'Hidráulica'
    CIVIL = 'Civil', 'Civil'
    LIMPEZA = 'Limpeza', 'Limpeza'
    JARDINAGEM = 'Jardinagem', 'Jardinagem'
    SEGURANCA = 'Segurança', 'Segurança'


class ChamadoModel(models.Model):
    """
    Model Django para persistência de Chamados.

    Fields relevantes:
        id: UUID como primary key (gerado pela Entity)
        versao: Contador de gravações (controle otimista)
        sla_prazo / sla_prazo_original: Prazo vigente e primeiro prazo
        materiais: Lista de materiais (JSONField)
    """

    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único do chamado"
    )

    versao = models.PositiveIntegerField(
        default=1,
        help_text="Número de gravações do chamado"
    )

    # Dados descritivos
    titulo = models.CharField(max_length=200, help_text="Título do problema")
    categoria = models.CharField(
        max_length=20,
        choices=CategoriaChoices.choices,
        default=CategoriaChoices.CIVIL,
        db_index=True,
    )
    local = models.CharField(max_length=200, help_text="Onde o serviço deve ser feito")
    descricao = models.TextField(blank=True, default='')
    solicitante = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Quem abriu o chamado"
    )
    foto_abertura = models.CharField(max_length=500, help_text="Evidência da abertura")

    # Responsáveis
    atribuido_a = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
        help_text="Técnico responsável"
    )
    supervisor = models.CharField(max_length=100, null=True, blank=True)

    # Estado
    status = models.CharField(
        max_length=30,
        choices=StatusChamadoChoices.choices,
        default=StatusChamadoChoices.ABERTO,
        db_index=True,
    )
    prioridade = models.CharField(
        max_length=20,
        choices=PrioridadeChoices.choices,
        default=PrioridadeChoices.MEDIA,
        db_index=True,
    )

    # Timestamps
    criado_em = models.DateTimeField(db_index=True)
    iniciado_em = models.DateTimeField(null=True, blank=True)
    finalizado_em = models.DateTimeField(null=True, blank=True)

    # SLA
    sla_prazo = models.DateTimeField(null=True, blank=True, db_index=True)
    sla_prazo_original = models.DateTimeField(null=True, blank=True)
    prorrogado = models.BooleanField(default=False)

    # Justificativa de atraso
    prazo_proposto = models.DateTimeField(null=True, blank=True)
    justificativa_atraso = models.TextField(null=True, blank=True)
    status_justificativa = models.CharField(
        max_length=20,
        choices=StatusJustificativaChoices.choices,
        default=StatusJustificativaChoices.NENHUMA,
    )
    motivo_rejeicao = models.TextField(null=True, blank=True)

    # Conclusão
    foto_conclusao = models.CharField(max_length=500, null=True, blank=True)
    nota_tecnica = models.TextField(null=True, blank=True)
    materiais = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = 'chamados'
        verbose_name = 'Chamado'
        verbose_name_plural = 'Chamados'
        ordering = ['-criado_em']
        indexes = [
            models.Index(fields=['status', 'sla_prazo'], name='idx_chamado_status_sla'),
            models.Index(fields=['atribuido_a', 'status'], name='idx_chamado_tecnico_status'),
        ]

    def __str__(self):
        return f"#{self.id[:8]} - {self.titulo}"


class HistoricoChamadoModel(models.Model):
    """
    Entrada do histórico de um chamado.

    Append-only: o repositório só insere linhas novas, numeradas
    por `sequencia` dentro do chamado.
    """

    id = models.BigAutoField(primary_key=True)
    chamado = models.ForeignKey(
        ChamadoModel,
        on_delete=models.CASCADE,
        related_name='historico',
    )
    sequencia = models.PositiveIntegerField()
    momento = models.DateTimeField()
    acao = models.CharField(max_length=40, db_index=True)
    usuario = models.CharField(max_length=100)
    comentario = models.TextField(null=True, blank=True)
    dados = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'chamado_historico'
        verbose_name = 'Histórico de Chamado'
        verbose_name_plural = 'Histórico de Chamados'
        ordering = ['sequencia']
        constraints = [
            models.UniqueConstraint(
                fields=['chamado', 'sequencia'],
                name='uniq_historico_chamado_sequencia',
            ),
        ]

    def __str__(self):
        return f"{self.chamado_id}#{self.sequencia} {self.acao}"
