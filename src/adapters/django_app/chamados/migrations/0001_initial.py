"""
Migração inicial do app Chamados.

Cria:
- chamados: Tabela principal
- chamado_historico: Histórico append-only por chamado
"""

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        # =================================================================
        # Tabela: chamados
        # =================================================================
        migrations.CreateModel(
            name='ChamadoModel',
            fields=[
                ('id', models.CharField(
                    editable=False,
                    help_text='UUID único do chamado',
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                )),
                ('versao', models.PositiveIntegerField(
                    default=1,
                    help_text='Número de gravações do chamado',
                )),
                ('titulo', models.CharField(help_text='Título do problema', max_length=200)),
                ('categoria', models.CharField(
                    choices=[
                        ('Elétrica', 'Elétrica'),
                        ('Hidráulica', 'Hidráulica'),
                        ('Civil', 'Civil'),
                        ('Limpeza', 'Limpeza'),
                        ('Jardinagem', 'Jardinagem'),
                        ('Segurança', 'Segurança'),
                    ],
                    db_index=True,
                    default='Civil',
                    max_length=20,
                )),
                ('local', models.CharField(help_text='Onde o serviço deve ser feito', max_length=200)),
                ('descricao', models.TextField(blank=True, default='')),
                ('solicitante', models.CharField(
                    db_index=True,
                    help_text='Quem abriu o chamado',
                    max_length=100,
                )),
                ('foto_abertura', models.CharField(help_text='Evidência da abertura', max_length=500)),
                ('atribuido_a', models.CharField(
                    blank=True,
                    db_index=True,
                    help_text='Técnico responsável',
                    max_length=100,
                    null=True,
                )),
                ('supervisor', models.CharField(blank=True, max_length=100, null=True)),
                ('status', models.CharField(
                    choices=[
                        ('ABERTO', 'Aberto'),
                        ('EM FILA', 'Em fila'),
                        ('EM ATENDIMENTO', 'Em atendimento'),
                        ('AGUARDANDO MATERIAL', 'Aguardando material'),
                        ('BLOQUEADO', 'Bloqueado'),
                        ('FINALIZADO', 'Finalizado'),
                    ],
                    db_index=True,
                    default='ABERTO',
                    max_length=30,
                )),
                ('prioridade', models.CharField(
                    choices=[
                        ('BAIXA', 'Baixa'),
                        ('MÉDIA', 'Média'),
                        ('ALTA', 'Alta'),
                        ('EMERGÊNCIA', 'Emergência'),
                    ],
                    db_index=True,
                    default='MÉDIA',
                    max_length=20,
                )),
                ('criado_em', models.DateTimeField(db_index=True)),
                ('iniciado_em', models.DateTimeField(blank=True, null=True)),
                ('finalizado_em', models.DateTimeField(blank=True, null=True)),
                ('sla_prazo', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('sla_prazo_original', models.DateTimeField(blank=True, null=True)),
                ('prorrogado', models.BooleanField(default=False)),
                ('prazo_proposto', models.DateTimeField(blank=True, null=True)),
                ('justificativa_atraso', models.TextField(blank=True, null=True)),
                ('status_justificativa', models.CharField(
                    choices=[
                        ('Nenhuma', 'Nenhuma'),
                        ('Pendente', 'Pendente'),
                        ('Aprovada', 'Aprovada'),
                        ('Rejeitada', 'Rejeitada'),
                    ],
                    default='Nenhuma',
                    max_length=20,
                )),
                ('motivo_rejeicao', models.TextField(blank=True, null=True)),
                ('foto_conclusao', models.CharField(blank=True, max_length=500, null=True)),
                ('nota_tecnica', models.TextField(blank=True, null=True)),
                ('materiais', models.JSONField(blank=True, default=list)),
            ],
            options={
                'db_table': 'chamados',
                'verbose_name': 'Chamado',
                'verbose_name_plural': 'Chamados',
                'ordering': ['-criado_em'],
            },
        ),
        migrations.AddIndex(
            model_name='chamadomodel',
            index=models.Index(fields=['status', 'sla_prazo'], name='idx_chamado_status_sla'),
        ),
        migrations.AddIndex(
            model_name='chamadomodel',
            index=models.Index(fields=['atribuido_a', 'status'], name='idx_chamado_tecnico_status'),
        ),

        # =================================================================
        # Tabela: chamado_historico
        # =================================================================
        migrations.CreateModel(
            name='HistoricoChamadoModel',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('sequencia', models.PositiveIntegerField()),
                ('momento', models.DateTimeField()),
                ('acao', models.CharField(db_index=True, max_length=40)),
                ('usuario', models.CharField(max_length=100)),
                ('comentario', models.TextField(blank=True, null=True)),
                ('dados', models.JSONField(blank=True, default=dict)),
                ('chamado', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='historico',
                    to='chamados.chamadomodel',
                )),
            ],
            options={
                'db_table': 'chamado_historico',
                'verbose_name': 'Histórico de Chamado',
                'verbose_name_plural': 'Histórico de Chamados',
                'ordering': ['sequencia'],
            },
        ),
        migrations.AddConstraint(
            model_name='historicochamadomodel',
            constraint=models.UniqueConstraint(
                fields=('chamado', 'sequencia'),
                name='uniq_historico_chamado_sequencia',
            ),
        ),
    ]
