#!/usr/bin/env python
"""
Setup rápido para desenvolvimento local.

Este script:
1. Configura Django settings
2. Cria banco de dados SQLite (ou usa DATABASE_URL)
3. Executa migrations
4. Cria chamados de exemplo (opcional)

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import os
import sys
import argparse

# Raiz do projeto no path (imports src.*)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def setup_django():
    """Configura Django para uso standalone."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')
    os.environ['CHAMADOS_BACKEND'] = 'django'

    import django
    django.setup()


def run_migrations():
    """Executa migrations."""
    from django.core.management import call_command

    print("📦 Executando migrations...")
    call_command('migrate', verbosity=1)
    print("✅ Migrations concluídas!")


def create_sample_data():
    """Cria chamados de exemplo pela Central de Chamados."""
    from src.config.container import get_container
    from src.core.chamados.dtos import (
        CriarChamadoInputDTO,
        IniciarAtendimentoInputDTO,
        TriarChamadoInputDTO,
    )

    central = get_container().central()

    sample_chamados = [
        CriarChamadoInputDTO(
            titulo='Disjuntor desarmando',
            categoria='Elétrica',
            local='Bloco A - Quadro geral',
            solicitante='maria',
            foto_abertura='fotos/disjuntor.jpg',
            prioridade='ALTA',
            descricao='O disjuntor do 2º andar desarma a cada hora.',
        ),
        CriarChamadoInputDTO(
            titulo='Vazamento na copa',
            categoria='Hidráulica',
            local='Copa - 3º andar',
            solicitante='joana',
            foto_abertura='fotos/vazamento.jpg',
            prioridade='MEDIA',
        ),
        CriarChamadoInputDTO(
            titulo='Rachadura na parede',
            categoria='Civil',
            local='Recepção',
            solicitante='maria',
            foto_abertura='fotos/rachadura.jpg',
            prioridade='BAIXA',
        ),
        CriarChamadoInputDTO(
            titulo='Poda de árvore',
            categoria='Jardinagem',
            local='Estacionamento',
            solicitante='paulo',
            foto_abertura='fotos/arvore.jpg',
            prioridade='BAIXA',
        ),
    ]

    print("📝 Criando chamados de exemplo...")

    criados = []
    for dto in sample_chamados:
        chamado = central.criar(dto)
        criados.append(chamado)
        print(f"   ✓ {chamado.titulo[:50]} (prazo {chamado.sla_prazo:%d/%m/%Y %H:%M})")

    # Encaminhar e iniciar o primeiro
    primeiro = criados[0]
    central.aplicar_transicao(
        TriarChamadoInputDTO(primeiro.id, tecnico='tecnico-001', usuario='supervisor')
    )
    central.aplicar_transicao(
        IniciarAtendimentoInputDTO(primeiro.id, usuario='tecnico-001')
    )

    print(f"✅ {len(criados)} chamados criados!")


def check_connection():
    """Verifica conexão com o banco."""
    from django.db import DatabaseError, connection

    print("🔍 Verificando conexão com o banco...")

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        print("✅ Conexão OK!")
        return True
    except DatabaseError as e:
        print(f"❌ Erro de conexão: {e}")
        return False


def show_info():
    """Mostra informações do setup."""
    from django.conf import settings

    print("\n" + "=" * 60)
    print("📊 Informações do Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  SLA (horas): {settings.SLA_HORAS}")
    print("=" * 60 + "\n")


def main():
    parser = argparse.ArgumentParser(description='Setup rápido para desenvolvimento')
    parser.add_argument(
        '--with-sample-data',
        action='store_true',
        help='Criar chamados de exemplo'
    )
    parser.add_argument(
        '--check-only',
        action='store_true',
        help='Apenas verificar conexão'
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔧 Gestão de Chamados - Quick Setup")
    print("=" * 60 + "\n")

    setup_django()

    if args.check_only:
        check_connection()
        return

    if not check_connection():
        print("\n⚠️  Certifique-se de que o banco de dados está rodando.")
        print("   Sem DATABASE_URL, o SQLite local é usado.")
        return

    run_migrations()

    if args.with_sample_data:
        create_sample_data()

    show_info()


if __name__ == '__main__':
    main()
