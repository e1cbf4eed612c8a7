"""
Configuração do projeto Gestão de Chamados.

Módulos:
- settings: Configurações Django e tabela de SLA
- container: Dependency Injection Container
"""
