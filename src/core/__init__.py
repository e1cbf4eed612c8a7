"""
Core Domain Layer - O Hexágono.

Regras de negócio puras da Central de Chamados, sem dependência
de framework: ciclo de vida, SLA, justificativas e histórico.
Testável sem banco de dados.
"""
