"""
App Django de persistência dos chamados.
"""
