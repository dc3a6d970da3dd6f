"""Camada de aplicação: registro, resolver, adapter de sessão e motor."""
