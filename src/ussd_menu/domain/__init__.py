"""Domínio do motor de menus: estados, regras, contexto e erros."""
