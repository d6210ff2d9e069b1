"""Modelos del dominio: botones, peticiones, secretos y resultados de envío.

Todo es Pydantic v2 y casi todo inmutable; no hay I/O aquí.
"""
