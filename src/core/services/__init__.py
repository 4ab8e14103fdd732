"""Servicios del Core.

Por qué:
- Algoritmos puros (nombres, contraseñas, clasificación, reintentos) y la
  orquestación de batches sobre el contrato `AliasGateway`.
"""
