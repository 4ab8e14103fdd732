"""Core de alias-forge: dominio, contratos y servicios sin I/O de CLI."""
