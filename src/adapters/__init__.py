"""Adaptadores: API de Cloudflare (httpx) y formatos de export en disco."""
