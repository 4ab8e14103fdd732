"""Entry point de desarrollo (sin instalar el paquete).

Permite ejecutar la CLI con:
- `python main.py create --theme tech-wizard --count 10 --dry-run`

Motivo:
- El código vive en `src/`; sin `pip install -e .` Python no encuentra `cli`,
  `core` ni `adapters`. Instalado, el script `alias-forge` hace lo mismo.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    src = Path(__file__).resolve().parent / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    # Las contraseñas y tablas usan símbolos fuera de cp1252 en consolas Windows.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
