from __future__ import annotations

import uvicorn

from self_order.config import settings


def main(argv: list[str] | None = None) -> int:
    uvicorn.run(
        "self_order.asgi:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
