from __future__ import annotations

from self_order.bootstrap import create_asgi_app

app = create_asgi_app()
