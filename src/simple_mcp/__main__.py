from __future__ import annotations

from .demo import build_demo
from .shared.config import load_config
from .shared.logging import configure_logging


def main() -> None:
    config = load_config()
    configure_logging(config.logging)
    server = build_demo(config.server).build()
    server.run()


if __name__ == "__main__":
    main()
