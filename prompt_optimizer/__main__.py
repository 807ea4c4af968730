"""Run the Prompt Optimizer API.

  python -m prompt_optimizer --host 127.0.0.1 --port 8000
"""

import argparse
import logging

from prompt_optimizer.config import Settings


def main() -> None:  # pragma: no cover
    settings = Settings.from_env()
    ap = argparse.ArgumentParser(description="Prompt Optimizer Pro (FastAPI)")
    ap.add_argument("--host", default=settings.host)
    ap.add_argument("--port", type=int, default=settings.port)
    ap.add_argument("--reload", action="store_true")
    args = ap.parse_args()

    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("prompt_optimizer.app:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
