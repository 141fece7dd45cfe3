"""Emojivia provisioner — dev launcher. Starts the backend in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Emojivia provisioner dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--seed-levels", action="store_true",
                        help="Regenerate the level catalog before starting")
    args = parser.parse_args()

    data_dir = args.data_dir or Path(os.getenv("DATA_DIR", str(ROOT / "data")))

    # Handle --seed-levels: build the catalog from config, then continue to dev server
    if args.seed_levels:
        from emojivia import catalog, config
        from emojivia.store import JsonFileStore

        settings = config.get_config(data_dir)
        count = catalog.seed_levels(
            JsonFileStore(data_dir), catalog.CatalogConfig.from_settings(settings["catalog"])
        )
        print(f"Seeded {count} levels into {data_dir}")

    # The backend reads the same data dir through DATA_DIR
    env = os.environ.copy()
    env["DATA_DIR"] = str(data_dir.resolve())

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    server = subprocess.Popen(
        ["uv", "run", "uvicorn", "backend.app:app", "--reload", "--host", HOST, "--port", BACKEND_PORT],
        cwd=ROOT, env=env,
    )

    def stop_server(*_):
        print("\nStopping backend...")
        server.terminate()
        server.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, stop_server)
    signal.signal(signal.SIGTERM, stop_server)
    sys.exit(server.wait())


if __name__ == "__main__":
    main()
