"""Gate.io Markets Job

Loads the Gate.io market catalog and saves a snapshot of every market's
symbol, ids, precision, limits and fees to ``data/markets/gateio_markets.json``.

The job:
1. Loads the adapter config (``config/gateio_config.json`` by default)
2. Fetches the catalog through ``GateioAdapter.load_markets``
3. Writes the snapshot JSON, replacing any previous one
"""

import json
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Optional

from src.exchanges.gateio import GateioAdapter
from src.utils.config import DEFAULT_CONFIG_PATH, init_logger, load_config

DATA_DIR = Path(__file__).resolve().parents[2] / "data" / "markets"


def market_rows(adapter: GateioAdapter) -> list[dict]:
    rows = []
    for _, market in sorted(adapter.load_markets().items()):
        row = asdict(market)
        row.pop("info", None)
        rows.append(row)
    return rows


def save_markets(adapter: GateioAdapter, data_dir: Path = DATA_DIR) -> Path:
    rows = market_rows(adapter)
    data_dir.mkdir(parents=True, exist_ok=True)
    file_path = data_dir / f"{adapter.id}_markets.json"
    with open(file_path, "w") as f:
        json.dump({
            "exchange": adapter.id,
            "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "markets": rows,
        }, f, indent=2)
    return file_path


def main(config_path: Optional[str] = None, data_dir: Path = DATA_DIR) -> int:
    config = load_config(config_path or DEFAULT_CONFIG_PATH)
    logger = init_logger(config, "gateio_markets_job")
    logger.info("========== Gate.io Markets Job starting ==========")

    adapter = GateioAdapter(config, logger)
    try:
        file_path = save_markets(adapter, data_dir)
    except Exception as exc:
        logger.error(f"Markets snapshot failed: {exc}")
        return 1

    logger.info(f"Saved {len(adapter.registry.markets)} markets to {file_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
