"""ロギング設定."""

import logging
import sys
from datetime import datetime

from playrank.config import LOG_DIR


def setup_logging(prefix: str) -> None:
    """ロギングの初期設定.

    標準出力と LOG_DIR/{prefix}_YYYYMMDD.log の両方に出力する。
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"{prefix}_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )
