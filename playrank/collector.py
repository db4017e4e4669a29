"""Google Play ランキング収集 — メインエントリーポイント.

処理フロー:
  1. 全国コードを取得
  2. 国 × カテゴリ × コレクションの全組み合わせを同時実行数制限付きで取得
  3. 空でない結果だけを カテゴリ → コレクション → パッケージ名 にまとめる
  4. 列挙順に並べ直して国ごとに日付フォルダへ書き込む
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable

from playrank.config import CATEGORIES, COLLECTIONS, DATA_DIR, all_country_codes
from playrank.fetcher import get_ranking
from playrank.limiter import ConcurrencyLimiter
from playrank.logs import setup_logging
from playrank.models import CollectSummary, ExpandDict
from playrank.storage import write_snapshot

logger = logging.getLogger(__name__)

Fetch = Callable[[str, str, str], Awaitable[list[str]]]


async def collect_country(
    country: str, limiter: ConcurrencyLimiter, fetch: Fetch = get_ranking
) -> ExpandDict:
    """1 か国分の全カテゴリ × 全コレクションを取得してまとめる.

    Returns:
        {category: {collection: [package_name, ...]}}。空の結果はキーごと含めない。
    """
    result = ExpandDict()

    async def process(category: str, collection: str) -> None:
        ranking = await limiter.submit(lambda: fetch(country, category, collection))
        if ranking:
            result.ensure(category.lower())[collection.lower()] = ranking

    await asyncio.gather(*(
        process(category, collection)
        for category in CATEGORIES
        for collection in COLLECTIONS
    ))

    return sort_snapshot(result)


def sort_snapshot(snapshot: ExpandDict) -> ExpandDict:
    """キー順を CATEGORIES / COLLECTIONS の列挙順に揃える."""
    sorted_snapshot = ExpandDict()
    for category in CATEGORIES:
        cat = category.lower()
        for collection in COLLECTIONS:
            col = collection.lower()
            if cat in snapshot and col in snapshot[cat]:
                sorted_snapshot.ensure(cat)[col] = snapshot[cat][col]
    return sorted_snapshot


async def collect_all(
    countries: list[str],
    snapshot_date: date,
    data_dir: Path,
    limiter: ConcurrencyLimiter,
    fetch: Fetch = get_ranking,
) -> CollectSummary:
    """全ての国を並行して収集し、国ごとにスナップショットを書き込む.

    requests はスレッドで実行するため、イベントループの既定スレッドプールを
    limiter.limit 本に揃える。
    """
    asyncio.get_running_loop().set_default_executor(
        ThreadPoolExecutor(max_workers=limiter.limit, thread_name_prefix="playrank")
    )
    (data_dir / snapshot_date.isoformat()).mkdir(parents=True, exist_ok=True)
    summary = CollectSummary(countries=len(countries))

    async def process(country: str) -> None:
        snapshot = await collect_country(country, limiter, fetch)
        path = await asyncio.to_thread(write_snapshot, data_dir, snapshot_date, country, snapshot)
        summary.written += 1
        if not snapshot:
            summary.empty += 1
            logger.warning("取得結果なし: country=%s", country)
        logger.info("書き込み完了: %s (%d カテゴリ)", path.name, len(snapshot))

    await asyncio.gather(*(process(country) for country in countries))
    summary.peak_in_flight = limiter.peak
    return summary


def run() -> None:
    """メイン処理."""
    setup_logging("collector")
    logger.info("=== ランキング収集 開始 ===")
    start_time = time.time()

    snapshot_date = datetime.now(timezone.utc).date()
    countries = all_country_codes()
    limiter = ConcurrencyLimiter()
    logger.info(
        "日付: %s, 国数: %d, 同時実行数: %d",
        snapshot_date.isoformat(), len(countries), limiter.limit,
    )

    summary = asyncio.run(collect_all(countries, snapshot_date, DATA_DIR, limiter))

    elapsed = time.time() - start_time
    logger.info("=== ランキング収集 完了 ===")
    logger.info(
        "国: %d, 書き込み: %d, 空: %d, 最大同時実行数: %d, 所要時間: %.1f 秒",
        summary.countries, summary.written, summary.empty, summary.peak_in_flight, elapsed,
    )


def main() -> None:
    try:
        run()
    except Exception:
        logger.exception("ランキング収集に失敗しました")
        sys.exit(1)


if __name__ == "__main__":
    main()
