"""日付フォルダのスナップショットをマージするエントリーポイント.

処理フロー:
  1. マージ結果ファイル (update_date, package_names) を読み込む
  2. update_date より新しい日付フォルダを列挙
  3. フォルダ内のスナップショットから対象カテゴリの top_free を抽出
  4. 既存の package_names と合わせて重複除去・昇順ソート
  5. update_date を処理したフォルダの最大日付に進めて保存
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

from playrank.config import (
    DATA_DIR,
    EXCLUDED_CATEGORY,
    GAME_MARKER,
    KR_FILTER,
    MERGED_GLOBAL_NAME,
    MERGED_KR_NAME,
    TOP_FREE_KEY,
)
from playrank.logs import setup_logging
from playrank.models import MergeState
from playrank.storage import (
    load_state,
    parse_date,
    relevant_folders,
    relevant_snapshots,
    save_state,
)

logger = logging.getLogger(__name__)


def is_target_category(category: str) -> bool:
    """ゲーム系と application を除いたカテゴリなら True."""
    return GAME_MARKER not in category and category != EXCLUDED_CATEGORY


def extract_package_names(snapshot: dict) -> list[str]:
    """スナップショットから対象カテゴリの top_free を抜き出す."""
    names: list[str] = []
    for category, collections in snapshot.items():
        if not is_target_category(category) or not isinstance(collections, dict):
            continue
        names.extend(collections.get(TOP_FREE_KEY) or [])
    return names


def merge_package_names(previous: list[str], snapshots: list[dict]) -> list[str]:
    """既存のパッケージ名とスナップショットの抽出結果を合わせ、重複除去して昇順に並べる."""
    merged = set(previous)
    for snapshot in snapshots:
        merged.update(extract_package_names(snapshot))
    return sorted(merged)


def merge_data(file_name: str, name_filter: str | None, data_dir: Path = DATA_DIR) -> MergeState:
    """1 つのマージ結果ファイルを更新する.

    新しい日付フォルダが無い場合 update_date は変更しない。

    Raises:
        InvalidMergeStateError: マージ結果ファイルが不正
        OSError: フォルダ・ファイルの読み込みに失敗
    """
    state_path = data_dir / file_name
    last_state = load_state(state_path)

    folders = relevant_folders(data_dir, last_state.update_date)
    logger.info("%s: 対象フォルダ %d 件", file_name, len(folders))

    snapshots: list[dict] = []
    for folder in folders:
        snapshots.extend(relevant_snapshots(data_dir / folder, name_filter))
    logger.info("%s: 対象スナップショット %d 件", file_name, len(snapshots))

    if folders:
        update_date = max(parse_date(folder) for folder in folders)
    else:
        update_date = last_state.update_date

    new_state = MergeState(
        update_date=update_date,
        package_names=merge_package_names(last_state.package_names, snapshots),
    )
    save_state(state_path, new_state)

    logger.info(
        "%s: パッケージ数 %d → %d, update_date=%s",
        file_name,
        len(last_state.package_names),
        len(new_state.package_names),
        new_state.update_date,
    )
    return new_state


def run() -> bool:
    """メイン処理。全ターゲット成功なら True."""
    setup_logging("merge")
    logger.info("=== マージ 開始 ===")
    start_time = time.time()

    success = True
    for file_name, name_filter in [(MERGED_GLOBAL_NAME, None), (MERGED_KR_NAME, KR_FILTER)]:
        try:
            merge_data(file_name, name_filter)
        except Exception:
            logger.exception("マージ失敗: %s", file_name)
            success = False

    elapsed = time.time() - start_time
    logger.info("=== マージ 完了 === 所要時間: %.1f 秒", elapsed)
    return success


def main() -> None:
    if not run():
        sys.exit(1)


if __name__ == "__main__":
    main()
