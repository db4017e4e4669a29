"""JSON ファイル入出力モジュール.

日付フォルダ構成:
  {DATA_DIR}/YYYY-MM-DD/YYYY_MM_DD_{country}.json   国別スナップショット
  {DATA_DIR}/merged_global.json, merged_kr.json     マージ結果
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from pathlib import Path

from playrank.models import ExpandDict, MergeState

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class InvalidMergeStateError(ValueError):
    """マージ結果ファイルの形式が不正."""


def _write_json(path: Path, payload) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def parse_date(value: str) -> date | None:
    """YYYY-MM-DD 形式の実在する日付なら date を、そうでなければ None を返す."""
    if not _DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


# --- スナップショット ---


def snapshot_path(data_dir: Path, snapshot_date: date, country: str) -> Path:
    """スナップショットの保存先パスを返す."""
    folder = snapshot_date.isoformat()
    file_name = f"{folder.replace('-', '_')}_{country.lower()}.json"
    return data_dir / folder / file_name


def write_snapshot(
    data_dir: Path, snapshot_date: date, country: str, snapshot: ExpandDict
) -> Path:
    """国別スナップショットを書き込む。既存ファイルは丸ごと上書きする."""
    path = snapshot_path(data_dir, snapshot_date, country)
    path.parent.mkdir(parents=True, exist_ok=True)
    _write_json(path, snapshot.to_dict())
    return path


# --- マージ結果 ---


def load_state(path: Path) -> MergeState:
    """マージ結果ファイルを読み込む.

    ファイルが無ければ初期状態 (update_date=None, package_names=[]) を書き込んで返す。

    Raises:
        InvalidMergeStateError: JSON・update_date・package_names のいずれかが不正
        OSError: 存在しない以外の理由で読み込めない
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("マージ結果ファイルが存在しないため初期化: %s", path)
        state = MergeState(update_date=None, package_names=[])
        save_state(path, state)
        return state

    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidMergeStateError(f"JSON パースエラー: {path}: {e}") from e

    if not isinstance(raw, dict):
        raise InvalidMergeStateError(f"不正なデータ形式です: {raw!r}")

    raw_date = raw.get("update_date")
    package_names = raw.get("package_names")

    update_date = parse_date(raw_date) if isinstance(raw_date, str) else None
    if raw_date is not None and update_date is None:
        raise InvalidMergeStateError(f"不正な update_date です: {raw_date!r}")

    if not isinstance(package_names, list):
        raise InvalidMergeStateError(f"不正な package_names です: {package_names!r}")

    return MergeState(update_date=update_date, package_names=package_names)


def save_state(path: Path, state: MergeState) -> None:
    """マージ結果ファイルを丸ごと上書きする."""
    _write_json(path, state.to_dict())


# --- スキャン ---


def relevant_folders(root: Path, update_date: date | None) -> list[str]:
    """update_date より新しい日付フォルダ名を昇順で返す。None なら全日付フォルダ."""
    folders: list[str] = []
    for entry in root.iterdir():
        if not entry.is_dir() or not _DATE_PATTERN.match(entry.name):
            continue
        folder_date = parse_date(entry.name)
        if folder_date is None:
            logger.warning("日付として解釈できないフォルダをスキップ: %s", entry.name)
            continue
        if update_date is None or folder_date > update_date:
            folders.append(entry.name)
    return sorted(folders)


def relevant_snapshots(folder: Path, name_filter: str | None) -> list[dict]:
    """フォルダ内のスナップショットを読み込む.

    Args:
        folder: 日付フォルダ
        name_filter: ファイル名に含まれるべき文字列。None なら全ファイル。
    """
    snapshots: list[dict] = []
    for path in sorted(folder.iterdir()):
        if not path.is_file():
            continue
        if name_filter is not None and name_filter not in path.name:
            continue
        snapshots.append(_read_json(path))
    return snapshots
