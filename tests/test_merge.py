"""merge モジュールのテスト."""

import json
from datetime import date
from unittest.mock import patch

import pytest

from playrank.merge import (
    extract_package_names,
    merge_data,
    merge_package_names,
    run,
)
from playrank.storage import InvalidMergeStateError


def _write_json(path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


def _read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestExtractPackageNames:
    """extract_package_names のテスト."""

    def test_excluded_categories(self):
        """application とゲーム系カテゴリは対象外であること."""
        snapshot = {
            "application": {"top_free": ["com.app"]},
            "game": {"top_free": ["com.game"]},
            "game_action": {"top_free": ["com.action"]},
            "tools": {"top_free": ["com.tool"], "top_paid": ["com.paid"]},
        }
        assert extract_package_names(snapshot) == ["com.tool"]

    def test_missing_top_free(self):
        assert extract_package_names({"tools": {"grossing": ["com.g"]}}) == []

    def test_null_top_free_and_non_object_category(self):
        """top_free が null・カテゴリ値が object でない場合も空として扱うこと."""
        snapshot = {
            "tools": {"top_free": None},
            "social": ["not", "an", "object"],
            "weather": {"top_free": ["com.w"]},
        }
        assert extract_package_names(snapshot) == ["com.w"]


class TestMergePackageNames:
    """merge_package_names のテスト."""

    def test_dedup_and_sort(self):
        result = merge_package_names(["b", "a"], [{"tools": {"top_free": ["a", "c"]}}])
        assert result == ["a", "b", "c"]


class TestMergeData:
    """merge_data のテスト."""

    def test_first_run(self, tmp_path):
        _write_json(tmp_path / "2024-01-01" / "2024_01_01_kr.json",
                    {"tools": {"top_free": ["com.b"]}})
        _write_json(tmp_path / "2024-01-03" / "2024_01_03_us.json",
                    {"social": {"top_free": ["com.a"]}})

        state = merge_data("merged_global.json", None, tmp_path)

        assert state.update_date == date(2024, 1, 3)
        assert _read_json(tmp_path / "merged_global.json") == {
            "update_date": "2024-01-03",
            "package_names": ["com.a", "com.b"],
        }

    def test_watermark_is_max_folder(self, tmp_path):
        """最後に処理したフォルダではなく最大日付になること."""
        for day in ["2024-01-03", "2024-01-01"]:
            _write_json(tmp_path / day / f"{day.replace('-', '_')}_kr.json", {})

        state = merge_data("merged_global.json", None, tmp_path)

        assert state.update_date == date(2024, 1, 3)

    def test_incremental(self, tmp_path):
        """update_date 以前のフォルダは取り込まないこと."""
        _write_json(tmp_path / "merged_global.json",
                    {"update_date": "2024-01-01", "package_names": ["b", "a"]})
        _write_json(tmp_path / "2024-01-01" / "2024_01_01_kr.json",
                    {"tools": {"top_free": ["old"]}})
        _write_json(tmp_path / "2024-01-02" / "2024_01_02_kr.json",
                    {"tools": {"top_free": ["a", "c"]}})

        state = merge_data("merged_global.json", None, tmp_path)

        assert state.package_names == ["a", "b", "c"]
        assert state.update_date == date(2024, 1, 2)

    def test_name_filter(self, tmp_path):
        _write_json(tmp_path / "2024-01-01" / "2024_01_01_kr.json",
                    {"tools": {"top_free": ["com.kr"]}})
        _write_json(tmp_path / "2024-01-01" / "2024_01_01_us.json",
                    {"tools": {"top_free": ["com.us"]}})

        state = merge_data("merged_kr.json", "kr", tmp_path)

        assert state.package_names == ["com.kr"]

    def test_idempotent_without_new_folders(self, tmp_path):
        """新しいフォルダが無ければ 2 回目は何も変わらないこと."""
        _write_json(tmp_path / "2024-01-01" / "2024_01_01_kr.json",
                    {"tools": {"top_free": ["com.b", "com.a"]}})

        merge_data("merged_global.json", None, tmp_path)
        first = (tmp_path / "merged_global.json").read_text(encoding="utf-8")
        state = merge_data("merged_global.json", None, tmp_path)
        second = (tmp_path / "merged_global.json").read_text(encoding="utf-8")

        assert first == second
        assert state.update_date == date(2024, 1, 1)

    def test_no_folders_keeps_null_watermark(self, tmp_path):
        state = merge_data("merged_global.json", None, tmp_path)

        assert state.update_date is None
        assert state.package_names == []

    def test_invalid_state_not_written(self, tmp_path):
        path = tmp_path / "merged_global.json"
        _write_json(path, {"update_date": "bad", "package_names": []})
        _write_json(tmp_path / "2024-01-01" / "2024_01_01_kr.json",
                    {"tools": {"top_free": ["com.a"]}})

        with pytest.raises(InvalidMergeStateError):
            merge_data("merged_global.json", None, tmp_path)
        assert _read_json(path) == {"update_date": "bad", "package_names": []}


class TestRun:
    """run のテスト."""

    @patch("playrank.merge.setup_logging")
    @patch("playrank.merge.merge_data")
    def test_failure_does_not_block_other_target(self, mock_merge, _):
        mock_merge.side_effect = [InvalidMergeStateError("bad"), None]

        assert run() is False
        assert [c.args for c in mock_merge.call_args_list] == [
            ("merged_global.json", None),
            ("merged_kr.json", "kr"),
        ]
