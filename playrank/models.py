"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


class ExpandDict(dict):
    """キーが無ければ既定値を挿入してから返す、挿入順保持の dict."""

    def ensure(self, key) -> ExpandDict:
        """key の値を返す。無ければ空の ExpandDict を挿入する."""
        if key not in self:
            self[key] = ExpandDict()
        return self[key]

    def to_dict(self) -> dict:
        """ネストした ExpandDict を素の dict に変換する."""
        return {
            key: value.to_dict() if isinstance(value, ExpandDict) else value
            for key, value in self.items()
        }


@dataclass
class FetchResult:
    """1 回のランキング取得結果."""

    country: str
    category: str
    collection: str
    package_names: list[str] = field(default_factory=list)
    error: str | None = None  # None = 成功

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MergeState:
    """マージ結果ファイルの内容."""

    update_date: date | None  # None = 全フォルダを取り込む
    package_names: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "update_date": self.update_date.isoformat() if self.update_date else None,
            "package_names": self.package_names,
        }


@dataclass
class CollectSummary:
    """収集フェーズの集計."""

    countries: int = 0
    written: int = 0
    empty: int = 0  # 全取得が失敗・空だった国の数
    peak_in_flight: int = 0  # 取得の最大同時実行数
