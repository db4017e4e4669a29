"""Google Play トップチャート取得モジュール.

取得戦略:
  1. batchexecute (rpcid=vyAe2) レスポンスの JSON パース（主戦略）
  2. HTML 中の details?id= リンクのパース（フォールバック）

取得失敗はこのモジュールの境界で空リストに変換し、呼び出し元へは例外を出さない。
"""

from __future__ import annotations

import asyncio
import json
import logging
from urllib.parse import parse_qs, urlparse

import requests
from bs4 import BeautifulSoup

from playrank.config import (
    BATCHEXECUTE_URL,
    LANGUAGE,
    MAX_FETCH_COUNT,
    REQUEST_TIMEOUT,
    TOP_CHART_RPC_ID,
    USER_AGENT,
)
from playrank.models import FetchResult

logger = logging.getLogger(__name__)

_XSSI_PREFIX = ")]}'"

# payload 内でアプリ一覧が入っている位置
_APPS_PATH = (0, 1, 0, 28, 0)
# アプリ 1 件の中でパッケージ名が入っている位置
_APP_ID_PATH = (0, 0, 0)


def build_request_body(category: str, collection: str, num: int) -> dict[str, str]:
    """トップチャート RPC の POST ボディを組み立てる."""
    inner = [[None, [[None, [None, num]], None, None, [113]], [2, collection, category]]]
    f_req = [[[TOP_CHART_RPC_ID, json.dumps(inner, separators=(",", ":")), None, "generic"]]]
    return {"f.req": json.dumps(f_req, separators=(",", ":"))}


def fetch_chart_page(country: str, category: str, collection: str, num: int) -> str:
    """トップチャート RPC のレスポンス本文を取得する.

    Raises:
        requests.RequestException: 通信失敗・HTTP エラー時
    """
    params = {"rpcids": TOP_CHART_RPC_ID, "hl": LANGUAGE, "gl": country, "authuser": ""}
    headers = {
        "User-Agent": USER_AGENT,
        "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
        "Accept-Language": f"{LANGUAGE},en-US;q=0.9,en;q=0.8",
    }
    resp = requests.post(
        BATCHEXECUTE_URL,
        params=params,
        data=build_request_body(category, collection, num),
        headers=headers,
        timeout=REQUEST_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.text


def parse_ranking(text: str, num: int = MAX_FETCH_COUNT) -> list[str]:
    """レスポンス本文からパッケージ名を順位順に抽出する.

    主戦略: batchexecute の JSON
    フォールバック: HTML の details?id= リンク

    Returns:
        重複を除いたパッケージ名のリスト（最大 num 件）。抽出できなければ空リスト。
    """
    names = _parse_from_batchexecute(text)
    if not names:
        logger.debug("batchexecute パース失敗。HTML にフォールバック")
        names = _parse_from_html(text)

    return _unique(names)[:num]


def _parse_from_batchexecute(text: str) -> list[str]:
    """batchexecute レスポンスからパッケージ名を抽出する."""
    if not text.lstrip().startswith(_XSSI_PREFIX):
        return []

    for line in text.splitlines():
        line = line.strip()
        if not line.startswith("["):
            continue
        try:
            envelopes = json.loads(line)
        except json.JSONDecodeError:
            continue

        for envelope in envelopes:
            if not isinstance(envelope, list) or len(envelope) < 3:
                continue
            if envelope[0] != "wrb.fr" or envelope[1] != TOP_CHART_RPC_ID:
                continue
            if not isinstance(envelope[2], str):
                return []
            try:
                payload = json.loads(envelope[2])
            except json.JSONDecodeError as e:
                logger.warning("batchexecute payload JSON パースエラー: %s", e)
                return []
            return _extract_app_ids(payload)

    return []


def _extract_app_ids(payload) -> list[str]:
    apps = _deep_get(payload, *_APPS_PATH)
    if not isinstance(apps, list):
        return []

    names: list[str] = []
    for app in apps:
        app_id = _deep_get(app, *_APP_ID_PATH)
        if isinstance(app_id, str) and app_id:
            names.append(app_id)
    return names


def _parse_from_html(text: str) -> list[str]:
    """HTML の /store/apps/details?id= リンクからパッケージ名を抽出する."""
    soup = BeautifulSoup(text, "html.parser")
    names: list[str] = []

    for anchor in soup.find_all("a", href=True):
        parsed = urlparse(anchor["href"])
        if not parsed.path.endswith("/store/apps/details"):
            continue
        app_id = parse_qs(parsed.query).get("id", [""])[0]
        if app_id:
            names.append(app_id)

    return names


def _deep_get(d, *keys):
    """ネストされた list / dict から安全に値を取得する."""
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key)
        elif isinstance(d, list) and isinstance(key, int) and -len(d) <= key < len(d):
            d = d[key]
        else:
            return None
    return d


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


def fetch_ranking(
    country: str, category: str, collection: str, num: int = MAX_FETCH_COUNT
) -> FetchResult:
    """1 つの (国, カテゴリ, コレクション) のランキングを取得する.

    失敗しても例外は出さず、error を設定した FetchResult を返す。
    """
    result = FetchResult(country=country, category=category, collection=collection)
    try:
        text = fetch_chart_page(country, category, collection, num)
        result.package_names = parse_ranking(text, num)
        if not result.package_names:
            result.error = "malformed response: no package names"
    except requests.RequestException as e:
        result.error = f"request failed: {e}"
    except (ValueError, LookupError, TypeError) as e:
        result.error = f"malformed response: {e}"
    return result


async def get_ranking(country: str, category: str, collection: str) -> list[str]:
    """fetch_ranking を別スレッドで実行し、パッケージ名リストを返す.

    Returns:
        パッケージ名のリスト。失敗時は空リスト。
    """
    result = await asyncio.to_thread(fetch_ranking, country, category, collection)
    if not result.ok:
        logger.warning(
            "ランキング取得失敗: country=%s, category=%s, collection=%s, error=%s",
            country, category, collection, result.error,
        )
        return []
    return result.package_names
