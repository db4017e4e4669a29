"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

import pycountry
from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- 保存先 ---
# 日付フォルダとマージ結果ファイルはこのディレクトリ直下に置く
DATA_DIR = Path(os.getenv("PLAYRANK_DATA_DIR") or Path.cwd())

MERGED_GLOBAL_NAME = "merged_global.json"
MERGED_KR_NAME = "merged_kr.json"
KR_FILTER = "kr"

# --- Google Play ---
BATCHEXECUTE_URL = "https://play.google.com/_/PlayStoreUi/data/batchexecute"
TOP_CHART_RPC_ID = "vyAe2"
LANGUAGE = os.getenv("PLAYRANK_LANGUAGE", "en")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

# --- リクエスト設定 ---
MAX_FETCH_COUNT = 500
REQUEST_TIMEOUT = float(os.getenv("PLAYRANK_REQUEST_TIMEOUT", "30"))  # 秒

# 同時実行数 = CPU 数 × この係数
CONCURRENCY_FACTOR = 4

# --- カテゴリ・コレクション (列挙順がスナップショットのキー順になる) ---
CATEGORIES = [
    "APPLICATION",
    "ANDROID_WEAR",
    "ART_AND_DESIGN",
    "AUTO_AND_VEHICLES",
    "BEAUTY",
    "BOOKS_AND_REFERENCE",
    "BUSINESS",
    "COMICS",
    "COMMUNICATION",
    "DATING",
    "EDUCATION",
    "ENTERTAINMENT",
    "EVENTS",
    "FINANCE",
    "FOOD_AND_DRINK",
    "HEALTH_AND_FITNESS",
    "HOUSE_AND_HOME",
    "LIBRARIES_AND_DEMO",
    "LIFESTYLE",
    "MAPS_AND_NAVIGATION",
    "MEDICAL",
    "MUSIC_AND_AUDIO",
    "NEWS_AND_MAGAZINES",
    "PARENTING",
    "PERSONALIZATION",
    "PHOTOGRAPHY",
    "PRODUCTIVITY",
    "SHOPPING",
    "SOCIAL",
    "SPORTS",
    "TOOLS",
    "TRAVEL_AND_LOCAL",
    "VIDEO_PLAYERS",
    "WATCH_FACE",
    "WEATHER",
    "GAME",
    "GAME_ACTION",
    "GAME_ADVENTURE",
    "GAME_ARCADE",
    "GAME_BOARD",
    "GAME_CARD",
    "GAME_CASINO",
    "GAME_CASUAL",
    "GAME_EDUCATIONAL",
    "GAME_MUSIC",
    "GAME_PUZZLE",
    "GAME_RACING",
    "GAME_ROLE_PLAYING",
    "GAME_SIMULATION",
    "GAME_SPORTS",
    "GAME_STRATEGY",
    "GAME_TRIVIA",
    "GAME_WORD",
    "FAMILY",
]

COLLECTIONS = ["TOP_FREE", "TOP_PAID", "GROSSING"]

# --- マージ ---
TOP_FREE_KEY = "top_free"
EXCLUDED_CATEGORY = "application"
GAME_MARKER = "game"

# --- ログ ---
LOG_DIR = Path(os.getenv("PLAYRANK_LOG_DIR") or _PROJECT_ROOT / "logs")


def all_country_codes() -> list[str]:
    """ISO 3166-1 alpha-2 の国コード一覧を返す."""
    return [country.alpha_2 for country in pycountry.countries]
