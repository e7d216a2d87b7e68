"""
ロギング設定モジュール

サーバー（src.server.dependencies）とCUIクライアント（src.chat_client.cli）の
両方から起動時に一度呼び出される。
"""

import logging
from pathlib import Path
from typing import List

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTPクライアントの接続ログは冗長なので抑制する
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore")


def setup_logger(
    log_level: str = "INFO",
    log_file: str = "logs/ai_chat.log",
    console: bool = True,
) -> None:
    """
    ロガーのセットアップ

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: ログファイルのパス
        console: 標準エラーにも出力するか（CUIでは対話表示を崩さないようFalse）
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: List[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if console:
        handlers.append(logging.StreamHandler())

    # 再呼び出し時（テスト・uvicornのreload）は既存ハンドラを置き換える
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
