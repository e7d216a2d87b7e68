#!/usr/bin/env python3
"""
CUI版 AI Chat クライアント

サーバー（python -m src.server.run）に接続し、標準入出力で会話します。

使用例:
    python -m src.chat_client.cli
    python -m src.chat_client.cli --server http://localhost:8000 --session-id <id>

コマンド:
    /new            新しいチャットを開始
    /sessions       チャット一覧
    /open <id>      チャットを開く
    /delete <id>    チャットを削除
    /play <msg id>  メッセージを音声化してファイルに保存
    exit / quit     終了
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

from src.ai_chat.config import Config
from src.ai_chat.logger import setup_logger

from .api_client import ApiRequestError, ChatApiClient
from .audio_cache import AudioCache
from .audio_service import AudioService
from .models import PendingMessage, SendStatus
from .notifications import Notification, NotificationCenter
from .pipeline import ChatPipeline

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """コマンドライン引数をパース"""
    parser = argparse.ArgumentParser(
        description="CUI版 AI Chat クライアント",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--server", type=str, default=None, help="サーバーURL")
    parser.add_argument(
        "--session-id", type=str, default=None, help="既存のセッションIDを指定して会話を再開"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="ログレベル（デフォルト: WARNING）",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="ログを画面にも表示（通常はファイルのみ）"
    )
    return parser.parse_args(argv)


def print_notification(notification: Notification) -> None:
    prefix = "!" if notification.variant == "destructive" else "*"
    print(f"[{prefix}] {notification.title}: {notification.message}")


def render_view(pipeline: ChatPipeline) -> None:
    """現在のセッションのメッセージを表示"""
    for entry in pipeline.view.entries:
        marker = "…" if isinstance(entry, PendingMessage) else f"#{entry.id}"
        print(f"{marker} {entry.role.value}: {entry.content}")


async def handle_command(
    line: str, pipeline: ChatPipeline, audio: AudioService, output_dir: Path
) -> None:
    command, _, arg = line.partition(" ")
    arg = arg.strip()

    if command == "/new":
        pipeline.new_chat()
        print("新しいチャットを開始しました。\n")
    elif command == "/sessions":
        sessions = await pipeline.list_sessions()
        if not sessions:
            print("チャットはまだありません。")
        for session in sessions:
            active = "*" if session.id == pipeline.view.session_id else " "
            print(f"{active} {session.id}  {session.title}")
    elif command == "/open" and arg:
        if await pipeline.open_session(arg):
            render_view(pipeline)
    elif command == "/delete" and arg:
        if await pipeline.delete_session(arg):
            print(f"チャット '{arg}' を削除しました。")
    elif command == "/play" and arg.isdigit():
        message = pipeline.view.find(int(arg))
        if message is None:
            print(f"メッセージ #{arg} は表示中のチャットにありません。")
            return
        try:
            path = await audio.save_audio(message, output_dir)
            print(f"音声を保存しました: {path}")
        except ApiRequestError as e:
            pipeline.notifier.error(f"Failed to generate speech: {e.message}")
    else:
        print("不明なコマンドです。")


def run_repl(
    pipeline: ChatPipeline, audio: AudioService, output_dir: Path, session_id: Optional[str]
) -> None:
    """対話ループ（1入力ごとにイベントループを回す）"""
    if session_id and asyncio.run(pipeline.open_session(session_id)):
        print(f"セッション '{session_id}' を読み込みました。")
        render_view(pipeline)

    while True:
        try:
            user_input = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nAI Chat を終了します。")
            break

        if user_input.lower() in ["exit", "quit", "q"]:
            print("AI Chat を終了します。")
            break
        if not user_input:
            continue
        if user_input.startswith("/"):
            asyncio.run(handle_command(user_input, pipeline, audio, output_dir))
            continue

        print("AI: 考え中...", flush=True)
        result = asyncio.run(pipeline.send(user_input, pipeline.view.session_id))
        if result.status is SendStatus.COMMITTED and result.messages:
            reply = result.messages[-1]
            print(f"AI (#{reply.id}): {reply.content}\n")


def main(argv: Optional[list] = None) -> int:
    """メイン処理"""
    args = parse_args(argv)
    config = Config.from_yaml()
    setup_logger(log_level=args.log_level, log_file=config.log_file, console=args.verbose)

    api = ChatApiClient(
        base_url=args.server or config.client.server_url,
        timeout=config.client.timeout_seconds,
    )
    notifier = NotificationCenter(listener=print_notification)
    pipeline = ChatPipeline(api, notifier=notifier)
    cache = AudioCache(
        db_path=config.client.audio_cache_path,
        max_age=timedelta(days=config.client.audio_cache_max_age_days),
    )
    audio = AudioService(api, cache, view=pipeline.view)

    print("=" * 60)
    print("AI Chat（CUI版）  /new /sessions /open /delete /play  exit で終了")
    print("=" * 60)

    try:
        run_repl(pipeline, audio, Path(config.client.audio_output_dir), args.session_id)
    except KeyboardInterrupt:
        print("\nAI Chat を終了します。")
    except Exception as e:
        logger.error(f"エラーが発生しました: {e}", exc_info=True)
        print(f"エラー: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
