"""
設定管理モジュール

関連クラス:
  - completion.CompletionService: LLM設定を使用
  - murf_client.MurfClient: TTS設定を使用
  - chat_client.cli: クライアント設定を使用
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

PROJECT_ROOT = Path(__file__).parent.parent.parent


@dataclass
class LLMConfig:
    """チャット補完API設定（OpenRouter）"""

    provider: str = "openrouter"  # openrouter | ollama
    model: str = "deepseek/deepseek-chat"
    base_url: str = "https://openrouter.ai/api/v1"
    referer: str = "http://localhost:8000"
    app_title: str = "AI Chat App"
    timeout_seconds: float = 60.0


@dataclass
class OllamaConfig:
    """Ollama API設定（ローカルLLMを使う場合）"""

    host: str = "http://localhost:11434"
    model: str = "qwen3:8b"


@dataclass
class TTSConfig:
    """Murf音声合成API設定"""

    api_url: str = "https://api.murf.ai/v1/speech/generate"
    voice_id: str = "Charles"
    model_version: str = "GEN2"
    audio_format: str = "MP3"
    sample_rate: int = 44100
    timeout_seconds: float = 30.0


@dataclass
class ClientConfig:
    """CUIクライアント設定"""

    server_url: str = "http://localhost:8000"
    timeout_seconds: float = 90.0
    audio_cache_path: Optional[str] = None
    audio_cache_max_age_days: int = 30
    audio_output_dir: str = "outputs/audio"


@dataclass
class Config:
    """アプリケーション設定クラス"""

    llm: LLMConfig = None  # type: ignore
    ollama: OllamaConfig = None  # type: ignore
    tts: TTSConfig = None  # type: ignore
    client: ClientConfig = None  # type: ignore

    # ログ設定
    log_level: str = "INFO"
    log_file: str = "logs/ai_chat.log"

    # DB設定（Noneの場合はリポジトリ側のデフォルト）
    db_path: Optional[str] = None

    # AI生成設定
    max_tokens: int = 4096
    temperature: float = 0.7
    system_prompt: Optional[str] = None

    def __post_init__(self):
        """デフォルト値の初期化"""
        if self.llm is None:
            self.llm = LLMConfig()
        if self.ollama is None:
            self.ollama = OllamaConfig()
        if self.tts is None:
            self.tts = TTSConfig()
        if self.client is None:
            self.client = ClientConfig()

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """YAMLファイルから設定を読み込む

        Args:
            config_path: 設定ファイルパス（省略時はconfig/app_config.yamlを使用）

        Returns:
            Config: 設定インスタンス（ファイルが無い場合はデフォルト値）
        """
        if config_path is None:
            env_path = os.getenv("AI_CHAT_CONFIG")
            config_path = Path(env_path) if env_path else PROJECT_ROOT / "config" / "app_config.yaml"
        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}

        llm_data = yaml_data.get("llm") or {}
        ollama_data = yaml_data.get("ollama") or {}
        tts_data = yaml_data.get("tts") or {}
        client_data = yaml_data.get("client") or {}
        log_data = yaml_data.get("log") or {}
        db_data = yaml_data.get("database") or {}
        ai_data = yaml_data.get("ai") or {}

        # システムプロンプトをファイルから読み込む
        system_prompt = None
        system_prompt_file = ai_data.get("system_prompt_file")
        if system_prompt_file:
            prompt_path = config_path.parent.parent / system_prompt_file
            if prompt_path.exists():
                with open(prompt_path, "r", encoding="utf-8") as f:
                    system_prompt = f.read().strip() or None

        return cls(
            llm=LLMConfig(
                provider=llm_data.get("provider", "openrouter"),
                model=llm_data.get("model", "deepseek/deepseek-chat"),
                base_url=llm_data.get("base_url", "https://openrouter.ai/api/v1"),
                referer=llm_data.get("referer", "http://localhost:8000"),
                app_title=llm_data.get("app_title", "AI Chat App"),
                timeout_seconds=float(llm_data.get("timeout_seconds", 60.0)),
            ),
            ollama=OllamaConfig(
                host=ollama_data.get("host", "http://localhost:11434"),
                model=ollama_data.get("model", "qwen3:8b"),
            ),
            tts=TTSConfig(
                api_url=tts_data.get("api_url", "https://api.murf.ai/v1/speech/generate"),
                voice_id=tts_data.get("voice_id", "Charles"),
                model_version=tts_data.get("model_version", "GEN2"),
                audio_format=tts_data.get("format", "MP3"),
                sample_rate=int(tts_data.get("sample_rate", 44100)),
                timeout_seconds=float(tts_data.get("timeout_seconds", 30.0)),
            ),
            client=ClientConfig(
                server_url=client_data.get("server_url", "http://localhost:8000"),
                timeout_seconds=float(client_data.get("timeout_seconds", 90.0)),
                audio_cache_path=client_data.get("audio_cache_path"),
                audio_cache_max_age_days=int(client_data.get("audio_cache_max_age_days", 30)),
                audio_output_dir=client_data.get("audio_output_dir", "outputs/audio"),
            ),
            log_level=log_data.get("level", "INFO"),
            log_file=log_data.get("file", "logs/ai_chat.log"),
            db_path=db_data.get("path"),
            max_tokens=ai_data.get("max_tokens", 4096),
            temperature=ai_data.get("temperature", 0.7),
            system_prompt=system_prompt,
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        return cls(
            llm=LLMConfig(
                provider=os.getenv("LLM_PROVIDER", "openrouter"),
                model=os.getenv("LLM_MODEL", "deepseek/deepseek-chat"),
                base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
                referer=os.getenv("APP_REFERER", "http://localhost:8000"),
                timeout_seconds=float(os.getenv("LLM_TIMEOUT", "60")),
            ),
            ollama=OllamaConfig(
                host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
                model=os.getenv("OLLAMA_MODEL", "qwen3:8b"),
            ),
            tts=TTSConfig(
                api_url=os.getenv("MURF_API_URL", "https://api.murf.ai/v1/speech/generate"),
                voice_id=os.getenv("MURF_VOICE_ID", "Charles"),
                timeout_seconds=float(os.getenv("TTS_TIMEOUT", "30")),
            ),
            client=ClientConfig(
                server_url=os.getenv("AI_CHAT_SERVER_URL", "http://localhost:8000"),
                audio_cache_path=os.getenv("AI_CHAT_AUDIO_CACHE_PATH"),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/ai_chat.log"),
            db_path=os.getenv("AI_CHAT_DB_PATH"),
            max_tokens=int(os.getenv("MAX_TOKENS", "4096")),
            temperature=float(os.getenv("TEMPERATURE", "0.7")),
            system_prompt=os.getenv("SYSTEM_PROMPT"),
        )
