"""
Configuration Management

시스템 설정 관리
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from pathlib import Path
import logging

from dotenv import load_dotenv


SUPPORTED_PROVIDERS = {'gemini', 'huggingface'}


@dataclass
class ServerConfig:
    """HTTP 서버 설정"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False


@dataclass
class GitHubConfig:
    """GitHub API 및 인증 설정"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    app_id: Optional[str] = None
    app_private_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    oauth_client_id: Optional[str] = None
    oauth_client_secret: Optional[str] = None
    timeout_seconds: Optional[float] = None  # None: HTTP 클라이언트 기본값 (타임아웃 없음)

    @property
    def app_auth_enabled(self) -> bool:
        return bool(self.app_id and self.app_private_key)


@dataclass
class ProviderConfig:
    """AI 추론 제공자 설정"""
    name: str = "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    huggingface_api_key: Optional[str] = None
    huggingface_model: str = "meta-llama/CodeLlama-7b-Instruct-hf"
    huggingface_api_url: str = "https://api-inference.huggingface.co"
    timeout_seconds: Optional[float] = None


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


def _read_private_key() -> Optional[str]:
    """GITHUB_APP_PRIVATE_KEY_PATH 파일 또는 GITHUB_APP_PRIVATE_KEY 값 (\\n 이스케이프 허용)"""
    key_path = os.getenv("GITHUB_APP_PRIVATE_KEY_PATH")
    if key_path:
        return Path(key_path).read_text(encoding='utf-8')
    inline = os.getenv("GITHUB_APP_PRIVATE_KEY")
    if inline:
        return inline.replace("\\n", "\n").strip()
    return None


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    server: ServerConfig = field(default_factory=ServerConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "AppConfig":
        """환경 변수에서 설정 로드 (.env 파일이 있으면 먼저 로드)"""
        load_dotenv(dotenv_path)

        return cls(
            server=ServerConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "8080")),
                debug=os.getenv("DEBUG", "false").lower() == "true",
            ),
            github=GitHubConfig(
                token=os.getenv("GITHUB_TOKEN"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                app_id=os.getenv("GITHUB_APP_ID"),
                app_private_key=_read_private_key(),
                webhook_secret=os.getenv("GITHUB_WEBHOOK_SECRET"),
                oauth_client_id=os.getenv("GITHUB_OAUTH_CLIENT_ID"),
                oauth_client_secret=os.getenv("GITHUB_OAUTH_CLIENT_SECRET"),
                timeout_seconds=_optional_float(os.getenv("GITHUB_TIMEOUT")),
            ),
            provider=ProviderConfig(
                name=os.getenv("AI_PROVIDER", "gemini").lower(),
                gemini_api_key=os.getenv("GEMINI_API_KEY"),
                gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
                gemini_api_url=os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"),
                huggingface_api_key=os.getenv("HF_API_KEY"),
                huggingface_model=os.getenv("HF_MODEL", "meta-llama/CodeLlama-7b-Instruct-hf"),
                huggingface_api_url=os.getenv("HF_API_URL", "https://api-inference.huggingface.co"),
                timeout_seconds=_optional_float(os.getenv("AI_TIMEOUT")),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: str, dotenv_path: Optional[str] = None) -> "AppConfig":
        """YAML 파일에서 설정 로드 (YAML에 없는 시크릿은 환경 변수 / .env에서 채움)"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        # 키가 모두 주석 처리된 섹션은 None으로 읽힘
        config = cls(
            server=ServerConfig(**(config_data.get('server') or {})),
            github=GitHubConfig(**(config_data.get('github') or {})),
            provider=ProviderConfig(**(config_data.get('provider') or {})),
            logging=LoggingConfig(**(config_data.get('logging') or {})),
        )

        load_dotenv(dotenv_path)
        config._fill_secrets_from_env()
        return config

    def _fill_secrets_from_env(self) -> None:
        """YAML에 값이 없는 시크릿만 from_env와 같은 환경 변수에서 채움"""
        github = self.github
        github.token = github.token or os.getenv("GITHUB_TOKEN")
        github.app_id = github.app_id or os.getenv("GITHUB_APP_ID")
        github.app_private_key = github.app_private_key or _read_private_key()
        github.webhook_secret = github.webhook_secret or os.getenv("GITHUB_WEBHOOK_SECRET")
        github.oauth_client_id = github.oauth_client_id or os.getenv("GITHUB_OAUTH_CLIENT_ID")
        github.oauth_client_secret = github.oauth_client_secret or os.getenv("GITHUB_OAUTH_CLIENT_SECRET")

        provider = self.provider
        provider.gemini_api_key = provider.gemini_api_key or os.getenv("GEMINI_API_KEY")
        provider.huggingface_api_key = provider.huggingface_api_key or os.getenv("HF_API_KEY")

    def validate(self) -> None:
        """설정 유효성 검사 (AI 키 누락은 호출 시점에 ProviderAuthError로 보고)"""
        errors = []

        # 포트 범위 확인
        if not 0 < self.server.port < 65536:
            errors.append(f"Invalid port: {self.server.port}")

        # 제공자 이름 확인
        if self.provider.name.lower() not in SUPPORTED_PROVIDERS:
            errors.append(f"Unknown AI provider: {self.provider.name}")

        # GitHub App 자격 증명은 쌍으로 필요
        if bool(self.github.app_id) != bool(self.github.app_private_key):
            errors.append("GitHub App ID and private key must be configured together")

        # 로그 레벨 검증
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        return {
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug': self.server.debug,
            },
            'github': {
                'api_base_url': self.github.api_base_url,
                'app_id': self.github.app_id,
                'timeout_seconds': self.github.timeout_seconds,
                # 보안상 토큰, 키, 시크릿은 제외
            },
            'provider': {
                'name': self.provider.name,
                'gemini_model': self.provider.gemini_model,
                'gemini_api_url': self.provider.gemini_api_url,
                'huggingface_model': self.provider.huggingface_model,
                'huggingface_api_url': self.provider.huggingface_api_url,
                'timeout_seconds': self.provider.timeout_seconds,
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file_path': self.logging.file_path,
                'max_file_size': self.logging.max_file_size,
                'backup_count': self.logging.backup_count,
            },
        }


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            # 루트 로거에 핸들러 추가
            root_logger = logging.getLogger()
            root_logger.addHandler(handler)
