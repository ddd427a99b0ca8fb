import os
import sys
import json
import logging
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

TRUE_VALUES = ('true', '1', 'yes')


@dataclass
class GoogleCredentials:
    """Identifiants de l'API Google Custom Search"""
    api_key: str = ""
    search_engine_id: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.api_key and self.search_engine_id)


@dataclass
class FetchConfig:
    """Configuration de la récupération des pages"""
    timeout: float = 30.0
    max_content_length: int = 10 * 1024 * 1024
    max_concurrent_fetches: int = 5


@dataclass
class SearchConfig:
    """Configuration du client de recherche"""
    endpoint: str = "https://www.googleapis.com/customsearch/v1"
    timeout: float = 30.0


@dataclass
class MCPConfig:
    """Configuration principale du serveur MCP"""
    # Serveur
    server_name: str = "google-search"
    server_mode: str = "stdio"
    http_host: str = "127.0.0.1"
    http_port: int = 5004
    liveness_interval: float = 5.0
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Identifiants
    api_keys_file: str = "api-keys.json"
    credentials: GoogleCredentials = field(default_factory=GoogleCredentials)

    # Composants
    fetch: FetchConfig = field(default_factory=FetchConfig)
    search: SearchConfig = field(default_factory=SearchConfig)


class Settings:
    """Gestionnaire de configuration centralisé"""

    def __init__(self, load_env_file: bool = True):
        if load_env_file:
            load_dotenv()
        self.config = MCPConfig()
        self._load_from_environment()

    def _load_from_environment(self):
        """Charge la configuration depuis les variables d'environnement"""

        # Configuration serveur
        if os.getenv('SERVER_MODE'):
            self.config.server_mode = os.getenv('SERVER_MODE').lower()

        if os.getenv('HTTP_HOST'):
            self.config.http_host = os.getenv('HTTP_HOST')

        self.config.http_port = self._int_from_env('HTTP_PORT', self.config.http_port)
        self.config.liveness_interval = self._float_from_env('LIVENESS_INTERVAL', self.config.liveness_interval)

        if os.getenv('DEBUG'):
            self.config.debug = os.getenv('DEBUG').lower() in TRUE_VALUES

        # Configuration récupération
        self.config.fetch.timeout = self._float_from_env('FETCH_TIMEOUT', self.config.fetch.timeout)
        self.config.fetch.max_content_length = self._int_from_env(
            'MAX_CONTENT_LENGTH', self.config.fetch.max_content_length)
        self.config.fetch.max_concurrent_fetches = self._int_from_env(
            'MAX_CONCURRENT_FETCHES', self.config.fetch.max_concurrent_fetches)
        self.config.search.timeout = self._float_from_env('SEARCH_TIMEOUT', self.config.search.timeout)

        # Configuration logging
        if os.getenv('LOG_LEVEL'):
            self.config.log_level = os.getenv('LOG_LEVEL').upper()

        if os.getenv('LOG_FILE'):
            self.config.log_file = os.getenv('LOG_FILE')

        if self.config.debug:
            self.config.log_level = "DEBUG"

        # Identifiants
        if os.getenv('API_KEYS_FILE'):
            self.config.api_keys_file = os.getenv('API_KEYS_FILE')

        self.config.credentials = GoogleCredentials(
            api_key=os.getenv('GOOGLE_API_KEY', ''),
            search_engine_id=os.getenv('GOOGLE_SEARCH_ENGINE_ID', ''),
        )

    @staticmethod
    def _int_from_env(name: str, default: int) -> int:
        value = os.getenv(name)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"{name} invalide, utilisation de la valeur par défaut")
            return default

    @staticmethod
    def _float_from_env(name: str, default: float) -> float:
        value = os.getenv(name)
        if not value:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning(f"{name} invalide, utilisation de la valeur par défaut")
            return default

    def load_credentials(self) -> GoogleCredentials:
        """
        Returns the Google credentials, reading the api keys file when the
        environment does not provide both values.

        Raises:
            ConfigurationError: if credentials are still incomplete
        """
        credentials = self.config.credentials
        if credentials.complete:
            return credentials

        path = Path(self.config.api_keys_file)
        if path.is_file():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(f"Cannot read {path}: {e}") from e

            if not isinstance(data, dict):
                raise ConfigurationError(f"{path} must contain a JSON object")

            credentials = GoogleCredentials(
                api_key=credentials.api_key or str(data.get('api_key') or ''),
                search_engine_id=credentials.search_engine_id or str(data.get('search_engine_id') or ''),
            )
            logger.debug(f"Identifiants chargés depuis {path}")

        if not credentials.complete:
            raise ConfigurationError(
                "Missing API credentials: set GOOGLE_API_KEY and GOOGLE_SEARCH_ENGINE_ID"
            )

        self.config.credentials = credentials
        return credentials

    def setup_logging(self):
        """Configure le logging basé sur les paramètres"""
        log_level = getattr(logging, self.config.log_level, logging.INFO)

        # Format des logs
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        # stdout est réservé au transport MCP
        logging.basicConfig(
            level=log_level,
            format=log_format,
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stderr
        )

        # Fichier de log si spécifié
        if self.config.log_file:
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            logging.getLogger('google_search_mcp').addHandler(file_handler)

        # Configurer les niveaux pour les bibliothèques externes
        external_loggers = {
            'httpx': logging.WARNING,
            'httpcore': logging.WARNING,
            'bs4': logging.WARNING,
            'uvicorn.access': logging.WARNING,
        }

        for logger_name, level in external_loggers.items():
            logging.getLogger(logger_name).setLevel(level)

    def validate_config(self) -> bool:
        """Valide la configuration"""
        errors: List[str] = []

        if self.config.server_mode not in ('stdio', 'http'):
            errors.append(f"SERVER_MODE invalide: {self.config.server_mode}")

        if not (1 <= self.config.http_port <= 65535):
            errors.append(f"Port invalide: {self.config.http_port}")

        if self.config.liveness_interval <= 0:
            errors.append("liveness_interval doit être positif")

        if self.config.fetch.timeout <= 0:
            errors.append("FETCH_TIMEOUT doit être positif")

        if self.config.fetch.max_content_length <= 0:
            errors.append("MAX_CONTENT_LENGTH doit être positif")

        if self.config.fetch.max_concurrent_fetches < 1:
            errors.append("MAX_CONCURRENT_FETCHES doit être >= 1")

        if errors:
            for error in errors:
                logger.error(f"Configuration invalide: {error}")
            return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convertit la configuration en dictionnaire (pour debug)"""
        api_key = self.config.credentials.api_key
        return {
            'server': {
                'name': self.config.server_name,
                'mode': self.config.server_mode,
                'http_host': self.config.http_host,
                'http_port': self.config.http_port,
                'liveness_interval': self.config.liveness_interval,
                'debug': self.config.debug
            },
            'credentials': {
                'api_key': f"{api_key[:4]}..." if api_key else "",
                'search_engine_id': self.config.credentials.search_engine_id
            },
            'fetch': {
                'timeout': self.config.fetch.timeout,
                'max_content_length': self.config.fetch.max_content_length,
                'max_concurrent_fetches': self.config.fetch.max_concurrent_fetches
            },
            'search': {
                'endpoint': self.config.search.endpoint,
                'timeout': self.config.search.timeout
            }
        }
