"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "sagasynth-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    # Valeur du tag `App-Name` posé sur chaque upload
    APP_TAG: str = "SagaSynth"

    CORS_ORIGINS: list[str] = ["*"]

    # Génération (modèle de complétion)
    OPENAI_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 3000
    MAX_SAMPLE_SIZE: int = 50

    # Stockage permanent: "http" (noeud d'upload) | "memory" (dev/tests)
    STORAGE_BACKEND: str = "memory"
    STORAGE_UPLOAD_URL: str | None = None
    STORAGE_GATEWAY_URL: str = "https://gateway.irys.xyz"
    STORAGE_API_KEY: str | None = None
    STORAGE_TIMEOUT_S: float = 30.0

    # Chaîne / contrat registre
    RPC_URL: str = "https://evmrpc-testnet.0g.ai"
    CHAIN_ID: int | None = None
    PRIVATE_KEY: str | None = None
    CONTRACT_ADDRESS: str | None = None
    CONTRACT_ABI_PATH: str | None = None
    TX_RECEIPT_TIMEOUT_S: float = 180.0
    EXPLORER_TX_URL: str = "https://sagascan.io/tx/"
    ENRICHMENT_TIMEOUT_S: float = 5.0
    PROBE_CONCURRENCY: int = 8
    TOKEN_SCAN_LIMIT: int = 10_000

    # Historique
    HISTORY_PATH: str = "history.jsonl"
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False
    HISTORY_LIST_LIMIT: int = 100

    # Sources externes
    HF_DATASETS_URL: str = "https://datasets-server.huggingface.co/rows"

    # Observabilité
    LOG_LEVEL: str = "INFO"
    # Rendu JSON des logs (par défaut hors environnement "dev")
    LOG_JSON: bool | None = None
    # Seuil au-delà duquel une requête est journalisée comme lente (attente de reçu incluse)
    SLOW_REQUEST_MS: int = 5000
    OTLP_ENDPOINT: str | None = None


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
