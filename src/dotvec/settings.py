from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BACKENDS = ("sqlite", "jsonl", "memory")
PROVIDERS = ("dummy", "openai")


@dataclass(frozen=True)
class Store:
    backend: str
    data_dir: Path
    name: str


@dataclass(frozen=True)
class Embeddings:
    provider: str
    model: str
    dimension: int
    query_prefix: str = ""


@dataclass(frozen=True)
class Search:
    top_k: int


@dataclass(frozen=True)
class Settings:
    store: Store
    embeddings: Embeddings
    search: Search
    openai_api_key: str = ""


def _expand(p: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(p))).resolve()


def load_settings(path: str | Path = "settings.toml") -> Settings:
    """
    Load settings.toml, then apply environment overrides (a .env file is read first):

      DOTVEC_DATA_DIR    -> store.data_dir
      DOTVEC_STORE_NAME  -> store.name
      OPENAI_API_KEY     -> openai_api_key
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")

    load_dotenv()

    with path.open("rb") as f:
        raw = tomllib.load(f)

    try:
        settings = Settings(
            store=Store(
                backend=raw["store"]["backend"],
                data_dir=_expand(os.getenv("DOTVEC_DATA_DIR") or raw["store"]["data_dir"]),
                name=os.getenv("DOTVEC_STORE_NAME") or raw["store"]["name"],
            ),
            embeddings=Embeddings(
                provider=raw["embeddings"]["provider"],
                model=raw["embeddings"]["model"],
                dimension=int(raw["embeddings"]["dimension"]),
                query_prefix=str(raw["embeddings"].get("query_prefix", "")),
            ),
            search=Search(
                top_k=int(raw["search"]["top_k"]),
            ),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        )
    except KeyError as e:
        raise KeyError(f"Missing config key: {e}") from e

    if settings.store.backend not in BACKENDS:
        raise ValueError(f"Unknown store backend {settings.store.backend!r}; expected one of {BACKENDS}")
    if settings.embeddings.provider not in PROVIDERS:
        raise ValueError(
            f"Unknown embeddings provider {settings.embeddings.provider!r}; expected one of {PROVIDERS}"
        )
    return settings
