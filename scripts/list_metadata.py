"""
Énumère les jetons mintés et conserve ceux dont les métadonnées sont complètes.

Usage:
    python scripts/list_metadata.py [--output metadata.json]
"""

from __future__ import annotations

import argparse
import json
import sys

import httpx

from sagasynth.core.logging import setup_logging
from sagasynth.core.settings import get_settings
from sagasynth.domain.catalog import CatalogService
from sagasynth.domain.errors import SagaError
from sagasynth.infra.chain.registry_client import RegistryClient


def main(argv: list[str] | None = None, registry=None) -> int:
    parser = argparse.ArgumentParser(description="Enumerate minted metadata tokens")
    parser.add_argument("--output", help="Write the JSON result to this file")
    args = parser.parse_args(argv)

    setup_logging(stream=sys.stderr)
    settings = get_settings()
    with httpx.Client(timeout=settings.ENRICHMENT_TIMEOUT_S) as http:
        catalog = CatalogService(
            registry or RegistryClient.from_settings(settings),
            http,
            enrichment_timeout=settings.ENRICHMENT_TIMEOUT_S,
        )
        try:
            result = catalog.all_metadata()
        except SagaError as exc:
            print(f"error: {exc.message} ({exc.details})", file=sys.stderr)
            return 1

    text = json.dumps(result, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"checked {result['total_checked']} tokens, kept {result['total_complete']}")
    else:
        print(text)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())
