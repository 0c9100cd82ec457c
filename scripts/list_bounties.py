"""
Liste les bounties du contrat registre (toutes, par créateur ou par contributeur).

Usage:
    python scripts/list_bounties.py
    python scripts/list_bounties.py --creator 0xabc... --output bounties.json
    python scripts/list_bounties.py --contributor 0xdef...
"""

from __future__ import annotations

import argparse
import json
import sys

from sagasynth.core.logging import setup_logging
from sagasynth.core.settings import get_settings
from sagasynth.domain.bounty import BountyLifecycleManager
from sagasynth.domain.errors import SagaError
from sagasynth.infra.chain.registry_client import RegistryClient


def main(argv: list[str] | None = None, registry=None) -> int:
    """Point d'entrée; retourne le code de sortie du processus."""
    parser = argparse.ArgumentParser(description="List registry bounties")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--creator", help="Only bounties created by this address")
    group.add_argument("--contributor", help="Only bounties listing this contributor")
    parser.add_argument("--output", help="Write the JSON result to this file")
    args = parser.parse_args(argv)

    setup_logging(stream=sys.stderr)
    manager = BountyLifecycleManager(registry or RegistryClient.from_settings(get_settings()))
    try:
        if args.creator:
            bounties = [b.to_api() for b in manager.list_by_creator(args.creator)]
            result = {"creator": args.creator, "total": len(bounties), "bounties": bounties}
        elif args.contributor:
            bounties = [b.to_api() for b in manager.list_by_contributor(args.contributor)]
            result = {"contributor": args.contributor, "total": len(bounties), "bounties": bounties}
        else:
            result = manager.list_all()
    except SagaError as exc:
        print(f"error: {exc.message} ({exc.details})", file=sys.stderr)
        return 1

    text = json.dumps(result, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"wrote {result['total']} bounties to {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())
