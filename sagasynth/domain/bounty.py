"""
Cycle de vie des bounties: création, ajout de contributeurs, distribution.

Machine à états par bounty::

    [absente] --create(0 < montant <= 100 ETH)--> ACTIVE (distributed=false)
    ACTIVE --add_contributor(adresse)--> ACTIVE
    ACTIVE --distribute()--> DISTRIBUTED (terminal)

Les gardes (existence, état terminal, contributeurs) sont vérifiées avant de déléguer au
client registre; la restriction administrateur reste appliquée par le contrat et remonte
sous forme de `PermissionDeniedError`.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog
from web3 import Web3

from sagasynth.core.constants import BOUNTY_MAX_ETH, REWARD_DISPLAY_QUANT
from sagasynth.domain.entities import Bounty, format_eth, utc_now_iso
from sagasynth.domain.errors import AlreadyDistributedError, ValidationError
from sagasynth.domain.validation import parse_eth_amount, require_address

log = structlog.get_logger(__name__)


def reward_per_contributor(amount: Decimal, count: int) -> str:
    """Part indicative par contributeur, arrondie à 6 décimales."""
    if count < 1:
        raise ValidationError("No contributors found. Cannot distribute empty bounty.")
    share = (amount / Decimal(count)).quantize(REWARD_DISPLAY_QUANT, rounding=ROUND_HALF_UP)
    return format(share, "f")


def summarize(bounties: list[Bounty]) -> dict[str, Any]:
    total = sum((b.amount_eth for b in bounties), Decimal(0))
    return {
        "active": sum(1 for b in bounties if not b.distributed),
        "distributed": sum(1 for b in bounties if b.distributed),
        "totalValue": f"{total.quantize(REWARD_DISPLAY_QUANT, rounding=ROUND_HALF_UP)} ETH",
    }


class BountyLifecycleManager:
    """Applique la machine à états avant de déléguer au client registre."""

    def __init__(self, registry, explorer_prefix: str = "https://sagascan.io/tx/"):
        self.registry = registry
        self.explorer_prefix = explorer_prefix

    def _active(self, bounty_id: int) -> Bounty:
        bounty = self.registry.get_bounty(bounty_id)
        if bounty.distributed:
            raise AlreadyDistributedError(
                "Bounty already distributed", details=f"bounty {bounty_id} is terminal"
            )
        return bounty

    def create(
        self,
        amount: Any,
        title: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        """Crée une bounty financée par `amount` ETH (0 < amount <= 100)."""
        value = parse_eth_amount(amount, maximum=BOUNTY_MAX_ETH, label="bounty")
        created = self.registry.create_bounty(value)
        log.info("bounty_created", bounty_id=created.bounty_id, amount=str(value))
        return {
            "bounty": {
                "id": created.bounty_id,
                "amount": format_eth(value),
                "amountWei": str(Web3.to_wei(value, "ether")),
                "title": title or "Unnamed Bounty",
                "description": description or "No description provided",
                "tags": list(tags or []),
                "creator": created.receipt.sender,
                "status": "active",
                "created_at": utc_now_iso(),
            },
            "transaction": created.receipt.to_api(self.explorer_prefix),
        }

    def add_contributor(self, bounty_id: int, address: Any) -> dict[str, Any]:
        """Ajoute un contributeur à une bounty active."""
        contributor = require_address(address, "contributorAddress")
        bounty = self._active(bounty_id)
        receipt = self.registry.add_contributor(bounty_id, contributor)
        log.info("bounty_contributor_added", bounty_id=bounty_id, contributor=contributor)
        return {
            "bounty": {
                "id": bounty_id,
                "amount": format_eth(bounty.amount_eth),
                "creator": bounty.creator,
                "newContributor": contributor,
                "contributorCount": len(bounty.contributors) + 1,
                "distributed": False,
            },
            "transaction": receipt.to_api(self.explorer_prefix),
        }

    def distribute(self, bounty_id: int) -> dict[str, Any]:
        """Distribue une bounty active ayant au moins un contributeur."""
        bounty = self._active(bounty_id)
        count = len(bounty.contributors)
        reward = reward_per_contributor(bounty.amount_eth, count)
        receipt = self.registry.distribute_bounty(bounty_id)
        log.info("bounty_distributed", bounty_id=bounty_id, contributors=count)
        return {
            "bounty": {
                "id": bounty_id,
                "totalAmount": format_eth(bounty.amount_eth),
                "contributorCount": count,
                "rewardPerContributor": reward,
                "contributors": bounty.contributors,
                "creator": bounty.creator,
                "status": "distributed",
            },
            "transaction": receipt.to_api(self.explorer_prefix),
        }

    def get(self, bounty_id: int) -> Bounty:
        return self.registry.get_bounty(bounty_id)

    def list_all(self) -> dict[str, Any]:
        bounties = self.registry.list_bounties()
        return {
            "total": len(bounties),
            "bounties": [b.to_api() for b in bounties],
            "summary": summarize(bounties),
        }

    def list_by_creator(self, address: Any) -> list[Bounty]:
        """Bounties créées par `address`, la plus récente d'abord."""
        creator = require_address(address).lower()
        found = [b for b in self.registry.list_bounties() if b.creator.lower() == creator]
        return sorted(found, key=lambda b: b.id, reverse=True)

    def list_by_contributor(self, address: Any) -> list[Bounty]:
        contributor = require_address(address).lower()
        return [
            b
            for b in self.registry.list_bounties()
            if any(c.lower() == contributor for c in b.contributors)
        ]
