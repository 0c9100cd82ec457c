"""
Routes des bounties: création, contributeurs, distribution et lectures.

Les mutations sur une bounty distribuée répondent 409; les appels réservés à
l'administrateur rejetés par le contrat répondent 403.
"""

from fastapi import APIRouter, Path

from sagasynth.api.schemas import BountyCreateRequest, ContributorRequest
from sagasynth.core.container import container

router = APIRouter(prefix="/api", tags=["bounty"])


@router.post("/bounty/create")
def create_bounty(payload: BountyCreateRequest):
    """Crée une bounty financée (0 < amount <= 100 ETH)."""
    result = container.bounties.create(
        payload.amount, title=payload.title, description=payload.description, tags=payload.tags
    )
    return {"success": True, "message": "Bounty created successfully", **result}


@router.post("/bounty/{bounty_id}/add-contributor")
@router.post("/bounty/{bounty_id}/contributor")
def add_contributor(payload: ContributorRequest, bounty_id: int = Path(ge=0)):
    result = container.bounties.add_contributor(bounty_id, payload.contributorAddress)
    return {"success": True, "message": "Contributor added successfully", **result}


@router.post("/bounty/{bounty_id}/distribute")
def distribute(bounty_id: int = Path(ge=0)):
    """Distribue la bounty à ses contributeurs (transition terminale)."""
    result = container.bounties.distribute(bounty_id)
    return {"success": True, "message": "Bounty distributed successfully", **result}


@router.get("/bounty/{bounty_id}")
def get_bounty(bounty_id: int = Path(ge=0)):
    return {"success": True, "bounty": container.bounties.get(bounty_id).to_api()}


@router.get("/bounties/all")
def all_bounties():
    return {"success": True, **container.bounties.list_all()}


@router.get("/bounties/creator/{address}")
def bounties_by_creator(address: str):
    bounties = container.bounties.list_by_creator(address)
    return {
        "success": True,
        "creator": address,
        "total": len(bounties),
        "bounties": [b.to_api() for b in bounties],
    }


@router.get("/bounties/contributor/{address}")
def bounties_by_contributor(address: str):
    bounties = container.bounties.list_by_contributor(address)
    return {
        "success": True,
        "contributor": address,
        "total": len(bounties),
        "bounties": [b.to_api() for b in bounties],
    }
