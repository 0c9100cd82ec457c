"""
Routes NFT: mint, lecture des métadonnées, dons, vitrine et énumération.

Les routes à segment littéral (`/nft/creator/...`) sont déclarées avant `/nft/{token_id}`.
"""

from fastapi import APIRouter, Path

from sagasynth.api.schemas import DonateRequest, MintBody
from sagasynth.core.container import container
from sagasynth.domain.pipeline import build_mint_request
from sagasynth.domain.validation import require_fields

router = APIRouter(prefix="/api", tags=["nft"])


@router.post("/nft/mint")
def mint(payload: MintBody):
    """Minte un jeton de métadonnées; contentHash, contentLink et tokenURI sont requis."""
    require_fields(
        {
            "contentHash": payload.contentHash,
            "contentLink": payload.contentLink,
            "tokenURI": payload.tokenURI,
        },
        "Missing required fields for minting",
    )
    request = build_mint_request(
        source_url=payload.sourceUrl,
        content_hash=payload.contentHash,
        content_link=payload.contentLink,
        token_uri=payload.tokenURI,
        embed_vector_id=payload.embedVectorId,
        created_at=payload.createdAt,
        tags=payload.tags,
    )
    return {"success": True, **container.pipeline.mint(request)}


@router.get("/nft/creator/{address}")
def nfts_by_creator(address: str):
    return container.catalog.by_creator(address)


@router.get("/nft/{token_id}")
def get_nft(token_id: int = Path(ge=0)):
    return container.catalog.nft(token_id)


@router.post("/nft/{token_id}/donate")
def donate(payload: DonateRequest, token_id: int = Path(ge=0)):
    """Don en ETH au créateur du jeton (0.000001 <= amount <= 10)."""
    result = container.donations.donate(token_id, payload.amount)
    return {"success": True, "message": "Donation sent successfully", **result}


@router.get("/nft/{token_id}/donation-info")
def donation_info(token_id: int = Path(ge=0)):
    return {"success": True, **container.donations.donation_info(token_id)}


@router.get("/marketplace/nfts")
def marketplace():
    return container.catalog.marketplace()


@router.get("/metadata/all")
def all_metadata():
    """Tous les jetons mintés (énumération bornée)."""
    return {"success": True, **container.catalog.all_metadata()}
