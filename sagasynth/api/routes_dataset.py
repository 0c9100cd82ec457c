"""
Routes des jeux de données publiés: upload, aperçu et vérification d'intégrité.
"""

from fastapi import APIRouter

from sagasynth.api.schemas import DatasetUploadRequest
from sagasynth.core.container import container

router = APIRouter(prefix="/api/dataset", tags=["dataset"])


@router.post("/upload")
def upload(payload: DatasetUploadRequest):
    """Publie des données et leurs métadonnées; minte si `mint=true`."""
    result = container.pipeline.upload_dataset(payload.data, payload.metadata, mint=payload.mint)
    message = "Dataset uploaded and NFT minted successfully" if payload.mint else "Dataset uploaded successfully"
    return {"success": True, "message": message, **result}


@router.get("/preview")
def preview(url: str | None = None):
    return container.pipeline.preview(url)


@router.get("/verify")
def verify(url: str | None = None, content_hash: str | None = None):
    """Recalcule l'empreinte du contenu publié à `url` et la compare à `content_hash`."""
    return container.pipeline.verify(url, content_hash)
