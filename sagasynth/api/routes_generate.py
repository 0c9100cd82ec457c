"""
Routes de génération: génération publiée, génération + mint, test de prompt, historique.

Les handlers sont synchrones (exécutés dans le threadpool FastAPI); chaque requête suit le
pipeline séquentiel générer -> publier -> (mint) -> historiser.
"""

from fastapi import APIRouter, Query

from sagasynth.api.schemas import (
    FetchDatasetRequest,
    GenerateAndMintRequest,
    GenerateRequest,
    PromptTestRequest,
)
from sagasynth.core.container import container
from sagasynth.domain.validation import require_fields

router = APIRouter(prefix="/api", tags=["generate"])


@router.post("/generate")
def generate(payload: GenerateRequest):
    """Génère un jeu de données, publie contenu et métadonnées, et prépare le mint."""
    result = container.pipeline.generate_and_publish(**payload.model_dump())
    return {"success": True, "message": "Dataset generated successfully", **result}


@router.post("/generate-and-mint")
def generate_and_mint(payload: GenerateAndMintRequest):
    """Comme `/generate` avec valeurs par défaut, puis mint du jeton."""
    require_fields({"input_text": payload.input_text}, "input_text is required")
    options = payload.model_dump()
    options["ai_model"] = options["ai_model"] or container.llm.model
    result = container.pipeline.generate_and_publish(mint=True, **options)
    return {
        "success": True,
        "message": "Dataset generated and NFT minted successfully",
        **result,
    }


@router.post("/test-prompt")
def test_prompt(payload: PromptTestRequest):
    """Génération de 3 lignes sans publication (validation d'un prompt)."""
    result = container.pipeline.test_prompt(
        payload.input_text, payload.domain, ai_model=container.llm.model
    )
    return {"success": True, "message": "Prompt test completed successfully", **result}


@router.get("/generate/history")
def history(limit: int | None = Query(default=None, ge=1)):
    return container.pipeline.history_listing(limit)


@router.post("/fetch-dataset")
def fetch_dataset(payload: FetchDatasetRequest):
    """Échantillon de lignes d'un jeu de données public (Hugging Face)."""
    return {"samples": container.datasets.fetch_rows(payload.dataset, payload.sample_size)}
