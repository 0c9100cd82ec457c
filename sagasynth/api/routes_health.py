"""
Endpoint de santé pour vérifier la disponibilité de l'API et de ses backends.

Expose `/health` pour signaler l'état général de l'application, du stockage, de
l'historique et du client registre.
"""

from fastapi import APIRouter

from sagasynth.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API; n'émet aucun appel réseau."""
    return {
        "status": "ok",
        **container.describe(),
        "registry": container.registry.describe(),
        "redis_url": bool(getattr(container.settings, "REDIS_URL", None)),
    }
