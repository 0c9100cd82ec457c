"""Constantes métier partagées (bornes de montants, champs requis, tags)."""

from decimal import Decimal

# Champs structurés exigés pour qu'une ligne générée soit "verified"
REQUIRED_ROW_FIELDS: tuple[str, ...] = (
    "synthetic_transcription",
    "medical_specialty",
    "explanation",
)

# Bornes des montants (ETH, bornes incluses)
DONATION_MIN_ETH = Decimal("0.000001")
DONATION_MAX_ETH = Decimal("10")
BOUNTY_MAX_ETH = Decimal("100")
ETH_DECIMALS = 18

# Arrondi d'affichage de la récompense par contributeur
REWARD_DISPLAY_QUANT = Decimal("0.000001")

# Paramètres figés de /api/test-prompt
TEST_PROMPT_SAMPLE_SIZE = 3
PREVIEW_ROWS = 5

# Jeu source par défaut (génération, récupération de lignes)
DEFAULT_SOURCE_DATASET = "galileo-ai/medical_transcription_40"

CONTENT_TYPE_JSON = "application/json"
TAG_TYPE_DATASET = "Dataset"
TAG_TYPE_METADATA = "Metadata"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
