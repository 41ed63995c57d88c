"""AI generation routes: definitions and VOOP suggestions.

Both always answer 200 with a usable payload; the ``fallback`` flag tells the
client whether the model was used.
"""

from fastapi import APIRouter

from valueslens.schemas.definitions import GenerateDefinitionsRequest, GenerationResult
from valueslens.schemas.voop import GenerateVoopRequest, VoopResult
from valueslens.services.definition_service import DefinitionService
from valueslens.services.voop_service import VoopService

router = APIRouter(prefix="/ai", tags=["generation"])


@router.post(
    "/generate-definitions",
    response_model=GenerationResult,
    summary="Generate personalised definitions",
    description="Returns one definition per requested value, falling back to deterministic text when needed.",
)
async def generate_definitions(data: GenerateDefinitionsRequest) -> GenerationResult:
    """Generate definitions for the top ranked values.

    Args:
        data: Values, transcript and commitments.

    Returns:
        GenerationResult: Definitions keyed by value id.
    """
    service = DefinitionService()
    return await service.generate(data.values, data.transcript, data.commitments)


@router.post(
    "/generate-voop",
    response_model=VoopResult,
    summary="Suggest VOOP options",
    description="Returns outcome, obstacle and reframe options per value.",
)
async def generate_voop(data: GenerateVoopRequest) -> VoopResult:
    """Suggest VOOP options for each value.

    Args:
        data: Values and story.

    Returns:
        VoopResult: One suggestion set per value.
    """
    service = VoopService()
    return await service.generate(data.values, data.story)
