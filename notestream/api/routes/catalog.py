from fastapi import APIRouter

from notestream.llm import prompt
from notestream.models.response import ModelCatalogResponse, PurposeInfo

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/models", response_model=ModelCatalogResponse)
def models():
    return ModelCatalogResponse(models=prompt.list_models(), default_model=prompt.default_model())


@router.get("/purposes", response_model=list[PurposeInfo])
def purposes():
    return prompt.list_purposes()
