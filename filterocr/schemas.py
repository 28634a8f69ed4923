from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProcessResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    processed_image: str = Field(alias="processedImage")  # data:image/png;base64,...
    extracted_text: str = Field(alias="extractedText")
    message: str = "Image processed successfully"


class HealthResponse(BaseModel):
    status: str
    message: str
