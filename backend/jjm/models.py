from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


# -------------------- Assistant --------------------
class QuestionRequest(BaseModel):
    question: str
    language: Optional[Literal["en", "hi", "mr"]] = None


class QuestionResponse(BaseModel):
    answer: str
    intent: str
    entities: dict
    rows: list
    language: str
    source: str


class AIChatRequest(BaseModel):
    prompt: str = Field(min_length=1)
    maxTokens: int = 150
    temperature: float = 0.7
    language: Literal["en", "hi", "mr"] = "en"


# -------------------- Translation / activity --------------------
class TranslateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    targetLanguage: str = Field(min_length=2, max_length=5)


class ActivityLogRequest(BaseModel):
    activity_type: str
    activity_description: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    page_url: Optional[str] = None
    metadata: Optional[dict] = None


# -------------------- Schemes --------------------
class SchemeUpdate(BaseModel):
    region: Optional[str] = None
    circle: Optional[str] = None
    division: Optional[str] = None
    sub_division: Optional[str] = None
    scheme_name: Optional[str] = None
    agency: Optional[str] = None
    number_of_village: Optional[int] = None
    total_villages_integrated: Optional[int] = None
    no_of_functional_village: Optional[int] = None
    no_of_partial_village: Optional[int] = None
    no_of_non_functional_village: Optional[int] = None
    fully_completed_villages: Optional[int] = None
    total_number_of_esr: Optional[int] = None
    scheme_functional_status: Optional[str] = None
    total_esr_integrated: Optional[int] = None
    no_fully_completed_esr: Optional[int] = None
    balance_to_complete_esr: Optional[int] = None
    flow_meters_connected: Optional[int] = None
    pressure_transmitter_connected: Optional[int] = None
    residual_chlorine_analyzer_connected: Optional[int] = None
    fully_completion_scheme_status: Optional[str] = None
    dashboard_url: Optional[str] = None

    @field_validator("scheme_name")
    @classmethod
    def scheme_name_not_blank(cls, value):
        if value is None or not value.strip():
            raise ValueError("scheme_name cannot be empty")
        return value


class SchemeCreate(SchemeUpdate):
    scheme_id: str = Field(min_length=1)
    scheme_name: str = Field(min_length=1)
    block: str = ""
