from typing import List, Literal

from pydantic import BaseModel, Field


class SchemeContact(BaseModel):
    department: str
    phone: str
    email: str


class Scheme(BaseModel):
    id: str
    category: Literal['Central', 'State']
    state: str
    lastUpdated: str
    contact: SchemeContact
    website: str


class SchemeDetails(BaseModel):
    title: str
    description: str = Field(description="A one-sentence description of the scheme's purpose.")
    benefits: str
    eligibility: str
    howToApply: str
    requiredDocuments: str = Field(description="Comma-separated list of required documents.")


class PopulatedScheme(Scheme, SchemeDetails):
    pass


class SchemeFinderInput(BaseModel):
    query: str = Field(min_length=1)
    language: str = "en"


class SchemeFinderOutput(BaseModel):
    relevantSchemeIds: List[str]


class PopulateSchemeDetailsInput(BaseModel):
    schemeId: str
    language: str = "en"
