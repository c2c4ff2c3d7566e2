from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SizeUnit = Literal['acres', 'hectares']


class Profile(BaseModel):
    name: str
    location: str = Field("", description="'District, State' of the farmer.")
    language: str = "en"
    avatarUrl: Optional[str] = None
    phone: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    language: Optional[str] = None
    avatarUrl: Optional[str] = None
    phone: Optional[str] = None


class FarmBase(BaseModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    size: float = Field(gt=0)
    sizeUnit: SizeUnit
    mainCrop: str = Field(min_length=1)
    soilType: Optional[str] = None
    irrigation: Optional[str] = None
    lastCrop: Optional[str] = None


class FarmCreate(FarmBase):
    pass


class Farm(FarmBase):
    id: str
    userId: str


class FarmDetails(BaseModel):
    """The subset of farm data the advisory flows reason over."""
    size: float = Field(description="The size of the farm.")
    sizeUnit: str = Field(description="The unit of size (e.g., acres, hectares).")
    location: str = Field(description="The geographical location of the farm.")
    soilType: Optional[str] = Field(None, description="The type of soil on the farm.")
    irrigation: Optional[str] = Field(None, description='The irrigation system available. Can be a comma-separated list like "Borewell, Canal".')
    plantingMonth: Optional[str] = Field(None, description="The intended month for planting the crop.")
    lastCrop: Optional[str] = Field(None, description="The last crop grown on this farm, for crop rotation purposes.")
    mainCrop: Optional[str] = Field(None, description="The crop currently grown on the farm.")


class YearLongFarmDetails(BaseModel):
    location: str
    landArea: float = Field(gt=0)
    landAreaUnit: SizeUnit
    soilType: str
    irrigation: List[str]
