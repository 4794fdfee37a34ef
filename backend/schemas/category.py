from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# Input schema for a new category; the id is chosen by the caller
class CategoryCreate(BaseModel):
    categoriaId: int = Field(gt=0)
    descrizione: str = Field(min_length=1, max_length=100)

# Input schema for renaming a category
class CategoryUpdate(BaseModel):
    descrizione: str = Field(min_length=1, max_length=100)

# Output schema for a category
class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    CategoriaID: int = Field(validation_alias="id")
    Descrizione: str = Field(validation_alias="description")

class CategoryList(BaseModel):
    success: bool = True
    count: int
    data: List[CategoryOut]

class CategoryResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: CategoryOut

class CategoryDeleted(BaseModel):
    success: bool = True
    message: str
