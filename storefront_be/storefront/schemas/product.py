from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from typing import List, Optional


class ProductImageIn(BaseModel):
    url: HttpUrl
    key: str = Field(min_length=1)
    altText: Optional[str] = None
    order: int


class ProductVariantIn(BaseModel):
    type: str = Field(min_length=1)
    value: str = Field(min_length=1)
    stock: int = Field(ge=0)
    price: float = Field(ge=0)


class ProductIn(BaseModel):
    """Full desired state of a product as submitted by the admin form.

    Updates replace images, variants and tags wholesale, so partial edits must
    resend everything.
    """

    title: str = Field(min_length=2)
    description: str = Field(min_length=10)
    slug: Optional[str] = None
    titlePrice: float = Field(ge=0.01)
    discountedPrice: Optional[float] = None
    categoryId: str = Field(min_length=1)
    mainImageUrl: HttpUrl
    isFeatured: bool = False
    isArchived: bool = False
    tags: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    images: List[ProductImageIn] = Field(default_factory=list)
    variants: List[ProductVariantIn] = Field(default_factory=list)


class VariantOut(BaseModel):
    id: str
    type: str
    value: str
    price: float
    stock: int

    model_config = ConfigDict(from_attributes=True)


class ProductImageOut(BaseModel):
    id: str
    productId: str
    url: str
    key: str
    altText: Optional[str] = None
    order: int


class TagOut(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    titlePrice: float
    discountedPrice: Optional[float] = None
    categoryId: str
    categoryName: Optional[str] = None
    mainImageUrl: Optional[str] = None
    isFeatured: bool
    isArchived: bool
    colors: List[str]
    images: List[ProductImageOut]
    variants: List[VariantOut]
    tags: List[TagOut]
    reviewCount: int
    totalStock: int
    createdAt: str
