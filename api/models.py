from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime


class CamelModel(BaseModel):
    """Base for models whose JSON keys are camelCase (priceMin, emailUpdates...)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# Request Models
# Fields are optional so the routes can answer missing values with their own messages

class ProductSearchRequest(CamelModel):
    """Request model for a product search."""

    query: Optional[str] = Field(default=None, description="Free-text search query")
    included_brands: Optional[List[str]] = Field(
        default=None, description="Keep only products whose brand contains one of these"
    )
    excluded_brands: Optional[List[str]] = Field(
        default=None, description="Drop products whose brand contains one of these"
    )
    price_min: Optional[float] = Field(default=None, description="Inclusive lower price bound")
    price_max: Optional[float] = Field(default=None, description="Inclusive upper price bound")
    retailer: Optional[str] = Field(default=None, description="Retailer id, defaults to ASOS")


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class EmailRequest(BaseModel):
    email: Optional[str] = None


class VerifyResetCodeRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None


class ResetPasswordWithCodeRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SocialLoginRequest(CamelModel):
    """Identity token from Google or Apple sign-in; Apple also needs the nonce."""

    id_token: Optional[str] = None
    nonce: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = None
    email_updates: Optional[bool] = None


class DeviceTokenRequest(BaseModel):
    token: Optional[str] = None


class SendNotificationRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class SendTestEmailRequest(BaseModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None


# Response Models
class Product(CamelModel):
    """API representation of a scraped product."""

    name: str
    brand: str
    price: float
    image: str
    link: str
    description: Optional[str] = None
    available_sizes: Optional[List[str]] = None


class ProductSearchResponse(BaseModel):
    success: bool
    count: int
    products: List[Product]


class MessageResponse(BaseModel):
    success: bool
    message: str


class UserSummary(BaseModel):
    """The public part of a user, as returned at login."""

    id: str
    name: str
    email: str

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    success: bool
    token: str
    user: UserSummary


class SocialUser(CamelModel):
    id: str
    name: str
    email: str
    profile_picture: Optional[str] = None


class SocialLoginResponse(BaseModel):
    success: bool
    token: str
    user: SocialUser


class CurrentUserResponse(BaseModel):
    success: bool
    user: UserSummary


class ProviderResponse(BaseModel):
    success: bool
    provider: Optional[str] = None


class Profile(CamelModel):
    id: str
    name: str
    email: str
    profile_picture: str = ""
    email_updates: bool
    auth_provider: str
    created_at: datetime


class ProfileResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Profile


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    message: str
    error: Optional[str] = None
