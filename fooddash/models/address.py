"""Address and user context models."""

from pydantic import BaseModel, ConfigDict, Field


class Address(BaseModel):
    """A saved delivery address."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    address_text: str
    latitude: float
    longitude: float


class AddressResponse(BaseModel):
    """Saved addresses plus the one currently selected."""

    model_config = ConfigDict(populate_by_name=True)

    address_list: list[Address] = Field(default_factory=list, alias="addressList")
    selected_address: Address | None = Field(None, alias="selectedAddress")


class UserContext(BaseModel):
    """Authenticated user passed explicitly into components that need identity."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Auth provider user ID")
    email: str | None = Field(None, description="User email")
    access_token: str | None = Field(None, description="Session access token")


class RegisterAddressRequest(BaseModel):
    """Body of ``POST /api/address``: the confirmed suggestion plus its session."""

    model_config = ConfigDict(populate_by_name=True)

    place_id: str = Field(..., alias="placeId", min_length=1)
    place_name: str = Field(..., alias="placeName", min_length=1)
    address_text: str = Field(..., min_length=1)
    session_token: str | None = Field(None, alias="sessionToken")
