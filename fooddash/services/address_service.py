"""Saved addresses and search-center resolution."""

import logging

from fooddash.config import Config, get_config
from fooddash.database import AddressRepository
from fooddash.errors import UpstreamError, ValidationError
from fooddash.models.address import Address, AddressResponse, UserContext
from fooddash.models.place import Coordinate
from fooddash.models.restaurant import AddressSuggestion
from fooddash.models.result import Failure
from fooddash.services.places_gateway import PlacesGateway

logger = logging.getLogger(__name__)


class AddressService:
    """Manages a user's delivery addresses.

    A user has at most one selected address, tracked by the profile's
    ``selected_address_id``. Persistence failures propagate as
    ``PersistenceError``; having no selected address is a normal state.
    """

    def __init__(
        self,
        repository: AddressRepository,
        gateway: PlacesGateway,
        config: Config | None = None,
    ) -> None:
        self.repository = repository
        self.gateway = gateway
        self.config = config or get_config()

    @property
    def default_center(self) -> Coordinate:
        return Coordinate(
            lat=self.config.default_latitude, lng=self.config.default_longitude
        )

    def resolve_search_center(self, user: UserContext) -> Coordinate:
        """Coordinate of the selected address, or the default city center."""
        selected = self.repository.get_selected(user.id)
        if selected is None:
            logger.debug(f"No selected address for {user.id}, using default center")
            return self.default_center
        return Coordinate(lat=selected.latitude, lng=selected.longitude)

    def get_addresses(self, user: UserContext) -> AddressResponse:
        """All saved addresses plus the selected one."""
        return AddressResponse(
            address_list=self.repository.list_for_user(user.id),
            selected_address=self.repository.get_selected(user.id),
        )

    async def register_address(
        self,
        user: UserContext,
        suggestion: AddressSuggestion,
        session_token: str,
    ) -> Address:
        """Store a chosen autocomplete suggestion and make it the selected address.

        Args:
            user: Authenticated user
            suggestion: The suggestion the user confirmed
            session_token: Autocomplete session token, closing the billing session

        Returns:
            The stored address

        Raises:
            ValidationError: If the session token is missing
            UpstreamError: If the place location cannot be resolved
        """
        if not session_token:
            msg = "Session token is required"
            raise ValidationError(msg)

        details = await self.gateway.get_details(
            suggestion.place_id, ["location"], session_token
        )
        if isinstance(details, Failure):
            raise UpstreamError.from_failure(details)

        location = details.location
        if location is None or location.latitude is None or location.longitude is None:
            msg = "Failed to resolve the address location"
            raise UpstreamError(msg)

        address_id = self.repository.insert(
            user.id,
            name=suggestion.place_name,
            address_text=suggestion.address_text,
            latitude=location.latitude,
            longitude=location.longitude,
        )
        self.repository.set_selected(user.id, address_id)
        logger.info(f"Registered address {address_id} for user {user.id}")

        return Address(
            id=address_id,
            name=suggestion.place_name,
            address_text=suggestion.address_text,
            latitude=location.latitude,
            longitude=location.longitude,
        )

    def select_address(self, user: UserContext, address_id: int) -> Address:
        """Make one of the user's saved addresses the selected one."""
        address = self.repository.get_for_user(user.id, address_id)
        if address is None:
            msg = f"Address {address_id} not found"
            raise ValidationError(msg)

        self.repository.set_selected(user.id, address_id)
        logger.info(f"User {user.id} selected address {address_id}")
        return address

    def delete_address(self, user: UserContext, address_id: int) -> None:
        """Delete one of the user's addresses."""
        if not self.repository.delete(user.id, address_id):
            msg = f"Address {address_id} not found"
            raise ValidationError(msg)
        logger.info(f"User {user.id} deleted address {address_id}")
