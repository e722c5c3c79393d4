"""Room and meal price lookup against airline contracts and hotel price lists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TypeVar

from crewstay.domain.models import (
    AirlineContract,
    HotelPricing,
    MealPrices,
    NO_MEAL_CATEGORIES,
    category_code,
)


T = TypeVar("T")


@dataclass(frozen=True)
class PriceResolution(Generic[T]):
    """Either a resolved price or an explicit "no price found" marker.

    Missing prices still bill as zero, but callers can tell a real zero from
    a catalog gap and flag the row.
    """

    value: Optional[T] = None

    @classmethod
    def resolved(cls, value: T) -> "PriceResolution[T]":
        return cls(value=value)

    @classmethod
    def unresolved(cls) -> "PriceResolution[T]":
        return cls(value=None)

    @property
    def is_resolved(self) -> bool:
        return self.value is not None

    def or_default(self, default: T) -> T:
        return self.value if self.value is not None else default


def find_airport_contract(
    contracts: Iterable[AirlineContract],
    airport_id: Optional[int],
) -> Optional[AirlineContract]:
    """Return the first contract whose airport list covers `airport_id`."""
    if airport_id is None:
        return None
    for contract in contracts:
        if airport_id in contract.airport_ids:
            return contract
    return None


def _stored_price(value: Optional[float]) -> PriceResolution[float]:
    if value is None or value < 0:
        return PriceResolution.unresolved()
    return PriceResolution.resolved(float(value))


def resolve_airline_room_price(
    contracts: Iterable[AirlineContract],
    airport_id: Optional[int],
    category: Optional[str],
) -> PriceResolution[float]:
    contract = find_airport_contract(contracts, airport_id)
    code = category_code(category)
    if contract is None or code is None:
        return PriceResolution.unresolved()
    return _stored_price(contract.category_prices.get(code))


def resolve_airline_meal_prices(
    contracts: Iterable[AirlineContract],
    airport_id: Optional[int],
) -> PriceResolution[MealPrices]:
    contract = find_airport_contract(contracts, airport_id)
    if contract is None or contract.meal_prices is None:
        return PriceResolution.unresolved()
    return PriceResolution.resolved(contract.meal_prices)


def resolve_hotel_room_price(
    hotel: Optional[HotelPricing],
    category: Optional[str],
    room_price: Optional[float] = None,
) -> PriceResolution[float]:
    """Studios and apartments carry their own price; other rooms use the hotel list."""
    code = category_code(category)
    if code in NO_MEAL_CATEGORIES:
        return _stored_price(room_price)
    if hotel is None or code is None:
        return PriceResolution.unresolved()
    return _stored_price(hotel.category_prices.get(code))


def resolve_hotel_meal_prices(hotel: Optional[HotelPricing]) -> PriceResolution[MealPrices]:
    if hotel is None or hotel.meal_prices is None:
        return PriceResolution.unresolved()
    return PriceResolution.resolved(hotel.meal_prices)
