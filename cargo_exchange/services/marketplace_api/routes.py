# cargo_exchange/services/marketplace_api/routes.py
"""
HTTP маршруты биржи перевозок.
Доменные ошибки переводятся в HTTP коды обработчиками из app.py.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from cargo_exchange.common.constants import UserRole
from cargo_exchange.common.exceptions import OrderNotFoundError, VehicleNotFoundError
from cargo_exchange.core.booking.service import BookingService
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.orders.capacity import CapacityTracker
from cargo_exchange.core.orders.service import OrderService
from cargo_exchange.core.users.directory import UserDirectory
from cargo_exchange.services.marketplace_api.dependencies import (
    get_booking_service,
    get_capacity_tracker,
    get_order_service,
    get_user_directory,
)
from cargo_exchange.services.marketplace_api.schemas import (
    BookOrderRequest,
    CapacityResponse,
    OpenOrderRequest,
    OrderResponse,
    ProposePriceRequest,
    QuoteRequest,
    QuoteResponse,
    RejectPriceRequest,
    UpdateLocationRequest,
    UpdateStatusRequest,
)


router = APIRouter()


# =============================================================================
# ПОДБОР И ОФОРМЛЕНИЕ
# =============================================================================

@router.post("/quotes", response_model=QuoteResponse, tags=["Booking"])
async def create_quote(
    request: QuoteRequest,
    booking: BookingService = Depends(get_booking_service),
) -> QuoteResponse:
    """Подбор транспорта с ценами для груза и маршрута."""
    quote = await booking.quote(request)
    return QuoteResponse.from_quote(quote)


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Booking"],
)
async def book_order(
    request: BookOrderRequest,
    booking: BookingService = Depends(get_booking_service),
) -> OrderResponse:
    """Заказ на выбранный транспорт по цене подбора."""
    order = await booking.book(
        request,
        request.orderer_id,
        request.vehicle_id,
        notes=request.notes,
        scheduled_pickup=request.scheduled_pickup,
    )
    return OrderResponse.from_order(order)


@router.post(
    "/orders/open",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Booking"],
)
async def post_open_order(
    request: OpenOrderRequest,
    booking: BookingService = Depends(get_booking_service),
) -> OrderResponse:
    """Открытая заявка, на которую перевозчики предлагают цену."""
    order = await booking.post_open_order(
        request,
        request.orderer_id,
        price=request.price,
        currency=request.currency,
        notes=request.notes,
        scheduled_pickup=request.scheduled_pickup,
    )
    return OrderResponse.from_order(order)


# =============================================================================
# ЗАКАЗЫ
# =============================================================================

@router.get("/orders/available", response_model=list[OrderResponse], tags=["Orders"])
async def get_available_orders(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    vehicle_id: Optional[str] = None,
    max_distance_km: Optional[float] = Query(None, gt=0),
    orders: OrderService = Depends(get_order_service),
    directory: UserDirectory = Depends(get_user_directory),
) -> list[OrderResponse]:
    """Открытые заявки для перевозчика, ближние первыми."""
    location = None
    if latitude is not None and longitude is not None:
        location = Location(latitude=latitude, longitude=longitude)

    vehicle = None
    if vehicle_id:
        found = await directory.find_vehicle(vehicle_id)
        if found is None:
            raise VehicleNotFoundError(vehicle_id)
        vehicle = found[1]

    result = await orders.get_available_orders(location, vehicle, max_distance_km)
    return [OrderResponse.from_order(o) for o in result]


@router.get("/orders/{order_id}", response_model=OrderResponse, tags=["Orders"])
async def get_order(
    order_id: str,
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await orders.get_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return OrderResponse.from_order(order)


@router.get("/users/{user_id}/orders", response_model=list[OrderResponse], tags=["Orders"])
async def get_user_orders(
    user_id: str,
    role: Optional[UserRole] = None,
    orders: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    """Заказы пользователя как заказчика, как перевозчика или оба вида."""
    result = await orders.get_orders_by_user(user_id, role)
    return [OrderResponse.from_order(o) for o in result]


@router.get(
    "/vehicles/{vehicle_id}/capacity",
    response_model=CapacityResponse,
    tags=["Vehicles"],
)
async def get_vehicle_capacity(
    vehicle_id: str,
    capacity: CapacityTracker = Depends(get_capacity_tracker),
    directory: UserDirectory = Depends(get_user_directory),
) -> CapacityResponse:
    """Остаток вместимости транспорта с учётом активных заказов."""
    if await directory.find_vehicle(vehicle_id) is None:
        raise VehicleNotFoundError(vehicle_id)
    return CapacityResponse.from_status(await capacity.remaining_capacity(vehicle_id))


# =============================================================================
# ТОРГ
# =============================================================================

@router.post("/orders/{order_id}/proposals", response_model=OrderResponse, tags=["Negotiation"])
async def propose_price(
    order_id: str,
    request: ProposePriceRequest,
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Перевозчик предлагает цену за открытую заявку."""
    order = await orders.propose_price(
        order_id,
        request.price,
        request.transporter_id,
        request.vehicle_id,
    )
    return OrderResponse.from_order(order)


@router.post(
    "/orders/{order_id}/proposals/accept",
    response_model=OrderResponse,
    tags=["Negotiation"],
)
async def accept_proposed_price(
    order_id: str,
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await orders.accept_proposed_price(order_id)
    return OrderResponse.from_order(order)


@router.post(
    "/orders/{order_id}/proposals/reject",
    response_model=OrderResponse,
    tags=["Negotiation"],
)
async def reject_proposed_price(
    order_id: str,
    request: Optional[RejectPriceRequest] = None,
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await orders.reject_proposed_price(order_id, request.note if request else "")
    return OrderResponse.from_order(order)


# =============================================================================
# ИСПОЛНЕНИЕ
# =============================================================================

@router.patch("/orders/{order_id}/status", response_model=OrderResponse, tags=["Orders"])
async def update_order_status(
    order_id: str,
    request: UpdateStatusRequest,
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await orders.update_status(
        order_id,
        request.status,
        request.note,
        force=request.force,
    )
    return OrderResponse.from_order(order)


@router.put("/orders/{order_id}/location", response_model=OrderResponse, tags=["Orders"])
async def update_order_location(
    order_id: str,
    request: UpdateLocationRequest,
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Текущее положение груза в пути."""
    order = await orders.update_location(order_id, request.to_location())
    return OrderResponse.from_order(order)
