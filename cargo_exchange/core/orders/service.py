# cargo_exchange/core/orders/service.py
"""
Сервис заказов.
Управляет жизненным циклом заказа: создание, торг о цене, статусы, трекинг.
"""

from __future__ import annotations

import asyncio
import math
import weakref
from typing import Any, Optional

from cargo_exchange.common.constants import OrderStatus, TypeMsg, UserRole, format_price
from cargo_exchange.common.exceptions import (
    InsufficientCapacityError,
    NoProposedPriceError,
    OrderNotFoundError,
    ValidationError,
    VehicleNotFoundError,
)
from cargo_exchange.common.logger import log_error, log_info
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.geo.distance import haversine_km
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.orders.capacity import CapacityTracker
from cargo_exchange.core.orders.models import Order, OrderCreateDTO, utc_now
from cargo_exchange.core.orders.repository import OrderRepository
from cargo_exchange.core.orders.state_machine import OrderStateMachine
from cargo_exchange.core.users.directory import UserDirectory
from cargo_exchange.core.users.models import User, Vehicle
from cargo_exchange.infra.event_bus import DomainEvent, EventBus, EventTypes


class KeyedLock:
    """
    asyncio.Lock на каждый ключ.
    Замок живёт, пока его кто-то держит или ждёт.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def __call__(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


class OrderService:
    """
    Сервис заказов.

    Все изменения заказа выполняются под замком этого заказа и записываются
    с проверкой версии. Операции, занимающие место в транспорте, сначала
    берут замок транспорта, потом замок заказа.
    """

    def __init__(
        self,
        repository: OrderRepository,
        directory: UserDirectory,
        capacity: CapacityTracker | None = None,
        event_bus: EventBus | None = None,
        *,
        commit_price_on_proposal: bool | None = None,
        default_currency: str | None = None,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            repository: Хранилище заказов
            directory: Каталог пользователей и транспорта
            capacity: Учёт вместимости (по умолчанию поверх repository/directory)
            event_bus: Шина событий (None отключает публикацию)
            commit_price_on_proposal: Писать ли предложенную цену в price сразу
            default_currency: Валюта, если у транспорта она не указана
        """
        if commit_price_on_proposal is None or default_currency is None:
            from cargo_exchange.config import settings

            if commit_price_on_proposal is None:
                commit_price_on_proposal = settings.pricing.COMMIT_PRICE_ON_PROPOSAL
            if default_currency is None:
                default_currency = settings.pricing.DEFAULT_CURRENCY

        self._repo = repository
        self._directory = directory
        self._capacity = capacity or CapacityTracker(repository, directory)
        self._event_bus = event_bus
        self._commit_price_on_proposal = commit_price_on_proposal
        self._default_currency = default_currency
        self._order_locks = KeyedLock()
        self._vehicle_locks = KeyedLock()

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Заказ по ID или None."""
        return await self._repo.get_by_id(order_id)

    async def get_orders_by_user(
        self,
        user_id: str,
        role: UserRole | None = None,
    ) -> list[Order]:
        """
        Заказы пользователя.

        Args:
            user_id: ID пользователя
            role: orderer (свои заявки), transporter (взятые), None (и те, и другие)
        """
        orders = await self._repo.list()
        if role == UserRole.ORDERER:
            return [o for o in orders if o.orderer_id == user_id]
        if role == UserRole.TRANSPORTER:
            return [o for o in orders if o.transporter_id == user_id]
        return [o for o in orders if user_id in (o.orderer_id, o.transporter_id)]

    async def get_available_orders(
        self,
        transporter_location: Location | None = None,
        vehicle: Vehicle | None = None,
        max_distance_km: float | None = None,
    ) -> list[Order]:
        """
        Открытые заявки (pending) для перевозчика.

        Без координат перевозчика возвращаются все заявки в порядке создания.
        С координатами заявки сортируются по удалённости точки погрузки,
        заявки без координат идут последними и отсекаются фильтром расстояния.
        С транспортом остаются только заявки, которые он может взять
        по паспорту, с учётом охлаждения и текущей загрузки.
        """
        orders = await self._repo.list(statuses=[OrderStatus.PENDING])

        origin = transporter_location.coordinate if transporter_location else None
        if origin is None:
            distances = {o.id: math.inf for o in orders}
        else:
            distances = {
                o.id: (
                    haversine_km(origin, o.pickup_location.coordinate)
                    if o.pickup_location.coordinate is not None
                    else math.inf
                )
                for o in orders
            }
            if max_distance_km is not None and max_distance_km > 0:
                orders = [o for o in orders if distances[o.id] <= max_distance_km]

        if vehicle is not None:
            orders = [o for o in orders if self._fits_vehicle(o.cargo, vehicle)]
            status = await self._capacity.remaining_capacity(vehicle.id)
            orders = [
                o for o in orders
                if o.cargo.weight <= status.remaining_weight
                and o.cargo.volume <= status.remaining_volume
            ]

        if origin is not None:
            orders.sort(key=lambda o: distances[o.id])
        return orders

    # =========================================================================
    # ЖИЗНЕННЫЙ ЦИКЛ ЗАКАЗА
    # =========================================================================

    async def create_order(self, dto: OrderCreateDTO) -> Order:
        """
        Создаёт заказ.

        Открытая заявка (pending) получает одну запись истории.
        Заказ на выбранный транспорт (accepted) получает две:
        создание и автоматическое принятие.
        """
        distance_km = dto.distance_km
        if not distance_km:
            distance_km = self._route_distance(dto.pickup_location, dto.delivery_location)

        order = Order(
            orderer_id=dto.orderer_id,
            transporter_id=dto.transporter_id,
            transporter_vehicle_id=dto.transporter_vehicle_id,
            status=dto.status,
            pickup_location=dto.pickup_location,
            delivery_location=dto.delivery_location,
            distance_km=distance_km,
            transporter_to_pickup_distance_km=dto.transporter_to_pickup_distance_km,
            cargo=dto.cargo,
            price=dto.price,
            currency=dto.currency,
            notes=dto.notes,
            scheduled_pickup=dto.scheduled_pickup,
            estimated_delivery=dto.estimated_delivery,
        )
        order.status_updates.append(order.next_status_update(
            dto.status,
            f"Order created with status: {dto.status.value}",
            now=order.created_at,
        ))

        if dto.status == OrderStatus.ACCEPTED:
            order.status_updates.append(order.next_status_update(
                OrderStatus.ACCEPTED,
                f"Order automatically accepted with price: {format_price(dto.price, dto.currency)}",
            ))
            vehicle_id = dto.transporter_vehicle_id or ""
            async with self._vehicle_locks(vehicle_id):
                _, vehicle = await self._resolve_vehicle(vehicle_id, dto.transporter_id)
                if not self._fits_vehicle(dto.cargo, vehicle):
                    raise ValidationError(f"Груз не подходит для транспорта {vehicle_id}")
                await self._ensure_capacity(vehicle_id, dto.cargo)
                created = await self._repo.append(order)
        else:
            created = await self._repo.append(order)

        await self._publish(EventTypes.ORDER_CREATED, created, {
            "orderer_id": created.orderer_id,
            "transporter_vehicle_id": created.transporter_vehicle_id,
            "price": created.price,
            "currency": created.currency,
        })
        await log_info(
            f"Заказ {created.id} создан заказчиком {created.orderer_id} ({created.status.value})",
            type_msg=TypeMsg.INFO,
        )
        return created

    async def propose_price(
        self,
        order_id: str,
        price: float,
        transporter_id: str,
        vehicle_id: str,
    ) -> Order:
        """
        Перевозчик предлагает цену за открытую заявку.

        Заказ переходит в determine_price, привязывается к перевозчику
        и транспорту и получает валюту транспорта.
        """
        if not math.isfinite(price) or price <= 0:
            raise ValidationError(f"Цена должна быть положительной, получено {price}")

        _, vehicle = await self._resolve_vehicle(vehicle_id, transporter_id)
        currency = vehicle.currency or self._default_currency

        async with self._order_locks(order_id):
            order = await self._require_order(order_id)
            OrderStateMachine.validate_transition(order_id, order.status, OrderStatus.DETERMINE_PRICE)

            approach_km = None
            vehicle_point = vehicle.current_location.coordinate if vehicle.current_location else None
            pickup_point = order.pickup_location.coordinate
            if vehicle_point is not None and pickup_point is not None:
                approach_km = haversine_km(vehicle_point, pickup_point)

            update = order.next_status_update(
                OrderStatus.DETERMINE_PRICE,
                f"Transporter proposed price: {format_price(price, currency)}",
            )
            patch: dict[str, Any] = {
                "status": OrderStatus.DETERMINE_PRICE,
                "proposed_price": price,
                "transporter_id": transporter_id,
                "transporter_vehicle_id": vehicle_id,
                "currency": currency,
                "transporter_to_pickup_distance_km": approach_km,
                "status_updates": [*order.status_updates, update],
            }
            if self._commit_price_on_proposal:
                patch["price"] = price
                if order.posted_price is None:
                    patch["posted_price"] = order.price

            updated = await self._repo.update(order_id, patch, expected_version=order.version)

        await self._publish(EventTypes.ORDER_PRICE_PROPOSED, updated, {
            "transporter_id": transporter_id,
            "transporter_vehicle_id": vehicle_id,
            "proposed_price": price,
            "currency": currency,
        })
        return updated

    async def accept_proposed_price(self, order_id: str) -> Order:
        """
        Заказчик принимает предложенную цену.

        Без предложенной цены поднимается NoProposedPriceError,
        заказ не изменяется.
        """
        peek = await self._require_order(order_id)
        if peek.proposed_price is None:
            raise NoProposedPriceError(order_id)

        vehicle_id = peek.transporter_vehicle_id or ""
        while True:
            async with self._vehicle_locks(vehicle_id), self._order_locks(order_id):
                order = await self._require_order(order_id)
                if order.proposed_price is None:
                    raise NoProposedPriceError(order_id)
                current_vehicle_id = order.transporter_vehicle_id or ""
                if current_vehicle_id == vehicle_id:
                    OrderStateMachine.validate_transition(
                        order_id, order.status, OrderStatus.ACCEPTED
                    )
                    await self._ensure_capacity(current_vehicle_id, order.cargo)

                    update = order.next_status_update(
                        OrderStatus.ACCEPTED,
                        f"Orderer accepted price: {format_price(order.proposed_price, order.currency)}",
                    )
                    updated = await self._repo.update(
                        order_id,
                        {
                            "status": OrderStatus.ACCEPTED,
                            "price": order.proposed_price,
                            "posted_price": None,
                            "status_updates": [*order.status_updates, update],
                        },
                        expected_version=order.version,
                    )
                    break
            # Предложение перевели на другой транспорт: берём его замок
            vehicle_id = current_vehicle_id

        await self._publish(EventTypes.ORDER_PRICE_ACCEPTED, updated, {
            "price": updated.price,
            "currency": updated.currency,
            "transporter_vehicle_id": updated.transporter_vehicle_id,
        })
        return updated

    async def reject_proposed_price(self, order_id: str, note: str = "") -> Order:
        """
        Заказчик отклоняет предложение: заявка снова открыта (pending),
        перевозчик и предложенная цена сбрасываются. Если предложение
        было записано в price, возвращается цена заявки до торга.
        """
        async with self._order_locks(order_id):
            order = await self._require_order(order_id)
            if order.proposed_price is None:
                raise NoProposedPriceError(order_id)
            OrderStateMachine.validate_transition(order_id, order.status, OrderStatus.PENDING)

            update = order.next_status_update(
                OrderStatus.PENDING,
                note or f"Orderer rejected price: {format_price(order.proposed_price, order.currency)}",
            )
            patch: dict[str, Any] = {
                "status": OrderStatus.PENDING,
                "proposed_price": None,
                "posted_price": None,
                "transporter_id": None,
                "transporter_vehicle_id": None,
                "transporter_to_pickup_distance_km": None,
                "status_updates": [*order.status_updates, update],
            }
            if order.posted_price is not None:
                patch["price"] = order.posted_price
            updated = await self._repo.update(order_id, patch, expected_version=order.version)

        await self._publish(EventTypes.ORDER_PRICE_REJECTED, updated, {})
        return updated

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        note: str = "",
        *,
        force: bool = False,
    ) -> Order:
        """
        Переводит заказ в новый статус.

        Args:
            order_id: ID заказа
            status: Целевой статус
            note: Комментарий к записи истории
            force: Административный переход в обход таблицы переходов
        """
        if status == OrderStatus.ACCEPTED and not force:
            # Принятие без торга невозможно: цена и вместимость проверяются там
            return await self.accept_proposed_price(order_id)

        async with self._order_locks(order_id):
            order = await self._require_order(order_id)
            if force:
                await log_info(
                    f"Заказ {order_id}: принудительный переход {order.status.value} -> {status.value}",
                    type_msg=TypeMsg.WARNING,
                )
            else:
                OrderStateMachine.validate_transition(order_id, order.status, status)

            previous = order.status
            update = order.next_status_update(status, note or f"Status updated to {status.value}")
            updated = await self._repo.update(
                order_id,
                {"status": status, "status_updates": [*order.status_updates, update]},
                expected_version=order.version,
            )

        await self._publish(EventTypes.ORDER_STATUS_CHANGED, updated, {
            "previous_status": previous.value,
            "status": status.value,
            "forced": force,
        })
        return updated

    async def cancel_order(self, order_id: str, note: str = "") -> Order:
        """Отменяет незавершённый заказ."""
        return await self.update_status(order_id, OrderStatus.CANCELLED, note or "Order cancelled")

    async def update_location(self, order_id: str, location: Location) -> Order:
        """
        Обновляет текущее положение груза.
        Время обновления ставит сервер, статус и история не меняются.
        """
        if location.coordinate is None:
            raise ValidationError("Для обновления положения нужны координаты")

        async with self._order_locks(order_id):
            order = await self._require_order(order_id)
            current = location.model_copy(update={"updated_at": utc_now()})
            updated = await self._repo.update(
                order_id,
                {"current_location": current},
                expected_version=order.version,
            )

        await self._publish(EventTypes.ORDER_LOCATION_UPDATED, updated, {
            "latitude": current.latitude,
            "longitude": current.longitude,
            "updated_at": current.updated_at,
        })
        return updated

    # =========================================================================
    # ВСПОМОГАТЕЛЬНЫЕ МЕТОДЫ
    # =========================================================================

    async def _require_order(self, order_id: str) -> Order:
        order = await self._repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _resolve_vehicle(
        self,
        vehicle_id: str,
        transporter_id: str | None,
    ) -> tuple[User, Vehicle]:
        """Транспорт и его владелец; владелец должен совпадать с transporter_id."""
        found = await self._directory.find_vehicle(vehicle_id)
        if found is None:
            raise VehicleNotFoundError(vehicle_id)
        owner, vehicle = found
        if transporter_id is not None and owner.id != transporter_id:
            raise ValidationError(
                f"Транспорт {vehicle_id} не принадлежит перевозчику {transporter_id}"
            )
        return owner, vehicle

    async def _ensure_capacity(self, vehicle_id: str, cargo: Cargo) -> None:
        status = await self._capacity.remaining_capacity(vehicle_id)
        if cargo.weight > status.remaining_weight or cargo.volume > status.remaining_volume:
            raise InsufficientCapacityError(
                vehicle_id, status.remaining_weight, status.remaining_volume
            )

    @staticmethod
    def _fits_vehicle(cargo: Cargo, vehicle: Vehicle) -> bool:
        """Паспортная вместимость и охлаждение."""
        if cargo.requires_refrigeration and not vehicle.is_refrigerated:
            return False
        return cargo.weight <= vehicle.max_weight and cargo.volume <= vehicle.max_volume

    @staticmethod
    def _route_distance(pickup: Location, delivery: Location) -> float:
        a, b = pickup.coordinate, delivery.coordinate
        if a is None or b is None:
            return 0.0
        return haversine_km(a, b)

    async def _publish(self, event_type: str, order: Order, extra: dict[str, Any]) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(DomainEvent(
                event_type=event_type,
                payload={
                    "order_id": order.id,
                    "status": order.status.value,
                    "version": order.version,
                    **extra,
                },
            ))
        except Exception as e:
            await log_error(f"Не удалось опубликовать {event_type}: {e}")
