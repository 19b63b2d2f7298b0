"""Application service: List Orders use case (query)."""

from __future__ import annotations

from orderflow.application.change_status import parse_status
from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.repository.order_repository import OrderRepository


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, status: str | None = None) -> list[OrderDTO]:
        wanted = parse_status(status) if status else None
        orders = sorted(self._order_repo.list_all(wanted), key=lambda o: o.id or 0)
        return [to_order_dto(order) for order in orders]
