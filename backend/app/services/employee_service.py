"""Cosmos DB employee store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from azure.cosmos.aio import CosmosClient
from pydantic import ValidationError

from app.core.config import Settings
from app.models.employee import Employee, SyncEmployeeRecord, employee_document_id

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing — service not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("EmployeeService initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    async def get_active_employees(self) -> list[Employee]:
        if not self.container:
            return []

        query = "SELECT * FROM c WHERE c.is_active = true"
        return await self._query_employees(query)

    async def get_employee(self, employee_id: str) -> Employee | None:
        if not self.container:
            return None

        query = "SELECT * FROM c WHERE c.id = @id"
        params: list[dict[str, Any]] = [{"name": "@id", "value": employee_id}]

        employees = await self._query_employees(query, params)
        if not employees:
            return None

        return employees[0]

    async def upsert_employees(self, records: list[SyncEmployeeRecord]) -> int:
        if not self.container:
            raise RuntimeError("EmployeeService not initialized")

        synced_at = datetime.now(timezone.utc)
        for record in records:
            employee = Employee(
                id=employee_document_id(record.id),
                dtr_id=record.id,
                full_name=record.name,
                email=record.email,
                department=record.department,
                is_active=True,
                last_synced_at=synced_at,
            )
            await self.container.upsert_item(employee.model_dump(mode="json"))

        logger.info("Upserted %d employees", len(records))
        return len(records)

    async def deactivate_missing(self, active_dtr_ids: set[int]) -> int:
        if not self.container:
            raise RuntimeError("EmployeeService not initialized")

        deactivated = 0
        for employee in await self.get_active_employees():
            if employee.dtr_id is None or employee.dtr_id in active_dtr_ids:
                continue
            employee.is_active = False
            await self.container.upsert_item(employee.model_dump(mode="json"))
            deactivated += 1

        if deactivated:
            logger.info("Deactivated %d employees missing from DTR", deactivated)
        return deactivated

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            query = "SELECT VALUE COUNT(1) FROM c"
            async for _ in self.container.query_items(
                query=query,
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    async def _query_employees(
        self,
        query: str,
        params: list[dict[str, Any]] | None = None,
    ) -> list[Employee]:
        results: list[Employee] = []
        async for item in self.container.query_items(
            query=query,
            parameters=params,
            enable_cross_partition_query=True,
        ):
            employee = self._transform_employee(item)
            if employee is not None:
                results.append(employee)
        return results

    def _transform_employee(self, raw: dict[str, Any]) -> Employee | None:
        try:
            return Employee.model_validate(raw)
        except ValidationError:
            logger.warning("Skipping malformed employee document %s", raw.get("id"))
            return None


employee_service = EmployeeService()
