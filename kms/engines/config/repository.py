"""
Persistence for configuration rows.
"""

import uuid
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.models.configuration import Configuration


class ConfigurationRepository:
    """All database access for the configurations table goes through here."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> Optional[Configuration]:
        query = select(Configuration).where(Configuration.key == key)
        return (await self.session.execute(query)).scalar_one_or_none()

    async def list(self, category: Optional[str] = None) -> List[Configuration]:
        query = select(Configuration).order_by(Configuration.category, Configuration.key)
        if category:
            query = query.where(Configuration.category == category)
        return list((await self.session.execute(query)).scalars().all())

    async def upsert(
        self,
        key: str,
        value: Any,
        category: Optional[str] = None,
        description: Optional[str] = None,
        modified_by: Optional[uuid.UUID] = None,
    ) -> Configuration:
        """Insert a new row or overwrite the value of an existing one."""
        config = await self.get(key)
        if config is None:
            config = Configuration(
                key=key,
                value=value,
                category=category or "system",
                description=description,
                last_modified_by=modified_by,
            )
            self.session.add(config)
        else:
            config.value = value
            if description:
                config.description = description
            if modified_by:
                config.last_modified_by = modified_by
        await self.session.flush()
        return config

    async def delete(self, config: Configuration) -> None:
        await self.session.delete(config)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()
