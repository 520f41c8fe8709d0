"""Client upserts, listing and retention deletes."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from app.models.client import Client
from app.schemas.chat import ClientCreate, ClientStatus


class ClientService:
    def __init__(self, db: DBSession) -> None:
        self.db = db

    def get_client(self, client_id: str) -> Optional[Client]:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def get_clients(self, status: Optional[ClientStatus] = None) -> List[Client]:
        query = self.db.query(Client)
        if status is not None:
            query = query.filter(Client.status == status.value)
        return query.order_by(Client.joined_at.asc()).all()

    def save_client(self, data: ClientCreate) -> Client:
        """
        Insert the client, or overwrite the existing row with the same id.
        Messages already recorded under that id are kept.
        """
        client = self.get_client(data.id)
        if client is None:
            client = Client(id=data.id)
            self.db.add(client)
        client.name = data.name
        client.status = data.status.value
        client.attendant_id = data.attendant_id
        client.joined_at = data.joined_at
        self.db.commit()
        self.db.refresh(client)
        return client

    def get_ids_joined_before(self, cutoff: datetime) -> List[str]:
        rows = self.db.query(Client.id).filter(Client.joined_at < cutoff).all()
        return [row[0] for row in rows]

    def delete_clients(self, client_ids: List[str]) -> int:
        if not client_ids:
            return 0
        deleted = (
            self.db.query(Client)
            .filter(Client.id.in_(client_ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
