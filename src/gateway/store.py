"""Host store: channels, inbound events and delivery statuses."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Protocol

from src.errors import ChannelNotFoundError
from src.models import (
    Channel,
    ConversationStarted,
    DeliveryStatus,
    IncomingMessage,
    PartOutcome,
)


class Store(Protocol):
    """Persistence sinks the Telegram handler hands its values to."""

    def get_channel(self, channel_type: str, channel_uuid: str) -> Channel: ...

    def write_channel_event(self, event: ConversationStarted) -> None: ...

    def write_msg(self, msg: IncomingMessage) -> None: ...

    def new_msg_status_for_id(self, channel: Channel, msg_id: int) -> DeliveryStatus: ...

    def write_msg_status(self, status: DeliveryStatus) -> None: ...


class SQLiteStore:
    """SQLite-backed implementation of ``Store``."""

    def __init__(self, db_path: str) -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS channels (
                uuid TEXT PRIMARY KEY,
                channel_type TEXT NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                address TEXT NOT NULL DEFAULT '',
                config_json TEXT NOT NULL DEFAULT '{}'
            );
            CREATE TABLE IF NOT EXISTS channel_events (
                uuid TEXT PRIMARY KEY,
                channel_uuid TEXT NOT NULL,
                event_type TEXT NOT NULL,
                urn TEXT NOT NULL,
                contact_name TEXT NOT NULL DEFAULT '',
                occurred_on TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS msgs (
                uuid TEXT PRIMARY KEY,
                channel_uuid TEXT NOT NULL,
                urn TEXT NOT NULL,
                contact_name TEXT NOT NULL DEFAULT '',
                text TEXT NOT NULL DEFAULT '',
                attachments_json TEXT NOT NULL DEFAULT '[]',
                external_id TEXT NOT NULL,
                received_on TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS msg_statuses (
                channel_uuid TEXT NOT NULL,
                msg_id INTEGER NOT NULL,
                status TEXT NOT NULL,
                external_id TEXT,
                parts_json TEXT NOT NULL DEFAULT '[]',
                logs_json TEXT NOT NULL DEFAULT '[]',
                PRIMARY KEY (channel_uuid, msg_id)
            );
        """)
        self.conn.commit()

    # --- channels ---

    def add_channel(self, channel: Channel) -> None:
        self.conn.execute(
            """INSERT INTO channels (uuid, channel_type, name, address, config_json)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(uuid) DO UPDATE SET
                 channel_type=excluded.channel_type, name=excluded.name,
                 address=excluded.address, config_json=excluded.config_json""",
            (
                channel.uuid,
                channel.channel_type,
                channel.name,
                channel.address,
                json.dumps(channel.config),
            ),
        )
        self.conn.commit()

    def get_channel(self, channel_type: str, channel_uuid: str) -> Channel:
        row = self.conn.execute(
            "SELECT * FROM channels WHERE uuid = ? AND channel_type = ?",
            (channel_uuid, channel_type),
        ).fetchone()
        if row is None:
            raise ChannelNotFoundError(f"no {channel_type} channel with uuid {channel_uuid}")
        return Channel(
            uuid=row["uuid"],
            channel_type=row["channel_type"],
            name=row["name"],
            address=row["address"],
            config=json.loads(row["config_json"]),
        )

    # --- inbound ---

    def write_channel_event(self, event: ConversationStarted) -> None:
        self.conn.execute(
            """INSERT INTO channel_events
               (uuid, channel_uuid, event_type, urn, contact_name, occurred_on)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                event.uuid,
                event.channel_uuid,
                event.event_type.value,
                str(event.urn),
                event.contact_name,
                event.occurred_on.isoformat(),
            ),
        )
        self.conn.commit()

    def write_msg(self, msg: IncomingMessage) -> None:
        self.conn.execute(
            """INSERT INTO msgs
               (uuid, channel_uuid, urn, contact_name, text, attachments_json,
                external_id, received_on)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                msg.uuid,
                msg.channel_uuid,
                str(msg.urn),
                msg.contact_name,
                msg.text,
                json.dumps(list(msg.attachments)),
                msg.external_id,
                msg.received_on.isoformat(),
            ),
        )
        self.conn.commit()

    def list_channel_events(self, channel_uuid: str) -> list[dict[str, object]]:
        rows = self.conn.execute(
            "SELECT * FROM channel_events WHERE channel_uuid = ? ORDER BY rowid",
            (channel_uuid,),
        ).fetchall()
        return [dict(r) for r in rows]

    def list_msgs(self, channel_uuid: str) -> list[dict[str, object]]:
        rows = self.conn.execute(
            "SELECT * FROM msgs WHERE channel_uuid = ? ORDER BY rowid",
            (channel_uuid,),
        ).fetchall()
        return [dict(r) for r in rows]

    # --- outbound ---

    def new_msg_status_for_id(self, channel: Channel, msg_id: int) -> DeliveryStatus:
        return DeliveryStatus(channel_uuid=channel.uuid, msg_id=msg_id)

    def write_msg_status(self, status: DeliveryStatus) -> None:
        self.conn.execute(
            """INSERT INTO msg_statuses
               (channel_uuid, msg_id, status, external_id, parts_json, logs_json)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(channel_uuid, msg_id) DO UPDATE SET
                 status=excluded.status, external_id=excluded.external_id,
                 parts_json=excluded.parts_json, logs_json=excluded.logs_json""",
            (
                status.channel_uuid,
                status.msg_id,
                status.status.value,
                status.external_id,
                json.dumps([p.model_dump() for p in status.parts]),
                json.dumps([log.model_dump(mode="json") for log in status.logs]),
            ),
        )
        self.conn.commit()

    def get_msg_status(self, channel_uuid: str, msg_id: int) -> DeliveryStatus | None:
        row = self.conn.execute(
            "SELECT * FROM msg_statuses WHERE channel_uuid = ? AND msg_id = ?",
            (channel_uuid, msg_id),
        ).fetchone()
        if row is None:
            return None
        return DeliveryStatus(
            channel_uuid=row["channel_uuid"],
            msg_id=row["msg_id"],
            parts=[PartOutcome(**p) for p in json.loads(row["parts_json"])],
            logs=json.loads(row["logs_json"]),
            external_id=row["external_id"],
        )

    def close(self) -> None:
        self.conn.close()
