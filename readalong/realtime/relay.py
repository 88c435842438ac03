"""Validates inbound socket events and fans them out to the sender's room.

Presence, typing and status updates skip the sender; chat messages and
live-testing events come back to the sender as delivery confirmation.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from readalong.models.event_model import (
    JoinRoom,
    LeaveRoom,
    SendMessage,
    StatusUpdate,
    Typing,
    UserActivity,
)
from readalong.models.participant_model import Participant, ParticipantStatus
from readalong.models.user_model import Identity
from readalong.realtime.dispatcher import Dispatcher
from readalong.realtime.errors import DuplicateConnection, InvalidPayload, ParticipantNotFound
from readalong.realtime.registry import RoomRegistry

logger = logging.getLogger(__name__)

CHAT_BOT = "ChatBot"

Handler = Callable[[str, Any], Awaitable[None]]


class EventRelay:
    def __init__(self, registry: RoomRegistry, dispatcher: Dispatcher):
        self.registry = registry
        self.dispatcher = dispatcher
        # Live connections and the identity the transport attached to each
        self._connections: Dict[str, Optional[Identity]] = {}
        self._routes: Dict[str, Tuple[Type[BaseModel], Handler, str]] = {}

        self.route("join_room", JoinRoom, self.join)
        self.route("leave_room", LeaveRoom, self.leave)
        self.route("send_message", SendMessage, self.message)
        self.route("update_status", StatusUpdate, self.status_update)
        self.route("typing_start", Typing, self.typing_start)
        self.route("typing_stop", Typing, self.typing_stop)
        self.route("user_activity", UserActivity, self.user_activity)

    # ---------------- Routing ----------------

    def route(self, event: str, model: Type[BaseModel], handler: Handler, ack_event: str = "error"):
        self._routes[event] = (model, handler, ack_event)

    @property
    def events(self) -> List[str]:
        return list(self._routes)

    async def handle(self, connection_id: str, event: str, data: Any):
        """Validate and run one inbound event; errors stay local to it."""
        route = self._routes.get(event)
        if route is None:
            logger.debug("Ignoring unknown event %r from %s", event, connection_id)
            return
        model, handler, ack_event = route

        try:
            payload = self._parse(event, model, data, ack_event)
            await handler(connection_id, payload)
        except InvalidPayload as exc:
            logger.info("Rejected %s from %s: %s", event, connection_id, exc.message)
            await self.send(connection_id, exc.ack_event, {"event": event, "message": exc.message})
        except ParticipantNotFound:
            logger.debug("Dropped %s from unregistered connection %s", event, connection_id)
        except DuplicateConnection:
            logger.warning("Duplicate registration for %s on %s", connection_id, event)
            await self.send(connection_id, ack_event, {"event": event, "message": "Failed to join room"})

    @staticmethod
    def _parse(event: str, model: Type[BaseModel], data: Any, ack_event: str) -> BaseModel:
        if not isinstance(data, dict):
            raise InvalidPayload(f"Invalid {event} data: expected an object", ack_event)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
            raise InvalidPayload(
                f"Invalid {event} data: missing or invalid {', '.join(fields)}", ack_event
            ) from exc

    # ---------------- Connection lifecycle ----------------

    def connect(self, connection_id: str, identity: Optional[Identity] = None):
        self._connections[connection_id] = identity

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def identity_of(self, connection_id: str) -> Optional[Identity]:
        return self._connections.get(connection_id)

    async def disconnect(self, connection_id: str):
        self._connections.pop(connection_id, None)
        try:
            participant = await self.registry.remove(connection_id)
        except ParticipantNotFound:
            logger.debug("Disconnect from %s, which never joined a room", connection_id)
            return
        logger.info("%s left room %s (disconnect)", participant.display_name, participant.room_id)
        await self.announce_departure(participant, "disconnect")

    # ---------------- Delivery ----------------

    def timestamp(self) -> int:
        """Server time in epoch milliseconds."""
        return int(self.registry.now().timestamp() * 1000)

    async def send(self, connection_id: str, event: str, payload: Dict[str, Any]):
        try:
            await self.dispatcher.send(connection_id, event, payload)
        except Exception:
            logger.warning("Failed to deliver %s to %s", event, connection_id, exc_info=True)

    async def fan_out(
        self,
        members: Iterable[Participant],
        event: str,
        payload: Dict[str, Any],
        exclude: Optional[str] = None,
    ):
        for member in members:
            if member.connection_id == exclude:
                continue
            await self.send(member.connection_id, event, payload)

    async def broadcast(
        self,
        room_id: str,
        event: str,
        payload: Dict[str, Any],
        exclude: Optional[str] = None,
    ):
        members = await self.registry.members_of(room_id)
        await self.fan_out(members, event, payload, exclude=exclude)

    def roster(self, room_id: str, members: Iterable[Participant]) -> Dict[str, Any]:
        return {"roomId": room_id, "members": [m.to_roster_entry() for m in members]}

    def bot_message(self, room_id: str, body: str) -> Dict[str, Any]:
        return {"roomId": room_id, "displayName": CHAT_BOT, "body": body, "createdTime": self.timestamp()}

    async def announce_departure(self, participant: Participant, reason: str):
        """Tell what is left of ``participant``'s room that it has gone."""
        room_id = participant.room_id
        members = await self.registry.members_of(room_id)
        if not members:
            return
        await self.fan_out(
            members,
            "participant_departed",
            {"displayName": participant.display_name, "roomId": room_id, "reason": reason},
        )
        await self.fan_out(
            members,
            "receive_message",
            self.bot_message(room_id, f"{participant.display_name} has left the chat"),
        )
        await self.fan_out(members, "chatroom_users", self.roster(room_id, members))

    # ---------------- Sender lookups ----------------

    async def sender_in(
        self,
        connection_id: str,
        room_id: str,
        status: Optional[ParticipantStatus] = None,
        activity: Optional[str] = None,
        ack_event: str = "error",
    ) -> Participant:
        """Check the sender sits in ``room_id`` and record its activity."""
        participant = await self.registry.get(connection_id)
        if participant.room_id != room_id:
            raise InvalidPayload(f"Not a member of room {room_id}", ack_event)
        return await self.registry.touch(connection_id, status, activity=activity)

    # ---------------- Handlers ----------------

    async def join(self, connection_id: str, event: JoinRoom):
        try:
            previous = await self.registry.remove(connection_id)
        except ParticipantNotFound:
            previous = None
        if previous is not None and previous.room_id != event.room_id:
            logger.info("%s moved from room %s to %s", previous.display_name, previous.room_id, event.room_id)
            await self.announce_departure(previous, "leave")

        if not self.is_connected(connection_id):
            # Disconnected while the previous room was being notified
            raise ParticipantNotFound(connection_id)

        identity = self._connections[connection_id]
        participant = await self.registry.register(
            connection_id,
            event.display_name,
            event.room_id,
            event.role_hint,
            user_id=identity.id if identity else None,
            verified_role=identity.role if identity else None,
        )
        if not self.is_connected(connection_id):
            # Disconnect ran before the record existed, so nothing else removes it
            try:
                await self.registry.remove(connection_id)
            except ParticipantNotFound:
                logger.debug("%s already removed after disconnect", connection_id)
            raise ParticipantNotFound(connection_id)
        logger.info("%s joined room %s as %r", participant.display_name, participant.room_id, participant.role_hint)

        room_id = participant.room_id
        members = await self.registry.members_of(room_id)
        await self.fan_out(
            members,
            "receive_message",
            self.bot_message(room_id, f"{participant.display_name} has joined the chat room"),
            exclude=connection_id,
        )
        await self.fan_out(members, "chatroom_users", self.roster(room_id, members))
        await self.send(connection_id, "receive_message", self.bot_message(room_id, f"Welcome {participant.display_name}"))

    async def leave(self, connection_id: str, event: LeaveRoom):
        participant = await self.registry.get(connection_id)
        if participant.room_id != event.room_id:
            raise InvalidPayload(f"Not a member of room {event.room_id}")
        removed = await self.registry.remove(connection_id)
        logger.info("%s left room %s", removed.display_name, removed.room_id)
        await self.announce_departure(removed, "leave")

    async def message(self, connection_id: str, event: SendMessage):
        await self.sender_in(connection_id, event.room_id, status="active")
        await self.broadcast(
            event.room_id,
            "receive_message",
            {
                "roomId": event.room_id,
                "displayName": event.display_name,
                "body": event.body,
                "createdTime": self.timestamp(),
            },
        )

    async def status_update(self, connection_id: str, event: StatusUpdate):
        sender = await self.sender_in(connection_id, event.room_id, status=event.status)
        await self.broadcast(
            event.room_id,
            "user_status_update",
            {
                "roomId": event.room_id,
                "connectionId": connection_id,
                "displayName": sender.display_name,
                "roleHint": sender.role_hint,
                "status": event.status,
                "timestamp": self.timestamp(),
            },
            exclude=connection_id,
        )

    async def typing_start(self, connection_id: str, event: Typing):
        await self._typing(connection_id, event, True)

    async def typing_stop(self, connection_id: str, event: Typing):
        await self._typing(connection_id, event, False)

    async def _typing(self, connection_id: str, event: Typing, is_typing: bool):
        await self.sender_in(connection_id, event.room_id, status="typing" if is_typing else "active")
        await self.broadcast(
            event.room_id,
            "user_typing",
            {"roomId": event.room_id, "username": event.display_name, "isTyping": is_typing},
            exclude=connection_id,
        )

    async def user_activity(self, connection_id: str, event: UserActivity):
        sender = await self.sender_in(connection_id, event.room_id, activity=event.activity.type)
        if not event.activity.broadcast:
            return
        await self.broadcast(
            event.room_id,
            "user_activity_update",
            {
                "roomId": event.room_id,
                "displayName": sender.display_name,
                "activity": event.activity.type,
                "timestamp": self.timestamp(),
            },
            exclude=connection_id,
        )
