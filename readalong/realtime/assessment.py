import logging

from readalong.models.event_model import (
    EndTestSession,
    RequestPronunciation,
    SaveAssessmentNote,
    SendTestWord,
    StartTestSession,
    SubmitTestResponse,
    UpdateTestSettings,
)
from readalong.models.participant_model import Participant
from readalong.realtime.errors import InvalidPayload, ParticipantNotFound
from readalong.realtime.relay import EventRelay

logger = logging.getLogger(__name__)

TEST_ERROR = "test_error"


class AssessmentEvents:
    def __init__(self, relay: EventRelay):
        self.relay = relay

    def install(self):
        route = self.relay.route
        route("start_test_session", StartTestSession, self.start_session, TEST_ERROR)
        route("send_test_word", SendTestWord, self.send_word, TEST_ERROR)
        route("submit_test_response", SubmitTestResponse, self.submit_response, TEST_ERROR)
        route("save_assessment_note", SaveAssessmentNote, self.save_note, TEST_ERROR)
        route("end_test_session", EndTestSession, self.end_session, TEST_ERROR)
        route("request_word_pronunciation", RequestPronunciation, self.request_pronunciation, TEST_ERROR)
        route("update_test_settings", UpdateTestSettings, self.update_settings, TEST_ERROR)

    async def _in_room(self, connection_id: str, room_id: str) -> Participant:
        try:
            return await self.relay.sender_in(connection_id, room_id, ack_event=TEST_ERROR)
        except ParticipantNotFound:
            raise InvalidPayload("Sender not found in room", TEST_ERROR) from None

    async def _own_room(self, connection_id: str) -> Participant:
        try:
            participant = await self.relay.registry.touch(connection_id)
        except ParticipantNotFound:
            raise InvalidPayload("Student not found in room", TEST_ERROR) from None
        return participant

    async def start_session(self, connection_id: str, event: StartTestSession):
        await self._in_room(connection_id, event.room_id)
        logger.info(
            "Teacher %s starting test session %s in room %s", event.teacher_id, event.session_id, event.room_id
        )
        await self.relay.broadcast(
            event.room_id,
            "test_session_started",
            {
                "sessionId": event.session_id,
                "teacherId": event.teacher_id,
                "testType": event.test_type,
                "fryLevel": event.fry_level,
                "wordsCount": len(event.words_to_test),
                "startTime": self.relay.timestamp(),
            },
        )
        await self.relay.send(
            connection_id,
            "test_session_confirmed",
            {"sessionId": event.session_id, "message": "Test session started successfully", "studentsNotified": True},
        )

    async def send_word(self, connection_id: str, event: SendTestWord):
        await self._in_room(connection_id, event.room_id)
        logger.debug("Sending test word %r to room %s", event.word, event.room_id)
        await self.relay.broadcast(
            event.room_id,
            "receive_test_word",
            {
                "sessionId": event.session_id,
                "word": event.word,
                "testType": event.test_type,
                "difficulty": event.difficulty or "medium",
                "sequence": event.sequence or 1,
                "timestamp": self.relay.timestamp(),
            },
        )
        await self.relay.send(
            connection_id,
            "word_sent_confirmation",
            {"sessionId": event.session_id, "word": event.word, "sentAt": self.relay.timestamp()},
        )

    async def submit_response(self, connection_id: str, event: SubmitTestResponse):
        student = await self._own_room(connection_id)
        logger.debug("Student %s answered %r", event.student_name or event.student_id, event.word)
        await self.relay.broadcast(
            student.room_id,
            "student_test_response",
            {
                "sessionId": event.session_id,
                "word": event.word,
                "studentId": event.student_id,
                "studentName": event.student_name,
                "response": event.response,
                "responseTime": event.response_time,
                "testType": event.test_type,
                "recognized": event.recognized or False,
                "confidence": event.confidence or 0,
                "timestamp": self.relay.timestamp(),
            },
        )
        await self.relay.send(
            connection_id,
            "response_submitted",
            {"sessionId": event.session_id, "word": event.word, "submittedAt": self.relay.timestamp()},
        )

    async def save_note(self, connection_id: str, event: SaveAssessmentNote):
        teacher = await self._own_room(connection_id)
        await self.relay.broadcast(
            teacher.room_id,
            "assessment_saved",
            {
                "sessionId": event.session_id,
                "word": event.word,
                "studentId": event.student_id,
                "teacherNotes": event.teacher_notes,
                "score": event.score,
                "recognized": event.recognized,
                "assessedAt": self.relay.timestamp(),
            },
            exclude=connection_id,
        )
        await self.relay.send(
            connection_id,
            "assessment_note_saved",
            {
                "sessionId": event.session_id,
                "word": event.word,
                "studentId": event.student_id,
                "savedAt": self.relay.timestamp(),
            },
        )

    async def end_session(self, connection_id: str, event: EndTestSession):
        await self._in_room(connection_id, event.room_id)
        logger.info("Ending test session %s in room %s", event.session_id, event.room_id)
        await self.relay.broadcast(
            event.room_id,
            "test_session_ended",
            {
                "sessionId": event.session_id,
                "endTime": self.relay.timestamp(),
                "completedCount": event.completed_count,
                "totalWords": event.total_words,
            },
        )
        await self.relay.send(
            connection_id,
            "test_session_end_confirmed",
            {"sessionId": event.session_id, "endedAt": self.relay.timestamp()},
        )

    async def request_pronunciation(self, connection_id: str, event: RequestPronunciation):
        student = await self._own_room(connection_id)
        # Only the teacher side needs to hear about the request
        await self.relay.broadcast(
            student.room_id,
            "pronunciation_requested",
            {
                "word": event.word,
                "studentId": event.student_id,
                "studentName": student.display_name,
                "sessionId": event.session_id,
                "requestedAt": self.relay.timestamp(),
            },
            exclude=connection_id,
        )
        await self.relay.send(
            connection_id,
            "word_pronunciation",
            {"word": event.word, "sessionId": event.session_id, "timestamp": self.relay.timestamp()},
        )

    async def update_settings(self, connection_id: str, event: UpdateTestSettings):
        await self._in_room(connection_id, event.room_id)
        await self.relay.broadcast(
            event.room_id,
            "test_settings_updated",
            {"sessionId": event.session_id, "settings": event.settings, "updatedAt": self.relay.timestamp()},
        )
        await self.relay.send(
            connection_id,
            "test_settings_update_confirmed",
            {"sessionId": event.session_id, "updatedAt": self.relay.timestamp()},
        )
