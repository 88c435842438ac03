import pytest

WORDS = ["the", "of", "and"]


@pytest.fixture
async def classroom(join, dispatcher):
    await join("t", "Ms. Ortiz", "class-5", "teacher")
    await join("s1", "Sam", "class-5")
    await join("s2", "Ana", "class-5")
    await join("x", "Dev", "class-6")
    dispatcher.clear()


async def test_start_session_reaches_whole_room_and_confirms(relay, dispatcher, classroom):
    await relay.handle(
        "t",
        "start_test_session",
        {
            "sessionId": "sess-1",
            "teacherId": "teacher-9",
            "roomId": "class-5",
            "testType": "fry",
            "wordsToTest": WORDS,
            "fryLevel": 1,
        },
    )

    assert dispatcher.recipients("test_session_started") == ["t", "s1", "s2"]
    [started] = dispatcher.received("s1", "test_session_started")
    assert started["wordsCount"] == 3
    assert started["fryLevel"] == 1
    assert started["teacherId"] == "teacher-9"
    [confirmed] = dispatcher.received("t", "test_session_confirmed")
    assert confirmed["sessionId"] == "sess-1"
    assert confirmed["studentsNotified"] is True
    assert dispatcher.received("x") == []


@pytest.mark.parametrize(
    "payload",
    [
        {"sessionId": "sess-1", "teacherId": "t", "roomId": "class-5", "testType": "fry"},
        {"sessionId": "sess-1", "teacherId": "t", "roomId": "class-5", "testType": "fry", "wordsToTest": []},
        {"teacherId": "t", "roomId": "class-5", "testType": "fry", "wordsToTest": WORDS},
    ],
)
async def test_start_session_with_missing_data_only_errors_to_sender(relay, dispatcher, classroom, payload):
    await relay.handle("t", "start_test_session", payload)

    assert dispatcher.recipients("test_session_started") == []
    assert dispatcher.events_for("t") == ["test_error"]
    assert dispatcher.received("s1") == []


async def test_start_session_from_outside_any_room(relay, dispatcher, classroom):
    relay.connect("lurker")

    await relay.handle(
        "lurker",
        "start_test_session",
        {"sessionId": "s", "teacherId": "t", "roomId": "class-5", "testType": "fry", "wordsToTest": WORDS},
    )

    assert dispatcher.received("lurker", "test_error") == [
        {"event": "start_test_session", "message": "Sender not found in room"}
    ]
    assert dispatcher.recipients("test_session_started") == []


async def test_send_word_applies_defaults(relay, dispatcher, classroom):
    await relay.handle(
        "t",
        "send_test_word",
        {"sessionId": "sess-1", "word": "because", "testType": "fry", "roomId": "class-5"},
    )

    assert dispatcher.recipients("receive_test_word") == ["t", "s1", "s2"]
    [word] = dispatcher.received("s2", "receive_test_word")
    assert word["word"] == "because"
    assert word["difficulty"] == "medium"
    assert word["sequence"] == 1
    [sent] = dispatcher.received("t", "word_sent_confirmation")
    assert sent["word"] == "because"


async def test_null_optional_fields_fall_back_to_defaults(relay, dispatcher, classroom):
    await relay.handle(
        "t",
        "send_test_word",
        {
            "sessionId": "sess-1",
            "word": "because",
            "testType": "fry",
            "roomId": "class-5",
            "difficulty": None,
            "sequence": None,
        },
    )
    await relay.handle(
        "s1",
        "submit_test_response",
        {
            "sessionId": "sess-1",
            "word": "because",
            "studentId": "stu-1",
            "testType": "fry",
            "recognized": None,
            "confidence": None,
        },
    )

    assert dispatcher.received("t", "test_error") == []
    assert dispatcher.received("s1", "test_error") == []
    [word] = dispatcher.received("s2", "receive_test_word")
    assert word["difficulty"] == "medium"
    assert word["sequence"] == 1
    [answer] = dispatcher.received("t", "student_test_response")
    assert answer["recognized"] is False
    assert answer["confidence"] == 0


async def test_send_word_to_a_room_the_teacher_is_not_in(relay, dispatcher, classroom):
    await relay.handle(
        "t",
        "send_test_word",
        {"sessionId": "sess-1", "word": "because", "testType": "fry", "roomId": "class-6"},
    )

    assert dispatcher.received("t", "test_error")[0]["message"] == "Not a member of room class-6"
    assert dispatcher.received("x") == []


async def test_student_response_uses_the_students_room(relay, dispatcher, classroom):
    await relay.handle(
        "s1",
        "submit_test_response",
        {
            "sessionId": "sess-1",
            "word": "because",
            "studentId": "stu-1",
            "studentName": "Sam",
            "testType": "fry",
            "responseTime": 1.8,
        },
    )

    assert dispatcher.recipients("student_test_response") == ["t", "s1", "s2"]
    [answer] = dispatcher.received("t", "student_test_response")
    assert answer["studentName"] == "Sam"
    assert answer["recognized"] is False
    assert answer["confidence"] == 0
    assert answer["response"] is None
    assert dispatcher.received("s1", "response_submitted")[0]["word"] == "because"
    assert dispatcher.received("x") == []


async def test_response_from_unregistered_student(relay, dispatcher, classroom):
    relay.connect("ghost")

    await relay.handle(
        "ghost",
        "submit_test_response",
        {"sessionId": "sess-1", "word": "because", "studentId": "stu-1", "testType": "fry"},
    )

    assert dispatcher.received("ghost", "test_error")[0]["message"] == "Student not found in room"
    assert dispatcher.recipients("student_test_response") == []


async def test_assessment_note_goes_to_observers(relay, dispatcher, classroom):
    await relay.handle(
        "t",
        "save_assessment_note",
        {"sessionId": "sess-1", "word": "because", "studentId": "stu-1", "teacherNotes": "hesitated", "score": 0.5},
    )

    assert dispatcher.recipients("assessment_saved") == ["s1", "s2"]
    assert dispatcher.received("s2", "assessment_saved")[0]["teacherNotes"] == "hesitated"
    assert dispatcher.received("t", "assessment_note_saved")[0]["studentId"] == "stu-1"


async def test_pronunciation_request(relay, dispatcher, classroom):
    await relay.handle(
        "s1",
        "request_word_pronunciation",
        {"word": "because", "studentId": "stu-1", "sessionId": "sess-1"},
    )

    assert dispatcher.recipients("pronunciation_requested") == ["t", "s2"]
    assert dispatcher.received("t", "pronunciation_requested")[0]["studentName"] == "Sam"
    assert dispatcher.events_for("s1") == ["word_pronunciation"]


async def test_end_session(relay, dispatcher, classroom):
    await relay.handle("t", "end_test_session", {"sessionId": "sess-1", "roomId": "class-5", "completedCount": 2})

    [ended] = dispatcher.received("s1", "test_session_ended")
    assert ended["completedCount"] == 2
    assert ended["totalWords"] == 0
    assert dispatcher.received("t", "test_session_end_confirmed")[0]["sessionId"] == "sess-1"


async def test_update_settings(relay, dispatcher, classroom):
    await relay.handle(
        "t",
        "update_test_settings",
        {"sessionId": "sess-1", "roomId": "class-5", "settings": {"showTimer": False}},
    )

    assert dispatcher.recipients("test_settings_updated") == ["t", "s1", "s2"]
    assert dispatcher.received("s1", "test_settings_updated")[0]["settings"] == {"showTimer": False}
    assert dispatcher.events_for("t") == ["test_settings_updated", "test_settings_update_confirmed"]


async def test_update_settings_requires_settings(relay, dispatcher, classroom):
    await relay.handle("t", "update_test_settings", {"sessionId": "sess-1", "roomId": "class-5"})

    assert dispatcher.events_for("t") == ["test_error"]
