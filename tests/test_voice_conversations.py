def test_language_defaults_to_english(repository):
    omitted = repository.create_voice_conversation({"user_id": "u1", "question": "When to plant?", "answer": "Now."})
    blank = repository.create_voice_conversation({"user_id": "u1", "question": "q", "answer": "a", "language": ""})
    nulled = repository.create_voice_conversation({"user_id": "u1", "question": "q", "answer": "a", "language": None})

    assert omitted.language == "English"
    assert blank.language == "English"
    assert nulled.language == "English"


def test_explicit_language_is_kept(repository):
    conversation = repository.create_voice_conversation(
        {"user_id": "u1", "question": "Lini?", "answer": "Sasa.", "language": "Swahili"}
    )
    assert conversation.language == "Swahili"
    assert conversation.audio_data is None


def test_conversations_newest_first(repository, clock):
    first = repository.create_voice_conversation({"user_id": "u1", "question": "1", "answer": "a"})
    clock.advance(minutes=1)
    second = repository.create_voice_conversation({"user_id": "u1", "question": "2", "answer": "b"})
    repository.create_voice_conversation({"user_id": "u2", "question": "3", "answer": "c"})

    results = repository.get_user_voice_conversations("u1")

    assert [c.id for c in results] == [second.id, first.id]


def test_same_timestamp_keeps_insertion_order(repository):
    first = repository.create_voice_conversation({"user_id": "u1", "question": "1", "answer": "a"})
    second = repository.create_voice_conversation({"user_id": "u1", "question": "2", "answer": "b"})

    results = repository.get_user_voice_conversations("u1")

    assert [c.id for c in results] == [first.id, second.id]


def test_non_text_language_falls_back_to_english(repository):
    numeric = repository.create_voice_conversation({"user_id": "u1", "question": "q", "answer": "a", "language": 7})
    listed = repository.create_voice_conversation({"user_id": "u1", "question": "q", "answer": "a", "language": ["sw"]})

    assert numeric.language == "English"
    assert listed.language == "English"
