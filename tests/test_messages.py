from skilllink.messaging import ConversationFeed, MessageService, feed


def test_conversation_in_send_order_and_marked_read(client, make_user, auth):
    make_user("alice")
    make_user("john", role="both")

    for sender, recipient, text in [
        ("alice", "john", "Hi John"),
        ("john", "alice", "Hello Alice"),
        ("alice", "john", "React please"),
    ]:
        r = client.post("/messages", json={"recipient_id": recipient, "content": text}, headers=auth(sender))
        assert r.status_code == 201

    convs = client.get("/messages/conversations", headers=auth("john")).json()["conversations"]
    assert len(convs) == 1
    assert convs[0]["user_id"] == "alice"
    assert convs[0]["unread"] == 2
    assert convs[0]["last_message"]["content"] == "React please"

    thread = client.get("/messages/alice", headers=auth("john")).json()["messages"]
    assert [m["content"] for m in thread] == ["Hi John", "Hello Alice", "React please"]
    assert all(m["is_read"] for m in thread if m["recipient_id"] == "john")

    convs = client.get("/messages/conversations", headers=auth("john")).json()["conversations"]
    assert convs[0]["unread"] == 0


def test_send_validation(client, make_user, auth):
    make_user("alice")
    assert client.post("/messages", json={"recipient_id": "ghost", "content": "hi"},
                       headers=auth("alice")).status_code == 404
    assert client.post("/messages", json={"recipient_id": "alice", "content": "hi"},
                       headers=auth("alice")).status_code == 400
    assert client.post("/messages", json={"recipient_id": "alice", "content": "   "},
                       headers=auth("alice")).status_code == 400


def test_subscription_receives_until_unsubscribed(test_db_session, make_user):
    alice = make_user("alice")
    make_user("john")
    channel = ConversationFeed()
    received = []

    unsubscribe = channel.subscribe("alice", "john", lambda m: received.append(m.content))
    service = MessageService(test_db_session, channel)
    service.send(alice, "john", "first")
    assert received == ["first"]
    assert channel.subscriber_count("john", "alice") == 1

    unsubscribe()
    service.send(alice, "john", "second")
    assert received == ["first"]
    assert channel.subscriber_count("alice", "john") == 0


def test_failing_subscriber_does_not_fail_send(test_db_session, make_user):
    alice = make_user("alice")
    make_user("john")

    def broken(message):
        raise RuntimeError("socket closed")

    unsubscribe = feed.subscribe("alice", "john", broken)
    try:
        message = MessageService(test_db_session).send(alice, "john", "still delivered")
    finally:
        unsubscribe()
    assert message.id is not None
