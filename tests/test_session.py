import unittest

from traced_chatbot.messages import assistant_message, user_message
from traced_chatbot.session import Session


class SessionTests(unittest.TestCase):
    def test_generates_unique_ids(self) -> None:
        self.assertNotEqual(Session().id, Session().id)

    def test_explicit_id(self) -> None:
        self.assertEqual("s1", Session("s1").id)

    def test_append_and_extend_keep_order(self) -> None:
        session = Session()
        session.append(user_message("one"))
        session.extend([assistant_message("two"), user_message("three")])
        self.assertEqual(["one", "two", "three"], [m.text for m in session.messages])
        self.assertEqual(3, len(session))

    def test_messages_view_is_a_copy(self) -> None:
        session = Session()
        session.append(user_message("one"))
        view = session.messages
        session.append(assistant_message("two"))
        self.assertEqual(1, len(view))

    def test_rejects_non_messages(self) -> None:
        session = Session()
        with self.assertRaises(TypeError):
            session.append({"role": "user", "content": "x"})  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            session.extend([user_message("ok"), "bad"])  # type: ignore[list-item]
        self.assertEqual(0, len(session))

    def test_snapshot_is_plain_dicts(self) -> None:
        session = Session()
        session.append(user_message("hello"))
        self.assertEqual([{"role": "user", "content": "hello"}], session.snapshot())


if __name__ == "__main__":
    unittest.main()
