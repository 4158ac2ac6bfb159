from teknumbot.badwords import BadWords


class _Collection:
    def __init__(self):
        self.docs = []

    def insert_one(self, doc):
        self.docs.append(doc)


def test_authenticate(monkeypatch):
    monkeypatch.setenv("ADMIN_ID", "30,40,50,60")
    words = BadWords({}, "captcha")
    assert words.authenticate("30") is True
    assert words.authenticate("10") is False


def test_authenticate_without_env(monkeypatch):
    monkeypatch.delenv("ADMIN_ID", raising=False)
    assert BadWords({}, "captcha").authenticate("30") is False


def test_add_bad_word():
    col = _Collection()
    BadWords({"captcha": {"badstuff": col}}, "captcha").add("some bad word")
    assert col.docs == [{"value": "some bad word"}]