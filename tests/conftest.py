import pytest

from tests.fakes import FakeDirectory, make_user


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory([
        make_user("alice", upn="a@old.com", mail="a@old.com",
                  proxies=["SMTP:a@old.com", "smtp:alice@old.com", "X500:/o=Org/cn=alice"]),
        make_user("bob", upn="bob@old.com", mail="bob@old.com", proxies=["SMTP:bob@old.com"]),
        make_user("carol", upn="carol@old.com", mail="carol@old.com", proxies=["SMTP:carol@old.com"]),
        make_user("dave", upn="dave@old.com", mail="dave@old.com", proxies=["SMTP:dave@old.com"]),
    ])
