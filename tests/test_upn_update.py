import logging

from core.models import Decision
from processors.upn_update import UPNUpdateProcessor
from tests.fakes import FakeDirectory, ScriptedPrompter, make_user


def test_alice_applied_bob_skipped_for_blank_value():
    directory = FakeDirectory([
        make_user("alice", upn="a@old.com"),
        make_user("bob", upn="bob@old.com"),
    ])
    rows = [
        {'SamAccountName': 'alice', 'CurrentUPN': 'a@old.com', 'NewUPN': 'a@new.com'},
        {'SamAccountName': 'bob', 'CurrentUPN': '', 'NewUPN': ''},
    ]

    summary = UPNUpdateProcessor(directory, auto_accept=True).process_records(rows)

    assert (summary.applied, summary.failed, summary.skipped) == (1, 0, 1)
    assert directory.users["CN=alice,OU=Users,DC=example,DC=com"].user_principal_name == "a@new.com"
    # blank required value is rejected before the lookup
    assert directory.lookups == ["alice"]


def test_values_are_trimmed():
    directory = FakeDirectory([make_user("alice", upn="a@old.com")])
    rows = [{'SamAccountName': '  alice ', 'NewUPN': ' a@new.com  '}]

    summary = UPNUpdateProcessor(directory, auto_accept=True).process_records(rows)

    assert summary.applied == 1
    assert directory.writes == [("CN=alice,OU=Users,DC=example,DC=com", 'userPrincipalName', 'a@new.com')]


def test_identical_upn_needs_no_change():
    directory = FakeDirectory([make_user("alice", upn="a@new.com")])
    prompter = ScriptedPrompter([])
    rows = [{'SamAccountName': 'alice', 'NewUPN': 'a@new.com'}]

    summary = UPNUpdateProcessor(directory, prompter=prompter).process_records(rows)

    assert summary.skipped == 1
    assert prompter.asked == []
    assert directory.writes == []


def test_case_only_difference_is_a_change():
    directory = FakeDirectory([make_user("alice", upn="A@new.com")])
    rows = [{'SamAccountName': 'alice', 'NewUPN': 'a@new.com'}]

    summary = UPNUpdateProcessor(directory, prompter=ScriptedPrompter([Decision.YES])).process_records(rows)

    assert summary.applied == 1


def test_invalid_upn_is_skipped():
    directory = FakeDirectory([make_user("alice", upn="a@old.com")])
    rows = [{'SamAccountName': 'alice', 'NewUPN': 'alice'}]

    summary = UPNUpdateProcessor(directory, auto_accept=True).process_records(rows)

    assert summary.skipped == 1
    assert directory.lookups == []


def test_mismatched_current_upn_is_warned(caplog):
    directory = FakeDirectory([make_user("alice", upn="alice@elsewhere.com")])
    rows = [{'SamAccountName': 'alice', 'CurrentUPN': 'a@old.com', 'NewUPN': 'a@new.com'}]

    with caplog.at_level(logging.WARNING):
        summary = UPNUpdateProcessor(directory, auto_accept=True).process_records(rows)

    assert summary.applied == 1
    assert "directory has alice@elsewhere.com" in caplog.text


def test_compute_change():
    processor = UPNUpdateProcessor(FakeDirectory([]))
    user = make_user("alice", upn="a@old.com")

    change = processor.compute_change(user, {'CurrentUPN': '', 'NewUPN': 'a@new.com'})

    assert change.identifier == "alice"
    assert change.current == {'userPrincipalName': 'a@old.com'}
    assert change.proposed == {'userPrincipalName': 'a@new.com'}
