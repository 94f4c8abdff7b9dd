from unittest.mock import MagicMock

import pytest
from ldap3 import MODIFY_REPLACE

from core import ad_client as ad_module
from core.ad_client import ActiveDirectoryClient
from core.exceptions import ApplyError


def make_entry(dn, **attributes):
    entry = MagicMock()
    entry.entry_dn = dn
    entry.entry_attributes_as_dict = {name: list(values) for name, values in attributes.items()}
    return entry


@pytest.fixture
def client(monkeypatch):
    connection = MagicMock()
    connection.entries = []
    monkeypatch.setattr(ad_module, 'Server', MagicMock())
    monkeypatch.setattr(ad_module, 'Connection', MagicMock(return_value=connection))

    ad_client = ActiveDirectoryClient("ldap://dc01", "svc", "secret", "DC=example,DC=com")
    assert ad_client.connect()
    return ad_client


def test_query_user_by_samaccountname(client):
    client.connection.entries = [make_entry(
        "CN=Alice,DC=example,DC=com",
        sAMAccountName=['alice'], userPrincipalName=['alice@example.com'], mail=['alice@example.com'],
        displayName=['Alice'], proxyAddresses=['SMTP:alice@example.com', 'X500:/o=Org/cn=alice'],
    )]

    user = client.query_user_by_samaccountname("alice")

    search = client.connection.search.call_args.kwargs
    assert search['search_base'] == "DC=example,DC=com"
    assert search['search_filter'] == "(&(objectClass=user)(sAMAccountName=alice))"
    assert user.dn == "CN=Alice,DC=example,DC=com"
    assert user.user_principal_name == "alice@example.com"
    assert user.proxy_addresses == ['SMTP:alice@example.com', 'X500:/o=Org/cn=alice']


def test_query_escapes_filter_values(client):
    client.query_user_by_upn("a*)(cn=*")

    search_filter = client.connection.search.call_args.kwargs['search_filter']
    assert search_filter == "(&(objectClass=user)(userPrincipalName=a\\2a\\29\\28cn=\\2a))"


def test_query_not_found(client):
    assert client.query_user_by_upn("nobody@example.com") is None


def test_query_missing_attributes(client):
    client.connection.entries = [make_entry("CN=Bob,DC=example,DC=com", sAMAccountName=['bob'])]

    user = client.query_user_by_samaccountname("bob")

    assert user.mail == ""
    assert user.proxy_addresses == []


def test_replace_attributes_one_modify_per_attribute(client):
    client.connection.modify.return_value = True

    client.replace_attributes("CN=Alice,DC=example,DC=com",
                              {'proxyAddresses': ['SMTP:a@new.com'], 'mail': 'a@new.com'})

    calls = [call.args for call in client.connection.modify.call_args_list]
    assert calls == [
        ("CN=Alice,DC=example,DC=com", {'proxyAddresses': [(MODIFY_REPLACE, ['SMTP:a@new.com'])]}),
        ("CN=Alice,DC=example,DC=com", {'mail': [(MODIFY_REPLACE, ['a@new.com'])]}),
    ]


def test_replace_attributes_rejected(client):
    client.connection.modify.side_effect = [True, False]
    client.connection.result = {'description': 'insufficientAccessRights', 'message': '00002098: access denied'}

    with pytest.raises(ApplyError, match="access denied"):
        client.replace_attributes("CN=Alice,DC=example,DC=com",
                                  {'proxyAddresses': ['SMTP:a@new.com'], 'mail': 'a@new.com'})

    assert client.connection.modify.call_count == 2


def test_requires_connection():
    ad_client = ActiveDirectoryClient("ldap://dc01", "svc", "secret", "DC=example,DC=com")

    with pytest.raises(ConnectionError):
        ad_client.query_user_by_samaccountname("alice")
    with pytest.raises(ConnectionError):
        ad_client.replace_attributes("CN=Alice", {'mail': 'a@new.com'})


def test_context_manager_raises_when_bind_fails(monkeypatch):
    monkeypatch.setattr(ad_module, 'Server', MagicMock())
    monkeypatch.setattr(ad_module, 'Connection', MagicMock(side_effect=Exception("invalid credentials")))

    with pytest.raises(ConnectionError):
        with ActiveDirectoryClient("ldap://dc01", "svc", "bad", "DC=example,DC=com"):
            pass


def test_disconnect(client):
    connection = client.connection
    client.disconnect()

    connection.unbind.assert_called_once()
    assert client.connection is None
