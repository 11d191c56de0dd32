from dataclasses import asdict

import pytest

from mssql_exec.config.resolver import resolve_descriptor
from mssql_exec.models import ConnectionOverride, StoredCredentials


def test_no_override_uses_stored_values(credentials):
    d = resolve_descriptor(credentials, ConnectionOverride())
    assert d.server == 'db.local'
    assert d.port == 1433
    assert d.user == 'sa'
    assert d.password == 'secret'
    assert d.database == 'master'
    assert d.encrypt is False
    assert d.trust_server_certificate is False
    assert d.instance_name is None


@pytest.mark.parametrize(
    'field, value',
    [
        ('server', 'other.host'),
        ('instance', 'SQLEXPRESS'),
        ('port', 14330),
        ('user', 'reader'),
        ('password', 'p@ss'),
        ('database', 'Sales'),
        ('encrypt', True),
        ('trust_server_certificate', True),
    ],
)
def test_single_override_leaves_other_fields_untouched(credentials, field, value):
    baseline = asdict(resolve_descriptor(credentials))
    d = asdict(resolve_descriptor(credentials, ConnectionOverride(**{field: value})))
    assert d[field] == value
    for key in baseline:
        if key != field:
            assert d[key] == baseline[key]


@pytest.mark.parametrize('field', ['server', 'instance', 'user', 'password', 'database'])
def test_empty_string_override_is_ignored(credentials, field):
    credentials.instance = 'STORED'
    d = resolve_descriptor(credentials, ConnectionOverride(**{field: ''}))
    assert getattr(d, field) == getattr(credentials, field)


def test_zero_port_falls_back_to_stored(credentials):
    assert resolve_descriptor(credentials, ConnectionOverride(port=0)).port == 1433


def test_boolean_false_override_is_applied(credentials):
    credentials.encrypt = True
    credentials.trust_server_certificate = True
    d = resolve_descriptor(credentials, ConnectionOverride(encrypt=False, trust_server_certificate=False))
    assert d.encrypt is False
    assert d.trust_server_certificate is False


def test_database_defaults_to_master_when_both_empty():
    stored = StoredCredentials(server='h', user='u', password='p', database='')
    assert resolve_descriptor(stored, ConnectionOverride(database='')).database == 'master'


def test_instance_override_sets_instance_name(credentials):
    d = resolve_descriptor(credentials, ConnectionOverride(instance='SQLEXPRESS'))
    assert d.instance_name == 'SQLEXPRESS'


def test_stored_instance_used_when_override_absent(credentials):
    credentials.instance = 'PROD'
    assert resolve_descriptor(credentials, None).instance_name == 'PROD'


def test_descriptor_repr_hides_password(credentials):
    assert 'secret' not in repr(resolve_descriptor(credentials))
