import pytest

from mssql_exec.config.env import load_credentials, parse_connection_string
from mssql_exec.errors import ConfigurationError


def test_parse_connection_string_with_instance_and_port():
    creds = parse_connection_string(
        'Server=tcp:sql01\\REPORTS,14330;User Id=app;Password=pw;Initial Catalog=Sales;'
        'Encrypt=yes;TrustServerCertificate=true'
    )
    assert creds.server == 'sql01'
    assert creds.instance == 'REPORTS'
    assert creds.port == 14330
    assert creds.user == 'app'
    assert creds.password == 'pw'
    assert creds.database == 'Sales'
    assert creds.encrypt is True
    assert creds.trust_server_certificate is True


def test_parse_connection_string_defaults():
    creds = parse_connection_string('Data Source=localhost;UID=sa;PWD=x')
    assert creds.port == 1433
    assert creds.database == 'master'
    assert creds.encrypt is False
    assert creds.trust_server_certificate is False


@pytest.mark.parametrize('raw', ['', '   ', 'Database=x;UID=sa', 'Server=h,abc'])
def test_parse_connection_string_rejects_bad_input(raw):
    with pytest.raises(ConfigurationError):
        parse_connection_string(raw)


def test_load_credentials_from_variables():
    creds = load_credentials({
        'MSSQL_SERVER': 'h',
        'MSSQL_PORT': '2000',
        'MSSQL_USER': 'u',
        'MSSQL_PASSWORD': 'p',
        'MSSQL_ENCRYPT': 'true',
    })
    assert (creds.server, creds.port, creds.user, creds.password) == ('h', 2000, 'u', 'p')
    assert creds.database == 'master'
    assert creds.encrypt is True
    assert creds.trust_server_certificate is False


def test_variables_override_connection_string():
    creds = load_credentials({
        'MSSQL_CONNECTION_STRING': 'Server=a,1500;User Id=u1;Password=p1;Database=D1',
        'MSSQL_USER': 'u2',
    })
    assert creds.server == 'a'
    assert creds.port == 1500
    assert creds.user == 'u2'
    assert creds.password == 'p1'
    assert creds.database == 'D1'


def test_invalid_port_variable():
    with pytest.raises(ConfigurationError, match='MSSQL_PORT'):
        load_credentials({'MSSQL_PORT': 'abc'})
