from mssql_exec.models import (
    DEFAULT_QUERY,
    OutputItem,
    QueryParameter,
    RowGranularity,
    WorkItem,
)


def test_work_item_from_node_style_keys():
    item = WorkItem.from_dict(2, {
        'connectionOverride': {'server': 'h', 'port': '1500', 'trustServerCertificate': False},
        'query': 'SELECT @a',
        'queryParameters': {'parameters': [{'name': 'a', 'type': 'Int', 'value': 5}]},
        'additionalFields': {'includeDatabaseId': True},
        'options': {'timeout': 1000, 'returnType': 'allRows'},
    })
    assert item.index == 2
    assert item.connection_override.server == 'h'
    assert item.connection_override.port == 1500
    assert item.connection_override.trust_server_certificate is False
    assert item.connection_override.encrypt is None
    assert item.parameters == [QueryParameter(name='a', type='Int', value='5')]
    assert item.additional_fields.include_database_id is True
    assert item.options.timeout_ms == 1000
    assert item.options.return_type is RowGranularity.ALL_ROWS


def test_work_item_defaults():
    item = WorkItem.from_dict(0, None)
    assert item.query == DEFAULT_QUERY
    assert item.parameters == []
    assert item.options.timeout_ms is None
    assert item.options.return_type is RowGranularity.EACH_ROW


def test_output_item_serialisation():
    item = OutputItem(json={'error': 'x'}, paired_item=3)
    assert item.to_dict() == {'json': {'error': 'x'}, 'pairedItem': {'item': 3}}


def test_output_item_has_no_error_heuristic():
    # a single-column row named "error" is ordinary data
    assert not hasattr(OutputItem(json={'error': 'a data value'}, paired_item=0), 'is_error')
