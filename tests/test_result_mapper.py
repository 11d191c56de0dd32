from mssql_exec.infra.db.mssql import QueryResult
from mssql_exec.models import ExecutionOptions, Operation, RowGranularity
from mssql_exec.services.result_mapper import map_aggregated, map_result, map_rows


def _result():
    first = [{'n': 1}, {'n': 2}, {'n': 3}]
    second = [{'m': 'x'}]
    return QueryResult(recordset=first, recordsets=[first, second], rows_affected=[3, 1])


def test_each_row_becomes_an_item_in_order():
    items = map_rows(_result(), item_index=4)
    assert [i.json for i in items] == [{'n': 1}, {'n': 2}, {'n': 3}, {'m': 'x'}]
    assert {i.paired_item for i in items} == {4}


def test_empty_result_gives_no_items():
    assert map_rows(QueryResult(), 0) == []


def test_aggregated_gives_exactly_one_item():
    result = _result()
    items = map_aggregated(result, item_index=1)
    assert len(items) == 1
    assert items[0].json == {
        'recordset': result.recordset,
        'rowsAffected': [3, 1],
        'recordsets': result.recordsets,
    }
    assert items[0].to_dict()['pairedItem'] == {'item': 1}


def test_all_rows_only_applies_to_execute_query():
    opts = ExecutionOptions(return_type=RowGranularity.ALL_ROWS)
    assert len(map_result(_result(), Operation.EXECUTE_QUERY, opts, 0)) == 1
    assert len(map_result(_result(), Operation.LIST_ALL, opts, 0)) == 4


def test_default_options_map_per_row():
    assert len(map_result(_result(), Operation.EXECUTE_QUERY, ExecutionOptions(), 0)) == 4
