# nosec B101


import pytest

from domain.models.rates import ExchangeRate, RateTable, is_currency_code


def test_table_enumerates_in_currency_code_order(sample_table):
    assert [rate.currency_code for rate in sample_table] == ['EUR', 'GBP', 'USD']
    assert sample_table.currency_codes == ['EUR', 'GBP', 'USD']


def test_table_lookup(sample_table):
    assert sample_table.get('USD').rate == 47_868_000_000
    assert sample_table.get('JPY') is None
    assert sample_table.get(None) is None
    assert 'EUR' in sample_table
    assert 'JPY' not in sample_table
    assert len(sample_table) == 3


def test_table_is_read_only(sample_table, make_rate):
    with pytest.raises(TypeError):
        sample_table.rates['JPY'] = make_rate('JPY')


def test_table_does_not_share_source_mapping(make_rate):
    rates = {'USD': make_rate('USD')}
    table = RateTable(rates)

    rates['EUR'] = make_rate('EUR')

    assert 'EUR' not in table


def test_empty_table_is_falsy():
    assert not RateTable()
    assert len(RateTable.from_rates([])) == 0


def test_from_rates_keeps_last_duplicate(make_rate):
    table = RateTable.from_rates([make_rate('USD', 1), make_rate('USD', 2)])

    assert len(table) == 1
    assert table.get('USD').rate == 2


def test_exchange_rate_is_immutable(make_rate):
    rate = make_rate()
    with pytest.raises(AttributeError):
        rate.rate = 1


def test_exchange_rate_equality():
    assert ExchangeRate('USD', 5, 'a') == ExchangeRate('USD', 5, 'a')
    assert ExchangeRate('USD', 5, 'a') != ExchangeRate('USD', 5, 'b')


@pytest.mark.parametrize('code, expected', [
    ('USD', True),
    ('usd', False),
    ('US', False),
    ('USDT', False),
    ('U1D', False),
    ('', False),
    (None, False),
])
def test_is_currency_code(code, expected):
    assert is_currency_code(code) is expected
