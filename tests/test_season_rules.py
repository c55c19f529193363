from datetime import date

from season_rules import (
    SeasonRule, carnival_dates, costa_esmeralda_preset, detect_conflicts, easter_date, empty_preset,
    find_uncovered_days, holy_week_dates, month_prices, price_for_date, year_metrics,
)


def _rule(name, start, end, price=100, priority=50, category='media', days=None, active=True):
    return SeasonRule(name=name, category=category, price_per_night=price, start_date=start, end_date=end,
                      applies_to_days=days or [], priority=priority, active=active)


def test_highest_priority_rule_wins():
    rules = [
        _rule('Temporada', '2025-01-01', '2025-12-31', price=100, priority=50),
        _rule('Fiestas', '2025-12-23', '2025-12-31', price=200, priority=90, category='muy_alta'),
    ]
    christmas = price_for_date(date(2025, 12, 24), rules)
    assert christmas.price == 200
    assert christmas.rule_name == 'Fiestas'
    assert christmas.category == 'muy_alta'

    assert price_for_date(date(2025, 12, 1), rules).rule_name == 'Temporada'


def test_equal_priority_keeps_first_rule():
    rules = [
        _rule('Primera', '2025-01-01', '2025-01-31', price=100),
        _rule('Segunda', '2025-01-01', '2025-01-31', price=150),
    ]
    assert price_for_date(date(2025, 1, 15), rules).rule_name == 'Primera'


def test_weekday_filter():
    rules = [
        _rule('Fin de semana', '2025-03-01', '2025-12-22', price=150, priority=70, days=['vie', 'sab', 'dom']),
        _rule('Baja', '2025-03-01', '2025-12-22', price=80, priority=40, category='baja'),
    ]
    # 2025-03-07 is a Friday, 2025-03-05 a Wednesday
    assert price_for_date(date(2025, 3, 7), rules).price == 150
    assert price_for_date(date(2025, 3, 5), rules).price == 80


def test_inactive_rules_are_ignored():
    rules = [_rule('Apagada', '2025-01-01', '2025-12-31', active=False)]
    assert price_for_date(date(2025, 6, 1), rules) is None
    assert year_metrics(2025, rules)['active_rules'] == 0


def test_month_prices_uses_one_based_months():
    rules = [_rule('Febrero', '2025-02-01', '2025-02-28')]
    prices = month_prices(2025, 2, rules)
    assert len(prices) == 28
    assert '2025-02-01' in prices and '2025-02-28' in prices
    assert month_prices(2025, 3, rules) == {}


def test_conflict_for_same_priority_overlap():
    rules = [
        _rule('A', '2025-01-01', '2025-01-20'),
        _rule('B', '2025-01-10', '2025-01-31'),
    ]
    conflicts = detect_conflicts(rules)
    assert len(conflicts) == 1
    assert conflicts[0].dates == '2025-01-10 - 2025-01-20'
    assert [rule.name for rule in conflicts[0].rules] == ['A', 'B']


def test_no_conflict_for_different_priorities_or_disjoint_ranges():
    assert detect_conflicts([
        _rule('A', '2025-01-01', '2025-01-20', priority=50),
        _rule('B', '2025-01-10', '2025-01-31', priority=80),
    ]) == []
    assert detect_conflicts([
        _rule('A', '2025-01-01', '2025-01-09'),
        _rule('B', '2025-01-10', '2025-01-31'),
    ]) == []


def test_weekday_filters_conflict_only_when_they_share_a_day():
    assert detect_conflicts([
        _rule('Sábados', '2025-01-01', '2025-01-31', days=['sab']),
        _rule('Lunes', '2025-01-01', '2025-01-31', days=['lun']),
    ]) == []
    assert len(detect_conflicts([
        _rule('Sábados', '2025-01-01', '2025-01-31', days=['sab']),
        _rule('Todos', '2025-01-01', '2025-01-31'),
    ])) == 1


def test_find_uncovered_days():
    rules = [_rule('Casi todo', '2025-01-01', '2025-12-30')]
    assert find_uncovered_days(2025, rules) == ['2025-12-31']
    assert len(find_uncovered_days(2024, [])) == 366


def test_year_metrics():
    rules = [_rule('Todo el año', '2025-01-01', '2025-12-31', price=100, category='alta')]
    assert year_metrics(2025, rules) == {
        'active_rules': 1,
        'high_season_days': 365,
        'average_price': 100,
        'covered_days': 365,
        'uncovered_days': 0,
        'coverage_percent': 100,
    }
    assert year_metrics(2025, [])['average_price'] == 0


def test_movable_feasts_2025():
    assert easter_date(2025) == date(2025, 4, 20)
    assert carnival_dates(2025) == (date(2025, 3, 1), date(2025, 3, 4))
    assert holy_week_dates(2025) == (date(2025, 4, 13), date(2025, 4, 21))


def test_costa_esmeralda_preset():
    preset = costa_esmeralda_preset(2025, 100)
    rules = {rule.name: rule for rule in preset['rules']}

    assert len(preset['rules']) == 8
    assert rules['Fiestas'].start_date == '2025-12-23'
    assert rules['Fiestas'].end_date == '2026-01-02'
    assert rules['Fiestas'].price_per_night == 180
    assert rules['Fiestas'].min_nights == 7
    assert rules['Enero - Temporada Alta'].price_per_night == 150
    assert rules['Carnaval'].start_date == '2025-03-01'
    assert rules['Fds largo fuera temporada'].applies_to_days == ['vie', 'sab', 'dom']
    assert detect_conflicts(preset['rules']) == []


def test_costa_esmeralda_preset_multiplier_override():
    preset = costa_esmeralda_preset(2025, 100, {'fiestas': 2.0})
    fiestas = next(rule for rule in preset['rules'] if rule.name == 'Fiestas')
    assert fiestas.price_per_night == 200


def test_empty_preset():
    assert empty_preset()['rules'] == []
