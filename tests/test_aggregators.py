from budget_engine.aggregators import (
    calculate_budgeted,
    calculate_income,
    calculate_spent,
    expense_default_amounts,
)
from budget_engine.models import (
    Assignment,
    CategoryMapping,
    ExpenseDefinition,
    IncomeSource,
    SplitSetting,
    Transaction,
)
from budget_engine.periods import period_range

OWNER = 'owner-1'
PARTNER = 'partner-1'
FEBRUARY = period_range('2026-02-10', 'monthly', 'UTC')


def _mappings():
    return [
        CategoryMapping('c-groceries', 'Food', 'Groceries'),
        CategoryMapping('c-fuel', 'Transport', 'Fuel'),
    ]


def _txn(txn_id, amount, category='c-groceries', **kwargs):
    return Transaction(id=txn_id, amount_cents=amount, category_id=category,
                       created_at='2026-02-05T10:00:00Z', **kwargs)


def _transactions():
    return [
        _txn('t1', -10000),
        _txn('t2', -5000, split_override_percentage=50),
        _txn('t3', 2000),  # refund
        _txn('t4', -3000, category='c-fuel', matched_expense_id='fuel-card'),
        _txn('t5', -1000, category='c-unknown'),
        _txn('t6', -7000, is_income=True),
        _txn('t7', -400, category=None),
    ]


def _split_settings():
    return [
        SplitSetting('equal', category_name='Food'),
        SplitSetting('individual-partner', expense_definition_id='fuel-card'),
    ]


def test_income_converts_recurring_sources():
    sources = [
        IncomeSource(100000, 'weekly', OWNER),
        IncomeSource(300000, 'monthly', PARTNER),
    ]
    assert calculate_income(sources, 'monthly', 'shared', OWNER, FEBRUARY) == 700000
    assert calculate_income(sources, 'fortnightly', 'shared', OWNER, FEBRUARY) == 350000


def test_individual_income_skips_partner_and_manual_partner_sources():
    sources = [
        IncomeSource(400000, 'monthly', OWNER),
        IncomeSource(300000, 'monthly', PARTNER),
        IncomeSource(50000, 'monthly', OWNER, is_manual_partner_income=True),
    ]
    assert calculate_income(sources, 'monthly', 'individual', OWNER, FEBRUARY) == 400000
    assert calculate_income(sources, 'monthly', 'shared', OWNER, FEBRUARY) == 750000


def test_one_off_income_counts_only_when_received_in_period():
    sources = [
        IncomeSource(25000, 'monthly', OWNER, source_type='one-off', is_received=True,
                     received_date='2026-02-14'),
        IncomeSource(90000, 'monthly', OWNER, source_type='one-off', is_received=False,
                     received_date='2026-02-14'),
        IncomeSource(40000, 'monthly', OWNER, source_type='one-off', is_received=True,
                     received_date='2026-03-02'),
    ]
    assert calculate_income(sources, 'monthly', 'shared', OWNER, FEBRUARY) == 25000
    assert calculate_income(sources, 'monthly', 'shared', OWNER, None) == 0


def test_budgeted_adds_expense_defaults_for_unassigned_subcategories():
    assignments = [
        Assignment('Food', 60000, subcategory_name='Groceries'),
        Assignment('Home', 0, subcategory_name='Internet'),
    ]
    expenses = [
        # Manually assigned: the default is ignored
        ExpenseDefinition('groc', 'Food', 50000, 'monthly', inferred_subcategory='Groceries'),
        # Zero assignment does not block the default
        ExpenseDefinition('net', 'Home', 8000, 'monthly', inferred_subcategory='Internet'),
        # Four Mondays in February 2026
        ExpenseDefinition('gym', 'Health', 2500, 'weekly', inferred_subcategory='Gym',
                          next_due_date='2026-02-02'),
        # No subcategory, never a default
        ExpenseDefinition('misc', 'Misc', 99999, 'monthly'),
    ]

    total = calculate_budgeted(assignments, expenses, [], 'monthly', 'shared', OWNER, OWNER, FEBRUARY)

    assert total == 60000 + 8000 + 4 * 2500


def test_budgeted_without_period_converts_frequency():
    expenses = [ExpenseDefinition('gym', 'Health', 2500, 'weekly', inferred_subcategory='Gym',
                                  next_due_date='2026-02-02')]
    assert calculate_budgeted([], expenses, [], 'monthly', 'shared', OWNER, OWNER) == 10000
    assert calculate_budgeted([], expenses, [], 'weekly', 'shared', OWNER, OWNER) == 2500


def test_individual_budgeted_applies_expense_split():
    expenses = [ExpenseDefinition('rent', 'Home', 200001, 'monthly', inferred_subcategory='Rent')]
    settings = [SplitSetting('custom', owner_percentage=60, expense_definition_id='rent')]

    assert calculate_budgeted([], expenses, settings, 'monthly', 'individual', OWNER, OWNER) == 120001
    assert calculate_budgeted([], expenses, settings, 'monthly', 'individual', PARTNER, OWNER) == 80000


def test_expense_defaults_accumulate_per_subcategory():
    expenses = [
        ExpenseDefinition('power', 'Home', 12000, 'monthly', inferred_subcategory='Utilities'),
        ExpenseDefinition('water', 'Home', 30000, 'quarterly', inferred_subcategory='Utilities'),
    ]
    defaults = expense_default_amounts(expenses, [], 'monthly', 'shared', OWNER, OWNER)

    assert defaults == {'Home::Utilities': 22000}


def test_shared_spent_ignores_income_refunds_and_unmapped():
    spent = calculate_spent(_transactions(), _mappings(), _split_settings(), 'shared', OWNER, OWNER)

    assert spent == {'Food::Groceries': 15000, 'Transport::Fuel': 3000}


def test_individual_spent_applies_override_then_expense_then_category():
    spent = calculate_spent(_transactions(), _mappings(), _split_settings(), 'individual', OWNER, OWNER)

    # t1 equal category split, t2 override 50%, t4 partner's expense
    assert spent == {'Food::Groceries': 7500, 'Transport::Fuel': 0}


def test_individual_spent_for_partner():
    spent = calculate_spent(_transactions(), _mappings(), _split_settings(), 'individual', PARTNER, OWNER)

    assert spent == {'Food::Groceries': 7500, 'Transport::Fuel': 3000}


def test_spent_without_split_settings_is_full_amount():
    spent = calculate_spent(_transactions(), _mappings(), [], 'individual', OWNER, OWNER)

    assert spent == {'Food::Groceries': 15000, 'Transport::Fuel': 3000}


def test_spent_with_no_transactions():
    assert calculate_spent([], _mappings(), [], 'shared', OWNER, OWNER) == {}
    assert calculate_spent([_txn('t', 500)], _mappings(), [], 'shared', OWNER, OWNER) == {}
