"""
Pytest configuration and fixtures for the shopping dashboard tests.

This module provides:
- Sample transaction rows and CSV files
- Aggregate trees and layouts built from them
- A hand-stepped clock for the zoom controller
"""

import pytest

from shopping_dashboard.aggregate import build_hierarchy
from shopping_dashboard.load_transactions import TRANSACTION_COLUMNS, records_from_dicts
from shopping_dashboard.partition import partition
from shopping_dashboard.zoom import ZoomController


# ============================================================
# TRANSACTION FIXTURES
# ============================================================

SCENARIO_ROWS = [
    {'gender': 'Male', 'age': 25, 'category': 'Shoes', 'quantity': 2, 'price': 50.0, 'invoice_date': '5/8/2022'},
    {'gender': 'Male', 'age': 25, 'category': 'Shoes', 'quantity': 1, 'price': 30.0, 'invoice_date': '12/12/2021'},
    {'gender': 'Female', 'age': 45, 'category': 'Books', 'quantity': 3, 'price': 10.0, 'invoice_date': '24/10/2021'},
]

MIXED_ROWS = [
    {'gender': 'Female', 'age': 28, 'category': 'Clothing', 'quantity': 5, 'price': 1500.4, 'invoice_date': '5/8/2022'},
    {'gender': 'Male', 'age': 21, 'category': 'Shoes', 'quantity': 3, 'price': 1800.51, 'invoice_date': '12/12/2021'},
    {'gender': 'Male', 'age': 20, 'category': 'Clothing', 'quantity': 1, 'price': 300.08, 'invoice_date': '9/11/2021'},
    {'gender': 'Female', 'age': 66, 'category': 'Shoes', 'quantity': 5, 'price': 3000.85, 'invoice_date': '16/05/2021'},
    {'gender': 'Female', 'age': 53, 'category': 'Books', 'quantity': 4, 'price': 60.6, 'invoice_date': '24/10/2021'},
    {'gender': 'Female', 'age': 49, 'category': 'Cosmetics', 'quantity': 1, 'price': 40.66, 'invoice_date': '13/03/2022'},
    {'gender': 'Male', 'age': 69, 'category': 'Clothing', 'quantity': 3, 'price': 900.24, 'invoice_date': '4/11/2021'},
    {'gender': 'Female', 'age': 36, 'category': 'Food & Beverage', 'quantity': 2, 'price': 10.46, 'invoice_date': '25/12/2022'},
    {'gender': 'Male', 'age': 19, 'category': 'Toys', 'quantity': 4, 'price': 143.36, 'invoice_date': '31/07/2022'},
    {'gender': 'Female', 'age': 30, 'category': 'Technology', 'quantity': 1, 'price': 1050.0, 'invoice_date': '1/1/2023'},
    {'gender': 'Male', 'age': 40, 'category': 'Souvenir', 'quantity': 2, 'price': 11.73, 'invoice_date': '6/2/2023'},
    {'gender': 'Male', 'age': 50, 'category': 'Books', 'quantity': 1, 'price': 15.15, 'invoice_date': '28/10/2022'},
]


def write_csv(path, rows):
    """Write rows in the mall export layout; absent fields are left blank."""
    lines = [','.join(TRANSACTION_COLUMNS)]
    for i, row in enumerate(rows):
        values = {
            'invoice_no': f'I{100000 + i}',
            'customer_id': f'C{200000 + i}',
            'payment_method': 'Cash',
            'shopping_mall': 'Kanyon',
        }
        values.update(row)
        lines.append(','.join('' if values.get(col) is None else str(values.get(col, '')) for col in TRANSACTION_COLUMNS))
    path.write_text('\n'.join(lines) + '\n')
    return path


@pytest.fixture
def scenario_result():
    return records_from_dicts(SCENARIO_ROWS)


@pytest.fixture
def scenario_records(scenario_result):
    return scenario_result.records


@pytest.fixture
def mixed_records():
    return records_from_dicts(MIXED_ROWS).records


@pytest.fixture
def mixed_tree(mixed_records):
    return build_hierarchy(mixed_records)


@pytest.fixture
def mixed_layout(mixed_tree):
    return partition(mixed_tree)


@pytest.fixture
def csv_file(tmp_path):
    return write_csv(tmp_path / "customer_shopping_data.csv", MIXED_ROWS)


# ============================================================
# CLOCK FIXTURES
# ============================================================

class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(mixed_layout, clock):
    return ZoomController(mixed_layout, duration=0.75, clock=clock)
