"""
Tests for the radial partition layout.

Covers:
- Angular tiling of each parent by its children
- Descending-value child order and zero-value parents
- Ring levels, pixel radii and ancestor chains
"""

import numpy as np
import pandas as pd
import pytest

from shopping_dashboard.aggregate import AggregateNode, build_hierarchy
from shopping_dashboard.load_transactions import records_from_dicts
from shopping_dashboard.partition import LAYOUT_COLUMNS, TAU, ancestors, partition, radial_extent


def _leaf(path, value):
    return AggregateNode(name=path[-1], value=value, path=path)


# ============================================================
# Angular layout
# ============================================================

class TestAngularLayout:
    """Children tile their parent's angle in proportion to value."""

    def test_columns_and_index(self, mixed_layout):
        assert list(mixed_layout.columns) == LAYOUT_COLUMNS
        assert mixed_layout.index.name == 'id'
        assert 'root/Female/50+/Shoes' in mixed_layout.index

    def test_root_spans_full_circle(self, mixed_layout):
        root = mixed_layout.loc['root']
        assert root['x0'] == 0.0
        assert root['x1'] == pytest.approx(TAU)
        assert pd.isna(root['parent'])

    def test_children_tile_parent(self, mixed_layout):
        for parent_id, children in mixed_layout.groupby('parent'):
            parent = mixed_layout.loc[parent_id]
            children = children.sort_values('x0')

            assert children['x0'].iloc[0] == pytest.approx(parent['x0'])
            assert children['x1'].iloc[-1] == pytest.approx(parent['x1'])
            assert np.allclose(children['x1'].to_numpy()[:-1], children['x0'].to_numpy()[1:])

    def test_width_proportional_to_value(self, mixed_layout):
        total = mixed_layout.at['root', 'value']
        widths = mixed_layout['x1'] - mixed_layout['x0']
        assert np.allclose(widths, mixed_layout['value'] / total * TAU)

    def test_descending_order(self, mixed_layout):
        for _, children in mixed_layout.groupby('parent', sort=False):
            ordered = children.sort_values('x0')
            assert ordered['value'].is_monotonic_decreasing

    def test_larger_gender_first(self, mixed_layout):
        female = mixed_layout.loc['root/Female']
        male = mixed_layout.loc['root/Male']
        assert female['x0'] == 0.0
        assert male['x0'] == pytest.approx(female['x1'])

    def test_ties_keep_input_order(self):
        bracket = ('root', 'Male', '20-29')
        tree = AggregateNode(name='root', value=2.0, children=(
            AggregateNode(name='Male', value=2.0, path=('root', 'Male'), children=(
                AggregateNode(name='20-29', value=2.0, path=bracket, children=(
                    _leaf(bracket + ('Toys',), 1.0),
                    _leaf(bracket + ('Books',), 1.0),
                )),
            )),
        ))
        layout = partition(tree)
        assert layout.at['root/Male/20-29/Toys', 'x0'] == 0.0
        assert layout.at['root/Male/20-29/Books', 'x0'] == pytest.approx(np.pi)

    def test_zero_value_child_has_zero_width(self):
        records = records_from_dicts([
            {'gender': 'Male', 'age': 25, 'category': 'Shoes', 'quantity': 2, 'price': 50.0},
            {'gender': 'Male', 'age': 25, 'category': 'Gifts', 'quantity': 0, 'price': 50.0},
        ]).records
        layout = partition(build_hierarchy(records))

        gifts = layout.loc['root/Male/20-29/Gifts']
        assert gifts['x0'] == gifts['x1']
        assert gifts['x0'] == pytest.approx(TAU)
        assert layout.at['root/Male/20-29/Shoes', 'x1'] == pytest.approx(TAU)

    def test_zero_value_parent(self):
        records = records_from_dicts([
            {'gender': 'Female', 'age': 35, 'category': 'Books', 'quantity': 1, 'price': 10.0},
            {'gender': 'Male', 'age': 25, 'category': 'Shoes', 'quantity': 0, 'price': 50.0},
            {'gender': 'Male', 'age': 25, 'category': 'Toys', 'quantity': 0, 'price': 5.0},
        ]).records
        layout = partition(build_hierarchy(records))

        male_subtree = layout[layout['top'] == 'Male']
        assert len(male_subtree) == 4
        assert (male_subtree['x0'] == male_subtree['x1']).all()
        assert np.allclose(male_subtree['x0'], TAU)

    def test_empty_tree(self):
        layout = partition(AggregateNode(name='root', value=0.0))
        assert layout.index.tolist() == ['root']
        assert layout.at['root', 'x1'] == pytest.approx(TAU)


# ============================================================
# Radial layout
# ============================================================

class TestRadialLayout:
    """Depth d sits in ring [d, d + 1)."""

    def test_ring_levels(self, mixed_layout):
        assert (mixed_layout['y0'] == mixed_layout['depth']).all()
        assert (mixed_layout['y1'] == mixed_layout['depth'] + 1).all()

    def test_top_is_gender(self, mixed_layout):
        assert pd.isna(mixed_layout.at['root', 'top'])
        assert mixed_layout.at['root/Male', 'top'] == 'Male'
        assert mixed_layout.at['root/Female/50+/Books', 'top'] == 'Female'

    def test_radial_extent(self):
        intervals = pd.DataFrame({
            'x0': [0.0, 0.0],
            'x1': [1.0, 1.0],
            'y0': [1.0, 2.0],
            'y1': [2.0, 2.0],
        }, index=['a', 'b'])
        radii = radial_extent(intervals, radius=100)

        assert radii.at['a', 'inner'] == 100
        assert radii.at['a', 'outer'] == 199
        # Collapsed ring never gets a negative thickness
        assert radii.at['b', 'outer'] == radii.at['b', 'inner'] == 200


# ============================================================
# Ancestors
# ============================================================

class TestAncestors:

    def test_chain(self, mixed_layout):
        assert ancestors(mixed_layout, 'root/Male/50+/Books') == [
            'root', 'root/Male', 'root/Male/50+', 'root/Male/50+/Books'
        ]

    def test_root(self, mixed_layout):
        assert ancestors(mixed_layout, 'root') == ['root']
