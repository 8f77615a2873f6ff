"""
Transaction Aggregation - Hierarchy and Chart Aggregates
Groups validated transactions into the gender -> age bracket -> category tree
used by the drill-down chart, and computes the smaller aggregates behind the
statistics panel, the gender bar chart, the heatmap and the monthly trend.

All monetary sums use the ``line_value`` column (quantity x unit price).
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import pandas as pd

# Setup logging
logger = logging.getLogger(__name__)

ROOT_NAME = 'root'
ID_SEP = '/'

AGE_BRACKETS = ['<20', '20-29', '30-39', '40-49', '50+']

HIERARCHY_LEVELS = ['gender', 'age_bracket', 'category']

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


@dataclass(frozen=True)
class AggregateNode:
    """
    One grouping level of the aggregate tree.

    Leaves carry the summed line value of their records; interior nodes carry
    the sum of their children. ``path`` holds the names from the root down to
    this node and doubles as its identity.
    """
    name: str
    value: float
    children: Tuple['AggregateNode', ...] = ()
    path: Tuple[str, ...] = (ROOT_NAME,)

    @property
    def id(self) -> str:
        return ID_SEP.join(self.path)

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self) -> Iterator['AggregateNode']:
        """Pre-order traversal, parents before children."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, node_id: str) -> Optional['AggregateNode']:
        for node in self.walk():
            if node.id == node_id:
                return node
        return None


def get_age_bracket(age) -> str:
    """Map an age to its bracket; each cut point belongs to the upper bracket."""
    if age < 20:
        return '<20'
    if age < 30:
        return '20-29'
    if age < 40:
        return '30-39'
    if age < 50:
        return '40-49'
    return '50+'


def add_age_brackets(records: pd.DataFrame) -> pd.DataFrame:
    df = records.copy()
    df['age_bracket'] = df['age'].apply(get_age_bracket)
    return df


def build_hierarchy(records: pd.DataFrame) -> AggregateNode:
    """
    Build the gender -> age bracket -> category tree.

    Group keys keep their first-appearance order in ``records`` so the same
    input always yields the same tree.
    """
    df = add_age_brackets(records)
    leaf_sums = df.groupby(HIERARCHY_LEVELS, sort=False)['line_value'].sum()

    nested = {}
    for (gender, bracket, category), total in leaf_sums.items():
        nested.setdefault(gender, {}).setdefault(bracket, []).append((category, float(total)))

    genders = []
    for gender, brackets in nested.items():
        gender_path = (ROOT_NAME, gender)
        bracket_nodes = []
        for bracket, categories in brackets.items():
            bracket_path = gender_path + (bracket,)
            leaves = tuple(
                AggregateNode(name=category, value=total, path=bracket_path + (category,))
                for category, total in categories
            )
            bracket_nodes.append(AggregateNode(
                name=bracket,
                value=sum(leaf.value for leaf in leaves),
                children=leaves,
                path=bracket_path
            ))
        genders.append(AggregateNode(
            name=gender,
            value=sum(node.value for node in bracket_nodes),
            children=tuple(bracket_nodes),
            path=gender_path
        ))

    root = AggregateNode(
        name=ROOT_NAME,
        value=sum(node.value for node in genders),
        children=tuple(genders)
    )
    logger.info(f"Built hierarchy: {sum(1 for _ in root.walk()):,} nodes, total value ${root.value:,.2f}")
    return root


def hierarchy_table(root: AggregateNode) -> pd.DataFrame:
    """Flatten the tree into one row per node (root excluded)."""
    rows = []
    for node in root.walk():
        if node is root:
            continue
        rows.append({
            'Path': ' → '.join(node.path[1:]),
            'Level': HIERARCHY_LEVELS[node.depth - 1],
            'Depth': node.depth,
            'Value': round(node.value, 2),
            'Share %': round(node.value / root.value * 100, 2) if root.value > 0 else 0
        })
    return pd.DataFrame(rows, columns=['Path', 'Level', 'Depth', 'Value', 'Share %'])


def compute_summary(records: pd.DataFrame) -> dict:
    """
    Key statistics for the header panel.

    Average purchase and top category are None when there are no records so
    the panel can show an explicit "no data" state.
    """
    total_customers = len(records)
    total_revenue = float(records['line_value'].sum()) if total_customers else 0.0

    if total_customers == 0:
        return {
            'total_customers': 0,
            'total_revenue': 0.0,
            'avg_purchase': None,
            'top_category': None
        }

    category_revenue = records.groupby('category', sort=False)['line_value'].sum()
    top_category = category_revenue.sort_values(ascending=False, kind='stable').index[0]

    return {
        'total_customers': total_customers,
        'total_revenue': total_revenue,
        'avg_purchase': total_revenue / total_customers,
        'top_category': top_category
    }


def revenue_by_gender(records: pd.DataFrame) -> pd.DataFrame:
    gender_revenue = records.groupby('gender', sort=False)['line_value'].sum().reset_index()
    gender_revenue.columns = ['Gender', 'Revenue']
    return gender_revenue


def age_category_matrix(records: pd.DataFrame) -> pd.DataFrame:
    """Revenue per category (rows) and age bracket (columns), zero-filled."""
    categories = records['category'].drop_duplicates().tolist()
    if not categories:
        return pd.DataFrame(index=pd.Index([], name='category'), columns=AGE_BRACKETS, dtype=float)

    df = add_age_brackets(records)
    matrix = df.groupby(['category', 'age_bracket'], sort=False)['line_value'].sum().unstack(fill_value=0)
    return matrix.reindex(index=categories, columns=AGE_BRACKETS, fill_value=0).astype(float)


def available_years(records: pd.DataFrame) -> list:
    years = records['invoice_date'].dropna().dt.year.unique()
    return sorted(int(year) for year in years)


def monthly_revenue(records: pd.DataFrame, year: Optional[int] = None) -> pd.DataFrame:
    """Revenue per calendar month, Jan..Dec, for all years or a single year."""
    dated = records[records['invoice_date'].notna()]
    if year is not None:
        dated = dated[dated['invoice_date'].dt.year == year]

    by_month = dated.groupby(dated['invoice_date'].dt.month)['line_value'].sum()
    by_month = by_month.reindex(range(1, 13), fill_value=0.0)

    return pd.DataFrame({'Month': MONTHS, 'Revenue': by_month.astype(float).values})
