from typing import Dict, List, Sequence

from fixtureforge.constants import TableMergeStrategy
from fixtureforge.identifiers import ColumnName, TableName
from fixtureforge.logging_config import get_logger
from fixtureforge.models import Row, Table, TableSet


class DataSetMerger:
    """Combines several table sets that may describe the same tables."""

    def __init__(self):
        self.logger = get_logger("merger")

    def merge(self, sources: Sequence[TableSet],
              strategy: TableMergeStrategy = TableMergeStrategy.UNION_ALL) -> TableSet:
        if not sources:
            self.logger.debug("No datasets to merge, returning empty dataset")
            return TableSet()

        if len(sources) == 1:
            self.logger.debug("Single dataset, no merging needed")
            return sources[0]

        strategy = TableMergeStrategy(strategy)
        self.logger.debug(f"Merging {len(sources)} datasets", extra={"strategy": strategy.value})

        # dict keeps first-seen order of table names
        groups: Dict[TableName, List[Table]] = {}
        for table_set in sources:
            for table in table_set:
                groups.setdefault(table.name, []).append(table)

        merged = [self._merge_group(tables, strategy) for tables in groups.values()]
        self.logger.debug(f"Merged into {len(merged)} tables")
        return TableSet(tuple(merged))

    def _merge_group(self, tables: List[Table], strategy: TableMergeStrategy) -> Table:
        if len(tables) == 1:
            return tables[0]

        name = tables[0].name.value
        if strategy == TableMergeStrategy.FIRST:
            self.logger.debug("Using first occurrence", extra={"table_name": name})
            return tables[0]
        if strategy == TableMergeStrategy.LAST:
            self.logger.debug("Using last occurrence", extra={"table_name": name})
            return tables[-1]
        return self._union(tables, remove_duplicates=strategy == TableMergeStrategy.UNION)

    def _union(self, tables: List[Table], remove_duplicates: bool) -> Table:
        columns: List[ColumnName] = []
        for table in tables:
            for column in table.columns:
                if column not in columns:
                    columns.append(column)

        rows: List[Row] = []
        seen = set()
        for table in tables:
            for row in table.rows:
                projected = row if row.columns == columns else row.project(columns)
                if remove_duplicates:
                    key = tuple(projected[c] for c in columns)
                    if key in seen:
                        continue
                    seen.add(key)
                rows.append(projected)

        self.logger.debug(
            f"Merged {len(tables)} tables into {len(rows)} rows with {len(columns)} columns",
            extra={"table_name": tables[0].name.value},
        )
        return Table(tables[0].name, tuple(columns), tuple(rows))
