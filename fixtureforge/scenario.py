from typing import Iterable, Optional, Union

from fixtureforge.identifiers import ColumnName, ScenarioMarker, ScenarioName
from fixtureforge.logging_config import get_logger
from fixtureforge.models import Row, Table, TableSet


class ScenarioFilter:
    """
    Keeps only the rows tagged for the active scenarios.

    A table opts in by declaring the marker as its first column. That column
    never reaches the output. Rows with a blank marker cell apply to every
    scenario.
    """

    def __init__(self, marker: Union[ScenarioMarker, str, None] = None,
                 scenario_names: Iterable[Union[ScenarioName, str]] = ()):
        if marker is None:
            marker = ScenarioMarker()
        elif not isinstance(marker, ScenarioMarker):
            marker = ScenarioMarker(marker)
        self.marker = marker
        self.scenario_names = frozenset(
            n if isinstance(n, ScenarioName) else ScenarioName(n) for n in scenario_names
        )
        self.logger = get_logger("scenario")
        self.logger.debug(
            f"Created scenario filter with marker {marker.value!r}, "
            f"names {sorted(n.value for n in self.scenario_names)}"
        )

    @property
    def is_active(self) -> bool:
        return bool(self.scenario_names)

    def find_scenario_column(self, table: Table) -> Optional[ColumnName]:
        if table.columns and table.columns[0].value == self.marker.value:
            return table.columns[0]
        return None

    def filter(self, table: Table) -> Table:
        scenario_column = self.find_scenario_column(table)
        if scenario_column is None:
            return table

        data_columns = table.columns[1:]
        kept = []
        for row in table.rows:
            if self.is_active and not self._should_include(row, scenario_column):
                continue
            kept.append(row.project(data_columns))

        self.logger.debug(
            f"Kept {len(kept)} of {table.row_count} rows",
            extra={"table_name": table.name.value},
        )
        return Table(table.name, data_columns, tuple(kept))

    def filter_table_set(self, table_set: TableSet) -> TableSet:
        return TableSet(tuple(self.filter(t) for t in table_set))

    def _should_include(self, row: Row, scenario_column: ColumnName) -> bool:
        value = row[scenario_column].value
        if value is None:
            return True
        text = str(value).strip()
        if not text:
            return True
        return ScenarioName(text) in self.scenario_names
