"""
Dataset files on disk.

A dataset is a directory holding one delimited file per table, named after
the table, plus an optional load-order file listing the tables in the order
they should be written.
"""

import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from fixtureforge.config import Configuration
from fixtureforge.exceptions import ConfigurationError, DataSetLoadError
from fixtureforge.identifiers import ScenarioName, TableName
from fixtureforge.logging_config import get_logger
from fixtureforge.merger import DataSetMerger
from fixtureforge.models import CellValue, Row, Table, TableSet
from fixtureforge.scenario import ScenarioFilter

PathRef = Union[str, Path]

logger = get_logger("loader")


class FormatProvider(ABC):
    extension: str = ""

    @abstractmethod
    def parse(self, directory: PathRef) -> TableSet:
        """Read every file with this provider's extension in directory."""
        pass


class DelimitedFormatProvider(FormatProvider):
    delimiter: str = ","

    def parse(self, directory: PathRef) -> TableSet:
        directory = Path(directory)
        files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == f".{self.extension}")
        return TableSet(tuple(self.parse_file(p) for p in files))

    def parse_file(self, path: Path) -> Table:
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                records = list(csv.reader(f, delimiter=self.delimiter))
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise DataSetLoadError(f"Failed to read dataset file {path}: {e}") from e

        records = [r for r in records if any(cell.strip() for cell in r)]
        if not records:
            raise DataSetLoadError(f"Dataset file {path} has no header row")

        header = [h.strip() for h in records[0]]
        rows = []
        for line_number, record in enumerate(records[1:], start=2):
            if len(record) > len(header):
                logger.warning(
                    f"{path.name}: row {line_number} has {len(record)} values, ignoring all after {len(header)}"
                )
            # Missing trailing cells are NULL
            values = record[:len(header)] + [""] * (len(header) - len(record))
            rows.append(Row({h: (CellValue.NULL if v == "" else v) for h, v in zip(header, values)}))

        try:
            table = Table(TableName(path.stem), tuple(header), tuple(rows))
        except ValueError as e:
            raise DataSetLoadError(f"Invalid dataset file {path}: {e}") from e
        logger.debug(f"Parsed {table.row_count} rows from {path.name}", extra={"table_name": table.name.value})
        return table


class CsvFormatProvider(DelimitedFormatProvider):
    extension = "csv"
    delimiter = ","


class TsvFormatProvider(DelimitedFormatProvider):
    extension = "tsv"
    delimiter = "\t"


class FormatRegistry:
    """Maps file extensions to format providers."""

    def __init__(self, providers: Optional[Dict[str, FormatProvider]] = None):
        self.providers: Dict[str, FormatProvider] = dict(providers or {})

    def register(self, provider: FormatProvider) -> None:
        self.providers[provider.extension.lower()] = provider

    def get_provider(self, extension: str) -> FormatProvider:
        key = extension.lower().lstrip(".")
        if key not in self.providers:
            supported = ", ".join(sorted(self.providers))
            raise ConfigurationError(f"Unsupported data format '{extension}'. Supported: {supported}")
        return self.providers[key]


DEFAULT_FORMATS = FormatRegistry({
    "csv": CsvFormatProvider(),
    "tsv": TsvFormatProvider(),
})


def read_load_order(path: PathRef) -> List[TableName]:
    """Table names from a load-order file; blank lines and # comments are skipped."""
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise DataSetLoadError(f"Failed to read load order file {path}: {e}") from e
    names = []
    for line in lines:
        entry = line.strip()
        if entry and not entry.startswith("#"):
            names.append(TableName(entry))
    return names


def apply_load_order(table_set: TableSet, order: Sequence[TableName], source: str = "") -> TableSet:
    """Listed tables first, in listed order; the rest keep their order."""
    ordered = []
    for name in order:
        table = table_set.get_table(name)
        if table is None:
            raise DataSetLoadError(f"Table {name.value} listed in load order {source} has no dataset file")
        if all(t.name != table.name for t in ordered):
            ordered.append(table)
    listed = {t.name for t in ordered}
    ordered.extend(t for t in table_set if t.name not in listed)
    return TableSet(tuple(ordered))


class DataSetLoader:
    def __init__(self, configuration: Optional[Configuration] = None,
                 formats: Optional[FormatRegistry] = None):
        self.configuration = configuration or Configuration.defaults()
        self.formats = formats or DEFAULT_FORMATS
        self.merger = DataSetMerger()

    def load(self, directory: PathRef, scenario_names: Iterable[Union[ScenarioName, str]] = ()) -> TableSet:
        conventions = self.configuration.conventions
        directory = self._resolve(directory)
        if not directory.is_dir():
            raise DataSetLoadError(f"Dataset directory not found: {directory}")

        provider = self.formats.get_provider(conventions.data_format)
        table_set = provider.parse(directory)

        load_order_file = directory / conventions.load_order_file_name
        if load_order_file.is_file():
            table_set = apply_load_order(table_set, read_load_order(load_order_file), str(load_order_file))

        scenario_filter = ScenarioFilter(conventions.scenario_marker, scenario_names)
        table_set = scenario_filter.filter_table_set(table_set)
        logger.debug(f"Loaded {len(table_set)} tables from {directory}")
        return table_set

    def load_many(self, directories: Sequence[PathRef],
                  scenario_names: Iterable[Union[ScenarioName, str]] = ()) -> TableSet:
        names = list(scenario_names)
        table_sets = [self.load(d, names) for d in directories]
        return self.merger.merge(table_sets, self.configuration.conventions.table_merge_strategy)

    def load_expectation(self, directory: PathRef,
                         scenario_names: Iterable[Union[ScenarioName, str]] = ()) -> TableSet:
        """Load the expectation dataset that sits next to a preparation dataset."""
        suffix = self.configuration.conventions.expectation_suffix.strip("/")
        return self.load(Path(directory) / suffix, scenario_names)

    def _resolve(self, directory: PathRef) -> Path:
        path = Path(directory)
        base = self.configuration.conventions.base_directory
        if base and not path.is_absolute():
            return Path(base) / path
        return path
